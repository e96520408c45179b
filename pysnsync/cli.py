"""CLI interface for pysnsync."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import click

from .api import ItemStoreClient
from .cache import ItemCache
from .config import Config
from .exceptions import SnSyncError
from .output import OutputFormatter
from .session import Session, load_session
from .sync.comparator import ItemDiff
from .sync.engine import SyncEngine

logger = logging.getLogger(__name__)


def _client_factory(session: Session) -> ItemStoreClient:
    return ItemStoreClient(server=session.server, token=session.token)


def _build(ctx: Any) -> tuple[SyncEngine, Session, str]:
    """Create the engine, session and mapping root for a command."""
    config: Config = ctx.obj["config"]
    out: OutputFormatter = ctx.obj["out"]

    session = load_session(config, token=ctx.obj["token"])
    if ctx.obj["server"]:
        session.server = ctx.obj["server"]

    cache_dir = ctx.obj["cache_dir"] or config.cache_dir
    store = ItemCache(client_factory=_client_factory, cache_dir=cache_dir)
    root = os.path.abspath(os.path.expanduser(ctx.obj["root"] or config.root))
    logger.debug(f"Using root {root} and cache {cache_dir}")
    return SyncEngine(store, output=out), session, root


def _diffs_to_json(diffs: list[ItemDiff]) -> list[dict]:
    return [{"path": d.root_rel_path, "state": d.state.value} for d in diffs]


@click.group()
@click.option("--server", "-s", help="Item store server URL")
@click.option("--token", "-t", help="Session token for the item store")
@click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False),
    help="Directory that tracked paths are relative to (default: home)",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the local item cache",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option()
@click.pass_context
def main(
    ctx: Any,
    server: Optional[str],
    token: Optional[str],
    root: Optional[str],
    cache_dir: Optional[Path],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pysnsync - Track dotfiles as notes in a remote item store."""
    ctx.ensure_object(dict)
    ctx.obj.setdefault("config", Config())
    ctx.obj["server"] = server
    ctx.obj["token"] = token
    ctx.obj["root"] = root
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pysnsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--token",
    "-t",
    "init_token",
    prompt="Enter your session token",
    hide_input=True,
    help="Session token for the item store",
)
@click.option("--email", "-e", default=None, help="Account email")
@click.pass_context
def init(ctx: Any, init_token: str, email: Optional[str]) -> None:
    """Initialize pysnsync configuration.

    Stores your session token in ~/.config/pysnsync/config for future use.
    """
    out: OutputFormatter = ctx.obj["out"]
    config: Config = ctx.obj["config"]
    server = ctx.obj["server"] or config.server

    out.info("Validating session token...")
    try:
        client = _client_factory(Session(server=server, token=init_token))
        try:
            client.sync_items([])
        finally:
            client.close()
        out.success("Session token is valid")
    except SnSyncError as e:
        out.error(f"Session token validation failed: {e}")
        if not click.confirm("Save session token anyway?", default=False):
            out.warning("Configuration cancelled.")
            ctx.exit(1)

    config.save_credentials(init_token, server=server, email=email)
    out.success(f"Configuration saved to {config.get_config_path()}")


@main.command()
@click.argument("paths", nargs=-1)
@click.option(
    "--all", "all_dotfiles", is_flag=True, help="Track every dotfile in the root"
)
@click.pass_context
def add(ctx: Any, paths: tuple[str, ...], all_dotfiles: bool) -> None:
    """Start tracking files or directories.

    Examples:
        pysnsync add ~/.gitconfig          # Track a single file
        pysnsync add ~/.config/fish        # Track a directory recursively
        pysnsync add --all                 # Track every top-level dotfile
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        engine, session, root = _build(ctx)
        result = engine.add(session, root, list(paths), all_dotfiles=all_dotfiles)
    except KeyboardInterrupt:
        out.warning("\nAdd cancelled by user")
        ctx.exit(130)
    except SnSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(result.to_dict())
    elif result.msg:
        out.print(result.msg)


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def remove(ctx: Any, paths: tuple[str, ...]) -> None:
    """Stop tracking files or directories.

    The local files are left untouched; only their notes are deleted.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        engine, session, root = _build(ctx)
        result = engine.remove(session, root, list(paths))
    except KeyboardInterrupt:
        out.warning("\nRemove cancelled by user")
        ctx.exit(130)
    except SnSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(result.to_dict())
    elif result.msg:
        out.print(result.msg)


main.add_command(remove, name="rm")


@main.command()
@click.argument("paths", nargs=-1)
@click.pass_context
def status(ctx: Any, paths: tuple[str, ...]) -> None:
    """Compare tracked paths with their notes."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        engine, session, root = _build(ctx)
        diffs, msg = engine.status(session, root, list(paths))
    except KeyboardInterrupt:
        ctx.exit(130)
    except SnSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(_diffs_to_json(diffs))
    elif msg:
        out.print(msg)


@main.command()
@click.argument("paths", nargs=-1)
@click.pass_context
def diff(ctx: Any, paths: tuple[str, ...]) -> None:
    """Show line differences between tracked paths and their notes."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        engine, session, root = _build(ctx)
        diffs, msg = engine.diff(session, root, list(paths))
    except KeyboardInterrupt:
        ctx.exit(130)
    except SnSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(_diffs_to_json(diffs))
    elif not diffs and msg:
        out.print(msg)


@main.command()
@click.argument("paths", nargs=-1)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Path to skip, along with everything beneath it (repeatable)",
)
@click.pass_context
def sync(ctx: Any, paths: tuple[str, ...], exclude: tuple[str, ...]) -> None:
    """Push newer local files and pull newer or missing notes.

    Examples:
        pysnsync sync                          # Sync everything tracked
        pysnsync sync ~/.config                # Sync one directory
        pysnsync sync -e ~/.config/secrets     # Skip a path
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        engine, session, root = _build(ctx)
        result = engine.sync(session, root, list(paths), exclude=list(exclude))
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)
    except SnSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(result.to_dict())
    elif result.msg:
        out.print(result.msg)


@main.command()
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def wipe(ctx: Any, force: bool) -> None:
    """Delete every tracked note and tag from the item store.

    Local files are not touched.
    """
    out: OutputFormatter = ctx.obj["out"]

    if not force and not click.confirm(
        "Delete every tracked note and tag?", default=False
    ):
        out.warning("Wipe cancelled.")
        return

    try:
        engine, session, _ = _build(ctx)
        count = engine.wipe(session)
    except KeyboardInterrupt:
        ctx.exit(130)
    except SnSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json({"removed": count})
    else:
        out.success(f"{count} item(s) removed")


if __name__ == "__main__":
    main()
