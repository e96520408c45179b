"""Local filesystem operations used while reconciling."""

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from ..exceptions import LocalIOError

logger = logging.getLogger(__name__)

DIFF_BINARY = "diff"


def read_local(path: str) -> bytes:
    """Read the full content of a local file."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise LocalIOError(f"failed to read {path}: {e.strerror}") from e


def write_local(path: str, text: str) -> None:
    """Write text to a local file, creating parent directories as needed."""
    local_path = Path(path)
    try:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise LocalIOError(f"failed to write {path}: {e.strerror}") from e


def find_diff_binary() -> str:
    """Locate the external line-diff utility."""
    binary = shutil.which(DIFF_BINARY)
    if binary is None:
        raise LocalIOError(f"failed to find '{DIFF_BINARY}' binary")
    return binary


def render_content_diff(
    local: bytes, remote: str, diff_binary: Optional[str] = None
) -> str:
    """Run the line-diff utility over local and remote content.

    Both sides are written to temporary files which are always removed.
    Exit status 0 means no differences, 1 means differences; anything else
    is a failure.

    Args:
        local: Local file content
        remote: Remote note text
        diff_binary: Path to the diff utility (looked up if omitted)

    Returns:
        Rendered delta (empty if the contents are identical)

    Raises:
        LocalIOError: If the utility cannot be run or fails
    """
    binary = diff_binary or find_diff_binary()

    local_fd, local_path = tempfile.mkstemp(prefix="pysnsync-compare-", suffix="-f1")
    remote_fd, remote_path = tempfile.mkstemp(prefix="pysnsync-compare-", suffix="-f2")
    try:
        with os.fdopen(local_fd, "wb") as f1:
            f1.write(local)
        with os.fdopen(remote_fd, "wb") as f2:
            f2.write(remote.encode("utf-8"))

        try:
            result = subprocess.run(
                [binary, local_path, remote_path],
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise LocalIOError(f"failed to run {binary}: {e.strerror}") from e

        if result.returncode not in (0, 1):
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise LocalIOError(
                f"failed to compare '{local_path}' with '{remote_path}': {stderr}"
            )
        return result.stdout.decode("utf-8", errors="replace")
    finally:
        for tmp in (local_path, remote_path):
            try:
                os.remove(tmp)
            except FileNotFoundError:
                pass
