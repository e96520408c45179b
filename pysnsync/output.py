"""Output formatting for the CLI and sync engine."""

import json
from typing import Any, Optional, TextIO

import click

# Colour per diff state; states are plain strings so this module does not
# depend on the sync package
STATE_COLOURS = {
    "identical": "green",
    "local missing": "red",
    "local newer": "yellow",
    "remote newer": "yellow",
    "untracked": "yellow",
    "now tracked": "green",
    "already tracked": "yellow",
    "removed": "green",
    "not tracked": "yellow",
    "pushed": "green",
    "pulled": "green",
}


class OutputFormatter:
    """Writes human-readable or JSON output."""

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        colour: bool = True,
        stream: Optional[TextIO] = None,
    ):
        """Initialize the formatter.

        Args:
            json_output: Emit JSON instead of text for results
            quiet: Suppress informational output
            colour: Style output with ANSI colours
            stream: Stream for normal output (defaults to stdout)
        """
        self.json_output = json_output
        self.quiet = quiet
        self.colour = colour
        self.stream = stream

    def _echo(self, message: str, err: bool = False) -> None:
        if err:
            click.echo(message, err=True)
        else:
            click.echo(message, file=self.stream)

    def style(self, text: str, **styles: Any) -> str:
        if not self.colour:
            return text
        return click.style(text, **styles)

    def bold(self, text: str) -> str:
        return self.style(text, bold=True)

    def colour_state(self, state: str) -> str:
        """Colour a status word such as "identical" or "pushed"."""
        colour = STATE_COLOURS.get(state)
        if colour is None:
            return state
        return self.style(state, fg=colour)

    def print(self, message: str = "") -> None:
        """Print a message unconditionally (unless JSON output is active)."""
        if self.json_output:
            return
        self._echo(message)

    def info(self, message: str) -> None:
        if self.quiet or self.json_output:
            return
        self._echo(message)

    def success(self, message: str) -> None:
        if self.quiet or self.json_output:
            return
        self._echo(self.style(message, fg="green"))

    def warning(self, message: str) -> None:
        if self.json_output:
            return
        self._echo(self.style(message, fg="yellow"), err=True)

    def error(self, message: str) -> None:
        self._echo(self.style(f"Error: {message}", fg="red"), err=True)

    def output_json(self, data: Any) -> None:
        click.echo(json.dumps(data, indent=2, default=str), file=self.stream)
