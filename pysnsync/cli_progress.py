"""CLI progress display for remote round-trips.

Syncing with the item store can take a few seconds, so the engine wraps each
round-trip in a spinner. The spinner is cosmetic and never affects results.
"""

from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn


class SpinnerDisplay:
    """Rich-based spinner shown while waiting on the item store.

    Examples:
        >>> with SpinnerDisplay("syncing"):
        ...     do_round_trip()
    """

    def __init__(
        self,
        description: str,
        enabled: bool = True,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize the spinner.

        Args:
            description: Text shown next to the spinner
            enabled: If False, entering the context does nothing
            console: Console to render to (defaults to stderr)
        """
        self.description = description
        self.enabled = enabled
        self.console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def __enter__(self) -> "SpinnerDisplay":
        """Enter context manager - start the spinner."""
        if not self.enabled:
            return self

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=True,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task(self.description, total=None)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop the spinner."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
