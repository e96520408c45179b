"""Utility functions for pysnsync."""

from datetime import datetime, timezone
from typing import Iterable, Optional

# =============================================================================
# Constants
# =============================================================================

# Application name, used for config and cache directories
APP_NAME: str = "pysnsync"

# Number of items to request per page when syncing with the remote store
DEFAULT_PAGE_SIZE: int = 500

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Column separator used in status reports
COLUMN_SEPARATOR: str = " | "


# =============================================================================
# Timestamp utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO format timestamp from the item store.

    Args:
        timestamp_str: ISO format timestamp string (e.g., "2025-01-15T10:30:00.000000Z")

    Returns:
        Timezone-aware datetime in UTC or None if parsing fails
    """
    if not timestamp_str:
        return None

    # The 'Z' suffix indicates UTC time
    if timestamp_str.endswith("Z"):
        timestamp_str = timestamp_str[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(timestamp_str)
    except ValueError:
        # Some servers send more than six fractional digits
        if "." not in timestamp_str:
            return None
        head, _, tail = timestamp_str.partition(".")
        offset = ""
        for sign in ("+", "-"):
            if sign in tail:
                offset = sign + tail.split(sign, 1)[1]
                break
        try:
            dt = datetime.fromisoformat(head + (offset or "+00:00"))
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_timestamp_to_unix(timestamp_str: Optional[str]) -> Optional[float]:
    """Convert an ISO timestamp string to a Unix timestamp."""
    dt = parse_iso_timestamp(timestamp_str)
    if dt is None:
        return None
    return dt.timestamp()


def utc_now_iso() -> str:
    """Return the current time as an ISO 8601 string with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace(
        "+00:00", "Z"
    )


# =============================================================================
# Formatting utilities
# =============================================================================


def format_columns(lines: Iterable[str], separator: str = COLUMN_SEPARATOR) -> str:
    """Align rows of separator-delimited text into columns.

    Args:
        lines: Rows such as ".gitconfig | now tracked"
        separator: Delimiter between columns in each row

    Returns:
        A single string with one aligned row per line

    Examples:
        >>> print(format_columns([".a | pushed", ".bashrc | pulled"]))
        .a       pushed
        .bashrc  pulled
    """
    rows = [line.rstrip("\n").split(separator) for line in lines if line.strip()]
    if not rows:
        return ""

    width = max(len(row) for row in rows)
    col_widths = [0] * width
    for row in rows:
        for idx, cell in enumerate(row):
            col_widths[idx] = max(col_widths[idx], len(cell))

    out = []
    for row in rows:
        cells = [
            cell.ljust(col_widths[idx]) if idx < len(row) - 1 else cell
            for idx, cell in enumerate(row)
        ]
        out.append("  ".join(cells))

    return "\n".join(out)
