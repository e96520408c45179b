"""Session handling for the remote item store."""

from dataclasses import dataclass
from typing import Optional

from .config import Config
from .exceptions import InvalidSessionError


@dataclass
class Session:
    """Credentials needed to talk to the remote item store."""

    server: str
    """Base URL of the item store"""

    token: str
    """Bearer token for the authenticated account"""

    email: str = ""
    """Account email, used only for display"""

    def valid(self) -> bool:
        """True if the session carries everything needed to read items."""
        return bool(self.server) and bool(self.token)


def load_session(config: Config, token: Optional[str] = None) -> Session:
    """Build a session from configuration.

    Args:
        config: Loaded configuration
        token: Token that overrides the configured one

    Returns:
        Session instance

    Raises:
        InvalidSessionError: If no token is available
    """
    session = Session(
        server=config.server,
        token=token or config.token or "",
        email=config.email or "",
    )
    if not session.valid():
        raise InvalidSessionError(
            "Session token not configured. Please set SN_TOKEN or run 'pysnsync init'."
        )
    return session
