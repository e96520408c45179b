"""Configuration for pysnsync.

Settings are read from environment variables first and then from a simple
``key=value`` file stored in ``~/.config/pysnsync/config``.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .utils import APP_NAME

logger = logging.getLogger(__name__)

DEFAULT_SERVER = "https://api.standardnotes.com"

# Keys understood in the config file, mapped to their environment variables
CONFIG_KEYS = {
    "server": "SN_SERVER",
    "token": "SN_TOKEN",
    "email": "SN_EMAIL",
    "root": "SN_ROOT",
    "cache_dir": "SN_CACHE_DIR",
}


class Config:
    """Reads and writes pysnsync settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pysnsync
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / APP_NAME
        self.config_dir = config_dir
        self._values = self._load_file()

    def get_config_path(self) -> Path:
        """Path to the config file."""
        return self.config_dir / "config"

    def _load_file(self) -> dict[str, str]:
        path = self.get_config_path()
        values: dict[str, str] = {}
        if not path.exists():
            return values

        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip().lower()
            if key in CONFIG_KEYS:
                values[key] = value.strip()
            else:
                logger.debug(f"Ignoring unknown config key: {key}")

        return values

    def _get(self, key: str) -> Optional[str]:
        env_value = os.environ.get(CONFIG_KEYS[key])
        if env_value:
            return env_value
        return self._values.get(key) or None

    @property
    def server(self) -> str:
        return self._get("server") or DEFAULT_SERVER

    @property
    def token(self) -> Optional[str]:
        return self._get("token")

    @property
    def email(self) -> Optional[str]:
        return self._get("email")

    @property
    def root(self) -> str:
        """Mapping root; the user's home directory unless configured."""
        return self._get("root") or str(Path.home())

    @property
    def cache_dir(self) -> Path:
        value = self._get("cache_dir")
        if value:
            return Path(value).expanduser()
        return self.config_dir / "cache"

    def is_configured(self) -> bool:
        """True if a session token is available."""
        return bool(self.token)

    def save_credentials(
        self, token: str, server: Optional[str] = None, email: Optional[str] = None
    ) -> None:
        """Persist the session token (and optionally server/email).

        The file is created with owner-only permissions.
        """
        self._values["token"] = token
        if server:
            self._values["server"] = server
        if email:
            self._values["email"] = email

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        lines = [f"{key}={value}" for key, value in sorted(self._values.items())]
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # An existing file keeps its old mode through os.open
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
