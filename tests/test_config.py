"""Tests for configuration and sessions."""

import os
import stat

import pytest

from pysnsync.config import CONFIG_KEYS, DEFAULT_SERVER, Config
from pysnsync.exceptions import InvalidSessionError
from pysnsync.session import Session, load_session


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in CONFIG_KEYS.values():
        monkeypatch.delenv(env_var, raising=False)


class TestConfig:
    def test_defaults(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.server == DEFAULT_SERVER
        assert config.token is None
        assert config.cache_dir == tmp_path / "cache"
        assert not config.is_configured()

    def test_reads_file(self, tmp_path):
        (tmp_path / "config").write_text(
            "# comment\ntoken = abc\nserver=https://sn.local\nunknown=1\n"
        )
        config = Config(config_dir=tmp_path)
        assert config.token == "abc"
        assert config.server == "https://sn.local"
        assert config.is_configured()

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        (tmp_path / "config").write_text("token=from-file\n")
        monkeypatch.setenv("SN_TOKEN", "from-env")
        monkeypatch.setenv("SN_ROOT", "/srv/dotfiles")
        config = Config(config_dir=tmp_path)
        assert config.token == "from-env"
        assert config.root == "/srv/dotfiles"

    def test_save_credentials(self, tmp_path):
        config = Config(config_dir=tmp_path / "cfg")
        config.save_credentials("tok", server="https://sn.local", email="me@example.com")

        path = config.get_config_path()
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        reloaded = Config(config_dir=tmp_path / "cfg")
        assert reloaded.token == "tok"
        assert reloaded.email == "me@example.com"

    def test_save_credentials_created_private(self, tmp_path, monkeypatch):
        opened = []
        real_open = os.open

        def recording_open(path, flags, mode=0o777):
            opened.append(mode)
            return real_open(path, flags, mode)

        monkeypatch.setattr(os, "open", recording_open)
        Config(config_dir=tmp_path).save_credentials("tok")

        assert opened == [0o600]

    def test_save_credentials_tightens_existing_file(self, tmp_path):
        path = tmp_path / "config"
        path.write_text("token=old\n")
        path.chmod(0o644)

        Config(config_dir=tmp_path).save_credentials("new")

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert Config(config_dir=tmp_path).token == "new"


class TestSession:
    def test_valid(self):
        assert Session(server="https://x", token="t").valid()
        assert not Session(server="https://x", token="").valid()
        assert not Session(server="", token="t").valid()

    def test_load_session(self, tmp_path):
        config = Config(config_dir=tmp_path)
        session = load_session(config, token="override")
        assert session.token == "override"
        assert session.server == DEFAULT_SERVER

    def test_load_session_without_token(self, tmp_path):
        with pytest.raises(InvalidSessionError, match="not configured"):
            load_session(Config(config_dir=tmp_path))
