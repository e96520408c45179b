"""Shared fixtures for pysnsync tests."""

import pytest
from fakes import FakeItemStore, FakeItemStoreClient

from pysnsync.cache import ItemCache
from pysnsync.output import OutputFormatter
from pysnsync.session import Session
from pysnsync.sync.engine import SyncEngine


@pytest.fixture
def home(tmp_path):
    """Mapping root standing in for the user's home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def root(home):
    return str(home)


@pytest.fixture
def remote():
    """Remote item store shared by every client in a test."""
    return FakeItemStore()


@pytest.fixture
def session():
    return Session(server="https://sn.example.com", token="test-token")


@pytest.fixture
def store(tmp_path, remote):
    """Item cache backed by the in-memory remote."""
    return ItemCache(
        client_factory=lambda _session: FakeItemStoreClient(remote),
        cache_dir=tmp_path / "cache",
    )


@pytest.fixture
def output():
    return OutputFormatter(quiet=True, colour=False)


@pytest.fixture
def engine(store, output):
    return SyncEngine(store, output)


@pytest.fixture
def write_file(home):
    """Create a file (and its parents) below the mapping root."""

    def _write(rel_path, content="content"):
        path = home / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return str(path)

    return _write
