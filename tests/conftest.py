import pytest

from dynval.persistence import ValueStore


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.delenv("DYNVAL_DB_PATH", raising=False)
    return ValueStore(tmp_path / "dynval.sqlite")
