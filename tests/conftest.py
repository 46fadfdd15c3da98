import pytest

from tests.fakes import InMemoryStore


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Stage throttling delays are skipped in tests."""
    calls = []
    monkeypatch.setattr('time.sleep', calls.append)
    return calls


@pytest.fixture
def store():
    return InMemoryStore()
