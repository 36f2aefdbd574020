"""Shared fixtures: a SQLite-backed store standing in for the cloud."""

from typing import Callable, Optional

import pytest

from knote.auth import StaticSession
from knote.config import Settings
from knote.index import MetadataIndexStore
from knote.service import NoteService
from knote.stores import SqliteRemoteStore
from knote.sync import NoteOrchestrator, NotesArea, Reconciler


class FaultyStore:
    """Wraps a store, records calls and raises on demand."""

    def __init__(self, inner):
        self.inner = inner
        self.calls: list[tuple[str, tuple, dict]] = []
        self._faults: dict[str, tuple[Exception, Callable[..., bool]]] = {}

    def fail(self, method: str, error: Exception, when: Optional[Callable[..., bool]] = None) -> None:
        self._faults[method] = (error, when or (lambda *args, **kwargs: True))

    def heal(self) -> None:
        self._faults.clear()

    def called(self, method: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for name, args, kwargs in self.calls if name == method]

    def __getattr__(self, name: str):
        target = getattr(self.inner, name)
        if not callable(target):
            return target

        def wrapper(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            fault = self._faults.get(name)
            if fault is not None and fault[1](*args, **kwargs):
                raise fault[0]
            return target(*args, **kwargs)

        return wrapper


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteRemoteStore(tmp_path / "remote.db")


@pytest.fixture
def store(sqlite_store):
    return FaultyStore(sqlite_store)


@pytest.fixture
def settings(tmp_path):
    return Settings.from_env({"KNOTE_HOME": str(tmp_path / "home"), "KNOTE_WORKERS": "4"})


@pytest.fixture
def session():
    return StaticSession()


@pytest.fixture
def service(store, settings):
    return NoteService(lambda session: store, settings)


@pytest.fixture
def area(store):
    return NotesArea(store)


@pytest.fixture
def index_store(store):
    return MetadataIndexStore(store)


@pytest.fixture
def reconciler(store, area, index_store):
    return Reconciler(store, area, index_store, max_workers=4)


@pytest.fixture
def orchestrator(store, area, index_store, reconciler):
    return NoteOrchestrator(store, area, index_store, reconciler)
