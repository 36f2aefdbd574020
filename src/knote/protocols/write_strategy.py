"""Protocol for metadata index write policies."""

from typing import Protocol, runtime_checkable

from knote.models import IndexHandle
from knote.protocols.remote_store import RemoteStore


@runtime_checkable
class WriteStrategy(Protocol):
    """Decides whether an index save may proceed."""

    def check(self, store: RemoteStore, handle: IndexHandle) -> None:
        """Raise IndexConflict if the save must not overwrite the remote index."""
        ...
