"""Read-modify-write access to ``metadata.json``.

The index is never cached: every load reads it from the store and every
save overwrites it whole.
"""

import json
import logging
from typing import Optional

from knote.errors import CorruptedIndex, IndexConflict
from knote.models import FileFilter, IndexHandle, MetadataIndex
from knote.protocols import RemoteStore, WriteStrategy

logger = logging.getLogger(__name__)

INDEX_NAME = "metadata.json"
INDEX_CONTENT_TYPE = "application/json"


class LastWriteWins:
    """Always overwrite; concurrent saves silently replace each other."""

    name = "last-write-wins"

    def check(self, store: RemoteStore, handle: IndexHandle) -> None:
        return None


class CompareVersion:
    """Refuse to save if the index changed since it was loaded.

    The compare and the write are separate requests, so this narrows the
    race window rather than closing it.
    """

    name = "compare-version"

    def check(self, store: RemoteStore, handle: IndexHandle) -> None:
        if handle.version is None:
            return
        current = store.get_file(handle.file_id)
        if current.version != handle.version:
            raise IndexConflict(
                f"Metadata index changed remotely "
                f"(loaded version {handle.version}, now {current.version})"
            )


_STRATEGIES = {
    LastWriteWins.name: LastWriteWins,
    CompareVersion.name: CompareVersion,
}


def get_write_strategy(name: str) -> WriteStrategy:
    """Look up a write strategy by its settings name."""
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown write strategy: {name}")


def parse_index(raw: bytes) -> MetadataIndex:
    """Parse index bytes.

    Raises:
        CorruptedIndex: If the bytes are not a valid index document.
    """
    try:
        document = json.loads(raw.decode("utf-8-sig") or "{}")
        return MetadataIndex.from_dict(document)
    except (UnicodeDecodeError, ValueError, TypeError) as e:
        raise CorruptedIndex(str(e))


def serialize_index(index: MetadataIndex) -> bytes:
    return json.dumps(index.to_dict(), indent=2).encode("utf-8")


class MetadataIndexStore:
    """Loads, repairs and saves the metadata index of one notes area."""

    def __init__(self, store: RemoteStore, strategy: Optional[WriteStrategy] = None):
        self.store = store
        self.strategy = strategy or LastWriteWins()

    def load(self, folder_id: str) -> tuple[IndexHandle, MetadataIndex]:
        """Load the index, creating it if missing and resetting it if corrupted.

        Args:
            folder_id: Notes area folder id

        Returns:
            Handle to the index file and the parsed index
        """
        found = self.store.list_files(folder_id, FileFilter(name=INDEX_NAME))
        if not found:
            index = MetadataIndex()
            created = self.store.create_file(
                folder_id, INDEX_NAME, INDEX_CONTENT_TYPE, serialize_index(index)
            )
            logger.info(f"Created metadata index {created.id}")
            return IndexHandle(created.id, created.version), index

        meta_file = found[0]
        raw = self.store.get_file_content(meta_file.id)
        try:
            index = parse_index(raw)
        except CorruptedIndex as e:
            logger.warning(
                f"Metadata index {meta_file.id} is corrupted ({e}); "
                f"resetting it, ordering and colors are lost"
            )
            index = MetadataIndex()
            updated = self.store.update_file(
                meta_file.id, content_type=INDEX_CONTENT_TYPE, data=serialize_index(index)
            )
            return IndexHandle(updated.id, updated.version), index

        return IndexHandle(meta_file.id, meta_file.version), index

    def save(self, handle: IndexHandle, index: MetadataIndex) -> IndexHandle:
        """Overwrite the index file with ``index``.

        Raises:
            IndexConflict: If the write strategy detects a concurrent change.
        """
        self.strategy.check(self.store, handle)
        updated = self.store.update_file(
            handle.file_id, content_type=INDEX_CONTENT_TYPE, data=serialize_index(index)
        )
        logger.debug(f"Saved metadata index {handle.file_id} ({len(index.items)} items)")
        return IndexHandle(updated.id, updated.version)
