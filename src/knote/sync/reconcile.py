"""Merge the remote file listing with the metadata index into notes."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from knote.codecs import decode, unpack
from knote.index import INDEX_NAME, MetadataIndexStore
from knote.models import FileFilter, MetadataEntry, MetadataIndex, Note, Ok, Outcome, RemoteFile, Skipped
from knote.protocols import RemoteStore
from knote.sync.area import NotesArea
from knote.utils.formats import NoteFormat, classify

logger = logging.getLogger(__name__)


class Reconciler:
    """Builds the note listing from scratch on every call.

    Files are fetched and decoded in parallel; a file that fails is
    reported as ``Skipped`` and never aborts the listing.
    """

    def __init__(
        self,
        store: RemoteStore,
        area: NotesArea,
        index_store: MetadataIndexStore,
        max_workers: int = 8,
    ):
        self.store = store
        self.area = area
        self.index_store = index_store
        self.max_workers = max_workers

    def reconcile(self) -> list[Outcome]:
        """Return one outcome per file in the notes area (index excluded).

        Failures resolving the area, loading the index or listing files
        propagate; only per-file work is isolated.
        """
        folder_id = self.area.resolve()
        _, index = self.index_store.load(folder_id)

        files = [
            f
            for f in self.store.list_files(folder_id, FileFilter(exclude_name=INDEX_NAME))
            if f.name != INDEX_NAME
        ]
        if not files:
            return []

        workers = max(1, min(self.max_workers, len(files)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(lambda f: self._materialize(f, index), files))

        skipped = [o for o in outcomes if isinstance(o, Skipped)]
        if skipped:
            logger.warning(f"Skipped {len(skipped)} of {len(files)} files")
        return outcomes

    def fetch_all(self) -> list[Note]:
        """Return every note that reconciled successfully, in no particular order."""
        return [o.note for o in self.reconcile() if isinstance(o, Ok)]

    def _materialize(self, remote: RemoteFile, index: MetadataIndex) -> Outcome:
        try:
            note = self.read_note(remote, index.find(remote.id))
        except Exception as e:
            logger.warning(f"  skipping {remote.name} ({remote.id}): {e}")
            return Skipped(file=remote, reason=f"{type(e).__name__}: {e}")
        return Ok(note)

    def read_note(self, remote: RemoteFile, entry: Optional[MetadataEntry]) -> Note:
        """Download and decode one file into a note."""
        data = self.store.get_file_content(remote.id)

        if classify(remote.name, remote.mime_type) is NoteFormat.CONTAINER:
            content, attachments = unpack(data)
        else:
            content, attachments = decode(data), []

        return Note(
            id=remote.id,
            name=remote.name,
            mime_type=remote.mime_type,
            modified_time=remote.modified_time,
            content=content,
            attachments=attachments,
            color=entry.color if entry else None,
            seq=entry.seq if entry else None,
            created_at=entry.created_at if entry else None,
        )
