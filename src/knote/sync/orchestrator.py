"""Create, update and delete notes as ordered remote write sequences.

Each operation runs: content write -> index read-modify-write -> full
re-reconciliation. There is no rollback; a failure after the content
write leaves a file without an index entry, which the next listing
reports with null metadata.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from knote.codecs import encode, pack
from knote.config import DEFAULT_COLOR, DEFAULT_ENCODING
from knote.errors import MissingIdentifier
from knote.index import MetadataIndexStore
from knote.models import Attachment, MetadataEntry, Note, RemoteFile
from knote.protocols import RemoteStore
from knote.sync.area import NotesArea
from knote.sync.reconcile import Reconciler
from knote.utils.formats import NoteFormat, note_file_name, representation_for

logger = logging.getLogger(__name__)


@dataclass
class NoteWrite:
    """What the caller wants stored for a note."""

    title: str
    content: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    encoding: str = DEFAULT_ENCODING
    color: Optional[str] = None


@dataclass
class MutationResult:
    """The file written (None for deletes) and the refreshed listing."""

    file: Optional[RemoteFile]
    notes: list[Note]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def encode_note(note: NoteWrite) -> tuple[NoteFormat, bytes]:
    """Encode a note into its stored representation and bytes.

    Raises:
        InvalidEncoding: If the note's encoding is unknown.
    """
    fmt = representation_for(note.attachments)
    if fmt is NoteFormat.CONTAINER:
        return fmt, pack(note.content, note.attachments, note.encoding)
    return fmt, encode(note.content, note.encoding)


class NoteOrchestrator:
    """Runs the mutating sequences for one remote store."""

    def __init__(
        self,
        store: RemoteStore,
        area: NotesArea,
        index_store: MetadataIndexStore,
        reconciler: Reconciler,
        default_color: str = DEFAULT_COLOR,
    ):
        self.store = store
        self.area = area
        self.index_store = index_store
        self.reconciler = reconciler
        self.default_color = default_color

    def create(self, note: NoteWrite) -> MutationResult:
        """Store a new note under the next sequence number."""
        fmt, data = encode_note(note)

        folder_id = self.area.resolve()
        handle, index = self.index_store.load(folder_id)
        seq = index.next_sequence()

        name = note_file_name(note.title, fmt, seq)
        created = self.store.create_file(folder_id, name, fmt.content_type, data)
        logger.debug(f"Wrote {created.name} ({created.id})")

        index.items.append(
            MetadataEntry(
                file_id=created.id,
                name=created.name,
                seq=seq,
                color=note.color or self.default_color,
                created_at=_now(),
            )
        )
        index.last_sequence = seq
        self.index_store.save(handle, index)
        logger.info(f"Created note {created.name} (seq {seq})")

        return MutationResult(file=created, notes=self.reconciler.fetch_all())

    def update(self, file_id: Optional[str], note: NoteWrite) -> MutationResult:
        """Rewrite an existing note, possibly switching its representation.

        Raises:
            MissingIdentifier: If ``file_id`` is empty. No remote call is made.
        """
        if not file_id:
            raise MissingIdentifier("fileId required")
        fmt, data = encode_note(note)

        folder_id = self.area.resolve()
        handle, index = self.index_store.load(folder_id)
        entry = index.find(file_id)

        # Renamed files drop the sequence prefix; ordering comes from the index
        name = note_file_name(note.title, fmt)
        updated = self.store.update_file(file_id, name=name, content_type=fmt.content_type, data=data)
        logger.debug(f"Rewrote {updated.name} ({updated.id}) as {fmt.value}")

        if entry:
            entry.name = updated.name
            if note.color:
                entry.color = note.color
        else:
            # File predates the index; adopt it without a sequence number
            index.items.append(
                MetadataEntry(
                    file_id=file_id,
                    name=updated.name,
                    color=note.color or self.default_color,
                    created_at=_now(),
                )
            )
        self.index_store.save(handle, index)
        logger.info(f"Updated note {updated.name}")

        return MutationResult(file=updated, notes=self.reconciler.fetch_all())

    def delete(self, file_id: Optional[str]) -> MutationResult:
        """Permanently delete a note and drop its index entries.

        Raises:
            MissingIdentifier: If ``file_id`` is empty. No remote call is made.
        """
        if not file_id:
            raise MissingIdentifier("fileId required")

        self.store.delete_file(file_id)
        logger.debug(f"Deleted remote file {file_id}")

        folder_id = self.area.resolve()
        handle, index = self.index_store.load(folder_id)
        removed = index.remove(file_id)
        self.index_store.save(handle, index)
        logger.info(f"Deleted note {file_id} ({removed} index entries removed)")

        return MutationResult(file=None, notes=self.reconciler.fetch_all())
