"""Request surface of the note engine.

Every call takes an explicit session and resolves to either
``{"success": True, ...}`` or ``{"success": False, "error": ..., "kind": ...}``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from knote.config import DEFAULT_ENCODING, Settings
from knote.errors import KnoteError, MissingIdentifier, NotAuthorized, RemoteStoreError
from knote.index import MetadataIndexStore, get_write_strategy
from knote.models import Attachment, Ok, RemoteFile, Skipped
from knote.protocols import RemoteStore, Session, WriteStrategy
from knote.sync import NoteOrchestrator, NotesArea, NoteWrite, Reconciler

logger = logging.getLogger(__name__)

StoreFactory = Callable[[Session], RemoteStore]


@dataclass
class Engine:
    """Components bound to one remote store for the length of one request."""

    store: RemoteStore
    area: NotesArea
    index_store: MetadataIndexStore
    reconciler: Reconciler
    orchestrator: NoteOrchestrator


def failure(error: Exception) -> dict:
    kind = error.kind if isinstance(error, KnoteError) else type(error).__name__
    return {"success": False, "error": str(error) or kind, "kind": kind}


def to_payload(result: dict, include_data: bool = True) -> dict:
    """Make a service result JSON-serializable."""
    payload = dict(result)
    if "notes" in payload:
        payload["notes"] = [n.to_dict(include_data) for n in payload["notes"]]
    if "note" in payload:
        payload["note"] = payload["note"].to_dict(include_data)
    if isinstance(payload.get("file"), RemoteFile):
        f = payload["file"]
        payload["file"] = {
            "id": f.id,
            "name": f.name,
            "mimeType": f.mime_type,
            "modifiedTime": f.modified_time,
        }
    return payload


class NoteService:
    """Lists and mutates notes for whichever store the factory yields."""

    def __init__(
        self,
        store_factory: StoreFactory,
        settings: Optional[Settings] = None,
        strategy: Optional[WriteStrategy] = None,
    ):
        self.store_factory = store_factory
        self.settings = settings or Settings.from_env()
        self.strategy = strategy or get_write_strategy(self.settings.write_strategy)

    def engine(self, session: Session) -> Engine:
        """Wire the engine components for a session's store."""
        store = self.store_factory(session)
        area = NotesArea(store, self.settings.notes_folder)
        index_store = MetadataIndexStore(store, self.strategy)
        reconciler = Reconciler(store, area, index_store, self.settings.fetch_workers)
        orchestrator = NoteOrchestrator(
            store, area, index_store, reconciler, self.settings.default_color
        )
        return Engine(store, area, index_store, reconciler, orchestrator)

    def _run(self, session: Session, action: str, operation: Callable[[Engine], dict]) -> dict:
        try:
            session.refresh_if_needed()
            if not session.is_valid():
                raise NotAuthorized("No valid credential, please authenticate first.")
            result = operation(self.engine(session))
        except NotAuthorized as e:
            logger.warning(f"{action}: not authorized ({e})")
            session.invalidate()
            return failure(e)
        except KnoteError as e:
            logger.warning(f"{action} failed: {e.kind}: {e}")
            return failure(e)
        except Exception as e:
            logger.exception(f"{action} failed unexpectedly")
            return failure(e)
        return {"success": True, **result}

    def list_notes(self, session: Session) -> dict:
        """Return every readable note, plus the files that were skipped."""

        def operation(engine: Engine) -> dict:
            outcomes = engine.reconciler.reconcile()
            return {
                "notes": [o.note for o in outcomes if isinstance(o, Ok)],
                "skipped": [
                    {"id": o.file.id, "name": o.file.name, "reason": o.reason}
                    for o in outcomes
                    if isinstance(o, Skipped)
                ],
            }

        return self._run(session, "list-notes", operation)

    def get_note(self, session: Session, file_id: Optional[str]) -> dict:
        if not file_id:
            return failure(MissingIdentifier("fileId required"))

        def operation(engine: Engine) -> dict:
            for note in engine.reconciler.fetch_all():
                if note.id == file_id:
                    return {"note": note}
            raise RemoteStoreError(f"Note not found: {file_id}")

        return self._run(session, "get-note", operation)

    def create_note(
        self,
        session: Session,
        title: str,
        content: str = "",
        attachments: Iterable[Attachment] = (),
        encoding: str = DEFAULT_ENCODING,
        color: Optional[str] = None,
    ) -> dict:
        note = NoteWrite(title, content, list(attachments), encoding, color)

        def operation(engine: Engine) -> dict:
            result = engine.orchestrator.create(note)
            return {"fileId": result.file.id, "file": result.file, "notes": result.notes}

        return self._run(session, "create-note", operation)

    def update_note(
        self,
        session: Session,
        file_id: Optional[str],
        title: str,
        content: str = "",
        attachments: Iterable[Attachment] = (),
        encoding: str = DEFAULT_ENCODING,
        color: Optional[str] = None,
    ) -> dict:
        if not file_id:
            return failure(MissingIdentifier("fileId required"))
        note = NoteWrite(title, content, list(attachments), encoding, color)

        def operation(engine: Engine) -> dict:
            result = engine.orchestrator.update(file_id, note)
            return {"fileId": result.file.id, "file": result.file, "notes": result.notes}

        return self._run(session, "update-note", operation)

    def delete_note(self, session: Session, file_id: Optional[str]) -> dict:
        if not file_id:
            return failure(MissingIdentifier("fileId required"))

        def operation(engine: Engine) -> dict:
            return {"notes": engine.orchestrator.delete(file_id).notes}

        return self._run(session, "delete-note", operation)

    def check(self, session: Session) -> dict:
        """Make sure the notes folder and index exist and report their ids."""

        def operation(engine: Engine) -> dict:
            folder_id = engine.area.resolve()
            handle, _ = engine.index_store.load(folder_id)
            return {"folderId": folder_id, "metadataId": handle.file_id}

        return self._run(session, "check", operation)
