"""Core data models for remote files, the metadata index and notes."""

import base64
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Optional, Union

# "0007 - Groceries.knote" -> "Groceries"
_SEQ_PREFIX = re.compile(r"^\d+ - ")


@dataclass(frozen=True)
class RemoteFile:
    """A file as listed by a remote store. Identity is ``id``."""

    id: str
    name: str
    mime_type: str = ""
    modified_time: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class FileFilter:
    """Backend-neutral filter for ``RemoteStore.list_files``."""

    name: Optional[str] = None  # exact match
    exclude_name: Optional[str] = None

    def matches(self, name: str) -> bool:
        if self.name is not None and name != self.name:
            return False
        if self.exclude_name is not None and name == self.exclude_name:
            return False
        return True


@dataclass(frozen=True)
class IndexHandle:
    """Identifies the index file and the version it was read at."""

    file_id: str
    version: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    """A binary payload bundled with a note."""

    name: str
    data: bytes

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "dataBase64": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "Attachment":
        """Build from the ``{"name", "dataBase64"}`` wire shape."""
        return cls(name=raw["name"], data=base64.b64decode(raw.get("dataBase64", "")))


@dataclass
class MetadataEntry:
    """Per-note attributes recorded in the metadata index.

    ``seq`` is None for entries adopted from files that predate the index.
    """

    file_id: str
    name: str
    seq: Optional[int] = None
    color: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict = {"fileId": self.file_id, "name": self.name}
        if self.seq is not None:
            data["seq"] = self.seq
        data["color"] = self.color
        data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> "MetadataEntry":
        """Parse one index item, raising ValueError on a malformed item."""
        if not isinstance(raw, dict):
            raise ValueError(f"index item is not an object: {raw!r}")
        file_id = raw.get("fileId")
        if not isinstance(file_id, str) or not file_id:
            raise ValueError(f"index item without fileId: {raw!r}")
        seq = raw.get("seq")
        if seq is not None and (isinstance(seq, bool) or not isinstance(seq, int)):
            raise ValueError(f"index item with non-integer seq: {raw!r}")
        return cls(
            file_id=file_id,
            name=str(raw.get("name") or ""),
            seq=seq,
            color=raw.get("color"),
            created_at=raw.get("createdAt"),
        )


@dataclass
class MetadataIndex:
    """The ``metadata.json`` document: sequence counter plus entries."""

    last_sequence: int = 0
    items: list[MetadataEntry] = field(default_factory=list)

    def find(self, file_id: str) -> Optional[MetadataEntry]:
        for entry in self.items:
            if entry.file_id == file_id:
                return entry
        return None

    def remove(self, file_id: str) -> int:
        """Drop every entry for ``file_id`` and return how many were removed."""
        before = len(self.items)
        self.items = [e for e in self.items if e.file_id != file_id]
        return before - len(self.items)

    def next_sequence(self) -> int:
        return self.last_sequence + 1

    def to_dict(self) -> dict:
        return {
            "lastId": self.last_sequence,
            "items": [entry.to_dict() for entry in self.items],
        }

    @classmethod
    def from_dict(cls, raw: object) -> "MetadataIndex":
        """Parse the persisted document.

        Raises:
            ValueError: If the document does not have the expected structure.
        """
        if not isinstance(raw, dict):
            raise ValueError("index root is not an object")
        last_id = raw.get("lastId", 0)
        if isinstance(last_id, bool) or not isinstance(last_id, int) or last_id < 0:
            raise ValueError(f"invalid lastId: {last_id!r}")
        items = raw.get("items", [])
        if not isinstance(items, list):
            raise ValueError("index items is not a list")

        index = cls(
            last_sequence=last_id,
            items=[MetadataEntry.from_dict(item) for item in items],
        )
        # lastId must never trail an assigned seq
        seqs = [e.seq for e in index.items if e.seq is not None]
        if seqs and max(seqs) > index.last_sequence:
            index.last_sequence = max(seqs)
        return index


@dataclass
class Note:
    """A reconciled note: remote file + index entry + decoded contents."""

    id: str
    name: str
    mime_type: str
    modified_time: Optional[str]
    content: str
    attachments: list[Attachment] = field(default_factory=list)
    color: Optional[str] = None
    seq: Optional[int] = None
    created_at: Optional[str] = None

    @property
    def title(self) -> str:
        """Display title derived from the file name."""
        stem = self.name
        suffix = PurePosixPath(stem).suffix
        if suffix.lower() in (".txt", ".knote", ".zip"):
            stem = stem[: -len(suffix)]
        return _SEQ_PREFIX.sub("", stem)

    def to_dict(self, include_data: bool = True) -> dict:
        if include_data:
            attachments = [a.to_dict() for a in self.attachments]
        else:
            attachments = [{"name": a.name, "size": len(a.data)} for a in self.attachments]
        return {
            "id": self.id,
            "name": self.name,
            "title": self.title,
            "mimeType": self.mime_type,
            "modifiedTime": self.modified_time,
            "content": self.content,
            "attachments": attachments,
            "color": self.color,
            "seq": self.seq,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Ok:
    """A file that reconciled into a note."""

    note: Note


@dataclass(frozen=True)
class Skipped:
    """A file left out of the listing, and why."""

    file: RemoteFile
    reason: str


Outcome = Union[Ok, Skipped]
