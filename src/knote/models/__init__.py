"""Data models for knote."""

from knote.models.note import (
    Attachment,
    FileFilter,
    IndexHandle,
    MetadataEntry,
    MetadataIndex,
    Note,
    Ok,
    Outcome,
    RemoteFile,
    Skipped,
)

__all__ = [
    "Attachment",
    "FileFilter",
    "IndexHandle",
    "MetadataEntry",
    "MetadataIndex",
    "Note",
    "Ok",
    "Outcome",
    "RemoteFile",
    "Skipped",
]
