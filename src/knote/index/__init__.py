"""Metadata index stored alongside the notes."""

from knote.index.metadata import (
    INDEX_CONTENT_TYPE,
    INDEX_NAME,
    CompareVersion,
    LastWriteWins,
    MetadataIndexStore,
    get_write_strategy,
)

__all__ = [
    "INDEX_CONTENT_TYPE",
    "INDEX_NAME",
    "CompareVersion",
    "LastWriteWins",
    "MetadataIndexStore",
    "get_write_strategy",
]
