"""Remote store implementations."""

from knote.stores.drive_store import DriveRemoteStore
from knote.stores.sqlite_store import SqliteRemoteStore

__all__ = ["DriveRemoteStore", "SqliteRemoteStore"]
