"""SQLite-backed remote store, for local use and tests."""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from knote.errors import FolderExists, RemoteStoreError
from knote.models import FileFilter, RemoteFile
from knote.stores.schema import SCHEMA

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_FILE_COLUMNS = "id, name, mime_type, modified_time, version"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_remote(row: sqlite3.Row) -> RemoteFile:
    return RemoteFile(
        id=row["id"],
        name=row["name"],
        mime_type=row["mime_type"],
        modified_time=row["modified_time"],
        version=str(row["version"]),
    )


class SqliteRemoteStore:
    """A remote store kept in a single SQLite file.

    Mirrors the remote-store contract closely enough to stand in for the
    cloud store: opaque ids, a version counter per file, permanent deletes.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.initialize()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        try:
            conn = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise RemoteStoreError(f"Cannot open store {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RemoteStoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create schema if not exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    def list_files(self, folder_id: str, filter: Optional[FileFilter] = None) -> list[RemoteFile]:
        query = f"SELECT {_FILE_COLUMNS} FROM items WHERE parent_id = ? AND is_folder = 0"
        params: list = [folder_id]
        if filter is not None and filter.name is not None:
            query += " AND name = ?"
            params.append(filter.name)
        if filter is not None and filter.exclude_name is not None:
            query += " AND name != ?"
            params.append(filter.exclude_name)
        query += " ORDER BY created_time, rowid"

        with self.connection() as conn:
            return [_to_remote(row) for row in conn.execute(query, params)]

    def get_file(self, file_id: str) -> RemoteFile:
        with self.connection() as conn:
            row = conn.execute(
                f"SELECT {_FILE_COLUMNS} FROM items WHERE id = ? AND is_folder = 0",
                (file_id,),
            ).fetchone()
        if row is None:
            raise RemoteStoreError(f"File not found: {file_id}")
        return _to_remote(row)

    def get_file_content(self, file_id: str) -> bytes:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT content FROM items WHERE id = ? AND is_folder = 0", (file_id,)
            ).fetchone()
        if row is None:
            raise RemoteStoreError(f"File not found: {file_id}")
        return bytes(row["content"] or b"")

    def create_file(self, parent_id: str, name: str, content_type: str, data: bytes) -> RemoteFile:
        file_id = uuid.uuid4().hex
        now = _now()
        with self.connection() as conn:
            conn.execute(
                """INSERT INTO items
                   (id, parent_id, name, mime_type, is_folder, content, created_time, modified_time)
                   VALUES (?, ?, ?, ?, 0, ?, ?, ?)""",
                (file_id, parent_id, name, content_type, data, now, now),
            )
        return RemoteFile(id=file_id, name=name, mime_type=content_type, modified_time=now, version="1")

    def update_file(
        self,
        file_id: str,
        name: Optional[str] = None,
        content_type: Optional[str] = None,
        data: Optional[bytes] = None,
    ) -> RemoteFile:
        assignments = ["modified_time = ?", "version = version + 1"]
        params: list = [_now()]
        if name is not None:
            assignments.append("name = ?")
            params.append(name)
        if content_type is not None:
            assignments.append("mime_type = ?")
            params.append(content_type)
        if data is not None:
            assignments.append("content = ?")
            params.append(data)
        params.append(file_id)

        with self.connection() as conn:
            cursor = conn.execute(
                f"UPDATE items SET {', '.join(assignments)} WHERE id = ? AND is_folder = 0",
                params,
            )
            if cursor.rowcount == 0:
                raise RemoteStoreError(f"File not found: {file_id}")
        return self.get_file(file_id)

    def delete_file(self, file_id: str) -> None:
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM items WHERE id = ? AND is_folder = 0", (file_id,))
            if cursor.rowcount == 0:
                raise RemoteStoreError(f"File not found: {file_id}")

    def find_folder(self, parent_id: str, name: str) -> Optional[str]:
        with self.connection() as conn:
            row = conn.execute(
                """SELECT id FROM items WHERE parent_id = ? AND name = ? AND is_folder = 1
                   ORDER BY created_time, rowid LIMIT 1""",
                (parent_id, name),
            ).fetchone()
        return row["id"] if row else None

    def create_folder(self, parent_id: str, name: str) -> str:
        folder_id = uuid.uuid4().hex
        now = _now()
        try:
            with self.connection() as conn:
                conn.execute(
                    """INSERT INTO items
                       (id, parent_id, name, mime_type, is_folder, created_time, modified_time)
                       VALUES (?, ?, ?, ?, 1, ?, ?)""",
                    (folder_id, parent_id, name, FOLDER_MIME_TYPE, now, now),
                )
        except RemoteStoreError as e:
            if isinstance(e.__cause__, sqlite3.IntegrityError):
                raise FolderExists(f"Folder '{name}' already exists") from e
            raise
        return folder_id
