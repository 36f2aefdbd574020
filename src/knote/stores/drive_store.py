"""Google Drive (v3) remote store scoped to the appDataFolder space."""

import io
import logging
import socket
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from knote.errors import NotAuthorized, RemoteStoreError, TransientNetwork
from knote.models import FileFilter, RemoteFile
from knote.protocols import APP_SCOPE

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id, name, mimeType, modifiedTime, version"

_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


def _quote(value: str) -> str:
    """Escape a value for a Drive query string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _to_remote(raw: dict) -> RemoteFile:
    version = raw.get("version")
    return RemoteFile(
        id=raw["id"],
        name=raw.get("name", ""),
        mime_type=raw.get("mimeType", ""),
        modified_time=raw.get("modifiedTime"),
        version=str(version) if version is not None else None,
    )


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Map Google client failures onto the engine's error taxonomy."""
    try:
        yield
    except HttpError as e:
        status = e.resp.status
        detail = e.content.decode("utf-8", "replace") if e.content else str(e)
        logger.debug(f"Drive {action} failed with HTTP {status}: {detail}")
        if status == 403 and "rateLimitExceeded" in detail:
            raise TransientNetwork(f"Drive rate limit during {action}") from e
        if status in (401, 403):
            raise NotAuthorized(f"Drive refused {action} (HTTP {status})") from e
        if status in _RETRYABLE_STATUS:
            raise TransientNetwork(f"Drive unavailable during {action} (HTTP {status})") from e
        raise RemoteStoreError(f"Drive {action} failed (HTTP {status})") from e
    except RefreshError as e:
        raise NotAuthorized(f"Credential refresh failed during {action}: {e}") from e
    except (TransportError, httplib2.HttpLib2Error, ConnectionError, TimeoutError, socket.gaierror) as e:
        raise TransientNetwork(f"Network error during {action}: {e}") from e


class DriveRemoteStore:
    """Remote store backed by the Drive API.

    ``googleapiclient`` service objects are not thread-safe, so each thread
    builds its own from the shared credentials.
    """

    def __init__(self, credentials: Any, service_factory: Optional[Callable[[], Any]] = None):
        self.credentials = credentials
        self._service_factory = service_factory or self._build_service
        self._local = threading.local()

    def _build_service(self) -> Any:
        return build("drive", "v3", credentials=self.credentials, cache_discovery=False)

    @property
    def service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is None:
            service = self._local.service = self._service_factory()
        return service

    def list_files(self, folder_id: str, filter: Optional[FileFilter] = None) -> list[RemoteFile]:
        query = (
            f"'{_quote(folder_id)}' in parents and trashed = false "
            f"and mimeType != '{FOLDER_MIME_TYPE}'"
        )
        if filter is not None and filter.name is not None:
            query += f" and name = '{_quote(filter.name)}'"
        if filter is not None and filter.exclude_name is not None:
            query += f" and name != '{_quote(filter.exclude_name)}'"

        files: list[RemoteFile] = []
        page_token = None
        while True:
            with translate_errors("list files"):
                response = (
                    self.service.files()
                    .list(
                        q=query,
                        spaces=APP_SCOPE,
                        fields=f"nextPageToken, files({FILE_FIELDS})",
                        pageSize=1000,
                        pageToken=page_token,
                    )
                    .execute()
                )
            files.extend(_to_remote(raw) for raw in response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return files

    def get_file(self, file_id: str) -> RemoteFile:
        with translate_errors("get file"):
            raw = self.service.files().get(fileId=file_id, fields=FILE_FIELDS).execute()
        return _to_remote(raw)

    def get_file_content(self, file_id: str) -> bytes:
        with translate_errors("download"):
            return self.service.files().get_media(fileId=file_id).execute()

    def create_file(self, parent_id: str, name: str, content_type: str, data: bytes) -> RemoteFile:
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=content_type, resumable=False)
        with translate_errors("create file"):
            raw = (
                self.service.files()
                .create(
                    body={"name": name, "parents": [parent_id]},
                    media_body=media,
                    fields=FILE_FIELDS,
                )
                .execute()
            )
        return _to_remote(raw)

    def update_file(
        self,
        file_id: str,
        name: Optional[str] = None,
        content_type: Optional[str] = None,
        data: Optional[bytes] = None,
    ) -> RemoteFile:
        body: dict = {}
        if name is not None:
            body["name"] = name

        media = None
        if content_type is not None:
            body["mimeType"] = content_type
        if data is not None:
            media = MediaIoBaseUpload(
                io.BytesIO(data),
                mimetype=content_type or "application/octet-stream",
                resumable=False,
            )

        with translate_errors("update file"):
            raw = (
                self.service.files()
                .update(fileId=file_id, body=body, media_body=media, fields=FILE_FIELDS)
                .execute()
            )
        return _to_remote(raw)

    def delete_file(self, file_id: str) -> None:
        with translate_errors("delete file"):
            self.service.files().delete(fileId=file_id).execute()

    def find_folder(self, parent_id: str, name: str) -> Optional[str]:
        query = (
            f"name = '{_quote(name)}' and mimeType = '{FOLDER_MIME_TYPE}' "
            f"and '{_quote(parent_id)}' in parents and trashed = false"
        )
        with translate_errors("find folder"):
            response = (
                self.service.files()
                .list(q=query, spaces=APP_SCOPE, orderBy="createdTime", fields="files(id, name)")
                .execute()
            )
        folders = response.get("files", [])
        return folders[0]["id"] if folders else None

    def create_folder(self, parent_id: str, name: str) -> str:
        with translate_errors("create folder"):
            raw = (
                self.service.files()
                .create(
                    body={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
                    fields="id",
                )
                .execute()
            )
        return raw["id"]
