import httplib2
import pytest
from googleapiclient.errors import HttpError

from knote.errors import NotAuthorized, RemoteStoreError, TransientNetwork
from knote.models import FileFilter, RemoteFile
from knote.protocols import RemoteStore
from knote.stores import DriveRemoteStore
from knote.stores.drive_store import FOLDER_MIME_TYPE


class FakeRequest:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.result


class FakeFiles:
    """Stands in for ``service.files()``; replays queued responses per method."""

    def __init__(self):
        self.calls = []
        self.responses = {}

    def queue(self, method, result=None, error=None):
        self.responses.setdefault(method, []).append(FakeRequest(result, error))

    def _next(self, method, kwargs):
        self.calls.append((method, kwargs))
        return self.responses[method].pop(0)

    def list(self, **kwargs):
        return self._next("list", kwargs)

    def get(self, **kwargs):
        return self._next("get", kwargs)

    def get_media(self, **kwargs):
        return self._next("get_media", kwargs)

    def create(self, **kwargs):
        return self._next("create", kwargs)

    def update(self, **kwargs):
        return self._next("update", kwargs)

    def delete(self, **kwargs):
        return self._next("delete", kwargs)


class FakeService:
    def __init__(self, files):
        self._files = files

    def files(self):
        return self._files


@pytest.fixture
def files():
    return FakeFiles()


@pytest.fixture
def drive(files):
    return DriveRemoteStore(credentials=None, service_factory=lambda: FakeService(files))


def http_error(status, content=b"{}"):
    return HttpError(httplib2.Response({"status": str(status)}), content)


def test_implements_protocol(drive):
    assert isinstance(drive, RemoteStore)


def test_list_files_pages_and_filters(drive, files):
    files.queue("list", {"files": [{"id": "1", "name": "a.txt", "mimeType": "text/plain", "version": 3}], "nextPageToken": "p2"})
    files.queue("list", {"files": [{"id": "2", "name": "b.knote", "mimeType": "application/zip"}]})

    result = drive.list_files("folder'1", FileFilter(exclude_name="metadata.json"))

    assert result == [
        RemoteFile("1", "a.txt", "text/plain", None, "3"),
        RemoteFile("2", "b.knote", "application/zip", None, None),
    ]
    first, second = files.calls
    query = first[1]["q"]
    assert "'folder\\'1' in parents" in query
    assert "trashed = false" in query
    assert f"mimeType != '{FOLDER_MIME_TYPE}'" in query
    assert "name != 'metadata.json'" in query
    assert first[1]["spaces"] == "appDataFolder"
    assert second[1]["pageToken"] == "p2"


def test_list_files_by_name(drive, files):
    files.queue("list", {"files": []})
    assert drive.list_files("f", FileFilter(name="metadata.json")) == []
    assert "name = 'metadata.json'" in files.calls[0][1]["q"]


def test_find_folder_takes_oldest(drive, files):
    files.queue("list", {"files": [{"id": "old"}, {"id": "new"}]})
    files.queue("list", {"files": []})

    assert drive.find_folder("appDataFolder", "notes") == "old"
    assert drive.find_folder("appDataFolder", "notes") is None
    kwargs = files.calls[0][1]
    assert kwargs["orderBy"] == "createdTime"
    assert "name = 'notes'" in kwargs["q"]
    assert "'appDataFolder' in parents" in kwargs["q"]


def test_create_folder(drive, files):
    files.queue("create", {"id": "folder-1"})
    assert drive.create_folder("appDataFolder", "notes") == "folder-1"
    body = files.calls[0][1]["body"]
    assert body == {"name": "notes", "mimeType": FOLDER_MIME_TYPE, "parents": ["appDataFolder"]}


def test_create_and_update_file(drive, files):
    files.queue("create", {"id": "f1", "name": "0001 - A.txt", "mimeType": "text/plain", "modifiedTime": "t1", "version": "1"})
    files.queue("update", {"id": "f1", "name": "0001 - A.knote", "mimeType": "application/zip", "modifiedTime": "t2", "version": "2"})

    created = drive.create_file("folder", "0001 - A.txt", "text/plain", b"body")
    updated = drive.update_file("f1", name="0001 - A.knote", content_type="application/zip", data=b"PK")

    assert created == RemoteFile("f1", "0001 - A.txt", "text/plain", "t1", "1")
    assert updated.version == "2"
    create_kwargs = files.calls[0][1]
    assert create_kwargs["body"] == {"name": "0001 - A.txt", "parents": ["folder"]}
    assert create_kwargs["media_body"].mimetype() == "text/plain"
    update_kwargs = files.calls[1][1]
    assert update_kwargs["fileId"] == "f1"
    assert update_kwargs["body"] == {"name": "0001 - A.knote", "mimeType": "application/zip"}
    assert update_kwargs["media_body"].mimetype() == "application/zip"


def test_update_metadata_only(drive, files):
    files.queue("update", {"id": "f1", "name": "x"})
    drive.update_file("f1", content_type="text/plain")
    kwargs = files.calls[0][1]
    assert kwargs["media_body"] is None
    assert kwargs["body"] == {"mimeType": "text/plain"}


def test_content_and_delete(drive, files):
    files.queue("get_media", b"raw bytes")
    files.queue("delete", "")

    assert drive.get_file_content("f1") == b"raw bytes"
    drive.delete_file("f1")
    assert files.calls[1] == ("delete", {"fileId": "f1"})


@pytest.mark.parametrize(
    "error,expected",
    [
        (http_error(401), NotAuthorized),
        (http_error(403, b'{"error": {"message": "insufficient permissions"}}'), NotAuthorized),
        (http_error(403, b'{"error": {"errors": [{"reason": "rateLimitExceeded"}]}}'), TransientNetwork),
        (http_error(503), TransientNetwork),
        (http_error(404), RemoteStoreError),
        (httplib2.ServerNotFoundError("Unable to find the server"), TransientNetwork),
        (ConnectionResetError(104, "reset"), TransientNetwork),
        (TimeoutError("timed out"), TransientNetwork),
    ],
)
def test_errors_are_translated(drive, files, error, expected):
    files.queue("get", error=error)
    with pytest.raises(expected):
        drive.get_file("f1")


def test_each_thread_builds_its_own_service(files):
    import threading

    built = []

    def factory():
        built.append(threading.get_ident())
        return FakeService(files)

    drive = DriveRemoteStore(credentials=None, service_factory=factory)
    assert drive.service is drive.service

    worker = threading.Thread(target=lambda: drive.service)
    worker.start()
    worker.join()

    assert len(built) == 2


def test_rewrite_as_text_replaces_container_mime_type(drive, files):
    files.queue("update", {"id": "f1", "name": "Trip.txt", "mimeType": "text/plain"})

    updated = drive.update_file("f1", name="Trip.txt", content_type="text/plain", data=b"tickets only")

    assert updated.mime_type == "text/plain"
    kwargs = files.calls[0][1]
    assert kwargs["body"] == {"name": "Trip.txt", "mimeType": "text/plain"}
    assert kwargs["media_body"].mimetype() == "text/plain"
