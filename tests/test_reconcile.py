import json

from knote.codecs import pack
from knote.errors import TransientNetwork
from knote.index import INDEX_NAME
from knote.models import Attachment, Ok, Skipped
from knote.protocols import APP_SCOPE


def seed(store, items, last_id=None):
    """Create the notes folder and an index listing ``items``."""
    folder = store.create_folder(APP_SCOPE, "notes")
    document = {"lastId": last_id if last_id is not None else len(items), "items": items}
    store.create_file(folder, INDEX_NAME, "application/json", json.dumps(document).encode())
    return folder


def test_empty_area_is_created_with_index(reconciler, sqlite_store):
    assert reconciler.fetch_all() == []
    folder = sqlite_store.find_folder(APP_SCOPE, "notes")
    assert [f.name for f in sqlite_store.list_files(folder)] == [INDEX_NAME]


def test_merges_files_with_index(reconciler, sqlite_store):
    folder = sqlite_store.create_folder(APP_SCOPE, "notes")
    text = sqlite_store.create_file(folder, "0001 - Groceries.txt", "text/plain", b"milk, eggs")
    box = sqlite_store.create_file(
        folder, "0002 - Trip.knote", "application/zip", pack("tickets", [Attachment("map.png", b"img")])
    )
    sqlite_store.create_file(folder, INDEX_NAME, "application/json", json.dumps({
        "lastId": 2,
        "items": [
            {"seq": 1, "fileId": text.id, "name": text.name, "color": "#fff9a8", "createdAt": "2024-01-01T00:00:00+00:00"},
            {"seq": 2, "fileId": box.id, "name": box.name, "color": "#ccf", "createdAt": "2024-01-02T00:00:00+00:00"},
        ],
    }).encode())

    notes = {n.id: n for n in reconciler.fetch_all()}

    assert set(notes) == {text.id, box.id}
    assert notes[text.id].content == "milk, eggs"
    assert notes[text.id].attachments == []
    assert (notes[text.id].seq, notes[text.id].color) == (1, "#fff9a8")
    assert notes[box.id].content == "tickets"
    assert notes[box.id].attachments == [Attachment("map.png", b"img")]
    assert notes[box.id].created_at == "2024-01-02T00:00:00+00:00"


def test_file_without_entry_has_null_metadata(reconciler, sqlite_store):
    folder = seed(sqlite_store, [])
    legacy = sqlite_store.create_file(folder, "Old note.txt", "text/plain", b"from before")

    [note] = reconciler.fetch_all()

    assert note.id == legacy.id
    assert note.content == "from before"
    assert (note.seq, note.color, note.created_at) == (None, None, None)


def test_entry_without_file_is_ignored(reconciler, sqlite_store):
    folder = seed(sqlite_store, [{"seq": 1, "fileId": "gone", "name": "0001 - Gone.txt"}])
    kept = sqlite_store.create_file(folder, "0002 - Kept.txt", "text/plain", b"x")

    assert [n.id for n in reconciler.fetch_all()] == [kept.id]


def test_corrupt_container_is_skipped_not_fatal(reconciler, sqlite_store):
    folder = seed(sqlite_store, [])
    good = sqlite_store.create_file(folder, "good.txt", "text/plain", b"fine")
    bad = sqlite_store.create_file(folder, "bad.knote", "application/zip", b"not a zip")

    outcomes = reconciler.reconcile()

    ok = [o for o in outcomes if isinstance(o, Ok)]
    skipped = [o for o in outcomes if isinstance(o, Skipped)]
    assert [o.note.id for o in ok] == [good.id]
    assert [o.file.id for o in skipped] == [bad.id]
    assert skipped[0].reason.startswith("CorruptedContainer")


def test_download_failure_is_isolated(reconciler, store, sqlite_store):
    folder = seed(sqlite_store, [])
    sqlite_store.create_file(folder, "a.txt", "text/plain", b"a")
    broken = sqlite_store.create_file(folder, "b.txt", "text/plain", b"b")
    store.fail("get_file_content", TransientNetwork("reset by peer"), when=lambda file_id: file_id == broken.id)

    outcomes = reconciler.reconcile()

    assert sorted(type(o).__name__ for o in outcomes) == ["Ok", "Skipped"]
    assert [o.reason for o in outcomes if isinstance(o, Skipped)] == ["TransientNetwork: reset by peer"]


def test_container_detected_by_content_type_or_extension(reconciler, sqlite_store):
    folder = seed(sqlite_store, [])
    archive = pack("body", [Attachment("a.bin", b"1")])
    sqlite_store.create_file(folder, "no extension", "application/x-zip-compressed", archive)
    sqlite_store.create_file(folder, "legacy.zip", "application/octet-stream", archive)

    notes = reconciler.fetch_all()

    assert [n.content for n in notes] == ["body", "body"]
    assert all(len(n.attachments) == 1 for n in notes)


def test_index_is_never_a_note(reconciler, sqlite_store):
    seed(sqlite_store, [])
    assert reconciler.fetch_all() == []


def test_listing_is_repeatable(reconciler, sqlite_store):
    folder = seed(sqlite_store, [])
    for i in range(6):
        sqlite_store.create_file(folder, f"n{i}.txt", "text/plain", f"note {i}".encode())

    first = sorted(reconciler.fetch_all(), key=lambda n: n.id)
    second = sorted(reconciler.fetch_all(), key=lambda n: n.id)

    assert first == second
    assert len(first) == 6


def test_corrupted_index_does_not_break_listing(reconciler, sqlite_store):
    folder = sqlite_store.create_folder(APP_SCOPE, "notes")
    sqlite_store.create_file(folder, INDEX_NAME, "application/json", b"{broken")
    sqlite_store.create_file(folder, "0001 - A.txt", "text/plain", b"a")

    [note] = reconciler.fetch_all()

    assert note.seq is None
    [meta] = [f for f in sqlite_store.list_files(folder) if f.name == INDEX_NAME]
    assert json.loads(sqlite_store.get_file_content(meta.id)) == {"lastId": 0, "items": []}
