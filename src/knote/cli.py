"""CLI entry point for knote."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from knote.auth import DriveSession, StaticSession, authorize
from knote.config import DEFAULT_ENCODING, Settings
from knote.errors import KnoteError, NotAuthorized
from knote.importers import FileAttachmentSource, get_importer, write_note_file
from knote.protocols import Session
from knote.service import NoteService, to_payload
from knote.stores import DriveRemoteStore, SqliteRemoteStore

logger = logging.getLogger(__name__)

SessionProvider = Callable[[], Session]


def build_service(args: argparse.Namespace) -> tuple[NoteService, SessionProvider]:
    """Create the note service and session provider selected by the CLI flags."""
    settings = Settings.from_env().with_overrides(
        notes_folder=args.folder,
        fetch_workers=args.workers,
        write_strategy=args.strategy,
    )

    if args.local:
        local_path = Path(args.local)
        return (
            NoteService(lambda session: SqliteRemoteStore(local_path), settings),
            StaticSession,
        )

    def drive_session() -> Session:
        try:
            return DriveSession.from_token_file(settings.token_path)
        except NotAuthorized:
            # An invalid session makes the service report NotAuthorized
            return DriveSession(None, settings.token_path)

    return (
        NoteService(lambda session: DriveRemoteStore(session.credentials), settings),
        drive_session,
    )


def report(result: dict, as_json: bool = False) -> bool:
    """Print a failure (or the JSON payload) and return whether it succeeded."""
    if as_json:
        print(json.dumps(to_payload(result, include_data=False), indent=2))
    elif not result["success"]:
        logger.error(f"Error ({result['kind']}): {result['error']}")
    return result["success"]


def print_notes(notes: list) -> None:
    ordered = sorted(notes, key=lambda n: (n.seq is None, n.seq or 0, n.created_at or "", n.name))
    for note in ordered:
        seq = f"{note.seq:04d}" if note.seq is not None else "----"
        clip = f" [{len(note.attachments)} attachments]" if note.attachments else ""
        print(f"{seq}  {note.title:<40} {note.color or '':<8} {note.id}{clip}")
    print(f"")
    print(f"{len(notes)} notes")


def read_content(args: argparse.Namespace) -> str:
    if args.file:
        importer = get_importer(Path(args.file))
        if importer is None:
            raise KnoteError(f"Cannot read {args.file}: supported inputs are .txt, .knote, .zip")
        text, _ = importer.read(Path(args.file))
        return text
    if args.content == "-":
        return sys.stdin.read()
    return args.content or ""


def auth(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    credentials = Path(args.credentials) if args.credentials else settings.credentials_path
    try:
        authorize(credentials, settings.token_path, port=args.port)
    except NotAuthorized as e:
        logger.error(str(e))
        return 1
    logger.info(f"Authorized. Token saved to {settings.token_path}")
    return 0


def check(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    result = service.check(session())
    if not report(result, args.json):
        return 1
    if not args.json:
        print(f"Notes folder: {result['folderId']}")
        print(f"Metadata index: {result['metadataId']}")
    return 0


def list_notes(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    result = service.list_notes(session())
    if not report(result, args.json):
        return 1
    if not args.json:
        print_notes(result["notes"])
        for skipped in result["skipped"]:
            logger.warning(f"Skipped {skipped['name']}: {skipped['reason']}")
    return 0


def show(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    result = service.get_note(session(), args.id)
    if not report(result, args.json):
        return 1
    if args.json:
        return 0

    note = result["note"]
    print(f"{note.title}  ({note.name}, seq {note.seq}, color {note.color})")
    print(f"")
    print(note.content)
    for attachment in note.attachments:
        print(f"  attachment: {attachment.name} ({len(attachment.data)} bytes)")

    if args.save_attachments:
        target = Path(args.save_attachments)
        target.mkdir(parents=True, exist_ok=True)
        for attachment in note.attachments:
            (target / attachment.name).write_bytes(attachment.data)
        logger.info(f"Saved {len(note.attachments)} attachments to {target}")
    return 0


def create(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    try:
        content = read_content(args)
        attachments = FileAttachmentSource().load(args.attach)
    except (KnoteError, OSError) as e:
        logger.error(str(e))
        return 1

    result = service.create_note(session(), args.title, content, attachments, args.encoding, args.color)
    if not report(result, args.json):
        return 1
    if not args.json:
        logger.info(f"Created {result['file'].name} ({result['fileId']})")
    return 0


def update(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    current = service.get_note(session(), args.id)
    if not report(current):
        return 1
    note = current["note"]

    try:
        content = read_content(args) if (args.file or args.content is not None) else note.content
        attachments = FileAttachmentSource().load(args.attach)
    except (KnoteError, OSError) as e:
        logger.error(str(e))
        return 1
    if args.keep_attachments:
        added = {a.name for a in attachments}
        attachments = [a for a in note.attachments if a.name not in added] + attachments

    result = service.update_note(
        session(),
        args.id,
        args.title or note.title,
        content,
        attachments,
        args.encoding,
        args.color,
    )
    if not report(result, args.json):
        return 1
    if not args.json:
        logger.info(f"Updated {result['file'].name}")
    return 0


def delete(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    result = service.delete_note(session(), args.id)
    if not report(result, args.json):
        return 1
    if not args.json:
        logger.info(f"Deleted {args.id}; {len(result['notes'])} notes remain")
    return 0


def import_file(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    source = Path(args.path)
    importer = get_importer(source)
    if importer is None:
        logger.error(f"Cannot import: {args.path}")
        logger.error("Supported inputs: .txt, .knote and .zip files")
        return 1

    try:
        text, attachments = importer.read(source)
    except (KnoteError, OSError) as e:
        logger.error(f"Cannot read {source}: {e}")
        return 1

    title = args.title or source.stem
    result = service.create_note(session(), title, text, attachments, args.encoding, args.color)
    if not report(result, args.json):
        return 1
    if not args.json:
        logger.info(f"Imported {source} -> {result['file'].name}")
    return 0


def export(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    result = service.get_note(session(), args.id)
    if not report(result):
        return 1
    note = result["note"]
    try:
        path = write_note_file(args.path, note.content, note.attachments, args.encoding)
    except (KnoteError, OSError) as e:
        logger.error(f"Cannot write {args.path}: {e}")
        return 1
    logger.info(f"Exported {note.name} -> {path}")
    return 0


def serve(service: NoteService, session: SessionProvider, args: argparse.Namespace) -> int:
    # Import here to avoid loading MCP unless needed
    from knote.server import create_mcp_server

    from typing import Literal, cast

    logger.info(f"Serving notes via {args.transport}")
    mcp = create_mcp_server(service, session)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], args.transport))
    return 0


COMMANDS = {
    "check": check,
    "list": list_notes,
    "show": show,
    "create": create,
    "update": update,
    "delete": delete,
    "import": import_file,
    "export": export,
    "serve": serve,
}


def add_note_arguments(parser: argparse.ArgumentParser, title_required: bool) -> None:
    parser.add_argument("--title", required=title_required, help="Note title")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--content", help="Note text ('-' reads stdin)")
    body.add_argument("--file", help="Read the note text from a local .txt/.knote file")
    parser.add_argument(
        "--attach",
        action="append",
        default=[],
        metavar="PATH",
        help="Attach a local file (repeatable)",
    )
    parser.add_argument(
        "--encoding",
        default=DEFAULT_ENCODING,
        help=f"Encoding used to store the text (default: {DEFAULT_ENCODING})",
    )
    parser.add_argument("--color", help="Note color, e.g. '#fff9a8'")


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knote",
        description="knote - notes with attachments, kept in your cloud app folder",
    )
    parser.add_argument("--local", metavar="PATH", help="Use a local SQLite store instead of Drive")
    parser.add_argument("--folder", help="Notes folder name (default: notes)")
    parser.add_argument("--workers", type=int, help="Parallel downloads while listing")
    parser.add_argument(
        "--strategy",
        choices=["last-write-wins", "compare-version"],
        help="Metadata index write strategy",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # auth command
    auth_parser = subparsers.add_parser("auth", help="Authorize access to Google Drive")
    auth_parser.add_argument("--credentials", help="OAuth client secrets JSON")
    auth_parser.add_argument("--port", type=int, default=0, help="Local redirect port")

    subparsers.add_parser("check", help="Ensure the notes folder and index exist")
    subparsers.add_parser("list", help="List notes")

    # show command
    show_parser = subparsers.add_parser("show", help="Print a note")
    show_parser.add_argument("id", help="Note id")
    show_parser.add_argument("--save-attachments", metavar="DIR", help="Write attachments to DIR")

    create_parser = subparsers.add_parser("create", help="Create a note")
    add_note_arguments(create_parser, title_required=True)

    # update command
    update_parser = subparsers.add_parser("update", help="Rewrite a note")
    update_parser.add_argument("id", help="Note id")
    add_note_arguments(update_parser, title_required=False)
    update_parser.add_argument(
        "--keep-attachments",
        action="store_true",
        help="Keep current attachments (default: replace them with --attach)",
    )

    delete_parser = subparsers.add_parser("delete", help="Permanently delete a note")
    delete_parser.add_argument("id", help="Note id")

    # import command
    import_parser = subparsers.add_parser("import", help="Create a note from a local file")
    import_parser.add_argument("path", help="Local .txt, .knote or .zip file")
    import_parser.add_argument("--title", help="Title (default: file name)")
    import_parser.add_argument("--encoding", default=DEFAULT_ENCODING, help="Storage encoding")
    import_parser.add_argument("--color", help="Note color")

    # export command
    export_parser = subparsers.add_parser("export", help="Save a note to a local file")
    export_parser.add_argument("id", help="Note id")
    export_parser.add_argument("path", help="Target path (.txt drops attachments)")
    export_parser.add_argument("--encoding", default=DEFAULT_ENCODING, help="Text encoding")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start an MCP server for the notes")
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    args = make_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    if args.command == "auth":
        sys.exit(auth(args))

    try:
        service, session = build_service(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(2)

    sys.exit(COMMANDS[args.command](service, session, args))


if __name__ == "__main__":
    main()
