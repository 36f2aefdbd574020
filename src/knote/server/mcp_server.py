"""FastMCP server implementation for knote."""

from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP

from knote.config import DEFAULT_ENCODING
from knote.models import Attachment
from knote.protocols import Session
from knote.service import NoteService, failure, to_payload


def decode_attachments(raw: Optional[list[dict]]) -> list[Attachment]:
    """Decode wire attachments.

    Raises:
        ValueError: If an item is missing its name or carries invalid base64.
    """
    try:
        return [Attachment.from_dict(item) for item in raw or []]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid attachment: {e}")


def create_mcp_server(service: NoteService, session_provider: Callable[[], Session]) -> FastMCP:
    """Create an MCP server over a note service.

    Design: requests are handled one at a time, each with a session
    obtained fresh from ``session_provider``.

    Args:
        service: The note service to expose
        session_provider: Returns the session to use for a request

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(name="knote")

    @mcp.tool()
    def list_notes(include_attachment_data: bool = False) -> dict:
        """List every note in the notes area.

        Args:
            include_attachment_data: Include base64 attachment bytes (default: names and sizes only)

        Returns:
            {"success": true, "notes": [...], "skipped": [...]} or {"success": false, "error": ...}
        """
        return to_payload(service.list_notes(session_provider()), include_attachment_data)

    @mcp.tool()
    def get_note(file_id: str) -> dict:
        """Read one note, attachments included as base64.

        Args:
            file_id: Note id as returned by list_notes
        """
        return to_payload(service.get_note(session_provider(), file_id))

    @mcp.tool()
    def create_note(
        title: str,
        content: str = "",
        attachments: Optional[list[dict]] = None,
        encoding: str = DEFAULT_ENCODING,
        color: Optional[str] = None,
    ) -> dict:
        """Create a note.

        Args:
            title: Note title (used for the file name)
            content: Note text
            attachments: Items shaped {"name": ..., "dataBase64": ...}
            encoding: Text encoding for storage (default: utf8)
            color: Note color, e.g. "#fff9a8"
        """
        try:
            files = decode_attachments(attachments)
        except ValueError as e:
            return failure(e)
        return to_payload(
            service.create_note(
                session_provider(),
                title,
                content,
                files,
                encoding,
                color,
            ),
            include_data=False,
        )

    @mcp.tool()
    def update_note(
        file_id: str,
        title: str,
        content: str = "",
        attachments: Optional[list[dict]] = None,
        encoding: str = DEFAULT_ENCODING,
        color: Optional[str] = None,
    ) -> dict:
        """Replace a note's title, text and attachments.

        Args:
            file_id: Note id
            title: New title
            content: New text
            attachments: The complete new attachment set; empty stores plain text
            encoding: Text encoding for storage (default: utf8)
            color: New color, or omit to keep the current one
        """
        try:
            files = decode_attachments(attachments)
        except ValueError as e:
            return failure(e)
        return to_payload(
            service.update_note(
                session_provider(),
                file_id,
                title,
                content,
                files,
                encoding,
                color,
            ),
            include_data=False,
        )

    @mcp.tool()
    def delete_note(file_id: str) -> dict:
        """Permanently delete a note.

        Args:
            file_id: Note id
        """
        return to_payload(service.delete_note(session_provider(), file_id), include_data=False)

    return mcp
