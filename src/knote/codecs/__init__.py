"""Text and container codecs."""

from knote.codecs.container import ATTACHMENTS_PREFIX, NOTE_ENTRY, pack, unpack
from knote.codecs.text import decode, encode

__all__ = ["ATTACHMENTS_PREFIX", "NOTE_ENTRY", "decode", "encode", "pack", "unpack"]
