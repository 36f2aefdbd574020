"""Best-effort text decoding and explicit text encoding."""

import codecs
import logging

import chardet

from knote.config import DEFAULT_ENCODING
from knote.errors import InvalidEncoding

logger = logging.getLogger(__name__)

# Detector results that decode better under a related codec
_ENCODING_ALIASES = {
    "maccyrillic": "cp1251",
}


def detect_encoding(data: bytes) -> str:
    """Guess the encoding of ``data``.

    Valid UTF-8 wins outright; otherwise the byte distribution decides.
    Falls back to utf-8 when detection yields nothing.
    """
    try:
        data.decode("utf-8")
        return "utf-8-sig" if data.startswith(codecs.BOM_UTF8) else "utf-8"
    except UnicodeDecodeError:
        pass

    result = chardet.detect(data)
    encoding = result.get("encoding")
    if not encoding:
        return "utf-8"
    return _ENCODING_ALIASES.get(encoding.lower(), encoding)


def decode(data: bytes) -> str:
    """Decode bytes of unknown encoding. Never fails.

    Args:
        data: Raw bytes, possibly empty

    Returns:
        The decoded text; undecodable input is read as utf-8 with replacement
    """
    if not data:
        return ""

    encoding = detect_encoding(data)
    try:
        return data.decode(encoding)
    except (LookupError, UnicodeDecodeError) as e:
        logger.debug(f"Decoding as {encoding} failed ({e}), using utf-8")
        return data.decode("utf-8", errors="replace")


def encode(text: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encode text with an explicitly chosen encoding.

    Characters the encoding cannot represent are replaced.

    Raises:
        InvalidEncoding: If ``encoding`` is not a known codec.
    """
    try:
        codec = codecs.lookup(encoding or DEFAULT_ENCODING)
    except LookupError:
        raise InvalidEncoding(f"Unsupported encoding: {encoding}")
    try:
        return (text or "").encode(codec.name, errors="replace")
    except LookupError:
        # bytes-to-bytes codecs such as base64 are not text encodings
        raise InvalidEncoding(f"Unsupported encoding: {encoding}")
