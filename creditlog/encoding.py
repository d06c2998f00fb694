"""
Character encoding resolution for uploaded XML documents.

Partner systems send a mix of UTF-8 and legacy 8-bit encodings, often without
an XML declaration. The declared encoding wins when it decodes cleanly;
otherwise the configured regional code page is tried, and lossy UTF-8 is the
last resort so a document is never rejected for its encoding alone.
"""
import re
from typing import Optional, Tuple

from creditlog.logger import setup_logger

logger = setup_logger(__name__)

DECLARATION_SCAN_BYTES = 1024
DEFAULT_FALLBACK_ENCODING = "windows-1254"

_declared_encoding = re.compile(rb"<\?xml\s+.*?encoding\s*=\s*[\"'](.*?)[\"']", re.I | re.S)
_xml_declaration = re.compile(r"\A\s*<\?xml[^>]*\?>")


def sniff_encoding(data: bytes) -> Optional[str]:
    """
    Returns the encoding named in the XML declaration, looking only at the
    first kilobyte of the document, or None when nothing is declared.
    """
    match = _declared_encoding.search(data[:DECLARATION_SCAN_BYTES])
    if not match:
        return None
    return match.group(1).decode("latin-1").strip().lower() or None


def decode_bytes(
    data: bytes, fallback_encoding: str = DEFAULT_FALLBACK_ENCODING
) -> Tuple[str, str]:
    """
    Decodes a raw document into text.

    Returns:
        Tuple[str, str]: The decoded text and the name of the encoding that was
        actually used ("utf-8 (lossy)" when the last resort was needed).
    """
    declared = sniff_encoding(data)
    encoding = declared or "utf-8"

    try:
        return _strip_bom(data.decode(encoding)), encoding
    except (UnicodeDecodeError, LookupError) as e:
        logger.warning(f"Failed to decode with primary encoding '{encoding}': {e}")

    if declared is None:
        try:
            return _strip_bom(data.decode(fallback_encoding)), fallback_encoding
        except (UnicodeDecodeError, LookupError) as e:
            logger.error(
                f"Fallback to '{fallback_encoding}' also failed ({e}). "
                "Decoding with lossy UTF-8 as a last resort."
            )
    else:
        logger.warning(
            f"The declared encoding '{declared}' seems incorrect. Falling back to lossy UTF-8."
        )

    return _strip_bom(data.decode("utf-8", errors="replace")), "utf-8 (lossy)"


def strip_declaration(text: str) -> str:
    """
    Removes the XML declaration so the decoded text can be handed to lxml,
    which refuses str input that still declares an encoding.
    """
    return _xml_declaration.sub("", text, count=1)


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text
