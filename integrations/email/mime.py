"""Decoding of Gmail message resources into storable fields"""
import base64
import binascii
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Optional

from core.logging import get_logger
from integrations.email.protocols import MimePart, ParsedMessage

logger = get_logger(__name__)

NO_SUBJECT = "(No Subject)"
UNKNOWN_SENDER = "(Unknown Sender)"
EMPTY_BODY = "(Empty Body)"


def get_header(headers: list[dict[str, Any]], name: str) -> Optional[str]:
    """Case-insensitive header lookup; first match wins"""
    wanted = name.lower()
    for header in headers or []:
        if (header.get("name") or "").lower() == wanted:
            return header.get("value")
    return None


def parse_date(value: Optional[str]) -> datetime:
    """RFC 2822 date, or now (UTC) if missing or unparseable"""
    if value:
        try:
            parsed = parsedate_to_datetime(value)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return parsed
        except (TypeError, ValueError, IndexError) as e:
            logger.debug(f"Failed to parse date string '{value}': {e}")
    return datetime.now(UTC)


def decode_base64url(data: str) -> str:
    """Decode Gmail's base64url body data, tolerating stripped padding"""
    padded = data + "=" * (-len(data) % 4)
    raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    # PostgreSQL text columns reject NUL
    return raw.decode("utf-8", errors="replace").replace("\x00", "")


def find_first_part(root: MimePart, mime_type: str) -> Optional[MimePart]:
    """Depth-first, pre-order search for the first leaf of a mime type"""
    if not root.parts:
        return root if root.mime_type == mime_type else None
    for child in root.parts:
        found = find_first_part(child, mime_type)
        if found is not None:
            return found
    return None


def _decoded_content(root: MimePart, mime_type: str) -> Optional[str]:
    part = find_first_part(root, mime_type)
    if part is None or not part.data:
        return None
    try:
        return decode_base64url(part.data)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode {mime_type} part: {e}")
        return None


def extract_bodies(root: MimePart) -> tuple[str, Optional[str]]:
    """
    Plain-text and HTML bodies of a MIME tree.

    The plain-text body falls back to EMPTY_BODY; the HTML body falls back to
    None whether the part is missing or failed to decode.
    """
    plain = _decoded_content(root, "text/plain")
    html = _decoded_content(root, "text/html")
    return (plain or EMPTY_BODY), (html or None)


def parse_message(
    message: dict[str, Any], fallback_id: Optional[str] = None
) -> ParsedMessage:
    """Normalize a Gmail `format=full` message resource"""
    message_id = message.get("id") or fallback_id
    if not message_id:
        raise ValueError("Message resource has no id")

    payload = message.get("payload") or {}
    headers = payload.get("headers") or []

    plain, html = extract_bodies(MimePart.from_payload(payload))

    return ParsedMessage(
        provider_message_id=message_id,
        sender=get_header(headers, "From") or UNKNOWN_SENDER,
        subject=get_header(headers, "Subject") or NO_SUBJECT,
        received_at=parse_date(get_header(headers, "Date")),
        plain_text_body=plain,
        html_body=html,
    )
