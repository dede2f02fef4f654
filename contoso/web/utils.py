"""
Utility helpers for the registrar service.

Token encoding for the wire and conversion of core objects to response bodies.
"""

import base64
import binascii
import logging
from typing import Any, Callable, Dict, Optional

from contoso.entities import full_name
from contoso.paging.paginated import Page
from contoso.store.base.record import Record
from contoso.web.exceptions import ValidationError

logger = logging.getLogger(__name__)


def encode_token(token: bytes) -> str:
    return base64.urlsafe_b64encode(token).decode("ascii")


def decode_token(value: Optional[str]) -> bytes:
    """
    Decode a URL-safe base64 version token sent by a client.

    Raises ValidationError (400) when the value is missing or malformed.
    """
    if not value:
        raise ValidationError("Validation error", details="row_version is required")
    try:
        return base64.b64decode(value, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Rejected malformed row_version", extra={"row_version": value})
        raise ValidationError("Validation error", details="row_version is not valid base64")


def record_body(record: Record, **extra: Any) -> Dict[str, Any]:
    body = {"id": record.record_id}
    body.update(record.to_dict())
    body["row_version"] = encode_token(record.version)
    body.update(extra)
    return body


def person_body(record: Record) -> Dict[str, Any]:
    return record_body(record, full_name=full_name(record))


def page_body(page: Page, item: Callable[[Record], Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "items": [item(r) for r in page.items],
        "page_index": page.page_index,
        "total_pages": page.total_pages,
        "total_count": page.total_count,
        "has_previous": page.has_previous,
        "has_next": page.has_next,
    }
