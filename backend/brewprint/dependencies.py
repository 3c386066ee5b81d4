"""
Brewprint Backend — FastAPI Dependencies
=========================================

What:  Request-scoped values shared by every router: the record store and
       the caller's owner id.
How:   Plain functions used with `Depends`; tests swap them through
       `app.dependency_overrides`.

Identity:
    Authentication lives outside this service. An upstream gateway puts the
    authenticated user's opaque id in the `X-Owner-ID` header; requests
    without it are rejected.
"""

import logging
from typing import Optional

from fastapi import Header

from brewprint.exceptions import ValidationError
from brewprint.services.record_store import RecordStore, record_store

logger = logging.getLogger(__name__)

MAX_OWNER_ID_LENGTH = 64


def get_record_store() -> RecordStore:
    return record_store


async def get_owner_id(
    x_owner_id: Optional[str] = Header(None, alias="X-Owner-ID"),
) -> str:
    """
    Raises:
        ValidationError: header missing, blank or too long (→ 400)
    """
    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        logger.warning("Request without X-Owner-ID header")
        raise ValidationError(message="X-Owner-ID header is required", field="X-Owner-ID")
    if len(owner_id) > MAX_OWNER_ID_LENGTH:
        raise ValidationError(
            message=f"X-Owner-ID must be at most {MAX_OWNER_ID_LENGTH} characters",
            field="X-Owner-ID",
        )
    return owner_id
