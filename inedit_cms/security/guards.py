"""Bearer token guard for the admin API."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException

from inedit_cms.config import content

logger = logging.getLogger(__name__)


def extract_bearer_token(header_value: Optional[str]) -> str:
    """Return the Bearer token from an Authorization header."""

    if not header_value:
        raise HTTPException(status_code=401, detail="Authentication required.")
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Bearer token.")
    token = parts[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing Bearer token.")
    return token


def require_admin(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> None:
    """Accept the request only when it carries the configured admin token."""

    expected = content.ADMIN_API_TOKEN
    if not expected:
        logger.error("ADMIN_API_TOKEN is not set; admin API disabled")
        raise HTTPException(status_code=503, detail="Admin API is not configured.")
    token = extract_bearer_token(authorization)
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected admin request with an invalid token")
        raise HTTPException(status_code=403, detail="Invalid admin token.")


__all__ = ["extract_bearer_token", "require_admin"]
