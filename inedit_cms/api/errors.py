"""Translate content store failures into HTTP errors."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, NoReturn, TypeVar

from fastapi import HTTPException

from inedit_cms.errors import ContentError

logger = logging.getLogger(__name__)
T = TypeVar("T")

STATUS_BY_KIND: Dict[str, int] = {
    "validation": 422,
    "not_found": 404,
    "conflict": 409,
    "backend_unavailable": 503,
}


def content_error_status(exc: ContentError) -> int:
    return STATUS_BY_KIND.get(exc.kind, 500)


def raise_content_error(exc: ContentError, *, context: str) -> NoReturn:
    """Map a ContentError to an HTTPException, logging server-side failures."""

    status_code = content_error_status(exc)
    if status_code >= 500:
        logger.error("%s failed (%s): %s", context, exc.kind, exc.message)
        detail = "Content storage is temporarily unavailable."
    else:
        logger.info("%s rejected (%s): %s", context, exc.kind, exc.message)
        detail = exc.message
    raise HTTPException(status_code=status_code, detail={"kind": exc.kind, "message": detail}) from exc


async def call_service(func: Callable[..., T], *args: Any, context: str, **kwargs: Any) -> T:
    """Run a blocking service call off the event loop, mapping its failures."""

    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except ContentError as exc:
        raise_content_error(exc, context=context)


__all__ = ["STATUS_BY_KIND", "call_service", "content_error_status", "raise_content_error"]
