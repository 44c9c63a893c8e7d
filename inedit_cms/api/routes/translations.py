"""UI translation endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from inedit_cms.api.dependencies import get_translations_service
from inedit_cms.api.errors import call_service
from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.schemas import TranslationsPayload
from inedit_cms.security.guards import require_admin
from inedit_cms.services.translations_service import TranslationsService

router = APIRouter(prefix="/api/translations", tags=["Translations"])
admin_router = APIRouter(
    prefix="/api/admin/translations", tags=["Translations admin"], dependencies=[Depends(require_admin)]
)


@router.get("")
async def read_translations(
    locale: str = Query(default=DEFAULT_LOCALE),
    service: TranslationsService = Depends(get_translations_service),
) -> Dict[str, str]:
    return await call_service(service.get_translations, locale, context="read translations")


@admin_router.get("")
async def admin_list_locales(service: TranslationsService = Depends(get_translations_service)) -> List[str]:
    return await call_service(service.available_locales, context="list translation locales")


@admin_router.get("/{locale}")
async def admin_read_translations(
    locale: str,
    service: TranslationsService = Depends(get_translations_service),
) -> Dict[str, str]:
    """Entries stored for ``locale`` only, without the English fallback."""
    return await call_service(service.get_translations, locale, fallback=False, context="admin read translations")


@admin_router.put("/{locale}")
async def admin_upsert_translations(
    locale: str,
    payload: TranslationsPayload,
    service: TranslationsService = Depends(get_translations_service),
) -> Dict[str, Any]:
    written = await call_service(
        service.upsert_translations, locale, payload.translations, context="upsert translations"
    )
    return {"locale": locale, "written": written}


@admin_router.delete("/keys/{key}")
async def admin_delete_translation_key(
    key: str,
    service: TranslationsService = Depends(get_translations_service),
) -> Dict[str, Any]:
    removed = await call_service(service.delete_translation_key, key, context="delete translation key")
    return {"key": key, "removed": removed}


__all__ = ["admin_router", "router"]
