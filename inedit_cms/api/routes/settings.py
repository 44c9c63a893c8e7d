"""Restaurant settings endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from inedit_cms.api.dependencies import get_settings_service
from inedit_cms.api.errors import call_service
from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.schemas import SettingsUpdate
from inedit_cms.security.guards import require_admin
from inedit_cms.services.settings_service import SettingsService

router = APIRouter(prefix="/api/settings", tags=["Settings"])
admin_router = APIRouter(
    prefix="/api/admin/settings", tags=["Settings admin"], dependencies=[Depends(require_admin)]
)


@router.get("")
async def read_settings(
    locale: str = Query(default=DEFAULT_LOCALE),
    service: SettingsService = Depends(get_settings_service),
) -> Dict[str, Any]:
    return await call_service(service.get_settings, locale, context="read settings")


@admin_router.get("")
async def admin_read_settings(service: SettingsService = Depends(get_settings_service)) -> Dict[str, Any]:
    return await call_service(service.get_settings, raw=True, context="admin read settings")


@admin_router.put("")
async def admin_update_settings(
    payload: SettingsUpdate,
    service: SettingsService = Depends(get_settings_service),
) -> Dict[str, Any]:
    return await call_service(service.update_settings, payload, context="update settings")


@admin_router.post("/initialize", status_code=201)
async def admin_initialize_settings(service: SettingsService = Depends(get_settings_service)) -> Dict[str, Any]:
    """Seed the default settings record if none exists yet."""
    return await call_service(service.initialize_settings, context="initialize settings")


__all__ = ["admin_router", "router"]
