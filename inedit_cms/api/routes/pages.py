"""Site page endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from inedit_cms.api.dependencies import get_pages_service
from inedit_cms.api.errors import call_service
from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.schemas import PageCreate, PageUpdate
from inedit_cms.security.guards import require_admin
from inedit_cms.services.pages_service import PagesService

router = APIRouter(prefix="/api/pages", tags=["Pages"])
admin_router = APIRouter(prefix="/api/admin/pages", tags=["Pages admin"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_pages(
    locale: str = Query(default=DEFAULT_LOCALE),
    service: PagesService = Depends(get_pages_service),
) -> List[Dict[str, Any]]:
    return await call_service(service.list_pages, locale, context="list pages")


@router.get("/{slug}")
async def read_page(
    slug: str,
    locale: str = Query(default=DEFAULT_LOCALE),
    service: PagesService = Depends(get_pages_service),
) -> Dict[str, Any]:
    return await call_service(service.get_page_by_slug, slug, locale, context="read page")


@admin_router.get("")
async def admin_list_pages(service: PagesService = Depends(get_pages_service)) -> List[Dict[str, Any]]:
    return await call_service(service.list_pages, raw=True, context="admin list pages")


@admin_router.post("", status_code=201)
async def admin_create_page(
    payload: PageCreate,
    service: PagesService = Depends(get_pages_service),
) -> Dict[str, Any]:
    return await call_service(service.create_page, payload, context="create page")


@admin_router.get("/{page_id}")
async def admin_read_page(page_id: str, service: PagesService = Depends(get_pages_service)) -> Dict[str, Any]:
    return await call_service(service.get_page, page_id, raw=True, context="admin read page")


@admin_router.patch("/{page_id}")
async def admin_update_page(
    page_id: str,
    payload: PageUpdate,
    service: PagesService = Depends(get_pages_service),
) -> Dict[str, Any]:
    return await call_service(service.update_page, page_id, payload, context="update page")


@admin_router.delete("/{page_id}", status_code=204)
async def admin_delete_page(page_id: str, service: PagesService = Depends(get_pages_service)) -> None:
    await call_service(service.delete_page, page_id, context="delete page")


__all__ = ["admin_router", "router"]
