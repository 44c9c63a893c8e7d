"""Menu and beverages endpoints (public reads and admin editing)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Body, Depends, Query

from inedit_cms.api.dependencies import (
    get_beverages_service,
    get_catalog_service,
    get_menu_service,
)
from inedit_cms.api.errors import call_service
from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.schemas import CategoryUpdate, ItemUpdate
from inedit_cms.security.guards import require_admin
from inedit_cms.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Catalog"])
admin_router = APIRouter(prefix="/api/admin", tags=["Catalog admin"], dependencies=[Depends(require_admin)])

CatalogView = Literal["categories", "items", "tree"]


def _read_catalog(
    service: CatalogService,
    locale: str,
    category_id: Optional[str],
    view: Optional[CatalogView],
) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
    if view == "categories":
        return service.list_categories(locale)
    if view == "items":
        return service.list_items(locale, category_id)
    if view == "tree":
        return service.category_tree(locale)
    return {
        "categories": service.list_categories(locale),
        "items": service.list_items(locale, category_id),
    }


@router.get("/menu")
async def read_menu(
    locale: str = Query(default=DEFAULT_LOCALE),
    category_id: Optional[str] = None,
    view: Optional[CatalogView] = Query(default=None, alias="type"),
    service: CatalogService = Depends(get_menu_service),
):
    return await call_service(_read_catalog, service, locale, category_id, view, context="read menu")


@router.get("/beverages")
async def read_beverages(
    locale: str = Query(default=DEFAULT_LOCALE),
    category_id: Optional[str] = None,
    view: Optional[CatalogView] = Query(default=None, alias="type"),
    service: CatalogService = Depends(get_beverages_service),
):
    return await call_service(_read_catalog, service, locale, category_id, view, context="read beverages")


# ---------- Admin ----------
def _raw_catalog(service: CatalogService) -> Dict[str, Any]:
    return {
        "categories": service.list_categories(raw=True),
        "items": service.list_items(raw=True),
    }


@admin_router.get("/{domain}")
async def admin_read_catalog(service: CatalogService = Depends(get_catalog_service)) -> Dict[str, Any]:
    """Stored records with every locale, for the editing forms."""
    return await call_service(_raw_catalog, service, context=f"admin read {service.domain}")


@admin_router.post("/{domain}", status_code=201)
async def admin_create_entry(
    payload: Dict[str, Any] = Body(...),
    service: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    """Create a category or an item depending on the payload ``type``."""
    return await call_service(service.create, payload, context=f"create {service.domain} {payload.get('type')}")


@admin_router.patch("/{domain}/categories/{category_id}")
async def admin_update_category(
    category_id: str,
    payload: CategoryUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    return await call_service(
        service.update_category, category_id, payload, context=f"update {service.domain} category"
    )


@admin_router.delete("/{domain}/categories/{category_id}", status_code=204)
async def admin_delete_category(
    category_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> None:
    await call_service(service.delete_category, category_id, context=f"delete {service.domain} category")


@admin_router.patch("/{domain}/items/{item_id}")
async def admin_update_item(
    item_id: str,
    payload: ItemUpdate,
    service: CatalogService = Depends(get_catalog_service),
) -> Dict[str, Any]:
    return await call_service(service.update_item, item_id, payload, context=f"update {service.domain} item")


@admin_router.delete("/{domain}/items/{item_id}", status_code=204)
async def admin_delete_item(
    item_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> None:
    await call_service(service.delete_item, item_id, context=f"delete {service.domain} item")


__all__ = ["admin_router", "router"]
