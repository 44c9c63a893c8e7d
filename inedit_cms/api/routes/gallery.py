"""Photo gallery endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from inedit_cms.api.dependencies import get_gallery_service
from inedit_cms.api.errors import call_service
from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.schemas import GalleryImageCreate, GalleryImageUpdate
from inedit_cms.security.guards import require_admin
from inedit_cms.services.gallery_service import GalleryService

router = APIRouter(prefix="/api/gallery", tags=["Gallery"])
admin_router = APIRouter(prefix="/api/admin/gallery", tags=["Gallery admin"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_gallery(
    locale: str = Query(default=DEFAULT_LOCALE),
    service: GalleryService = Depends(get_gallery_service),
) -> List[Dict[str, Any]]:
    return await call_service(service.list_images, locale, context="list gallery")


@admin_router.get("")
async def admin_list_gallery(service: GalleryService = Depends(get_gallery_service)) -> List[Dict[str, Any]]:
    return await call_service(service.list_images, raw=True, context="admin list gallery")


@admin_router.post("", status_code=201)
async def admin_create_image(
    payload: GalleryImageCreate,
    service: GalleryService = Depends(get_gallery_service),
) -> Dict[str, Any]:
    return await call_service(service.create_image, payload, context="create gallery image")


@admin_router.patch("/{image_id}")
async def admin_update_image(
    image_id: str,
    payload: GalleryImageUpdate,
    service: GalleryService = Depends(get_gallery_service),
) -> Dict[str, Any]:
    return await call_service(service.update_image, image_id, payload, context="update gallery image")


@admin_router.delete("/{image_id}", status_code=204)
async def admin_delete_image(image_id: str, service: GalleryService = Depends(get_gallery_service)) -> None:
    await call_service(service.delete_image, image_id, context="delete gallery image")


__all__ = ["admin_router", "router"]
