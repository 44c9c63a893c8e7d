"""FastAPI dependencies resolving content services from the registry."""

from __future__ import annotations

from enum import Enum
from typing import Callable, TypeVar

from fastapi import Depends

from inedit_cms.api.errors import raise_content_error
from inedit_cms.errors import ContentError
from inedit_cms.services.catalog_service import CatalogService
from inedit_cms.services.gallery_service import GalleryService
from inedit_cms.services.pages_service import PagesService
from inedit_cms.services.registry import ServiceRegistry, get_registry
from inedit_cms.services.settings_service import SettingsService
from inedit_cms.services.translations_service import TranslationsService

T = TypeVar("T")


class CatalogDomain(str, Enum):
    menu = "menu"
    beverages = "beverages"


def _build(factory: Callable[[], T], *, context: str) -> T:
    try:
        return factory()
    except ContentError as exc:
        raise_content_error(exc, context=context)


def get_catalog_service(
    domain: CatalogDomain,
    registry: ServiceRegistry = Depends(get_registry),
) -> CatalogService:
    return _build(lambda: registry.catalog(domain.value), context=f"open {domain.value} catalog")


def get_menu_service(registry: ServiceRegistry = Depends(get_registry)) -> CatalogService:
    return _build(lambda: registry.catalog("menu"), context="open menu catalog")


def get_beverages_service(registry: ServiceRegistry = Depends(get_registry)) -> CatalogService:
    return _build(lambda: registry.catalog("beverages"), context="open beverages catalog")


def get_pages_service(registry: ServiceRegistry = Depends(get_registry)) -> PagesService:
    return _build(registry.pages, context="open pages")


def get_settings_service(registry: ServiceRegistry = Depends(get_registry)) -> SettingsService:
    return _build(registry.settings, context="open settings")


def get_translations_service(registry: ServiceRegistry = Depends(get_registry)) -> TranslationsService:
    return _build(registry.translations, context="open translations")


def get_gallery_service(registry: ServiceRegistry = Depends(get_registry)) -> GalleryService:
    return _build(registry.gallery, context="open gallery")


__all__ = [
    "CatalogDomain",
    "get_beverages_service",
    "get_catalog_service",
    "get_gallery_service",
    "get_menu_service",
    "get_pages_service",
    "get_settings_service",
    "get_translations_service",
]
