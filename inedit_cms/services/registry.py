"""Wire each content domain to the backend configured for it."""

from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Callable, Dict, Mapping, Optional

from inedit_cms.config.content import CONTENT_DATA_DIR, DOMAINS, backend_for
from inedit_cms.config.supabase_client import get_service_supabase_client, get_supabase_client
from inedit_cms.services.catalog_service import CatalogService, utc_now
from inedit_cms.services.file_store import FileStore
from inedit_cms.services.gallery_service import GalleryService
from inedit_cms.services.pages_service import PagesService
from inedit_cms.services.repositories import (
    FileSettingsRepository,
    FileTranslationsRepository,
    SupabaseSettingsRepository,
    SupabaseTranslationsRepository,
    file_catalog,
    file_gallery,
    file_pages,
    supabase_catalog,
    supabase_gallery,
    supabase_pages,
)
from inedit_cms.services.settings_service import SettingsService
from inedit_cms.services.supabase_store import SupabaseStore
from inedit_cms.services.translations_service import TranslationsService

logger = logging.getLogger(__name__)

CATALOG_DOMAINS = ("menu", "beverages")


def default_supabase_store() -> SupabaseStore:
    return SupabaseStore(get_supabase_client(), get_service_supabase_client())


class ServiceRegistry:
    """Build and cache one service per domain.

    The backend of a domain is looked up once, on first use, and stays fixed
    for the lifetime of the registry.
    """

    def __init__(
        self,
        file_store: FileStore,
        supabase_factory: Callable[[], SupabaseStore] = default_supabase_store,
        backends: Optional[Mapping[str, str]] = None,
    ):
        self.file_store = file_store
        self.supabase_factory = supabase_factory
        self.backends = dict(backends or {})
        self._supabase: Optional[SupabaseStore] = None
        self._services: Dict[str, object] = {}
        self._lock = threading.Lock()

    def backend(self, domain: str) -> str:
        if domain not in DOMAINS:
            raise ValueError(f"Unknown content domain: {domain}")
        if domain not in self.backends:
            self.backends[domain] = backend_for(domain)
        return self.backends[domain]

    def catalog(self, domain: str) -> CatalogService:
        if domain not in CATALOG_DOMAINS:
            raise ValueError(f"{domain} is not a catalog domain")
        return self._get(domain, self._build_catalog)

    def pages(self) -> PagesService:
        return self._get("pages", self._build_pages)

    def settings(self) -> SettingsService:
        return self._get("settings", self._build_settings)

    def translations(self) -> TranslationsService:
        return self._get("translations", self._build_translations)

    def gallery(self) -> GalleryService:
        return self._get("gallery", self._build_gallery)

    def _get(self, domain: str, build: Callable[[str], object]):
        with self._lock:
            service = self._services.get(domain)
            if service is None:
                service = build(domain)
                self._services[domain] = service
                logger.info("Content domain %s uses the %s backend", domain, self.backend(domain))
            return service

    def _supabase_store(self) -> SupabaseStore:
        if self._supabase is None:
            self._supabase = self.supabase_factory()
        return self._supabase

    def _uses_supabase(self, domain: str) -> bool:
        return self.backend(domain) == "supabase"

    def _build_catalog(self, domain: str) -> CatalogService:
        if self._uses_supabase(domain):
            return CatalogService(supabase_catalog(self._supabase_store(), domain))
        return CatalogService(file_catalog(self.file_store, domain))

    def _build_pages(self, domain: str) -> PagesService:
        if self._uses_supabase(domain):
            return PagesService(supabase_pages(self._supabase_store()))
        return PagesService(file_pages(self.file_store))

    def _build_settings(self, domain: str) -> SettingsService:
        if self._uses_supabase(domain):
            return SettingsService(SupabaseSettingsRepository(self._supabase_store()))
        return SettingsService(FileSettingsRepository(self.file_store))

    def _build_translations(self, domain: str) -> TranslationsService:
        if self._uses_supabase(domain):
            return TranslationsService(SupabaseTranslationsRepository(self._supabase_store(), utc_now))
        return TranslationsService(FileTranslationsRepository(self.file_store))

    def _build_gallery(self, domain: str) -> GalleryService:
        if self._uses_supabase(domain):
            return GalleryService(supabase_gallery(self._supabase_store()))
        return GalleryService(file_gallery(self.file_store))


@lru_cache(maxsize=1)
def get_registry() -> ServiceRegistry:
    """Process-wide registry built from the environment."""
    return ServiceRegistry(FileStore(CONTENT_DATA_DIR))


__all__ = ["CATALOG_DOMAINS", "ServiceRegistry", "default_supabase_store", "get_registry"]
