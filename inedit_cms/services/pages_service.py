"""Editable site pages (home, legal, privacy...)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.errors import NotFound
from inedit_cms.schemas import PageCreate, PageSeo, PageUpdate, parse_payload
from inedit_cms.services.catalog_service import utc_now
from inedit_cms.services.localization import display_text, merge_localized, representative_value
from inedit_cms.services.repositories import Collection, Record

logger = logging.getLogger(__name__)


def merge_content(current: Optional[Mapping[str, Any]], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge page content block by block.

    Localized blocks (dicts on both sides) are merged per locale; any other
    value replaces the stored one.
    """

    merged: Dict[str, Any] = dict(current or {})
    for key, value in patch.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_localized(existing, value)
        else:
            merged[key] = value
    return merged


def merge_seo(current: Optional[Mapping[str, Any]], patch: PageSeo) -> Dict[str, Any]:
    current = current or {}
    sent = patch.model_fields_set
    return {
        "title": merge_localized(current.get("title"), patch.title) if "title" in sent else current.get("title"),
        "description": (
            merge_localized(current.get("description"), patch.description)
            if "description" in sent
            else current.get("description")
        ),
        "keywords": list(patch.keywords) if "keywords" in sent else list(current.get("keywords") or []),
    }


def _resolve_block(value: Any, locale: str) -> Any:
    if isinstance(value, (str, Mapping)):
        return display_text(value, locale)
    return value


class PagesService:
    domain = "pages"

    def __init__(self, pages: Collection):
        self.pages = pages

    def list_pages(self, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> List[Record]:
        pages = self.pages.list()
        if raw:
            return pages
        return [
            {
                "id": page["id"],
                "slug": page.get("slug"),
                "title": display_text(page.get("title"), locale),
                "updated_at": page.get("updated_at"),
            }
            for page in pages
        ]

    def get_page(self, page_id: str, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> Record:
        page = self.pages.get(page_id)
        if page is None:
            raise NotFound(f"Page {page_id} not found.", domain=self.domain)
        return page if raw else self._resolve(page, locale)

    def get_page_by_slug(self, slug: str, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> Record:
        page = self.pages.find_by_slug(slug)
        if page is None:
            raise NotFound(f"Page {slug!r} not found.", domain=self.domain)
        return page if raw else self._resolve(page, locale)

    def create_page(self, payload: Union[PageCreate, Mapping[str, Any]]) -> Record:
        data = parse_payload(PageCreate, payload)
        timestamp = utc_now()
        record = {
            "id": self.pages.new_id(),
            "slug": data.slug,
            "title": dict(data.title),
            "content": dict(data.content),
            "seo": merge_seo(None, data.seo) if data.seo else None,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        created = self.pages.insert(record)
        logger.info("Created page %s (%s)", created["id"], created["slug"])
        return self._envelope(created)

    def update_page(self, page_id: str, payload: Union[PageUpdate, Mapping[str, Any]]) -> Record:
        data = parse_payload(PageUpdate, payload)

        def _build(current: Record) -> Record:
            fields: Record = {"updated_at": utc_now()}
            if data.slug is not None:
                fields["slug"] = data.slug
            if data.title:
                fields["title"] = merge_localized(current.get("title"), data.title)
            if data.content is not None:
                fields["content"] = merge_content(current.get("content"), data.content)
            if data.seo is not None:
                fields["seo"] = merge_seo(current.get("seo"), data.seo)
            return fields

        updated = self.pages.update(page_id, _build)
        if updated is None:
            raise NotFound(f"Page {page_id} not found.", domain=self.domain)
        return self._envelope(updated)

    def delete_page(self, page_id: str) -> None:
        if not self.pages.delete(page_id):
            raise NotFound(f"Page {page_id} not found.", domain=self.domain)
        logger.info("Deleted page %s", page_id)

    @staticmethod
    def _resolve(page: Record, locale: str) -> Record:
        seo = page.get("seo")
        return {
            "id": page["id"],
            "slug": page.get("slug"),
            "title": display_text(page.get("title"), locale),
            "content": {key: _resolve_block(value, locale) for key, value in (page.get("content") or {}).items()},
            "seo": (
                {
                    "title": display_text(seo.get("title"), locale),
                    "description": display_text(seo.get("description"), locale),
                    "keywords": list(seo.get("keywords") or []),
                }
                if seo
                else None
            ),
            "updated_at": page.get("updated_at"),
        }

    @staticmethod
    def _envelope(page: Record) -> Record:
        return {
            "id": page["id"],
            "slug": page.get("slug"),
            "title": representative_value(page.get("title")),
            "updated_at": page.get("updated_at"),
        }


__all__ = ["PagesService", "merge_content"]
