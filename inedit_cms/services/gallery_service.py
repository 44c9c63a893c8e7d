"""Photo gallery metadata. Image files live in object storage; only URLs are kept."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Union

from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.errors import NotFound
from inedit_cms.schemas import GalleryImageCreate, GalleryImageUpdate, parse_payload
from inedit_cms.services.catalog_service import utc_now
from inedit_cms.services.localization import display_text, merge_localized
from inedit_cms.services.repositories import Collection, Record

logger = logging.getLogger(__name__)


class GalleryService:
    domain = "gallery"

    def __init__(self, images: Collection):
        self.images = images

    def list_images(self, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> List[Record]:
        images = self.images.list()
        return images if raw else [self._resolve(image, locale) for image in images]

    def get_image(self, image_id: str, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> Record:
        image = self.images.get(image_id)
        if image is None:
            raise NotFound(f"Gallery image {image_id} not found.", domain=self.domain)
        return image if raw else self._resolve(image, locale)

    def create_image(self, payload: Union[GalleryImageCreate, Mapping[str, Any]]) -> Record:
        data = parse_payload(GalleryImageCreate, payload)
        timestamp = utc_now()
        created = self.images.insert(
            {
                "id": self.images.new_id(),
                "title": dict(data.title),
                "description": dict(data.description) if data.description else None,
                "image": data.image.model_dump(),
                "created_at": timestamp,
                "updated_at": timestamp,
            }
        )
        logger.info("Added gallery image %s", created["id"])
        return created

    def update_image(self, image_id: str, payload: Union[GalleryImageUpdate, Mapping[str, Any]]) -> Record:
        data = parse_payload(GalleryImageUpdate, payload)
        sent = data.model_fields_set

        def _build(current: Record) -> Record:
            fields: Record = {"updated_at": utc_now()}
            if data.title:
                fields["title"] = merge_localized(current.get("title"), data.title)
            if "description" in sent:
                fields["description"] = (
                    merge_localized(current.get("description"), data.description)
                    if data.description is not None
                    else None
                )
            if data.image is not None:
                fields["image"] = data.image.model_dump()
            return fields

        updated = self.images.update(image_id, _build)
        if updated is None:
            raise NotFound(f"Gallery image {image_id} not found.", domain=self.domain)
        return updated

    def delete_image(self, image_id: str) -> None:
        if not self.images.delete(image_id):
            raise NotFound(f"Gallery image {image_id} not found.", domain=self.domain)

    @staticmethod
    def _resolve(image: Record, locale: str) -> Record:
        return {
            "id": image["id"],
            "title": display_text(image.get("title"), locale),
            "description": display_text(image["description"], locale) if image.get("description") else None,
            "image": image.get("image"),
        }


__all__ = ["GalleryService"]
