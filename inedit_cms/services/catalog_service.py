"""Menu and beverages catalog: categories, items and the detach cascade."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.errors import BackendUnavailable, NotFound, ValidationFailure
from inedit_cms.schemas import (
    CatalogPayloadEnvelope,
    CategoryCreate,
    CategoryUpdate,
    ItemCreate,
    ItemUpdate,
    parse_payload,
)
from inedit_cms.services.localization import (
    build_category_tree,
    display_text,
    merge_localized,
    representative_value,
)
from inedit_cms.services.repositories import CatalogRepository, Record

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogService:
    """Category/item operations of one catalog domain.

    Reads return display-ready records (one string per localized field);
    ``raw=True`` returns the stored multilingual maps instead.
    """

    def __init__(self, repository: CatalogRepository):
        self.repository = repository
        self.domain = repository.domain

    # ---------- Categories ----------
    def list_categories(self, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> List[Record]:
        categories = self.repository.categories.list()
        if raw:
            return categories
        return [self._resolve_category(category, locale) for category in categories]

    def get_category(self, category_id: str, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> Record:
        category = self.repository.categories.get(category_id)
        if category is None:
            raise NotFound(f"Category {category_id} not found.", domain=self.domain)
        return category if raw else self._resolve_category(category, locale)

    def category_tree(self, locale: str = DEFAULT_LOCALE) -> List[Record]:
        return build_category_tree(self.list_categories(locale))

    def create_category(self, payload: Union[CategoryCreate, Mapping[str, Any]]) -> Record:
        data = parse_payload(CategoryCreate, payload)
        if data.parent_id:
            self._require_category(data.parent_id, field="parent_id")

        timestamp = utc_now()
        record = {
            "id": self.repository.categories.new_id(),
            "slug": data.slug,
            "name": dict(data.localized_names),
            "description": dict(data.localized_descriptions) if data.localized_descriptions else None,
            "parent_id": data.parent_id,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        created = self.repository.categories.insert(record)
        logger.info("Created %s category %s (%s)", self.domain, created["id"], created["slug"])
        return self._envelope_category(created)

    def update_category(self, category_id: str, payload: Union[CategoryUpdate, Mapping[str, Any]]) -> Record:
        data = parse_payload(CategoryUpdate, payload)
        sent = data.model_fields_set

        if "parent_id" in sent and data.parent_id:
            self._check_parent(category_id, data.parent_id)

        def _build(current: Record) -> Record:
            fields: Record = {"updated_at": utc_now()}
            if data.slug is not None:
                fields["slug"] = data.slug
            if data.localized_names:
                fields["name"] = merge_localized(current.get("name"), data.localized_names)
            if "localized_descriptions" in sent:
                fields["description"] = (
                    merge_localized(current.get("description"), data.localized_descriptions)
                    if data.localized_descriptions is not None
                    else None
                )
            if "parent_id" in sent:
                fields["parent_id"] = data.parent_id
            return fields

        updated = self.repository.categories.update(category_id, _build)
        if updated is None:
            raise NotFound(f"Category {category_id} not found.", domain=self.domain)
        return self._envelope_category(updated)

    def delete_category(self, category_id: str) -> None:
        """Detach items and child categories, then delete the category.

        The steps are not atomic. If the final delete fails the detached
        references stay cleared; retrying the delete is safe.
        """

        if self.repository.categories.get(category_id) is None:
            raise NotFound(f"Category {category_id} not found.", domain=self.domain)

        detached_items = self.repository.items.clear_reference("category_id", category_id)
        detached_children = self.repository.categories.clear_reference("parent_id", category_id)
        try:
            deleted = self.repository.categories.delete(category_id)
        except BackendUnavailable:
            logger.error(
                "Deleting %s category %s failed after detaching %s item(s) and %s child categories",
                self.domain,
                category_id,
                detached_items,
                detached_children,
            )
            raise
        if not deleted:
            raise NotFound(f"Category {category_id} not found.", domain=self.domain)
        logger.info(
            "Deleted %s category %s (detached %s items, %s children)",
            self.domain,
            category_id,
            detached_items,
            detached_children,
        )

    # ---------- Items ----------
    def list_items(
        self,
        locale: str = DEFAULT_LOCALE,
        category_id: Optional[str] = None,
        *,
        raw: bool = False,
    ) -> List[Record]:
        filters = {"category_id": category_id} if category_id else None
        items = self.repository.items.list(filters)
        if raw:
            return items
        return [self._resolve_item(item, locale) for item in items]

    def get_item(self, item_id: str, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> Record:
        item = self.repository.items.get(item_id)
        if item is None:
            raise NotFound(f"Item {item_id} not found.", domain=self.domain)
        return item if raw else self._resolve_item(item, locale)

    def create_item(self, payload: Union[ItemCreate, Mapping[str, Any]]) -> Record:
        data = parse_payload(ItemCreate, payload)
        timestamp = utc_now()
        record = {
            "id": self.repository.items.new_id(),
            "name": dict(data.localized_names),
            "description": dict(data.localized_descriptions) if data.localized_descriptions else None,
            "price": data.price,
            "category_id": data.category_id,
            "image": data.image.model_dump() if data.image else None,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        created = self.repository.items.insert(record)
        logger.info("Created %s item %s", self.domain, created["id"])
        return self._envelope_item(created)

    def update_item(self, item_id: str, payload: Union[ItemUpdate, Mapping[str, Any]]) -> Record:
        data = parse_payload(ItemUpdate, payload)
        sent = data.model_fields_set

        def _build(current: Record) -> Record:
            fields: Record = {"updated_at": utc_now()}
            if data.localized_names:
                fields["name"] = merge_localized(current.get("name"), data.localized_names)
            if "localized_descriptions" in sent:
                fields["description"] = (
                    merge_localized(current.get("description"), data.localized_descriptions)
                    if data.localized_descriptions is not None
                    else None
                )
            if data.price is not None:
                fields["price"] = data.price
            if "category_id" in sent:
                fields["category_id"] = data.category_id
            if "image" in sent:
                fields["image"] = data.image.model_dump() if data.image else None
            return fields

        updated = self.repository.items.update(item_id, _build)
        if updated is None:
            raise NotFound(f"Item {item_id} not found.", domain=self.domain)
        return self._envelope_item(updated)

    def delete_item(self, item_id: str) -> None:
        if not self.repository.items.delete(item_id):
            raise NotFound(f"Item {item_id} not found.", domain=self.domain)
        logger.info("Deleted %s item %s", self.domain, item_id)

    def create(self, payload: Union[CategoryCreate, ItemCreate, Mapping[str, Any]]) -> Record:
        """Create a category or an item from a payload tagged with ``type``."""

        if isinstance(payload, (CategoryCreate, ItemCreate)):
            data = payload
        else:
            data = parse_payload(CatalogPayloadEnvelope, {"payload": payload}).payload
        if isinstance(data, CategoryCreate):
            return self.create_category(data)
        if isinstance(data, ItemCreate):
            return self.create_item(data)
        raise ValidationFailure(f"Unsupported payload type: {type(data).__name__}")

    # ---------- Helpers ----------
    def _require_category(self, category_id: str, *, field: str) -> Record:
        category = self.repository.categories.get(category_id)
        if category is None:
            raise ValidationFailure(f"{field} references unknown category {category_id}.", domain=self.domain)
        return category

    def _check_parent(self, category_id: str, parent_id: str) -> None:
        """Reject a parent that is the category itself or one of its descendants."""

        if parent_id == category_id:
            raise ValidationFailure("A category cannot be its own parent.", domain=self.domain)
        self._require_category(parent_id, field="parent_id")

        parents = {
            category["id"]: category.get("parent_id") for category in self.repository.categories.list()
        }
        seen = set()
        cursor: Optional[str] = parent_id
        while cursor and cursor not in seen:
            if cursor == category_id:
                raise ValidationFailure(
                    "A category cannot be moved under one of its descendants.", domain=self.domain
                )
            seen.add(cursor)
            cursor = parents.get(cursor)

    @staticmethod
    def _resolve_category(category: Record, locale: str) -> Record:
        return {
            "id": category["id"],
            "slug": category.get("slug"),
            "name": display_text(category.get("name"), locale),
            "description": (
                display_text(category["description"], locale) if category.get("description") else None
            ),
            "parent_id": category.get("parent_id"),
        }

    @staticmethod
    def _resolve_item(item: Record, locale: str) -> Record:
        return {
            "id": item["id"],
            "name": display_text(item.get("name"), locale),
            "description": display_text(item["description"], locale) if item.get("description") else None,
            "price": item.get("price"),
            "category_id": item.get("category_id"),
            "image": item.get("image"),
        }

    @staticmethod
    def _envelope_category(category: Record) -> Record:
        return {
            "id": category["id"],
            "slug": category.get("slug"),
            "name": representative_value(category.get("name")),
            "description": (
                representative_value(category["description"]) if category.get("description") else None
            ),
            "parent_id": category.get("parent_id"),
        }

    @staticmethod
    def _envelope_item(item: Record) -> Record:
        return {
            "id": item["id"],
            "name": representative_value(item.get("name")),
            "description": representative_value(item["description"]) if item.get("description") else None,
            "price": item.get("price"),
            "category_id": item.get("category_id"),
            "image": item.get("image"),
        }


__all__ = ["CatalogService", "utc_now"]
