"""Record collections over the two persistence backends.

Every domain service talks to a :class:`Collection` (or to the settings and
translations repositories below); which backend sits behind it is decided
once, when the service is built.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from inedit_cms.errors import BackendUnavailable, ConflictFailure
from inedit_cms.services.file_store import FileStore, new_token
from inedit_cms.services.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
FieldsBuilder = Callable[[Record], Record]
RowMapper = Callable[[Mapping[str, Any]], Record]


def _identity(value: Mapping[str, Any]) -> Record:
    return dict(value)


def newest_first(records: List[Record]) -> List[Record]:
    """Order records by ``created_at`` descending, undated ones first, as the tables do."""

    return sorted(
        records,
        key=lambda record: (record.get("created_at") is None, record.get("created_at") or ""),
        reverse=True,
    )


class Collection(ABC):
    """One family of records (e.g. menu categories) with optional unique slugs."""

    slug_field: Optional[str] = None

    @abstractmethod
    def new_id(self) -> str: ...

    @abstractmethod
    def list(self, filters: Optional[Mapping[str, Any]] = None) -> List[Record]: ...

    @abstractmethod
    def get(self, record_id: str) -> Optional[Record]: ...

    @abstractmethod
    def insert(self, record: Record) -> Record:
        """Persist a new record; raises ConflictFailure on a slug collision."""

    @abstractmethod
    def update(self, record_id: str, build_fields: FieldsBuilder) -> Optional[Record]:
        """Apply ``build_fields(current)`` to the stored record.

        Returns ``None`` when the record does not exist.
        """

    @abstractmethod
    def delete(self, record_id: str) -> bool: ...

    @abstractmethod
    def clear_reference(self, field: str, value: str) -> int:
        """Null ``field`` on every record pointing at ``value``."""

    def find_by_slug(self, slug: str) -> Optional[Record]:
        for record in self.list():
            if record.get(self.slug_field or "slug") == slug:
                return record
        return None


# ---------- Flat-file backend ----------
class FileCollection(Collection):
    """Records kept in a list under ``key`` of one JSON document."""

    def __init__(
        self,
        store: FileStore,
        domain: str,
        key: str,
        *,
        id_prefix: str,
        default_document: Callable[[], Dict[str, Any]],
        slug_field: Optional[str] = None,
        normalize: RowMapper = _identity,
        upgrade: Optional[Callable[[Any], Dict[str, Any]]] = None,
    ):
        self.store = store
        self.domain = domain
        self.key = key
        self.id_prefix = id_prefix
        self.default_document = default_document
        self.slug_field = slug_field
        self.normalize = normalize
        self.upgrade = upgrade

    def new_id(self) -> str:
        return new_token(self.id_prefix)

    def list(self, filters: Optional[Mapping[str, Any]] = None) -> List[Record]:
        document = self.store.read(self.domain)
        if document is None:
            return []
        records = newest_first([self.normalize(entry) for entry in self._entries(document)])
        if not filters:
            return records
        return [
            record
            for record in records
            if all(record.get(field) == value for field, value in filters.items())
        ]

    def get(self, record_id: str) -> Optional[Record]:
        for record in self.list():
            if record.get("id") == record_id:
                return record
        return None

    def insert(self, record: Record) -> Record:
        with self.store.transaction(self.domain, self.default_document) as document:
            entries = self._entries(document)
            self._ensure_slug_free(entries, record.get(self.slug_field) if self.slug_field else None)
            entries.append(dict(record))
        return dict(record)

    def update(self, record_id: str, build_fields: FieldsBuilder) -> Optional[Record]:
        with self.store.lock_for(self.domain):
            document = self.store.read(self.domain)
            if document is None or self._index_of(self._entries(document), record_id) is None:
                return None
            with self.store.transaction(self.domain) as document:
                entries = self._entries(document)
                index = self._index_of(entries, record_id)
                current = self.normalize(entries[index])
                fields = build_fields(current)
                if self.slug_field and self.slug_field in fields:
                    self._ensure_slug_free(entries, fields[self.slug_field], exclude_id=record_id)
                updated = {**current, **fields, "id": record_id}
                entries[index] = updated
        return dict(updated)

    def delete(self, record_id: str) -> bool:
        with self.store.lock_for(self.domain):
            document = self.store.read(self.domain)
            if document is None or self._index_of(self._entries(document), record_id) is None:
                return False
            with self.store.transaction(self.domain) as document:
                entries = self._entries(document)
                index = self._index_of(entries, record_id)
                del entries[index]
        return True

    def clear_reference(self, field: str, value: str) -> int:
        with self.store.lock_for(self.domain):
            if self.store.read(self.domain) is None:
                return 0
            with self.store.transaction(self.domain) as document:
                entries = self._entries(document)
                cleared = 0
                for index, entry in enumerate(entries):
                    record = self.normalize(entry)
                    if record.get(field) == value:
                        record[field] = None
                        entries[index] = record
                        cleared += 1
        return cleared

    def _entries(self, document: Any) -> List[Record]:
        if self.upgrade is not None:
            upgraded = self.upgrade(document)
            if upgraded is not document and isinstance(document, dict):
                document.clear()
                document.update(upgraded)
        if not isinstance(document, dict):
            raise BackendUnavailable(f"Document {self.domain} has an unexpected shape.", domain=self.domain)
        entries = document.setdefault(self.key, [])
        if not isinstance(entries, list):
            raise BackendUnavailable(f"Document {self.domain} has an unexpected shape.", domain=self.domain)
        return entries

    def _ensure_slug_free(self, entries: List[Record], slug: Optional[str], *, exclude_id: Optional[str] = None) -> None:
        if not slug:
            return
        for entry in entries:
            if entry.get(self.slug_field) == slug and entry.get("id") != exclude_id:
                raise ConflictFailure(f"Slug {slug!r} already exists.", domain=self.domain)

    @staticmethod
    def _index_of(entries: List[Record], record_id: str) -> Optional[int]:
        for index, entry in enumerate(entries):
            if entry.get("id") == record_id:
                return index
        return None


# ---------- Relational backend ----------
class SupabaseCollection(Collection):
    """Records kept as rows of one Supabase table."""

    def __init__(
        self,
        store: SupabaseStore,
        table: str,
        *,
        slug_field: Optional[str] = None,
        from_row: RowMapper = _identity,
        to_row: RowMapper = _identity,
    ):
        self.store = store
        self.table = table
        self.slug_field = slug_field
        self.from_row = from_row
        self.to_row = to_row

    def new_id(self) -> str:
        return str(uuid4())

    def list(self, filters: Optional[Mapping[str, Any]] = None) -> List[Record]:
        if filters and len(filters) == 1:
            ((column, value),) = filters.items()
            rows = self.store.select_by_parent(self.table, column, value)
        else:
            rows = self.store.select(self.table, filters=filters, order=("created_at", True))
        return [self.from_row(row) for row in rows]

    def get(self, record_id: str) -> Optional[Record]:
        row = self.store.select_one(self.table, record_id)
        return self.from_row(row) if row else None

    def find_by_slug(self, slug: str) -> Optional[Record]:
        rows = self.store.select(self.table, filters={self.slug_field or "slug": slug})
        return self.from_row(rows[0]) if rows else None

    def insert(self, record: Record) -> Record:
        row = self.store.insert(self.table, self.to_row(record), slug_column=self.slug_field)
        return self.from_row(row)

    def update(self, record_id: str, build_fields: FieldsBuilder) -> Optional[Record]:
        current = self.get(record_id)
        if current is None:
            return None
        fields = build_fields(current)
        if self.slug_field and fields.get(self.slug_field):
            if self.store.slug_taken(self.table, fields[self.slug_field], exclude_id=record_id):
                raise ConflictFailure(
                    f"Slug {fields[self.slug_field]!r} already exists in {self.table}.", domain=self.table
                )
        row = self.store.update(self.table, record_id, self.to_row(fields))
        return self.from_row(row) if row else None

    def delete(self, record_id: str) -> bool:
        return self.store.delete(self.table, record_id)

    def clear_reference(self, field: str, value: str) -> int:
        return self.store.clear_reference(self.table, field, value)


# ---------- Catalog records ----------
def normalize_category(entry: Mapping[str, Any]) -> Record:
    return {
        "id": entry.get("id"),
        "slug": entry.get("slug") or entry.get("id"),
        "name": entry.get("name") or {},
        "description": entry.get("description") or None,
        "parent_id": entry.get("parent_id") or entry.get("parentId") or None,
        "created_at": entry.get("created_at"),
        "updated_at": entry.get("updated_at"),
    }


def normalize_image(value: Any) -> Optional[Dict[str, Any]]:
    if not value:
        return None
    if isinstance(value, str):
        return {"url": value, "width": None, "height": None}
    if isinstance(value, Mapping) and value.get("url"):
        return {"url": value["url"], "width": value.get("width"), "height": value.get("height")}
    return None


def normalize_item(entry: Mapping[str, Any]) -> Record:
    return {
        "id": entry.get("id"),
        "name": entry.get("name") or {},
        "description": entry.get("description") or None,
        "price": str(entry.get("price")) if entry.get("price") is not None else "",
        "category_id": entry.get("category_id") or entry.get("categoryId") or None,
        "image": normalize_image(entry.get("image")),
        "created_at": entry.get("created_at"),
        "updated_at": entry.get("updated_at"),
    }


def image_to_columns(record: Mapping[str, Any]) -> Record:
    """Flatten ``image`` into the ``image_url/width/height`` columns."""

    row = {key: value for key, value in record.items() if key != "image"}
    if "image" not in record:
        return row
    image = record.get("image") or {}
    row["image_url"] = image.get("url")
    row["image_width"] = image.get("width")
    row["image_height"] = image.get("height")
    return row


def image_from_columns(row: Mapping[str, Any]) -> Record:
    record = {key: value for key, value in row.items() if not key.startswith("image_")}
    record["image"] = (
        {"url": row["image_url"], "width": row.get("image_width"), "height": row.get("image_height")}
        if row.get("image_url")
        else None
    )
    return record


@dataclass
class CatalogRepository:
    """Categories and items of one catalog domain (menu or beverages)."""

    domain: str
    categories: Collection
    items: Collection


CATALOG_TABLE_PREFIX = {"menu": "menu", "beverages": "beverage"}


def _catalog_document() -> Dict[str, Any]:
    return {"categories": [], "items": []}


def file_catalog(store: FileStore, domain: str) -> CatalogRepository:
    return CatalogRepository(
        domain=domain,
        categories=FileCollection(
            store,
            domain,
            "categories",
            id_prefix="category",
            default_document=_catalog_document,
            slug_field="slug",
            normalize=normalize_category,
        ),
        items=FileCollection(
            store,
            domain,
            "items",
            id_prefix="beverage" if domain == "beverages" else "dish",
            default_document=_catalog_document,
            normalize=normalize_item,
        ),
    )


def supabase_catalog(store: SupabaseStore, domain: str) -> CatalogRepository:
    prefix = CATALOG_TABLE_PREFIX[domain]
    return CatalogRepository(
        domain=domain,
        categories=SupabaseCollection(
            store,
            f"{prefix}_categories",
            slug_field="slug",
            from_row=normalize_category,
        ),
        items=SupabaseCollection(
            store,
            f"{prefix}_items",
            from_row=lambda row: normalize_item(image_from_columns(row)),
            to_row=image_to_columns,
        ),
    )


# ---------- Pages & gallery ----------
def upgrade_pages_document(document: Any) -> Any:
    """Accept the legacy layout where pages are keyed by slug."""

    if isinstance(document, dict) and "pages" not in document:
        pages = []
        for slug, page in document.items():
            if isinstance(page, dict):
                pages.append({"slug": slug, **page})
        return {"pages": pages}
    return document


def normalize_page(entry: Mapping[str, Any]) -> Record:
    seo = entry.get("seo")
    return {
        "id": entry.get("id"),
        "slug": entry.get("slug"),
        "title": entry.get("title") or {},
        "content": entry.get("content") or {},
        "seo": (
            {
                "title": seo.get("title"),
                "description": seo.get("description"),
                "keywords": list(seo.get("keywords") or []),
            }
            if isinstance(seo, Mapping)
            else None
        ),
        "created_at": entry.get("created_at"),
        "updated_at": entry.get("updated_at"),
    }


def normalize_gallery_image(entry: Mapping[str, Any]) -> Record:
    return {
        "id": entry.get("id"),
        "title": entry.get("title") or {},
        "description": entry.get("description") or None,
        "image": normalize_image(entry.get("image")),
        "created_at": entry.get("created_at"),
        "updated_at": entry.get("updated_at"),
    }


def file_pages(store: FileStore) -> Collection:
    return FileCollection(
        store,
        "pages",
        "pages",
        id_prefix="page",
        default_document=lambda: {"pages": []},
        slug_field="slug",
        normalize=normalize_page,
        upgrade=upgrade_pages_document,
    )


def supabase_pages(store: SupabaseStore) -> Collection:
    return SupabaseCollection(store, "pages", slug_field="slug", from_row=normalize_page)


def file_gallery(store: FileStore) -> Collection:
    return FileCollection(
        store,
        "gallery",
        "images",
        id_prefix="image",
        default_document=lambda: {"images": []},
        normalize=normalize_gallery_image,
    )


def supabase_gallery(store: SupabaseStore) -> Collection:
    return SupabaseCollection(
        store,
        "gallery_images",
        from_row=lambda row: normalize_gallery_image(image_from_columns(row)),
        to_row=image_to_columns,
    )


# ---------- Settings ----------
def normalize_settings(entry: Mapping[str, Any]) -> Record:
    contact = entry.get("contact_info") or entry.get("contactInfo") or {}
    return {
        "id": entry.get("id"),
        "name": entry.get("name") or {},
        "description": entry.get("description") or None,
        "contact_info": {
            "address": contact.get("address") or {},
            "phone": contact.get("phone") or "",
            "email": contact.get("email") or "",
        },
        "opening_hours": [
            {
                "day": hours.get("day"),
                "open": hours.get("open") or "",
                "close": hours.get("close") or "",
                "closed": bool(hours.get("closed", False)),
            }
            for hours in (entry.get("opening_hours") or entry.get("openingHours") or [])
        ],
        "social_media": [
            {"platform": link.get("platform"), "url": link.get("url")}
            for link in (entry.get("social_media") or entry.get("socialMedia") or [])
        ],
    }


class SettingsRepository(ABC):
    """The singleton settings record."""

    @abstractmethod
    def get(self) -> Optional[Record]: ...

    @abstractmethod
    def save(self, build_fields: FieldsBuilder, *, initial: Callable[[], Record]) -> Record:
        """Apply ``build_fields`` to the stored record, creating it from ``initial`` when absent."""


class FileSettingsRepository(SettingsRepository):
    def __init__(self, store: FileStore):
        self.store = store

    def get(self) -> Optional[Record]:
        document = self.store.read("settings")
        return normalize_settings(document) if isinstance(document, Mapping) else None

    def save(self, build_fields: FieldsBuilder, *, initial: Callable[[], Record]) -> Record:
        with self.store.transaction("settings", initial) as document:
            current = normalize_settings(document)
            if not current.get("id"):
                current["id"] = new_token("settings")
            updated = {**current, **build_fields(current)}
            document.clear()
            document.update(updated)
        return dict(updated)


class SupabaseSettingsRepository(SettingsRepository):
    table = "settings"

    def __init__(self, store: SupabaseStore):
        self.store = store

    def get(self) -> Optional[Record]:
        rows = self.store.select(self.table)
        return normalize_settings(rows[0]) if rows else None

    def save(self, build_fields: FieldsBuilder, *, initial: Callable[[], Record]) -> Record:
        current = self.get()
        if current is None:
            seed = normalize_settings(initial())
            seed["id"] = str(uuid4())
            row = self.store.insert(self.table, {**seed, **build_fields(seed)})
            return normalize_settings(row)
        row = self.store.update(self.table, current["id"], build_fields(current))
        if row is None:
            raise BackendUnavailable("Settings disappeared during update.", domain="settings")
        return normalize_settings(row)


# ---------- Translations ----------
class TranslationsRepository(ABC):
    """Flat key/value dictionaries, one per locale."""

    @abstractmethod
    def get(self, locale: str) -> Optional[Dict[str, str]]:
        """Return the dictionary of ``locale``; ``None`` when the locale has none."""

    @abstractmethod
    def upsert(self, locale: str, entries: Mapping[str, str]) -> int: ...

    @abstractmethod
    def delete_key(self, key: str) -> int: ...

    @abstractmethod
    def locales(self) -> List[str]: ...


class FileTranslationsRepository(TranslationsRepository):
    folder = "translations"

    def __init__(self, store: FileStore):
        self.store = store

    def _domain(self, locale: str) -> str:
        return f"{self.folder}/{locale}"

    def get(self, locale: str) -> Optional[Dict[str, str]]:
        document = self.store.read(self._domain(locale))
        if not isinstance(document, Mapping) or not document:
            return None
        return {str(key): str(value) for key, value in document.items()}

    def upsert(self, locale: str, entries: Mapping[str, str]) -> int:
        with self.store.transaction(self._domain(locale), dict) as document:
            for key, value in entries.items():
                document[key] = value
        return len(entries)

    def delete_key(self, key: str) -> int:
        removed = 0
        for locale in self.locales():
            domain = self._domain(locale)
            with self.store.lock_for(domain):
                document = self.store.read(domain)
                if not isinstance(document, dict) or key not in document:
                    continue
                with self.store.transaction(domain) as current:
                    current.pop(key, None)
                removed += 1
        return removed

    def locales(self) -> List[str]:
        return self.store.list_documents(self.folder)


class SupabaseTranslationsRepository(TranslationsRepository):
    table = "translations"

    def __init__(self, store: SupabaseStore, now: Callable[[], str]):
        self.store = store
        self.now = now

    def get(self, locale: str) -> Optional[Dict[str, str]]:
        rows = self.store.select(self.table, filters={"locale": locale}, columns="key,value")
        if not rows:
            return None
        return {row["key"]: row["value"] for row in rows}

    def upsert(self, locale: str, entries: Mapping[str, str]) -> int:
        timestamp = self.now()
        rows = [
            {"locale": locale, "key": key, "value": value, "updated_at": timestamp}
            for key, value in entries.items()
        ]
        self.store.upsert(self.table, rows, on_conflict="locale,key")
        return len(rows)

    def delete_key(self, key: str) -> int:
        return self.store.delete_where(self.table, "key", key)

    def locales(self) -> List[str]:
        rows = self.store.select(self.table, columns="locale")
        return sorted({row["locale"] for row in rows if row.get("locale")})


__all__ = [
    "CatalogRepository",
    "Collection",
    "FileCollection",
    "FileSettingsRepository",
    "FileTranslationsRepository",
    "SettingsRepository",
    "SupabaseCollection",
    "SupabaseSettingsRepository",
    "SupabaseTranslationsRepository",
    "TranslationsRepository",
    "file_catalog",
    "file_gallery",
    "file_pages",
    "newest_first",
    "normalize_category",
    "normalize_item",
    "normalize_page",
    "normalize_settings",
    "supabase_catalog",
    "supabase_gallery",
    "supabase_pages",
]
