"""One-shot copy of the flat-file content into the Supabase tables.

Run with ``python -m inedit_cms.services.migration``. Every record gets a new
UUID; category references are rewritten through an old-to-new id map. A
failing insert is logged and counted, and the run carries on.
"""

from __future__ import annotations

import argparse
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from inedit_cms.config.content import CONTENT_DATA_DIR
from inedit_cms.errors import ContentError
from inedit_cms.services.file_store import FileStore
from inedit_cms.services.repositories import (
    CATALOG_TABLE_PREFIX,
    image_to_columns,
    normalize_category,
    normalize_gallery_image,
    normalize_item,
    normalize_page,
    normalize_settings,
    upgrade_pages_document,
)
from inedit_cms.services.registry import default_supabase_store
from inedit_cms.services.supabase_store import SupabaseStore

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


@dataclass
class MigrationReport:
    migrated: Counter = field(default_factory=Counter)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        lines = [f"Migration finished in {self.duration_seconds:.2f}s"]
        for entity, count in sorted(self.migrated.items()):
            lines.append(f"  {entity}: {count}")
        lines.append(f"  skipped: {len(self.skipped)}")
        lines.append(f"  failed: {len(self.failed)}")
        return "\n".join(lines)


def _row(record: Mapping[str, Any], **overrides: Any) -> Dict[str, Any]:
    """Build an insert row, letting the database default missing timestamps."""

    row = {**record, **overrides}
    for column in TIMESTAMP_COLUMNS:
        if not row.get(column):
            row.pop(column, None)
    return row


class MigrationRunner:
    def __init__(self, file_store: FileStore, supabase_store: SupabaseStore):
        self.file_store = file_store
        self.supabase_store = supabase_store

    def run(self) -> MigrationReport:
        report = MigrationReport()
        start = time.monotonic()
        logger.info("Starting content migration from %s", self.file_store.data_dir)

        for domain in ("menu", "beverages"):
            self._migrate_catalog(domain, report)
        self._migrate_gallery(report)
        self._migrate_pages(report)
        self._migrate_settings(report)
        self._migrate_translations(report)

        report.duration_seconds = time.monotonic() - start
        logger.info(report.summary())
        return report

    # ---------- Catalog ----------
    def _migrate_catalog(self, domain: str, report: MigrationReport) -> None:
        document = self._load(domain, report)
        if document is None:
            return
        prefix = CATALOG_TABLE_PREFIX[domain]
        categories_table = f"{prefix}_categories"
        items_table = f"{prefix}_items"

        categories = [normalize_category(entry) for entry in document.get("categories") or []]
        id_map: Dict[str, str] = {}
        for category in categories:
            new_id = str(uuid4())
            row = _row(category, id=new_id, parent_id=None)
            if self._insert(categories_table, row, report, label=f"{domain} category {category['id']}"):
                id_map[str(category["id"])] = new_id

        # Parents are attached once every category exists so insert order does not matter.
        for category in categories:
            old_parent = category.get("parent_id")
            new_id = id_map.get(str(category["id"]))
            if not old_parent or new_id is None:
                continue
            new_parent = id_map.get(str(old_parent))
            if new_parent is None:
                logger.warning(
                    "%s category %s references unknown parent %s; left at top level",
                    domain,
                    category["id"],
                    old_parent,
                )
                continue
            try:
                self.supabase_store.update(categories_table, new_id, {"parent_id": new_parent})
            except ContentError as exc:
                logger.error("Failed to attach %s category %s to its parent: %s", domain, category["id"], exc)
                report.failed.append(f"{domain} category {category['id']} parent")

        for entry in document.get("items") or []:
            item = normalize_item(entry)
            old_category = item.get("category_id")
            new_category: Optional[str] = None
            if old_category:
                new_category = id_map.get(str(old_category))
                if new_category is None:
                    logger.error(
                        "%s item %s references unknown category %s; skipped", domain, item["id"], old_category
                    )
                    report.skipped.append(f"{domain} item {item['id']}")
                    continue
            row = image_to_columns(_row(item, id=str(uuid4()), category_id=new_category))
            self._insert(items_table, row, report, label=f"{domain} item {item['id']}")

    # ---------- Other domains ----------
    def _migrate_gallery(self, report: MigrationReport) -> None:
        document = self._load("gallery", report)
        if document is None:
            return
        for entry in document.get("images") or []:
            image = normalize_gallery_image(entry)
            if not image.get("image"):
                logger.error("Gallery image %s has no URL; skipped", image.get("id"))
                report.skipped.append(f"gallery image {image.get('id')}")
                continue
            row = image_to_columns(_row(image, id=str(uuid4())))
            self._insert("gallery_images", row, report, label=f"gallery image {image.get('id')}")

    def _migrate_pages(self, report: MigrationReport) -> None:
        document = self._load("pages", report)
        if document is None:
            return
        document = upgrade_pages_document(document)
        for entry in document.get("pages") or []:
            page = normalize_page(entry)
            if not page.get("slug"):
                logger.error("Page %s has no slug; skipped", page.get("id"))
                report.skipped.append(f"page {page.get('id')}")
                continue
            self._insert("pages", _row(page, id=str(uuid4())), report, label=f"page {page['slug']}")

    def _migrate_settings(self, report: MigrationReport) -> None:
        document = self._load("settings", report)
        if document is None:
            return
        settings = normalize_settings(document)
        self._insert("settings", {**settings, "id": str(uuid4())}, report, label="settings")

    def _migrate_translations(self, report: MigrationReport) -> None:
        locales = self.file_store.list_documents("translations")
        if not locales:
            logger.warning("No translation documents found; skipping translations")
            return
        for locale in locales:
            document = self._load(f"translations/{locale}", report)
            if not document:
                continue
            rows = [{"locale": locale, "key": str(key), "value": str(value)} for key, value in document.items()]
            try:
                self.supabase_store.upsert("translations", rows, on_conflict="locale,key")
            except ContentError as exc:
                logger.error("Failed to migrate %s translations: %s", locale, exc)
                report.failed.append(f"translations {locale}")
                continue
            report.migrated["translations"] += len(rows)

    # ---------- Helpers ----------
    def _load(self, domain: str, report: MigrationReport) -> Optional[Dict[str, Any]]:
        try:
            document = self.file_store.read(domain)
        except ContentError as exc:
            logger.error("Cannot read %s: %s", domain, exc)
            report.failed.append(f"document {domain}")
            return None
        if document is None:
            logger.warning("Document %s not found; skipping", domain)
            return None
        if not isinstance(document, dict):
            logger.error("Document %s has an unexpected shape; skipping", domain)
            report.failed.append(f"document {domain}")
            return None
        return document

    def _insert(self, table: str, row: Dict[str, Any], report: MigrationReport, *, label: str) -> bool:
        try:
            self.supabase_store.insert(table, row)
        except ContentError as exc:
            logger.error("Failed to insert %s: %s", label, exc)
            report.failed.append(label)
            return False
        report.migrated[table] += 1
        return True


def main(
    argv: Optional[List[str]] = None,
    store_factory: Optional[Callable[[], SupabaseStore]] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Copy the JSON content documents into Supabase")
    parser.add_argument("--data-dir", type=Path, default=CONTENT_DATA_DIR, help="Directory holding the JSON documents")
    parser.add_argument("--verbose", action="store_true", help="Log every Supabase call")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        supabase_store = (store_factory or default_supabase_store)()
    except ContentError as exc:
        logger.error("Supabase is not configured: %s", exc)
        return 2

    report = MigrationRunner(FileStore(args.data_dir), supabase_store).run()
    print(report.summary())
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
