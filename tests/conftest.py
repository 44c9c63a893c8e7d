import copy
import types
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

import pytest
from postgrest import APIError as PostgrestAPIError

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

UNIQUE_COLUMNS = {
    "menu_categories": (("slug",),),
    "beverage_categories": (("slug",),),
    "pages": (("slug",),),
    "translations": (("locale", "key"),),
}


class FakeQuery:
    """Chainable stand-in for the postgrest request builder."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table = table
        self.operation: Optional[str] = None
        self.payload: Any = None
        self.columns = "*"
        self.filters: List[Tuple[str, str, Any]] = []
        self.ordering: Optional[Tuple[str, bool]] = None
        self.row_limit: Optional[int] = None
        self.on_conflict: Optional[str] = None

    def select(self, columns: str = "*"):
        self.operation = "select"
        self.columns = columns
        return self

    def insert(self, payload: Any):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: Dict[str, Any]):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def upsert(self, payload: Any, on_conflict: str = ""):
        self.operation = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(("eq", column, value))
        return self

    def neq(self, column: str, value: Any):
        self.filters.append(("neq", column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self.ordering = (column, desc)
        return self

    def limit(self, count: int):
        self.row_limit = count
        return self

    def execute(self):
        self.client.calls.append((self.operation, self.table))
        failure = self.client.pop_failure(self.table, self.operation)
        if failure is not None:
            raise failure
        handler = getattr(self, f"_run_{self.operation}")
        return types.SimpleNamespace(data=handler())

    # ---- operations ----
    def _matches(self, row: Dict[str, Any]) -> bool:
        for kind, column, value in self.filters:
            if kind == "eq" and row.get(column) != value:
                return False
            if kind == "neq" and row.get(column) == value:
                return False
        return True

    def _rows(self) -> List[Dict[str, Any]]:
        return self.client.tables.setdefault(self.table, [])

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [column.strip() for column in self.columns.split(",")]
        return {column: copy.deepcopy(row.get(column)) for column in wanted}

    def _run_select(self) -> List[Dict[str, Any]]:
        rows = [row for row in self._rows() if self._matches(row)]
        if self.ordering:
            column, desc = self.ordering
            rows.sort(key=lambda row: (row.get(column) is None, row.get(column) or ""), reverse=desc)
        if self.row_limit is not None:
            rows = rows[: self.row_limit]
        return [self._project(row) for row in rows]

    def _run_insert(self) -> List[Dict[str, Any]]:
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = []
        for row in payload:
            stored = copy.deepcopy(row)
            stored.setdefault("id", str(uuid4()))
            stored.setdefault("created_at", utc_now())
            self.client.check_unique(self.table, stored)
            self._rows().append(stored)
            inserted.append(copy.deepcopy(stored))
        return inserted

    def _run_update(self) -> List[Dict[str, Any]]:
        updated = []
        for row in self._rows():
            if self._matches(row):
                candidate = {**row, **copy.deepcopy(self.payload)}
                self.client.check_unique(self.table, candidate, exclude=row)
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
        return updated

    def _run_delete(self) -> List[Dict[str, Any]]:
        rows = self._rows()
        removed = [row for row in rows if self._matches(row)]
        self.client.tables[self.table] = [row for row in rows if not self._matches(row)]
        return copy.deepcopy(removed)

    def _run_upsert(self) -> List[Dict[str, Any]]:
        keys = [column.strip() for column in (self.on_conflict or "id").split(",")]
        written = []
        for row in self.payload:
            existing = next(
                (stored for stored in self._rows() if all(stored.get(key) == row.get(key) for key in keys)),
                None,
            )
            if existing is None:
                existing = {"id": str(uuid4()), **copy.deepcopy(row)}
                self._rows().append(existing)
            else:
                existing.update(copy.deepcopy(row))
            written.append(copy.deepcopy(existing))
        return written


class FakeSupabaseClient:
    """In-memory tables behind the subset of the supabase client the store uses."""

    def __init__(self, unique: Optional[Dict[str, Tuple[Tuple[str, ...], ...]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.unique = UNIQUE_COLUMNS if unique is None else unique
        self.failures: Dict[Tuple[str, str], List[Exception]] = {}
        self.calls: List[Tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, operation: str, exc: Exception, times: int = 1) -> None:
        self.failures.setdefault((table, operation), []).extend([exc] * times)

    def pop_failure(self, table: str, operation: Optional[str]) -> Optional[Exception]:
        queue = self.failures.get((table, operation or ""))
        if queue:
            return queue.pop(0)
        return None

    def check_unique(self, table: str, row: Dict[str, Any], exclude: Optional[Dict[str, Any]] = None) -> None:
        for columns in self.unique.get(table, ()):
            values = tuple(row.get(column) for column in columns)
            if any(value is None for value in values):
                continue
            for stored in self.tables.get(table, []):
                if stored is exclude:
                    continue
                if tuple(stored.get(column) for column in columns) == values:
                    raise PostgrestAPIError(
                        {
                            "message": f"duplicate key value violates unique constraint on {table}",
                            "code": "23505",
                            "hint": None,
                            "details": None,
                        }
                    )


@pytest.fixture
def file_store(tmp_path):
    return FileStore(tmp_path / "data")


@pytest.fixture
def fake_supabase():
    return FakeSupabaseClient()


@pytest.fixture
def supabase_store(fake_supabase):
    return SupabaseStore(fake_supabase, fake_supabase, retries=1, backoff_seconds=(0,))


@pytest.fixture(params=["file", "supabase"])
def backend(request):
    return request.param


@pytest.fixture
def catalog_service(backend, file_store, supabase_store):
    if backend == "file":
        return CatalogService(file_catalog(file_store, "beverages"))
    return CatalogService(supabase_catalog(supabase_store, "beverages"))


@pytest.fixture
def pages_service(backend, file_store, supabase_store):
    if backend == "file":
        return PagesService(file_pages(file_store))
    return PagesService(supabase_pages(supabase_store))


@pytest.fixture
def gallery_service(backend, file_store, supabase_store):
    if backend == "file":
        return GalleryService(file_gallery(file_store))
    return GalleryService(supabase_gallery(supabase_store))


@pytest.fixture
def settings_service(backend, file_store, supabase_store):
    if backend == "file":
        return SettingsService(FileSettingsRepository(file_store))
    return SettingsService(SupabaseSettingsRepository(supabase_store))


@pytest.fixture
def translations_service(backend, file_store, supabase_store):
    if backend == "file":
        return TranslationsService(FileTranslationsRepository(file_store))
    return TranslationsService(SupabaseTranslationsRepository(supabase_store, utc_now))
