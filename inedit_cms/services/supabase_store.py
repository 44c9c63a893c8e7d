"""Row-level access to the Supabase tables mirroring the content domains."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError

from inedit_cms.errors import BackendUnavailable, ConflictFailure

logger = logging.getLogger(__name__)
T = TypeVar("T")

UNIQUE_VIOLATION = "23505"


class SupabaseStore:
    """Insert/update/delete/select primitives over content tables.

    Reads go through the restricted client. Writes use the service-role
    client, which bypasses row level security because the only caller is the
    authenticated admin service layer.
    """

    def __init__(
        self,
        read_client: Any,
        write_client: Any,
        *,
        retries: int = 2,
        backoff_seconds: Sequence[float] = (0.2, 0.5, 1.0),
    ):
        if read_client is None or write_client is None:
            raise BackendUnavailable("Supabase client is not configured.")
        self.read_client = read_client
        self.write_client = write_client
        self.retries = retries
        self.backoff_seconds = tuple(backoff_seconds)

    # Reads -----------------------------------------------------------------

    def select(
        self,
        table: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order: Optional[Tuple[str, bool]] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Return the rows of ``table`` matching all equality ``filters``."""

        def _request() -> Any:
            query = self.read_client.table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order:
                column, desc = order
                query = query.order(column, desc=desc)
            return query.execute()

        response = self._call(_request, label=f"select:{table}", table=table)
        return list(response.data or [])

    def select_one(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters={"id": row_id})
        return rows[0] if rows else None

    def select_by_parent(self, table: str, parent_column: str, parent_id: str) -> List[Dict[str, Any]]:
        return self.select(table, filters={parent_column: parent_id}, order=("created_at", True))

    def slug_taken(self, table: str, slug: str, *, exclude_id: Optional[str] = None) -> bool:
        """Return True if another row of ``table`` already uses ``slug``."""

        def _request() -> Any:
            query = self.write_client.table(table).select("id").eq("slug", slug)
            if exclude_id:
                query = query.neq("id", exclude_id)
            return query.limit(1).execute()

        response = self._call(_request, label=f"slug_check:{table}", table=table)
        return bool(response.data)

    # Writes ----------------------------------------------------------------

    def insert(self, table: str, row: Mapping[str, Any], *, slug_column: Optional[str] = None) -> Dict[str, Any]:
        """Insert ``row`` and return the stored representation.

        With ``slug_column`` set, a separate uniqueness query runs first. The
        check and the insert are not atomic; a unique index on the column
        turns the remaining race into a :class:`ConflictFailure` as well.
        """

        if slug_column and self.slug_taken(table, row[slug_column]):
            raise ConflictFailure(f"Slug {row[slug_column]!r} already exists in {table}.", domain=table)

        def _request() -> Any:
            return self.write_client.table(table).insert(dict(row)).execute()

        response = self._call(_request, label=f"insert:{table}", table=table)
        if not response.data:
            raise BackendUnavailable(f"Insert into {table} returned no row.", domain=table)
        return response.data[0]

    def update(self, table: str, row_id: str, fields: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Write only the given columns. Returns ``None`` when no row matched."""

        def _request() -> Any:
            return self.write_client.table(table).update(dict(fields)).eq("id", row_id).execute()

        response = self._call(_request, label=f"update:{table}", table=table)
        return response.data[0] if response.data else None

    def delete(self, table: str, row_id: str) -> bool:
        """Delete one row. Returns ``False`` when it did not exist."""

        def _request() -> Any:
            return self.write_client.table(table).delete().eq("id", row_id).execute()

        response = self._call(_request, label=f"delete:{table}", table=table)
        return bool(response.data)

    def delete_where(self, table: str, column: str, value: Any) -> int:
        def _request() -> Any:
            return self.write_client.table(table).delete().eq(column, value).execute()

        response = self._call(_request, label=f"delete_where:{table}", table=table)
        return len(response.data or [])

    def clear_reference(self, table: str, column: str, value: Any) -> int:
        """Set ``column`` to null on every row pointing at ``value``."""

        def _request() -> Any:
            return self.write_client.table(table).update({column: None}).eq(column, value).execute()

        response = self._call(_request, label=f"detach:{table}.{column}", table=table)
        return len(response.data or [])

    def upsert(self, table: str, rows: Sequence[Mapping[str, Any]], *, on_conflict: str) -> List[Dict[str, Any]]:
        if not rows:
            return []

        def _request() -> Any:
            return (
                self.write_client.table(table)
                .upsert([dict(row) for row in rows], on_conflict=on_conflict)
                .execute()
            )

        response = self._call(_request, label=f"upsert:{table}", table=table)
        return list(response.data or [])

    # Plumbing --------------------------------------------------------------

    def _call(self, operation: Callable[[], T], *, label: str, table: str) -> T:
        """Run a Supabase call with a short retry/backoff on transport errors."""

        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            start = time.monotonic()
            try:
                result = operation()
            except PostgrestAPIError as exc:
                if str(getattr(exc, "code", "")) == UNIQUE_VIOLATION:
                    logger.warning("Supabase unique violation", extra={"label": label, "error": exc.message})
                    raise ConflictFailure("Duplicate value for a unique column.", domain=table) from exc
                logger.error("%s failed (%s): %s", label, getattr(exc, "code", None), exc.message)
                raise BackendUnavailable("Supabase request failed.", domain=table) from exc
            except HttpxError as exc:
                duration_ms = (time.monotonic() - start) * 1000
                logger.warning(
                    "Supabase call failed",
                    extra={
                        "label": label,
                        "attempt": attempt,
                        "duration_ms": round(duration_ms, 2),
                        "error": str(exc),
                    },
                )
                if attempt >= attempts:
                    raise BackendUnavailable("Supabase unreachable.", domain=table) from exc
                delay = self.backoff_seconds[min(attempt - 1, len(self.backoff_seconds) - 1)]
                time.sleep(delay)
                continue
            duration_ms = (time.monotonic() - start) * 1000
            logger.debug(
                "Supabase call succeeded",
                extra={"label": label, "duration_ms": round(duration_ms, 2)},
            )
            return result
        raise BackendUnavailable("Supabase unreachable.", domain=table)


__all__ = ["SupabaseStore", "UNIQUE_VIOLATION"]
