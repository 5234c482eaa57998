"""
Narrow data-store interface the services are written against.

Every call is scoped to the caller through row-level security, so a mutation the
caller may not perform affects zero rows instead of raising. Callers check for an
empty result and raise PermissionDenied themselves.
"""

from supabase import Client, PostgrestAPIError
from typing import Any, Dict, List, Mapping, Optional, Protocol
import logging

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Filters = Mapping[str, Any]

UNIQUE_VIOLATION = "23505"


class StoreError(Exception):
    """A data-store call failed (network, constraint, policy)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION


class DataStore(Protocol):
    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        columns: str = "*",
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Row]: ...

    def insert(self, table: str, row: Row) -> Row: ...

    def update(self, table: str, filters: Filters, patch: Row) -> List[Row]: ...

    def delete(self, table: str, filters: Filters) -> List[Row]: ...

    def upsert(
        self, table: str, row: Row, on_conflict: str, ignore_duplicates: bool = False
    ) -> Optional[Row]: ...

    def rpc(self, function: str, params: Row) -> Any: ...


def _apply_filters(query, filters: Optional[Filters]):
    """Equality filters; list/tuple values become IN, None becomes IS NULL."""
    for column, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set)):
            query = query.in_(column, list(value))
        elif value is None:
            query = query.is_(column, "null")
        else:
            query = query.eq(column, value)
    return query


class SupabaseStore:
    """DataStore backed by a Supabase (PostgREST) client bound to the caller's token."""

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, query) -> Any:
        try:
            return query.execute().data
        except PostgrestAPIError as e:
            logger.error(f"Supabase query failed ({e.code}): {e.message}")
            raise StoreError(e.message or str(e), code=e.code)

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        columns: str = "*",
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Row]:
        query = _apply_filters(self.client.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        return self._execute(query) or []

    def insert(self, table: str, row: Row) -> Row:
        data = self._execute(self.client.table(table).insert(row))
        if not data:
            raise StoreError(f"Insert into {table} returned no row")
        return data[0]

    def update(self, table: str, filters: Filters, patch: Row) -> List[Row]:
        query = _apply_filters(self.client.table(table).update(patch), filters)
        return self._execute(query) or []

    def delete(self, table: str, filters: Filters) -> List[Row]:
        query = _apply_filters(self.client.table(table).delete(), filters)
        return self._execute(query) or []

    def upsert(
        self, table: str, row: Row, on_conflict: str, ignore_duplicates: bool = False
    ) -> Optional[Row]:
        data = self._execute(
            self.client.table(table).upsert(
                row, on_conflict=on_conflict, ignore_duplicates=ignore_duplicates
            )
        )
        return data[0] if data else None

    def rpc(self, function: str, params: Row) -> Any:
        return self._execute(self.client.rpc(function, params))
