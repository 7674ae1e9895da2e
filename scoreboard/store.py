"""
Row store backends

The scoreboard treats its data store as an opaque collaborator offering
list / insert / update / delete per record, with server-assigned ids and
creation timestamps. Two backends are provided:

- MemoryRowStore: in-process tables with cascade deletes and a uniqueness
  guarantee on (round_id, candidate_id). Default for local runs and tests.
- RestRowStore: PostgREST-compatible HTTP API (e.g. Supabase) over httpx.
  Cascades are expected to be declared on the database foreign keys.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from scoreboard.errors import StoreError
from scoreboard.models import StoreSettings


logger = logging.getLogger(__name__)

ROUNDS = "rounds"
CANDIDATES = "candidates"
SCORES = "round_candidate_scores"

# table -> {column: parent table}; deleting a parent removes its children
FOREIGN_KEYS: Dict[str, Dict[str, str]] = {
    SCORES: {"round_id": ROUNDS, "candidate_id": CANDIDATES},
}

UNIQUE_COLUMNS: Dict[str, tuple] = {
    SCORES: ("round_id", "candidate_id"),
}

# Rows inserted in one batch share created_at; seq is a per-row ordinal
CREATION_ORDER = "created_at,seq"


def order_columns(order_by: Optional[str]) -> List[str]:
    """Split "a,b" into ["a", "b"]"""
    return [col.strip() for col in (order_by or "").split(",") if col.strip()]


class RowStore:
    """Interface shared by all store backends"""

    async def list(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def insert(self, table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def update(self, table: str, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def delete(self, table: str, record_id: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class MemoryRowStore(RowStore):
    """In-process row store"""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            ROUNDS: [],
            CANDIDATES: [],
            SCORES: [],
        }
        self._seq = 0

    def _table(self, table: str) -> List[Dict[str, Any]]:
        if table not in self.tables:
            raise StoreError(f"Unknown table: {table}")
        return self.tables[table]

    async def list(self, table, filters=None, order_by=None):
        rows = [
            dict(row) for row in self._table(table)
            if all(row.get(col) == val for col, val in (filters or {}).items())
        ]
        columns = order_columns(order_by)
        if columns:
            # missing values sort first
            rows.sort(key=lambda r: tuple((r.get(c) is not None, r.get(c)) for c in columns))
        return rows

    async def insert(self, table, records):
        rows = self._table(table)
        now = datetime.now(timezone.utc).isoformat()
        new_rows = []
        for record in records:
            self._seq += 1
            new_rows.append({**record, "id": uuid.uuid4().hex, "seq": self._seq, "created_at": now})

        # Validate the whole batch before writing anything
        for col, parent in FOREIGN_KEYS.get(table, {}).items():
            parent_ids = {r["id"] for r in self.tables[parent]}
            for row in new_rows:
                if row.get(col) not in parent_ids:
                    raise StoreError(f"{table}.{col} references missing {parent} row {row.get(col)}")

        unique = UNIQUE_COLUMNS.get(table)
        if unique:
            seen = {tuple(r.get(c) for c in unique) for r in rows}
            for row in new_rows:
                key = tuple(row.get(c) for c in unique)
                if key in seen:
                    raise StoreError(f"Duplicate {table} row for {dict(zip(unique, key))}")
                seen.add(key)

        rows.extend(new_rows)
        return [dict(row) for row in new_rows]

    async def update(self, table, record_id, patch):
        for row in self._table(table):
            if row["id"] == record_id:
                row.update({k: v for k, v in patch.items() if k not in ("id", "seq", "created_at")})
                return dict(row)
        raise StoreError(f"No {table} row with id {record_id}")

    async def delete(self, table, record_id):
        rows = self._table(table)
        remaining = [r for r in rows if r["id"] != record_id]
        if len(remaining) == len(rows):
            raise StoreError(f"No {table} row with id {record_id}")
        self.tables[table] = remaining

        # Cascade to dependent tables
        for child, columns in FOREIGN_KEYS.items():
            for col, parent in columns.items():
                if parent == table:
                    before = len(self.tables[child])
                    self.tables[child] = [r for r in self.tables[child] if r.get(col) != record_id]
                    removed = before - len(self.tables[child])
                    if removed:
                        logger.debug(f"Cascade removed {removed} {child} rows for {table} {record_id}")


class RestRowStore(RowStore):
    """
    PostgREST row store

    Args:
        url: Project URL (the REST API lives under /rest/v1)
        api_key: Service key, sent as apikey and bearer token
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests)
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Prefer": "return=representation"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = httpx.AsyncClient(
            base_url=url.rstrip("/") + "/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, table: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, f"/{table}", **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {table} failed: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            raise StoreError(f"{method} {table} returned {response.status_code}: {response.text}")

        if not response.content:
            return []
        return response.json()

    async def list(self, table, filters=None, order_by=None):
        params = {"select": "*"}
        for col, val in (filters or {}).items():
            params[col] = f"eq.{val}"
        columns = order_columns(order_by)
        if columns:
            params["order"] = ",".join(f"{col}.asc" for col in columns)
        return await self._request("GET", table, params=params)

    async def insert(self, table, records):
        return await self._request("POST", table, json=records)

    async def update(self, table, record_id, patch):
        rows = await self._request("PATCH", table, params={"id": f"eq.{record_id}"}, json=patch)
        if not rows:
            raise StoreError(f"No {table} row with id {record_id}")
        return rows[0]

    async def delete(self, table, record_id):
        rows = await self._request("DELETE", table, params={"id": f"eq.{record_id}"})
        if not rows:
            raise StoreError(f"No {table} row with id {record_id}")

    async def close(self):
        await self.client.aclose()


def create_store(settings: StoreSettings) -> RowStore:
    """
    Build the configured store backend

    Raises:
        ValueError: If the backend is unknown or the REST url is missing
    """
    if settings.backend == "memory":
        return MemoryRowStore()
    if settings.backend == "rest":
        if not settings.url:
            raise ValueError("store.url is required for the rest backend")
        return RestRowStore(settings.url, settings.api_key, settings.timeout)
    raise ValueError(f"Unknown store backend: {settings.backend}")
