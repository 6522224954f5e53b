"""Minimal client for the hosted database's PostgREST API."""

from __future__ import annotations

from typing import Any

import httpx


# Postgres undefined_table, and PostgREST's schema-cache / unknown-schema codes.
MISSING_RELATION_CODES = frozenset({"42P01", "PGRST205", "PGRST106"})
_MISSING_RELATION_PHRASES = ("does not exist", "could not find the table")

_SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class DatabaseError(Exception):
    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        return f"Database error: {self.message}"

    @property
    def is_missing_relation(self) -> bool:
        if self.code:
            return self.code in MISSING_RELATION_CODES
        msg = (self.message or "").lower()
        return any(p in msg for p in _MISSING_RELATION_PHRASES)


def _error_from_response(resp: httpx.Response) -> DatabaseError:
    code = None
    message = f"HTTP {resp.status_code}"
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        code = str(data.get("code") or "").strip() or None
        message = str(data.get("message") or data.get("error") or message)
    elif resp.text:
        message = resp.text[:500]
    return DatabaseError(message, code=code, status_code=resp.status_code)


def _eq_filters(filters: dict[str, Any] | None) -> dict[str, str]:
    return {str(k): f"eq.{v}" for k, v in (filters or {}).items()}


class PostgrestClient:
    def __init__(self, http_client: httpx.AsyncClient, base_url: str, service_key: str):
        self._http = http_client
        self._base = (base_url or "").rstrip("/")
        self._key = service_key or ""

    @property
    def configured(self) -> bool:
        return bool(self._base and self._key)

    def _url(self, table: str) -> str:
        if not self.configured:
            raise DatabaseError("Database not configured (SUPABASE_URL / SUPABASE_SERVICE_KEY missing)")
        return f"{self._base}/rest/v1/{table}"

    def _headers(self, *, accept: str = "application/json") -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Accept": accept,
        }

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": columns, **_eq_filters(filters)}
        if limit is not None:
            params["limit"] = str(int(limit))
        resp = await self._http.get(self._url(table), params=params, headers=self._headers())
        if resp.status_code >= 400:
            raise _error_from_response(resp)
        data = resp.json()
        if not isinstance(data, list):
            raise DatabaseError(f"Unexpected response for {table}: expected a list")
        return data

    async def select_single(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Exactly one row, otherwise DatabaseError (PGRST116 when zero or many rows match)."""
        params = {"select": columns, **_eq_filters(filters)}
        resp = await self._http.get(self._url(table), params=params, headers=self._headers(accept=_SINGLE_OBJECT))
        if resp.status_code >= 400:
            raise _error_from_response(resp)
        data = resp.json()
        if not isinstance(data, dict):
            raise DatabaseError(f"Unexpected response for {table}: expected an object")
        return data

    async def probe(self, table: str) -> None:
        await self.select(table, "*", limit=1)

    async def table_exists(self, table: str) -> tuple[bool, DatabaseError | None]:
        """Existence probe: only a missing-relation error means the table is absent.

        Any other database error still proves the request reached the table, so it
        is returned alongside True for the caller to log.
        """
        self._url(table)
        try:
            await self.probe(table)
        except DatabaseError as exc:
            if exc.is_missing_relation:
                return False, exc
            return True, exc
        return True, None

    async def delete(self, table: str, *, filters: dict[str, Any]) -> None:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        resp = await self._http.delete(self._url(table), params=_eq_filters(filters), headers=self._headers())
        if resp.status_code >= 400:
            raise _error_from_response(resp)
