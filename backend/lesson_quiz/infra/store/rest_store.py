"""DataStore over a PostgREST-style HTTP API."""
import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

import httpx
from pydantic import TypeAdapter

from lesson_quiz.domain.common.store import (
    Filters,
    Order,
    Row,
    StoreConflictError,
    StoreError,
    StorePermissionError,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"

_json_adapter = TypeAdapter(Any)
_RESERVED = set(',()"\\ ')


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _list_item(value: Any) -> str:
    text = _scalar(value)
    if any(ch in _RESERVED for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def encode_filter(value: Any) -> str:
    """PostgREST operator expression for a filter value."""
    if value is None:
        return "is.null"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "in.(" + ",".join(_list_item(item) for item in value) + ")"
    return f"eq.{_scalar(value)}"


def encode_order(order: Sequence[Order]) -> str:
    return ",".join(f"{key.column}.{'desc' if key.descending else 'asc'}" for key in order)


class RestDataStore:
    """One store per credential: learner-scoped (bearer token) or privileged (service key)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Prefer": "return=representation",
            "Accept": "application/json",
        }

    async def find(
        self,
        collection: str,
        filters: Filters,
        *,
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        params = [("select", "*")]
        params.extend((name, encode_filter(value)) for name, value in filters.items())
        if order:
            params.append(("order", encode_order(order)))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("GET", collection, params)

    async def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        rows = await self._request("POST", collection, [], body=dict(row))
        if not rows:
            raise StoreError(f"Insert into {collection} returned no rows")
        return rows[0]

    async def update(self, collection: str, filters: Filters, patch: Mapping[str, Any]) -> list[Row]:
        params = [(name, encode_filter(value)) for name, value in filters.items()]
        return await self._request("PATCH", collection, params, body=dict(patch))

    async def _request(
        self,
        method: str,
        collection: str,
        params: list[tuple[str, str]],
        body: Optional[dict] = None,
    ) -> list[Row]:
        url = f"{self.base_url}/{collection}"
        payload = _json_adapter.dump_python(body, mode="json") if body is not None else None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, params=params, json=payload, headers=self.headers)
        except httpx.HTTPError as e:
            logger.error("Store %s %s failed: %s", method, collection, e)
            raise StoreError(f"Store request to {collection} failed: {e}") from e

        if response.status_code >= 400:
            raise self._error(method, collection, response)
        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        return list(data)

    @staticmethod
    def _error(method: str, collection: str, response: httpx.Response) -> StoreError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = str(body.get("code") or "")
        message = str(body.get("message") or response.text or f"HTTP {response.status_code}")
        lowered = f"{message} {body.get('details') or ''}".lower()

        duplicate = code == UNIQUE_VIOLATION or "duplicate key" in lowered
        if duplicate or (response.status_code == 409 and not code):
            return StoreConflictError(message, status_code=response.status_code)
        if code == INSUFFICIENT_PRIVILEGE or "row-level security" in lowered:
            return StorePermissionError(message, status_code=response.status_code)
        logger.error("Store %s %s returned %s: %s", method, collection, response.status_code, message)
        return StoreError(message, status_code=response.status_code)
