"""
HTTP Content Remote (ContentRemotePort over the PHP content API).

Talks to the remote CRUD endpoints with an httpx AsyncClient and decodes
the {success, data, message} envelope.

Failure mapping (all raise RemoteStoreError):
- transport errors (connect, timeout)      -> message from httpx
- non-2xx                                  -> server message or body, status code
- undecodable JSON / non-object envelope   -> "invalid JSON response"
- success=false                            -> server message
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.core.ports.remote import RemoteResult, RemoteStoreError
from src.domain.entities import ContentKind
from src.rules.models import RemoteRules

logger = logging.getLogger(__name__)


class HttpContentRemote:
    """Remote content store reached over HTTP."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        paths: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._paths = paths or {"popup": "popups", "circular": "circulars"}

    @classmethod
    def from_rules(
        cls,
        rules: RemoteRules,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpContentRemote:
        client = httpx.AsyncClient(
            base_url=base_url or rules.base_url,
            timeout=rules.timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        return cls(client, paths=rules.paths.model_dump())

    async def aclose(self) -> None:
        await self._client.aclose()

    def _path(self, kind: ContentKind, item_id: str | None = None) -> str:
        path = "/" + self._paths[kind].strip("/")
        if item_id is not None:
            path += f"/{item_id}"
        return path

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> RemoteResult:
        try:
            response = await self._client.request(method, path, params=params, json=payload)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise RemoteStoreError(
                f"{type(e).__name__}: {e}" if str(e) else type(e).__name__,
                operation=operation,
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning("%s %s returned HTTP %s", method, path, response.status_code)
            raise RemoteStoreError(
                message or response.text or response.reason_phrase,
                status_code=response.status_code,
                operation=operation,
            )

        if not isinstance(body, dict):
            raise RemoteStoreError(
                "invalid JSON response", status_code=response.status_code, operation=operation
            )
        if not body.get("success"):
            raise RemoteStoreError(
                body.get("message") or f"{operation} was not successful",
                status_code=response.status_code,
                operation=operation,
            )
        return RemoteResult(data=body.get("data"), message=body.get("message"))

    async def list(self, kind: ContentKind, *, status: str | None = None) -> RemoteResult:
        params = {"status": status} if status else None
        return await self._send("list", "GET", self._path(kind), params=params)

    async def create(self, kind: ContentKind, payload: dict[str, Any]) -> RemoteResult:
        return await self._send("create", "POST", self._path(kind), payload=payload)

    async def update(
        self, kind: ContentKind, item_id: str, payload: dict[str, Any]
    ) -> RemoteResult:
        return await self._send("update", "PUT", self._path(kind, item_id), payload=payload)

    async def delete(self, kind: ContentKind, item_id: str) -> RemoteResult:
        return await self._send("delete", "DELETE", self._path(kind, item_id))
