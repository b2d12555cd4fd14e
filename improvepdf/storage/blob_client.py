"""REST client for a Vercel-Blob-compatible object store.

Writes and listings go through the API host with a bearer token; reads go to
the object's public URL, which is resolved from a bare key when needed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from improvepdf.logging.logger import Log
from improvepdf.storage.base import BaseObjectStore
from improvepdf.storage.exceptions import (
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    WriteCollisionError,
)
from improvepdf.storage.models import ListedObject, StoredObject
from improvepdf.storage.retry import retry_read

API_VERSION = "7"


class BlobStoreClient(BaseObjectStore):
    """Object store backed by an HTTP blob API."""

    def __init__(
        self,
        *,
        token: str,
        read_token: str = "",
        api_url: str = "https://blob.vercel-storage.com",
        public_host: str = "",
        read_attempts: int = 8,
        backoff_base_seconds: float = 0.1,
        timeout_seconds: int = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self._read_token = read_token or token
        self._api_url = api_url.rstrip("/")
        self._public_host = public_host.strip().rstrip("/")
        self._read_attempts = read_attempts
        self._backoff_base_seconds = backoff_base_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool = True,
        content_type: str = "application/octet-stream",
    ) -> StoredObject:
        headers = {
            **self._auth(self._token),
            "x-api-version": API_VERSION,
            "x-content-type": content_type,
            "x-add-random-suffix": "0",
            "x-allow-overwrite": "1" if overwrite else "0",
            "x-cache-control-max-age": "0",
        }
        try:
            response = await self._client.put(
                f"{self._api_url}/{quote(key)}", content=data, headers=headers
            )
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"PUT {key} failed: {exc}", key=key) from exc

        if self._is_collision(response):
            raise WriteCollisionError(f"Blob already exists: {key}", key=key)
        self._raise_for_status(response, key, "PUT")

        body = response.json()
        return StoredObject(
            url=body.get("url", ""),
            pathname=body.get("pathname", key),
            size=len(data),
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )

    async def get(self, key: str, *, retry: bool = True) -> bytes:
        if not retry:
            return await self._get_once(key)
        return await retry_read(
            lambda: self._get_once(key),
            key=key,
            attempts=self._read_attempts,
            base_delay_seconds=self._backoff_base_seconds,
        )

    async def list(self, prefix: str) -> list[ListedObject]:
        objects: list[ListedObject] = []
        cursor: str | None = None
        while True:
            params = {"prefix": prefix, "limit": "1000"}
            if cursor:
                params["cursor"] = cursor
            try:
                response = await self._client.get(
                    self._api_url,
                    params=params,
                    headers={**self._auth(self._read_token), "x-api-version": API_VERSION},
                )
            except httpx.HTTPError as exc:
                raise StoreUnavailableError(
                    f"LIST {prefix} failed: {exc}", key=prefix
                ) from exc
            self._raise_for_status(response, prefix, "LIST")

            body = response.json()
            for blob in body.get("blobs", []):
                objects.append(
                    ListedObject(
                        url=blob.get("url", ""),
                        pathname=blob.get("pathname", ""),
                        size=int(blob.get("size") or 0),
                        uploaded_at=blob.get("uploadedAt"),
                    )
                )
            cursor = body.get("cursor")
            if not body.get("hasMore") or not cursor:
                return objects

    async def delete(self, key: str) -> None:
        url = await self.resolve_url(key)
        try:
            response = await self._client.post(
                f"{self._api_url}/delete",
                json={"urls": [url]},
                headers={**self._auth(self._token), "x-api-version": API_VERSION},
            )
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"DELETE {key} failed: {exc}", key=key) from exc
        if response.status_code == 404:
            return
        self._raise_for_status(response, key, "DELETE")

    async def resolve_url(self, key_or_url: str) -> str:
        """Normalize a bare key or full URL into a fetchable location.

        Bare keys fall back through: public-host guess, prefix listing,
        generic API-host guess.
        """
        if key_or_url.startswith(("http://", "https://")):
            return key_or_url
        key = key_or_url.lstrip("/")

        if self._public_host:
            guess = f"{self._public_host}/{quote(key)}"
            try:
                response = await self._client.head(guess, headers=self._no_store())
                if response.status_code == 200:
                    return guess
            except httpx.HTTPError as exc:
                Log.debug(f"HEAD {guess} failed: {exc}")

        try:
            for listed in await self.list(key):
                if listed.pathname == key and listed.url:
                    return listed.url
        except StoreError as exc:
            Log.debug(f"Listing {key} for URL resolution failed: {exc}")

        return f"{self._api_url}/{quote(key)}"

    async def _get_once(self, key: str) -> bytes:
        url = await self.resolve_url(key)
        try:
            response = await self._client.get(
                url, headers={**self._auth(self._read_token), **self._no_store()}
            )
        except httpx.HTTPError as exc:
            raise StoreUnavailableError(f"GET {key} failed: {exc}", key=key) from exc
        self._raise_for_status(response, key, "GET")
        return response.content

    @staticmethod
    def _auth(token: str) -> dict[str, str]:
        return {"authorization": f"Bearer {token}"} if token else {}

    @staticmethod
    def _no_store() -> dict[str, str]:
        return {"cache-control": "no-store"}

    @staticmethod
    def _is_collision(response: httpx.Response) -> bool:
        if response.status_code == 409:
            return True
        if response.status_code == 400:
            return "already exists" in response.text.lower()
        return False

    @staticmethod
    def _raise_for_status(response: httpx.Response, key: str, verb: str) -> None:
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise NotFoundError(f"{verb} {key}: not found", key=key)
        if status >= 500 or status == 429:
            raise StoreUnavailableError(f"{verb} {key}: HTTP {status}", key=key)
        raise StoreError(f"{verb} {key}: HTTP {status} {response.text[:200]}", key=key)
