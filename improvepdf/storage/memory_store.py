"""In-memory object store for local development and tests.

Never selected implicitly: only when STORE_BACKEND=memory.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from improvepdf.storage.base import BaseObjectStore
from improvepdf.storage.exceptions import NotFoundError, WriteCollisionError
from improvepdf.storage.models import ListedObject, StoredObject


class InMemoryObjectStore(BaseObjectStore):
    """Dict-backed store with the same collision and not-found semantics."""

    BASE_URL = "memory://store"

    def __init__(self) -> None:
        self._objects: dict[str, tuple[bytes, str]] = {}
        self._lock = asyncio.Lock()

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool = True,
        content_type: str = "application/octet-stream",
    ) -> StoredObject:
        key = self._normalize(key)
        uploaded_at = datetime.now(timezone.utc).isoformat()
        async with self._lock:
            if not overwrite and key in self._objects:
                raise WriteCollisionError(f"Blob already exists: {key}", key=key)
            self._objects[key] = (bytes(data), uploaded_at)
        return StoredObject(
            url=f"{self.BASE_URL}/{key}",
            pathname=key,
            size=len(data),
            uploaded_at=uploaded_at,
        )

    async def get(self, key: str, *, retry: bool = True) -> bytes:
        key = self._normalize(key)
        entry = self._objects.get(key)
        if entry is None:
            raise NotFoundError(f"GET {key}: not found", key=key)
        return entry[0]

    async def list(self, prefix: str) -> list[ListedObject]:
        return [
            ListedObject(
                url=f"{self.BASE_URL}/{key}",
                pathname=key,
                size=len(data),
                uploaded_at=uploaded_at,
            )
            for key, (data, uploaded_at) in sorted(self._objects.items())
            if key.startswith(prefix)
        ]

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._objects.pop(self._normalize(key), None)

    def keys(self) -> list[str]:
        return sorted(self._objects)

    @classmethod
    def _normalize(cls, key: str) -> str:
        if key.startswith(cls.BASE_URL + "/"):
            return key[len(cls.BASE_URL) + 1 :]
        return key.lstrip("/")
