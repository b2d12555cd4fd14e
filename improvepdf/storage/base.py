from __future__ import annotations

import json
from abc import ABC, abstractmethod

from improvepdf.storage.exceptions import NotFoundError
from improvepdf.storage.models import ListedObject, StoredObject
from improvepdf.storage.retry import DEFAULT_WRITE_ATTEMPTS, retry_write


class BaseObjectStore(ABC):
    """Contract for key-addressed blob storage backends."""

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        *,
        overwrite: bool = True,
        content_type: str = "application/octet-stream",
    ) -> StoredObject:
        """Write bytes under key.

        Raises:
            WriteCollisionError: if overwrite is False and the key exists.
            StoreUnavailableError: on transport failure.
        """

    @abstractmethod
    async def get(self, key: str, *, retry: bool = True) -> bytes:
        """Read bytes by key or URL.

        With retry=False a single attempt is made; otherwise not-yet-visible
        and transient failures are retried with backoff.

        Raises:
            NotFoundError: if the key does not exist.
            StoreUnavailableError: on transport failure.
        """

    @abstractmethod
    async def list(self, prefix: str) -> list[ListedObject]:
        """List every object whose pathname starts with prefix."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error."""

    async def close(self) -> None:
        """Release transport resources."""

    async def put_json(
        self, key: str, data: object, *, overwrite: bool = True
    ) -> StoredObject:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        return await self.put(
            key, body, overwrite=overwrite, content_type="application/json"
        )

    async def put_text(
        self, key: str, text: str, *, overwrite: bool = True
    ) -> StoredObject:
        return await self.put(
            key,
            text.encode("utf-8"),
            overwrite=overwrite,
            content_type="text/plain; charset=utf-8",
        )

    async def get_json(self, key: str, *, retry: bool = True) -> object:
        return json.loads(await self.get(key, retry=retry))

    async def get_text(self, key: str) -> str:
        return (await self.get(key)).decode("utf-8")

    async def exists(self, key: str) -> bool:
        try:
            await self.get(key, retry=False)
        except NotFoundError:
            return False
        return True


async def save_with_retry(
    store: BaseObjectStore,
    key: str,
    data: object,
    *,
    overwrite: bool = False,
    attempts: int = DEFAULT_WRITE_ATTEMPTS,
    base_delay_seconds: float = 0.1,
) -> StoredObject:
    """Write a JSON document, retrying on write collisions with backoff."""
    return await retry_write(
        lambda: store.put_json(key, data, overwrite=overwrite),
        key=key,
        attempts=attempts,
        base_delay_seconds=base_delay_seconds,
    )
