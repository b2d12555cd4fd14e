import json

import httpx
import pytest

from improvepdf.storage.blob_client import BlobStoreClient
from improvepdf.storage.exceptions import (
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    WriteCollisionError,
)

API = "https://blob.example.test"
PUBLIC = "https://public.example.test"


def _make_client(handler, **kwargs) -> BlobStoreClient:
    return BlobStoreClient(
        token="rw-token",
        api_url=API,
        backoff_base_seconds=0.0,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def _listing(*pathnames: str) -> dict:
    return {
        "blobs": [
            {
                "url": f"{PUBLIC}/{p}",
                "pathname": p,
                "size": 2,
                "uploadedAt": "2024-01-01T00:00:00.000Z",
            }
            for p in pathnames
        ],
        "hasMore": False,
    }


class TestPut:
    @pytest.mark.asyncio
    async def test_sends_overwrite_and_auth_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"url": f"{PUBLIC}/jobs/a/manifest.json", "pathname": "jobs/a/manifest.json"}
            )

        client = _make_client(handler)
        stored = await client.put("jobs/a/manifest.json", b"{}", overwrite=False)

        request = seen[0]
        assert request.method == "PUT"
        assert request.url.path == "/jobs/a/manifest.json"
        assert request.headers["authorization"] == "Bearer rw-token"
        assert request.headers["x-allow-overwrite"] == "0"
        assert request.headers["x-add-random-suffix"] == "0"
        assert stored.pathname == "jobs/a/manifest.json"
        assert stored.size == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(409, text="conflict"),
            httpx.Response(400, text="This blob already exists"),
        ],
    )
    async def test_collision_is_typed(self, response: httpx.Response) -> None:
        client = _make_client(lambda request: response)
        with pytest.raises(WriteCollisionError):
            await client.put("k", b"x", overwrite=False)

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self) -> None:
        client = _make_client(lambda request: httpx.Response(503))
        with pytest.raises(StoreUnavailableError):
            await client.put("k", b"x")

    @pytest.mark.asyncio
    async def test_forbidden_is_plain_store_error(self) -> None:
        client = _make_client(lambda request: httpx.Response(403, text="bad token"))
        with pytest.raises(StoreError) as exc_info:
            await client.put("k", b"x")
        assert not isinstance(exc_info.value, (NotFoundError, StoreUnavailableError))


class TestGet:
    @pytest.mark.asyncio
    async def test_resolves_key_through_listing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "blob.example.test":
                return httpx.Response(200, json=_listing("jobs/a/manifest.json"))
            return httpx.Response(200, content=b'{"id": "a"}')

        client = _make_client(handler)
        assert json.loads(await client.get("jobs/a/manifest.json")) == {"id": "a"}

    @pytest.mark.asyncio
    async def test_public_host_guess_skips_listing(self) -> None:
        hosts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(f"{request.method} {request.url.host}")
            return httpx.Response(200, content=b"data")

        client = _make_client(handler, public_host=PUBLIC)
        assert await client.get("jobs/a/input.pdf") == b"data"
        assert hosts == ["HEAD public.example.test", "GET public.example.test"]

    @pytest.mark.asyncio
    async def test_retries_until_visible(self) -> None:
        calls = {"get": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["get"] += 1
            if calls["get"] < 3:
                return httpx.Response(404)
            return httpx.Response(200, content=b"late")

        client = _make_client(handler, read_attempts=4)
        assert await client.get(f"{PUBLIC}/jobs/a/manifest.json") == b"late"
        assert calls["get"] == 3

    @pytest.mark.asyncio
    async def test_single_attempt_when_retry_disabled(self) -> None:
        calls = {"get": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["get"] += 1
            return httpx.Response(404)

        client = _make_client(handler)
        with pytest.raises(NotFoundError):
            await client.get(f"{PUBLIC}/jobs/a/manifest.json", retry=False)
        assert calls["get"] == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _make_client(handler, read_attempts=2)
        with pytest.raises(StoreUnavailableError):
            await client.get(f"{PUBLIC}/k")


class TestList:
    @pytest.mark.asyncio
    async def test_follows_cursor(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("cursor") == "next":
                return httpx.Response(200, json=_listing("jobs/b/manifest.json"))
            body = _listing("jobs/a/manifest.json")
            body.update(hasMore=True, cursor="next")
            return httpx.Response(200, json=body)

        client = _make_client(handler)
        listed = await client.list("jobs/")
        assert [item.pathname for item in listed] == [
            "jobs/a/manifest.json",
            "jobs/b/manifest.json",
        ]
        assert listed[0].uploaded_at == "2024-01-01T00:00:00.000Z"


class TestDelete:
    @pytest.mark.asyncio
    async def test_posts_resolved_url(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                bodies.append(json.loads(request.content))
                return httpx.Response(200, json={})
            return httpx.Response(200, json=_listing("jobs/a/input.pdf"))

        client = _make_client(handler)
        await client.delete("jobs/a/input.pdf")
        assert bodies == [{"urls": [f"{PUBLIC}/jobs/a/input.pdf"]}]

    @pytest.mark.asyncio
    async def test_missing_blob_is_ignored(self) -> None:
        client = _make_client(lambda request: httpx.Response(404))
        await client.delete(f"{PUBLIC}/jobs/a/input.pdf")
