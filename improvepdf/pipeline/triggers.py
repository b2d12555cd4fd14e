"""Step-to-step continuation.

There is no durable queue: a trigger is a direct invocation of the next
step with no delivery guarantee. A failed invocation surfaces as
``TriggerFailureError`` so the orchestrator can mark the target step FAILED.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

import httpx

from improvepdf.logging.logger import Log
from improvepdf.pipeline.exceptions import TriggerFailureError

StepRunner = Callable[[str, str], Awaitable[object]]

_UNDELIVERED_STATUSES = frozenset({502, 503, 504})


class BaseStepTrigger(ABC):
    @abstractmethod
    async def trigger(self, job_id: str, step: str) -> None:
        """Start step for job_id without waiting for it to finish.

        Raises:
            TriggerFailureError: if the step could not be started.
        """

    async def close(self) -> None:
        """Release transport resources."""


class HttpStepTrigger(BaseStepTrigger):
    """POSTs ``{"id": job_id}`` to ``<base_url>/api/jobs/<step>``.

    A read timeout means the request reached the step endpoint, which keeps
    running on its own; it counts as delivered. Connection errors, gateway
    errors and 4xx answers count as undelivered. A 5xx answer counts as
    delivered only when it carries the step-failure body, meaning the step
    started and has already recorded its own failure.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int = 10,
        ack_seconds: float = 2.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, read=ack_seconds)
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def trigger(self, job_id: str, step: str) -> None:
        url = f"{self._base_url}/api/jobs/{step}"
        try:
            response = await self._client.post(
                url, json={"id": job_id}, headers={"cache-control": "no-store"}
            )
        except httpx.ReadTimeout:
            Log.debug(f"[{job_id}] Trigger {step} sent, not waiting for completion")
            return
        except httpx.HTTPError as exc:
            raise TriggerFailureError(
                f"Could not reach {url}: {exc}", job_id=job_id, step=step
            ) from exc

        status = response.status_code
        if status in _UNDELIVERED_STATUSES or 400 <= status < 500:
            raise TriggerFailureError(
                f"{url} answered HTTP {status}", job_id=job_id, step=step
            )
        if status >= 500 and not _is_step_failure(response):
            raise TriggerFailureError(
                f"{url} answered HTTP {status} before the step started",
                job_id=job_id,
                step=step,
            )
        Log.info(f"[{job_id}] Triggered {step} (HTTP {status})")


def _is_step_failure(response: httpx.Response) -> bool:
    """True for the ``{"ok": false, "id", "step", "error"}`` answer of a failed step."""
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("ok") is False and "step" in body


class InlineStepTrigger(BaseStepTrigger):
    """Runs the next step as a task in the current event loop."""

    def __init__(self, runner: StepRunner | None = None) -> None:
        self._runner = runner
        self._tasks: set[asyncio.Task] = set()

    def bind(self, runner: StepRunner) -> None:
        self._runner = runner

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def trigger(self, job_id: str, step: str) -> None:
        if self._runner is None:
            raise TriggerFailureError(
                "Inline trigger has no step runner bound", job_id=job_id, step=step
            )
        task = asyncio.create_task(self._run(job_id, step))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        Log.info(f"[{job_id}] Scheduled {step} in-process")

    async def drain(self) -> None:
        """Wait until every scheduled step, including ones they schedule, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()

    async def _run(self, job_id: str, step: str) -> None:
        try:
            await self._runner(job_id, step)
        except Exception as exc:
            # The step has recorded its own status; the task has no caller left.
            Log.warning(f"[{job_id}] In-process {step} ended with error: {exc}")
