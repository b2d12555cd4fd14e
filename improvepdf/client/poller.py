"""Consumer-side job polling with stuck detection and first-step retry."""

import asyncio
import time
from collections.abc import AsyncIterator, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from improvepdf.config.settings import Settings
from improvepdf.jobs.models import STEP_ORDER, StepStatus
from improvepdf.logging.logger import Log


@dataclass(frozen=True)
class DerivedJobInfo:
    percent: int
    completed_steps: int
    total_steps: int
    failed: bool
    failed_step: str | None
    active_step: str | None
    done: bool


@dataclass(frozen=True)
class RetryOutcome:
    success: bool
    message: str


@dataclass(frozen=True)
class PollSnapshot:
    """One poll result. ``job`` is None while the manifest is not readable."""

    job: dict[str, Any] | None
    info: DerivedJobInfo | None = None
    error: str | None = None
    stuck: bool = False
    retried: bool = False


def derive_job_info(job: Mapping[str, Any]) -> DerivedJobInfo:
    """Progress over the five steps; done at 100% or on any failed step."""
    steps = job.get("steps") or {}
    statuses = [str(steps.get(step, StepStatus.PENDING.value)) for step in STEP_ORDER]
    completed = statuses.count(StepStatus.COMPLETED.value)
    total = len(STEP_ORDER)
    failed_step = next(
        (s for s, v in zip(STEP_ORDER, statuses) if v == StepStatus.FAILED.value), None
    )
    active_step = next(
        (s for s, v in zip(STEP_ORDER, statuses) if v == StepStatus.RUNNING.value), None
    )
    percent = round(completed / total * 100)
    return DerivedJobInfo(
        percent=percent,
        completed_steps=completed,
        total_steps=total,
        failed=failed_step is not None,
        failed_step=failed_step,
        active_step=active_step,
        done=percent >= 100 or failed_step is not None,
    )


def _created_at_seconds(job: Mapping[str, Any]) -> float | None:
    value = job.get("createdAt")
    if isinstance(value, (int, float)):
        return value / 1000
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def is_stuck(job: Mapping[str, Any], now: float, threshold_seconds: float) -> bool:
    """First step still PENDING longer than threshold after creation."""
    steps = job.get("steps") or {}
    if str(steps.get(STEP_ORDER[0], StepStatus.PENDING.value)) != StepStatus.PENDING.value:
        return False
    created = _created_at_seconds(job)
    return created is not None and now - created > threshold_seconds


class JobPoller:
    """Polls one service for job manifests.

    A job is retried automatically at most once per poller, and only when its
    first step looks stuck. FAILED steps are never retried automatically.
    """

    def __init__(
        self,
        base_url: str,
        *,
        interval_seconds: float = 2.0,
        stuck_threshold_seconds: float = 10.0,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._interval_seconds = interval_seconds
        self._stuck_threshold_seconds = stuck_threshold_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._clock = clock
        self._auto_retried: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings, base_url: str | None = None) -> "JobPoller":
        return cls(
            base_url or settings.public_base_url,
            interval_seconds=settings.poll_interval_seconds,
            stuck_threshold_seconds=settings.stuck_threshold_seconds,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_job(self, job_id: str) -> dict[str, Any] | None:
        """Read the manifest; None while neither read endpoint knows the job.

        Raises:
            httpx.HTTPError: on transport failure or a non-404 error answer.
            ValueError: if the answer is not a JSON object.
        """
        encoded = quote(job_id, safe="")
        headers = {"cache-control": "no-store"}
        response = await self._client.get(
            f"{self._base_url}/api/jobs/{encoded}", headers=headers
        )
        if response.status_code == 404:
            response = await self._client.get(
                f"{self._base_url}/api/status/{encoded}", headers=headers
            )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"Expected a job object, got {type(body).__name__}")
        return body

    async def manual_retry(self, job_id: str) -> RetryOutcome:
        """Ask the service to run the first step again."""
        try:
            response = await self._client.post(
                f"{self._base_url}/api/jobs/retry-extract", json={"id": job_id}
            )
        except httpx.HTTPError as exc:
            return RetryOutcome(success=False, message=f"Network error: {exc}")
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_success:
            return RetryOutcome(success=True, message="Extract retry triggered")
        error = body.get("error") if isinstance(body, dict) else None
        return RetryOutcome(
            success=False, message=error or f"Retry failed: HTTP {response.status_code}"
        )

    async def poll_once(self, job_id: str) -> PollSnapshot:
        try:
            job = await self.fetch_job(job_id)
        except (httpx.HTTPError, ValueError) as exc:
            Log.debug(f"[{job_id}] Poll failed, will retry: {exc}")
            return PollSnapshot(job=None, error=str(exc))
        if job is None:
            return PollSnapshot(job=None, error="Job not found yet")

        info = derive_job_info(job)
        stuck = not info.done and is_stuck(
            job, self._clock(), self._stuck_threshold_seconds
        )
        retried = False
        if stuck and job_id not in self._auto_retried:
            self._auto_retried.add(job_id)
            outcome = await self.manual_retry(job_id)
            retried = True
            Log.warning(f"[{job_id}] Job looked stuck, automatic retry: {outcome.message}")
        return PollSnapshot(job=job, info=info, stuck=stuck, retried=retried)

    async def watch(
        self, job_id: str, max_polls: int | None = None
    ) -> AsyncIterator[PollSnapshot]:
        """Yield a snapshot per poll until the job is done."""
        polls = 0
        while max_polls is None or polls < max_polls:
            snapshot = await self.poll_once(job_id)
            polls += 1
            yield snapshot
            if snapshot.info is not None and snapshot.info.done:
                return
            await asyncio.sleep(self._interval_seconds)
