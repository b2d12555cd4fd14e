from dataclasses import dataclass

from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.jobs.models import STEP_ORDER, StepStatus
from improvepdf.logging.logger import Log
from improvepdf.pipeline.context import StepContext
from improvepdf.pipeline.exceptions import StepFailureError, TriggerFailureError
from improvepdf.pipeline.registry import StepDescriptor
from improvepdf.pipeline.triggers import BaseStepTrigger


@dataclass(frozen=True)
class StepRun:
    job_id: str
    step: str
    file: str | None
    next_step: str | None
    next_triggered: bool


class StepOrchestrator:
    """Drives one job through ``extract -> normalize -> rewrite -> images -> render``.

    Each call runs a single step: mark RUNNING, do the work, record outputs,
    mark COMPLETED, then push the next step through the trigger. A failed step
    is marked FAILED and nothing after it is triggered.
    """

    def __init__(
        self,
        manifests: JobManifestStore,
        registry: dict[str, StepDescriptor],
        trigger: BaseStepTrigger,
    ) -> None:
        self._manifests = manifests
        self._registry = registry
        self._trigger = trigger

    @property
    def first_step(self) -> str:
        return STEP_ORDER[0]

    def descriptor(self, step: str) -> StepDescriptor:
        descriptor = self._registry.get(step)
        if descriptor is None:
            raise ValueError(f"Unknown step '{step}'. Choose from: {list(self._registry)}")
        return descriptor

    async def start(self, job_id: str) -> bool:
        """Trigger the first step of a freshly created job."""
        await self._manifests.add_job_log(job_id, "info", "Job enqueued")
        return await self.trigger_step(job_id, self.first_step)

    async def run_step(self, job_id: str, step: str) -> StepRun:
        """Execute step for job_id.

        Raises:
            ValueError: if step is unknown.
            StepFailureError: if the step's work failed; the step is FAILED.
            JobSaveError: if a status transition could not be persisted.
        """
        descriptor = self.descriptor(step)
        await self._manifests.ensure_job(job_id)
        manifest = await self._manifests.update_step_status(
            job_id, step, StepStatus.RUNNING, f"{step} started"
        )
        Log.info(f"[{job_id}] Step {step} running")

        context = StepContext(
            job_id=job_id, step=step, manifest=manifest, manifests=self._manifests
        )
        try:
            result = await descriptor.handler.run(context)
        except Exception as exc:
            Log.exception(f"[{job_id}] Step {step} failed: {exc}")
            await self._manifests.fail_job(job_id, str(exc) or type(exc).__name__, step)
            raise StepFailureError(
                f"{step} failed: {exc}", job_id=job_id, step=step
            ) from exc

        for name, reference in result.outputs.items():
            await self._manifests.add_job_output(job_id, name, reference)
        if result.metadata:
            await self._manifests.update_job_metadata(job_id, result.metadata)
        await self._manifests.update_step_status(
            job_id, step, StepStatus.COMPLETED, result.message or f"{step} completed"
        )
        Log.info(f"[{job_id}] Step {step} completed")

        triggered = False
        if descriptor.next_step is not None:
            triggered = await self.trigger_step(job_id, descriptor.next_step)
        else:
            await self._manifests.add_job_log(job_id, "info", "Pipeline completed")
        return StepRun(
            job_id=job_id,
            step=step,
            file=result.file,
            next_step=descriptor.next_step,
            next_triggered=triggered,
        )

    async def trigger_step(self, job_id: str, step: str) -> bool:
        """Invoke step; on transport failure mark that step FAILED and return False."""
        try:
            await self._trigger.trigger(job_id, step)
        except TriggerFailureError as exc:
            Log.error(f"[{job_id}] Could not trigger {step}: {exc}")
            await self._manifests.fail_job(job_id, f"Trigger failed: {exc}", step)
            return False
        return True

    async def retry_step(self, job_id: str, step: str | None = None) -> bool:
        """Reset a step to PENDING and trigger it again."""
        step = step or self.first_step
        self.descriptor(step)
        await self._manifests.ensure_job(job_id)
        await self._manifests.add_job_log(job_id, "warn", f"Retrying step {step}")
        await self._manifests.update_step_status(job_id, step, StepStatus.PENDING)
        return await self.trigger_step(job_id, step)
