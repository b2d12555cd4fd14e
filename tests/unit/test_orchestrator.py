import pytest

from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.jobs.models import STEP_ORDER, StepStatus
from improvepdf.pipeline.base import StepHandler
from improvepdf.pipeline.context import StepContext, StepResult
from improvepdf.pipeline.exceptions import StepFailureError, TriggerFailureError
from improvepdf.pipeline.orchestrator import StepOrchestrator
from improvepdf.pipeline.registry import build_step_registry
from improvepdf.pipeline.triggers import BaseStepTrigger

JOB_ID = "job-1700000000000-ab12cd"


class RecordingTrigger(BaseStepTrigger):
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[str, str]] = []
        self._fail = fail

    async def trigger(self, job_id: str, step: str) -> None:
        self.calls.append((job_id, step))
        if self._fail:
            raise TriggerFailureError("unreachable", job_id=job_id, step=step)


class FakeStep(StepHandler):
    def __init__(self, name: str, error: Exception | None = None) -> None:
        self._name = name
        self._error = error
        self.seen_status: StepStatus | None = None

    async def run(self, context: StepContext) -> StepResult:
        self.seen_status = context.manifest.steps[context.step]
        if self._error is not None:
            raise self._error
        return StepResult(
            outputs={f"{self._name}Out": f"jobs/{context.job_id}/{self._name}.txt"},
            metadata={f"{self._name}Count": 1},
            file=f"jobs/{context.job_id}/{self._name}.txt",
        )


def _make_orchestrator(
    manifests: JobManifestStore,
    trigger: BaseStepTrigger | None = None,
    **overrides: StepHandler,
) -> tuple[StepOrchestrator, dict[str, StepHandler], BaseStepTrigger]:
    handlers: dict[str, StepHandler] = {step: FakeStep(step) for step in STEP_ORDER}
    handlers.update(overrides)
    trigger = trigger or RecordingTrigger()
    return StepOrchestrator(manifests, build_step_registry(handlers), trigger), handlers, trigger


class TestStepRegistry:
    def test_chains_in_pipeline_order(self) -> None:
        registry = build_step_registry({step: FakeStep(step) for step in STEP_ORDER})
        assert registry["extract"].next_step == "normalize"
        assert registry["images"].next_step == "render"
        assert registry["render"].next_step is None

    def test_rejects_missing_and_unknown_handlers(self) -> None:
        handlers = {step: FakeStep(step) for step in STEP_ORDER if step != "images"}
        handlers["translate"] = FakeStep("translate")
        with pytest.raises(ValueError, match="missing=\\['images'\\] unknown=\\['translate'\\]"):
            build_step_registry(handlers)


class TestRunStep:
    @pytest.mark.asyncio
    async def test_success_records_outputs_and_triggers_next(
        self, manifests: JobManifestStore
    ) -> None:
        await manifests.create_job_status(JOB_ID, filename="book.pdf")
        orchestrator, handlers, trigger = _make_orchestrator(manifests)

        run = await orchestrator.run_step(JOB_ID, "extract")

        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert handlers["extract"].seen_status == StepStatus.RUNNING
        assert manifest.steps["extract"] == StepStatus.COMPLETED
        assert manifest.steps["normalize"] == StepStatus.PENDING
        assert manifest.outputs["extractOut"] == f"jobs/{JOB_ID}/extract.txt"
        assert manifest.metadata["extractCount"] == 1
        assert trigger.calls == [(JOB_ID, "normalize")]
        assert run.next_step == "normalize"
        assert run.next_triggered is True
        assert run.file == f"jobs/{JOB_ID}/extract.txt"

    @pytest.mark.asyncio
    async def test_creates_missing_manifest(self, manifests: JobManifestStore) -> None:
        orchestrator, _, _ = _make_orchestrator(manifests)
        await orchestrator.run_step(JOB_ID, "extract")
        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert manifest.steps["extract"] == StepStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failure_marks_step_failed_and_stops_chain(
        self, manifests: JobManifestStore
    ) -> None:
        await manifests.create_job_status(JOB_ID)
        orchestrator, _, trigger = _make_orchestrator(
            manifests, rewrite=FakeStep("rewrite", RuntimeError("model unavailable"))
        )

        with pytest.raises(StepFailureError) as excinfo:
            await orchestrator.run_step(JOB_ID, "rewrite")

        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert excinfo.value.step == "rewrite"
        assert manifest.steps["rewrite"] == StepStatus.FAILED
        assert manifest.steps["images"] == StepStatus.PENDING
        assert manifest.logs[-1].level == "error"
        assert "model unavailable" in manifest.logs[-1].message
        assert trigger.calls == []

    @pytest.mark.asyncio
    async def test_trigger_failure_marks_target_failed(self, manifests: JobManifestStore) -> None:
        await manifests.create_job_status(JOB_ID)
        orchestrator, _, _ = _make_orchestrator(manifests, trigger=RecordingTrigger(fail=True))

        run = await orchestrator.run_step(JOB_ID, "normalize")

        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert manifest.steps["normalize"] == StepStatus.COMPLETED
        assert manifest.steps["rewrite"] == StepStatus.FAILED
        assert run.next_triggered is False

    @pytest.mark.asyncio
    async def test_last_step_completes_pipeline(self, manifests: JobManifestStore) -> None:
        await manifests.create_job_status(JOB_ID)
        orchestrator, _, trigger = _make_orchestrator(manifests)

        run = await orchestrator.run_step(JOB_ID, "render")

        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert run.next_step is None
        assert trigger.calls == []
        assert manifest.logs[-1].message == "Pipeline completed"

    @pytest.mark.asyncio
    async def test_unknown_step(self, manifests: JobManifestStore) -> None:
        orchestrator, _, _ = _make_orchestrator(manifests)
        with pytest.raises(ValueError, match="Unknown step 'translate'"):
            await orchestrator.run_step(JOB_ID, "translate")


class TestStartAndRetry:
    @pytest.mark.asyncio
    async def test_start_triggers_first_step(self, manifests: JobManifestStore) -> None:
        await manifests.create_job_status(JOB_ID)
        orchestrator, _, trigger = _make_orchestrator(manifests)

        assert await orchestrator.start(JOB_ID) is True

        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert trigger.calls == [(JOB_ID, "extract")]
        assert manifest.logs[-1].message == "Job enqueued"

    @pytest.mark.asyncio
    async def test_retry_resets_step_and_triggers_it(self, manifests: JobManifestStore) -> None:
        await manifests.create_job_status(JOB_ID)
        await manifests.fail_job(JOB_ID, "scanned PDF", "extract")
        orchestrator, _, trigger = _make_orchestrator(manifests)

        assert await orchestrator.retry_step(JOB_ID) is True

        manifest = await manifests.get_job_or_throw(JOB_ID)
        assert manifest.steps["extract"] == StepStatus.PENDING
        assert any(
            log.level == "warn" and log.message == "Retrying step extract" for log in manifest.logs
        )
        assert trigger.calls == [(JOB_ID, "extract")]
