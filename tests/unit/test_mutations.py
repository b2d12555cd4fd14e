import pytest

from improvepdf.jobs import mutations
from improvepdf.jobs.models import STEP_ORDER, JobManifest, StepStatus


def _make_manifest() -> JobManifest:
    return JobManifest(id="job-1-abc", outputs={"rawText": "jobs/job-1-abc/extract/raw.txt"})


class TestWithStepStatus:
    def test_sets_one_step_and_logs(self) -> None:
        original = _make_manifest()
        updated = mutations.with_step_status(original, "extract", StepStatus.COMPLETED, "done")
        assert updated.steps["extract"] is StepStatus.COMPLETED
        assert updated.logs[-1].message == "done"
        assert updated.logs[-1].level == "info"
        assert original.steps["extract"] is StepStatus.PENDING

    def test_failed_status_logs_error(self) -> None:
        updated = mutations.with_step_status(_make_manifest(), "rewrite", StepStatus.FAILED, "boom")
        assert updated.logs[-1].level == "error"

    def test_no_message_no_log(self) -> None:
        updated = mutations.with_step_status(_make_manifest(), "images", StepStatus.RUNNING)
        assert updated.logs == []

    def test_unknown_step(self) -> None:
        with pytest.raises(ValueError, match="Unknown step 'upload'"):
            mutations.with_step_status(_make_manifest(), "upload", StepStatus.RUNNING)

    def test_schema_stays_complete_after_any_sequence(self) -> None:
        manifest = _make_manifest()
        for step in STEP_ORDER:
            for status in StepStatus:
                manifest = mutations.with_step_status(manifest, step, status)
                assert list(manifest.steps) == list(STEP_ORDER)


class TestOtherMutations:
    def test_with_output_keeps_existing(self) -> None:
        updated = mutations.with_output(_make_manifest(), "normalizedText", "n.md")
        assert updated.outputs == {
            "rawText": "jobs/job-1-abc/extract/raw.txt",
            "normalizedText": "n.md",
        }

    def test_with_metadata_merges(self) -> None:
        manifest = mutations.with_metadata(_make_manifest(), {"pageCount": 3})
        updated = mutations.with_metadata(manifest, {"tokensUsed": 10})
        assert updated.metadata == {"pageCount": 3, "tokensUsed": 10}

    def test_completed_keeps_failed_steps(self) -> None:
        manifest = mutations.with_step_status(_make_manifest(), "images", StepStatus.FAILED)
        updated = mutations.completed(manifest)
        assert updated.steps["images"] is StepStatus.FAILED
        assert updated.steps["render"] is StepStatus.COMPLETED
        assert updated.logs[-1].message == "Job completed"

    def test_failed_marks_step_and_prefixes_log(self) -> None:
        updated = mutations.failed(_make_manifest(), "boom", "normalize")
        assert updated.steps["normalize"] is StepStatus.FAILED
        assert updated.steps["extract"] is StepStatus.PENDING
        assert updated.logs[-1].message == "[normalize] boom"

    def test_failed_without_step_only_logs(self) -> None:
        updated = mutations.failed(_make_manifest(), "boom")
        assert set(updated.steps.values()) == {StepStatus.PENDING}
        assert updated.logs[-1].level == "error"
