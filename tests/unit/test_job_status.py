import pytest

from improvepdf.jobs.models import JobManifest
from improvepdf.jobs.status import JobSummary, derive_overall_status


class TestDeriveOverallStatus:
    def test_failed_takes_precedence(self) -> None:
        steps = {
            "extract": "COMPLETED",
            "normalize": "COMPLETED",
            "rewrite": "FAILED",
            "images": "PENDING",
            "render": "PENDING",
        }
        assert derive_overall_status(steps) == "FAILED"

    def test_all_completed(self) -> None:
        steps = dict.fromkeys(["extract", "normalize", "rewrite", "images", "render"], "COMPLETED")
        assert derive_overall_status(steps) == "COMPLETED"

    @pytest.mark.parametrize(
        "steps",
        [
            {"extract": "RUNNING", "normalize": "PENDING"},
            {"extract": "COMPLETED", "normalize": "RUNNING", "rewrite": "PENDING"},
        ],
    )
    def test_running_without_failure(self, steps: dict[str, str]) -> None:
        assert derive_overall_status(steps) == "RUNNING"

    def test_all_pending(self) -> None:
        steps = dict.fromkeys(["extract", "normalize", "rewrite", "images", "render"], "PENDING")
        assert derive_overall_status(steps) == "PENDING"

    def test_partial_progress_without_running_is_pending(self) -> None:
        assert derive_overall_status({"extract": "COMPLETED", "normalize": "PENDING"}) == "PENDING"


class TestJobSummary:
    def test_from_manifest(self) -> None:
        manifest = JobManifest.from_document(
            {"id": "job-1-abc", "filename": "doc.pdf", "steps": {"extract": "RUNNING"}}
        )
        summary = JobSummary.from_manifest(manifest)
        assert summary.status == "RUNNING"
        assert summary.to_dict()["filename"] == "doc.pdf"
        assert summary.to_dict()["createdAt"] == manifest.created_at
