from dataclasses import dataclass, field
from typing import Any

from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.jobs.models import JobManifest
from improvepdf.storage.base import BaseObjectStore


@dataclass
class StepContext:
    """What a step handler sees: the job, its manifest snapshot and the stores."""

    job_id: str
    step: str
    manifest: JobManifest
    manifests: JobManifestStore

    @property
    def store(self) -> BaseObjectStore:
        return self.manifests.store

    def require_output(self, name: str) -> str:
        """Return a previous step's output reference.

        Raises:
            ValueError: if the output was never recorded.
        """
        reference = self.manifest.outputs.get(name)
        if not reference:
            raise ValueError(f"Output '{name}' is missing, run the earlier steps first")
        return reference


@dataclass
class StepResult:
    """Outputs and counters a handler asks the orchestrator to record."""

    outputs: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    message: str = ""
    file: str | None = None
