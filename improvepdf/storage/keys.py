"""Store key conventions shared with out-of-core tooling.

The manifest path must stay ``jobs/<jobId>/manifest.json`` exactly.
"""

import re

JOBS_PREFIX = "jobs/"
INDEX_KEY = "jobs/index.json"

_MANIFEST_PATTERN = re.compile(r"^jobs/(job-[^/]+)/manifest\.json$")


def job_prefix(job_id: str) -> str:
    return f"{JOBS_PREFIX}{job_id}/"


def manifest_key(job_id: str) -> str:
    return f"{JOBS_PREFIX}{job_id}/manifest.json"


def input_key(job_id: str, extension: str = "pdf") -> str:
    return f"{JOBS_PREFIX}{job_id}/input.{extension}"


def step_artifact_key(job_id: str, step: str, filename: str) -> str:
    """Intermediate output of a step: ``jobs/<id>/<step>/<filename>``."""
    return f"{JOBS_PREFIX}{job_id}/{step}/{filename}"


def step_result_key(job_id: str, step: str, extension: str = "json") -> str:
    """Single result document of a step: ``jobs/<id>/<step>.<ext>``."""
    if extension not in ("json", "txt"):
        raise ValueError(f"Unsupported step result extension '{extension}'")
    return f"{JOBS_PREFIX}{job_id}/{step}.{extension}"


def output_key(job_id: str, filename: str) -> str:
    return f"{JOBS_PREFIX}{job_id}/outputs/{filename}"


def job_id_from_manifest_key(pathname: str) -> str | None:
    """Return the job id embedded in a manifest path, or None for any other key."""
    match = _MANIFEST_PATTERN.match(pathname)
    return match.group(1) if match else None
