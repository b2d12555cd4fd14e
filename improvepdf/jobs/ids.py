import secrets
import string
import threading
import time

JOB_ID_PREFIX = "job-"
_ALPHABET = string.digits + string.ascii_lowercase


class JobIdGenerator:
    """Produces ``job-<epoch ms>-<6 base36 chars>`` ids.

    The time component never repeats or goes backwards within a process, so
    two ids generated in the same millisecond still differ.
    """

    def __init__(self, random_length: int = 6) -> None:
        self._random_length = random_length
        self._last_ms = 0
        self._lock = threading.Lock()

    def generate(self) -> str:
        with self._lock:
            now_ms = int(time.time() * 1000)
            self._last_ms = max(now_ms, self._last_ms + 1)
            timestamp = self._last_ms
        suffix = "".join(secrets.choice(_ALPHABET) for _ in range(self._random_length))
        return f"{JOB_ID_PREFIX}{timestamp}-{suffix}"


_default_generator = JobIdGenerator()


def generate_job_id() -> str:
    return _default_generator.generate()
