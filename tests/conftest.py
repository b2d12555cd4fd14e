import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from improvepdf.config.settings import Settings
from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.jobs.write_serializer import JobWriteSerializer
from improvepdf.storage.memory_store import InMemoryObjectStore


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def book_pdf_bytes() -> bytes:
    """Generate a two-chapter PDF shaped like a small book."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "CHAPTER 1 THE HARBOUR")
    c.drawString(72, 690, "The boats left the harbour before dawn.")
    c.drawString(72, 675, "Fishermen counted the nets twice.")
    c.showPage()
    c.drawString(72, 720, "CHAPTER 2 THE STORM")
    c.drawString(72, 690, "By noon the wind had turned against them.")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        store_backend="memory",
        blob_read_write_token="",
        blob_read_only_token="",
        trigger_mode="inline",
        rewrite_provider="example",
        unsplash_access_key="",
        pexels_api_key="",
        job_load_backoff_seconds=0.0,
        store_backoff_base_seconds=0.0,
    )


@pytest.fixture()
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture()
def manifests(memory_store: InMemoryObjectStore) -> JobManifestStore:
    return JobManifestStore(
        memory_store,
        serializer=JobWriteSerializer(),
        load_backoff_seconds=0.0,
        write_backoff_seconds=0.0,
    )
