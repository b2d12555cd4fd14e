import pymupdf

from improvepdf.pdf.base import BasePdfExtractor
from improvepdf.pdf.exceptions import PdfExtractionError
from improvepdf.pdf.models import ExtractedDocument


class PyMuPdfAdapter(BasePdfExtractor):
    """Per-page extraction with PyMuPDF (faster on large scans with a text layer)."""

    def extract(self, pdf_bytes: bytes) -> ExtractedDocument:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text("text", sort=True) for page in doc]
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc
        return ExtractedDocument(pages=pages)
