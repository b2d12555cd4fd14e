import io

import pdfplumber

from improvepdf.pdf.base import BasePdfExtractor
from improvepdf.pdf.exceptions import PdfExtractionError
from improvepdf.pdf.models import ExtractedDocument


class PdfPlumberAdapter(BasePdfExtractor):
    """Per-page extraction with pdfplumber, keeping layout line breaks."""

    def extract(self, pdf_bytes: bytes) -> ExtractedDocument:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc
        return ExtractedDocument(pages=pages)
