from abc import ABC, abstractmethod

from improvepdf.pdf.models import ExtractedDocument


class BasePdfExtractor(ABC):
    """Contract for PDF text extraction adapters used by the extract step."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> ExtractedDocument:
        """Extract per-page text from PDF bytes.

        Raises:
            PdfExtractionError: if the bytes are not a readable PDF.
        """
