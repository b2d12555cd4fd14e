from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExtractedDocument:
    """Text pulled out of a PDF, one entry per page."""

    pages: list[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def text(self) -> str:
        return "\n\f\n".join(page.strip() for page in self.pages).strip()

    @property
    def char_count(self) -> int:
        return sum(len(page) for page in self.pages)
