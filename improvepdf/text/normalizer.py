"""Turns raw extracted PDF text into clean Markdown."""

import re

PAGE_BREAK = "\f"

_PAGE_NUMBER = re.compile(r"^\s*(?:page\s+)?\d{1,4}(?:\s*/\s*\d{1,4})?\s*$", re.IGNORECASE)
_CHAPTER = re.compile(r"^(chap(?:ter|itre)|part(?:ie)?)\s+[\divxlc]+\b.*$", re.IGNORECASE)
_HYPHEN_BREAK = re.compile(r"(\w)-\n(\w)")
_SPACES = re.compile(r"[ \t\u00a0]+")
_SENTENCE_END = (".", "!", "?", ":", ";", "»", '"', ")")


def _is_heading(line: str) -> bool:
    if _CHAPTER.match(line):
        return True
    letters = [c for c in line if c.isalpha()]
    return 3 <= len(line) <= 80 and len(letters) >= 3 and line.isupper()


def _heading_text(line: str) -> str:
    return line if not line.isupper() else line.capitalize()


def normalize_text(raw: str) -> str:
    """Normalize extracted text into Markdown paragraphs and headings.

    Drops page-number lines, rejoins hyphenated words and wrapped lines,
    collapses whitespace, and promotes chapter or all-caps lines to headings.
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = _HYPHEN_BREAK.sub(r"\1\2", text)

    blocks: list[str] = []
    paragraph: list[str] = []

    def flush() -> None:
        if paragraph:
            blocks.append(" ".join(paragraph))
            paragraph.clear()

    for page in text.split(PAGE_BREAK):
        for raw_line in page.strip("\n").split("\n"):
            line = _SPACES.sub(" ", raw_line).strip()
            if not line:
                flush()
                continue
            if _PAGE_NUMBER.match(line):
                continue
            if _is_heading(line):
                flush()
                blocks.append(f"## {_heading_text(line)}")
                continue
            paragraph.append(line)
            if line.endswith(_SENTENCE_END) and len(line) < 60:
                flush()
        # A paragraph may continue across a page break; only flush on sentence end.
        if paragraph and paragraph[-1].endswith(_SENTENCE_END):
            flush()
    flush()

    return "\n\n".join(blocks).strip() + "\n" if blocks else ""
