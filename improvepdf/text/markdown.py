import re
from dataclasses import dataclass

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_WORD = re.compile(r"\w+", re.UNICODE)


@dataclass
class Section:
    id: str
    heading: str
    level: int
    content: str


def split_markdown_by_headings(markdown: str) -> list[Section]:
    """Split Markdown into sections, each starting at a heading line.

    Text before the first heading becomes an "Intro" section.
    """
    sections: list[Section] = []
    current: Section | None = None
    for line in markdown.split("\n"):
        match = _HEADING.match(line)
        if match:
            if current is not None:
                sections.append(current)
            current = Section(
                id=f"sec-{len(sections) + 1}",
                heading=match.group(2).strip(),
                level=len(match.group(1)),
                content=line + "\n",
            )
            continue
        if current is None:
            current = Section(id="sec-1", heading="Intro", level=1, content="")
        current.content += line + "\n"
    if current is not None:
        sections.append(current)
    return sections


def join_sections(sections: list[Section]) -> str:
    return "\n\n".join(section.content.rstrip() for section in sections) + "\n"


def word_count(text: str) -> int:
    return len(_WORD.findall(text))
