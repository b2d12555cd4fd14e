"""Minimal Markdown block parser shared by the HTML and PDF renderers.

Covers what the normalize and rewrite steps emit: ATX headings, paragraphs,
bullet and numbered lists, standalone images, and inline emphasis.
"""

import re
from dataclasses import dataclass, field

_HEADING = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_IMAGE = re.compile(r'^!\[(?P<alt>[^\]]*)\]\((?P<url>\S+?)(?:\s+"(?P<title>[^"]*)")?\)\s*$')
_BULLET = re.compile(r"^\s*[-*+]\s+(.*)$")
_NUMBERED = re.compile(r"^\s*\d+[.)]\s+(.*)$")


@dataclass
class Block:
    kind: str
    text: str = ""
    level: int = 0
    items: list[str] = field(default_factory=list)
    url: str = ""
    title: str = ""


def parse_blocks(markdown: str) -> list[Block]:
    blocks: list[Block] = []
    paragraph: list[str] = []
    current_list: Block | None = None

    def flush() -> None:
        nonlocal current_list
        if paragraph:
            blocks.append(Block(kind="paragraph", text=" ".join(paragraph)))
            paragraph.clear()
        if current_list is not None:
            blocks.append(current_list)
            current_list = None

    for raw in markdown.splitlines():
        line = raw.rstrip()
        if not line.strip():
            flush()
            continue
        heading = _HEADING.match(line)
        if heading:
            flush()
            blocks.append(
                Block(kind="heading", text=heading.group(2), level=len(heading.group(1)))
            )
            continue
        image = _IMAGE.match(line.strip())
        if image:
            flush()
            blocks.append(
                Block(
                    kind="image",
                    text=image.group("alt"),
                    url=image.group("url"),
                    title=image.group("title") or "",
                )
            )
            continue
        for kind, pattern in (("bullets", _BULLET), ("numbers", _NUMBERED)):
            item = pattern.match(line)
            if item:
                if paragraph:
                    flush()
                if current_list is None or current_list.kind != kind:
                    flush()
                    current_list = Block(kind=kind)
                current_list.items.append(item.group(1).strip())
                break
        else:
            if current_list is not None:
                flush()
            paragraph.append(line.strip())
    flush()
    return blocks
