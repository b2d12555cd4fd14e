import html
import re

from improvepdf.render.blocks import Block, parse_blocks

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"(?<![*\w])[*_](?!\s)(.+?)(?<!\s)[*_](?![*\w])")

_STYLE = """
body { font-family: Georgia, serif; max-width: 42em; margin: 2em auto; line-height: 1.6; }
h1, h2, h3 { font-family: Helvetica, Arial, sans-serif; }
figure { margin: 1.5em 0; text-align: center; }
figure img { max-width: 100%; }
figcaption { font-size: 0.85em; color: #555; }
""".strip()


def render_inline(text: str) -> str:
    escaped = html.escape(text, quote=False)
    escaped = _BOLD.sub(r"<strong>\1</strong>", escaped)
    return _ITALIC.sub(r"<em>\1</em>", escaped)


def _render_block(block: Block) -> str:
    if block.kind == "heading":
        return f"<h{block.level}>{render_inline(block.text)}</h{block.level}>"
    if block.kind == "image":
        caption = (
            f"<figcaption>{html.escape(block.title)}</figcaption>" if block.title else ""
        )
        return (
            f'<figure><img src="{html.escape(block.url)}" '
            f'alt="{html.escape(block.text)}">{caption}</figure>'
        )
    if block.kind in ("bullets", "numbers"):
        tag = "ul" if block.kind == "bullets" else "ol"
        items = "".join(f"<li>{render_inline(item)}</li>" for item in block.items)
        return f"<{tag}>{items}</{tag}>"
    return f"<p>{render_inline(block.text)}</p>"


def markdown_to_html(markdown: str, title: str = "Ebook") -> str:
    """Render a complete standalone HTML document."""
    body = "\n".join(_render_block(block) for block in parse_blocks(markdown))
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="utf-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        f"<style>\n{_STYLE}\n</style>\n</head>\n<body>\n{body}\n</body>\n</html>\n"
    )
