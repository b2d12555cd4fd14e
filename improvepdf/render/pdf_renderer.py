"""PDF rendering of the final Markdown with reportlab platypus."""

import io

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Flowable,
    Image,
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
)

from improvepdf.logging.logger import Log
from improvepdf.render.blocks import Block, parse_blocks
from improvepdf.render.exceptions import RenderError
from improvepdf.render.html_renderer import render_inline

_HEADING_STYLES = {1: "Title", 2: "Heading1", 3: "Heading2"}


class PdfRenderer:
    """Builds an A4 PDF from Markdown.

    Images are embedded only when their bytes were supplied; otherwise the
    caption is rendered in their place.
    """

    def __init__(self, *, page_margin_cm: float = 2.0) -> None:
        self._margin = page_margin_cm * cm
        self._styles = getSampleStyleSheet()

    def render(
        self,
        markdown: str,
        *,
        title: str = "Ebook",
        images: dict[str, bytes] | None = None,
    ) -> bytes:
        buffer = io.BytesIO()
        document = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self._margin,
            rightMargin=self._margin,
            topMargin=self._margin,
            bottomMargin=self._margin,
            title=title,
        )
        story = self._story(parse_blocks(markdown), images or {}, document.width)
        if not story:
            story = [Paragraph(render_inline(title), self._styles["Title"])]
        try:
            document.build(story)
        except Exception as exc:
            raise RenderError(f"PDF build failed: {exc}") from exc
        return buffer.getvalue()

    def _story(
        self, blocks: list[Block], images: dict[str, bytes], frame_width: float
    ) -> list[Flowable]:
        story: list[Flowable] = []
        body = self._styles["BodyText"]
        for block in blocks:
            if block.kind == "heading":
                style = self._styles[_HEADING_STYLES.get(block.level, "Heading3")]
                story.append(Paragraph(render_inline(block.text), style))
            elif block.kind == "image":
                story.extend(self._image(block, images.get(block.url), frame_width))
            elif block.kind in ("bullets", "numbers"):
                story.append(
                    ListFlowable(
                        [ListItem(Paragraph(render_inline(i), body)) for i in block.items],
                        bulletType="bullet" if block.kind == "bullets" else "1",
                    )
                )
            else:
                story.append(Paragraph(render_inline(block.text), body))
            story.append(Spacer(1, 0.2 * cm))
        return story

    def _image(
        self, block: Block, data: bytes | None, frame_width: float
    ) -> list[Flowable]:
        caption = Paragraph(
            render_inline(block.title or block.text), self._styles["Italic"]
        )
        if data is None:
            return [caption]
        try:
            reader = ImageReader(io.BytesIO(data))
            width, height = reader.getSize()
        except Exception as exc:
            Log.warning(f"Skipping unreadable image {block.url}: {exc}")
            return [caption]
        scale = min(1.0, frame_width / max(1, width))
        return [Image(io.BytesIO(data), width=width * scale, height=height * scale), caption]
