import pytest

from improvepdf.render.blocks import parse_blocks
from improvepdf.render.exceptions import RenderError
from improvepdf.render.html_renderer import markdown_to_html, render_inline
from improvepdf.render.pdf_renderer import PdfRenderer

SAMPLE = """# The Harbour

Ships arrive at **dawn** and leave
at *dusk*.

![a harbour](https://x/h.jpg "The harbour at dawn")

- ropes
- nets

1. unload
2. sell
"""


class TestParseBlocks:
    def test_block_kinds_in_order(self) -> None:
        blocks = parse_blocks(SAMPLE)
        assert [b.kind for b in blocks] == ["heading", "paragraph", "image", "bullets", "numbers"]

    def test_paragraph_lines_are_joined(self) -> None:
        paragraph = parse_blocks(SAMPLE)[1]
        assert paragraph.text == "Ships arrive at **dawn** and leave at *dusk*."

    def test_image_fields(self) -> None:
        image = parse_blocks(SAMPLE)[2]
        assert image.url == "https://x/h.jpg"
        assert image.text == "a harbour"
        assert image.title == "The harbour at dawn"

    def test_list_items(self) -> None:
        blocks = parse_blocks(SAMPLE)
        assert blocks[3].items == ["ropes", "nets"]
        assert blocks[4].items == ["unload", "sell"]

    def test_heading_level(self) -> None:
        assert parse_blocks("### Deep ###")[0].level == 3
        assert parse_blocks("### Deep ###")[0].text == "Deep"


class TestHtmlRenderer:
    def test_inline_markup_is_escaped_then_emphasised(self) -> None:
        assert render_inline("**a** < *b*") == "<strong>a</strong> &lt; <em>b</em>"

    def test_standalone_document(self) -> None:
        html = markdown_to_html(SAMPLE, title="Harbour & Sea")
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>Harbour &amp; Sea</title>" in html
        assert "<h1>The Harbour</h1>" in html
        assert "<figcaption>The harbour at dawn</figcaption>" in html
        assert "<ul><li>ropes</li><li>nets</li></ul>" in html
        assert "<ol><li>unload</li><li>sell</li></ol>" in html


class TestPdfRenderer:
    def test_renders_pdf_bytes(self) -> None:
        data = PdfRenderer().render(SAMPLE, title="Harbour")
        assert data.startswith(b"%PDF")

    def test_empty_markdown_still_renders(self) -> None:
        assert PdfRenderer().render("", title="Empty").startswith(b"%PDF")

    def test_unreadable_image_falls_back_to_caption(self) -> None:
        data = PdfRenderer().render(SAMPLE, images={"https://x/h.jpg": b"not an image"})
        assert data.startswith(b"%PDF")

    def test_build_failure_is_render_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def explode(self, story, *args, **kwargs):
            raise RuntimeError("layout")

        monkeypatch.setattr("improvepdf.render.pdf_renderer.SimpleDocTemplate.build", explode)
        with pytest.raises(RenderError, match="PDF build failed"):
            PdfRenderer().render(SAMPLE)
