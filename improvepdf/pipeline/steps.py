import asyncio
from collections.abc import Callable
from pathlib import PurePosixPath

import httpx

from improvepdf.images.markdown import inject_images
from improvepdf.images.models import ChosenImage
from improvepdf.images.searcher import ImageSearcher
from improvepdf.logging.logger import Log
from improvepdf.pdf.base import BasePdfExtractor
from improvepdf.pipeline.base import StepHandler
from improvepdf.pipeline.context import StepContext, StepResult
from improvepdf.render.html_renderer import markdown_to_html
from improvepdf.render.pdf_renderer import PdfRenderer
from improvepdf.rewrite.rewriter import Rewriter
from improvepdf.storage.keys import input_key, output_key
from improvepdf.text.markdown import split_markdown_by_headings, word_count
from improvepdf.text.normalizer import normalize_text


class ExtractStep(StepHandler):
    def __init__(self, pdf_extractor: BasePdfExtractor) -> None:
        self._pdf_extractor = pdf_extractor

    async def run(self, context: StepContext) -> StepResult:
        source = context.manifest.input_file or input_key(context.job_id)
        pdf_bytes = await context.store.get(source)
        document = await asyncio.to_thread(self._pdf_extractor.extract, pdf_bytes)
        if document.char_count == 0:
            raise ValueError("No text could be extracted (scanned or empty PDF)")
        reference = await context.manifests.save_processing_data(
            context.job_id, "extract", document.text, "raw.txt"
        )
        Log.info(
            f"[{context.job_id}] Extracted {document.char_count} chars "
            f"from {document.page_count} pages"
        )
        return StepResult(
            outputs={"rawText": reference},
            metadata={"pageCount": document.page_count, "charCount": document.char_count},
            message=f"Extracted {document.page_count} pages",
            file=reference,
        )


class NormalizeStep(StepHandler):
    async def run(self, context: StepContext) -> StepResult:
        raw = await context.store.get_text(context.require_output("rawText"))
        markdown = normalize_text(raw)
        if not markdown.strip():
            raise ValueError("Normalization produced an empty document")
        reference = await context.manifests.save_processing_data(
            context.job_id, "normalize", markdown, "normalized.md"
        )
        sections = split_markdown_by_headings(markdown)
        return StepResult(
            outputs={"normalizedText": reference},
            metadata={"wordCount": word_count(markdown), "sectionCount": len(sections)},
            message=f"Normalized into {len(sections)} sections",
            file=reference,
        )


class RewriteStep(StepHandler):
    """Rewrites the normalized Markdown.

    The rewriter is built on first use, so a missing AI credential fails this
    step instead of the whole service.
    """

    def __init__(self, rewriter_provider: Callable[[], Rewriter]) -> None:
        self._rewriter_provider = rewriter_provider
        self._rewriter: Rewriter | None = None

    async def run(self, context: StepContext) -> StepResult:
        markdown = await context.store.get_text(context.require_output("normalizedText"))
        if self._rewriter is None:
            self._rewriter = self._rewriter_provider()
        result = await self._rewriter.rewrite_document(markdown)
        reference = await context.manifests.save_processing_data(
            context.job_id, "rewrite", result.markdown, "rewritten.md"
        )
        if result.sections_out_of_ratio:
            await context.manifests.add_job_log(
                context.job_id,
                "warn",
                f"{result.sections_out_of_ratio}/{result.sections} sections kept "
                "outside the length ratio",
            )
        return StepResult(
            outputs={"rewrittenText": reference},
            metadata={"tokensUsed": result.tokens_used},
            message=f"Rewrote {result.sections} sections",
            file=reference,
        )


class ImagesStep(StepHandler):
    def __init__(self, searcher: ImageSearcher) -> None:
        self._searcher = searcher

    async def run(self, context: StepContext) -> StepResult:
        markdown = await context.store.get_text(context.require_output("rewrittenText"))
        if self._searcher.enabled:
            chosen = await self._searcher.choose_for_sections(
                split_markdown_by_headings(markdown)
            )
        else:
            await context.manifests.add_job_log(
                context.job_id, "warn", "No image provider configured, skipping images"
            )
            chosen = []
        reference = await context.manifests.save_step_result(
            context.job_id, "images", {"images": [image.to_dict() for image in chosen]}
        )
        return StepResult(
            outputs={"images": reference},
            metadata={"imageCount": len(chosen)},
            message=f"Selected {len(chosen)} images",
            file=reference,
        )


class RenderStep(StepHandler):
    """Writes the final Markdown, HTML and PDF under ``jobs/<id>/outputs/``."""

    def __init__(self, renderer: PdfRenderer, *, image_timeout_seconds: int = 15) -> None:
        self._renderer = renderer
        self._image_timeout_seconds = image_timeout_seconds

    async def run(self, context: StepContext) -> StepResult:
        markdown = await context.store.get_text(context.require_output("rewrittenText"))
        images = await self._load_images(context)
        final_md = inject_images(split_markdown_by_headings(markdown), images)
        title = self._title(context)
        html = markdown_to_html(final_md, title=title)
        image_bytes = await self._download(images)
        pdf = await asyncio.to_thread(
            self._renderer.render, final_md, title=title, images=image_bytes
        )

        store = context.store
        md_ref = await store.put(
            output_key(context.job_id, "ebook.md"),
            final_md.encode("utf-8"),
            content_type="text/markdown; charset=utf-8",
        )
        html_ref = await store.put(
            output_key(context.job_id, "ebook.html"),
            html.encode("utf-8"),
            content_type="text/html; charset=utf-8",
        )
        pdf_ref = await store.put(
            output_key(context.job_id, "ebook.pdf"), pdf, content_type="application/pdf"
        )
        return StepResult(
            outputs={
                "md": md_ref.pathname,
                "html": html_ref.pathname,
                "pdf": pdf_ref.pathname,
            },
            metadata={"pdfBytes": len(pdf)},
            message="Ebook rendered",
            file=pdf_ref.pathname,
        )

    @staticmethod
    def _title(context: StepContext) -> str:
        if context.manifest.filename:
            return PurePosixPath(context.manifest.filename).stem
        return "Ebook"

    @staticmethod
    async def _load_images(context: StepContext) -> list[ChosenImage]:
        reference = context.manifest.outputs.get("images")
        if not reference:
            return []
        document = await context.store.get_json(reference)
        items = document.get("images", []) if isinstance(document, dict) else []
        return [ChosenImage.from_dict(item) for item in items]

    async def _download(self, images: list[ChosenImage]) -> dict[str, bytes]:
        if not images:
            return {}
        fetched: dict[str, bytes] = {}
        async with httpx.AsyncClient(
            timeout=self._image_timeout_seconds, follow_redirects=True
        ) as client:
            for image in images:
                url = image.candidate.url
                try:
                    response = await client.get(url)
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    Log.warning(f"Image download failed for {url}: {exc}")
                    continue
                fetched[url] = response.content
        return fetched
