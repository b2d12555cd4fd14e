"""Section-by-section AI rewrite with a length-ratio guard."""

from improvepdf.logging.logger import Log
from improvepdf.rewrite.client_base import BaseRewriteClient
from improvepdf.rewrite.exceptions import RewriteError
from improvepdf.rewrite.models import RewriteResult
from improvepdf.rewrite.prompt_loader import TEXT_MARKER, load_prompt, style_line
from improvepdf.text.markdown import Section, join_sections, split_markdown_by_headings, word_count


def truncate_safely(text: str, max_chars: int) -> str:
    """Cut text at the last paragraph or sentence boundary before max_chars."""
    if len(text) <= max_chars:
        return text
    head = text[:max_chars]
    for boundary in ("\n\n", ". ", "\n"):
        cut = head.rfind(boundary)
        if cut > max_chars // 2:
            return head[: cut + len(boundary)].rstrip()
    return head.rstrip()


class Rewriter:
    """Rewrites Markdown one heading section at a time.

    Each output is checked against the input word count. When the ratio falls
    outside [min_ratio, max_ratio] the section is requested again, up to
    max_retries extra times; the last output is then accepted as is.
    """

    def __init__(
        self,
        *,
        client: BaseRewriteClient,
        model: str,
        temperature: float = 0.2,
        min_ratio: float = 0.9,
        max_ratio: float = 1.15,
        max_retries: int = 2,
        style: str = "neutral",
        max_input_chars: int = 12000,
    ) -> None:
        if min_ratio <= 0 or max_ratio < min_ratio:
            raise ValueError(f"Invalid length ratio bounds: [{min_ratio}, {max_ratio}]")
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._min_ratio = min_ratio
        self._max_ratio = max_ratio
        self._max_retries = max(0, max_retries)
        self._style = style
        self._max_input_chars = max_input_chars
        self._system_prompt = load_prompt("system_prompt").strip()
        self._template = load_prompt("rewrite_prompt")

    async def rewrite_document(self, markdown: str) -> RewriteResult:
        """Rewrite every section and reassemble the document in order."""
        sections = split_markdown_by_headings(markdown) if markdown.strip() else []
        if not sections:
            return RewriteResult(markdown="", tokens_used=0, sections=0)

        rewritten: list[Section] = []
        tokens = 0
        out_of_ratio = 0
        for section in sections:
            text, used, in_ratio = await self.rewrite_section(section.content)
            tokens += used
            if not in_ratio:
                out_of_ratio += 1
            rewritten.append(
                Section(
                    id=section.id,
                    heading=section.heading,
                    level=section.level,
                    content=text,
                )
            )
        return RewriteResult(
            markdown=join_sections(rewritten),
            tokens_used=tokens,
            sections=len(sections),
            sections_out_of_ratio=out_of_ratio,
        )

    async def rewrite_section(self, content: str) -> tuple[str, int, bool]:
        """Return (text, tokens used, whether the final text met the ratio)."""
        source = truncate_safely(content.strip(), self._max_input_chars)
        source_words = word_count(source)
        if source_words == 0:
            return content, 0, True

        prompt = self._template.format(
            min_percent=round(self._min_ratio * 100),
            max_percent=round(self._max_ratio * 100),
            style=style_line(self._style),
            marker=TEXT_MARKER,
            section=source,
        )
        tokens = 0
        attempt = 0
        while True:
            completion = await self._client.create_chat_completion(
                model=self._model,
                temperature=self._temperature,
                system_prompt=self._system_prompt,
                user_prompt=prompt,
            )
            tokens += completion.total_tokens
            output = completion.content.strip()
            if not output:
                raise RewriteError("AI returned an empty section")

            ratio = word_count(output) / source_words
            if self._min_ratio <= ratio <= self._max_ratio:
                return output, tokens, True
            attempt += 1
            if attempt > self._max_retries:
                Log.warning(
                    f"Section length ratio {ratio:.2f} still outside "
                    f"[{self._min_ratio}, {self._max_ratio}] after "
                    f"{attempt} attempts, keeping last output"
                )
                return output, tokens, False
            Log.debug(f"Section length ratio {ratio:.2f} out of bounds, retrying")
