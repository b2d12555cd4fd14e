"""Tests for the section rewriter and its length-ratio guard."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from improvepdf.rewrite.exceptions import RewriteError
from improvepdf.rewrite.models import Completion
from improvepdf.rewrite.rewriter import Rewriter, truncate_safely

TEN_WORDS = "one two three four five six seven eight nine ten"


def _make_rewriter(client: MagicMock | None = None, **kwargs) -> Rewriter:
    if client is None:
        client = MagicMock()
        client.create_chat_completion = AsyncMock()
    return Rewriter(client=client, model="test-model", **kwargs)


def _make_client(*contents: str, tokens: int = 5) -> MagicMock:
    client = MagicMock()
    client.create_chat_completion = AsyncMock(
        side_effect=[Completion(content=c, total_tokens=tokens) for c in contents]
    )
    return client


def _words(n: int) -> str:
    return " ".join(f"w{i}" for i in range(n))


class TestRewriteSection:
    @pytest.mark.asyncio
    async def test_accepts_output_within_ratio(self) -> None:
        client = _make_client(_words(10))
        text, tokens, in_ratio = await _make_rewriter(client).rewrite_section(TEN_WORDS)
        assert text == _words(10)
        assert tokens == 5
        assert in_ratio is True
        assert client.create_chat_completion.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_when_too_short(self) -> None:
        client = _make_client(_words(3), _words(10))
        text, tokens, in_ratio = await _make_rewriter(client).rewrite_section(TEN_WORDS)
        assert text == _words(10)
        assert tokens == 10
        assert in_ratio is True

    @pytest.mark.asyncio
    async def test_keeps_last_output_after_max_retries(self) -> None:
        client = _make_client(_words(30), _words(25), _words(20))
        text, _, in_ratio = await _make_rewriter(client, max_retries=2).rewrite_section(TEN_WORDS)
        assert text == _words(20)
        assert in_ratio is False
        assert client.create_chat_completion.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_output_is_an_error(self) -> None:
        client = _make_client("   ")
        with pytest.raises(RewriteError):
            await _make_rewriter(client).rewrite_section(TEN_WORDS)

    @pytest.mark.asyncio
    async def test_section_without_words_is_not_sent(self) -> None:
        rewriter = _make_rewriter()
        text, tokens, _ = await rewriter.rewrite_section("   \n")
        assert tokens == 0
        rewriter._client.create_chat_completion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prompt_carries_bounds_and_section(self) -> None:
        client = _make_client(_words(10))
        await _make_rewriter(client, style="educational").rewrite_section(TEN_WORDS)
        kwargs = client.create_chat_completion.await_args.kwargs
        assert "90%" in kwargs["user_prompt"]
        assert "115%" in kwargs["user_prompt"]
        assert "educational" in kwargs["user_prompt"]
        assert kwargs["user_prompt"].rstrip().endswith(TEN_WORDS)
        assert kwargs["model"] == "test-model"


class TestRewriteDocument:
    @pytest.mark.asyncio
    async def test_rewrites_each_section_in_order(self) -> None:
        client = _make_client("## One\nfirst body here", "## Two\nsecond body here")
        result = await _make_rewriter(client).rewrite_document(
            "## One\nfirst body here\n\n## Two\nsecond body here\n"
        )
        assert result.sections == 2
        assert result.tokens_used == 10
        assert result.markdown.index("## One") < result.markdown.index("## Two")

    @pytest.mark.asyncio
    async def test_counts_sections_out_of_ratio(self) -> None:
        client = _make_client(_words(1), _words(1), _words(1))
        result = await _make_rewriter(client).rewrite_document(TEN_WORDS)
        assert result.sections_out_of_ratio == 1

    @pytest.mark.asyncio
    async def test_empty_document(self) -> None:
        result = await _make_rewriter().rewrite_document("")
        assert result.markdown == ""
        assert result.sections == 0


class TestRewriterBounds:
    def test_rejects_inverted_ratio(self) -> None:
        with pytest.raises(ValueError, match="Invalid length ratio"):
            _make_rewriter(min_ratio=1.2, max_ratio=1.0)


class TestTruncateSafely:
    def test_short_text_untouched(self) -> None:
        assert truncate_safely("short", 100) == "short"

    def test_cuts_at_paragraph_boundary(self) -> None:
        text = "a" * 60 + "\n\n" + "b" * 60
        assert truncate_safely(text, 100) == "a" * 60

    def test_hard_cut_without_boundary(self) -> None:
        assert truncate_safely("x" * 200, 50) == "x" * 50
