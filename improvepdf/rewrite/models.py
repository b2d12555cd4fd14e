from dataclasses import dataclass


@dataclass(frozen=True)
class Completion:
    """Text returned by an AI provider plus the tokens it billed."""

    content: str
    total_tokens: int = 0


@dataclass(frozen=True)
class RewriteResult:
    markdown: str
    tokens_used: int = 0
    sections: int = 0
    sections_out_of_ratio: int = 0
