"""Candidate scoring and heading keyword extraction."""

import re

from improvepdf.images.models import ImageCandidate

MIN_LANDSCAPE_WIDTH = 1400
TARGET_RATIO = 16 / 9
MAX_KEYWORDS = 6

_WORD = re.compile(r"[^\W_]+", re.UNICODE)
_STOP_WORDS = frozenset(
    {
        "les", "des", "aux", "une", "dans", "avec", "pour", "par", "sur", "sans",
        "entre", "and", "the", "for", "from", "into", "over", "about", "with",
    }
)


def score(candidate: ImageCandidate) -> float:
    """Megapixels minus twice the distance from a 16:9 ratio."""
    ratio = candidate.width / max(1, candidate.height)
    return (candidate.width * candidate.height) / 1e6 - abs(ratio - TARGET_RATIO) * 2


def pick_best_landscape(
    candidates: list[ImageCandidate], want: int = 1
) -> list[ImageCandidate]:
    """Best-scored distinct landscape candidates at least 1400px wide."""
    eligible = [
        c for c in candidates if c.width >= MIN_LANDSCAPE_WIDTH and c.width >= c.height
    ]
    picked: list[ImageCandidate] = []
    seen: set[str] = set()
    for candidate in sorted(eligible, key=score, reverse=True):
        if candidate.url in seen:
            continue
        picked.append(candidate)
        seen.add(candidate.url)
        if len(picked) >= want:
            break
    return picked


def keywords_from_heading(title: str) -> list[str]:
    words = [
        w for w in _WORD.findall(title.lower()) if len(w) > 2 and w not in _STOP_WORDS
    ]
    return list(dict.fromkeys(words))[:MAX_KEYWORDS]
