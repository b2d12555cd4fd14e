from pathlib import Path

from improvepdf.rewrite.exceptions import RewriteError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"

TEXT_MARKER = "=== TEXT TO REWRITE ==="

STYLE_PRESETS: dict[str, str] = {
    "neutral": "Tone: neutral and clear.",
    "sober": "Tone: sober and clear, without emphasis.",
    "educational": "Tone: educational and accessible, short sentences.",
    "copywriter": "Tone: soft copywriting, more engaging, no exaggerated claims.",
    "journalistic": "Tone: informative, neutral, factual.",
}


def load_prompt(name: str, path: Path | None = None) -> str:
    """Load a bundled prompt file by name (without extension).

    Raises:
        RewriteError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / f"{name}.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RewriteError(f"Failed to load prompt template: {exc}") from exc


def style_line(preset: str) -> str:
    return STYLE_PRESETS.get(preset, STYLE_PRESETS["neutral"])
