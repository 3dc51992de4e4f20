from __future__ import annotations

DEFAULT_STYLE = "realistic"

# Keys are lowercase. Every value also appears as its own key so that
# translating an already translated phrase is a no-op.
STYLE_TERMS: dict[str, str] = {
    # Portuguese
    "realista": "photorealistic",
    "fotorrealista": "hyper-realistic",
    "aquarela": "watercolor painting",
    "desenho animado": "cartoon",
    "óleo": "oil painting",
    "oleo": "oil painting",
    "pintura a óleo": "oil painting",
    "pastel": "pastel drawing",
    "pixelart": "pixel art",
    "pintura": "painting",
    "quadrinhos": "comic book",
    "lápis": "pencil sketch",
    "lapis": "pencil sketch",
    # English
    "realistic": "realistic",
    "photorealistic": "photorealistic",
    "hyperrealistic": "hyper-realistic",
    "hyper-realistic": "hyper-realistic",
    "watercolor": "watercolor painting",
    "watercolour": "watercolor painting",
    "watercolor painting": "watercolor painting",
    "cartoon": "cartoon",
    "anime": "anime style",
    "anime style": "anime style",
    "oil": "oil painting",
    "oil painting": "oil painting",
    "pastel drawing": "pastel drawing",
    "pixel art": "pixel art",
    "painting": "painting",
    "comic": "comic book",
    "comic book": "comic book",
    "pencil": "pencil sketch",
    "pencil sketch": "pencil sketch",
}


def translate_style(term: str | None) -> str:
    """Map a free-text style name to the English phrase used in image prompts.

    Unknown terms are returned as given.
    """
    if term is None or not term.strip():
        return DEFAULT_STYLE
    return STYLE_TERMS.get(term.strip().lower(), term)
