from __future__ import annotations

import re
from typing import Any, Sequence

from .styles import translate_style

STYLE_SAMPLE_MARKERS = ("illustration in style", "ilustração no estilo")
STYLE_WORD_PATTERN = re.compile(r"(?:style|estilo)\s+([^\s,.]+)", re.IGNORECASE)

CONSISTENCY_INSTRUCTION = "Keep the characters' appearance consistent with the previous scenes. "
FALLBACK_CONTENT = "A scene from an illustrated story."

STYLE_SAMPLE_SEEDS = {
    "en": (
        "Illustration in style {style} showing: {excerpt}. "
        "High quality, vivid colors, full characters, no text."
    ),
    "pt": (
        "Ilustração no estilo {style} mostrando: {excerpt}. "
        "Alta qualidade, cores vivas, personagens completos, sem texto."
    ),
}


def style_sample_seed(style: str, proposal: str, locale: str = "en") -> str:
    """Seed text for a style preview image; recognised by :meth:`ConsistencyPromptBuilder.build`."""
    template = STYLE_SAMPLE_SEEDS.get(locale, STYLE_SAMPLE_SEEDS["en"])
    excerpt = (proposal or "")[:100].replace('"', "'")
    return template.format(style=style.strip(), excerpt=excerpt)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class ConsistencyPromptBuilder:
    """Assemble image prompts that keep a sequence of scenes visually coherent."""

    def __init__(self, max_chars: int = 1000) -> None:
        self.max_chars = max_chars

    def build(
        self,
        seed: Any,
        style: str | None = "",
        previous_images: Sequence[str] = (),
        order: int | None = None,
    ) -> str:
        content = self._base_content(seed)
        if self._is_style_sample(content):
            return self._style_sample_prompt(content, style)

        if order is None:
            order = getattr(seed, "order", None)

        consistency = CONSISTENCY_INSTRUCTION if previous_images else ""
        prompt = f"Create an image based on this description: {consistency}{content}"
        if isinstance(order, int) and order > 0:
            prompt += (
                f" This is scene {order + 1} of a continuous sequence."
                " Keep the same characters, with the same physical appearance,"
                " clothing and colors as in the previous scenes."
            )
        if _text(style):
            prompt = f"{translate_style(style)} {prompt}"
        return prompt[: self.max_chars]

    def _base_content(self, seed: Any) -> str:
        if isinstance(seed, str):
            return seed.strip() or FALLBACK_CONTENT
        if seed is None:
            return FALLBACK_CONTENT
        for attr in ("description", "narration", "dialogue", "title"):
            value = _text(getattr(seed, attr, None))
            if value:
                return value
        return FALLBACK_CONTENT

    @staticmethod
    def _is_style_sample(content: str) -> bool:
        lowered = content.lower()
        return any(marker in lowered for marker in STYLE_SAMPLE_MARKERS)

    def _style_sample_prompt(self, content: str, style: str | None) -> str:
        requested = _text(style)
        if not requested:
            match = STYLE_WORD_PATTERN.search(content)
            requested = match.group(1) if match else ""
        return f"{translate_style(requested)} style image with people"[: self.max_chars]
