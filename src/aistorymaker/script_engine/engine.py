from __future__ import annotations

import logging
import re

from .llm import EchoLLM, LLMClient
from .prompts import render_proposal_prompt, render_scene_prompt, render_style_prompt

logger = logging.getLogger(__name__)

MIN_SCENES = 3
MAX_SCENES = 15
MIN_STYLE_DESCRIPTIONS = 1
MAX_STYLE_DESCRIPTIONS = 5

_NUMBERED_ITEM = re.compile(r"(?m)^\s*\d+\.\s+")


class TextGenerationError(RuntimeError):
    """Raised when the language model returns no usable text."""


class StoryEngine:
    def __init__(
        self,
        llm: LLMClient | None = None,
        locale: str = "en",
        min_scenes: int = MIN_SCENES,
        max_scenes: int = MAX_SCENES,
    ) -> None:
        self.llm = llm or EchoLLM()
        self.locale = locale
        self.min_scenes = min_scenes
        self.max_scenes = max_scenes

    def clamp_scene_count(self, count: int) -> int:
        return min(max(count, self.min_scenes), self.max_scenes)

    def generate_proposal(self, briefing: str) -> str:
        prompt = render_proposal_prompt(briefing, self.locale)
        return self._complete(prompt, "story proposal")

    def generate_scene_text(self, proposal: str, count: int) -> str:
        requested = self.clamp_scene_count(count)
        if requested != count:
            logger.warning("Scene count %s clamped to %s", count, requested)
        prompt = render_scene_prompt(proposal, requested, self.locale)
        return self._complete(prompt, "scene text", max_tokens=3000)

    def generate_style_descriptions(self, proposal: str, style: str, count: int = 3) -> list[str]:
        sample_count = min(max(count, MIN_STYLE_DESCRIPTIONS), MAX_STYLE_DESCRIPTIONS)
        prompt = render_style_prompt(proposal, style, sample_count, self.locale)
        raw = self._complete(prompt, "style descriptions")
        return split_numbered_list(raw)[:sample_count]

    def _complete(self, prompt: str, purpose: str, **kwargs) -> str:
        logger.info("Requesting %s from %s", purpose, type(self.llm).__name__)
        raw = self.llm.complete(prompt, **kwargs)
        logger.debug("LLM raw response: %s", raw)
        text = strip_code_fences(raw or "")
        if not text:
            raise TextGenerationError(f"Language model returned an empty {purpose}")
        return text


def strip_code_fences(text: str) -> str:
    """Return the body of a fenced reply, or the stripped text when unfenced."""
    candidate = text.strip()
    if candidate.startswith("```"):
        lines = candidate.splitlines()
        closing_index = len(lines) - 1 if len(lines) > 1 and lines[-1].startswith("```") else len(lines)
        candidate = "\n".join(lines[1:closing_index]).strip()
    return candidate


def split_numbered_list(text: str) -> list[str]:
    """Split "1. foo 2. bar" style replies into their non-blank items.

    Text before the first numbered item is treated as a preamble and dropped.
    Replies without numbering are returned as a single item.
    """
    if not _NUMBERED_ITEM.search(text):
        stripped = text.strip()
        return [stripped] if stripped else []
    items = _NUMBERED_ITEM.split(text)[1:]
    return [item.strip() for item in items if item.strip()]
