from __future__ import annotations

import abc
import logging
import re
from typing import Any, Iterable

from anthropic import Anthropic

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a children's and young-adult story writer. You write vivid, linear stories and "
    "follow the requested output format exactly."
)


class LLMClient(abc.ABC):
    """Abstract interface for language models used in the pipeline."""

    @abc.abstractmethod
    def complete(self, prompt: str, **kwargs: Any) -> str:
        raise NotImplementedError


_SCENE_TEMPLATE = re.compile(
    r"^[ \t]*(\S+) 1:[ \t]*\n"
    r"[ \t]*(\S+): \[.*\][ \t]*\n"
    r"[ \t]*(\S+): \[.*\][ \t]*\n"
    r"[ \t]*(\S+): \[.*\][ \t]*\n"
    r"[ \t]*(\S+): \[.*\]",
    re.MULTILINE,
)
_SCENE_COUNT = re.compile(r"(?:EXACTLY|EXATAMENTE) (\d+)")
_SAMPLE_COUNT = re.compile(r"\b(?:write|crie) (\d+) ", re.IGNORECASE)


class EchoLLM(LLMClient):
    """Development stub returning canned, well-formed output for each prompt type."""

    def complete(self, prompt: str, **kwargs: Any) -> str:
        template = _SCENE_TEMPLATE.search(prompt)
        if template:
            count_match = _SCENE_COUNT.search(prompt)
            count = int(count_match.group(1)) if count_match else 3
            return self._scenes(count, template.groups())
        sample_match = _SAMPLE_COUNT.search(prompt)
        if sample_match:
            count = int(sample_match.group(1))
            return "\n".join(f"{index}. Stub style description {index}." for index in range(1, count + 1))
        return (
            "Stub story. A young explorer finds a map in the attic.\n\n"
            "She follows it through the forest and meets a talking fox.\n\n"
            "Together they find the treasure and return home before dark."
        )

    @staticmethod
    def _scenes(count: int, words: tuple[str, ...]) -> str:
        scene, title, description, narration, dialogue = words
        blocks = []
        for number in range(1, count + 1):
            blocks.append(
                f"{scene} {number}:\n"
                f"{title}: Stub title {number}\n"
                f"{description}: Stub description {number}\n"
                f"{narration}: Stub narration {number}\n"
                f"{dialogue}: Stub dialogue {number}"
            )
        return "\n\n".join(blocks)


class OpenAILLM(LLMClient):
    """Chat Completions wrapper for OpenAI-compatible clients."""

    def __init__(
        self,
        client: Any,
        model: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
    ) -> None:
        self.client = client
        self.model = model
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.temperature = temperature

    def complete(self, prompt: str, **kwargs: Any) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": kwargs.pop("system", self.system_prompt)},
                {"role": "user", "content": prompt},
            ],
            temperature=kwargs.pop("temperature", self.temperature),
            **kwargs,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class ClaudeLLM(LLMClient):
    """Anthropic Messages API wrapper."""

    def __init__(
        self,
        client: Anthropic,
        model: str,
        system_prompt: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> None:
        self.client = client
        self.model = model
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str, **kwargs: Any) -> str:
        params: dict[str, Any] = {
            "model": self.model,
            "system": kwargs.pop("system", self.system_prompt),
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
            "temperature": kwargs.pop("temperature", self.temperature),
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}],
                }
            ],
        }
        params.update(kwargs)
        response = self.client.messages.create(**params)
        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning(
                "Claude response truncated by max_tokens; consider increasing limit (current=%s)",
                params.get("max_tokens"),
            )
        return _collect_text(response.content)


def _collect_text(blocks: Iterable[Any]) -> str:
    parts: list[str] = []
    for block in blocks:
        if getattr(block, "type", None) == "text":
            parts.append(getattr(block, "text", ""))
    return "".join(parts)
