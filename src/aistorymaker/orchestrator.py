from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from anthropic import Anthropic
from openai import OpenAI
from pydantic import BaseModel, field_validator, model_validator

from aistorymaker.exporter.html_export import embed_images as fetch_embedded_images
from aistorymaker.exporter.html_export import render_story_html
from aistorymaker.media_pipeline.image_client import DryRunImageClient, ImageClient, OpenAIImageClient
from aistorymaker.prompt_builder.builder import ConsistencyPromptBuilder, style_sample_seed
from aistorymaker.scene_parser.labels import LOCALES, SceneLabels, labels_for
from aistorymaker.scene_parser.parser import parse_scenes
from aistorymaker.scene_parser.reconciler import reconcile_scenes
from aistorymaker.script_engine.engine import StoryEngine
from aistorymaker.script_engine.llm import ClaudeLLM, EchoLLM, LLMClient, OpenAILLM
from aistorymaker.story_store.model import Scene, Story, StylePreview, derive_title
from aistorymaker.story_store.repository import InMemoryStoryRepository, StoryRepository

logger = logging.getLogger(__name__)

DEFAULT_LLM_MODELS = {
    "openai": "gpt-4o",
    "claude": "claude-sonnet-4-5",
}
SCENE_TEXT_FIELDS = ("title", "description", "narration", "dialogue")


class ValidationError(ValueError):
    """Raised when a request is rejected before any model call is made."""


class PipelineConfig(BaseModel):
    llm_provider: str = "openai"
    llm_model: Optional[str] = None
    openai_api_key_env: str = "OPENAI_API_KEY"
    anthropic_api_key_env: str = "ANTHROPIC_API_KEY"
    image_provider: str = "openai"
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"
    image_quality: str = "hd"
    image_style: str = "vivid"
    locale: str = "en"
    min_scenes: int = 3
    max_scenes: int = 15
    visual_sample_count: int = 3
    max_prompt_chars: int = 1000
    placeholder_image: str = "/images/placeholder.jpg"
    request_timeout: float = 120.0

    @field_validator("locale")
    @classmethod
    def known_locale(cls, value: str) -> str:
        key = value.lower()
        if key not in LOCALES:
            raise ValueError(f"locale must be one of {sorted(LOCALES)}")
        return key

    @model_validator(mode="after")
    def scene_bounds(self) -> "PipelineConfig":
        if not 1 <= self.min_scenes <= self.max_scenes:
            raise ValueError("min_scenes must be between 1 and max_scenes")
        return self

    @classmethod
    def from_file(cls, path: Path) -> "PipelineConfig":
        text = path.read_text(encoding="utf-8")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            import yaml

            payload = yaml.safe_load(text)
        return cls.model_validate(payload or {})

    def build_llm(self) -> LLMClient:
        provider = self.llm_provider.lower()
        model = self.llm_model or DEFAULT_LLM_MODELS.get(provider, "")
        if provider == "openai":
            client = OpenAI(api_key=self._require_key(self.openai_api_key_env), timeout=self.request_timeout)
            return OpenAILLM(client=client, model=model)
        if provider == "claude":
            client = Anthropic(api_key=self._require_key(self.anthropic_api_key_env), timeout=self.request_timeout)
            return ClaudeLLM(client=client, model=model)
        if provider != "echo":
            logger.warning("Unknown llm_provider '%s'; falling back to EchoLLM", provider)
        return EchoLLM()

    def build_image_client(self) -> ImageClient:
        provider = self.image_provider.lower()
        if provider == "openai":
            return OpenAIImageClient(
                api_key=self._require_key(self.openai_api_key_env),
                model=self.image_model,
                size=self.image_size,
                quality=self.image_quality,
                style=self.image_style,
                request_timeout=self.request_timeout,
            )
        if provider == "dry-run":
            return DryRunImageClient()
        raise ValueError(f"Unsupported image_provider '{self.image_provider}'")

    def offline(self) -> "PipelineConfig":
        return self.model_copy(update={"llm_provider": "echo", "image_provider": "dry-run"})

    @staticmethod
    def _require_key(env_name: str) -> str:
        api_key = os.getenv(env_name)
        if not api_key:
            raise RuntimeError(f"Missing API key. Set {env_name} in your environment.")
        return api_key


@dataclass
class StoryOrchestrator:
    config: PipelineConfig
    engine: StoryEngine
    image_client: ImageClient
    prompt_builder: ConsistencyPromptBuilder
    repository: StoryRepository
    labels: SceneLabels

    @classmethod
    def from_file(cls, path: Path) -> "StoryOrchestrator":
        return cls.default(PipelineConfig.from_file(path))

    @classmethod
    def default(cls, config: PipelineConfig | None = None) -> "StoryOrchestrator":
        config = config or PipelineConfig()
        return cls(
            config=config,
            engine=StoryEngine(
                llm=config.build_llm(),
                locale=config.locale,
                min_scenes=config.min_scenes,
                max_scenes=config.max_scenes,
            ),
            image_client=config.build_image_client(),
            prompt_builder=ConsistencyPromptBuilder(max_chars=config.max_prompt_chars),
            repository=InMemoryStoryRepository(),
            labels=labels_for(config.locale),
        )

    # Stories ----------------------------------------------------------

    def create_story(self, briefing: str) -> Story:
        briefing = _require_text(briefing, "briefing")
        logger.info("Generating story proposal")
        proposal = self.engine.generate_proposal(briefing)
        story = Story(briefing=briefing, proposal=proposal, title=derive_title(proposal))
        return self.repository.add_story(story)

    def get_story(self, story_id: str) -> Story:
        return self.repository.get_story(story_id)

    def list_stories(self) -> List[Story]:
        return self.repository.list_stories()

    def update_proposal(self, story_id: str, proposal: str) -> Story:
        proposal = _require_text(proposal, "proposal")
        story = self.repository.get_story(story_id)
        story.proposal = proposal
        story.title = derive_title(proposal)
        return self.repository.save_story(story)

    def delete_story(self, story_id: str) -> None:
        self.repository.delete_story(story_id)

    # Style selection --------------------------------------------------

    def describe_style(self, story_id: str, style: str, count: int = 3) -> List[str]:
        style = _require_text(style, "style")
        story = self._store_style(story_id, style)
        return self.engine.generate_style_descriptions(story.proposal, style, count)

    def generate_visual_samples(self, story_id: str, style: str) -> List[StylePreview]:
        style = _require_text(style, "style")
        story = self._store_style(story_id, style)
        seed = style_sample_seed(style, story.proposal, self.config.locale)
        samples = []
        for index in range(self.config.visual_sample_count):
            logger.info("Generating visual sample %s/%s", index + 1, self.config.visual_sample_count)
            prompt = self.prompt_builder.build(seed, style)
            samples.append(
                StylePreview(
                    title=f"Sample {index + 1}",
                    description=f"Visual sample in style {style}",
                    image_url=self._generate_image(prompt),
                )
            )
        story.visual_samples = samples
        story.selected_visual_sample = None
        self.repository.save_story(story)
        return samples

    def select_visual_sample(self, story_id: str, index: int) -> Story:
        story = self.repository.get_story(story_id)
        if not 0 <= index < len(story.visual_samples):
            raise ValidationError(f"Visual sample index {index} out of range")
        story.selected_visual_sample = story.visual_samples[index]
        return self.repository.save_story(story)

    def _store_style(self, story_id: str, style: str) -> Story:
        story = self.repository.get_story(story_id)
        story.style = style
        return self.repository.save_story(story)

    # Scenes -----------------------------------------------------------

    def generate_scenes(self, story_id: str, count: int) -> Story:
        if not self.config.min_scenes <= count <= self.config.max_scenes:
            raise ValidationError(
                f"Scene count must be between {self.config.min_scenes} and {self.config.max_scenes}"
            )
        story = self.repository.get_story(story_id)

        logger.info("Generating %s scenes for story %s", count, story_id)
        raw = self.engine.generate_scene_text(story.proposal, count)
        drafts = parse_scenes(raw, count, source_text=story.proposal, labels=self.labels)
        drafts = reconcile_scenes(drafts, count, title_word=self.labels.scene_word)
        if len(drafts) != count:
            logger.error("Scene reconciliation produced %s scenes, expected %s", len(drafts), count)

        scenes = [Scene.from_draft(draft, story_id, order) for order, draft in enumerate(drafts)]
        self.repository.replace_scenes(story_id, scenes)

        if story.style:
            return self.illustrate_story(story_id)
        return self.repository.get_story(story_id)

    def illustrate_story(self, story_id: str, style: str | None = None) -> Story:
        if style is not None:
            self._store_style(story_id, _require_text(style, "style"))
        story = self.repository.get_story(story_id)

        references: list[str] = []
        for scene in story.scenes:
            logger.info("Illustrating scene %s (order %s)", scene.id, scene.order)
            prompt = self.prompt_builder.build(scene, story.style, tuple(references), order=scene.order)
            scene.image_url = self._generate_image(prompt)
            self.repository.save_scene(scene)
            if self._is_reference(scene.image_url):
                references.append(scene.image_url)
        return self.repository.get_story(story_id)

    def update_scene(
        self,
        scene_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        narration: str | None = None,
        dialogue: str | None = None,
    ) -> Scene:
        scene = self.repository.get_scene(scene_id)
        updates = {"title": title, "description": description, "narration": narration, "dialogue": dialogue}
        for name in SCENE_TEXT_FIELDS:
            value = updates[name]
            if value is not None and value.strip():
                setattr(scene, name, value)
        return self.repository.save_scene(scene)

    def regenerate_scene_image(self, scene_id: str, custom_prompt: str | None = None) -> Scene:
        scene = self.repository.get_scene(scene_id)
        story = self.repository.get_story(scene.story_id)
        references = [
            earlier.image_url
            for earlier in story.scenes
            if earlier.order < scene.order and self._is_reference(earlier.image_url)
        ]
        if custom_prompt and custom_prompt.strip():
            prompt = self.prompt_builder.build(custom_prompt, story.style, tuple(references))
        else:
            prompt = self.prompt_builder.build(scene, story.style, tuple(references), order=scene.order)
        scene.image_url = self._generate_image(prompt)
        return self.repository.save_scene(scene)

    # Export -----------------------------------------------------------

    def export_html(self, story_id: str, embed_images: bool = False) -> str:
        story = self.repository.get_story(story_id)
        sources = fetch_embedded_images(story, timeout=self.config.request_timeout) if embed_images else None
        return render_story_html(story, image_sources=sources, labels=self.labels)

    # Internal helpers -------------------------------------------------

    def _generate_image(self, prompt: str) -> str:
        try:
            url = self.image_client.generate(prompt)
        except Exception as exc:
            logger.error("Image generation failed; using placeholder: %s", exc)
            return self.config.placeholder_image
        if not url:
            logger.error("Image generation returned no url; using placeholder")
            return self.config.placeholder_image
        return url

    def _is_reference(self, url: str) -> bool:
        return bool(url) and url != self.config.placeholder_image


def _require_text(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{name} must not be blank")
    return value.strip()
