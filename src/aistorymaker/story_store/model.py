from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from aistorymaker.scene_parser.model import SceneDraft


def new_id() -> str:
    return uuid.uuid4().hex


def derive_title(proposal: str) -> str:
    """First sentence of the proposal, i.e. everything before the first period."""
    return (proposal or "").split(".")[0].strip()


class Scene(SceneDraft):
    id: str = Field(default_factory=new_id)
    story_id: str
    order: int = Field(ge=0)
    image_url: str = ""

    @classmethod
    def from_draft(cls, draft: SceneDraft, story_id: str, order: int) -> "Scene":
        fields = draft.model_dump(include={"title", "description", "narration", "dialogue"})
        return cls(story_id=story_id, order=order, **fields)


class StylePreview(SceneDraft):
    """Illustrated sample used to pick a style; never stored as a Scene."""

    image_url: str = ""


class Story(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str = ""
    briefing: str
    proposal: str = ""
    style: str = ""
    scenes: List[Scene] = Field(default_factory=list)
    visual_samples: List[StylePreview] = Field(default_factory=list)
    selected_visual_sample: Optional[StylePreview] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are taken to be UTC already."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
