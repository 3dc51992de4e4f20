from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class SceneDraft(BaseModel):
    """Structured scene text extracted from a model response."""

    title: str = ""
    description: str = Field(default="", description="Setting, characters and visuals")
    narration: str = Field(default="", description="What happens in the scene")
    dialogue: str = Field(default="", description="Character speech, if any")

    @field_validator("title", "description", "narration", "dialogue", mode="before")
    @classmethod
    def empty_when_missing(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value)
