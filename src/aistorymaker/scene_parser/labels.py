from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

FIELD_NAMES = ("title", "description", "narration", "dialogue")


@dataclass(frozen=True)
class SceneLabels:
    """Marker word and field labels a model uses when writing scene blocks.

    The placeholder texts fill empty sections when a story is exported.
    """

    scene: tuple[str, ...]
    title: tuple[str, ...]
    description: tuple[str, ...]
    narration: tuple[str, ...]
    dialogue: tuple[str, ...]
    # Placeholders used when rendering a story for reading.
    not_available: str = "Not available"
    no_dialogue: str = "No dialogue in this scene."
    untitled_story: str = "My Story"

    @property
    def scene_word(self) -> str:
        return self.scene[0]

    def aliases(self, field: str) -> tuple[str, ...]:
        return getattr(self, field)

    def alternation(self, field: str) -> str:
        return _alternation(self.aliases(field))

    def any_field_alternation(self) -> str:
        names = [alias for field in FIELD_NAMES for alias in self.aliases(field)]
        return _alternation(names)

    def merge(self, other: "SceneLabels") -> "SceneLabels":
        return SceneLabels(
            scene=_dedupe(self.scene + other.scene),
            title=_dedupe(self.title + other.title),
            description=_dedupe(self.description + other.description),
            narration=_dedupe(self.narration + other.narration),
            dialogue=_dedupe(self.dialogue + other.dialogue),
            not_available=self.not_available,
            no_dialogue=self.no_dialogue,
            untitled_story=self.untitled_story,
        )


def _dedupe(values: tuple[str, ...]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return tuple(seen)


def _alternation(names: tuple[str, ...] | list[str]) -> str:
    # Longest first so "Descrição" wins over a shorter alias sharing its prefix.
    ordered = sorted(names, key=len, reverse=True)
    return "(?:" + "|".join(re.escape(name) for name in ordered) + ")"


ENGLISH = SceneLabels(
    scene=("Scene",),
    title=("Title",),
    description=("Description",),
    narration=("Narration",),
    dialogue=("Dialogue", "Dialog"),
)

PORTUGUESE = SceneLabels(
    scene=("Cena",),
    title=("Título", "Titulo"),
    description=("Descrição", "Descricao"),
    narration=("Narração", "Narracao"),
    dialogue=("Diálogo", "Dialogo"),
    not_available="Não disponível",
    no_dialogue="Sem diálogo nesta cena.",
    untitled_story="Minha história",
)

MULTILINGUAL = ENGLISH.merge(PORTUGUESE)

LOCALES: Mapping[str, SceneLabels] = {
    "en": ENGLISH,
    "pt": PORTUGUESE,
    "multi": MULTILINGUAL,
}


def labels_for(locale: str | None) -> SceneLabels:
    key = (locale or "en").lower()
    try:
        return LOCALES[key]
    except KeyError:
        raise ValueError(f"Unsupported scene locale '{locale}'") from None
