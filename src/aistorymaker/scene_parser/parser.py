from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Iterable, Union

from .labels import ENGLISH, FIELD_NAMES, SceneLabels
from .model import SceneDraft

logger = logging.getLogger(__name__)

# Markdown emphasis is tolerated around labels ("**Title:**", "__Dialogue__:").
_LABEL_TAIL = r"[*_]*[ \t]*:[*_]*[ \t]*"
_SOURCE_EXCERPT_CHARS = 30


@dataclass(frozen=True)
class Parsed:
    strategy: str
    drafts: tuple[SceneDraft, ...]


@dataclass(frozen=True)
class Empty:
    strategy: str


ParseOutcome = Union[Parsed, Empty]
ParseTier = Callable[[], ParseOutcome]


def _outcome(strategy: str, drafts: list[SceneDraft]) -> ParseOutcome:
    if drafts:
        return Parsed(strategy=strategy, drafts=tuple(drafts))
    return Empty(strategy=strategy)


def first_parsed(tiers: Iterable[ParseTier]) -> ParseOutcome:
    """Run tiers in order and return the first one that produced drafts."""
    outcome: ParseOutcome = Empty(strategy="none")
    for tier in tiers:
        outcome = tier()
        if isinstance(outcome, Parsed):
            return outcome
        logger.warning("Scene parsing strategy '%s' found no scenes", outcome.strategy)
    return outcome


@dataclass(frozen=True)
class _Patterns:
    block_marker: re.Pattern[str]
    line_marker: re.Pattern[str]
    block_fields: dict[str, re.Pattern[str]]
    line_fields: dict[str, re.Pattern[str]]


@lru_cache(maxsize=8)
def _patterns(labels: SceneLabels) -> _Patterns:
    scene = labels.alternation("scene")
    any_field = labels.any_field_alternation()
    next_label = rf"(?=[*_#]*(?<!\w){any_field}{_LABEL_TAIL}|\Z)"

    # Titles stop at the end of their line or at an inline label, whichever comes first.
    block_fields = {
        "title": re.compile(
            rf"(?<!\w){labels.alternation('title')}{_LABEL_TAIL}(.*?)[ \t]*"
            rf"(?=\r?\n|[*_#]*(?<!\w){any_field}{_LABEL_TAIL}|\Z)",
            re.IGNORECASE,
        )
    }
    for name in FIELD_NAMES[1:]:
        block_fields[name] = re.compile(
            rf"(?<!\w){labels.alternation(name)}{_LABEL_TAIL}(.*?){next_label}",
            re.IGNORECASE | re.DOTALL,
        )

    line_fields = {
        name: re.compile(
            rf"^[#*_>\-\s]*{labels.alternation(name)}{_LABEL_TAIL}(.*)$",
            re.IGNORECASE,
        )
        for name in FIELD_NAMES
    }

    return _Patterns(
        block_marker=re.compile(rf"(?<!\w){scene}\s+\d+\s*[*_]*\s*:", re.IGNORECASE),
        line_marker=re.compile(rf"^[#*_\s]*{scene}\s+(\d+)[*_\s]*:?[*_\s]*$", re.IGNORECASE),
        block_fields=block_fields,
        line_fields=line_fields,
    )


def _clean(value: str) -> str:
    return value.strip().strip("*_").strip()


# Tier 1 -------------------------------------------------------------------


def split_blocks(text: str, labels: SceneLabels = ENGLISH) -> ParseOutcome:
    """Split on "Scene N:" markers and pull labeled fields out of each block."""
    patterns = _patterns(labels)
    segments = patterns.block_marker.split(text)
    drafts: list[SceneDraft] = []
    for segment in segments[1:]:
        block = segment.strip()
        if not block:
            continue
        values: dict[str, str] = {}
        for name, pattern in patterns.block_fields.items():
            match = pattern.search(block)
            values[name] = _clean(match.group(1)) if match else ""
        if not values["title"]:
            values["title"] = f"{labels.scene_word} {len(drafts) + 1}"
        drafts.append(SceneDraft(**values))
    return _outcome("block-split", drafts)


# Tier 2 -------------------------------------------------------------------


@dataclass
class _LineScanner:
    """Line-by-line state machine.

    ``current is None`` is the NoScene state; otherwise the scanner is inside a
    scene and ``cursor`` names the field being filled (``None`` until a label is seen).
    """

    labels: SceneLabels
    drafts: list[SceneDraft] = field(default_factory=list)
    current: dict[str, str] | None = None
    cursor: str | None = None

    def feed(self, raw_line: str) -> None:
        line = raw_line.strip()
        patterns = _patterns(self.labels)

        marker = patterns.line_marker.match(line)
        if marker:
            self._push()
            self.current = {
                "title": f"{self.labels.scene_word} {marker.group(1)}",
                "description": "",
                "narration": "",
                "dialogue": "",
            }
            self.cursor = None
            return

        if self.current is None:
            return

        for name, pattern in patterns.line_fields.items():
            label = pattern.match(line)
            if label:
                self.cursor = name
                value = _clean(label.group(1))
                if value:
                    self.current[name] = value
                return

        if self.cursor and line:
            self._append(self.cursor, line)

    def _append(self, name: str, line: str) -> None:
        assert self.current is not None
        existing = self.current[name]
        separator = " " if name == "title" else "\n"
        self.current[name] = f"{existing}{separator}{line}" if existing else line

    def _push(self) -> None:
        if self.current is not None:
            self.drafts.append(SceneDraft(**self.current))
        self.current = None
        self.cursor = None

    def finish(self) -> list[SceneDraft]:
        self._push()
        return self.drafts


def scan_lines(text: str, labels: SceneLabels = ENGLISH) -> ParseOutcome:
    scanner = _LineScanner(labels=labels)
    for line in text.splitlines():
        scanner.feed(line)
    return _outcome("line-scan", scanner.finish())


# Tier 3 -------------------------------------------------------------------


def default_fill(expected_count: int, source_text: str, labels: SceneLabels = ENGLISH) -> ParseOutcome:
    excerpt = (source_text or "")[:_SOURCE_EXCERPT_CHARS]
    drafts = [
        SceneDraft(
            title=f"{labels.scene_word} {index + 1}",
            description=f'Part {index + 1} of the story about "{excerpt}..."',
            narration="Scene without specific content.",
            dialogue="",
        )
        for index in range(max(expected_count, 0))
    ]
    return _outcome("default-fill", drafts)


def parse_scenes(
    raw_text: str | None,
    expected_count: int,
    *,
    source_text: str | None = None,
    labels: SceneLabels = ENGLISH,
) -> list[SceneDraft]:
    """Convert model output into scene drafts.

    The result length is not guaranteed to equal ``expected_count``; use
    :func:`aistorymaker.scene_parser.reconciler.reconcile_scenes` for that.
    """
    text = raw_text if isinstance(raw_text, str) else ""
    source = source_text if source_text is not None else text
    outcome = first_parsed(
        (
            lambda: split_blocks(text, labels),
            lambda: scan_lines(text, labels),
            lambda: default_fill(expected_count, source, labels),
        )
    )
    if isinstance(outcome, Empty):
        return []
    logger.debug("Parsed %d scene(s) with %s", len(outcome.drafts), outcome.strategy)
    return list(outcome.drafts)
