from __future__ import annotations

import logging
from typing import Sequence

from .model import SceneDraft

logger = logging.getLogger(__name__)

GENERIC_DESCRIPTION = "New scene continuing the story."
GENERIC_NARRATION = "The story continues."


def _padding(last: SceneDraft | None, position: int, title_word: str) -> SceneDraft:
    if last is None:
        description = GENERIC_DESCRIPTION
        narration = GENERIC_NARRATION
        dialogue = ""
    else:
        description = f"Continuation of: {last.description}" if last.description else GENERIC_DESCRIPTION
        narration = last.narration or GENERIC_NARRATION
        dialogue = last.dialogue
    return SceneDraft(
        title=f"{title_word} {position + 1}",
        description=description,
        narration=narration,
        dialogue=dialogue,
    )


def reconcile_scenes(
    drafts: Sequence[SceneDraft],
    target: int,
    *,
    title_word: str = "Scene",
) -> list[SceneDraft]:
    """Pad or truncate ``drafts`` so exactly ``target`` remain.

    Padding copies from the last parsed draft, never from another padding
    entry. ``target`` is expected to be validated by the caller.
    """
    result = list(drafts)
    if len(result) == target:
        return result
    if len(result) > target:
        logger.warning("Model returned %d scenes, truncating to %d", len(result), target)
        return result[: max(target, 0)]

    logger.warning("Model returned %d scenes, padding to %d", len(result), target)
    last = result[-1] if result else None
    while len(result) < target:
        result.append(_padding(last, len(result), title_word))
    return result
