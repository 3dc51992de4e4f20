from __future__ import annotations

from aistorymaker.scene_parser.model import SceneDraft
from aistorymaker.scene_parser.reconciler import GENERIC_DESCRIPTION, GENERIC_NARRATION, reconcile_scenes


def _drafts(count: int) -> list[SceneDraft]:
    return [
        SceneDraft(title=f"T{n}", description=f"D{n}", narration=f"N{n}", dialogue=f"L{n}")
        for n in range(1, count + 1)
    ]


def test_exact_length_is_returned_unchanged():
    drafts = _drafts(4)
    result = reconcile_scenes(drafts, 4)
    assert result == drafts
    assert result is not drafts


def test_truncates_to_first_target_drafts():
    drafts = _drafts(7)
    assert reconcile_scenes(drafts, 5) == drafts[:5]


def test_pads_empty_input_with_generic_scenes():
    result = reconcile_scenes([], 3)
    assert [draft.title for draft in result] == ["Scene 1", "Scene 2", "Scene 3"]
    for draft in result:
        assert draft.description == GENERIC_DESCRIPTION
        assert draft.narration == GENERIC_NARRATION
        assert draft.dialogue == ""


def test_padding_continues_from_last_parsed_draft():
    drafts = [SceneDraft(title="Start", description="A forest", narration="The fox walks", dialogue="Fox: Hi")]
    result = reconcile_scenes(drafts, 3)
    assert result[0] == drafts[0]
    assert [draft.title for draft in result[1:]] == ["Scene 2", "Scene 3"]
    for padded in result[1:]:
        assert padded.description == "Continuation of: A forest"
        assert padded.narration == "The fox walks"
        assert padded.dialogue == "Fox: Hi"


def test_padding_uses_placeholders_when_last_draft_is_blank():
    result = reconcile_scenes([SceneDraft(title="Only title")], 2)
    assert result[1].description == GENERIC_DESCRIPTION
    assert result[1].narration == GENERIC_NARRATION


def test_padding_title_word_is_configurable():
    result = reconcile_scenes(_drafts(1), 3, title_word="Cena")
    assert [draft.title for draft in result] == ["T1", "Cena 2", "Cena 3"]
