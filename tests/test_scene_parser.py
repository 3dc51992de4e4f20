from __future__ import annotations

import pytest

from aistorymaker.scene_parser.labels import ENGLISH, MULTILINGUAL, PORTUGUESE, labels_for
from aistorymaker.scene_parser.model import SceneDraft
from aistorymaker.scene_parser.parser import (
    Empty,
    Parsed,
    default_fill,
    first_parsed,
    parse_scenes,
    scan_lines,
    split_blocks,
)
from aistorymaker.scene_parser.reconciler import reconcile_scenes


def test_single_labeled_block():
    text = "Scene 1:\nTitle: A\nDescription: B\nNarration: C\nDialogue: D"
    drafts = parse_scenes(text, 1)
    assert drafts == [SceneDraft(title="A", description="B", narration="C", dialogue="D")]


def test_inline_labels_end_the_title():
    text = "Scene 1:\nTitle: A Description: B Narration: C Dialogue: D"
    outcome = split_blocks(text)
    assert isinstance(outcome, Parsed)
    assert outcome.drafts == (SceneDraft(title="A", description="B", narration="C", dialogue="D"),)


def test_inline_markdown_labels_end_the_title():
    text = "Cena 1: Título: A raposa **Descrição:** Uma toca\nNarração: Ela acorda"
    drafts = parse_scenes(text, 1, labels=PORTUGUESE)
    assert drafts[0].title == "A raposa"
    assert drafts[0].description == "Uma toca"
    assert drafts[0].narration == "Ela acorda"


def test_multiline_fields_and_preamble_are_handled():
    text = (
        "Here are your scenes!\n\n"
        "Scene 1:\n"
        "Title: The Den\n"
        "Description: A cosy den\nunder an old oak.\n"
        "Narration: The fox wakes up.\n"
        "Dialogue: Fox: Good morning!\nOwl: Hoo.\n\n"
        "Scene 2:\n"
        "Title: The River\n"
        "Description: A wide river.\n"
        "Narration: The fox looks for a bridge.\n"
        "Dialogue:\n"
    )
    drafts = parse_scenes(text, 2)
    assert [draft.title for draft in drafts] == ["The Den", "The River"]
    assert drafts[0].description == "A cosy den\nunder an old oak."
    assert drafts[0].dialogue == "Fox: Good morning!\nOwl: Hoo."
    assert drafts[1].dialogue == ""


def test_missing_fields_default_to_empty_and_title_to_position():
    text = "Scene 1:\nDescription: Only a description\n\nScene 7:\nNarration: Something happens"
    drafts = parse_scenes(text, 2)
    assert drafts[0].title == "Scene 1"
    assert drafts[0].narration == ""
    assert drafts[1].title == "Scene 2"
    assert drafts[1].description == ""
    assert drafts[1].narration == "Something happens"


def test_markdown_bold_labels():
    text = (
        "**Scene 1:**\n"
        "**Title:** The Fox\n"
        "**Description:** A den\n"
        "**Narration**: Wakes up\n"
        "**Dialogue:** Fox: Hi"
    )
    (draft,) = parse_scenes(text, 1)
    assert draft.title == "The Fox"
    assert draft.description == "A den"
    assert draft.narration == "Wakes up"
    assert draft.dialogue == "Fox: Hi"


def test_labels_are_case_insensitive():
    text = "SCENE 1:\ntitle: Lower\nDESCRIPTION: Upper\nnarration: mixed\ndialog: short alias"
    (draft,) = parse_scenes(text, 1)
    assert draft == SceneDraft(title="Lower", description="Upper", narration="mixed", dialogue="short alias")


def test_portuguese_labels():
    text = (
        "Cena 1:\n"
        "Título: O Início\n"
        "Descrição: Uma floresta escura\n"
        "Narração: A raposa acorda.\n"
        "Diálogo: Raposa: Bom dia!"
    )
    (draft,) = parse_scenes(text, 1, labels=PORTUGUESE)
    assert draft.title == "O Início"
    assert draft.description == "Uma floresta escura"
    assert draft.narration == "A raposa acorda."
    assert draft.dialogue == "Raposa: Bom dia!"


def test_multilingual_labels_accept_both_languages():
    text = "Cena 1:\nTitle: Mixed\nDescrição: Floresta\nNarration: Walks\nDiálogo: Oi"
    (draft,) = parse_scenes(text, 1, labels=MULTILINGUAL)
    assert draft == SceneDraft(title="Mixed", description="Floresta", narration="Walks", dialogue="Oi")


def test_line_scanner_used_when_markers_have_no_colon():
    text = (
        "Scene 1\n"
        "Title: Dawn\n"
        "breaks\n"
        "Description: A hill\n"
        "with grass\n"
        "Narration: Sun rises\n"
        "## Scene 2\n"
        "Title: Noon\n"
        "Dialogue: Hi\n"
        "there\n"
    )
    assert isinstance(split_blocks(text), Empty)
    drafts = parse_scenes(text, 2)
    assert drafts == [
        SceneDraft(title="Dawn breaks", description="A hill\nwith grass", narration="Sun rises", dialogue=""),
        SceneDraft(title="Noon", description="", narration="", dialogue="Hi\nthere"),
    ]


def test_line_scanner_ignores_text_before_first_marker():
    outcome = scan_lines("Title: Orphan\nScene 3\nNarration: Kept")
    assert isinstance(outcome, Parsed)
    assert outcome.drafts == (SceneDraft(title="Scene 3", narration="Kept"),)


def test_default_fill_references_source_text():
    proposal = "A brave little fox goes on a long journey across the valley."
    drafts = parse_scenes("nothing useful here", 4, source_text=proposal)
    assert len(drafts) == 4
    assert [draft.title for draft in drafts] == ["Scene 1", "Scene 2", "Scene 3", "Scene 4"]
    assert drafts[0].description == f'Part 1 of the story about "{proposal[:30]}..."'
    assert drafts[3].narration == "Scene without specific content."
    assert all(draft.dialogue == "" for draft in drafts)


@pytest.mark.parametrize("raw", ["", None, "   \n\n", "Scene : broken", "Scene 1:"])
def test_parse_never_raises(raw):
    drafts = parse_scenes(raw, 3)
    assert isinstance(drafts, list)


def test_empty_text_falls_back_to_default_fill():
    assert len(parse_scenes("", 5)) == 5


def test_first_parsed_returns_first_non_empty_outcome():
    calls = []

    def tier(name, drafts):
        def run():
            calls.append(name)
            return Parsed(strategy=name, drafts=drafts) if drafts else Empty(strategy=name)

        return run

    outcome = first_parsed([tier("a", ()), tier("b", (SceneDraft(title="x"),)), tier("c", (SceneDraft(),))])
    assert isinstance(outcome, Parsed)
    assert outcome.strategy == "b"
    assert calls == ["a", "b"]


def test_default_fill_with_zero_count_is_empty():
    assert isinstance(default_fill(0, "text"), Empty)


SAMPLE_TEXTS = [
    "",
    "random words with no structure at all",
    "Scene 1:\nTitle: One\nDescription: d\nNarration: n\nDialogue: x",
    "\n\n".join(f"Scene {n}:\nTitle: T{n}\nDescription: D{n}" for n in range(1, 21)),
    "Scene 1\nTitle: Line based\nScene 2\nNarration: more",
]


@pytest.mark.parametrize("text", SAMPLE_TEXTS)
def test_parse_then_reconcile_always_matches_target(text):
    for target in range(3, 16):
        drafts = reconcile_scenes(parse_scenes(text, target), target)
        assert len(drafts) == target


def test_labels_for_unknown_locale():
    assert labels_for("PT") is PORTUGUESE
    assert labels_for(None) is ENGLISH
    with pytest.raises(ValueError):
        labels_for("klingon")


def test_scene_draft_coerces_none_to_empty():
    draft = SceneDraft(title=None, description=None, narration="n", dialogue=None)
    assert draft.title == ""
    assert draft.description == ""
    assert draft.dialogue == ""
