from __future__ import annotations

import base64

import pytest
import requests

from aistorymaker.exporter import html_export
from aistorymaker.exporter.html_export import embed_images, render_story_html
from aistorymaker.scene_parser.labels import PORTUGUESE
from aistorymaker.story_store.model import Scene, Story


@pytest.fixture
def story() -> Story:
    story = Story(briefing="b", proposal="p", title="Tom & Jerry <3")
    story.scenes = [
        Scene(story_id=story.id, order=1, title="", description="Kitchen", image_url="https://img/2.png"),
        Scene(
            story_id=story.id,
            order=0,
            title="Opening <script>",
            description="Line one\nLine two",
            narration="",
            dialogue="Tom: Hello\nSilence",
            image_url="",
        ),
    ]
    return story


def test_title_and_text_are_escaped(story):
    html = render_story_html(story)
    assert "<title>Tom &amp; Jerry &lt;3</title>" in html
    assert "<h1>Tom &amp; Jerry &lt;3</h1>" in html
    assert "<script>" not in html
    assert "Opening &lt;script&gt;" in html


def test_scenes_rendered_in_order_with_fallback_title(story):
    html = render_story_html(story)
    assert html.index("Opening &lt;script&gt;") < html.index("<h2>Scene 2</h2>")


def test_sections_format_text_and_dialogue(story):
    html = render_story_html(story)
    assert "Line one<br>Line two" in html
    assert "<em>Not available</em>" in html
    assert "<strong>Tom:</strong> Hello<br>Silence" in html
    assert "<em>No dialogue in this scene.</em>" in html


def test_images_only_for_scenes_with_urls(story):
    html = render_story_html(story)
    assert html.count("<img ") == 1
    assert 'src="https://img/2.png"' in html


def test_image_sources_override_urls(story):
    scene_id = story.scenes[0].id
    html = render_story_html(story, image_sources={scene_id: "data:image/png;base64,AAAA"})
    assert 'src="data:image/png;base64,AAAA"' in html
    assert "https://img/2.png" not in html


def test_localized_headings(story):
    html = render_story_html(story, labels=PORTUGUESE)
    assert "<h3>Descrição</h3>" in html
    assert "<h2>Cena 2</h2>" in html
    assert "<em>Não disponível</em>" in html
    assert "<em>Sem diálogo nesta cena.</em>" in html
    assert "Not available" not in html
    assert "No dialogue" not in html


def test_untitled_story_uses_locale_title():
    story = Story(briefing="b")
    assert "<h1>Minha história</h1>" in render_story_html(story, labels=PORTUGUESE)
    assert "<h1>My Story</h1>" in render_story_html(story)


class FakeResponse:
    def __init__(self, content: bytes, content_type: str = "image/png", status: int = 200) -> None:
        self.content = content
        self.headers = {"Content-Type": content_type}
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")


def test_embed_images_builds_data_uris(monkeypatch):
    story = Story(briefing="b")
    ok = Scene(story_id=story.id, order=0, image_url="https://img/ok.png")
    broken = Scene(story_id=story.id, order=1, image_url="https://img/broken.png")
    local = Scene(story_id=story.id, order=2, image_url="/images/placeholder.jpg")
    story.scenes = [ok, broken, local]
    requested = []

    def fake_get(url, timeout):
        requested.append((url, timeout))
        if "broken" in url:
            raise requests.ConnectionError("unreachable")
        return FakeResponse(b"\x89PNG", "image/png; charset=binary")

    monkeypatch.setattr(html_export.requests, "get", fake_get)

    sources = embed_images(story, timeout=5)

    encoded = base64.b64encode(b"\x89PNG").decode("ascii")
    assert sources[ok.id] == f"data:image/png;base64,{encoded}"
    assert sources[broken.id] == "https://img/broken.png"
    assert local.id not in sources
    assert requested == [("https://img/ok.png", 5), ("https://img/broken.png", 5)]


def test_embed_images_keeps_url_on_http_error(monkeypatch):
    story = Story(briefing="b")
    scene = Scene(story_id=story.id, order=0, image_url="https://img/expired.png")
    story.scenes = [scene]
    monkeypatch.setattr(html_export.requests, "get", lambda url, timeout: FakeResponse(b"", status=403))
    assert embed_images(story) == {scene.id: "https://img/expired.png"}
