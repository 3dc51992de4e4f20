from __future__ import annotations

import base64
import html
import logging
import re
from textwrap import dedent
from typing import Mapping

import requests

from aistorymaker.scene_parser.labels import ENGLISH, SceneLabels
from aistorymaker.story_store.model import Scene, Story

logger = logging.getLogger(__name__)

_SPEAKER_LINE = re.compile(r"^([^:]+):(.+)$")

DOCUMENT_HEAD = dedent(
    """
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>{title}</title>
        <style>
            body {{ font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }}
            h1 {{ color: #2c3e50; text-align: center; }}
            h2 {{ color: #3498db; margin-top: 30px; }}
            h3 {{ color: #2c3e50; }}
            .scene {{ border-bottom: 1px solid #ddd; padding-bottom: 30px; margin-bottom: 30px; }}
            .scene-image {{ width: 100%; margin: 20px 0; }}
            .scene-section {{ margin-bottom: 20px; }}
            .dialogue {{ background-color: #f9f9f9; padding: 15px; border-left: 3px solid #3498db; }}
        </style>
    </head>
    <body>
        <h1>{title}</h1>
    """
).lstrip()

DOCUMENT_TAIL = "</body>\n</html>\n"


def _format_text(text: str, labels: SceneLabels) -> str:
    if not text or not text.strip():
        return f"<em>{html.escape(labels.not_available)}</em>"
    return "<br>".join(html.escape(line) for line in text.split("\n"))


def _format_dialogue(dialogue: str, labels: SceneLabels) -> str:
    if not dialogue or not dialogue.strip():
        return f"<em>{html.escape(labels.no_dialogue)}</em>"
    lines = []
    for line in dialogue.split("\n"):
        match = _SPEAKER_LINE.match(line)
        if match:
            speaker, speech = match.groups()
            lines.append(f"<strong>{html.escape(speaker)}:</strong> {html.escape(speech.strip())}")
        else:
            lines.append(html.escape(line))
    return "<br>".join(lines)


def _render_scene(scene: Scene, position: int, image_src: str, labels: SceneLabels) -> str:
    title = scene.title or f"{labels.scene_word} {position}"
    parts = ['    <div class="scene">', f"        <h2>{html.escape(title)}</h2>"]
    if image_src:
        parts.append(
            f'        <img class="scene-image" src="{html.escape(image_src, quote=True)}" '
            f'alt="{html.escape(title, quote=True)}">'
        )
    sections = (
        (labels.description[0], _format_text(scene.description, labels), ""),
        (labels.narration[0], _format_text(scene.narration, labels), ""),
        (labels.dialogue[0], _format_dialogue(scene.dialogue, labels), ' class="dialogue"'),
    )
    for heading, body, css in sections:
        parts.append('        <div class="scene-section">')
        parts.append(f"            <h3>{html.escape(heading)}</h3>")
        parts.append(f"            <div{css}>{body}</div>")
        parts.append("        </div>")
    parts.append("    </div>")
    return "\n".join(parts)


def render_story_html(
    story: Story,
    image_sources: Mapping[str, str] | None = None,
    labels: SceneLabels = ENGLISH,
) -> str:
    """Render a story as a standalone HTML document.

    ``image_sources`` maps scene ids to the ``src`` used for that scene's image
    (for example a ``data:`` URI from :func:`embed_images`); scenes not in the
    mapping use their ``image_url``.
    """
    sources = image_sources or {}
    title = story.title or labels.untitled_story
    body = [DOCUMENT_HEAD.format(title=html.escape(title))]
    for position, scene in enumerate(sorted(story.scenes, key=lambda s: s.order), start=1):
        image_src = sources.get(scene.id, scene.image_url)
        body.append(_render_scene(scene, position, image_src, labels))
    body.append(DOCUMENT_TAIL)
    return "\n".join(body)


def embed_images(story: Story, timeout: float = 30.0) -> dict[str, str]:
    """Download remote scene images and return ``data:`` URIs keyed by scene id.

    Images that cannot be fetched keep their original URL.
    """
    sources: dict[str, str] = {}
    for scene in story.scenes:
        url = scene.image_url
        if not url.startswith(("http://", "https://")):
            continue
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Failed to embed image for scene %s: %s", scene.id, exc)
            sources[scene.id] = url
            continue
        content_type = response.headers.get("Content-Type", "image/png").split(";")[0].strip()
        encoded = base64.b64encode(response.content).decode("ascii")
        sources[scene.id] = f"data:{content_type};base64,{encoded}"
    return sources
