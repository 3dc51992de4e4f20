from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from aistorymaker.exporter.html_export import embed_images, render_story_html
from aistorymaker.scene_parser.labels import labels_for
from aistorymaker.story_store.model import Story

from .orchestrator import PipelineConfig, StoryOrchestrator, ValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate an illustrated, scene-by-scene story from a short briefing."
    )
    parser.add_argument("briefing", nargs="?", help="Short description of the story to write")
    parser.add_argument(
        "--scenes",
        type=int,
        default=5,
        help="Number of scenes to generate (3-15)",
    )
    parser.add_argument(
        "--style",
        help="Visual style for the illustrations, e.g. watercolor or aquarela",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional path to pipeline configuration JSON/YAML",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data/stories"),
        help="Base directory for per-story outputs",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use canned text and fake image URLs instead of calling any API",
    )
    parser.add_argument(
        "--embed-images",
        action="store_true",
        help="Download images into the HTML export as data URIs",
    )
    parser.add_argument(
        "--bundle",
        type=Path,
        help="Path to a previously written story.json to re-export without model calls",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def write_story(story: Story, html: str, output_dir: Path) -> Path:
    run_dir = output_dir / story.id
    run_dir.mkdir(parents=True, exist_ok=True)
    payload = story.model_dump(mode="json")
    (run_dir / "story.json").write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    (run_dir / "story.html").write_text(html, encoding="utf-8")
    return run_dir


def _export_bundle(bundle_path: Path, config: PipelineConfig, args: argparse.Namespace) -> Path:
    story = Story.model_validate(json.loads(bundle_path.read_text(encoding="utf-8")))
    sources = embed_images(story, timeout=config.request_timeout) if args.embed_images else None
    html = render_story_html(story, image_sources=sources, labels=labels_for(config.locale))
    return write_story(story, html, args.output_dir)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = PipelineConfig.from_file(args.config) if args.config else PipelineConfig()
    if args.dry_run:
        config = config.offline()

    if args.bundle:
        run_dir = _export_bundle(args.bundle, config, args)
        print(f"Wrote story export to {run_dir}")
        return 0

    if not args.briefing:
        parser.error("Either a briefing or --bundle must be provided")

    orchestrator = StoryOrchestrator.default(config)
    try:
        story = orchestrator.create_story(args.briefing)
        if args.style:
            if orchestrator.generate_visual_samples(story.id, args.style):
                orchestrator.select_visual_sample(story.id, 0)
        story = orchestrator.generate_scenes(story.id, args.scenes)
    except ValidationError as exc:
        parser.error(str(exc))

    html = orchestrator.export_html(story.id, embed_images=args.embed_images)
    run_dir = write_story(story, html, args.output_dir)
    print(f"Wrote story '{story.title}' ({len(story.scenes)} scenes) to {run_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
