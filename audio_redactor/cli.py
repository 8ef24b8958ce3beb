#!/usr/bin/env python3
"""
Audio Redactor CLI Entry Point

Usage:
    audio-redactor init project.json recording.wav
    audio-redactor redact project.json ITEM_ID 2.0 4.0 --mode tone
    audio-redactor auto-redact project.json ITEM_ID detections.json
    audio-redactor export project.json redacted.wav
    audio-redactor show project.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .audio.extractor import decode_audio, get_audio_duration
from .config import Config
from .detection.categories import auto_redact_predicate
from .detection.locator import locate_matches
from .detection.models import Detection
from .editing.clips import RedactionMode
from .editing.project import ProjectFile
from .editing.renderer import RenderEngine
from .error_handler import UserFriendlyError, safe_operation
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="audio-redactor",
        description="Redact time ranges of audio recordings and export WAV files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  audio-redactor init call.json call.mp3
  audio-redactor redact call.json ITEM 12.5 14.0 --mode tone
  audio-redactor auto-redact call.json ITEM detections.json
  audio-redactor export call.json call_redacted.wav --sample-rate 44100
        """
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration YAML file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Create a project for a recording")
    init.add_argument("project", type=Path)
    init.add_argument("media", type=Path)
    init.add_argument("--duration", type=float, default=None,
                      help="Media duration in seconds (probed with ffprobe if omitted)")
    init.add_argument("--start", type=float, default=0.0,
                      help="Position on the master timeline in seconds")

    redact = sub.add_parser("redact", help="Mute or unmute a time range")
    redact.add_argument("project", type=Path)
    redact.add_argument("item")
    redact.add_argument("start", type=float)
    redact.add_argument("end", type=float)
    redact.add_argument("--mode", choices=[m.value for m in RedactionMode], default=None)
    redact.add_argument("--unmute", action="store_true", help="Restore the range instead")

    auto = sub.add_parser("auto-redact", help="Apply detections from a JSON file")
    auto.add_argument("project", type=Path)
    auto.add_argument("item")
    auto.add_argument("detections", type=Path,
                      help="JSON list of detections, or of {text, category} matches")
    auto.add_argument("--all", action="store_true", help="Redact every category")
    auto.add_argument("--mode", choices=[m.value for m in RedactionMode], default=None)

    export = sub.add_parser("export", help="Render the timeline to a WAV file")
    export.add_argument("project", type=Path)
    export.add_argument("output", type=Path)
    export.add_argument("--sample-rate", type=int, default=None)

    show = sub.add_parser("show", help="Print the timeline")
    show.add_argument("project", type=Path)

    return parser.parse_args(argv)


def _mode(value: Optional[str]) -> Optional[RedactionMode]:
    return RedactionMode(value) if value else None


def load_detections(path: Path, project: ProjectFile, item_id: str) -> List[Detection]:
    """Read detections, locating bare text matches in the item's transcript."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("matches") or data.get("detections") or []

    timed = [d for d in data if "start" in d and "end" in d]
    untimed = [d for d in data if not ("start" in d and "end" in d)]

    detections = [Detection.from_dict(d) for d in timed]
    if untimed:
        item = project.get_item(item_id)
        if item.transcript is None:
            logger.warning(f"{len(untimed)} matches have no times and the item has no transcript")
        else:
            detections.extend(locate_matches(item.transcript.words, untimed))
    return detections


@safe_operation("init")
def cmd_init(args: argparse.Namespace, config: Config) -> None:
    duration = args.duration or get_audio_duration(args.media)
    if duration <= 0:
        raise UserFriendlyError(
            f"Could not determine the duration of {args.media}; pass --duration"
        )

    project = ProjectFile.load(args.project) if args.project.exists() else ProjectFile()
    media = project.add_media(args.media, duration)
    item = project.add_to_timeline(media.id, start_time=args.start)
    project.save(args.project)
    print(f"Added {media.name} ({duration:.2f}s) as item {item.id}")


@safe_operation("redact")
def cmd_redact(args: argparse.Namespace, config: Config) -> None:
    project = ProjectFile.load(args.project)
    project.redact(
        args.item, args.start, args.end,
        mode=_mode(args.mode),
        muted=not args.unmute,
    )
    project.save(args.project)


@safe_operation("auto-redact")
def cmd_auto_redact(args: argparse.Namespace, config: Config) -> None:
    project = ProjectFile.load(args.project)
    detections = load_detections(args.detections, project, args.item)
    project.set_detections(args.item, detections)

    predicate = (lambda category: True) if args.all else auto_redact_predicate(
        config.redaction.auto_redact_categories
    )
    plan = project.auto_redact(args.item, detections, _mode(args.mode), predicate)
    project.save(args.project)
    print(plan.summary())


@safe_operation("export")
def cmd_export(args: argparse.Namespace, config: Config) -> None:
    project = ProjectFile.load(args.project)
    settings = config.render_settings(args.sample_rate)

    samples = {
        media_id: decode_audio(Path(media.path), settings.sample_rate)
        for media_id, media in project.media.items()
        if any(item.media_id == media_id for item in project.items)
    }
    placements = project.placements(samples, settings.sample_rate)

    engine = RenderEngine(settings)
    path = engine.export(placements, args.output, duration=project.timeline_duration)
    print(f"Exported {project.timeline_duration:.2f}s to {path}")


@safe_operation("show")
def cmd_show(args: argparse.Namespace, config: Config) -> None:
    project = ProjectFile.load(args.project)
    for item in project.items:
        media = project.media.get(item.media_id)
        name = media.name if media else item.media_id
        print(f"{item.id}  {name}  @{item.start_time:.2f}s  {item.duration:.2f}s")
        for clip in item.partition.clips:
            state = "muted" if clip.muted else "     "
            mode = clip.redaction_mode.value if clip.redaction_mode else ""
            print(f"    {clip.start_time:9.3f} - {clip.end_time:9.3f}  {state} {mode}")
        if item.redacted_detection_keys:
            print(f"    {len(item.redacted_detection_keys)} detections redacted")


COMMANDS = {
    "init": cmd_init,
    "redact": cmd_redact,
    "auto-redact": cmd_auto_redact,
    "export": cmd_export,
    "show": cmd_show,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the audio-redactor command."""
    args = parse_args(argv)
    config = Config.load(args.config)

    setup_logging(
        level="DEBUG" if args.verbose else config.logging.level,
        log_file=config.logging.log_file or None,
    )

    try:
        COMMANDS[args.command](args, config)
    except UserFriendlyError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
