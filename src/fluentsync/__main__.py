"""Command line entry point for the sync layer."""
import argparse
import asyncio
import json
import logging
import signal
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Any, List, Optional

from fluentsync.config import ensure_directories, settings
from fluentsync.logging_config import setup_logging
from fluentsync.models.progress_models import (
    DisplayEntry,
    DisplayKind,
    DisplayOptions,
    ProgressSnapshot,
    WordOfDay,
)
from fluentsync.monitoring import start_monitoring
from fluentsync.services.progress_writer import ProgressWriter
from fluentsync.services.refresh_scheduler import RefreshScheduler
from fluentsync.services.reload_signal import LoggingReloadNotifier
from fluentsync.services.shared_store import open_shared_store
from fluentsync.services.timeline_service import DisplaySurface, TimelineService

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def entry_to_dict(entry: DisplayEntry) -> dict:
    """Convert a display entry into JSON-ready data."""
    return _jsonable(asdict(entry))


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _options(args: argparse.Namespace) -> DisplayOptions:
    return DisplayOptions(show_streak=not args.hide_streak, show_stats=not args.hide_stats)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fluentsync", description="Shared progress store for display surfaces")
    parser.add_argument("--group", help="Shared storage group identifier")
    parser.add_argument("--containers-dir", help="Directory holding storage group containers")
    parser.add_argument("--log-level", help="Logging level (default from LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    progress = subparsers.add_parser("publish-progress", help="Publish a progress snapshot")
    progress.add_argument("--streak", type=int, required=True)
    progress.add_argument("--today-points", type=int, required=True)
    progress.add_argument("--total-words", type=int, required=True)
    progress.add_argument("--lessons", type=int, required=True)

    word = subparsers.add_parser("publish-word", help="Publish the word of the day")
    word.add_argument("--word", required=True)
    word.add_argument("--definition", required=True)
    word.add_argument("--example", default="")
    word.add_argument("--pronunciation", default="")

    for name, help_text in (
        ("show", "Print the entry a display surface would render now"),
        ("timeline", "Print the entry and the next refresh time"),
        ("watch", "Keep display surfaces refreshed and print every entry"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--hide-streak", action="store_true")
        sub.add_argument("--hide-stats", action="store_true")

    subparsers.choices["show"].add_argument(
        "--placeholder", action="store_true", help="Print the preview placeholder instead"
    )
    return parser


async def watch(scheduler: RefreshScheduler, options: DisplayOptions) -> None:
    """Run stats and word surfaces until interrupted."""
    def render(entry: DisplayEntry) -> None:
        _print_json(entry_to_dict(entry))

    service = TimelineService(
        scheduler,
        [
            DisplaySurface("stats", DisplayKind.STATS, render, options),
            DisplaySurface("word", DisplayKind.WORD_OF_DAY, render, options),
        ],
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)

    await service.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Cleaning up...")
        await service.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)
    ensure_directories()

    store = open_shared_store(args.group, args.containers_dir)
    try:
        if args.command == "publish-progress":
            writer = ProgressWriter(store, LoggingReloadNotifier())
            writer.publish_progress(
                ProgressSnapshot(
                    streak=args.streak,
                    today_points=args.today_points,
                    total_words_learned=args.total_words,
                    lessons_completed=args.lessons,
                )
            )
            return 0

        if args.command == "publish-word":
            writer = ProgressWriter(store, LoggingReloadNotifier())
            published = writer.publish_word_of_day(
                WordOfDay(
                    word=args.word,
                    definition=args.definition,
                    example=args.example,
                    pronunciation=args.pronunciation,
                )
            )
            return 0 if published else 1

        scheduler = RefreshScheduler(store)

        if args.command == "show":
            entry = scheduler.placeholder_entry() if args.placeholder else scheduler.current_entry(_options(args))
            _print_json(entry_to_dict(entry))
            return 0

        if args.command == "timeline":
            timeline = scheduler.timeline(_options(args))
            _print_json(
                {
                    "entries": [entry_to_dict(entry) for entry in timeline.entries],
                    "refresh_after": timeline.refresh_after.isoformat(),
                }
            )
            return 0

        if settings.monitoring.port is not None:
            start_monitoring(settings.monitoring.port)
            logger.info("Metrics available on port %d", settings.monitoring.port)
        asyncio.run(watch(scheduler, _options(args)))
        return 0
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
