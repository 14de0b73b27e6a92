import argparse
import asyncio
import logging
import os
import signal
import sys

from src.core.constants import API_KEY_ENV, DEFAULT_BATCH_SIZE, DEFAULT_MODEL, DEFAULT_TARGET_LANG
from src.core.translation_pipeline import TranslationPipeline
from src.utils.archive import ArchiveError, GameArchive, default_output_path, write_translated_archive
from src.utils.logger import setup_logger
from src.utils.settings_store import SettingsStore


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate the English text of an RPG Maker MV/MZ game archive."
    )
    parser.add_argument("archive", help="Zip containing the game's data/*.json files")
    parser.add_argument("--out", help="Output zip (default: <archive>_<lang>.zip)")
    parser.add_argument("--lang", help=f"Target language (default: {DEFAULT_TARGET_LANG})")
    parser.add_argument("--model", help=f"Backend model (default: {DEFAULT_MODEL})")
    parser.add_argument("--api-key", help=f"Backend API key (default: ${API_KEY_ENV})")
    parser.add_argument("--batch-size", type=int, help=f"Strings per request (default: {DEFAULT_BATCH_SIZE})")
    parser.add_argument("--dry-run", action="store_true", help="Do not call the backend; copy text unchanged")
    parser.add_argument("--save-settings", action="store_true", help="Remember these options in settings.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def merge_settings(stored: dict, args: argparse.Namespace) -> dict:
    settings = dict(stored)
    overrides = {
        "target_lang": args.lang,
        "model": args.model,
        "api_key": args.api_key,
        "batch_size": args.batch_size,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})
    if args.dry_run:
        settings["dry_run"] = True
    if not settings.get("api_key"):
        settings["api_key"] = os.environ.get(API_KEY_ENV, "")
    return settings


async def run_pipeline(pipeline: TranslationPipeline):
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, pipeline.stop)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers; Ctrl-C then aborts hard
        pass
    await pipeline.run()


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logger(None, verbose=args.verbose)
    logger = logging.getLogger("RPGMJsonTranslator")

    store = SettingsStore()
    settings = merge_settings(store.load(), args)
    if args.save_settings:
        store.save(settings)

    if not settings.get("dry_run") and not settings.get("api_key"):
        logger.error(f"No API key. Pass --api-key, set {API_KEY_ENV}, or use --dry-run")
        return 1

    pipeline = TranslationPipeline(settings)
    pipeline.subscribe(lambda event, payload: _log_progress(logger, event, payload))

    try:
        with GameArchive(args.archive) as archive:
            logger.info(f"Scanning {args.archive} ({archive.size / 1024 / 1024:.1f} MB)")
            pipeline.scan(archive)
    except ArchiveError as e:
        logger.error(str(e))
        return 1

    asyncio.run(run_pipeline(pipeline))

    out_path = args.out or default_output_path(args.archive, settings.get("target_lang", DEFAULT_TARGET_LANG))
    try:
        write_translated_archive(args.archive, out_path, dict(pipeline.outputs()))
    except ArchiveError as e:
        logger.error(str(e))
        return 1
    return 0


def _log_progress(logger: logging.Logger, event: str, payload):
    if event != "progress":
        return
    eta = f"{payload.eta} min" if payload.eta is not None else "--"
    logger.info(
        f"{payload.completed_items}/{payload.total_items} strings ({payload.percent}%), "
        f"files {payload.completed_files}/{payload.total_files}, "
        f"{payload.throughput:.0f}/min, ETA {eta}"
    )


if __name__ == "__main__":
    sys.exit(main())
