"""FluentTab background service runner.

Starts the translation pipeline, submits the given words as one page batch for a tab, prints
every event the tab would receive, and shuts down once the tab's queue has drained.

Example: python fluenttab.py --lang de --stats house garden window
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, NoReturn

from config.loader import ConfigLoader, ConfigLoaderError
from core.background import BackgroundService
from core.messenger import CallbackTabMessenger
from core.storage import StateStoreError
from core.trans.interface import TranslateExceptionError
from core.version import VERSION
from models.message_models import WordCandidate
from models.request_models import ExportAllData, GetStats, ProcessWords, Response
from utils.file_utils import FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config

CFG_FILE: Final[str] = "fluenttab.ini"

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        description="Translate words through the FluentTab pipeline",
        epilog="Example: python fluenttab.py --lang de --stats house garden window",
    )
    parser.add_argument("--config", dest="config", metavar="FILE", default=CFG_FILE, help="Configuration file")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--tab", dest="tab", metavar="N", type=int, default=1, help="Tab id to submit the words for")
    parser.add_argument("--lang", dest="lang", metavar="CODE", help="Target language (defaults to the settings)")
    parser.add_argument("--stats", dest="stats", action="store_true", help="Print usage statistics at the end")
    parser.add_argument("--export", dest="export", metavar="FILE", help="Write a data snapshot as JSON")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("words", nargs="*", metavar="WORD", help="Words to translate")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    return ConfigLoader(config_filename=args.config, script_name=script_name, debug=args.debug).config


def setup_logging(config: Config) -> None:
    log_file: str = ""
    if config.GENERAL.LOG_FILE:
        try:
            log_file = str(FileUtils.prepare_file_path(config.GENERAL.LOG_FILE))
        except (FileUtilsError, OSError) as err:
            print(f"Log file is not usable: {err}", file=sys.stderr)
    LoggerUtils.setup(log_file, debug=config.GENERAL.DEBUG)


def print_event(message: dict[str, Any]) -> None:
    if message.get("action") == "translationReady":
        print(f"  {message['originalText']} -> {message['translation']}")
    elif message.get("action") == "progressUpdate":
        print(f"[{message['percentage']:3d}%] {message['message']} ({message['current']}/{message['total']})")


async def run(args: argparse.Namespace, config: Config) -> int:
    messenger = CallbackTabMessenger()
    messenger.register(args.tab, print_event)
    service = BackgroundService(config, messenger=messenger)
    try:
        await service.component_load()
    except (StateStoreError, TranslateExceptionError) as err:
        print(f"\nError: Failed to start the service: {err}", file=sys.stderr)
        await service.component_teardown()
        return 1

    try:
        if args.words:
            candidates: list[WordCandidate] = [
                WordCandidate(text=word, index=index) for index, word in enumerate(args.words)
            ]
            await service.handle(ProcessWords(tab_id=args.tab, words=candidates, target_language=args.lang))
            await service.coordinator.drain(args.tab)

        if args.stats:
            response: Response = await service.handle(GetStats())
            print(json.dumps(response.data, ensure_ascii=False, indent=2))

        if args.export:
            response = await service.handle(ExportAllData())
            export_path: Path = FileUtils.prepare_file_path(args.export)
            export_path.write_text(json.dumps(response.data, ensure_ascii=False, indent=2), encoding="utf-8")
            print(f"Data exported to: {export_path}")
    finally:
        await service.component_teardown()
    return 0


def main(argv: list[str] | None = None) -> int:
    check_python_version()
    args: argparse.Namespace = parse_arguments(argv)
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 1

    setup_logging(config)
    logger.info("FluentTab %s starting (provider: %s)", VERSION, config.TRANSLATION.PROVIDER)
    try:
        return asyncio.run(run(args, config))
    finally:
        LoggerUtils.shutdown()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
    except (OSError, RuntimeError, ValueError) as err:
        print(f"\nFatal error: {err}", file=sys.stderr)
        sys.exit(1)
