import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from config.config import Config, load_settings
from config.logging_config import setup_logging
from contracts.errors import StartupError
from contracts.settings import Settings
from core.monitoring_engine import MonitoringEngine
from server import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statusok",
        description="Monitors websites. Get notified if a service is down.",
    )
    parser.add_argument(
        "--config", default=Config.CONFIG_PATH, help="location of config file"
    )
    parser.add_argument(
        "--log", default=Config.LOG_FILE or "", help="file to save logs"
    )
    return parser


def log_file_path_valid(path: str) -> bool:
    try:
        with open(path, "a"):
            pass
    except OSError:
        return False
    return True


async def serve(engine: MonitoringEngine):
    """
    Run the liveness server until the process is asked to stop.
    """
    config = uvicorn.Config(create_app(), host="0.0.0.0", port=engine.port, log_config=None)
    server = uvicorn.Server(config)
    await server.serve()


async def run(settings: Settings) -> int:
    engine = MonitoringEngine(settings)
    try:
        await engine.start()
    except StartupError as e:
        logger.error(f"Unable to start monitoring: {len(e.problems)} problem(s) found")
        for problem in e.problems:
            logger.error(problem)
        await engine.stop()
        return Config.FATAL_EXIT_CODE

    try:
        await serve(engine)
    finally:
        await engine.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.config or not os.path.exists(args.config):
        print(
            f"Config file not present at the given location: {args.config}. "
            "Please use correct file location with --config parameter",
            file=sys.stderr,
        )
        return Config.FATAL_EXIT_CODE

    if args.log and not log_file_path_valid(args.log):
        print(f"Invalid File Path given for parameter --log: {args.log}", file=sys.stderr)
        return Config.FATAL_EXIT_CODE

    setup_logging(args.log or None)
    logger.info(f"Using config file : {args.config}")

    try:
        settings = load_settings(args.config)
    except StartupError as e:
        for problem in e.problems:
            logger.error(problem)
        return Config.FATAL_EXIT_CODE

    return asyncio.run(run(settings))


if __name__ == "__main__":
    sys.exit(main())
