"""
Command-line entry point: `python -m quickstart --port 8080 --logging DEBUG`.
"""

import argparse
import sys

import uvicorn
from pydantic import ValidationError

from .settings import get_settings
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="quickstart", description="Plaid Quickstart API server")
    parser.add_argument("--logging", default=None, help="logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--port", type=int, default=None, help="listening port (default: APP_PORT or 8000)")
    parser.add_argument("--host", default="0.0.0.0", help="listening interface")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging(args.logging or "INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1

    level = args.logging or settings.log_level
    setup_logging(level, settings.log_file)
    port = args.port or settings.app_port
    logger.info(f"Starting web server on port {port} with logging level {level.upper()}")

    from .main import create_app

    uvicorn.run(create_app(settings), host=args.host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
