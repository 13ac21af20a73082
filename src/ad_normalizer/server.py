"""Command line entry point running the service under uvicorn."""

import argparse
import os
import sys
from pathlib import Path

import uvicorn

from .app import create_app
from .exceptions import ConfigError
from .log_config import configure_logging, get_context_logger
from .settings import load_settings


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="ad-normalizer", description="VAST/VMAP ad normalizer service")
    parser.add_argument(
        "--config",
        type=Path,
        default=os.getenv("AD_NORMALIZER_CONFIG"),
        help="Optional YAML settings file; environment variables take precedence",
    )
    parser.add_argument("--host", default="0.0.0.0")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        configure_logging()
        get_context_logger("server").error("Invalid configuration", error=str(e))
        sys.exit(1)

    configure_logging(settings.log_level, json_logs=settings.json_logs)
    uvicorn.run(create_app(settings), host=args.host, port=settings.port)


if __name__ == "__main__":
    main()
