"""hubhook command line.

Usage:
    hubhook --config projects.ini --server 127.0.0.1:8000
    hubhook -c projects.ini -s 0.0.0.0:9000 --max-concurrency 8 --debug

Settings not given on the command line fall back to HUBHOOK_*
environment variables (see hubhook.core.config.Settings).
"""

import argparse
import logging
import sys
from typing import Optional

import uvicorn
from pydantic import ValidationError

from hubhook import __version__
from hubhook.core.config import Settings
from hubhook.errors import ConfigError
from hubhook.main import create_app
from hubhook.projects.registry import load_conf

logger = logging.getLogger("hubhook")


def parse_server(value: str) -> tuple[str, int]:
    """Split a HOST:PORT argument."""
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got '{value}'")
    return host.strip("[]"), int(port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hubhook", description="GitHub webhook server")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", metavar="FILE", help="Projects file location")
    parser.add_argument(
        "-s", "--server", metavar="HOST:PORT", type=parse_server,
        help="The address and port to run the server on",
    )
    parser.add_argument(
        "--max-concurrency", type=int, metavar="N",
        help="Maximum number of requests handled at once",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict = {}
    if args.config:
        overrides["config_file"] = args.config
    if args.server:
        overrides["host"], overrides["port"] = args.server
    if args.max_concurrency is not None:
        overrides["max_concurrency"] = args.max_concurrency
    if args.debug:
        overrides["debug"] = True
    return Settings(**overrides)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ValidationError as exc:
        parser.error(str(exc))
    if not settings.config_file:
        parser.error("a projects file is required (--config or HUBHOOK_CONFIG_FILE)")

    try:
        conf = load_conf(settings.config_file)
    except ConfigError as exc:
        print(f"hubhook: {exc}", file=sys.stderr)
        return 1

    app = create_app(conf, settings)
    logger.info("%s", conf.describe())
    logger.info("Starting hubhook server on %s:%d", settings.host, settings.port)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        limit_concurrency=settings.max_concurrency,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
