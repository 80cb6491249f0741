"""CLI entry point for debugconsole."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import AppConfig, configure_logging, load_config
from .errors import ConfigError


def _load_config_or_exit(config_path: Path | None) -> AppConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="debugconsole",
        description="Interactive debugging console (runs against a demo camera target)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", dest="config_path", default=None, help="Path to config.yaml")
    parser.add_argument("--title", default=None, help="Terminal window title")
    parser.add_argument("--silent", action="store_true", help="Disable success/error bells")
    parser.add_argument("--log-file", dest="log_file", default=None, help="Write logs to this file")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (only used with a log file)",
    )
    args = parser.parse_args(argv)

    config = _load_config_or_exit(Path(args.config_path).expanduser() if args.config_path else None)
    if args.title:
        config.console.title = args.title
    if args.silent:
        config.console.emit_sound = False
    if args.log_file:
        config.logging.file = args.log_file
    if args.log_level:
        config.logging.level = args.log_level

    configure_logging(config.logging)

    if not sys.stdin.isatty():
        print("debugconsole needs an interactive terminal", file=sys.stderr)
        sys.exit(1)

    from .cli.repl import ConsoleUI
    from .demo import DemoCamera

    with ConsoleUI(DemoCamera(), config=config.console) as console:
        console.run_forever()


if __name__ == "__main__":
    main()
