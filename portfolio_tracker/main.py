"""
Portfolio Tracker CLI

A command-line interface for portfolio valuation, allocation and risk
metrics, asset listings, and realtime price reconciliation.
"""

import argparse
import importlib
import locale
import logging
import pkgutil
import sys
from pathlib import Path
from typing import Any

import portfolio_tracker.commands.base
from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.config import AppConfig, ConfigLoader, get_env
from portfolio_tracker.container import ServiceContainer
from portfolio_tracker.utils.parser_utils import add_config_options
from portfolio_tracker.utils.setup_logging import setup_logging

logger = logging.getLogger(__name__)


def load_commands() -> None:
    """
    Import every module in the commands package so each command class
    registers itself with the CommandRegistry.
    """
    for _, name, _ in pkgutil.iter_modules(portfolio_tracker.commands.__path__):
        if name != "base":
            importlib.import_module(f"portfolio_tracker.commands.{name}")

    logger.debug(f"Loaded {len(CommandRegistry.get_commands())} commands")


def create_parser(env: str) -> argparse.ArgumentParser:
    """Create the argument parser with all commands and options."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Portfolio Tracker CLI",
        epilog="Use 'portfolio-tracker COMMAND --help' for more information on a command.",
    )

    global_group = parser.add_argument_group("Global Options")

    # For development/testing only
    if env == "test" or env == "dev":
        _ = global_group.add_argument(
            "--env",
            help="Environment to use (dev, test, prod). Default: prod",
            choices=["dev", "test", "prod"],
        )

    add_config_options(global_group)

    _ = global_group.add_argument(
        "--config-file", help="Path to specific configuration file to use", type=str
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    for command_class in CommandRegistry.get_commands().values():
        command_class.setup_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the portfolio-tracker CLI application.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    load_commands()

    env: str = get_env()

    parser: argparse.ArgumentParser = create_parser(env)
    args: argparse.Namespace = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Environment override from CLI (development only)
    if (env == "dev" or env == "test") and getattr(args, "env", None):
        env = args.env

    overrides: dict[str, Any] = ConfigLoader.args_to_overrides(args)
    config_file: Path | None = Path(args.config_file) if args.config_file else None

    try:
        config: AppConfig = ConfigLoader.load_app_config(
            env=env, overrides=overrides, config_file=config_file
        )
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_config_path, config.log_level, config.log_file_path)

    # Asset names sort with the user's collation rules
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Could not apply the system collation locale: {e}")

    try:
        container: ServiceContainer = ServiceContainer(config)

        command_classes: dict[str, type[Command]] = CommandRegistry.get_commands()
        if args.command not in command_classes:
            logger.error(f"Unknown command: {args.command}")
            print(f"Error: Unknown command: {args.command}", file=sys.stderr)
            return 1

        command: Command = command_classes[args.command](config, container)
        return command.execute(args)
    except Exception as e:
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
