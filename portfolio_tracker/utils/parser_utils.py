"""Utilities for working with argument parsers."""

import argparse
from dataclasses import fields
from typing import Any, ClassVar, get_origin

from portfolio_tracker.config import AppConfig


def add_config_options(
    parser: argparse.ArgumentParser | Any, config_class: type[Any] = AppConfig
) -> None:
    """
    Dynamically add configuration options to a parser based on a dataclass.

    Values are accepted as strings and coerced later by the ConfigLoader. Options
    default to None so unset options do not override file-based config.

    Args:
        parser: The argument parser (or argument group) to add options to
        config_class: The dataclass to extract fields from (default: AppConfig)
    """
    for field in fields(config_class):
        # Skip private fields and ClassVars
        if field.name.startswith("_") or get_origin(field.type) is ClassVar:
            continue

        arg_name: str = f"--{field.name.replace('_', '-')}"  # eg. assets_path -> --assets-path
        help_text: str = f"Override {field.name} configuration value"

        if field.type is bool:
            _ = parser.add_argument(arg_name, action="store_true", default=None, help=help_text)
            continue

        type_name: str = getattr(field.type, "__name__", str(field.type))
        _ = parser.add_argument(
            arg_name,
            type=str,
            default=None,
            metavar=type_name.upper(),
            help=help_text,
        )
