from logging import Logger
import logging.config
from pathlib import Path
import sys
from typing import Any

import yaml

PACKAGE_LOGGER = "portfolio_tracker"


def setup_logging(config_path: Path, log_level: str, log_file_path: Path | None = None) -> None:
    try:
        # Load default logging configuration from supplied Path to YAML file
        with open(file=config_path, mode="r") as f:
            config: dict[str, Any] = yaml.safe_load(f)

        # Point the file handler at the configured log file
        file_handler: dict[str, Any] | None = config.get("handlers", {}).get("file")
        if log_file_path is not None and file_handler is not None:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler["filename"] = str(log_file_path)

        logging.config.dictConfig(config)

        override_level_str: str = log_level.upper()
        level_map: dict[str, int] = {
            "CRITICAL": logging.CRITICAL,
            "ERROR": logging.ERROR,
            "WARNING": logging.WARNING,
            "INFO": logging.INFO,
            "DEBUG": logging.DEBUG,
            "NOTSET": logging.NOTSET,
        }
        override_level: int | None = level_map.get(override_level_str)

        if override_level is None:
            logging.warning(
                f"Invalid log level '{log_level}' from AppConfig. Using default levels from YAML."
            )
            return

        package_logger: Logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(override_level)
        logging.info(f"Package logger '{PACKAGE_LOGGER}' level overridden to {override_level_str}")

    except FileNotFoundError:
        print(f"Error: Logging config file not found at {config_path}", file=sys.stderr)
        # Fallback: Configure a basic console logger so subsequent errors are seen
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Failed to load logging config from {config_path}")
    except Exception as e:
        print(f"An unexpected error occurred during logging setup: {e}", file=sys.stderr)
        logging.basicConfig(level=logging.INFO)
        logging.error(f"An unexpected error occurred during logging setup: {e}")
