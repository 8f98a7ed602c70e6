"""
Logging configuration and utilities.

This module provides centralized logging configuration for the
convgen package with appropriate formatting and levels.
"""

import logging
import os
from typing import Optional


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the convgen package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
    """
    if level is None:
        level = os.environ.get("CONVGEN_LOG_LEVEL", "INFO")

    log_level = getattr(logging, level.upper(), logging.INFO)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger("convgen")
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if name == "convgen" or name.startswith("convgen."):
        return logging.getLogger(name)
    return logging.getLogger(f"convgen.{name}")


class GenerationLogger:
    """
    Event logging for one generation run.

    Each method covers one step of the pipeline so that the messages
    stay uniform between the generator, the worklist and the planner.
    """

    def __init__(self, name: str):
        """
        Initialize logger for specific component.

        Args:
            name: Component name for logging context
        """
        self.logger = get_logger(name)

    def log_run_start(self, target: str, pair_count: int) -> None:
        """
        Log beginning of a generation run.

        Args:
            target: Package being generated for
            pair_count: Number of seed conversion pairs
        """
        self.logger.info(f"Found {pair_count} conversion pair(s) in {target}")

    def log_pair_skipped(self, pair_key: tuple) -> None:
        """Log a pair that was already generated."""
        self.logger.debug(f"Skipping already generated pair {pair_key[0]} -> {pair_key[1]}")

    def log_pair_override(self, function_name: str) -> None:
        """Log a pair that is served by a user-written converter."""
        self.logger.info(f"Using custom converter {function_name}")

    def log_function_generated(self, function_name: str, statement_count: int) -> None:
        """
        Log a generated conversion function.

        Args:
            function_name: Name of the generated function
            statement_count: Number of field statements in its body
        """
        self.logger.debug(f"Generated {function_name} ({statement_count} field statement(s))")

    def log_missing_override(self, function_name: str, reason: str) -> None:
        """
        Log a call to an override function that was not found.

        Args:
            function_name: Expected override name
            reason: Why the override is needed
        """
        self.logger.warning(
            f"Emitting call to {function_name} ({reason}); no such function was found in the package"
        )

    def log_output_written(self, path: str) -> None:
        """Log the path of the written module."""
        self.logger.info(f"Generated: {path}")


# Initialize logging on module import
setup_logging()
