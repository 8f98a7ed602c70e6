"""
Configuration System for convgen.

This module provides a small, unified configuration interface. Values
come from an optional ``convgen.yaml`` / ``convgen.json`` file, with a
few environment variable overrides on top.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError
from .logging import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAMES = ("convgen.yaml", "convgen.yml", "convgen.json")

_TRUTHY = ("1", "true", "yes")


@dataclass
class GenerationConfig:
    """Code generation configuration."""

    marker: str = "convgen: generate"
    output_filename: str = "generated.py"
    function_prefix: str = "convert"
    strict_overrides: bool = False

    # Directory that absolute imports are resolved against. When unset it
    # is derived from the target package's ``__init__.py`` chain.
    source_root: Optional[str] = None


@dataclass
class FormattingConfig:
    """Output formatting configuration."""

    enabled: bool = True
    line_length: int = 88


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    enable_file_logging: bool = False
    log_file: str = "convgen.log"


class ConvgenConfig:
    """
    Unified configuration manager for convgen.

    This class provides a simple interface to manage all configuration
    options through a single YAML or JSON file.
    """

    def __init__(self, config_file: Optional[str] = None, search_dir: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, the first of
                CONFIG_FILE_NAMES found in ``search_dir`` is used.
            search_dir: Directory searched for a default configuration file.
                Defaults to the current working directory.
        """
        self.config_file = self._get_config_file_path(config_file, search_dir)
        self._config_data = self._load_config()

        self.generation = self._create_generation_config()
        self.formatting = self._create_formatting_config()
        self.logging = self._create_logging_config()

    def _get_config_file_path(self, config_file: Optional[str], search_dir: Optional[str]) -> Path:
        """Get the configuration file path."""
        if config_file:
            return Path(config_file)

        config_dir = Path(search_dir) if search_dir else Path.cwd()
        for file_name in CONFIG_FILE_NAMES:
            candidate = config_dir / file_name
            if candidate.exists():
                return candidate

        return config_dir / CONFIG_FILE_NAMES[0]

    def _is_yaml(self) -> bool:
        return self.config_file.suffix.lower() in (".yaml", ".yml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file (JSON or YAML)."""
        if not self.config_file.exists():
            logger.debug(f"Configuration file {self.config_file} not found, using defaults")
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                if self._is_yaml():
                    config_data = yaml.safe_load(f)
                else:
                    config_data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load configuration: {e}")
            return {}

        if not isinstance(config_data, dict):
            logger.error(f"Configuration file {self.config_file} must contain a mapping")
            return {}

        logger.info(f"Loaded configuration from {self.config_file}")
        return config_data

    def _create_generation_config(self) -> GenerationConfig:
        """Create generation configuration from loaded data."""
        gen_data = self._config_data.get("generation") or {}

        env_strict = os.getenv("CONVGEN_STRICT_OVERRIDES", "").lower() in _TRUTHY
        strict = env_strict or bool(gen_data.get("strict_overrides", False))

        return GenerationConfig(
            marker=gen_data.get("marker", "convgen: generate"),
            output_filename=gen_data.get("output_filename", "generated.py"),
            function_prefix=gen_data.get("function_prefix", "convert"),
            strict_overrides=strict,
            source_root=gen_data.get("source_root"),
        )

    def _create_formatting_config(self) -> FormattingConfig:
        """Create formatting configuration from loaded data."""
        fmt_data = self._config_data.get("formatting") or {}

        env_disabled = os.getenv("CONVGEN_NO_FORMAT", "").lower() in _TRUTHY
        enabled = not env_disabled and bool(fmt_data.get("enabled", True))

        return FormattingConfig(
            enabled=enabled,
            line_length=int(fmt_data.get("line_length", 88)),
        )

    def _create_logging_config(self) -> LoggingConfig:
        """Create logging configuration from loaded data."""
        log_data = self._config_data.get("logging") or {}

        return LoggingConfig(
            level=log_data.get("level", "INFO"),
            enable_file_logging=log_data.get("enable_file_logging", False),
            log_file=log_data.get("log_file", "convgen.log"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a plain dictionary."""
        return {
            "generation": {
                "marker": self.generation.marker,
                "output_filename": self.generation.output_filename,
                "function_prefix": self.generation.function_prefix,
                "strict_overrides": self.generation.strict_overrides,
                "source_root": self.generation.source_root,
            },
            "formatting": {
                "enabled": self.formatting.enabled,
                "line_length": self.formatting.line_length,
            },
            "logging": {
                "level": self.logging.level,
                "enable_file_logging": self.logging.enable_file_logging,
                "log_file": self.logging.log_file,
            },
        }

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, "w", encoding="utf-8") as f:
            if self._is_yaml():
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {self.config_file}")


def validate_config(config: ConvgenConfig) -> None:
    """Validate a configuration, raising ConfigurationError on bad values."""
    generation = config.generation
    if not generation.marker.strip():
        raise ConfigurationError("Generation marker cannot be empty")

    if not generation.function_prefix.isidentifier():
        raise ConfigurationError(
            "Function prefix must be a valid identifier",
            {"function_prefix": generation.function_prefix},
        )

    output = generation.output_filename
    if not output.endswith(".py") or not output[:-3].isidentifier():
        raise ConfigurationError(
            "Output file name must be an importable module file",
            {"output_filename": output},
        )

    if config.formatting.line_length < 1:
        raise ConfigurationError("Line length must be at least 1")


# Global configuration instance
_global_config: Optional[ConvgenConfig] = None


def get_config() -> ConvgenConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = ConvgenConfig()
    return _global_config


def set_config(config: Optional[ConvgenConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _global_config
    _global_config = config


def load_config(config_file: str) -> ConvgenConfig:
    """Load configuration from a specific file."""
    return ConvgenConfig(config_file)
