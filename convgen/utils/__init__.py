"""
Utils package for convgen.

This module provides logging, configuration and the exception hierarchy
shared by the resolver and the code generator.
"""

from .exceptions import (
    ConvgenError,
    ConfigurationError,
    ResolutionError,
    ShapeMismatchError,
    AssemblyError,
    MissingOverrideError,
)

from .config import (
    ConvgenConfig,
    GenerationConfig,
    FormattingConfig,
    LoggingConfig,
    get_config,
    set_config,
    load_config,
    validate_config,
)

from .logging import get_logger, setup_logging, GenerationLogger

__all__ = [
    # Exceptions
    "ConvgenError",
    "ConfigurationError",
    "ResolutionError",
    "ShapeMismatchError",
    "AssemblyError",
    "MissingOverrideError",

    # Configuration
    "ConvgenConfig",
    "GenerationConfig",
    "FormattingConfig",
    "LoggingConfig",
    "get_config",
    "set_config",
    "load_config",
    "validate_config",

    # Logging
    "get_logger",
    "setup_logging",
    "GenerationLogger",
]
