"""
convgen: Type-directed converter generation for Python packages

Reads the classes of a package, finds the conversions it registers and
writes a module of plain functions that copy data field by field from
one class into another, recursing into nested classes, lists and dicts.

Key Features:
- Registration by marker calls; nothing runs at import time
- Field-level and whole-pair overrides picked up by naming convention
- Cycle-safe, deduplicated generation of nested conversions
- Deterministic, black-formatted output

Usage:
    # convgen: generate
    from convgen import register

    register(UserRequest, User)

    $ convgen path/to/package
"""

__version__ = "0.1.0"
__author__ = "convgen Team"
__email__ = "convgen@example.com"

# Public API exports
from .runtime import (
    Registration,
    register,
    register_bidirectional,
)

from .generator import (
    ConverterGenerator,
    GenerationResult,
    generate,
)

from .utils.config import (
    get_config,
    ConvgenConfig,
)

__all__ = [
    "Registration",
    "register",
    "register_bidirectional",
    "ConverterGenerator",
    "GenerationResult",
    "generate",
    "get_config",
    "ConvgenConfig",
]
