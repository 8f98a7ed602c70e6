"""
Custom exception definitions.

This module defines the exception hierarchy for convgen. Every error
here is fatal to the generation run that raised it; nothing is written
to disk once one of them has been raised.
"""

from typing import Iterable, Optional


class ConvgenError(Exception):
    """
    Base exception for all convgen errors.

    This is the root exception class for all convgen-specific
    errors, providing common functionality and error handling.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize convgen error.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(ConvgenError):
    """Raised when configuration values are invalid."""


class ResolutionError(ConvgenError):
    """
    Raised when a target cannot be resolved into typed declarations.

    Covers missing packages, unparsable modules, undefined names in
    annotations and malformed registration calls.
    """

    def __init__(self, message: str, target: Optional[str] = None):
        """
        Initialize resolution error.

        Args:
            message: Error description
            target: Package, module or file that failed to resolve
        """
        details = {}
        if target is not None:
            details['target'] = target

        super().__init__(message, details)
        self.target = target


class ShapeMismatchError(ConvgenError):
    """
    Raised when a conversion pair expects a struct but the type is not one.

    This indicates an inconsistent type graph rather than a data problem,
    so it aborts the whole run.
    """

    def __init__(self, pair_key: tuple, side: str, type_description: str):
        """
        Initialize shape mismatch error.

        Args:
            pair_key: Key of the pair being generated
            side: "source" or "target"
            type_description: Printable form of the offending type
        """
        message = f"{side} type is not a struct: {type_description}"
        super().__init__(message, {'pair': f"{pair_key[0]} -> {pair_key[1]}"})
        self.pair_key = pair_key
        self.side = side
        self.type_description = type_description


class AssemblyError(ConvgenError):
    """
    Raised when rendered source cannot be validated or formatted.

    The unformatted text is kept on the exception so callers can still
    inspect what was produced.
    """

    def __init__(self, message: str, raw_source: str = ""):
        """
        Initialize assembly error.

        Args:
            message: Error description
            raw_source: Rendered text that failed to format
        """
        details = {}
        if raw_source:
            details['raw_length'] = len(raw_source)

        super().__init__(message, details)
        self.raw_source = raw_source


class MissingOverrideError(ConvgenError):
    """
    Raised in strict mode when generated code calls undefined overrides.
    """

    def __init__(self, names: Iterable[str]):
        """
        Initialize missing override error.

        Args:
            names: Override function names that were not found
        """
        self.names = tuple(names)
        message = f"Missing override function(s): {', '.join(self.names)}"
        super().__init__(message, {'count': len(self.names)})
