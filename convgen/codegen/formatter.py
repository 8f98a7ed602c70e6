"""
Source formatting for generated modules.

Rendered text is parsed with ``ast`` first so that syntax errors are
reported before black sees the text, then formatted with black.
"""

from __future__ import annotations

import ast

import black

from ..utils.exceptions import AssemblyError
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LINE_LENGTH = 88


class BlackSourceFormatter:
    """Validates and formats rendered Python source."""

    def __init__(self, line_length: int = DEFAULT_LINE_LENGTH, enabled: bool = True):
        self.line_length = line_length
        self.enabled = enabled

    def format(self, source: str) -> str:
        """
        Validate ``source`` and, when enabled, format it with black.

        Raises:
            AssemblyError: If the text is not valid Python or black rejects it
        """
        try:
            ast.parse(source)
        except SyntaxError as e:
            raise AssemblyError(f"Generated source is not valid Python: line {e.lineno}: {e.msg}", source) from e

        if not self.enabled:
            return source

        try:
            formatted = black.format_str(source, mode=black.Mode(line_length=self.line_length))
        except black.InvalidInput as e:
            raise AssemblyError(f"Formatting generated source failed: {e}", source) from e

        logger.debug(f"Formatted {len(source)} characters of generated source")
        return formatted
