"""
Template Rendering Engine.

This module provides template-based code generation using Jinja2 templates.
Templates live next to this file, one directory per target language.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from ..types import TemplateRenderer
from ...utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "python")


class JinjaTemplateRenderer:
    """Jinja2-based template renderer for generated Python source."""

    def __init__(self, template_dir: Optional[str] = None):
        """Initialize the template renderer."""
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR

        self._template_dir = Path(template_dir)
        self._env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            autoescape=False,
        )

        self._setup_custom_filters()

    @property
    def template_dir(self) -> Path:
        return self._template_dir

    def _setup_custom_filters(self) -> None:
        """Set up custom Jinja2 filters for source generation."""

        def indent_filter(text: str, width: int = 4, first: bool = False) -> str:
            """Indent every non-blank line of text by the specified width."""
            lines = text.splitlines()
            if not lines:
                return text

            indent = " " * width
            indented = [indent + line if line.strip() else "" for line in lines]
            if not first:
                indented[0] = lines[0]
            return "\n".join(indented)

        self._env.filters["indent"] = indent_filter

    def render_file(self, template_path: str, context: Dict[str, Any]) -> str:
        """Render a template file with the given context."""
        try:
            template = self._env.get_template(template_path)
            return template.render(**context)
        except TemplateError as e:
            raise ValueError(f"Template file rendering failed for '{template_path}': {e}") from e


def create_template_renderer(template_dir: Optional[str] = None) -> TemplateRenderer:
    """Create a template renderer."""
    renderer = JinjaTemplateRenderer(template_dir)
    logger.debug(f"Loaded templates from {renderer.template_dir}")
    return renderer
