"""
Template Rendering System.

This module provides template-based code generation using Jinja2 templates.
Templates are organized by target language:
- python/: the generated converter module and its field statement shapes
"""

from .renderer import (
    JinjaTemplateRenderer,
    create_template_renderer,
)

__all__ = [
    "JinjaTemplateRenderer",
    "create_template_renderer",
]
