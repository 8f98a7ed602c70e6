"""
Code Assembler.

Renders the generated functions and the imports they need into a single
module and hands the text to the source formatter. Functions keep
worklist order; imports are sorted, so identical inputs always produce
identical text.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .context import GenerationContext
from .formatter import BlackSourceFormatter
from .types import AssembledModule, GeneratedFunction, SourceFormatter, TemplateRenderer
from ..utils.exceptions import AssemblyError
from ..utils.logging import get_logger

logger = get_logger(__name__)

MODULE_TEMPLATE = "module.py.j2"


class CodeAssembler:
    """Builds the final module text from generated functions."""

    def __init__(self, renderer: TemplateRenderer, formatter: Optional[SourceFormatter] = None):
        self.renderer = renderer
        self.formatter = formatter or BlackSourceFormatter()

    def render(self, context: GenerationContext, functions: Iterable[GeneratedFunction]) -> str:
        """Render the module without formatting it."""
        try:
            return self.renderer.render_file(
                MODULE_TEMPLATE,
                {
                    "package": context.package,
                    "output_module": context.output_module,
                    "imports": context.imports.import_lines(),
                    "functions": list(functions),
                },
            )
        except ValueError as e:
            raise AssemblyError(str(e)) from e

    def assemble(self, context: GenerationContext, functions: Iterable[GeneratedFunction]) -> AssembledModule:
        """
        Render and format the module for ``context``.

        Args:
            context: The run the functions were generated in
            functions: Generated functions, in worklist order

        Returns:
            The assembled module

        Raises:
            AssemblyError: If rendering or formatting fails; the raw text is
                attached when rendering got that far
        """
        functions = tuple(functions)
        imports = tuple(context.imports.import_lines())
        raw = self.render(context, functions)
        source = self.formatter.format(raw)

        logger.debug(f"Assembled {len(functions)} function(s) with {len(imports)} import line(s)")
        return AssembledModule(
            package=context.package,
            source=source,
            imports=imports,
            functions=functions,
            metadata={
                "output_module": context.output_module,
                "function_count": len(functions),
                "missing_overrides": list(context.missing_overrides),
            },
        )
