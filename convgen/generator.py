"""
Converter generation front end.

ConverterGenerator ties the pipeline together for one package: resolve,
expand registrations, run the worklist, assemble and write. All run state
lives in a GenerationContext created per call, so one generator can be
used for any number of packages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .codegen import (
    BlackSourceFormatter,
    CodeAssembler,
    ConversionPair,
    ConverterNaming,
    FieldMappingPlanner,
    GeneratedFunction,
    OverrideRegistry,
    PairWorklist,
    create_generation_context,
    expand_directives,
)
from .codegen.context import GenerationContext
from .codegen.types import AssembledModule, SourceFormatter, TemplateRenderer
from .codegen.templates import create_template_renderer
from .resolver import PackageResolver
from .utils.config import ConvgenConfig, get_config, validate_config
from .utils.exceptions import MissingOverrideError
from .utils.logging import GenerationLogger, get_logger

logger = get_logger(__name__)


@dataclass
class GenerationResult:
    """Outcome of generating converters for one package."""
    package: str
    output_path: Path
    source: str
    functions: List[str] = field(default_factory=list)
    missing_overrides: List[str] = field(default_factory=list)
    written: bool = False


class ConverterGenerator:
    """
    Generates the converter module of a package.

    Args:
        config: Settings to use; the process-wide configuration by default
        renderer: Template renderer; the bundled Jinja2 templates by default
        formatter: Source formatter; black with the configured settings by default
    """

    def __init__(
        self,
        config: Optional[ConvgenConfig] = None,
        renderer: Optional[TemplateRenderer] = None,
        formatter: Optional[SourceFormatter] = None,
    ):
        self.config = config or get_config()
        validate_config(self.config)

        self.renderer = renderer or create_template_renderer()
        self.formatter = formatter or BlackSourceFormatter(
            line_length=self.config.formatting.line_length,
            enabled=self.config.formatting.enabled,
        )
        self.naming = ConverterNaming(self.config.generation.function_prefix)
        self.events = GenerationLogger(__name__)

    def run(self, target: Union[str, Path], write: bool = True) -> Optional[GenerationResult]:
        """
        Generate and, unless ``write`` is False, write the converter module.

        Args:
            target: Package directory
            write: Whether to write the module next to the package's sources

        Returns:
            The generation result, or None if the package registers no pairs

        Raises:
            ConvgenError: On any resolution, shape, assembly or strict-mode failure
        """
        generation = self.config.generation
        resolver = PackageResolver(
            marker=generation.marker,
            output_filename=generation.output_filename,
            source_root=generation.source_root,
        )
        resolved = resolver.resolve(target)
        label = resolved.package or str(resolved.package_dir)

        pairs = expand_directives(resolved.directives)
        if not pairs:
            logger.info(f"No conversion pairs found in {label}")
            return None

        self.events.log_run_start(label, len(pairs))
        overrides = OverrideRegistry.from_declarations(resolved.functions, self.naming)
        module = self.generate(pairs, resolved.package, overrides)

        output_path = resolved.package_dir / generation.output_filename
        result = GenerationResult(
            package=resolved.package,
            output_path=output_path,
            source=module.source,
            functions=[f.name for f in module.functions],
            missing_overrides=list(module.metadata["missing_overrides"]),
        )

        if write:
            output_path.write_text(module.source, encoding="utf-8")
            result.written = True
            self.events.log_output_written(str(output_path))
        return result

    def plan(
        self,
        pairs: Iterable[ConversionPair],
        package: str,
        overrides: Optional[OverrideRegistry] = None,
    ) -> Tuple[GenerationContext, List[GeneratedFunction]]:
        """
        Run the worklist over ``pairs`` in a fresh context.

        Raises:
            ShapeMismatchError: If a pair does not connect two structs
            MissingOverrideError: In strict mode, if an override call has no target
        """
        if overrides is None:
            overrides = OverrideRegistry(self.naming)
        context = create_generation_context(package, overrides, self.config.generation.output_filename)
        planner = FieldMappingPlanner(context, self.renderer, self.events)
        functions = PairWorklist(context, planner, self.events).run(pairs)

        if self.config.generation.strict_overrides and context.missing_overrides:
            raise MissingOverrideError(context.missing_overrides)
        return context, functions

    def generate(
        self,
        pairs: Iterable[ConversionPair],
        package: str,
        overrides: Optional[OverrideRegistry] = None,
    ) -> AssembledModule:
        """Plan and assemble the module for ``pairs`` without touching disk."""
        context, functions = self.plan(pairs, package, overrides)
        return CodeAssembler(self.renderer, self.formatter).assemble(context, functions)


def generate(target: Union[str, Path], config: Optional[ConvgenConfig] = None, write: bool = True) -> Optional[GenerationResult]:
    """Generate converters for ``target`` with a one-off generator."""
    return ConverterGenerator(config).run(target, write=write)
