"""
Code generation for convgen.

The pieces run in this order for one package:
- registration: directives to seed conversion pairs
- worklist: breadth-first, deduplicated pair processing
- planner: one statement per destination field
- assembler: module rendering and formatting
"""

from .types import (
    AssembledModule,
    ConversionPair,
    FieldMapping,
    FunctionDecl,
    GeneratedFunction,
    PairKey,
    RegistrationDirective,
    SourceLocation,
    TypeRef,
    type_ref,
)
from .naming import ConverterNaming, camel_to_snake_case
from .overrides import OverrideRegistry
from .registration import expand_directive, expand_directives
from .context import GenerationContext, ImportTable, create_generation_context
from .planner import FieldMappingPlanner
from .worklist import PairWorklist
from .formatter import BlackSourceFormatter
from .assembler import CodeAssembler

__all__ = [
    # Data
    "AssembledModule",
    "ConversionPair",
    "FieldMapping",
    "FunctionDecl",
    "GeneratedFunction",
    "PairKey",
    "RegistrationDirective",
    "SourceLocation",
    "TypeRef",
    "type_ref",

    # Pipeline
    "ConverterNaming",
    "camel_to_snake_case",
    "OverrideRegistry",
    "expand_directive",
    "expand_directives",
    "GenerationContext",
    "ImportTable",
    "create_generation_context",
    "FieldMappingPlanner",
    "PairWorklist",
    "BlackSourceFormatter",
    "CodeAssembler",
]
