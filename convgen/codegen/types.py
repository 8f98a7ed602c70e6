"""
Core Data Structures and Protocols for Converter Generation.

This module defines the data that flows between the registration
expander, the worklist, the field planner and the assembler. All of
it is immutable once created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

from ..descriptors import (
    QualifiedName,
    TypeDescriptor,
    TypeKind,
    underlying,
)

PairKey = Tuple[str, str]


@dataclass(frozen=True)
class SourceLocation:
    """Where in user source something was declared."""
    path: str
    line: int = 0

    def __str__(self) -> str:
        return f"{self.path}:{self.line}" if self.line else self.path


@dataclass(frozen=True)
class TypeRef:
    """
    One side of a conversion pair.

    ``descriptor`` is the type with any outer pointer layer removed;
    ``is_pointer`` records how the pair was requested at its call site.
    """
    descriptor: TypeDescriptor
    is_pointer: bool = False

    @property
    def name(self) -> QualifiedName:
        return self.descriptor.name

    @property
    def type_name(self) -> str:
        return self.descriptor.name.name

    @property
    def module(self) -> str:
        return self.descriptor.name.module

    def as_pointer(self) -> "TypeRef":
        return TypeRef(self.descriptor, is_pointer=True)


def type_ref(t: TypeDescriptor) -> TypeRef:
    """Split a descriptor into its pointer-ness and the named type behind it."""
    if t.kind is TypeKind.POINTER and t.elem is not None:
        return TypeRef(t.elem, is_pointer=True)
    return TypeRef(t, is_pointer=False)


@dataclass(frozen=True)
class ConversionPair:
    """A requested conversion from ``source`` to ``target``."""
    source: TypeRef
    target: TypeRef

    @property
    def key(self) -> PairKey:
        """Deduplication identity; pointer-ness is not part of it."""
        return (str(self.source.name), str(self.target.name))

    def reversed(self) -> "ConversionPair":
        return ConversionPair(source=self.target, target=self.source)

    def source_struct(self) -> TypeDescriptor:
        return underlying(self.source.descriptor)

    def target_struct(self) -> TypeDescriptor:
        return underlying(self.target.descriptor)


@dataclass(frozen=True)
class RegistrationDirective:
    """A ``register``/``register_bidirectional`` call found in source."""
    source: TypeDescriptor
    target: TypeDescriptor
    bidirectional: bool = False
    location: Optional[SourceLocation] = None


@dataclass(frozen=True)
class FunctionDecl:
    """A top-level function declared somewhere in the target package."""
    name: str
    module: str
    location: Optional[SourceLocation] = None

    @property
    def qualified_name(self) -> QualifiedName:
        return QualifiedName(self.module, self.name)


@dataclass(frozen=True)
class FieldMapping:
    """
    The planned code for one destination field.

    ``nested`` is the conversion pair the statement depends on, if any;
    ``missing_override`` names an override that is called without having
    been found in the package.
    """
    field_name: str
    statement: str
    nested: Optional[ConversionPair] = None
    missing_override: Optional[str] = None


@dataclass(frozen=True)
class GeneratedFunction:
    """A complete conversion function ready for assembly."""
    name: str
    pair: ConversionPair
    source_annotation: str
    target_annotation: str
    statements: Tuple[str, ...] = ()

    @property
    def key(self) -> PairKey:
        return self.pair.key


@dataclass(frozen=True)
class AssembledModule:
    """Result of assembling the generated functions into one module."""
    package: str
    source: str
    imports: Tuple[str, ...]
    functions: Tuple[GeneratedFunction, ...]
    metadata: Dict[str, Any] = field(default_factory=dict)


# Protocols for interfaces

class TemplateRenderer(Protocol):
    """Protocol for template rendering."""

    def render_file(self, template_path: str, context: Dict[str, Any]) -> str:
        """Render a template file with the given context."""
        ...


class SourceFormatter(Protocol):
    """Protocol for turning rendered text into final source."""

    def format(self, source: str) -> str:
        """Validate and format ``source``; raise AssemblyError on failure."""
        ...
