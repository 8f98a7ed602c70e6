"""
Type Descriptor Model.

Descriptors describe the shape of a type independently of how it was
declared: its kind, its qualified name, and for composite kinds the
types it is built from. The resolver produces them; the code generator
only reads them.

Struct descriptors are created before their fields are known so that
mutually referential classes can point at each other. The resolver
seals them once with :meth:`TypeDescriptor.seal`; after that they are
treated as immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class TypeKind(Enum):
    """Kind of a described type."""
    PRIMITIVE = "primitive"
    STRUCT = "struct"
    POINTER = "pointer"
    SLICE = "slice"
    MAP = "map"
    ALIAS = "alias"


@dataclass(frozen=True, order=True)
class QualifiedName:
    """Module path plus local name. Both parts may be empty."""
    module: str = ""
    name: str = ""

    def __str__(self) -> str:
        if self.module and self.name:
            return f"{self.module}.{self.name}"
        return self.name or self.module

    def __bool__(self) -> bool:
        return bool(self.name)


@dataclass(frozen=True)
class FieldDescriptor:
    """A field of a struct, in declaration order."""
    name: str
    type: "TypeDescriptor"
    is_public: bool = True


@dataclass(eq=False, repr=False)
class TypeDescriptor:
    """
    Structured description of one type.

    ``elem`` holds the pointee, element, map value or alias target;
    ``key`` is only set for maps; ``fields`` only for structs.
    """
    kind: TypeKind
    name: QualifiedName = field(default_factory=QualifiedName)
    fields: Tuple[FieldDescriptor, ...] = ()
    elem: Optional["TypeDescriptor"] = None
    key: Optional["TypeDescriptor"] = None
    _sealed: bool = field(default=False, compare=False)

    def seal(self, fields: Tuple[FieldDescriptor, ...]) -> "TypeDescriptor":
        """Attach the fields of a struct. Allowed exactly once."""
        if self.kind is not TypeKind.STRUCT:
            raise TypeError(f"Only struct descriptors have fields, got {self.kind.value}")
        if self._sealed:
            raise ValueError(f"Struct {self.name} is already sealed")
        self.fields = tuple(fields)
        self._sealed = True
        return self

    @property
    def is_sealed(self) -> bool:
        return self._sealed or self.kind is not TypeKind.STRUCT

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        """Return the field with exactly this name, if any."""
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None

    def public_fields(self) -> Tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.is_public)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeDescriptor):
            return NotImplemented
        return identical(self, other)

    def __hash__(self) -> int:
        if self.name or self.kind in (TypeKind.PRIMITIVE, TypeKind.STRUCT):
            return hash((self.kind, self.name))
        return hash((self.kind, self.elem, self.key))

    def __repr__(self) -> str:
        return f"TypeDescriptor({describe(self)})"


# =============================================================================
# Constructors
# =============================================================================

def primitive(name: str, module: str = "") -> TypeDescriptor:
    """Describe a scalar or otherwise opaque type."""
    return TypeDescriptor(TypeKind.PRIMITIVE, QualifiedName(module, name))


def struct(name: str, module: str = "", fields: Optional[Tuple[FieldDescriptor, ...]] = None) -> TypeDescriptor:
    """Describe a struct. Without ``fields`` the descriptor is left unsealed."""
    descriptor = TypeDescriptor(TypeKind.STRUCT, QualifiedName(module, name))
    if fields is not None:
        descriptor.seal(tuple(fields))
    return descriptor


def pointer(elem: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(TypeKind.POINTER, elem=elem)


def slice_of(elem: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(TypeKind.SLICE, elem=elem)


def map_of(key: TypeDescriptor, value: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(TypeKind.MAP, key=key, elem=value)


def alias(name: str, target: TypeDescriptor, module: str = "") -> TypeDescriptor:
    """Describe a distinct named type defined in terms of ``target``."""
    return TypeDescriptor(TypeKind.ALIAS, QualifiedName(module, name), elem=target)


# =============================================================================
# Inspection helpers
# =============================================================================

def underlying(t: TypeDescriptor) -> TypeDescriptor:
    """Follow alias chains down to the first non-alias descriptor."""
    while t.kind is TypeKind.ALIAS and t.elem is not None:
        t = t.elem
    return t


def unwrap_pointer(t: TypeDescriptor) -> TypeDescriptor:
    """Strip one pointer layer, if present."""
    if t.kind is TypeKind.POINTER and t.elem is not None:
        return t.elem
    return t


def is_pointer(t: TypeDescriptor) -> bool:
    return t.kind is TypeKind.POINTER


def is_struct(t: TypeDescriptor) -> bool:
    """True for structs, looking through at most one pointer layer."""
    return underlying(unwrap_pointer(t)).kind is TypeKind.STRUCT


def element_type(t: TypeDescriptor) -> Optional[TypeDescriptor]:
    """Element type of a slice or value type of a map; None otherwise."""
    base = underlying(t)
    if base.kind in (TypeKind.SLICE, TypeKind.MAP):
        return base.elem
    return None


def key_type(t: TypeDescriptor) -> Optional[TypeDescriptor]:
    """Key type of a map; None otherwise."""
    base = underlying(t)
    if base.kind is TypeKind.MAP:
        return base.key
    return None


def is_slice(t: TypeDescriptor) -> bool:
    return underlying(t).kind is TypeKind.SLICE


def is_map(t: TypeDescriptor) -> bool:
    return underlying(t).kind is TypeKind.MAP


def identical(a: TypeDescriptor, b: TypeDescriptor) -> bool:
    """
    Structural identity of two descriptors.

    Named types (structs, aliases, primitives) are identical when their
    qualified names are; composite types compare their parts recursively.
    Anonymous structs compare field by field.
    """
    if a is b:
        return True
    if a.kind is not b.kind:
        return False

    if a.kind in (TypeKind.PRIMITIVE, TypeKind.ALIAS):
        return a.name == b.name
    if a.kind is TypeKind.STRUCT:
        if a.name or b.name:
            return a.name == b.name
        if len(a.fields) != len(b.fields):
            return False
        return all(
            fa.name == fb.name and fa.is_public == fb.is_public and identical(fa.type, fb.type)
            for fa, fb in zip(a.fields, b.fields)
        )
    if a.kind is TypeKind.MAP:
        return _identical_opt(a.key, b.key) and _identical_opt(a.elem, b.elem)
    return _identical_opt(a.elem, b.elem)


def _identical_opt(a: Optional[TypeDescriptor], b: Optional[TypeDescriptor]) -> bool:
    if a is None or b is None:
        return a is b
    return identical(a, b)


def describe(t: TypeDescriptor) -> str:
    """Readable, Python-flavoured rendering of a descriptor."""
    if t.kind is TypeKind.POINTER:
        return f"Optional[{_describe_opt(t.elem)}]"
    if t.kind is TypeKind.SLICE:
        return f"list[{_describe_opt(t.elem)}]"
    if t.kind is TypeKind.MAP:
        return f"dict[{_describe_opt(t.key)}, {_describe_opt(t.elem)}]"
    if t.name:
        return str(t.name)
    if t.kind is TypeKind.STRUCT:
        return "struct{" + "; ".join(f.name for f in t.fields) + "}"
    return t.kind.value


def _describe_opt(t: Optional[TypeDescriptor]) -> str:
    return describe(t) if t is not None else "?"
