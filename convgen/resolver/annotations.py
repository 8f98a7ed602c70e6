"""
Annotation resolution.

Turns class bodies and annotation expressions into type descriptors.
Names are looked up the way Python would: the module's own classes and
assignments first, then its imports (followed into other modules below
the source root), then builtins. Names imported from modules outside
the source root stay opaque and become primitives.
"""

from __future__ import annotations

import ast
import builtins
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple, Union

from .loader import ModuleLoader, SourceModule
from ..descriptors import (
    FieldDescriptor,
    QualifiedName,
    TypeDescriptor,
    TypeKind,
    alias,
    map_of,
    pointer,
    primitive,
    slice_of,
    struct,
)
from ..utils.exceptions import ResolutionError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _names(module: str, *names: str) -> Set[QualifiedName]:
    return {QualifiedName(module, name) for name in names}


OPTIONAL_NAMES = _names("typing", "Optional") | _names("typing_extensions", "Optional")
UNION_NAMES = _names("typing", "Union") | _names("typing_extensions", "Union")
SEQUENCE_NAMES = (
    _names("builtins", "list")
    | _names("typing", "List", "Sequence", "MutableSequence")
    | _names("collections.abc", "Sequence", "MutableSequence")
)
MAPPING_NAMES = (
    _names("builtins", "dict")
    | _names("typing", "Dict", "Mapping", "MutableMapping")
    | _names("collections.abc", "Mapping", "MutableMapping")
)
ANNOTATED_NAMES = _names("typing", "Annotated") | _names("typing_extensions", "Annotated")
CLASSVAR_NAMES = _names("typing", "ClassVar") | _names("typing_extensions", "ClassVar")
NEWTYPE_NAMES = _names("typing", "NewType") | _names("typing_extensions", "NewType")
TYPEALIAS_NAMES = _names("typing", "TypeAlias") | _names("typing_extensions", "TypeAlias")
ENUM_BASES = _names("enum", "Enum", "IntEnum", "StrEnum", "Flag", "IntFlag")

NONE_NAME = QualifiedName("", "None")


@dataclass(frozen=True)
class ModuleRef:
    """A name bound to a module rather than to a type."""
    name: str


Resolved = Union[TypeDescriptor, QualifiedName, ModuleRef]


@dataclass
class ModuleScope:
    """Top-level bindings of one module."""
    classes: Dict[str, ast.ClassDef] = field(default_factory=dict)
    imported_names: Dict[str, QualifiedName] = field(default_factory=dict)
    imported_modules: Dict[str, str] = field(default_factory=dict)
    type_aliases: Dict[str, ast.expr] = field(default_factory=dict)
    new_types: Dict[str, ast.expr] = field(default_factory=dict)
    assignments: Dict[str, ast.expr] = field(default_factory=dict)
    other_names: Set[str] = field(default_factory=set)


def top_level_statements(body: List[ast.stmt]):
    """Yield module-level statements, descending into ``if`` and ``try`` blocks."""
    for stmt in body:
        if isinstance(stmt, ast.If):
            yield from top_level_statements(stmt.body)
            yield from top_level_statements(stmt.orelse)
        elif isinstance(stmt, ast.Try):
            yield from top_level_statements(stmt.body)
            for handler in stmt.handlers:
                yield from top_level_statements(handler.body)
            yield from top_level_statements(stmt.orelse)
            yield from top_level_statements(stmt.finalbody)
        else:
            yield stmt


class TypeResolver:
    """Resolves names and annotations to descriptors, caching by qualified name."""

    def __init__(self, loader: ModuleLoader):
        self._loader = loader
        self._scopes: Dict[str, ModuleScope] = {}
        self._named: Dict[QualifiedName, TypeDescriptor] = {}
        self._resolving: Set[Tuple[str, str]] = set()

    @property
    def loader(self) -> ModuleLoader:
        return self._loader

    def named_types(self) -> Dict[QualifiedName, TypeDescriptor]:
        """Every named descriptor resolved so far."""
        return dict(self._named)

    # -------------------------------------------------------------------------
    # Scopes
    # -------------------------------------------------------------------------

    def scope(self, module: SourceModule) -> ModuleScope:
        scope = self._scopes.get(module.name)
        if scope is None:
            scope = self._build_scope(module)
            self._scopes[module.name] = scope
        return scope

    def _build_scope(self, module: SourceModule) -> ModuleScope:
        scope = ModuleScope()
        for stmt in top_level_statements(module.tree.body):
            if isinstance(stmt, ast.ClassDef):
                scope.classes[stmt.name] = stmt
            elif isinstance(stmt, ast.ImportFrom):
                source = self._absolute_module(module, stmt.module, stmt.level)
                for item in stmt.names:
                    if item.name == "*":
                        continue
                    scope.imported_names[item.asname or item.name] = QualifiedName(source, item.name)
            elif isinstance(stmt, ast.Import):
                for item in stmt.names:
                    if item.asname:
                        scope.imported_modules[item.asname] = item.name
                    else:
                        head = item.name.split(".")[0]
                        scope.imported_modules[head] = head
            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                if stmt.value is not None and self._is_type_alias_annotation(module, stmt.annotation):
                    scope.type_aliases[stmt.target.id] = stmt.value
                else:
                    scope.other_names.add(stmt.target.id)
            elif isinstance(stmt, ast.Assign):
                self._record_assignment(module, scope, stmt)
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                scope.other_names.add(stmt.name)
        return scope

    def _record_assignment(self, module: SourceModule, scope: ModuleScope, stmt: ast.Assign) -> None:
        names = [target.id for target in stmt.targets if isinstance(target, ast.Name)]
        if len(names) != 1 or len(stmt.targets) != 1:
            scope.other_names.update(names)
            return

        name, value = names[0], stmt.value
        if isinstance(value, ast.Call) and self._is_new_type_call(module, value):
            scope.new_types[name] = value.args[1]
        elif isinstance(value, (ast.Name, ast.Attribute, ast.Subscript)):
            scope.assignments[name] = value
        else:
            scope.other_names.add(name)

    def _is_type_alias_annotation(self, module: SourceModule, annotation: ast.expr) -> bool:
        if not isinstance(annotation, (ast.Name, ast.Attribute)):
            return False
        ref = self._try_reference(annotation, module, use_scope=False)
        return isinstance(ref, QualifiedName) and ref in TYPEALIAS_NAMES

    def _is_new_type_call(self, module: SourceModule, call: ast.Call) -> bool:
        if len(call.args) != 2 or not isinstance(call.func, (ast.Name, ast.Attribute)):
            return False
        ref = self._try_reference(call.func, module, use_scope=False)
        return isinstance(ref, QualifiedName) and ref in NEWTYPE_NAMES

    def _try_reference(self, expr: ast.expr, module: SourceModule, use_scope: bool = True) -> Optional[Resolved]:
        """Resolve ``expr`` through imports only while the scope is being built."""
        if use_scope:
            try:
                return self.resolve_reference(expr, module)
            except ResolutionError:
                return None

        if isinstance(expr, ast.Name):
            for stmt in top_level_statements(module.tree.body):
                if isinstance(stmt, ast.ImportFrom):
                    for item in stmt.names:
                        if (item.asname or item.name) == expr.id:
                            source = self._absolute_module(module, stmt.module, stmt.level)
                            return QualifiedName(source, item.name)
            return None
        if isinstance(expr, ast.Attribute) and isinstance(expr.value, ast.Name):
            for stmt in top_level_statements(module.tree.body):
                if isinstance(stmt, ast.Import):
                    for item in stmt.names:
                        if (item.asname or item.name) == expr.value.id:
                            return QualifiedName(item.name, expr.attr)
        return None

    @staticmethod
    def _absolute_module(module: SourceModule, name: Optional[str], level: int) -> str:
        if level == 0:
            return name or ""
        parts = module.package.split(".") if module.package else []
        if level > 1:
            parts = parts[: len(parts) - (level - 1)]
        if name:
            parts.append(name)
        return ".".join(parts)

    # -------------------------------------------------------------------------
    # Name lookup
    # -------------------------------------------------------------------------

    def lookup(self, module: SourceModule, name: str) -> Resolved:
        """Resolve a bare name as seen from ``module``."""
        scope = self.scope(module)
        if name in scope.classes:
            # Registered before its fields resolve, so self references are safe.
            return self.class_descriptor(module, scope.classes[name])

        key = (module.name, name)
        if key in self._resolving:
            raise ResolutionError(f"Circular definition of '{name}'", target=module.name)

        self._resolving.add(key)
        try:
            return self._lookup(module, name)
        finally:
            self._resolving.discard(key)

    def _lookup(self, module: SourceModule, name: str) -> Resolved:
        scope = self.scope(module)
        qualified = QualifiedName(module.name, name)

        if name in scope.type_aliases:
            return self.resolve_annotation(scope.type_aliases[name], module)
        if name in scope.new_types:
            cached = self._named.get(qualified)
            if cached is None:
                cached = alias(name, self.resolve_annotation(scope.new_types[name], module), module.name)
                self._named[qualified] = cached
            return cached
        if name in scope.assignments:
            return self.resolve_reference(scope.assignments[name], module)
        if name in scope.imported_names:
            return self._follow_import(scope.imported_names[name])
        if name in scope.imported_modules:
            return ModuleRef(scope.imported_modules[name])
        if name in scope.other_names:
            return qualified
        if hasattr(builtins, name):
            return QualifiedName("builtins", name)

        raise ResolutionError(f"Undefined name '{name}'", target=module.name)

    def _follow_import(self, imported: QualifiedName) -> Resolved:
        source = self._loader.load(imported.module)
        if source is None:
            # Not below the source root: either an external module or a
            # submodule imported through its package.
            return imported
        if self._defines(source, imported.name):
            return self.lookup(source, imported.name)
        submodule = f"{imported.module}.{imported.name}" if imported.module else imported.name
        if self._loader.load(submodule) is not None:
            return ModuleRef(submodule)
        raise ResolutionError(
            f"Cannot import name '{imported.name}' from '{imported.module}'", target=imported.module
        )

    def _defines(self, module: SourceModule, name: str) -> bool:
        scope = self.scope(module)
        return any(
            name in names
            for names in (
                scope.classes,
                scope.type_aliases,
                scope.new_types,
                scope.assignments,
                scope.imported_names,
                scope.imported_modules,
                scope.other_names,
            )
        )

    def resolve_reference(self, expr: ast.expr, module: SourceModule) -> Resolved:
        """Resolve a ``Name`` or dotted ``Attribute`` expression."""
        if isinstance(expr, ast.Name):
            return self.lookup(module, expr.id)

        if isinstance(expr, ast.Attribute):
            owner = self.resolve_reference(expr.value, module)
            if isinstance(owner, ModuleRef):
                target = self._loader.load(owner.name)
                if target is None:
                    return QualifiedName(owner.name, expr.attr)
                if self._defines(target, expr.attr):
                    return self.lookup(target, expr.attr)
                submodule = f"{owner.name}.{expr.attr}"
                if self._loader.load(submodule) is not None:
                    return ModuleRef(submodule)
                raise ResolutionError(
                    f"Module '{owner.name}' has no attribute '{expr.attr}'", target=module.name
                )
            if isinstance(owner, QualifiedName):
                # Attribute of an opaque name, e.g. a module outside the root
                # imported through ``from pkg import mod``.
                return QualifiedName(str(owner), expr.attr)
            raise ResolutionError(
                f"Cannot resolve attribute '{expr.attr}' of a type", target=module.name
            )

        raise ResolutionError(
            f"Expected a name, got '{ast.unparse(expr)}'", target=module.name
        )

    # -------------------------------------------------------------------------
    # Annotations
    # -------------------------------------------------------------------------

    def resolve_annotation(self, expr: ast.expr, module: SourceModule) -> TypeDescriptor:
        """Describe the type an annotation expression denotes."""
        if isinstance(expr, ast.Constant):
            if expr.value is None:
                return primitive("None")
            if isinstance(expr.value, str):
                try:
                    parsed = ast.parse(expr.value.strip(), mode="eval")
                except SyntaxError as e:
                    raise ResolutionError(
                        f"Invalid forward reference '{expr.value}'", target=module.name
                    ) from e
                return self.resolve_annotation(parsed.body, module)
            return primitive(ast.unparse(expr))

        if isinstance(expr, (ast.Name, ast.Attribute)):
            return self._as_descriptor(self.resolve_reference(expr, module), expr, module)

        if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
            return self._union(self._flatten_union(expr), expr, module)

        if isinstance(expr, ast.Subscript):
            return self._resolve_subscript(expr, module)

        return primitive(ast.unparse(expr))

    def _as_descriptor(self, resolved: Resolved, expr: ast.expr, module: SourceModule) -> TypeDescriptor:
        if isinstance(resolved, TypeDescriptor):
            return resolved
        if isinstance(resolved, ModuleRef):
            raise ResolutionError(
                f"Module '{resolved.name}' used as a type", target=module.name
            )
        if resolved.module == "builtins":
            return primitive("None") if resolved.name == "None" else primitive(resolved.name)
        return primitive(resolved.name, resolved.module)

    def _resolve_subscript(self, expr: ast.Subscript, module: SourceModule) -> TypeDescriptor:
        head = expr.value
        if not isinstance(head, (ast.Name, ast.Attribute)):
            return primitive(ast.unparse(expr))

        construct = self.resolve_reference(head, module)
        if not isinstance(construct, QualifiedName):
            return primitive(ast.unparse(expr))

        args = list(expr.slice.elts) if isinstance(expr.slice, ast.Tuple) else [expr.slice]

        if construct in OPTIONAL_NAMES and len(args) == 1:
            return pointer(self.resolve_annotation(args[0], module))
        if construct in UNION_NAMES:
            return self._union(args, expr, module)
        if construct in SEQUENCE_NAMES and len(args) == 1:
            return slice_of(self.resolve_annotation(args[0], module))
        if construct in MAPPING_NAMES and len(args) == 2:
            return map_of(
                self.resolve_annotation(args[0], module),
                self.resolve_annotation(args[1], module),
            )
        if construct in ANNOTATED_NAMES or construct in CLASSVAR_NAMES:
            return self.resolve_annotation(args[0], module)

        return primitive(ast.unparse(expr))

    @staticmethod
    def _flatten_union(expr: ast.expr) -> List[ast.expr]:
        if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
            return TypeResolver._flatten_union(expr.left) + TypeResolver._flatten_union(expr.right)
        return [expr]

    def _union(self, members: List[ast.expr], expr: ast.expr, module: SourceModule) -> TypeDescriptor:
        resolved = [self.resolve_annotation(member, module) for member in members]
        non_none = [t for t in resolved if not (t.kind is TypeKind.PRIMITIVE and t.name == NONE_NAME)]

        if len(non_none) == 1:
            if len(non_none) < len(resolved):
                return pointer(non_none[0])
            return non_none[0]
        return primitive(ast.unparse(expr))

    # -------------------------------------------------------------------------
    # Classes
    # -------------------------------------------------------------------------

    def class_descriptor(self, module: SourceModule, node: ast.ClassDef) -> TypeDescriptor:
        """Describe a class; structs are registered before their fields resolve."""
        qualified = QualifiedName(module.name, node.name)
        cached = self._named.get(qualified)
        if cached is not None:
            return cached

        bases = [self.resolve_annotation(base, module) for base in node.bases]
        if any(self._is_enum(base) for base in bases):
            descriptor = primitive(node.name, module.name)
            self._named[qualified] = descriptor
            return descriptor

        descriptor = struct(node.name, module.name)
        self._named[qualified] = descriptor

        fields: Dict[str, FieldDescriptor] = {}
        for base in bases:
            if base.kind is TypeKind.STRUCT:
                for inherited in base.fields:
                    fields.setdefault(inherited.name, inherited)

        for stmt in node.body:
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue
            if self._is_class_var(stmt.annotation, module):
                continue
            name = stmt.target.id
            field_type = self.resolve_annotation(stmt.annotation, module)
            if name in fields:
                fields[name] = FieldDescriptor(name, field_type, fields[name].is_public)
            else:
                fields[name] = FieldDescriptor(name, field_type, not name.startswith("_"))

        descriptor.seal(tuple(fields.values()))
        logger.debug(f"Resolved struct {qualified} with {len(fields)} field(s)")
        return descriptor

    def _is_enum(self, base: TypeDescriptor) -> bool:
        if base.kind is not TypeKind.PRIMITIVE:
            return False
        if base.name in ENUM_BASES:
            return True
        # A subclass of an enum declared below the source root.
        return base.name.module != "" and self._named.get(base.name) is base

    def _is_class_var(self, annotation: ast.expr, module: SourceModule) -> bool:
        head = annotation.value if isinstance(annotation, ast.Subscript) else annotation
        if isinstance(head, ast.Constant) and isinstance(head.value, str):
            return head.value.strip().startswith("ClassVar")
        if not isinstance(head, (ast.Name, ast.Attribute)):
            return False
        ref = self._try_reference(head, module)
        return isinstance(ref, QualifiedName) and ref in CLASSVAR_NAMES
