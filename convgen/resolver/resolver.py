"""
Package Resolver.

Scans one target package and returns what the generator needs from it:
the struct descriptors it declares, the registration directives found in
opted-in modules, and every top-level function (the override scan input).
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .annotations import TypeResolver
from .loader import ModuleLoader, SourceModule, dotted_name_under, find_source_root
from ..codegen.types import FunctionDecl, RegistrationDirective, SourceLocation
from ..descriptors import QualifiedName, TypeDescriptor
from ..utils.exceptions import ResolutionError
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MARKER = "convgen: generate"
DEFAULT_OUTPUT_FILENAME = "generated.py"

RUNTIME_MODULES = ("convgen", "convgen.runtime")
REGISTER = "register"
REGISTER_BIDIRECTIONAL = "register_bidirectional"


@dataclass
class ResolvedTarget:
    """
    Everything resolved from one package.

    The generator consumes ``directives`` and ``functions``. ``types`` maps
    every class resolved along the way to its descriptor; it is kept for
    callers that inspect a package without generating, such as tooling and
    tests.
    """
    package: str
    package_dir: Path
    source_root: Path
    types: Dict[QualifiedName, TypeDescriptor] = field(default_factory=dict)
    directives: List[RegistrationDirective] = field(default_factory=list)
    functions: List[FunctionDecl] = field(default_factory=list)


def marker_pattern(marker: str) -> "re.Pattern[str]":
    """Full-line comment carrying ``marker``."""
    return re.compile(rf"^[ \t]*#[ \t]*{re.escape(marker)}[ \t]*$", re.MULTILINE)


def registration_kind(name: QualifiedName) -> Optional[bool]:
    """None if ``name`` is not a registration marker, else whether it is bidirectional."""
    if name.module not in RUNTIME_MODULES:
        return None
    if name.name == REGISTER:
        return False
    if name.name == REGISTER_BIDIRECTIONAL:
        return True
    return None


class PackageResolver:
    """Resolves a package directory into typed declarations."""

    def __init__(
        self,
        marker: str = DEFAULT_MARKER,
        output_filename: str = DEFAULT_OUTPUT_FILENAME,
        source_root: Optional[Union[str, Path]] = None,
    ):
        self.marker = marker
        self.output_filename = output_filename
        self.source_root = Path(source_root) if source_root is not None else None
        self._marker_re = marker_pattern(marker)

    def resolve(self, target: Union[str, Path]) -> ResolvedTarget:
        """
        Resolve ``target``, a package directory.

        Args:
            target: Directory holding the package's modules

        Returns:
            The resolved package

        Raises:
            ResolutionError: If the directory, a module or a name cannot be resolved
        """
        package_dir = Path(target)
        if not package_dir.is_dir():
            raise ResolutionError("Package directory not found", target=str(target))
        package_dir = package_dir.resolve()

        if self.source_root is not None:
            root = self.source_root.resolve()
            package = dotted_name_under(root, package_dir)
        else:
            root, package = find_source_root(package_dir)

        loader = ModuleLoader(root)
        types = TypeResolver(loader)
        modules = loader.package_modules(package_dir, package, exclude=(self.output_filename,))
        logger.debug(f"Scanning {len(modules)} module(s) of {package or package_dir}")

        resolved = ResolvedTarget(package=package, package_dir=package_dir, source_root=root)
        for module in modules:
            self._collect_types(types, module)
            resolved.functions.extend(self._collect_functions(module))
            if self._marker_re.search(module.source):
                resolved.directives.extend(self._collect_directives(types, module))

        resolved.types = types.named_types()
        logger.debug(
            f"Resolved {len(resolved.types)} type(s), {len(resolved.directives)} directive(s) and "
            f"{len(resolved.functions)} function(s) in {package or package_dir}"
        )
        return resolved

    def _collect_types(self, types: TypeResolver, module: SourceModule) -> None:
        for stmt in module.tree.body:
            if isinstance(stmt, ast.ClassDef):
                types.class_descriptor(module, stmt)

    @staticmethod
    def _collect_functions(module: SourceModule) -> List[FunctionDecl]:
        return [
            FunctionDecl(
                name=stmt.name,
                module=module.name,
                location=SourceLocation(str(module.path), stmt.lineno),
            )
            for stmt in module.tree.body
            if isinstance(stmt, ast.FunctionDef)
        ]

    def _collect_directives(self, types: TypeResolver, module: SourceModule) -> List[RegistrationDirective]:
        calls = sorted(
            (node for node in ast.walk(module.tree) if isinstance(node, ast.Call)),
            key=lambda node: (node.lineno, node.col_offset),
        )

        directives = []
        for call in calls:
            bidirectional = self._registration_call(types, module, call)
            if bidirectional is None:
                continue
            source, target = self._registration_arguments(types, module, call)
            directives.append(
                RegistrationDirective(
                    source=source,
                    target=target,
                    bidirectional=bidirectional,
                    location=SourceLocation(str(module.path), call.lineno),
                )
            )
        return directives

    @staticmethod
    def _registration_call(types: TypeResolver, module: SourceModule, call: ast.Call) -> Optional[bool]:
        if not isinstance(call.func, (ast.Name, ast.Attribute)):
            return None
        try:
            ref = types.resolve_reference(call.func, module)
        except ResolutionError:
            # Local variables, parameters and other names that only exist
            # at run time; none of them can be a registration marker.
            return None
        if not isinstance(ref, QualifiedName):
            return None
        return registration_kind(ref)

    @staticmethod
    def _registration_arguments(
        types: TypeResolver, module: SourceModule, call: ast.Call
    ) -> Tuple[TypeDescriptor, TypeDescriptor]:
        location = f"{module.path}:{call.lineno}"
        if len(call.args) != 2 or call.keywords or any(isinstance(a, ast.Starred) for a in call.args):
            raise ResolutionError(
                f"Registration call must have exactly two positional arguments: {ast.unparse(call)}",
                target=location,
            )

        resolved = []
        for arg in call.args:
            try:
                resolved.append(types.resolve_annotation(arg, module))
            except ResolutionError as e:
                raise ResolutionError(f"Cannot resolve registration argument: {e.message}", target=location) from e
        return resolved[0], resolved[1]


def resolve(
    target: Union[str, Path],
    marker: str = DEFAULT_MARKER,
    output_filename: str = DEFAULT_OUTPUT_FILENAME,
    source_root: Optional[Union[str, Path]] = None,
) -> ResolvedTarget:
    """Resolve ``target`` with a one-off :class:`PackageResolver`."""
    return PackageResolver(marker, output_filename, source_root).resolve(target)
