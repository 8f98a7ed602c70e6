"""
Type resolution for convgen.

Reads a package's modules with ``ast`` and produces type descriptors,
registration directives and the function declarations used as
override candidates.
"""

from .loader import ModuleLoader, SourceModule, find_source_root
from .annotations import TypeResolver
from .resolver import (
    DEFAULT_MARKER,
    PackageResolver,
    ResolvedTarget,
    resolve,
)

__all__ = [
    "ModuleLoader",
    "SourceModule",
    "find_source_root",
    "TypeResolver",
    "DEFAULT_MARKER",
    "PackageResolver",
    "ResolvedTarget",
    "resolve",
]
