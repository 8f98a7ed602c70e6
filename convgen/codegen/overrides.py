"""
Override Registry.

Indexes user-written conversion functions found anywhere in the target
package. The index is built once, up front, and is read-only for the rest
of the run; lookups go through the naming convention so callers ask in
terms of types and fields rather than raw function names.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from .naming import ConverterNaming
from .types import FunctionDecl
from ..utils.logging import get_logger

logger = get_logger(__name__)


class OverrideRegistry:
    """Read-only lookup of override functions keyed by convention name."""

    def __init__(self, naming: Optional[ConverterNaming] = None):
        self._naming = naming or ConverterNaming()
        self._functions: Dict[str, FunctionDecl] = {}

    @classmethod
    def from_declarations(
        cls,
        declarations: Iterable[FunctionDecl],
        naming: Optional[ConverterNaming] = None,
    ) -> "OverrideRegistry":
        """Scan function declarations and keep the ones following the convention."""
        registry = cls(naming)
        for decl in declarations:
            if not registry._naming.is_candidate(decl.name):
                continue
            existing = registry._functions.get(decl.name)
            if existing is not None and existing.module != decl.module:
                logger.warning(
                    f"Override {decl.name} is defined in both {existing.module} and "
                    f"{decl.module}; using {existing.module}"
                )
                continue
            registry._functions.setdefault(decl.name, decl)

        logger.debug(f"Indexed {len(registry._functions)} override function(s)")
        return registry

    @property
    def naming(self) -> ConverterNaming:
        return self._naming

    def lookup(self, function_name: str) -> Optional[FunctionDecl]:
        return self._functions.get(function_name)

    def field_override(self, from_type: str, from_field: str, to_type: str, to_field: str) -> Optional[FunctionDecl]:
        """The user function overriding one destination field, if any."""
        return self.lookup(self._naming.field_function_name(from_type, from_field, to_type, to_field))

    def pair_override(self, from_type: str, to_type: str) -> Optional[FunctionDecl]:
        """The user function replacing a whole pair conversion, if any."""
        return self.lookup(self._naming.pair_function_name(from_type, to_type))

    def __contains__(self, function_name: object) -> bool:
        return function_name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._functions))

    def __len__(self) -> int:
        return len(self._functions)
