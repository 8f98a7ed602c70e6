"""
Generation Context Management.

A GenerationContext holds everything one generation run mutates: the set
of pair keys already generated, the imports the output module needs and
the override calls that could not be matched to a user function. Each
run builds its own context, so independent runs never share state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from .naming import ConverterNaming, import_alias
from .overrides import OverrideRegistry
from .types import ConversionPair, PairKey
from ..descriptors import QualifiedName

BUILTIN_MODULES = ("", "builtins")


class ImportTable:
    """
    Collects the names the generated module refers to.

    Each qualified name gets one local spelling. When two modules export
    the same local name, the later one is imported under an alias.
    """

    def __init__(self, current_module: str):
        self._current_module = current_module
        self._spellings: Dict[QualifiedName, str] = {}
        self._owners: Dict[str, QualifiedName] = {}

    @property
    def current_module(self) -> str:
        return self._current_module

    def reference(self, name: QualifiedName) -> str:
        """Return the spelling of ``name`` inside the generated module."""
        if name.module in BUILTIN_MODULES or name.module == self._current_module:
            return name.name

        spelling = self._spellings.get(name)
        if spelling is not None:
            return spelling

        spelling = name.name
        owner = self._owners.get(spelling)
        if owner is not None and owner != name:
            spelling = import_alias(name)

        self._owners[spelling] = name
        self._spellings[name] = spelling
        return spelling

    def import_lines(self) -> List[str]:
        """``from x import y`` lines, modules and names sorted."""
        by_module: Dict[str, List[str]] = {}
        for name, spelling in self._spellings.items():
            entry = name.name if spelling == name.name else f"{name.name} as {spelling}"
            by_module.setdefault(name.module, []).append(entry)

        return [
            f"from {module} import {', '.join(sorted(entries))}"
            for module, entries in sorted(by_module.items())
        ]

    def __len__(self) -> int:
        return len(self._spellings)


@dataclass
class GenerationContext:
    """Per-run state shared by the worklist and the field planner."""
    package: str
    output_module: str
    overrides: OverrideRegistry
    imports: ImportTable
    generated: Set[PairKey] = field(default_factory=set)
    missing_overrides: List[str] = field(default_factory=list)
    function_names: Dict[PairKey, str] = field(default_factory=dict)
    function_owners: Dict[str, PairKey] = field(default_factory=dict)

    @property
    def naming(self) -> ConverterNaming:
        return self.overrides.naming

    def function_name(self, pair: ConversionPair) -> str:
        """
        Name of the generated function for ``pair``.

        The first pair key to ask for a name gets the short form built from
        the local type names. A later key whose short form is already taken
        gets the module-qualified form, so distinct keys never share a name.
        """
        key = pair.key
        name = self.function_names.get(key)
        if name is not None:
            return name

        name = self.naming.pair_function_name(pair.source.type_name, pair.target.type_name)
        owner = self.function_owners.get(name)
        if owner is not None and owner != key:
            name = self.naming.qualified_pair_function_name(pair.source.name, pair.target.name)

        self.function_owners[name] = key
        self.function_names[key] = name
        return name

    def is_generated(self, key: PairKey) -> bool:
        return key in self.generated

    def mark_generated(self, key: PairKey) -> None:
        self.generated.add(key)

    def note_missing_override(self, function_name: str) -> bool:
        """Record a missing override; return False if it was already recorded."""
        if function_name in self.missing_overrides:
            return False
        self.missing_overrides.append(function_name)
        return True


def output_module_name(package: str, output_filename: str) -> str:
    """Dotted name of the generated module inside ``package``."""
    stem = output_filename[:-3] if output_filename.endswith(".py") else output_filename
    return f"{package}.{stem}" if package else stem


def create_generation_context(
    package: str,
    overrides: OverrideRegistry,
    output_filename: str = "generated.py",
) -> GenerationContext:
    """Create a fresh context for one run over ``package``."""
    output_module = output_module_name(package, output_filename)
    return GenerationContext(
        package=package,
        output_module=output_module,
        overrides=overrides,
        imports=ImportTable(output_module),
    )
