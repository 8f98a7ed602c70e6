"""
Source module loading.

Locates and parses Python modules below a source root. Modules are parsed
with the standard library ``ast`` module and never imported, so scanning
a package has no side effects.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..utils.exceptions import ResolutionError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SourceModule:
    """A parsed module and where it came from."""
    name: str
    path: Path
    source: str
    tree: ast.Module
    is_package: bool = False

    @property
    def package(self) -> str:
        """Package that relative imports in this module are resolved against."""
        if self.is_package:
            return self.name
        return self.name.rpartition(".")[0]


def find_source_root(package_dir: Path) -> Tuple[Path, str]:
    """
    Walk up the ``__init__.py`` chain of ``package_dir``.

    Returns:
        The first directory that is not a package, and the dotted name of
        ``package_dir`` relative to it.
    """
    current = package_dir.resolve()
    parts: List[str] = []
    while (current / "__init__.py").is_file():
        parts.append(current.name)
        current = current.parent
    return current, ".".join(reversed(parts))


def dotted_name_under(root: Path, package_dir: Path) -> str:
    """Dotted package name of ``package_dir`` relative to an explicit root."""
    try:
        relative = package_dir.resolve().relative_to(root.resolve())
    except ValueError:
        raise ResolutionError(
            f"Package directory is not below the source root {root}", target=str(package_dir)
        ) from None
    return ".".join(relative.parts)


def module_name_for(package: str, path: Path) -> str:
    if path.name == "__init__.py":
        return package
    return f"{package}.{path.stem}" if package else path.stem


class ModuleLoader:
    """Parses modules on demand and caches them by dotted name."""

    def __init__(self, source_root: Path):
        self.source_root = source_root.resolve()
        self._cache: Dict[str, Optional[SourceModule]] = {}

    def locate(self, dotted: str) -> Optional[Path]:
        """File holding module ``dotted`` below the source root, if any."""
        if not dotted:
            return None
        base = self.source_root.joinpath(*dotted.split("."))
        package_init = base / "__init__.py"
        if package_init.is_file():
            return package_init
        module_file = base.parent / f"{base.name}.py"
        if module_file.is_file():
            return module_file
        return None

    def load(self, dotted: str) -> Optional[SourceModule]:
        """Load module ``dotted``; None when it is not below the source root."""
        if dotted in self._cache:
            return self._cache[dotted]

        path = self.locate(dotted)
        module = self.load_file(path, dotted) if path is not None else None
        self._cache[dotted] = module
        return module

    def load_file(self, path: Path, dotted: str) -> SourceModule:
        """Parse ``path`` as module ``dotted``."""
        cached = self._cache.get(dotted)
        if cached is not None:
            return cached

        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ResolutionError(f"Cannot read module: {e}", target=str(path)) from e

        try:
            tree = ast.parse(source, filename=str(path))
        except SyntaxError as e:
            raise ResolutionError(f"Syntax error on line {e.lineno}: {e.msg}", target=str(path)) from e

        module = SourceModule(
            name=dotted,
            path=path,
            source=source,
            tree=tree,
            is_package=path.name == "__init__.py",
        )
        self._cache[dotted] = module
        logger.debug(f"Parsed module {dotted} from {path}")
        return module

    def package_modules(self, package_dir: Path, package: str, exclude: Tuple[str, ...] = ()) -> List[SourceModule]:
        """All ``*.py`` files directly inside ``package_dir``, in file name order."""
        modules = []
        for path in sorted(package_dir.glob("*.py")):
            if path.name in exclude:
                continue
            modules.append(self.load_file(path, module_name_for(package, path)))
        return modules
