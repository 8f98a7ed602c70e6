"""
Pytest configuration and shared fixtures for convgen tests.

This module provides common test fixtures, configuration, and utilities
used across the test suite.
"""

import importlib
import logging
import sys
import textwrap
from pathlib import Path
from typing import Dict, Iterable, List

import pytest

from convgen.codegen import (
    BlackSourceFormatter,
    CodeAssembler,
    ConversionPair,
    FieldMappingPlanner,
    FunctionDecl,
    OverrideRegistry,
    PairWorklist,
    create_generation_context,
    type_ref,
)
from convgen.codegen.templates import create_template_renderer
from convgen.descriptors import (
    FieldDescriptor,
    map_of,
    pointer,
    primitive,
    slice_of,
    struct,
)
from convgen.utils.config import ConvgenConfig, set_config

ENV_VARS = ("CONVGEN_STRICT_OVERRIDES", "CONVGEN_NO_FORMAT", "CONVGEN_LOG_LEVEL")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep environment overrides and the global configuration out of every test."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def convgen_logs(caplog):
    """Capture records of the ``convgen`` logger, which does not propagate."""
    logger = logging.getLogger("convgen")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="convgen")
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
def config(tmp_path):
    """Default configuration that never picks up a file from the working directory."""
    return ConvgenConfig(search_dir=str(tmp_path))


# Rendering fixtures
@pytest.fixture(scope="session")
def renderer():
    return create_template_renderer()


@pytest.fixture
def unformatted():
    return BlackSourceFormatter(enabled=False)


# Type fixtures
STR = primitive("str")
INT = primitive("int")


def fields(*specs) -> tuple:
    """``("name", STR), ("_secret", STR)`` -> field descriptors."""
    return tuple(FieldDescriptor(name, t, not name.startswith("_")) for name, t in specs)


@pytest.fixture
def user_types():
    """Handler request and domain model types shaped like a small web app."""
    address_request = struct("AddressRequest", "app.handler", fields(("city", STR), ("zip_code", STR)))
    address = struct("Address", "app.domain", fields(("city", STR), ("zip_code", STR)))
    tag_request = struct("TagRequest", "app.handler", fields(("label", STR)))
    tag = struct("Tag", "app.domain", fields(("label", STR)))

    user_request = struct(
        "UserRequest",
        "app.handler",
        fields(
            ("name", STR),
            ("age", INT),
            ("address", address_request),
            ("tags", slice_of(tag_request)),
            ("labels", map_of(STR, pointer(tag_request))),
        ),
    )
    user = struct(
        "User",
        "app.domain",
        fields(
            ("name", STR),
            ("age", INT),
            ("address", pointer(address)),
            ("tags", slice_of(tag)),
            ("labels", map_of(STR, pointer(tag))),
        ),
    )
    return {
        "AddressRequest": address_request,
        "Address": address,
        "TagRequest": tag_request,
        "Tag": tag,
        "UserRequest": user_request,
        "User": user,
    }


@pytest.fixture
def make_pair():
    def _make(source, target) -> ConversionPair:
        return ConversionPair(type_ref(source), type_ref(target))
    return _make


@pytest.fixture
def make_context():
    """Fresh generation context for package ``app.converter``."""
    def _make(overrides: Iterable[str] = (), package: str = "app.converter", override_module: str = "app.converter.custom"):
        registry = OverrideRegistry.from_declarations(
            FunctionDecl(name, override_module) for name in overrides
        )
        return create_generation_context(package, registry)
    return _make


@pytest.fixture
def make_planner(renderer):
    def _make(context) -> FieldMappingPlanner:
        return FieldMappingPlanner(context, renderer)
    return _make


@pytest.fixture
def run_pipeline(renderer, unformatted):
    """Run the worklist and assembler over pairs; returns (context, functions, module)."""
    def _run(pairs: List[ConversionPair], context, formatter=None):
        planner = FieldMappingPlanner(context, renderer)
        functions = PairWorklist(context, planner).run(pairs)
        module = CodeAssembler(renderer, formatter or unformatted).assemble(context, functions)
        return context, functions, module
    return _run


# Package fixtures
@pytest.fixture
def write_package(tmp_path):
    """Write ``{relative path: source}`` below a fresh source root and return the root."""
    root = tmp_path / "src"

    def _write(files: Dict[str, str]) -> Path:
        for relative, source in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return root
    return _write


@pytest.fixture
def import_from(monkeypatch):
    """Import modules from a source root, forgetting them again after the test."""
    loaded_roots = set()

    def _import(root: Path, module: str):
        monkeypatch.syspath_prepend(str(root))
        importlib.invalidate_caches()
        loaded_roots.add(module.split(".")[0])
        return importlib.import_module(module)

    yield _import

    for name in list(sys.modules):
        if name.split(".")[0] in loaded_roots:
            del sys.modules[name]
