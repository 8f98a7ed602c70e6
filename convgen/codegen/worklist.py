"""
Pair Worklist Engine.

Turns the seed conversion pairs into the complete set of generated
functions. Pairs are processed first in, first out; nested pairs found
while planning are appended to the tail, so a pair's siblings are always
emitted before its grandchildren.

A pair key is marked as generated before its fields are planned. A type
graph with cycles therefore meets the key again while it is still being
processed and drops it, and each key produces at most one function.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, List, Optional, Tuple

from .context import GenerationContext
from .planner import FieldMappingPlanner
from .types import ConversionPair, GeneratedFunction
from ..descriptors import TypeDescriptor, TypeKind, describe, underlying
from ..utils.exceptions import ShapeMismatchError
from ..utils.logging import GenerationLogger


class PairWorklist:
    """Breadth-first driver over conversion pairs for one generation run."""

    def __init__(
        self,
        context: GenerationContext,
        planner: FieldMappingPlanner,
        events: Optional[GenerationLogger] = None,
    ):
        self.context = context
        self.planner = planner
        self.events = events or GenerationLogger(__name__)

    def run(self, seeds: Iterable[ConversionPair]) -> List[GeneratedFunction]:
        """
        Generate one function per distinct pair key reachable from ``seeds``.

        Args:
            seeds: Expanded registration pairs, in discovery order

        Returns:
            Generated functions in discovery order

        Raises:
            ShapeMismatchError: If either side of a pair is not a struct
        """
        queue = deque(seeds)
        functions: List[GeneratedFunction] = []

        while queue:
            pair = queue.popleft()
            key = pair.key
            if self.context.is_generated(key):
                self.events.log_pair_skipped(key)
                continue
            self.context.mark_generated(key)

            override = self.context.overrides.pair_override(pair.source.type_name, pair.target.type_name)
            if override is not None:
                self.events.log_pair_override(override.name)
                continue

            function, nested = self.build_function(pair)
            functions.append(function)
            queue.extend(nested)

        return functions

    def build_function(self, pair: ConversionPair) -> Tuple[GeneratedFunction, List[ConversionPair]]:
        """Plan every destination field of ``pair``; return the function and the pairs it needs."""
        self._require_struct(pair, "source", pair.source.descriptor)
        self._require_struct(pair, "target", pair.target.descriptor)

        imports = self.context.imports
        name = self.context.function_name(pair)
        source_annotation = imports.reference(pair.source.name)
        target_annotation = imports.reference(pair.target.name)

        mappings = self.planner.plan_fields(pair)
        function = GeneratedFunction(
            name=name,
            pair=pair,
            source_annotation=source_annotation,
            target_annotation=target_annotation,
            statements=tuple(m.statement for m in mappings),
        )
        self.events.log_function_generated(name, len(mappings))
        return function, [m.nested for m in mappings if m.nested is not None]

    @staticmethod
    def _require_struct(pair: ConversionPair, side: str, descriptor: TypeDescriptor) -> None:
        if underlying(descriptor).kind is not TypeKind.STRUCT:
            raise ShapeMismatchError(pair.key, side, describe(descriptor))
