"""
Field Mapping Planner.

Decides, for every public field of a destination struct, how its value is
produced from the source struct. Rules are tried in order:

1. no source field with the same name: call the field override
2. identical types: call the field override if one exists, else copy
3. lists of structs: convert element by element
4. dicts with struct values: convert value by value, keys unchanged
5. structs (through at most one ``Optional``): allocate and convert
6. anything else: call the field override

Rules 3 to 5 also defer to an existing field override, and each of them
requests the nested element/value/struct pair from the worklist. Planning
a field never fails; in the worst case the statement calls an override
the user still has to write.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from .context import GenerationContext
from .types import ConversionPair, FieldMapping, TemplateRenderer, type_ref
from ..descriptors import (
    FieldDescriptor,
    TypeDescriptor,
    element_type,
    identical,
    is_map,
    is_pointer,
    is_slice,
    is_struct,
    underlying,
    unwrap_pointer,
)
from ..utils.logging import GenerationLogger

DIRECT_COPY_TEMPLATE = "direct_copy.py.j2"
OVERRIDE_CALL_TEMPLATE = "override_call.py.j2"
SLICE_TEMPLATE = "slice_field.py.j2"
MAP_TEMPLATE = "map_field.py.j2"
STRUCT_TEMPLATE = "struct_field.py.j2"


def struct_elements(
    src_type: TypeDescriptor,
    dst_type: TypeDescriptor,
    is_collection: Callable[[TypeDescriptor], bool],
) -> Optional[Tuple[TypeDescriptor, TypeDescriptor]]:
    """
    Element types of two collections of structs, seeing through one ``Optional``.

    ``is_collection`` selects lists or dicts; for dicts the elements are the
    values. Returns None unless both sides are such collections.
    """
    src_base, dst_base = unwrap_pointer(src_type), unwrap_pointer(dst_type)
    if not (is_collection(src_base) and is_collection(dst_base)):
        return None
    src_elem, dst_elem = element_type(src_base), element_type(dst_base)
    if src_elem is None or dst_elem is None:
        return None
    if not (is_struct(src_elem) and is_struct(dst_elem)):
        return None
    return src_elem, dst_elem


class FieldMappingPlanner:
    """Plans the statements of one conversion function at a time."""

    def __init__(
        self,
        context: GenerationContext,
        renderer: TemplateRenderer,
        events: Optional[GenerationLogger] = None,
    ):
        self.context = context
        self.renderer = renderer
        self.events = events or GenerationLogger(__name__)

    def plan_fields(self, pair: ConversionPair) -> List[FieldMapping]:
        """One mapping per public destination field, in declared order."""
        target = pair.target_struct()
        return [self.plan_field(pair, dst) for dst in target.public_fields()]

    def plan_field(self, pair: ConversionPair, dst: FieldDescriptor) -> FieldMapping:
        src = pair.source_struct().get_field(dst.name)
        if src is None or not src.is_public:
            return self._override_call(pair, dst.name, dst.name, "no matching source field")

        src_type, dst_type = src.type, dst.type
        if identical(src_type, dst_type):
            existing = self._existing_field_override(pair, src.name, dst.name)
            if existing is not None:
                return existing
            return self._mapping(dst.name, DIRECT_COPY_TEMPLATE, src_field=src.name, dst_field=dst.name)

        elements = struct_elements(src_type, dst_type, is_slice)
        if elements is not None:
            return self._existing_field_override(pair, src.name, dst.name) or self._slice_field(
                src, dst, *elements
            )

        values = struct_elements(src_type, dst_type, is_map)
        if values is not None:
            return self._existing_field_override(pair, src.name, dst.name) or self._map_field(
                src, dst, *values
            )

        if is_struct(src_type) and is_struct(dst_type):
            return self._existing_field_override(pair, src.name, dst.name) or self._struct_field(src, dst)

        return self._override_call(pair, src.name, dst.name, "field types differ")

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def _slice_field(
        self,
        src: FieldDescriptor,
        dst: FieldDescriptor,
        src_elem: TypeDescriptor,
        dst_elem: TypeDescriptor,
    ) -> FieldMapping:
        nested = self._nested_pair(src_elem, dst_elem)
        return self._mapping(
            dst.name,
            SLICE_TEMPLATE,
            nested=nested,
            src_field=src.name,
            dst_field=dst.name,
            elem_optional=is_pointer(src_elem),
            elem_type=self._allocation_name(dst_elem),
            func=self._pair_function(nested),
        )

    def _map_field(
        self,
        src: FieldDescriptor,
        dst: FieldDescriptor,
        src_value: TypeDescriptor,
        dst_value: TypeDescriptor,
    ) -> FieldMapping:
        nested = self._nested_pair(src_value, dst_value)
        return self._mapping(
            dst.name,
            MAP_TEMPLATE,
            nested=nested,
            src_field=src.name,
            dst_field=dst.name,
            value_optional=is_pointer(src_value),
            value_type=self._allocation_name(dst_value),
            func=self._pair_function(nested),
        )

    def _struct_field(self, src: FieldDescriptor, dst: FieldDescriptor) -> FieldMapping:
        nested = self._nested_pair(src.type, dst.type)
        return self._mapping(
            dst.name,
            STRUCT_TEMPLATE,
            nested=nested,
            src_field=src.name,
            dst_field=dst.name,
            src_is_pointer=is_pointer(src.type),
            dst_is_pointer=is_pointer(dst.type),
            dst_type=self._allocation_name(dst.type),
            func=self._pair_function(nested),
        )

    # -------------------------------------------------------------------------
    # Overrides
    # -------------------------------------------------------------------------

    def _existing_field_override(self, pair: ConversionPair, src_field: str, dst_field: str) -> Optional[FieldMapping]:
        decl = self.context.overrides.field_override(
            pair.source.type_name, src_field, pair.target.type_name, dst_field
        )
        if decl is None:
            return None
        return self._mapping(dst_field, OVERRIDE_CALL_TEMPLATE, func=self.context.imports.reference(decl.qualified_name))

    def _override_call(self, pair: ConversionPair, src_field: str, dst_field: str, reason: str) -> FieldMapping:
        """Call the field override whether or not it exists."""
        existing = self._existing_field_override(pair, src_field, dst_field)
        if existing is not None:
            return existing

        name = self.context.naming.field_function_name(
            pair.source.type_name, src_field, pair.target.type_name, dst_field
        )
        if self.context.note_missing_override(name):
            self.events.log_missing_override(name, reason)
        return self._mapping(dst_field, OVERRIDE_CALL_TEMPLATE, missing_override=name, func=name)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _nested_pair(src_type: TypeDescriptor, dst_type: TypeDescriptor) -> ConversionPair:
        """Nested pairs are always requested in pointer form."""
        return ConversionPair(
            source=type_ref(src_type).as_pointer(),
            target=type_ref(dst_type).as_pointer(),
        )

    def _pair_function(self, pair: ConversionPair) -> str:
        """Spelling of the function converting ``pair`` at a call site."""
        decl = self.context.overrides.pair_override(pair.source.type_name, pair.target.type_name)
        if decl is None:
            return self.context.function_name(pair)
        return self.context.imports.reference(decl.qualified_name)

    def _allocation_name(self, t: TypeDescriptor) -> str:
        """Class to allocate for a destination of type ``t``."""
        return self.context.imports.reference(underlying(unwrap_pointer(t)).name)

    def _mapping(
        self,
        field_name: str,
        template: str,
        nested: Optional[ConversionPair] = None,
        missing_override: Optional[str] = None,
        **variables: Any,
    ) -> FieldMapping:
        statement = self._render(template, variables)
        return FieldMapping(
            field_name=field_name,
            statement=statement,
            nested=nested,
            missing_override=missing_override,
        )

    def _render(self, template: str, variables: Dict[str, Any]) -> str:
        return self.renderer.render_file(template, variables).rstrip("\n")
