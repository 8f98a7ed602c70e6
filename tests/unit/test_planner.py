"""
Unit tests for the field mapping planner.

Each test exercises one row of the decision order: missing field,
identical types, list of structs, dict of structs, struct, mismatch.
"""

from convgen.codegen.planner import struct_elements
from convgen.descriptors import FieldDescriptor, alias, is_map, is_slice, map_of, pointer, primitive, slice_of, struct

STR = primitive("str")
INT = primitive("int")


def fields(*specs):
    return tuple(FieldDescriptor(name, t, not name.startswith("_")) for name, t in specs)


def plan(planner, pair, field_name):
    return planner.plan_field(pair, pair.target_struct().get_field(field_name))


class TestDirectCopy:
    """Test fields whose types are identical."""

    def test_identical_primitive_is_copied(self, user_types, make_context, make_planner, make_pair):
        context = make_context()
        pair = make_pair(user_types["UserRequest"], user_types["User"])

        mapping = plan(make_planner(context), pair, "name")

        assert mapping.statement == "dst.name = src.name"
        assert mapping.nested is None
        assert mapping.missing_override is None

    def test_identical_with_field_override_calls_it(self, user_types, make_context, make_planner, make_pair):
        context = make_context(overrides=["convert_user_request__name_to_user__name"])
        pair = make_pair(user_types["UserRequest"], user_types["User"])

        mapping = plan(make_planner(context), pair, "name")

        assert mapping.statement == "convert_user_request__name_to_user__name(src, dst)"
        assert context.imports.import_lines() == [
            "from app.converter.custom import convert_user_request__name_to_user__name"
        ]

    def test_identical_struct_is_copied_by_reference(self, make_context, make_planner, make_pair):
        shared = struct("Money", "app.common", fields(("amount", INT)))
        source = struct("Order", "app.handler", fields(("total", shared)))
        target = struct("Order", "app.domain", fields(("total", shared)))

        mapping = plan(make_planner(make_context()), make_pair(source, target), "total")

        assert mapping.statement == "dst.total = src.total"
        assert mapping.nested is None


class TestOverrideCalls:
    """Test the unconditional override cases."""

    def test_missing_source_field_calls_override(self, make_context, make_planner, make_pair):
        source = struct("UserRequest", "app.handler", fields(("full_name", STR)))
        target = struct("User", "app.domain", fields(("name", STR)))
        context = make_context()

        mapping = plan(make_planner(context), make_pair(source, target), "name")

        assert mapping.statement == "convert_user_request__name_to_user__name(src, dst)"
        assert mapping.missing_override == "convert_user_request__name_to_user__name"
        assert context.missing_overrides == ["convert_user_request__name_to_user__name"]
        assert context.imports.import_lines() == []

    def test_missing_field_uses_existing_override(self, make_context, make_planner, make_pair):
        source = struct("UserRequest", "app.handler", fields(("full_name", STR)))
        target = struct("User", "app.domain", fields(("name", STR)))
        context = make_context(overrides=["convert_user_request__name_to_user__name"])

        mapping = plan(make_planner(context), make_pair(source, target), "name")

        assert mapping.statement == "convert_user_request__name_to_user__name(src, dst)"
        assert mapping.missing_override is None
        assert context.missing_overrides == []

    def test_private_source_field_counts_as_missing(self, make_context, make_planner, make_pair):
        source = struct("Account", "app.store", fields(("_token", STR)))
        target = struct("Session", "app.domain", (FieldDescriptor("_token", STR, is_public=True),))

        mapping = plan(make_planner(make_context()), make_pair(source, target), "_token")

        assert mapping.missing_override == "convert_account___token_to_session___token"

    def test_mismatched_primitives_call_override(self, make_context, make_planner, make_pair):
        source = struct("UserRequest", "app.handler", fields(("age", STR)))
        target = struct("User", "app.domain", fields(("age", INT)))

        mapping = plan(make_planner(make_context()), make_pair(source, target), "age")

        assert mapping.statement == "convert_user_request__age_to_user__age(src, dst)"
        assert mapping.nested is None

    def test_missing_override_logged_once(self, make_context, make_planner, make_pair, convgen_logs):
        source = struct("A", "m", fields(("x", STR)))
        target = struct("B", "m", fields(("x", INT)))
        context = make_context()
        planner = make_planner(context)
        pair = make_pair(source, target)

        plan(planner, pair, "x")
        plan(planner, pair, "x")

        warnings = [r for r in convgen_logs.records if "convert_a__x_to_b__x" in r.getMessage()]
        assert len(warnings) == 1


class TestCollections:
    """Test list and dict fields with struct elements."""

    def test_slice_of_structs(self, user_types, make_context, make_planner, make_pair):
        context = make_context()
        pair = make_pair(user_types["UserRequest"], user_types["User"])

        mapping = plan(make_planner(context), pair, "tags")

        lines = mapping.statement.splitlines()
        assert lines[0] == "if src.tags is None:"
        assert "    dst.tags = []" in lines
        assert "        converted = Tag.__new__(Tag)" in lines
        assert "        convert_tag_request_to_tag(item, converted)" in lines
        assert "item is None" not in mapping.statement
        assert mapping.nested.key == ("app.handler.TagRequest", "app.domain.Tag")
        assert mapping.nested.source.is_pointer and mapping.nested.target.is_pointer

    def test_slice_of_optional_structs_keeps_none(self, make_context, make_planner, make_pair):
        item_src = struct("ItemIn", "m", ())
        item_dst = struct("ItemOut", "m", ())
        source = struct("In", "m", fields(("items", slice_of(pointer(item_src)))))
        target = struct("Out", "m", fields(("items", slice_of(pointer(item_dst)))))

        mapping = plan(make_planner(make_context()), make_pair(source, target), "items")

        assert "if item is None:" in mapping.statement
        assert "dst.items.append(None)" in mapping.statement

    def test_optional_slice_is_matched_as_collection(self, make_context, make_planner, make_pair):
        item_src = struct("ItemIn", "m", ())
        item_dst = struct("ItemOut", "m", ())
        source = struct("In", "m", fields(("items", pointer(slice_of(item_src)))))
        target = struct("Out", "m", fields(("items", slice_of(item_dst))))

        mapping = plan(make_planner(make_context()), make_pair(source, target), "items")

        assert mapping.statement.startswith("if src.items is None:")
        assert mapping.nested.key == ("m.ItemIn", "m.ItemOut")

    def test_map_with_struct_values(self, user_types, make_context, make_planner, make_pair):
        pair = make_pair(user_types["UserRequest"], user_types["User"])

        mapping = plan(make_planner(make_context()), pair, "labels")

        assert mapping.statement.startswith("if src.labels is None:")
        assert "for key, value in src.labels.items():" in mapping.statement
        assert "if value is None:" in mapping.statement
        assert "convert_tag_request_to_tag(value, converted)" in mapping.statement
        assert "dst.labels[key] = converted" in mapping.statement
        assert mapping.nested.key == ("app.handler.TagRequest", "app.domain.Tag")

    def test_slice_of_primitives_with_different_types_calls_override(self, make_context, make_planner, make_pair):
        source = struct("In", "m", fields(("ids", slice_of(STR))))
        target = struct("Out", "m", fields(("ids", slice_of(INT))))

        mapping = plan(make_planner(make_context()), make_pair(source, target), "ids")

        assert mapping.missing_override == "convert_in__ids_to_out__ids"

    def test_collection_override_takes_precedence(self, user_types, make_context, make_planner, make_pair):
        context = make_context(overrides=["convert_user_request__tags_to_user__tags"])
        pair = make_pair(user_types["UserRequest"], user_types["User"])

        mapping = plan(make_planner(context), pair, "tags")

        assert mapping.statement == "convert_user_request__tags_to_user__tags(src, dst)"
        assert mapping.nested is None


class TestStructFields:
    """Test the four pointer-aware struct shapes."""

    def make_pair_for(self, make_pair, src_type, dst_type):
        source = struct("In", "app.a", fields(("child", src_type)))
        target = struct("Out", "app.b", fields(("child", dst_type)))
        return make_pair(source, target)

    def setup_method(self):
        self.child_in = struct("ChildIn", "app.a", ())
        self.child_out = struct("ChildOut", "app.b", ())

    def test_both_optional(self, make_context, make_planner, make_pair):
        pair = self.make_pair_for(make_pair, pointer(self.child_in), pointer(self.child_out))

        mapping = plan(make_planner(make_context()), pair, "child")

        assert mapping.statement.splitlines() == [
            "if src.child is None:",
            "    dst.child = None",
            "else:",
            "    dst.child = ChildOut.__new__(ChildOut)",
            "    convert_child_in_to_child_out(src.child, dst.child)",
        ]

    def test_only_source_optional(self, make_context, make_planner, make_pair):
        pair = self.make_pair_for(make_pair, pointer(self.child_in), self.child_out)

        mapping = plan(make_planner(make_context()), pair, "child")

        assert mapping.statement.splitlines() == [
            "if src.child is not None:",
            "    dst.child = ChildOut.__new__(ChildOut)",
            "    convert_child_in_to_child_out(src.child, dst.child)",
        ]

    def test_only_destination_optional(self, make_context, make_planner, make_pair):
        pair = self.make_pair_for(make_pair, self.child_in, pointer(self.child_out))

        mapping = plan(make_planner(make_context()), pair, "child")

        assert mapping.statement.splitlines() == [
            "dst.child = ChildOut.__new__(ChildOut)",
            "convert_child_in_to_child_out(src.child, dst.child)",
        ]

    def test_neither_optional(self, make_context, make_planner, make_pair):
        pair = self.make_pair_for(make_pair, self.child_in, self.child_out)

        mapping = plan(make_planner(make_context()), pair, "child")

        assert mapping.statement.splitlines() == [
            "dst.child = ChildOut.__new__(ChildOut)",
            "convert_child_in_to_child_out(src.child, dst.child)",
        ]

    def test_nested_pair_is_always_pointer_form(self, make_context, make_planner, make_pair):
        pair = self.make_pair_for(make_pair, self.child_in, self.child_out)

        mapping = plan(make_planner(make_context()), pair, "child")

        assert mapping.nested.source.is_pointer
        assert mapping.nested.target.is_pointer
        assert mapping.nested.key == ("app.a.ChildIn", "app.b.ChildOut")

    def test_destination_class_is_imported(self, make_context, make_planner, make_pair):
        context = make_context()
        pair = self.make_pair_for(make_pair, self.child_in, self.child_out)

        plan(make_planner(context), pair, "child")

        assert context.imports.import_lines() == ["from app.b import ChildOut"]

    def test_whole_pair_override_is_called_at_call_site(self, make_context, make_planner, make_pair):
        context = make_context(overrides=["convert_child_in_to_child_out"])
        pair = self.make_pair_for(make_pair, self.child_in, self.child_out)

        mapping = plan(make_planner(context), pair, "child")

        assert "convert_child_in_to_child_out(src.child, dst.child)" in mapping.statement
        assert "from app.converter.custom import convert_child_in_to_child_out" in context.imports.import_lines()

    def test_field_override_replaces_struct_shape(self, make_context, make_planner, make_pair):
        context = make_context(overrides=["convert_in__child_to_out__child"])
        pair = self.make_pair_for(make_pair, self.child_in, self.child_out)

        mapping = plan(make_planner(context), pair, "child")

        assert mapping.statement == "convert_in__child_to_out__child(src, dst)"
        assert mapping.nested is None


class TestPlanFields:
    """Test whole-function planning."""

    def test_one_mapping_per_public_destination_field_in_order(self, user_types, make_context, make_planner, make_pair):
        pair = make_pair(user_types["UserRequest"], user_types["User"])

        mappings = make_planner(make_context()).plan_fields(pair)

        assert [m.field_name for m in mappings] == ["name", "age", "address", "tags", "labels"]

    def test_private_destination_fields_are_skipped(self, make_context, make_planner, make_pair):
        source = struct("In", "m", fields(("a", STR)))
        target = struct("Out", "m", fields(("a", STR), ("_cache", primitive("dict"))))

        mappings = make_planner(make_context()).plan_fields(make_pair(source, target))

        assert [m.field_name for m in mappings] == ["a"]

    def test_map_with_primitive_values_is_copied_when_identical(self, make_context, make_planner, make_pair):
        source = struct("In", "m", fields(("scores", map_of(STR, INT))))
        target = struct("Out", "m", fields(("scores", map_of(STR, INT))))

        mappings = make_planner(make_context()).plan_fields(make_pair(source, target))

        assert mappings[0].statement == "dst.scores = src.scores"


class TestStructElements:
    """Test matching of collections of structs."""

    ITEM_IN = struct("ItemIn", "app.a", ())
    ITEM_OUT = struct("ItemOut", "app.b", ())

    def test_lists_through_optional(self):
        elements = struct_elements(pointer(slice_of(self.ITEM_IN)), slice_of(self.ITEM_OUT), is_slice)
        assert elements == (self.ITEM_IN, self.ITEM_OUT)

    def test_dict_values(self):
        values = struct_elements(map_of(STR, self.ITEM_IN), map_of(STR, pointer(self.ITEM_OUT)), is_map)
        assert values == (self.ITEM_IN, pointer(self.ITEM_OUT))

    def test_aliased_list(self):
        items = alias("Items", slice_of(self.ITEM_IN), "app.a")
        assert struct_elements(items, slice_of(self.ITEM_OUT), is_slice) == (self.ITEM_IN, self.ITEM_OUT)

    def test_primitive_elements_do_not_match(self):
        assert struct_elements(slice_of(STR), slice_of(INT), is_slice) is None

    def test_list_and_dict_do_not_match(self):
        assert struct_elements(slice_of(self.ITEM_IN), map_of(STR, self.ITEM_OUT), is_slice) is None
        assert struct_elements(slice_of(self.ITEM_IN), map_of(STR, self.ITEM_OUT), is_map) is None
