"""
Unit tests for the override registry and the registration expander.
"""

from convgen.codegen import (
    ConverterNaming,
    FunctionDecl,
    OverrideRegistry,
    RegistrationDirective,
    expand_directive,
    expand_directives,
)
from convgen.descriptors import pointer, primitive, struct


class TestOverrideRegistry:
    """Test override discovery and lookup."""

    def test_keeps_only_convention_candidates(self):
        registry = OverrideRegistry.from_declarations([
            FunctionDecl("convert_user_request__name_to_user__name", "app.custom"),
            FunctionDecl("helper", "app.custom"),
            FunctionDecl("main", "app.cli"),
        ])

        assert len(registry) == 1
        assert "convert_user_request__name_to_user__name" in registry
        assert "helper" not in registry

    def test_field_override_lookup_by_types_and_fields(self):
        registry = OverrideRegistry.from_declarations([
            FunctionDecl("convert_user_request__full_name_to_user__name", "app.custom"),
        ])

        assert registry.field_override("UserRequest", "full_name", "User", "name").module == "app.custom"
        assert registry.field_override("UserRequest", "name", "User", "name") is None

    def test_pair_override_lookup(self):
        registry = OverrideRegistry.from_declarations([
            FunctionDecl("convert_money_to_amount", "app.custom"),
        ])

        assert registry.pair_override("Money", "Amount").name == "convert_money_to_amount"
        assert registry.pair_override("Amount", "Money") is None

    def test_lookup_returns_declaration(self):
        decl = FunctionDecl("convert_a_to_b", "app.custom")
        registry = OverrideRegistry.from_declarations([decl])

        assert registry.lookup("convert_a_to_b") == decl
        assert registry.lookup("convert_b_to_a") is None

    def test_first_module_wins_on_duplicates(self, convgen_logs):
        registry = OverrideRegistry.from_declarations([
            FunctionDecl("convert_a_to_b", "app.first"),
            FunctionDecl("convert_a_to_b", "app.second"),
        ])

        assert registry.lookup("convert_a_to_b").module == "app.first"
        assert "defined in both" in convgen_logs.text

    def test_custom_naming(self):
        registry = OverrideRegistry.from_declarations(
            [FunctionDecl("map_a_to_b", "app.custom"), FunctionDecl("convert_a_to_b", "app.custom")],
            ConverterNaming(prefix="map"),
        )

        assert list(registry) == ["map_a_to_b"]
        assert registry.pair_override("A", "B").name == "map_a_to_b"

    def test_iteration_is_sorted(self):
        registry = OverrideRegistry.from_declarations([
            FunctionDecl("convert_z_to_a", "m"),
            FunctionDecl("convert_a_to_z", "m"),
        ])
        assert list(registry) == ["convert_a_to_z", "convert_z_to_a"]


class TestRegistrationExpander:
    """Test directive expansion into seed pairs."""

    def setup_method(self):
        self.request = struct("UserRequest", "app.handler", ())
        self.user = struct("User", "app.domain", ())
        self.record = struct("UserRecord", "app.store", ())

    def test_forward_directive_yields_one_pair(self):
        pairs = expand_directive(RegistrationDirective(self.request, self.user))

        assert len(pairs) == 1
        assert pairs[0].key == ("app.handler.UserRequest", "app.domain.User")

    def test_bidirectional_yields_forward_then_reverse(self):
        pairs = expand_directive(RegistrationDirective(self.user, self.record, bidirectional=True))

        assert [p.key for p in pairs] == [
            ("app.domain.User", "app.store.UserRecord"),
            ("app.store.UserRecord", "app.domain.User"),
        ]

    def test_order_preserved_and_not_deduplicated(self):
        pairs = expand_directives([
            RegistrationDirective(self.request, self.user),
            RegistrationDirective(self.user, self.record, bidirectional=True),
            RegistrationDirective(self.request, self.user),
        ])

        assert [p.key[0] for p in pairs] == [
            "app.handler.UserRequest",
            "app.domain.User",
            "app.store.UserRecord",
            "app.handler.UserRequest",
        ]

    def test_pointer_form_is_kept_but_not_in_key(self):
        pointer_pair = expand_directive(RegistrationDirective(pointer(self.request), self.user))[0]
        value_pair = expand_directive(RegistrationDirective(self.request, self.user))[0]

        assert pointer_pair.source.is_pointer
        assert not value_pair.source.is_pointer
        assert pointer_pair.key == value_pair.key

    def test_primitive_directive_is_expanded_as_is(self):
        pairs = expand_directive(RegistrationDirective(primitive("int"), self.user))
        assert pairs[0].key == ("int", "app.domain.User")
