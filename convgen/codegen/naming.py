"""
Naming Utilities for Generated Converters.

This module owns the naming convention that ties generated functions,
user overrides and call sites together. Every name is derived from the
type and field names alone, so the same inputs always give the same
identifiers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..descriptors import QualifiedName

ACRONYM_BOUNDARY_PATTERN = r'([A-Z]+)([A-Z][a-z])'
CAMEL_CASE_PATTERN = r'([a-z0-9])([A-Z])'
SNAKE_CASE_REPLACEMENT = r'\1_\2'

DEFAULT_FUNCTION_PREFIX = "convert"

# Separates a type name from a field name in field-pair override names.
FIELD_SEPARATOR = "__"


def camel_to_snake_case(name: str) -> str:
    """Convert CamelCase (including acronyms such as ``UserAPI``) to snake_case."""
    name = re.sub(ACRONYM_BOUNDARY_PATTERN, SNAKE_CASE_REPLACEMENT, name)
    return re.sub(CAMEL_CASE_PATTERN, SNAKE_CASE_REPLACEMENT, name).lower()


def sanitize_identifier(name: str) -> str:
    """Sanitize a string to be a valid identifier."""
    sanitized = re.sub(r'[^a-zA-Z0-9_]', '_', name)

    if sanitized and sanitized[0].isdigit():
        sanitized = f"_{sanitized}"

    if not sanitized:
        sanitized = "unnamed"

    return sanitized


@dataclass(frozen=True)
class ConverterNaming:
    """
    Naming convention for conversion functions.

    ``prefix`` starts every name; it is also how override candidates are
    recognised when scanning a package.
    """

    prefix: str = DEFAULT_FUNCTION_PREFIX

    def type_token(self, type_name: str) -> str:
        return sanitize_identifier(camel_to_snake_case(type_name))

    def pair_function_name(self, from_type: str, to_type: str) -> str:
        """``UserRequest, User`` -> ``convert_user_request_to_user``."""
        return f"{self.prefix}_{self.type_token(from_type)}_to_{self.type_token(to_type)}"

    def field_function_name(self, from_type: str, from_field: str, to_type: str, to_field: str) -> str:
        """``UserRequest.name, User.name`` -> ``convert_user_request__name_to_user__name``."""
        return (
            f"{self.prefix}_{self.type_token(from_type)}{FIELD_SEPARATOR}{from_field}"
            f"_to_{self.type_token(to_type)}{FIELD_SEPARATOR}{to_field}"
        )

    def qualified_pair_function_name(self, from_name: QualifiedName, to_name: QualifiedName) -> str:
        """``users.api.User, users.db.User`` -> ``convert_users_api_user_to_users_db_user``."""
        return f"{self.prefix}_{self._qualified_token(from_name)}_to_{self._qualified_token(to_name)}"

    def _qualified_token(self, name: QualifiedName) -> str:
        if not name.module:
            return self.type_token(name.name)
        return f"{sanitize_identifier(name.module)}_{self.type_token(name.name)}"

    def is_candidate(self, function_name: str) -> bool:
        """Whether a user function could be an override under this convention."""
        return function_name.startswith(f"{self.prefix}_")


def import_alias(name: QualifiedName) -> str:
    """Alias used when a local name is already taken by another module."""
    return f"{sanitize_identifier(name.module)}_{name.name}"
