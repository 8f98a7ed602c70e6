"""
Registration Expander.

Turns registration directives, in discovery order, into the seed list of
conversion pairs for the worklist.
"""

from __future__ import annotations

from typing import Iterable, List

from .types import ConversionPair, RegistrationDirective, type_ref


def expand_directive(directive: RegistrationDirective) -> List[ConversionPair]:
    """One pair for a forward directive, forward then reverse for a bidirectional one."""
    forward = ConversionPair(
        source=type_ref(directive.source),
        target=type_ref(directive.target),
    )
    if not directive.bidirectional:
        return [forward]
    return [forward, forward.reversed()]


def expand_directives(directives: Iterable[RegistrationDirective]) -> List[ConversionPair]:
    """
    Expand directives into conversion pairs.

    Order is preserved and nothing is deduplicated here; the worklist
    drops repeated pair keys.
    """
    pairs: List[ConversionPair] = []
    for directive in directives:
        pairs.extend(expand_directive(directive))
    return pairs
