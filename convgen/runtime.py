"""
Registration markers.

User code calls these in a module carrying the ``# convgen: generate``
comment to request converters. The calls do nothing at run time; the
generator finds them by reading the source.

Usage:
    # convgen: generate
    from convgen import register, register_bidirectional

    register(UserRequest, User)
    register_bidirectional(UserRecord, User)
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Registration:
    """Token returned by the registration markers."""
    source: Any
    target: Any
    bidirectional: bool = False


def register(source: Any, target: Any) -> Registration:
    """Request a converter from ``source`` to ``target``."""
    return Registration(source, target)


def register_bidirectional(source: Any, target: Any) -> Registration:
    """Request converters in both directions between ``source`` and ``target``."""
    return Registration(source, target, bidirectional=True)
