"""Strict lookups for the closed enumerations used across the simulation."""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar

E = TypeVar("E", bound=Enum)


class UnknownKeyError(KeyError):
    """Raised when a string does not name a member of a closed enumeration."""

    def __init__(self, enum_name: str, key: object) -> None:
        super().__init__(f"unknown {enum_name} key: {key!r}")
        self.enum_name = enum_name
        self.key = key


def lookup(enum_cls: Type[E], key: object) -> E:
    """Resolve *key* (member, value or name) into *enum_cls*, or raise."""
    if isinstance(key, enum_cls):
        return key
    if isinstance(key, str):
        for member in enum_cls:
            if member.value == key or member.name == key or member.name.lower() == key.lower():
                return member
        # camelCase keys from exported data, e.g. "leftArm" or "basicMedicalCare"
        snake = "".join("_" + c.lower() if c.isupper() else c for c in key).lstrip("_")
        for member in enum_cls:
            if member.value == snake:
                return member
    raise UnknownKeyError(enum_cls.__name__, key)
