"""Copy the non-zero fields of one record onto another."""

from __future__ import annotations

import math
import uuid
from dataclasses import fields, is_dataclass
from typing import Any, TypeVar

T = TypeVar("T")


def _is_dataclass_instance(value: Any) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _is_zero(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value == 0
    if isinstance(value, float):
        # Negative zero has a sign bit set and so counts as a value.
        return value == 0.0 and math.copysign(1.0, value) > 0
    if isinstance(value, (str, bytes)):
        return len(value) == 0
    if isinstance(value, uuid.UUID):
        return value.int == 0
    if _is_dataclass_instance(value):
        return all(_is_zero(getattr(value, f.name)) for f in fields(value))
    return False


def merge_nonzero(target: T, update: Any) -> T:
    """Set on ``target`` every field of ``update`` that is not a zero value.

    An empty list is a value, not a zero; only ``None`` is. Returns ``target``.
    """
    if not _is_dataclass_instance(update):
        raise TypeError("update must be a dataclass instance")
    if not _is_dataclass_instance(target):
        raise TypeError("target must be a dataclass instance")
    target_names = {f.name for f in fields(target)}
    for f in fields(update):
        value = getattr(update, f.name)
        if _is_zero(value):
            continue
        if f.name not in target_names:
            raise AttributeError(
                f"{type(target).__name__} has no field {f.name!r}"
            )
        setattr(target, f.name, value)
    return target