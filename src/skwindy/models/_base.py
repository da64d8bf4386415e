"""Base model and value helpers shared by skwindy models.

Signal K values arrive as plain JSON: numbers, nested objects, or nothing at
all while a sensor is still warming up. The helpers here coerce them to
floats and drop anything unusable so that model fields fall back to
``None``.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict


def safe_float(value: Any) -> float | None:
    """Convert *value* to a finite float, or ``None``."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def unwrap_value(value: Any) -> Any:
    """Return the bare value of a Signal K update.

    Accepts both the raw value and the ``{"value": ...}`` wrapper returned by
    full-tree lookups.
    """
    if isinstance(value, dict) and "value" in value:
        return value["value"]
    return value


class WindyBaseModel(BaseModel):
    """Base for skwindy models.

    Frozen, ignores unknown keys and allows population by field name or
    alias.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
