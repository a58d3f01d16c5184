"""
Base adapter interface for engine-specific plan normalization.

Every engine returns plans with its own field names and nesting. An adapter
owns that knowledge and produces a PlanRoot; the analyzer only ever sees the
normalized PlanNode shape.
"""

from __future__ import annotations

import json
import math
from abc import ABC, abstractmethod
from typing import Any

from querygovernor.exceptions import PlanParseError
from querygovernor.plan.models import PlanRoot


class PlanAdapter(ABC):
    """
    Abstract base for engine adapters.

    Subclasses set ``engine`` and implement can_handle() and to_root().
    """

    engine: str = "unknown"

    @abstractmethod
    def to_root(self, raw_plan: Any) -> PlanRoot:
        """
        Normalize a raw engine plan.

        Raises:
            PlanParseError: If the payload is not a plan this adapter understands.
        """

    @abstractmethod
    def can_handle(self, raw_plan: Any) -> bool:
        """Return True if this adapter recognizes the payload's shape."""

    def _load(self, raw_plan: Any) -> Any:
        """Decode JSON text and bytes; pass parsed payloads through."""
        if isinstance(raw_plan, bytes):
            raw_plan = raw_plan.decode("utf-8")
        if isinstance(raw_plan, str):
            try:
                return json.loads(raw_plan)
            except json.JSONDecodeError as e:
                raise PlanParseError(f"Plan is not valid JSON: {e}", engine=self.engine) from e
        return raw_plan


def as_count(value: Any) -> int:
    """
    Coerce a plan counter to a non-negative int.

    Engines report counters as ints, floats (per-loop averages) or numeric
    strings; anything unusable counts as zero.
    """
    number = as_float(value)
    return int(round(number))


def as_float(value: Any) -> float:
    """Coerce a plan measurement to a non-negative, finite float."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def as_text(value: Any) -> str | None:
    """Optional string fields; empty strings become None."""
    if value is None:
        return None
    text = str(value)
    return text or None
