"""Engine adapters that normalize native EXPLAIN payloads into PlanRoot."""

from __future__ import annotations

from typing import Any

from querygovernor.engines import Engine
from querygovernor.exceptions import PlanParseError, UnsupportedEngineError
from querygovernor.plan.adapters.base import PlanAdapter
from querygovernor.plan.adapters.mysql import MySQLPlanAdapter
from querygovernor.plan.adapters.postgres import PostgresPlanAdapter

_ADAPTERS: dict[Engine, type[PlanAdapter]] = {
    Engine.POSTGRES: PostgresPlanAdapter,
    Engine.MYSQL: MySQLPlanAdapter,
}


def adapter_for(engine: Engine | str) -> PlanAdapter:
    """
    Get the adapter for an engine.

    Raises:
        UnsupportedEngineError: If the engine has no plan adapter.
    """
    engine = Engine.from_string(engine) if isinstance(engine, str) else engine
    adapter_cls = _ADAPTERS.get(engine)
    if adapter_cls is None:
        raise UnsupportedEngineError(engine.value, "Plan normalization")
    return adapter_cls()


def detect_adapter(raw_plan: Any) -> PlanAdapter:
    """
    Pick an adapter from the payload's shape.

    Raises:
        PlanParseError: If no adapter recognizes the payload.
    """
    for adapter_cls in _ADAPTERS.values():
        adapter = adapter_cls()
        if adapter.can_handle(raw_plan):
            return adapter
    raise PlanParseError(
        "Cannot detect engine from plan format. Pass the engine explicitly."
    )


__all__ = [
    "MySQLPlanAdapter",
    "PlanAdapter",
    "PostgresPlanAdapter",
    "adapter_for",
    "detect_adapter",
]
