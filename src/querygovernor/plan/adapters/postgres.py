"""
PostgreSQL adapter for ``EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON)`` output.

Accepted payloads:
- The JSON document itself: ``[{"Plan": {...}, "Execution Time": ...}]``
- A single plan object: ``{"Plan": {...}}``
- A result row as returned by a driver: ``{"QUERY PLAN": [...]}``
- Any of the above as JSON text

PostgreSQL uses Title Case keys ("Node Type", "Actual Rows"); they are
mapped onto PlanNode here. Fields missing from plain EXPLAIN (no ANALYZE or
no BUFFERS) default to zero.
"""

from __future__ import annotations

from typing import Any

from querygovernor.exceptions import PlanParseError
from querygovernor.plan.adapters.base import PlanAdapter, as_count, as_float, as_text
from querygovernor.plan.models import PlanNode, PlanRoot

# Deeper plans are treated as malformed input rather than recursed into.
MAX_PLAN_DEPTH = 200


class PostgresPlanAdapter(PlanAdapter):
    """Normalize PostgreSQL JSON plans."""

    engine = "postgres"

    def can_handle(self, raw_plan: Any) -> bool:
        try:
            document = self._unwrap(self._load(raw_plan))
        except PlanParseError:
            return False
        return isinstance(document, dict) and "Plan" in document

    def to_root(self, raw_plan: Any) -> PlanRoot:
        document = self._unwrap(self._load(raw_plan))

        if not isinstance(document, dict):
            raise PlanParseError(
                f"Expected a plan object, got {type(document).__name__}",
                engine=self.engine,
            )

        plan_data = document.get("Plan")
        if plan_data is None:
            return PlanRoot(
                execution_time_ms=self._optional_ms(document.get("Execution Time")),
                planning_time_ms=self._optional_ms(document.get("Planning Time")),
            )
        if not isinstance(plan_data, dict):
            raise PlanParseError("'Plan' must be an object", engine=self.engine)

        return PlanRoot(
            plan=self._node(plan_data, depth=0),
            execution_time_ms=self._optional_ms(document.get("Execution Time")),
            planning_time_ms=self._optional_ms(document.get("Planning Time")),
        )

    def _unwrap(self, payload: Any) -> Any:
        """Peel driver rows and the top-level list down to the plan object."""
        if isinstance(payload, dict) and "QUERY PLAN" in payload:
            payload = self._load(payload["QUERY PLAN"])
        if isinstance(payload, list):
            if not payload:
                return {}
            payload = payload[0]
            if isinstance(payload, dict) and "QUERY PLAN" in payload:
                return self._unwrap(payload)
        return payload

    def _node(self, data: dict[str, Any], depth: int) -> PlanNode:
        if depth > MAX_PLAN_DEPTH:
            raise PlanParseError(
                f"Plan is nested deeper than {MAX_PLAN_DEPTH} levels", engine=self.engine
            )

        children = [
            self._node(child, depth + 1)
            for child in data.get("Plans") or []
            if isinstance(child, dict)
        ]

        return PlanNode(
            node_type=as_text(data.get("Node Type")) or "",
            actual_rows=as_count(data.get("Actual Rows")),
            plan_rows=as_count(data.get("Plan Rows")),
            actual_total_time_ms=as_float(data.get("Actual Total Time")),
            total_cost=as_float(data.get("Total Cost")),
            shared_hit_blocks=as_count(data.get("Shared Hit Blocks")),
            shared_read_blocks=as_count(data.get("Shared Read Blocks")),
            relation_name=as_text(data.get("Relation Name")),
            index_name=as_text(data.get("Index Name")),
            filter=as_text(data.get("Filter")),
            actual_loops=as_count(data.get("Actual Loops")),
            children=children,
        )

    @staticmethod
    def _optional_ms(value: Any) -> float | None:
        if value is None:
            return None
        return as_float(value)
