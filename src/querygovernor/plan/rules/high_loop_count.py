"""
Rule: High Loop Count

Detects nested loops that executed many times.

Why it matters:
- A nested loop runs its inner side once per outer row
- Thousands of iterations is the plan-level signature of an N+1 pattern,
  and total work grows as outer rows x inner cost

When it's okay:
- The inner side is a cheap unique index lookup and the outer side is small
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from querygovernor.formatting import format_number
from querygovernor.plan.models import PlanWarning, Severity
from querygovernor.plan.registry import register_rule
from querygovernor.plan.rules.base import PlanRule

if TYPE_CHECKING:
    from querygovernor.plan.models import PlanNode
    from querygovernor.plan.path import NodePath


@register_rule
class HighLoopCount(PlanRule):
    """Flag Nested Loop nodes executed more than nested_loop_threshold times."""

    rule_id = "HIGH_LOOP_COUNT"
    severity = Severity.CRITICAL
    title = "High Loop Count"
    description = "Detects nested loops with runaway iteration counts (possible N+1)"

    def check(self, node: "PlanNode", path: "NodePath") -> list[PlanWarning]:
        if "Nested Loop" not in node.node_type:
            return []
        if node.actual_loops <= self.config.nested_loop_threshold:
            return []

        return [
            self.warn(
                node,
                path,
                f"Nested loop executed {format_number(node.actual_loops)} times. "
                "This could indicate an N+1 problem.",
            )
        ]
