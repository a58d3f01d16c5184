"""
Rule: Expensive Sort

Detects sort operators that took longer than the configured threshold.
An index matching the ORDER BY lets the engine read rows in order instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from querygovernor.formatting import format_time
from querygovernor.plan.models import PlanWarning, Severity
from querygovernor.plan.registry import register_rule
from querygovernor.plan.rules.base import PlanRule

if TYPE_CHECKING:
    from querygovernor.plan.models import PlanNode
    from querygovernor.plan.path import NodePath


@register_rule
class ExpensiveSort(PlanRule):
    """Flag Sort/Incremental Sort nodes slower than sort_time_threshold_ms."""

    rule_id = "EXPENSIVE_SORT"
    severity = Severity.WARNING
    title = "Expensive Sort"
    description = "Detects sort operations slower than 100ms"

    def check(self, node: "PlanNode", path: "NodePath") -> list[PlanWarning]:
        if "Sort" not in node.node_type:
            return []
        if node.actual_total_time_ms <= self.config.sort_time_threshold_ms:
            return []

        return [
            self.warn(
                node,
                path,
                f"Sort operation took {format_time(node.actual_total_time_ms)}. "
                "Consider adding an index for ordered access.",
            )
        ]
