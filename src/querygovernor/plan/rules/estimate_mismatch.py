"""
Rule: Row Estimate Mismatch

Detects nodes where the planner's row estimate is off by an order of
magnitude in either direction.

Why it matters:
- Join order and join algorithm are chosen from row estimates
- A 10x misestimate usually means the table statistics are stale

Fix: run ANALYZE on the tables involved.
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
class EstimateMismatch(PlanRule):
    """Flag nodes whose actual/planned row ratio exceeds estimate_mismatch_ratio."""

    rule_id = "ESTIMATE_MISMATCH"
    severity = Severity.INFO
    title = "Estimate Mismatch"
    description = "Detects planner row estimates that are off by 10x or more"

    def check(self, node: "PlanNode", path: "NodePath") -> list[PlanWarning]:
        ratio = node.row_estimate_ratio
        if ratio is None:
            return []

        threshold = self.config.estimate_mismatch_ratio
        if ratio <= threshold and ratio >= 1 / threshold:
            return []

        return [
            self.warn(
                node,
                path,
                f"Expected {format_number(node.plan_rows)} rows, "
                f"got {format_number(node.actual_rows)}. Statistics may be outdated.",
            )
        ]
