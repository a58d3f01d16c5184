"""
Rule: Sequential Scan on Large Table

Detects full table scans that return many rows.

Why it matters:
- A sequential scan reads every page of the table
- Cost grows linearly with table size, so a query that was fast on a dev
  database can fall over in production

When it's okay:
- Small tables (fewer rows than the threshold)
- Queries that genuinely need most of the table (reports, exports)
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
class SeqScanLargeTable(PlanRule):
    """Flag sequential scans returning more rows than seq_scan_row_threshold."""

    rule_id = "SEQ_SCAN_LARGE_TABLE"
    severity = Severity.WARNING
    title = "Sequential Scan"
    description = "Detects full table scans on large relations"

    def check(self, node: "PlanNode", path: "NodePath") -> list[PlanWarning]:
        if "Seq Scan" not in node.node_type:
            return []
        if node.actual_rows <= self.config.seq_scan_row_threshold:
            return []

        relation = node.relation_name or "table"
        return [
            self.warn(
                node,
                path,
                f'Full table scan on "{relation}" ({format_number(node.actual_rows)} rows). '
                "Consider adding an index.",
            )
        ]
