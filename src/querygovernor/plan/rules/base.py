"""
Base class for plan rules.

A rule inspects one plan node at a time and returns the warnings it wants
to raise for that node. Rules are independent of each other: every rule is
offered every node, and several rules may fire on the same node.

Rules should be:
- Deterministic: Same node always produces the same warnings
- Cheap: O(1) per node, the analyzer handles traversal
- Focused: One rule, one concern
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from querygovernor.config import DEFAULT_CONFIG, GovernorConfig
from querygovernor.plan.models import PlanWarning, Severity

if TYPE_CHECKING:
    from querygovernor.plan.models import PlanNode
    from querygovernor.plan.path import NodePath


class PlanRule(ABC):
    """
    Abstract base class for plan rules.

    Attributes:
        rule_id: Unique identifier, UPPER_SNAKE_CASE (e.g. "SEQ_SCAN_LARGE_TABLE")
        version: Bump when detection logic changes
        severity: Severity of the warnings this rule raises
        title: Warning title shown to the user
        description: One-line description for documentation and `rules` output

    Example:
        @register_rule
        class ExpensiveSort(PlanRule):
            rule_id = "EXPENSIVE_SORT"
            severity = Severity.WARNING
            title = "Expensive Sort"

            def check(self, node, path):
                if "Sort" in node.node_type and node.actual_total_time_ms > 100:
                    return [self.warn(node, path, "Sort operation took ...")]
                return []
    """

    rule_id: str
    version: str = "1.0.0"
    severity: Severity
    title: str
    description: str = ""

    def __init__(self, config: GovernorConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    @abstractmethod
    def check(self, node: "PlanNode", path: "NodePath") -> list[PlanWarning]:
        """
        Inspect a single node.

        Args:
            node: The node to inspect (children are visited separately)
            path: Location of the node in the plan tree

        Returns:
            Warnings for this node, or an empty list.
        """

    def warn(self, node: "PlanNode", path: "NodePath", description: str) -> PlanWarning:
        """Build a warning from this rule for node."""
        return PlanWarning(
            severity=self.severity,
            title=self.title,
            description=description,
            node_type=node.node_type,
            rule_id=self.rule_id,
            node_path=str(path),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rule_id={self.rule_id!r}, version={self.version!r})"
