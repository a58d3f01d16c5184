"""
Plan analyzer - walks a normalized plan tree and produces diagnostics.

One depth-first pass accumulates the aggregate statistics (rows, buffers,
node count) and offers every node to every enabled rule. After the pass three
fixed insights are built: cache hit rate, operation count, and execution
time.

The analyzer is stateless and re-entrant: an instance holds only its
configuration and rule instances, and analyze() keeps all per-call state in
locals. Safe to share between concurrent requests.

Example:
    from querygovernor.plan import PlanAnalyzer, PostgresPlanAdapter

    root = PostgresPlanAdapter().to_root(explain_json)
    analysis = PlanAnalyzer().analyze(root)

    for warning in analysis.warnings:
        print(f"{warning.severity}: {warning.title}")
"""

from __future__ import annotations

import logging

from querygovernor.config import DEFAULT_CONFIG, GovernorConfig
from querygovernor.formatting import format_time
from querygovernor.plan.models import (
    Insight,
    InsightStatus,
    PlanAnalysis,
    PlanRoot,
    PlanWarning,
)
from querygovernor.plan.path import traverse_with_path
from querygovernor.plan.registry import get_registry
from querygovernor.plan.rules.base import PlanRule

logger = logging.getLogger(__name__)

CACHE_HIT_LABEL = "Cache Hit Rate"
OPERATIONS_LABEL = "Operations"
EXECUTION_LABEL = "Execution"


class PlanAnalyzer:
    """
    Rule-based analyzer for normalized execution plans.

    Args:
        config: Thresholds (defaults to DEFAULT_CONFIG)
        rules: Explicit rule instances; if None, every registered rule that
            the config does not disable
        include_rules: Only run these rule IDs
        exclude_rules: Skip these rule IDs
    """

    def __init__(
        self,
        config: GovernorConfig | None = None,
        rules: list[PlanRule] | None = None,
        include_rules: set[str] | None = None,
        exclude_rules: set[str] | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG

        if rules is not None:
            self.rules = rules
        else:
            rule_classes = get_registry().filter(include=include_rules, exclude=exclude_rules)
            self.rules = [cls(self.config) for cls in rule_classes]

        self.rules = [r for r in self.rules if self.config.is_rule_enabled(r.rule_id)]

    def analyze(self, root: PlanRoot | None) -> PlanAnalysis:
        """
        Analyze a plan.

        A missing root, or a root without a plan node, yields an empty
        analysis with no warnings and no insights. Missing numeric fields
        count as zero; the analyzer never fails on a partial plan.
        """
        if root is None or root.plan is None:
            return PlanAnalysis.empty()

        plan = root.plan
        total_rows = 0
        buffer_hits = 0
        buffer_reads = 0
        node_count = 0
        warnings: list[PlanWarning] = []

        for path, node in traverse_with_path(plan):
            node_count += 1
            total_rows += node.actual_rows
            buffer_hits += node.shared_hit_blocks
            buffer_reads += node.shared_read_blocks

            for rule in self.rules:
                try:
                    warnings.extend(rule.check(node, path))
                except Exception as e:
                    logger.warning("Rule %s failed at %s: %s", rule.rule_id, path, e)

        execution_time = root.execution_time_ms or plan.actual_total_time_ms or 0.0
        planning_time = root.planning_time_ms or 0.0

        insights = [
            self._cache_hit_insight(buffer_hits, buffer_reads),
            self._operations_insight(node_count),
            self._execution_insight(execution_time),
        ]

        logger.debug(
            "Analyzed plan: %d nodes, %d warnings, %.2fms execution",
            node_count,
            len(warnings),
            execution_time,
        )

        return PlanAnalysis(
            execution_time_ms=execution_time,
            planning_time_ms=planning_time,
            total_time_ms=execution_time + planning_time,
            total_rows=total_rows,
            total_cost=plan.total_cost,
            buffer_hits=buffer_hits,
            buffer_reads=buffer_reads,
            node_count=node_count,
            warnings=warnings,
            insights=insights,
        )

    def _cache_hit_insight(self, hits: int, reads: int) -> Insight:
        total = hits + reads
        value = f"{hits / total * 100:.1f}%" if total > 0 else "N/A"
        ratio = hits / (total or 1)
        status = (
            InsightStatus.GOOD
            if ratio >= self.config.cache_hit_good_ratio
            else InsightStatus.WARNING
        )
        return Insight(label=CACHE_HIT_LABEL, value=value, status=status)

    def _operations_insight(self, node_count: int) -> Insight:
        status = (
            InsightStatus.WARNING
            if node_count > self.config.node_count_warning
            else InsightStatus.GOOD
        )
        return Insight(label=OPERATIONS_LABEL, value=str(node_count), status=status)

    def _execution_insight(self, execution_time_ms: float) -> Insight:
        if execution_time_ms > self.config.execution_critical_ms:
            status = InsightStatus.CRITICAL
        elif execution_time_ms > self.config.execution_warning_ms:
            status = InsightStatus.WARNING
        else:
            status = InsightStatus.GOOD
        return Insight(label=EXECUTION_LABEL, value=format_time(execution_time_ms), status=status)


def analyze_plan(root: PlanRoot | None, config: GovernorConfig | None = None) -> PlanAnalysis:
    """Analyze a plan with the built-in rules."""
    return PlanAnalyzer(config=config).analyze(root)
