"""Execution plan normalization and analysis."""

from querygovernor.plan.adapters import (
    MySQLPlanAdapter,
    PlanAdapter,
    PostgresPlanAdapter,
    adapter_for,
    detect_adapter,
)
from querygovernor.plan.analyzer import PlanAnalyzer, analyze_plan
from querygovernor.plan.models import (
    Insight,
    InsightStatus,
    PlanAnalysis,
    PlanNode,
    PlanRoot,
    PlanWarning,
    Severity,
)
from querygovernor.plan.path import NodePath
from querygovernor.plan.registry import get_registry, register_rule

__all__ = [
    "Insight",
    "InsightStatus",
    "MySQLPlanAdapter",
    "NodePath",
    "PlanAdapter",
    "PlanAnalysis",
    "PlanAnalyzer",
    "PlanNode",
    "PlanRoot",
    "PlanWarning",
    "PostgresPlanAdapter",
    "Severity",
    "adapter_for",
    "analyze_plan",
    "detect_adapter",
    "get_registry",
    "register_rule",
]
