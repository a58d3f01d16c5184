"""
Data models for execution plans and their analysis.

PlanNode is the single, engine-agnostic plan shape. Engine adapters
(see adapters/) translate native EXPLAIN payloads into it; the analyzer never
sees engine-specific field names.

All models are frozen: a plan handed to the analyzer is read-only for the
duration of the call, and analysis results are plain values.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """
    Severity levels for plan warnings.

    CRITICAL: Likely pathological (e.g. N+1 style loop counts)
    WARNING: Significant performance issue that should be addressed
    INFO: Worth knowing, e.g. outdated statistics
    """

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Sort key, most severe first."""
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        """Enable sorting by severity (CRITICAL > WARNING > INFO)."""
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank


_SEVERITY_RANK = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


class InsightStatus(str, Enum):
    """Traffic-light status for a plan insight."""

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


def _zero_if_missing(value: Any) -> Any:
    return 0 if value is None else value


class PlanNode(BaseModel):
    """
    One node of a normalized execution plan.

    Children are sub-plans feeding this node (join inputs, scans under a
    sort, ...). Every numeric field defaults to zero so partially populated
    plans (plain EXPLAIN, no BUFFERS) are still analyzable. actual_loops is
    always >= 1; a missing or zero loop count is stored as 1.
    """

    model_config = ConfigDict(frozen=True)

    node_type: str = Field(default="", description="Operator name, e.g. 'Seq Scan'")
    actual_rows: int = Field(default=0, ge=0, description="Rows returned per loop")
    plan_rows: int = Field(default=0, ge=0, description="Planner's row estimate")
    actual_total_time_ms: float = Field(default=0.0, ge=0, description="Actual time in ms")
    total_cost: float = Field(default=0.0, ge=0, description="Planner's total cost")
    shared_hit_blocks: int = Field(default=0, ge=0, description="Buffer cache hits")
    shared_read_blocks: int = Field(default=0, ge=0, description="Blocks read from disk")
    relation_name: str | None = None
    index_name: str | None = None
    filter: str | None = None
    actual_loops: int = Field(default=1, ge=1, description="Times this node was executed")
    children: list["PlanNode"] = Field(default_factory=list)

    @field_validator(
        "actual_rows",
        "plan_rows",
        "actual_total_time_ms",
        "total_cost",
        "shared_hit_blocks",
        "shared_read_blocks",
        mode="before",
    )
    @classmethod
    def _default_numeric(cls, value: Any) -> Any:
        return _zero_if_missing(value)

    @field_validator("actual_loops", mode="before")
    @classmethod
    def _normalize_loops(cls, value: Any) -> Any:
        if value is None or value == 0:
            return 1
        return value

    @field_validator("node_type", mode="before")
    @classmethod
    def _default_node_type(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("children", mode="before")
    @classmethod
    def _default_children(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def row_estimate_ratio(self) -> float | None:
        """Ratio of actual to estimated rows, None when either is zero."""
        if self.plan_rows <= 0 or self.actual_rows <= 0:
            return None
        return self.actual_rows / self.plan_rows


class PlanRoot(BaseModel):
    """
    A normalized plan for one statement plus its statement-level timings.

    plan is None when the engine returned no plan; analyzing such a root
    yields an empty analysis.
    """

    model_config = ConfigDict(frozen=True)

    plan: PlanNode | None = None
    execution_time_ms: float | None = None
    planning_time_ms: float | None = None


class PlanWarning(BaseModel):
    """
    A single diagnostic raised by a plan rule.

    Attributes:
        severity: How serious the issue is.
        title: Short label, e.g. "Sequential Scan".
        description: Human-readable explanation with the numbers involved.
        node_type: Operator the warning is about.
        rule_id: Rule that produced the warning.
        node_path: Location in the plan tree, e.g. "Plan → Plans[0]".
    """

    model_config = ConfigDict(frozen=True)

    severity: Severity
    title: str
    description: str
    node_type: str = ""
    rule_id: str = ""
    node_path: str = ""


class Insight(BaseModel):
    """A headline metric with a status, e.g. ("Cache Hit Rate", "95.0%", GOOD)."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str
    status: InsightStatus


class PlanAnalysis(BaseModel):
    """
    Aggregate statistics and diagnostics for one plan.

    warnings are in the depth-first order in which the nodes were visited;
    ranked_warnings() orders them for display.
    """

    model_config = ConfigDict(frozen=True)

    execution_time_ms: float = 0.0
    planning_time_ms: float = 0.0
    total_time_ms: float = 0.0
    total_rows: int = 0
    total_cost: float = 0.0
    buffer_hits: int = 0
    buffer_reads: int = 0
    node_count: int = 0
    warnings: list[PlanWarning] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "PlanAnalysis":
        """Analysis of a plan with no root node."""
        return cls()

    @property
    def has_critical(self) -> bool:
        return any(w.severity is Severity.CRITICAL for w in self.warnings)

    def ranked_warnings(self) -> list[PlanWarning]:
        """Warnings most severe first, visit order kept within a severity."""
        return sorted(self.warnings, key=lambda w: w.severity.rank)

    def summary(self) -> dict[str, int]:
        """Warning counts by severity."""
        counts = {severity.value: 0 for severity in Severity}
        for warning in self.warnings:
            counts[warning.severity.value] += 1
        counts["total"] = len(self.warnings)
        return counts

    def insight(self, label: str) -> Insight | None:
        """Look up an insight by label."""
        for item in self.insights:
            if item.label == label:
                return item
        return None
