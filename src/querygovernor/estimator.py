"""
Cardinality estimator.

Asks the engine's planner how many rows a SELECT will return, without
running it, so the workbench can warn before a huge result is fetched.

Each engine reports estimates differently, so the engine-specific part is a
small strategy: the EXPLAIN statement to send and how to read a row count
out of what comes back. Engines without a reliable estimate (SQLite, others)
get no strategy and an estimate of 0.

Estimation is advisory. Any failure (permission denied, timeout, SQL the
planner rejects) is converted into a zero estimate with a diagnostic string;
it never prevents the primary query from running. Estimates are computed
fresh on every call because table statistics change between calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from querygovernor.config import DEFAULT_CONFIG, GovernorConfig
from querygovernor.engines import Engine
from querygovernor.exceptions import EstimationError
from querygovernor.formatting import format_number
from querygovernor.sql.classifier import classify
from querygovernor.sql.masking import strip_terminator

if TYPE_CHECKING:
    from querygovernor.runners import QueryRunner

logger = logging.getLogger(__name__)

ESTIMATE_FAILED = "Could not estimate row count"
ESTIMATE_TIMED_OUT = "Estimate timed out"

# PostgreSQL query_canceled (statement_timeout) and MySQL ER_QUERY_TIMEOUT
_TIMEOUT_SQLSTATES = {"57014"}
_TIMEOUT_ERRNOS = {3024}


class RowEstimate(BaseModel):
    """
    Predicted result size of a statement.

    Attributes:
        estimated_rows: Planner's row estimate (0 when unknown).
        is_large_result: estimated_rows exceeds the large-result threshold.
        warning: User-facing advice when the result is large.
        error: Why no estimate is available, when estimation failed.
    """

    model_config = ConfigDict(frozen=True)

    estimated_rows: int = Field(default=0, ge=0)
    is_large_result: bool = False
    warning: str | None = None
    error: str | None = None


def large_result_warning(estimated_rows: int) -> str:
    return (
        f"This query may return ~{format_number(estimated_rows)} rows. "
        "Consider adding filters or using LIMIT."
    )


def build_estimate(estimated_rows: int, config: GovernorConfig | None = None) -> RowEstimate:
    """Apply the large-result threshold to a raw row count."""
    config = config or DEFAULT_CONFIG
    is_large = estimated_rows > config.large_result_threshold
    return RowEstimate(
        estimated_rows=estimated_rows,
        is_large_result=is_large,
        warning=large_result_warning(estimated_rows) if is_large else None,
    )


class EstimateStrategy(ABC):
    """How one engine produces and reports a row estimate."""

    engine: Engine

    @abstractmethod
    def explain_sql(self, sql: str) -> str:
        """The plan-only EXPLAIN statement for sql."""

    @abstractmethod
    def parse(self, rows: list[dict[str, Any]]) -> int:
        """
        Extract a row count from the EXPLAIN result.

        Raises:
            EstimationError: If the result has an unexpected shape.
        """


class PostgresEstimateStrategy(EstimateStrategy):
    """Top-level "Plan Rows" of ``EXPLAIN (FORMAT JSON)``."""

    engine = Engine.POSTGRES

    def explain_sql(self, sql: str) -> str:
        return f"EXPLAIN (FORMAT JSON) {strip_terminator(sql)}"

    def parse(self, rows: list[dict[str, Any]]) -> int:
        if not rows:
            return 0

        document = rows[0].get("QUERY PLAN")
        if isinstance(document, (str, bytes)):
            try:
                document = json.loads(document)
            except json.JSONDecodeError as e:
                raise EstimationError(f"EXPLAIN output is not JSON: {e}", engine="postgres") from e

        if isinstance(document, list):
            document = document[0] if document else None
        if not isinstance(document, dict):
            return 0

        plan = document.get("Plan")
        if not isinstance(plan, dict):
            return 0
        return _to_count(plan.get("Plan Rows"))


class MySQLEstimateStrategy(EstimateStrategy):
    """
    Sum of the ``rows`` column of a tabular ``EXPLAIN``.

    MySQL reports rows examined per step; summing across the steps of a
    join approximates the result size.
    """

    engine = Engine.MYSQL

    def explain_sql(self, sql: str) -> str:
        return f"EXPLAIN {strip_terminator(sql)}"

    def parse(self, rows: list[dict[str, Any]]) -> int:
        return sum(_to_count(row.get("rows")) for row in rows)


ESTIMATE_STRATEGIES: dict[Engine, EstimateStrategy] = {
    Engine.POSTGRES: PostgresEstimateStrategy(),
    Engine.MYSQL: MySQLEstimateStrategy(),
}


def _to_count(value: Any) -> int:
    """parseInt-style: numeric values and numeric strings count, the rest is 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        count = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def _is_timeout(error: BaseException) -> bool:
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return True
    if getattr(error, "sqlstate", None) in _TIMEOUT_SQLSTATES:
        return True
    return getattr(error, "errno", None) in _TIMEOUT_ERRNOS


async def estimate(
    sql: str,
    engine: Engine | str,
    runner: "QueryRunner",
    config: GovernorConfig | None = None,
) -> RowEstimate:
    """
    Estimate how many rows sql will return.

    Non-SELECT statements and engines without an estimate strategy return
    a zero estimate without touching the database.

    Never raises for database errors: failures come back as a zero estimate
    with ``error`` set.
    """
    if isinstance(engine, str) and not isinstance(engine, Engine):
        engine = Engine.from_string(engine)

    if not classify(sql).is_select:
        return RowEstimate()

    strategy = ESTIMATE_STRATEGIES.get(engine)
    if strategy is None:
        return RowEstimate()

    try:
        rows = await runner.fetch(strategy.explain_sql(sql))
        estimated_rows = strategy.parse(rows)
    except Exception as e:
        if _is_timeout(e):
            logger.warning("Row estimate timed out on %s: %s", engine.value, e)
            return RowEstimate(error=ESTIMATE_TIMED_OUT)
        logger.warning("Row estimate failed on %s: %s", engine.value, e)
        return RowEstimate(error=ESTIMATE_FAILED)

    result = build_estimate(estimated_rows, config)
    logger.debug("Estimated %d rows on %s", result.estimated_rows, engine.value)
    return result
