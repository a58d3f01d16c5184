"""
QueryGovernor - orchestration layer for one user action.

Ties the pieces together the way a workbench endpoint uses them:
classify and bound the statement, run the page, estimate the full result
size alongside it, and explain/analyze on request. Delivery mechanisms (CLI,
HTTP handlers) should use this service rather than composing the parts
themselves.

Usage:
    from querygovernor.governor import QueryGovernor
    from querygovernor.runners import PsycopgRunner

    runner = await PsycopgRunner.create(dsn)
    governor = QueryGovernor(runner, "postgres")

    page, row_estimate = await governor.execute_with_estimate(
        "SELECT * FROM orders", PageRequest(limit=100),
    )
    analysis = await governor.explain("SELECT * FROM orders WHERE id = 1")
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from querygovernor.config import DEFAULT_CONFIG, GovernorConfig
from querygovernor.engines import Engine
from querygovernor.estimator import RowEstimate, estimate
from querygovernor.exceptions import UnsupportedEngineError, UnsupportedStatementError
from querygovernor.plan.adapters import adapter_for
from querygovernor.plan.analyzer import PlanAnalyzer
from querygovernor.plan.models import PlanAnalysis
from querygovernor.sql.classifier import StatementDescriptor, classify
from querygovernor.sql.limiter import LimitedQueryResult
from querygovernor.sql.masking import strip_terminator
from querygovernor.sql.pagination import PageRequest, Pagination, paginate_sql

if TYPE_CHECKING:
    from querygovernor.runners import QueryRunner

logger = logging.getLogger(__name__)

_EXPLAIN_ANALYZE_PREFIX: dict[Engine, str] = {
    Engine.POSTGRES: "EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON)",
    Engine.MYSQL: "EXPLAIN FORMAT=JSON",
}


class PreparedQuery(BaseModel):
    """A statement ready to run: what it is and the bounded SQL."""

    model_config = ConfigDict(frozen=True)

    descriptor: StatementDescriptor
    limited: LimitedQueryResult
    effective_limit: int


class QueryPage(BaseModel):
    """One page of rows plus its pagination metadata."""

    model_config = ConfigDict(frozen=True)

    rows: list[dict[str, Any]]
    pagination: Pagination
    sql: str


class QueryGovernor:
    """
    Governs statements sent to one database.

    Holds no mutable state besides its collaborators, so a single instance
    can serve concurrent requests as long as the runner can.
    """

    def __init__(
        self,
        runner: "QueryRunner",
        engine: Engine | str,
        config: GovernorConfig | None = None,
    ) -> None:
        self.runner = runner
        self.engine = engine if isinstance(engine, Engine) else Engine.from_string(engine)
        self.config = config or DEFAULT_CONFIG
        self._analyzer = PlanAnalyzer(config=self.config)

    def prepare(self, sql: str, page: PageRequest | None = None) -> PreparedQuery:
        """Classify sql and bound it for the requested page."""
        descriptor = classify(sql)
        limited, effective_limit = paginate_sql(sql, page, self.config)
        return PreparedQuery(
            descriptor=descriptor,
            limited=limited,
            effective_limit=effective_limit,
        )

    async def execute(self, sql: str, page: PageRequest | None = None) -> QueryPage:
        """
        Run one page of sql.

        Database errors propagate; the primary query's failure is the
        caller's to report.
        """
        page = page or PageRequest()
        prepared = self.prepare(sql, page)
        limited = prepared.limited
        if limited.advisory:
            logger.info("%s", limited.advisory)

        rows = await self.runner.fetch(limited.sql)

        offset = limited.applied_offset if limited.was_limited else page.offset
        pagination = Pagination.from_rows(
            row_count=len(rows),
            effective_limit=prepared.effective_limit,
            offset=offset,
            was_limited=limited.was_limited,
        )
        logger.debug(
            "Returned %d rows (limit=%d, has_more=%s)",
            len(rows), prepared.effective_limit, pagination.has_more,
        )
        return QueryPage(rows=rows, pagination=pagination, sql=limited.sql)

    async def estimate(self, sql: str) -> RowEstimate:
        """Planner row estimate for the unbounded statement. Never raises."""
        return await estimate(sql, self.engine, self.runner, self.config)

    async def execute_with_estimate(
        self,
        sql: str,
        page: PageRequest | None = None,
    ) -> tuple[QueryPage, RowEstimate]:
        """
        Run a page and the row estimate concurrently.

        The estimate never fails the page; a page failure still propagates.
        """
        query_page, row_estimate = await asyncio.gather(
            self.execute(sql, page),
            self.estimate(sql),
        )
        return query_page, row_estimate

    async def explain(self, sql: str) -> PlanAnalysis:
        """
        Run EXPLAIN ANALYZE for sql and analyze the resulting plan.

        The statement is actually executed by the database, so only SELECT
        statements are accepted.

        Raises:
            UnsupportedStatementError: If sql is not a SELECT.
            UnsupportedEngineError: If the engine cannot produce a plan.
            PlanParseError: If the plan output cannot be normalized.
        """
        descriptor = classify(sql)
        if not descriptor.is_select:
            raise UnsupportedStatementError(descriptor.kind.value, "EXPLAIN ANALYZE")

        prefix = _EXPLAIN_ANALYZE_PREFIX.get(self.engine)
        if prefix is None:
            raise UnsupportedEngineError(self.engine.value, "EXPLAIN ANALYZE")
        adapter = adapter_for(self.engine)

        rows = await self.runner.fetch(f"{prefix} {strip_terminator(sql)}")
        root = adapter.to_root(rows)
        analysis = self._analyzer.analyze(root)
        logger.debug(
            "Explained statement on %s: %d nodes, %d warnings",
            self.engine.value, analysis.node_count, len(analysis.warnings),
        )
        return analysis
