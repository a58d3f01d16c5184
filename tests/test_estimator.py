"""
Tests for the cardinality estimator.

The estimator is async; tests drive it with asyncio.run() and a fake runner
that records the statements it receives.
"""

import asyncio
import json
import logging

import pytest

from querygovernor.config import GovernorConfig
from querygovernor.engines import Engine
from querygovernor.estimator import (
    ESTIMATE_FAILED,
    ESTIMATE_TIMED_OUT,
    RowEstimate,
    build_estimate,
    estimate,
)


class FakeRunner:
    """QueryRunner stand-in returning canned rows or raising."""

    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.calls = []

    async def fetch(self, sql):
        self.calls.append(sql)
        if self.error is not None:
            raise self.error
        return self.rows


class QueryCanceled(Exception):
    """Mimics psycopg.errors.QueryCanceled."""
    sqlstate = "57014"


def pg_rows(plan_rows):
    return [{"QUERY PLAN": [{"Plan": {"Node Type": "Seq Scan", "Plan Rows": plan_rows}}]}]


def run(sql, engine, runner, config=None):
    return asyncio.run(estimate(sql, engine, runner, config))


class TestPostgresEstimate:
    """Tests for PostgreSQL estimates."""

    def test_large_result(self):
        runner = FakeRunner(pg_rows(25_000))
        result = run("SELECT * FROM orders;", Engine.POSTGRES, runner)

        assert runner.calls == ["EXPLAIN (FORMAT JSON) SELECT * FROM orders"]
        assert result.estimated_rows == 25_000
        assert result.is_large_result
        assert result.warning == (
            "This query may return ~25.0K rows. Consider adding filters or using LIMIT."
        )
        assert result.error is None

    def test_small_result(self):
        result = run("SELECT * FROM orders WHERE id = 1", Engine.POSTGRES, FakeRunner(pg_rows(1)))

        assert result == RowEstimate(estimated_rows=1)

    def test_threshold_is_exclusive(self):
        result = run("SELECT * FROM orders", Engine.POSTGRES, FakeRunner(pg_rows(10_000)))

        assert result.estimated_rows == 10_000
        assert not result.is_large_result
        assert result.warning is None

    def test_plan_as_json_text(self):
        """Some drivers hand back the plan cell as a JSON string."""
        rows = [{"QUERY PLAN": json.dumps([{"Plan": {"Plan Rows": 2_500_000}}])}]
        result = run("SELECT * FROM events", Engine.POSTGRES, FakeRunner(rows))

        assert result.estimated_rows == 2_500_000
        assert "~2.5M rows" in result.warning

    def test_empty_result_is_zero(self):
        result = run("SELECT 1", Engine.POSTGRES, FakeRunner([]))
        assert result == RowEstimate()

    def test_engine_as_string(self):
        runner = FakeRunner(pg_rows(5))
        result = run("SELECT 1", "postgresql", runner)

        assert result.estimated_rows == 5
        assert len(runner.calls) == 1

    def test_configured_threshold(self):
        config = GovernorConfig(large_result_threshold=100)
        result = run("SELECT * FROM t", Engine.POSTGRES, FakeRunner(pg_rows(101)), config)

        assert result.is_large_result
        assert "~101 rows" in result.warning


class TestMySQLEstimate:
    """Tests for MySQL estimates."""

    def test_sums_rows_column(self):
        rows = [{"table": "o", "rows": 100}, {"table": "c", "rows": "50"}, {"table": None, "rows": None}]
        runner = FakeRunner(rows)
        result = run("SELECT * FROM o JOIN c ON c.id = o.cid;", Engine.MYSQL, runner)

        assert runner.calls == ["EXPLAIN SELECT * FROM o JOIN c ON c.id = o.cid"]
        assert result.estimated_rows == 150
        assert not result.is_large_result

    def test_non_numeric_rows_count_as_zero(self):
        result = run("SELECT 1", Engine.MYSQL, FakeRunner([{"rows": "n/a"}, {"rows": 20_000}]))

        assert result.estimated_rows == 20_000
        assert result.is_large_result


class TestNoEstimate:
    """Cases that never touch the database."""

    @pytest.mark.parametrize("engine", [Engine.SQLITE, Engine.OTHER])
    def test_engines_without_strategy(self, engine):
        runner = FakeRunner(pg_rows(1_000_000))
        result = run("SELECT * FROM t", engine, runner)

        assert result == RowEstimate()
        assert runner.calls == []

    @pytest.mark.parametrize("sql", ["DELETE FROM t", "INSERT INTO t VALUES (1)", "DROP TABLE t"])
    def test_non_select(self, sql):
        runner = FakeRunner(pg_rows(1_000_000))
        result = run(sql, Engine.POSTGRES, runner)

        assert result == RowEstimate()
        assert runner.calls == []


class TestFailures:
    """The estimator never raises for database errors."""

    def test_runner_error(self, caplog):
        runner = FakeRunner(error=RuntimeError("permission denied for table orders"))

        with caplog.at_level(logging.WARNING, logger="querygovernor.estimator"):
            result = run("SELECT * FROM orders", Engine.POSTGRES, runner)

        assert result.estimated_rows == 0
        assert not result.is_large_result
        assert result.warning is None
        assert result.error == ESTIMATE_FAILED
        assert "permission denied" in caplog.text

    def test_timeout(self):
        runner = FakeRunner(error=asyncio.TimeoutError())
        result = run("SELECT * FROM orders", Engine.MYSQL, runner)

        assert result.error == ESTIMATE_TIMED_OUT
        assert result.estimated_rows == 0

    def test_statement_timeout_sqlstate(self):
        runner = FakeRunner(error=QueryCanceled("canceling statement due to statement timeout"))
        result = run("SELECT * FROM orders", Engine.POSTGRES, runner)

        assert result.error == ESTIMATE_TIMED_OUT

    def test_malformed_plan_text(self):
        result = run("SELECT 1", Engine.POSTGRES, FakeRunner([{"QUERY PLAN": "not json"}]))

        assert result.error == ESTIMATE_FAILED


class TestBuildEstimate:
    """Tests for build_estimate()."""

    def test_warning_only_when_large(self):
        assert build_estimate(10).warning is None
        assert build_estimate(10_001).warning.startswith("This query may return ~10.0K rows.")
