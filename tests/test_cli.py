"""
Tests for the querygovernor CLI using Typer's test runner.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from querygovernor import __version__
from querygovernor.cli import main as cli_main
from querygovernor.cli.main import app
from querygovernor.estimator import RowEstimate, build_estimate
from querygovernor.exceptions import ConfigurationError
from querygovernor.runners import PsycopgRunner


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestGlobalOptions:
    """Tests for --help, --version and --config."""

    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("classify", "limit", "analyze", "estimate", "rules"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_file(self, runner):
        result = runner.invoke(
            app, ["--config", str(FIXTURES_DIR / "governor.yaml"), "limit", "SELECT 1"]
        )

        assert result.exit_code == 0
        assert "SELECT 1 LIMIT 200" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("default_query_limit: -1\n")

        result = runner.invoke(app, ["--config", str(path), "limit", "SELECT 1"])
        assert result.exit_code == 1


class TestClassifyCommand:
    """Tests for `querygovernor classify`."""

    def test_table_output(self, runner):
        result = runner.invoke(app, ["classify", "SELECT * FROM orders LIMIT 10 OFFSET 5"])

        assert result.exit_code == 0
        assert "SELECT" in result.output
        assert "10" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(app, ["classify", "--json", "SELECT * FROM orders LIMIT 5, 20"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["kind"] == "select"
        assert data["existing_limit"] == 20
        assert data["existing_offset"] == 5
        assert data["needs_review"] is False

    def test_reads_stdin(self, runner):
        result = runner.invoke(app, ["classify", "--json", "-"], input="DELETE FROM orders\n")

        assert result.exit_code == 0
        assert json.loads(result.output)["kind"] == "delete"


class TestLimitCommand:
    """Tests for `querygovernor limit`."""

    def test_default_limit(self, runner):
        result = runner.invoke(app, ["limit", "SELECT * FROM orders"])

        assert result.exit_code == 0
        assert result.output.strip() == "SELECT * FROM orders LIMIT 500"

    def test_limit_and_offset(self, runner):
        result = runner.invoke(app, ["limit", "SELECT * FROM orders;", "--limit", "100", "--offset", "200"])

        assert result.exit_code == 0
        assert "SELECT * FROM orders LIMIT 100 OFFSET 200;" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(
            app, ["limit", "--json", "--force", "-l", "50", "SELECT * FROM orders LIMIT 10"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["sql"] == "SELECT * FROM orders LIMIT 50"
        assert data["was_limited"] is True
        assert data["original_limit"] == 10
        assert data["applied_limit"] == 50

    def test_non_select_unchanged(self, runner):
        result = runner.invoke(app, ["limit", "--json", "DROP TABLE orders"])

        data = json.loads(result.output)
        assert data["sql"] == "DROP TABLE orders"
        assert data["was_limited"] is False

    def test_negative_limit_rejected(self, runner):
        result = runner.invoke(app, ["limit", "SELECT 1", "--limit", "-1"])
        assert result.exit_code != 0


class TestAnalyzeCommand:
    """Tests for `querygovernor analyze`."""

    def test_postgres_plan(self, runner):
        result = runner.invoke(app, ["analyze", str(FIXTURES_DIR / "postgres" / "sort_over_seq_scan.json")])

        assert result.exit_code == 0
        assert "Detected engine: postgres" in result.output
        assert "Found 3 issue(s)" in result.output
        assert "Expensive Sort" in result.output
        assert "Sequential Scan" in result.output
        assert "Cache Hit Rate" in result.output

    def test_clean_plan(self, runner):
        result = runner.invoke(app, ["analyze", str(FIXTURES_DIR / "postgres" / "index_scan.json")])

        assert result.exit_code == 0
        assert "No performance issues found" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(
            app, ["analyze", "--json", str(FIXTURES_DIR / "postgres" / "sort_over_seq_scan.json")]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["engine"] == "postgres"
        assert data["node_count"] == 2
        assert data["summary"] == {"critical": 0, "warning": 2, "info": 1, "total": 3}
        assert [w["rule_id"] for w in data["warnings"]] == [
            "EXPENSIVE_SORT",
            "SEQ_SCAN_LARGE_TABLE",
            "ESTIMATE_MISMATCH",
        ]

    def test_explicit_mysql_engine(self, runner):
        result = runner.invoke(
            app,
            ["analyze", "--json", "--engine", "mysql", str(FIXTURES_DIR / "mysql" / "join_with_filesort.json")],
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["engine"] == "mysql"
        assert data["node_count"] == 4

    def test_config_disables_rule(self, runner):
        result = runner.invoke(
            app,
            [
                "--config", str(FIXTURES_DIR / "governor.yaml"),
                "analyze", "--json", str(FIXTURES_DIR / "postgres" / "sort_over_seq_scan.json"),
            ],
        )

        data = json.loads(result.output)
        # seq scan threshold raised to 100k and ESTIMATE_MISMATCH disabled
        assert [w["rule_id"] for w in data["warnings"]] == ["EXPENSIVE_SORT"]

    def test_unrecognized_plan(self, runner, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"rows": []}))

        result = runner.invoke(app, ["analyze", str(path)])
        assert result.exit_code == 1

    def test_missing_file(self, runner):
        result = runner.invoke(app, ["analyze", "/nonexistent/plan.json"])
        assert result.exit_code != 0


class TestEstimateCommand:
    """Tests for `querygovernor estimate` with the database call stubbed out."""

    def test_large_estimate(self, runner, monkeypatch):
        calls = []

        async def fake_estimate_live(sql, engine, dsn, timeout_ms, config):
            calls.append((sql, engine.value, dsn))
            return build_estimate(2_500_000, config)

        monkeypatch.setattr(cli_main, "_estimate_live", fake_estimate_live)
        result = runner.invoke(
            app, ["estimate", "SELECT * FROM events", "--dsn", "postgresql://localhost/shop"]
        )

        assert result.exit_code == 0
        assert calls == [("SELECT * FROM events", "postgres", "postgresql://localhost/shop")]
        assert "2,500,000" in result.output
        assert "~2.5M rows" in result.output

    def test_json_output(self, runner, monkeypatch):
        async def fake_estimate_live(sql, engine, dsn, timeout_ms, config):
            return RowEstimate(error="Estimate timed out")

        monkeypatch.setattr(cli_main, "_estimate_live", fake_estimate_live)
        result = runner.invoke(
            app, ["estimate", "--json", "-e", "mysql", "SELECT 1", "--dsn", "mysql://root@localhost/shop"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["estimated_rows"] == 0
        assert data["error"] == "Estimate timed out"

    def test_connection_setup_error(self, runner, monkeypatch):
        async def fake_estimate_live(sql, engine, dsn, timeout_ms, config):
            raise ConfigurationError("psycopg is not installed")

        monkeypatch.setattr(cli_main, "_estimate_live", fake_estimate_live)
        result = runner.invoke(app, ["estimate", "SELECT 1", "--dsn", "postgresql://localhost/shop"])

        assert result.exit_code == 1

    def test_unreachable_server(self, runner, monkeypatch):
        """Connection failures are reported, not raised."""
        async def refuse(*args, **kwargs):
            raise OSError("connection refused")

        monkeypatch.setattr(PsycopgRunner, "create", refuse)
        result = runner.invoke(app, ["estimate", "SELECT 1", "--dsn", "postgresql://db.invalid/shop"])

        assert result.exit_code == 1
        assert not isinstance(result.exception, OSError)
        assert "Could not connect to postgres" in result.output


class TestRulesCommand:
    """Tests for `querygovernor rules`."""

    def test_lists_rules(self, runner):
        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        for rule_id in ("SEQ_SCAN_LARGE_TABLE", "ESTIMATE_MISMATCH", "EXPENSIVE_SORT", "HIGH_LOOP_COUNT"):
            assert rule_id in result.output
