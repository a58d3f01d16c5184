"""
Configuration for QueryGovernor.

Configuration is a value, not process state: every component accepts a
GovernorConfig argument and falls back to DEFAULT_CONFIG when none is given.
Nothing here reads the environment.

Usage:
    from querygovernor.config import GovernorConfig, load_config

    # Defaults (page size 500, large-result threshold 10,000, ...)
    config = GovernorConfig()

    # Tighter thresholds for a test
    config = GovernorConfig(seq_scan_row_threshold=100)

    # From a JSON or YAML file
    config = load_config(Path("governor.yaml"))

    # Disable a plan rule
    if config.is_rule_enabled("ESTIMATE_MISMATCH"):
        ...
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from querygovernor.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Named constants. Components read them through GovernorConfig.
DEFAULT_QUERY_LIMIT = 500
MAX_UNLIMITED_ROWS = 100_000
LARGE_RESULT_THRESHOLD = 10_000


class RuleSettings(BaseModel):
    """Per-rule switches."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=True, description="Whether the rule runs")


class GovernorConfig(BaseModel):
    """
    Thresholds and caps for the governor components.

    Pagination and estimation settings mirror the named module constants;
    plan settings are the per-rule and insight thresholds used by
    the plan analyzer.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Pagination
    default_query_limit: int = Field(
        default=DEFAULT_QUERY_LIMIT,
        ge=0,
        description="Page size applied to SELECTs without an explicit LIMIT",
    )
    max_unlimited_rows: int = Field(
        default=MAX_UNLIMITED_ROWS,
        ge=1,
        description="Safety cap used when a caller asks for unlimited rows",
    )

    # Estimation
    large_result_threshold: int = Field(
        default=LARGE_RESULT_THRESHOLD,
        ge=0,
        description="Estimated rows above which a result counts as large",
    )

    # Plan rules
    seq_scan_row_threshold: int = Field(
        default=10_000,
        ge=0,
        description="Actual rows above which a sequential scan is flagged",
    )
    estimate_mismatch_ratio: float = Field(
        default=10.0,
        gt=1.0,
        description="actual/planned ratio (or its inverse) that flags stale statistics",
    )
    sort_time_threshold_ms: float = Field(
        default=100.0,
        ge=0,
        description="Sort time above which a sort is flagged as expensive",
    )
    nested_loop_threshold: int = Field(
        default=1_000,
        ge=1,
        description="Loop count above which a nested loop is flagged",
    )

    # Insights
    node_count_warning: int = Field(
        default=20,
        ge=1,
        description="Plans with more nodes than this get a WARNING insight",
    )
    cache_hit_good_ratio: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Cache hit ratio at or above which the insight is GOOD",
    )
    execution_warning_ms: float = Field(
        default=100.0,
        ge=0,
        description="Execution time above which the insight is WARNING",
    )
    execution_critical_ms: float = Field(
        default=1000.0,
        ge=0,
        description="Execution time above which the insight is CRITICAL",
    )

    rules: dict[str, RuleSettings] = Field(
        default_factory=dict,
        description="Per-rule settings keyed by rule_id",
    )

    def is_rule_enabled(self, rule_id: str) -> bool:
        """Check if a rule is enabled (rules are enabled by default)."""
        if rule_id in self.rules:
            return self.rules[rule_id].enabled
        return True


DEFAULT_CONFIG = GovernorConfig()


def load_config(path: Path) -> GovernorConfig:
    """
    Load configuration from a JSON or YAML file.

    Keys not present in the file keep their defaults.

    Raises:
        ConfigurationError: If the file is missing, unreadable, or invalid.
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            if path.suffix in (".yaml", ".yml"):
                data: Any = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read config from {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}"
        )

    try:
        config = GovernorConfig(**data)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        raise ConfigurationError(
            f"Invalid config value for '{key}': {first['msg']}", config_key=key
        ) from e

    logger.debug("Loaded config from %s", path)
    return config
