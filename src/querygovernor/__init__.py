"""QueryGovernor - bounded ad-hoc queries and execution plan analysis for PostgreSQL and MySQL."""

__version__ = "0.1.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from querygovernor.exceptions import (
    ConfigurationError,
    ConnectionFailedError,
    EstimationError,
    PlanParseError,
    QueryGovernorError,
    UnsupportedEngineError,
    UnsupportedOperationError,
    UnsupportedStatementError,
)

from querygovernor.config import (
    DEFAULT_CONFIG,
    DEFAULT_QUERY_LIMIT,
    LARGE_RESULT_THRESHOLD,
    MAX_UNLIMITED_ROWS,
    GovernorConfig,
    load_config,
)
from querygovernor.engines import Engine

# Statement classification and rewriting
from querygovernor.sql import (
    LimitedQueryResult,
    PageRequest,
    Pagination,
    StatementDescriptor,
    StatementKind,
    apply_limit,
    classify,
    has_query_limit,
    is_select_query,
    paginate_sql,
)

# Plan analysis
from querygovernor.plan import (
    Insight,
    InsightStatus,
    PlanAnalysis,
    PlanAnalyzer,
    PlanNode,
    PlanRoot,
    PlanWarning,
    Severity,
    adapter_for,
    analyze_plan,
    detect_adapter,
)

from querygovernor.estimator import RowEstimate, estimate
from querygovernor.governor import PreparedQuery, QueryGovernor, QueryPage
from querygovernor.runners import MySQLRunner, PsycopgRunner, QueryRunner

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "ConfigurationError",
    "ConnectionFailedError",
    "EstimationError",
    "PlanParseError",
    "QueryGovernorError",
    "UnsupportedEngineError",
    "UnsupportedOperationError",
    "UnsupportedStatementError",
    # Config
    "DEFAULT_CONFIG",
    "DEFAULT_QUERY_LIMIT",
    "LARGE_RESULT_THRESHOLD",
    "MAX_UNLIMITED_ROWS",
    "Engine",
    "GovernorConfig",
    "load_config",
    # SQL
    "LimitedQueryResult",
    "PageRequest",
    "Pagination",
    "StatementDescriptor",
    "StatementKind",
    "apply_limit",
    "classify",
    "has_query_limit",
    "is_select_query",
    "paginate_sql",
    # Plans
    "Insight",
    "InsightStatus",
    "PlanAnalysis",
    "PlanAnalyzer",
    "PlanNode",
    "PlanRoot",
    "PlanWarning",
    "Severity",
    "adapter_for",
    "analyze_plan",
    "detect_adapter",
    # Estimation and orchestration
    "MySQLRunner",
    "PreparedQuery",
    "PsycopgRunner",
    "QueryGovernor",
    "QueryPage",
    "QueryRunner",
    "RowEstimate",
    "estimate",
]
