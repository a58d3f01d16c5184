"""SQL text analysis: masking, classification, limit rewriting, pagination."""

from querygovernor.sql.classifier import (
    StatementDescriptor,
    StatementKind,
    classify,
    has_query_limit,
    is_select_query,
)
from querygovernor.sql.limiter import LimitedQueryResult, apply_limit, build_limit_clause
from querygovernor.sql.masking import mask_sql, normalize_sql
from querygovernor.sql.pagination import PageRequest, Pagination, paginate_sql, resolve_limit

__all__ = [
    "LimitedQueryResult",
    "PageRequest",
    "Pagination",
    "StatementDescriptor",
    "StatementKind",
    "apply_limit",
    "build_limit_clause",
    "classify",
    "has_query_limit",
    "is_select_query",
    "mask_sql",
    "normalize_sql",
    "paginate_sql",
    "resolve_limit",
]
