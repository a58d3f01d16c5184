"""
Page requests for the query endpoint.

Resolves how many rows a request may return, rewrites the SQL for that page
and, after execution, reports whether more rows are likely available.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from querygovernor.config import DEFAULT_CONFIG, GovernorConfig
from querygovernor.sql.classifier import classify
from querygovernor.sql.limiter import LimitedQueryResult, apply_limit


class PageRequest(BaseModel):
    """
    What the caller asked for.

    limit=None means the configured default_query_limit. unlimited
    requests are still capped at the configured max_unlimited_rows.
    """

    model_config = ConfigDict(frozen=True)

    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)
    unlimited: bool = False


class Pagination(BaseModel):
    """Pagination metadata returned alongside a page of rows."""

    model_config = ConfigDict(frozen=True)

    limit: int
    offset: int
    has_more: bool
    total_returned: int
    was_limited: bool

    @classmethod
    def from_rows(
        cls,
        row_count: int,
        effective_limit: int,
        offset: int,
        was_limited: bool,
    ) -> "Pagination":
        """A full page means there may be more rows behind it."""
        return cls(
            limit=effective_limit,
            offset=offset,
            has_more=row_count == effective_limit,
            total_returned=row_count,
            was_limited=was_limited,
        )


def resolve_limit(request: PageRequest, config: GovernorConfig | None = None) -> int:
    """Effective page size for a request."""
    config = config or DEFAULT_CONFIG
    if request.unlimited:
        return config.max_unlimited_rows
    if request.limit is None:
        return config.default_query_limit
    return request.limit


def paginate_sql(
    sql: str,
    request: PageRequest | None = None,
    config: GovernorConfig | None = None,
) -> tuple[LimitedQueryResult, int]:
    """
    Rewrite sql for one page.

    Only SELECT statements are rewritten; everything else passes through
    with was_limited=False.

    Returns:
        (rewrite result, effective limit)
    """
    request = request or PageRequest()
    effective_limit = resolve_limit(request, config)

    if not classify(sql).is_select:
        return LimitedQueryResult(sql=sql), effective_limit

    return apply_limit(sql, effective_limit, request.offset), effective_limit
