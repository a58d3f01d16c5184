"""
Limit rewriter.

Adds a LIMIT/OFFSET clause to SELECT statements that have no explicit bound,
so a careless ``SELECT * FROM events`` cannot pull millions of rows into the
workbench. Bounds the user wrote are preserved unless the caller forces an
override.

Only the trailing clause region of the outermost statement is touched.
Subqueries, CTE bodies and UNION branches are never rewritten; when the
outer clause may not bound what the user expects (UNION, WITH) the result
carries an advisory instead.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from querygovernor.sql.classifier import (
    ClauseForm,
    StatementDescriptor,
    describe_masked,
    find_trailing_clause,
)
from querygovernor.sql.masking import mask_sql

logger = logging.getLogger(__name__)

UNION_ADVISORY = (
    "Statement uses UNION; the LIMIT applies to the combined result of all branches."
)
CTE_ADVISORY = (
    "Statement starts with a WITH clause; the LIMIT bounds only the outer SELECT."
)


class LimitedQueryResult(BaseModel):
    """
    Output of apply_limit().

    Attributes:
        sql: The statement to execute (unchanged unless was_limited).
        was_limited: A clause was inserted or replaced.
        original_limit: LIMIT the statement carried before rewriting.
        applied_limit: Row bound now in effect (0 for non-SELECTs).
        applied_offset: Offset now in effect.
        advisory: Review notice for UNION/CTE statements that were rewritten.
    """

    model_config = ConfigDict(frozen=True)

    sql: str = Field(..., description="Statement to execute")
    was_limited: bool = False
    original_limit: int | None = None
    applied_limit: int = 0
    applied_offset: int = 0
    advisory: str | None = None


def build_limit_clause(limit: int, offset: int = 0) -> str:
    """Render ``LIMIT n`` or ``LIMIT n OFFSET m``."""
    if offset > 0:
        return f"LIMIT {limit} OFFSET {offset}"
    return f"LIMIT {limit}"


def _advisory_for(descriptor: StatementDescriptor) -> str | None:
    if not descriptor.needs_review:
        return None
    notes = []
    if descriptor.is_union:
        notes.append(UNION_ADVISORY)
    if descriptor.has_cte:
        notes.append(CTE_ADVISORY)
    return " ".join(notes)


def _code_end(masked: str) -> int:
    """Index just past the last character that is not whitespace or comment."""
    return len(masked.rstrip())


def _join_clause(sql: str, masked: str, end: int, clause: str) -> str:
    """
    Append clause to sql[:end].

    Comments between the statement body and end stay in place and the clause
    goes after them; a line comment there always ends in a newline.
    """
    body_end = len(masked[:end].rstrip())
    if sql[body_end:end].strip():
        prefix = sql[:end].rstrip(" \t")
        separator = "" if prefix.endswith("\n") else " "
        return f"{prefix}{separator}{clause}"
    return f"{sql[:body_end]} {clause}"


def apply_limit(
    sql: str,
    limit: int,
    offset: int = 0,
    force_override: bool = False,
) -> LimitedQueryResult:
    """
    Bound a SELECT statement with a trailing LIMIT/OFFSET clause.

    - Non-SELECT statements are returned unchanged.
    - An existing LIMIT is kept (and reported) unless force_override is set,
      in which case it is replaced.
    - A trailing semicolon stays at the end; trailing comments are kept
      after the new clause.
    - A bare trailing OFFSET is folded into the new clause; its value is used
      when no offset is requested.

    limit=0 is legal and yields ``LIMIT 0``.

    Args:
        sql: Statement text.
        limit: Row bound to apply.
        offset: Rows to skip.
        force_override: Replace a LIMIT the statement already has.

    Returns:
        LimitedQueryResult describing what is now in effect.

    Raises:
        ValueError: If limit or offset is negative.
    """
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")

    masked = mask_sql(sql)
    descriptor = describe_masked(masked)

    if not descriptor.is_select:
        return LimitedQueryResult(sql=sql)

    if descriptor.has_limit and not force_override:
        return LimitedQueryResult(
            sql=sql,
            original_limit=descriptor.existing_limit,
            applied_limit=descriptor.existing_limit or 0,
            applied_offset=descriptor.existing_offset or 0,
        )

    code_end = _code_end(masked)
    trailer = sql[code_end:].rstrip()
    has_semicolon = masked[:code_end].endswith(";")
    end = code_end - 1 if has_semicolon else code_end

    clause = find_trailing_clause(masked)
    applied_offset = offset

    if descriptor.has_limit:
        if clause is None or clause.form is ClauseForm.OFFSET_ONLY:
            # Descriptor and pattern disagree; leave the statement alone.
            logger.warning("Could not locate existing LIMIT clause; query left unchanged")
            return LimitedQueryResult(
                sql=sql,
                original_limit=descriptor.existing_limit,
                applied_limit=descriptor.existing_limit or 0,
                applied_offset=descriptor.existing_offset or 0,
            )
        end = clause.start
    elif clause is not None and clause.form is ClauseForm.OFFSET_ONLY:
        end = clause.start
        if offset == 0:
            applied_offset = clause.offset or 0

    rewritten = _join_clause(sql, masked, end, build_limit_clause(limit, applied_offset))
    if has_semicolon:
        rewritten += ";"
    rewritten += trailer

    advisory = _advisory_for(descriptor)
    logger.debug(
        "Applied LIMIT %d OFFSET %d (original limit %s)",
        limit,
        applied_offset,
        descriptor.existing_limit,
    )

    return LimitedQueryResult(
        sql=rewritten,
        was_limited=True,
        original_limit=descriptor.existing_limit,
        applied_limit=limit,
        applied_offset=applied_offset,
        advisory=advisory,
    )
