"""
Statement classifier.

Inspects raw SQL text and describes it: statement kind, any bound already
present at the end of the statement, and the UNION/CTE/subquery flags the
limit rewriter needs to know about.

This is keyword/position pattern matching, not a grammar. All matching runs
on masked text (see masking.py) so keywords inside string literals and
comments are never seen. Callers depend only on StatementDescriptor, so a
real parser could replace this module without touching them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from querygovernor.sql.masking import mask_sql


class StatementKind(str, Enum):
    """Coarse statement category, decided by the leading keyword."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DDL = "ddl"
    OTHER = "other"


class StatementDescriptor(BaseModel):
    """
    Structured description of one SQL statement.

    Derived and immutable; recomputed for every query text.

    Attributes:
        kind: Statement category from the leading keyword.
        has_limit: A LIMIT (or FETCH FIRST) clause ends the statement.
        existing_limit: Row count of that clause.
        has_offset: An OFFSET is present in the trailing clause.
        existing_offset: Offset of the trailing clause.
        is_union: UNION appears outside literals and comments.
        has_cte: The statement starts with WITH.
        has_subquery: More than one SELECT keyword occurs.
    """

    model_config = ConfigDict(frozen=True)

    kind: StatementKind = Field(..., description="Leading-keyword statement category")
    has_limit: bool = False
    existing_limit: int | None = None
    has_offset: bool = False
    existing_offset: int | None = None
    is_union: bool = False
    has_cte: bool = False
    has_subquery: bool = False

    @property
    def is_select(self) -> bool:
        return self.kind is StatementKind.SELECT

    @property
    def needs_review(self) -> bool:
        """
        True when an outer LIMIT may not bound what the user expects.

        A trailing clause on a UNION bounds the combined result and on a CTE
        bounds only the outer SELECT; the rewriter still applies it there but
        flags the result.
        """
        return self.is_select and (self.is_union or self.has_cte)


class ClauseForm(str, Enum):
    """Shape of a bound found at the end of a statement."""

    LIMIT = "limit"
    FETCH = "fetch"
    OFFSET_ONLY = "offset_only"


@dataclass(frozen=True)
class TrailingClause:
    """
    A trailing LIMIT/FETCH/OFFSET clause located in masked text.

    start is where the clause begins; everything from start to the end of the
    text is the clause plus an optional semicolon and whitespace.
    """

    form: ClauseForm
    start: int
    limit: int | None
    offset: int | None


_LEADING_PATTERNS: tuple[tuple[StatementKind, re.Pattern[str]], ...] = (
    (StatementKind.SELECT, re.compile(r"^\s*(?:\(\s*)*SELECT\b", re.IGNORECASE)),
    (StatementKind.INSERT, re.compile(r"^\s*INSERT\b", re.IGNORECASE)),
    (StatementKind.UPDATE, re.compile(r"^\s*UPDATE\b", re.IGNORECASE)),
    (StatementKind.DELETE, re.compile(r"^\s*DELETE\b", re.IGNORECASE)),
    (StatementKind.DDL, re.compile(r"^\s*(?:CREATE|ALTER|DROP|TRUNCATE)\b", re.IGNORECASE)),
)

_WITH_RE = re.compile(r"^\s*WITH\b", re.IGNORECASE)
_SELECT_RE = re.compile(r"\bSELECT\b", re.IGNORECASE)
_UNION_RE = re.compile(r"\bUNION\b")

# LIMIT n | LIMIT offset, n | LIMIT n OFFSET m | OFFSET m LIMIT n
_TRAILING_LIMIT_RE = re.compile(
    r"(?:\bOFFSET\s+(?P<lead_offset>\d+)\s+)?"
    r"\bLIMIT\s+(?P<first>\d+)"
    r"(?:\s*,\s*(?P<second>\d+)|\s+OFFSET\s+(?P<offset>\d+))?"
    r"\s*;?\s*$",
    re.IGNORECASE,
)

# [OFFSET m ROWS] FETCH FIRST|NEXT [n] ROWS ONLY
_TRAILING_FETCH_RE = re.compile(
    r"(?:\bOFFSET\s+(?P<offset>\d+)\s+ROWS?\s+)?"
    r"\bFETCH\s+(?:FIRST|NEXT)\s+(?:(?P<count>\d+)\s+)?ROWS?\s+(?:ONLY|WITH\s+TIES)"
    r"\s*;?\s*$",
    re.IGNORECASE,
)

_TRAILING_OFFSET_RE = re.compile(
    r"\bOFFSET\s+(?P<offset>\d+)(?:\s+ROWS?)?\s*;?\s*$",
    re.IGNORECASE,
)


def find_trailing_clause(masked: str) -> TrailingClause | None:
    """
    Locate the bound that ends a masked statement, if any.

    LIMIT forms win over FETCH, and both win over a bare OFFSET. In the
    comma form the first number is the offset (``LIMIT 5, 20`` skips 5 and
    returns 20).
    """
    match = _TRAILING_LIMIT_RE.search(masked)
    if match:
        if match.group("second") is not None:
            offset: int | None = int(match.group("first"))
            limit = int(match.group("second"))
        else:
            limit = int(match.group("first"))
            raw_offset = match.group("offset") or match.group("lead_offset")
            offset = int(raw_offset) if raw_offset is not None else None
        return TrailingClause(ClauseForm.LIMIT, match.start(), limit, offset)

    match = _TRAILING_FETCH_RE.search(masked)
    if match:
        count = match.group("count")
        raw_offset = match.group("offset")
        return TrailingClause(
            ClauseForm.FETCH,
            match.start(),
            int(count) if count is not None else 1,
            int(raw_offset) if raw_offset is not None else None,
        )

    match = _TRAILING_OFFSET_RE.search(masked)
    if match:
        return TrailingClause(
            ClauseForm.OFFSET_ONLY, match.start(), None, int(match.group("offset"))
        )

    return None


def classify_kind(masked: str) -> StatementKind:
    """Decide the statement kind from the leading keyword of masked text."""
    for kind, pattern in _LEADING_PATTERNS:
        if pattern.match(masked):
            return kind
    # CTE wrapping a read
    if _WITH_RE.match(masked) and _SELECT_RE.search(masked):
        return StatementKind.SELECT
    return StatementKind.OTHER


def describe_masked(masked: str) -> StatementDescriptor:
    """Build a descriptor from text that has already been masked."""
    kind = classify_kind(masked)
    normalized = " ".join(masked.split()).upper()

    clause = find_trailing_clause(masked)
    has_limit = clause is not None and clause.form is not ClauseForm.OFFSET_ONLY
    existing_limit = clause.limit if clause is not None else None
    existing_offset = clause.offset if clause is not None else None

    return StatementDescriptor(
        kind=kind,
        has_limit=has_limit,
        existing_limit=existing_limit,
        has_offset=existing_offset is not None,
        existing_offset=existing_offset,
        is_union=_UNION_RE.search(normalized) is not None,
        has_cte=_WITH_RE.match(masked) is not None,
        has_subquery=len(_SELECT_RE.findall(normalized)) > 1,
    )


def classify(sql: str) -> StatementDescriptor:
    """
    Classify raw SQL text.

    Pure and linear in the length of the text. Unrecognized or malformed
    input is classified as OTHER rather than raising.

    Example:
        >>> classify("SELECT * FROM t LIMIT 5, 20").existing_offset
        5
    """
    return describe_masked(mask_sql(sql))


def is_select_query(sql: str) -> bool:
    """Check whether the statement is a SELECT (including CTE-wrapped reads)."""
    return classify(sql).is_select


def has_query_limit(sql: str) -> bool:
    """Check whether the statement already ends with a LIMIT."""
    return classify(sql).has_limit


__all__ = [
    "ClauseForm",
    "StatementDescriptor",
    "StatementKind",
    "TrailingClause",
    "classify",
    "classify_kind",
    "describe_masked",
    "find_trailing_clause",
    "has_query_limit",
    "is_select_query",
]
