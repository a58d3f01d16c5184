"""
Comment and literal masking for SQL text.

Keyword detection in this package is pattern based, so anything that can hide
a keyword (string literals, quoted identifiers, comments) has to be blanked
out before a regex sees the text. mask_sql() walks the sqlparse token stream,
whose token values join back to the exact input, and rewrites comment and
literal tokens in place. Every character keeps its original offset, so a span
matched on the masked text can be applied directly to the original SQL.

    >>> mask_sql("SELECT 'LIMIT 1' -- x")
    "SELECT '_______'     "
"""

from __future__ import annotations

from functools import lru_cache

from sqlparse import keywords
from sqlparse import tokens as T
from sqlparse.lexer import Lexer

FILL_CHAR = "_"

_QUOTES = ("'", '"', "`")

# Single-quoted strings where a backslash is an ordinary character
# (PostgreSQL with standard_conforming_strings, the default).
_STANDARD_STRING_RE = r"'(''|[^'])*'"


def mask_sql(sql: str) -> str:
    """
    Blank comments and literal bodies while preserving offsets.

    - ``-- ...`` and ``/* ... */`` comments (nested blocks allowed) become
      spaces; newlines inside them are kept.
    - Bodies of ``'...'`` strings, ``"..."`` and backtick identifiers, and
      ``$tag$...$tag$`` strings are replaced by FILL_CHAR. Delimiters stay.
    - Unterminated comments and literals are masked to the end of the text.

    sqlparse reads ``\\'`` inside a string as an escaped quote (MySQL). When
    that leaves a quote unterminated, the text is lexed again with backslash
    as a plain character, and that reading wins if it closes every literal.

    The result always has the same length as the input.
    """
    masked, closed = _mask(sql, Lexer.get_default_instance())
    if not closed:
        retry, retry_closed = _mask(sql, _standard_strings_lexer())
        if retry_closed:
            return retry
    return masked


def normalize_sql(sql: str) -> str:
    """Mask, trim, collapse whitespace and upper-case for keyword matching."""
    return " ".join(mask_sql(sql).split()).upper()


def strip_terminator(sql: str) -> str:
    """
    Drop a trailing semicolon (and anything after it that is only
    whitespace or comments) so the statement can be embedded, e.g. after
    ``EXPLAIN``.
    """
    masked = mask_sql(sql)
    end = len(masked.rstrip())
    if masked[:end].endswith(";"):
        return sql[:end - 1].rstrip()
    return sql


@lru_cache(maxsize=1)
def _standard_strings_lexer() -> Lexer:
    lexer = Lexer()
    lexer.default_initialization()
    lexer.set_SQL_REGEX([
        (_STANDARD_STRING_RE, ttype) if ttype is T.String.Single else (regex, ttype)
        for regex, ttype in keywords.SQL_REGEX
    ])
    return lexer


def _mask(sql: str, lexer: Lexer) -> tuple[str, bool]:
    """
    Mask sql with the given lexer.

    Returns:
        (masked text, whether every quoted literal was terminated)
    """
    out: list[str] = []
    closed = True
    pos = 0
    while pos < len(sql):
        pos, run_closed = _mask_run(sql, pos, lexer, out)
        closed = closed and run_closed
    return "".join(out), closed


def _mask_run(sql: str, start: int, lexer: Lexer, out: list[str]) -> tuple[int, bool]:
    """
    Lex sql from start and append masked tokens to out.

    sqlparse neither nests block comments nor reports an unclosed one, so
    at a comment opener the real end is found by scanning, and lexing
    restarts there.

    Returns:
        (position to resume from, whether quoted literals were terminated)
    """
    n = len(sql)
    pos = start
    for ttype, value in lexer.get_tokens(sql[start:]):
        end = pos + len(value)

        if ttype in T.Comment.Multiline:
            close = _block_comment_end(sql, pos)
            out.append(_blank(sql[pos:close]))
            if close != end:
                return close, True
        elif ttype in T.Comment:
            out.append(_blank(value))
        elif ttype in T.String or (ttype is T.Name and value.startswith("`")):
            out.append(value[0] + FILL_CHAR * (len(value) - 2) + value[-1])
        elif ttype is T.Literal:
            out.append(_mask_dollar_quoted(value))
        elif ttype is T.Error and value in _QUOTES:
            out.append(value + FILL_CHAR * (n - end))
            return n, False
        elif ttype in T.Operator and value.endswith("/") and sql.startswith("*", end):
            # "/*" that sqlparse could not close, or glued onto an operator
            opener = end - 1
            close = _block_comment_end(sql, opener)
            out.append(value[:-1])
            out.append(_blank(sql[opener:close]))
            return close, True
        else:
            out.append(value)

        pos = end
    return n, True


def _mask_dollar_quoted(value: str) -> str:
    tag = value[:value.index("$", 1) + 1]
    body = len(value) - 2 * len(tag)
    return tag + FILL_CHAR * body + tag


def _blank(text: str) -> str:
    return "".join(ch if ch in "\r\n" else " " for ch in text)


def _block_comment_end(sql: str, start: int) -> int:
    """Index just past the block comment opened at start (or len(sql))."""
    n = len(sql)
    depth = 0
    i = start
    while i < n:
        pair = sql[i:i + 2]
        if pair == "/*":
            depth += 1
            i += 2
        elif pair == "*/":
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return n
