"""
Tests for comment and literal masking.
"""

import pytest

from querygovernor.sql.masking import FILL_CHAR, mask_sql, normalize_sql, strip_terminator


class TestMaskSql:
    """Tests for mask_sql()."""

    @pytest.mark.parametrize(
        "sql",
        [
            "",
            "SELECT 1",
            "SELECT 'abc' -- comment",
            "SELECT /* a /* nested */ b */ 1",
            "SELECT $$body$$, $tag$x$tag$",
            "SELECT 'unterminated",
            "SELECT 1 /* unterminated",
            "SELECT 'é', \"ü\" FROM t",
        ],
    )
    def test_length_is_preserved(self, sql):
        """Masked text keeps every offset of the original."""
        assert len(mask_sql(sql)) == len(sql)

    def test_plain_sql_is_untouched(self):
        """Text outside literals and comments is returned as-is."""
        sql = "SELECT id, name FROM users WHERE id = 7 LIMIT 10"
        assert mask_sql(sql) == sql

    def test_string_literal_body_is_filled(self):
        """Keywords inside string literals disappear; quotes remain."""
        assert mask_sql("SELECT 'LIMIT 1' AS s") == f"SELECT '{FILL_CHAR * 7}' AS s"

    def test_doubled_quote_escape(self):
        """'' inside a string does not close it."""
        assert mask_sql("SELECT 'it''s' FROM t") == "SELECT '_____' FROM t"

    def test_backslash_escape_in_string(self):
        """A backslash-escaped quote does not close a single-quoted string."""
        assert mask_sql("SELECT 'a\\'b' FROM t") == "SELECT '____' FROM t"

    def test_quoted_identifiers(self):
        """Double-quoted and backtick identifiers are masked."""
        assert mask_sql('SELECT "LIMIT" FROM t') == 'SELECT "_____" FROM t'
        assert mask_sql("SELECT `UNION` FROM t") == "SELECT `_____` FROM t"

    def test_line_comment_becomes_spaces(self):
        """-- comments are blanked up to, not including, the newline."""
        assert mask_sql("SELECT 1 -- c\nFROM t") == "SELECT 1     \nFROM t"

    def test_nested_block_comment(self):
        """Nested /* */ comments are blanked as a whole."""
        sql = "SELECT /* a /* b */ c */ 1"
        assert mask_sql(sql) == "SELECT " + " " * 17 + " 1"

    def test_block_comment_keeps_newlines(self):
        """Line structure survives inside block comments."""
        assert mask_sql("/* a\nb */SELECT 1") == "    \n    SELECT 1"

    def test_dollar_quoted_strings(self):
        """PostgreSQL $$ and $tag$ strings are masked, delimiters stay."""
        assert mask_sql("SELECT $$LIMIT 5$$") == "SELECT $$_______$$"
        assert mask_sql("SELECT $fn$ x $fn$") == "SELECT $fn$___$fn$"

    def test_positional_parameter_is_not_a_dollar_quote(self):
        """$1 placeholders are left alone."""
        sql = "SELECT * FROM t WHERE id = $1"
        assert mask_sql(sql) == sql

    def test_unterminated_literal_masks_to_end(self):
        """An unclosed string swallows the rest of the text."""
        assert mask_sql("SELECT 'abc LIMIT 5") == "SELECT '" + FILL_CHAR * 11

    def test_comment_markers_inside_string(self):
        """-- inside a string is not a comment."""
        assert mask_sql("SELECT '--' LIMIT 5") == "SELECT '__' LIMIT 5"

    def test_unterminated_block_comment_masks_to_end(self):
        assert mask_sql("SELECT 1 /* LIMIT 5") == "SELECT 1 " + " " * 10

    def test_comment_glued_to_operator(self):
        """A comment right after an operator is still a comment."""
        assert mask_sql("SELECT 1 +/* LIMIT */ 2") == "SELECT 1 +" + " " * 11 + " 2"

    def test_trailing_backslash_is_a_plain_character(self):
        """'C:\\' is a complete string when backslash is not an escape."""
        sql = "SELECT 'C:\\' AS p FROM t WHERE a = 'x' LIMIT 5"
        assert mask_sql(sql) == "SELECT '___' AS p FROM t WHERE a = '_' LIMIT 5"

    def test_trailing_backslash_single_literal(self):
        sql = "SELECT 'C:\\' AS p FROM t LIMIT 5"
        assert mask_sql(sql) == "SELECT '___' AS p FROM t LIMIT 5"


class TestNormalizeSql:
    """Tests for normalize_sql()."""

    def test_collapses_whitespace_and_uppercases(self):
        assert normalize_sql("  select  *\n\tfrom t -- trailing ") == "SELECT * FROM T"

    def test_empty(self):
        assert normalize_sql("   ") == ""


class TestStripTerminator:
    """Tests for strip_terminator()."""

    def test_removes_semicolon(self):
        assert strip_terminator("SELECT 1;") == "SELECT 1"

    def test_removes_semicolon_and_trailing_comment(self):
        assert strip_terminator("SELECT 1; -- done") == "SELECT 1"

    def test_semicolon_inside_literal_is_kept(self):
        assert strip_terminator("SELECT ';'") == "SELECT ';'"

    def test_no_semicolon(self):
        assert strip_terminator("SELECT 1 -- c") == "SELECT 1 -- c"
