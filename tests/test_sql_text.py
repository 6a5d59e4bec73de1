"""Tests for SQL plausibility checks."""

import pytest

from sqlbank.parser.sql_text import SqlIssue, check_sql, first_keyword, looks_like_sql


# =============================================================================
# check_sql
# =============================================================================

class TestCheckSql:
    """Tests for check_sql."""

    @pytest.mark.parametrize("code", [
        "SELECT name FROM employees;",
        "select name\nfrom employees\nwhere salary > 100",
        "WITH t AS (SELECT 1) SELECT * FROM t;",
        "INSERT INTO t (a, b) VALUES (1, 'it''s');",
        "UPDATE t SET a = 1;\nDELETE FROM t WHERE a = 2;",
        "CREATE TABLE t (\n    id INT PRIMARY KEY\n);",
        "WHERE salary > 100",
        "(SELECT 1) UNION (SELECT 2);",
        "SELECT 1; -- trailing comment",
        "/* block\ncomment */ SELECT 1;",
        "SELECT * FROM t;\n...",
        'SELECT "order" FROM t;',
        "SELECT 'a;b' FROM t;",
    ])
    def test_plausible(self, code):
        assert check_sql(code) == []

    def test_empty_block(self):
        assert check_sql("  \n ") == [SqlIssue("empty SQL block", 1)]

    def test_unclosed_paren(self):
        issues = check_sql("SELECT name FROM employees WHERE (salary > 100;")
        assert issues == [SqlIssue("unclosed '(' opened on line 1", 1)]

    def test_unbalanced_close_paren(self):
        issues = check_sql("SELECT name\nFROM employees)")
        assert issues == [SqlIssue("unbalanced ')' on line 2", 2)]

    def test_unterminated_string(self):
        issues = check_sql("SELECT name\nFROM t\nWHERE a = 'oops;")
        assert issues == [SqlIssue("unterminated string literal opened on line 3", 3)]

    def test_unterminated_quoted_identifier(self):
        issues = check_sql('SELECT "name FROM t;')
        assert [i.message for i in issues] == ["unterminated quoted identifier opened on line 1"]

    def test_unterminated_block_comment(self):
        issues = check_sql("SELECT 1;\n/* never closed")
        assert issues == [SqlIssue("unterminated block comment opened on line 2", 2)]

    def test_prose_is_not_sql(self):
        issues = check_sql("Find all employees earning more than their manager")
        assert issues == [SqlIssue("statement starts with 'FIND', not a SQL keyword", 1)]

    def test_reports_statement_line(self):
        issues = check_sql("SELECT 1;\n\nemployees WHERE x = 1;")
        assert issues == [SqlIssue("statement starts with 'EMPLOYEES', not a SQL keyword", 3)]

    def test_statement_starting_with_literal(self):
        issues = check_sql("'abc';")
        assert issues == [SqlIssue("statement does not start with a SQL keyword", 1)]

    def test_issues_sorted_by_line(self):
        issues = check_sql("nonsense here;\nSELECT (1;")
        assert [i.line for i in issues] == [1, 2]

    def test_mysql_delimiter(self):
        code = (
            "DELIMITER //\n"
            "CREATE PROCEDURE raise_pay(IN pct INT)\n"
            "BEGIN\n"
            "    UPDATE employees SET salary = salary * (1 + pct / 100);\n"
            "END //\n"
            "DELIMITER ;\n"
            "CALL raise_pay(5);"
        )
        assert check_sql(code) == []
        assert looks_like_sql(code)

    def test_custom_delimiter_still_splits_statements(self):
        issues = check_sql("DELIMITER $$\nSELECT 1$$\noops$$")
        assert issues == [SqlIssue("statement starts with 'OOPS', not a SQL keyword", 3)]

    @pytest.mark.parametrize("code", [
        "CREATE FUNCTION add_one(x int) RETURNS int AS $$\nBEGIN\n    RETURN x + 1;\nEND;\n$$ LANGUAGE plpgsql;",
        "DO $body$\nBEGIN\n    RAISE NOTICE 'it''s (done';\nEND\n$body$;",
    ])
    def test_dollar_quoted_body(self, code):
        assert check_sql(code) == []

    def test_unterminated_dollar_quote(self):
        issues = check_sql("SELECT 1;\nDO $$\nBEGIN\n    NULL;\n")
        assert issues == [SqlIssue("unterminated $$ string opened on line 2", 2)]

    def test_positional_parameter_is_not_a_dollar_quote(self):
        assert check_sql("PREPARE q AS SELECT * FROM t WHERE id = $1;") == []


# =============================================================================
# Helpers
# =============================================================================

class TestFirstKeyword:
    """Tests for first_keyword."""

    def test_upper_cases(self):
        assert first_keyword("  select 1") == "SELECT"

    def test_skips_opening_parens(self):
        assert first_keyword("((select 1))") == "SELECT"

    def test_none_for_leading_symbol(self):
        assert first_keyword("= 1") is None

    def test_none_without_words(self):
        assert first_keyword("  ") is None


class TestLooksLikeSql:
    """Tests for looks_like_sql."""

    def test_statement(self):
        assert looks_like_sql("SELECT * FROM users;")

    def test_fragment_is_not_enough(self):
        assert not looks_like_sql("WHERE a = 1")

    def test_shell_command(self):
        assert not looks_like_sql("pip install sqlbank")

    def test_empty(self):
        assert not looks_like_sql("")
