"""
Plausibility checks for SQL text embedded in Markdown.

This is a lexical scan, not a parser: it never builds a syntax tree and
never runs anything. It answers "does this fenced block read like SQL that
somebody typed on purpose?":

- the block is not empty
- every statement starts with a keyword SQL statements (or the clause
  fragments interview answers quote) start with
- parentheses balance
- string literals (including PostgreSQL $tag$ bodies), quoted identifiers
  and block comments are closed

MySQL client ``DELIMITER`` lines are honoured: statements end at the custom
delimiter until it is set back.

Example:
    >>> check_sql("SELECT name FROM employees WHERE (salary > 100;")
    [SqlIssue(message="unclosed '(' opened on line 1", line=1)]
"""

import re
from dataclasses import dataclass

STATEMENT_KEYWORDS = frozenset({
    "ALTER", "ANALYZE", "BEGIN", "CALL", "CLOSE", "COMMENT", "COMMIT", "COPY",
    "CREATE", "DEALLOCATE", "DECLARE", "DELETE", "DESC", "DESCRIBE", "DO",
    "DROP", "END", "EXEC", "EXECUTE", "EXPLAIN", "FETCH", "GRANT", "IF",
    "INSERT", "LOCK", "MERGE", "OPEN", "PRAGMA", "PREPARE", "RELEASE",
    "RENAME", "REPLACE", "RETURN", "REVOKE", "ROLLBACK", "SAVEPOINT",
    "SELECT", "SET", "SHOW", "START", "TABLE", "TRUNCATE", "UNLOCK",
    "UPDATE", "UPSERT", "USE", "VACUUM", "VALUES", "WITH",
})

# Clause fragments quoted on their own in explanations ("WHERE salary > 100").
FRAGMENT_KEYWORDS = frozenset({
    "AND", "CASE", "CROSS", "EXCEPT", "FROM", "FULL", "GROUP", "HAVING",
    "INNER", "INTERSECT", "JOIN", "LEFT", "LIMIT", "NATURAL", "OFFSET", "ON",
    "OR", "ORDER", "OUTER", "OVER", "PARTITION", "RIGHT", "ROW_NUMBER", "RANK",
    "DENSE_RANK", "UNION", "WHERE", "WINDOW",
})

_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DOLLAR_TAG = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")
_DELIMITER = re.compile(r"DELIMITER[ \t]+(\S+)[ \t]*(?=\n|$)", re.IGNORECASE)


@dataclass(frozen=True)
class SqlIssue:
    """A plausibility problem; ``line`` is 1-based within the block."""

    message: str
    line: int


@dataclass
class _Scan:
    """Result of the lexical pass."""

    statements: list[tuple[str, int]]
    issues: list[SqlIssue]


def _scan(code: str) -> _Scan:
    """Walk the text once, blanking out strings and comments.

    Returns the statements (text with literals removed, starting line) and
    any balance problems found along the way.
    """
    issues: list[SqlIssue] = []
    statements: list[tuple[str, int]] = []
    current: list[str] = []
    current_line = 1
    started = False
    line = 1
    open_parens: list[int] = []
    delimiter = ";"

    i = 0
    n = len(code)
    while i < n:
        ch = code[i]
        nxt = code[i + 1] if i + 1 < n else ""

        if ch == "\n":
            line += 1
            current.append(ch)
            i += 1
            continue

        # -- line comment
        if ch == "-" and nxt == "-":
            end = code.find("\n", i)
            i = n if end == -1 else end
            continue

        # /* block comment */
        if ch == "/" and nxt == "*":
            end = code.find("*/", i + 2)
            if end == -1:
                issues.append(SqlIssue(f"unterminated block comment opened on line {line}", line))
                break
            line += code.count("\n", i, end)
            i = end + 2
            current.append(" ")
            continue

        if code.startswith(delimiter, i):
            if started:
                statements.append(("".join(current), current_line))
            current = []
            started = False
            i += len(delimiter)
            continue

        if not started:
            directive = _DELIMITER.match(code, i)
            if directive:
                delimiter = directive.group(1)
                i = directive.end()
                continue

        # $$ body $$, $fn$ body $fn$
        dollar = _DOLLAR_TAG.match(code, i) if ch == "$" else None
        if dollar:
            tag = dollar.group(0)
            end = code.find(tag, dollar.end())
            if end == -1:
                issues.append(SqlIssue(f"unterminated {tag} string opened on line {line}", line))
                break
            if not started:
                started = True
                current_line = line
            line += code.count("\n", i, end)
            current.append(" '' ")
            i = end + len(tag)
            continue

        # 'string', "identifier", `identifier`
        if ch in ("'", '"', "`"):
            start_line = line
            j = i + 1
            closed = False
            while j < n:
                if code[j] == ch:
                    if j + 1 < n and code[j + 1] == ch:
                        j += 2  # doubled quote escape
                        continue
                    closed = True
                    break
                if code[j] == "\\" and ch == "'" and j + 1 < n:
                    j += 2
                    continue
                j += 1
            if not closed:
                kind = "string literal" if ch == "'" else "quoted identifier"
                issues.append(SqlIssue(f"unterminated {kind} opened on line {start_line}", start_line))
                break
            if not started:
                started = True
                current_line = start_line
            line += code.count("\n", i, j)
            current.append(" '' ")
            i = j + 1
            continue

        if ch == "(":
            open_parens.append(line)
        elif ch == ")":
            if open_parens:
                open_parens.pop()
            else:
                issues.append(SqlIssue(f"unbalanced ')' on line {line}", line))

        if not started and not ch.isspace():
            started = True
            current_line = line
        current.append(ch)
        i += 1

    if started:
        statements.append(("".join(current), current_line))

    for opened in open_parens:
        issues.append(SqlIssue(f"unclosed '(' opened on line {opened}", opened))

    return _Scan(statements=statements, issues=issues)


def first_keyword(statement: str) -> str | None:
    """First word of a statement, upper-cased (``None`` when there is none)."""
    match = _WORD.search(statement)
    if match is None:
        return None
    # Anything other than whitespace and opening parens before the word
    # means the statement does not start with a word at all.
    prefix = statement[:match.start()]
    if prefix.strip(" \t\r\n("):
        return None
    return match.group(0).upper()


def check_sql(code: str) -> list[SqlIssue]:
    """Check that a block reads as plausible SQL.

    Args:
        code: Contents of a fenced SQL block

    Returns:
        Problems found; empty when the block is plausible
    """
    if not code.strip():
        return [SqlIssue("empty SQL block", 1)]

    scan = _scan(code)
    issues = list(scan.issues)

    for statement, line in scan.statements:
        if "..." in statement and not _WORD.search(statement.replace("...", "")):
            continue  # elision placeholder
        keyword = first_keyword(statement)
        if keyword is None:
            issues.append(SqlIssue("statement does not start with a SQL keyword", line))
        elif keyword not in STATEMENT_KEYWORDS and keyword not in FRAGMENT_KEYWORDS:
            issues.append(SqlIssue(f"statement starts with {keyword!r}, not a SQL keyword", line))

    return sorted(issues, key=lambda issue: issue.line)


def looks_like_sql(code: str) -> bool:
    """Whether an unlabelled fenced block is SQL.

    Stricter than :func:`check_sql`: the first statement must start with a
    full statement keyword, not a clause fragment.
    """
    scan = _scan(code)
    if not scan.statements:
        return False
    keyword = first_keyword(scan.statements[0][0])
    return keyword in STATEMENT_KEYWORDS
