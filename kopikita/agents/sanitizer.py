"""
SQL Sanitizer: rule-based checks applied to every statement the model proposes.

The sanitizer is pure and synchronous. It either returns a statement that is
safe to run under the given policy or raises SQLRejectedError with a reason
the agent loop feeds back to the model so it can correct its next attempt.

Checks, in order:
1. Statement stacking (more than one statement)
2. Empty statement
3. Read-only policies: leading SELECT, no data-modifying statements
4. DDL keywords (never allowed, under any policy)
5. Write policies: writes to forbidden tables
6. Read-only policies: append a LIMIT when the statement has none

NO database access - designed for speed and deterministic results.
"""

import logging
import re
from enum import StrEnum

import sqlparse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlparse.tokens import Comment, Keyword

logger = logging.getLogger(__name__)

DDL_RE = re.compile(r"\b(ALTER|DROP|CREATE|REPLACE|TRUNCATE|GRANT|REVOKE)\b", re.IGNORECASE)
DML_RE = re.compile(r"\b(INSERT|UPDATE|DELETE)\b", re.IGNORECASE)
SELECT_RE = re.compile(r"^select\b", re.IGNORECASE)
HAS_LIMIT_TAIL_RE = re.compile(
    r"\blimit\s+\d+(?:\s*,\s*\d+|\s+offset\s+\d+)?\s*$", re.IGNORECASE
)
TRAILING_SEMICOLONS_RE = re.compile(r";+\s*$")
# Statement heads that name a write target; ONLY excludes inheriting tables.
WRITE_TARGET_PREFIX = (
    r"INSERT\s+INTO|UPDATE(?:\s+ONLY)?|DELETE\s+FROM(?:\s+ONLY)?|MERGE\s+INTO"
)


class RejectionReason(StrEnum):
    """Why a statement was refused."""

    MULTIPLE_STATEMENTS = "multiple_statements"
    EMPTY = "empty"
    NOT_SELECT = "not_select"
    READ_ONLY_VIOLATION = "read_only_violation"
    DDL_BLOCKED = "ddl_blocked"
    FORBIDDEN_TABLE = "forbidden_table"


class SQLRejectedError(Exception):
    """A statement was refused by the sanitizer."""

    def __init__(self, reason: RejectionReason, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)


class SQLPolicy(BaseModel):
    """Rules one call site applies to every statement."""

    read_only: bool = Field(default=True, description="Only SELECT statements allowed")
    row_limit: int = Field(
        default=10, gt=0, description="LIMIT appended to read-only statements without one"
    )
    forbidden_write_tables: tuple[str, ...] = Field(
        default=(), description="Tables write statements must not target"
    )
    schema_name: str = Field(default="public", description="Schema of the forbidden tables")

    model_config = ConfigDict(frozen=True)

    @field_validator("forbidden_write_tables", mode="before")
    @classmethod
    def to_tuple(cls, v):
        if v is None:
            return ()
        return tuple(v)

    def forbidden_table_message(self) -> str:
        tables = "/".join(self.forbidden_write_tables)
        return (
            f"Writes to {tables} are forbidden in this mode. "
            "Reuse existing rows and only create sales."
        )


class SanitizedQuery(BaseModel):
    """A validated statement and the policy it was validated under."""

    sql: str
    policy: SQLPolicy

    model_config = ConfigDict(frozen=True)


def _forbidden_write_re(policy: SQLPolicy) -> re.Pattern[str] | None:
    if not policy.forbidden_write_tables:
        return None
    tables = "|".join(re.escape(name) for name in policy.forbidden_write_tables)
    schema = re.escape(policy.schema_name)
    return re.compile(
        rf'\b(?:{WRITE_TARGET_PREFIX})\s+(?:"?{schema}"?\.)?"?({tables})"?\b', re.IGNORECASE
    )


def _strip_comments(query: str) -> str:
    """Remove SQL comments so nothing can hide behind them."""
    statements = sqlparse.parse(query)
    has_comments = any(
        token.ttype in Comment for statement in statements for token in statement.flatten()
    )
    if not has_comments:
        return query
    return sqlparse.format(query, strip_comments=True).strip()


def _is_select_into(query: str) -> bool:
    """Detect SELECT ... INTO, which creates a table from a read."""
    for statement in sqlparse.parse(query):
        for token in statement.flatten():
            if token.ttype in Keyword and token.normalized == "INTO":
                return True
    return False


def sanitize_sql(raw_query: str, policy: SQLPolicy) -> str:
    """
    Validate and rewrite one SQL statement.

    Args:
        raw_query: Statement proposed by the model
        policy: Rules of the calling site

    Returns:
        The statement to execute

    Raises:
        SQLRejectedError: If the statement violates the policy
    """
    query = str(raw_query or "").strip()

    # 1. Statement stacking
    if query.count(";") > 1:
        raise SQLRejectedError(
            RejectionReason.MULTIPLE_STATEMENTS, "Multiple SQL statements are not allowed."
        )

    # 2. Trailing semicolons, once comments after them are gone
    query = _strip_comments(query)
    query = TRAILING_SEMICOLONS_RE.sub("", query).strip()
    if ";" in query:
        raise SQLRejectedError(
            RejectionReason.MULTIPLE_STATEMENTS, "Multiple SQL statements are not allowed."
        )

    # 3. Empty
    if not query:
        raise SQLRejectedError(RejectionReason.EMPTY, "SQL query must not be empty.")

    # 4. Read-only shape
    if policy.read_only:
        if not SELECT_RE.match(query):
            raise SQLRejectedError(
                RejectionReason.NOT_SELECT, "Only SELECT statements are allowed."
            )
        if DML_RE.search(query) or _is_select_into(query):
            raise SQLRejectedError(
                RejectionReason.READ_ONLY_VIOLATION,
                "DML/DDL detected. Only read-only queries are permitted.",
            )

    # 5. DDL
    if DDL_RE.search(query):
        raise SQLRejectedError(
            RejectionReason.DDL_BLOCKED, "DDL commands are blocked for safety."
        )

    # 6. Forbidden write targets
    if not policy.read_only:
        forbidden_re = _forbidden_write_re(policy)
        if forbidden_re is not None and forbidden_re.search(query):
            raise SQLRejectedError(
                RejectionReason.FORBIDDEN_TABLE, policy.forbidden_table_message()
            )

    # 7. Row cap
    if policy.read_only and not HAS_LIMIT_TAIL_RE.search(query):
        query = f"{query} LIMIT {policy.row_limit}"

    return query


class SQLSanitizer:
    """
    Sanitizer bound to one policy.

    Usage:
        sanitizer = SQLSanitizer(SQLPolicy(read_only=True, row_limit=5))
        sanitized = sanitizer.sanitize('SELECT COUNT(*) FROM "Sale"')
        sanitized.sql  # 'SELECT COUNT(*) FROM "Sale" LIMIT 5'
    """

    def __init__(self, policy: SQLPolicy):
        self.policy = policy

    def sanitize(self, raw_query: str) -> SanitizedQuery:
        try:
            sql = sanitize_sql(raw_query, self.policy)
        except SQLRejectedError as e:
            logger.warning(
                f"SQL rejected ({e.reason}): {e.message}",
                extra={"reason": str(e.reason), "sql": str(raw_query)[:200]},
            )
            raise
        return SanitizedQuery(sql=sql, policy=self.policy)
