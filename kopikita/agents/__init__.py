"""
KopiKita Agents Module

Tool-calling agent loop and the pieces around it.

Available Components:
    - sanitize_sql / SQLSanitizer: Rule-based SQL checks (no I/O)
    - extract_final_text / extract_json_payload: Answer extraction
    - AgentLoop (kopikita.agents.loop): LangGraph-driven tool-calling loop

Usage:
    from kopikita.agents import SQLPolicy, sanitize_sql
    from kopikita.agents.loop import AgentLoop, AgentRunConfig

    sql = sanitize_sql('SELECT * FROM "Sale"', SQLPolicy(row_limit=5))
"""

from kopikita.agents.output import (
    extract_final_text,
    extract_json_payload,
    extract_text_content,
)
from kopikita.agents.sanitizer import (
    RejectionReason,
    SanitizedQuery,
    SQLPolicy,
    SQLRejectedError,
    SQLSanitizer,
    sanitize_sql,
)

__all__ = [
    "RejectionReason",
    "SanitizedQuery",
    "SQLPolicy",
    "SQLRejectedError",
    "SQLSanitizer",
    "sanitize_sql",
    "extract_final_text",
    "extract_json_payload",
    "extract_text_content",
]
