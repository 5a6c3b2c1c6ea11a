"""
Repository layer for the composer backend.

All SQL lives here and ONLY here. No database access outside this module.
"""

from backend.repos.audit_repo import PostgresAuditSink
from backend.repos.query_repo import PostgresDatabase, bind_named_params

__all__ = [
    "PostgresAuditSink",
    "PostgresDatabase",
    "bind_named_params",
]
