"""Storage adapters for the audit trail ports."""

from lims_audit.adapters.storage.duckdb_adapter import DuckDBAuditAdapter

__all__ = ['DuckDBAuditAdapter']
