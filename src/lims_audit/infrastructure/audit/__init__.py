"""Audit infrastructure components.

This package provides the audit trail service that builds and persists
History rows, and the changes payload format.
"""

from lims_audit.infrastructure.audit.audit_trail_service import AuditTrailService
from lims_audit.infrastructure.audit.changelog_format import encode_changes, render_changes

__all__ = ['AuditTrailService', 'encode_changes', 'render_changes']
