"""Domain Ports - Abstract Contracts for Audit Trail Collaborators.

This module defines the Port interfaces (abstract contracts) that storage
adapters must implement, and the exception hierarchy raised by the audit
trail. Following Hexagonal Architecture, the Domain Core defines what it
needs, not how it's provided.

Security Impact:
    - Every audit failure is raised, never swallowed, so the enclosing
      business transaction rolls back instead of committing unaudited
    - Exceptions carry table/operation context but never field values

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (DuckDB, ORM repositories, ...) implement these ports
    - The audit trail service depends only on these contracts
"""

from abc import ABC, abstractmethod
from typing import Optional

from lims_audit.domain.audit_models import History, ReferenceTable


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class AuditError(Exception):
    """Base exception for all audit-trail errors.
    
    All subclasses are fatal to the audit call. Callers are expected to
    let them propagate so the enclosing write transaction is rolled back.
    
    Attributes:
        table_name: The audited table involved (if known)
    """
    
    def __init__(self, message: str, table_name: Optional[str] = None):
        super().__init__(message)
        self.table_name = table_name


class RetentionUnconfiguredError(AuditError):
    """Raised when the reference table directory has no retention flag for a table."""
    pass


class MissingActorError(AuditError):
    """Raised when the acting user id is missing or empty."""
    pass


class MissingSubjectError(AuditError):
    """Raised when a required snapshot, activity or table name is missing.
    
    Attributes:
        missing: Names of the missing arguments
    """
    
    def __init__(self, message: str, table_name: Optional[str] = None, missing: Optional[list] = None):
        super().__init__(message, table_name=table_name)
        self.missing = missing or []


class AuditFailureError(AuditError):
    """Raised when diffing or persisting a change record fails.
    
    The original exception is chained as ``__cause__``.
    
    Attributes:
        operation: The audit operation that failed (save_new_history, save_history)
    """
    
    def __init__(self, message: str, table_name: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message, table_name=table_name)
        self.operation = operation


class StorageError(Exception):
    """Raised by storage adapters when a persistence operation fails.
    
    Attributes:
        operation: The storage operation that failed (connect, insert, ...)
        details: Additional error context
    """
    
    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


# ============================================================================
# Collaborator Ports
# ============================================================================

class ReferenceTablePort(ABC):
    """Abstract contract for the reference table directory.
    
    The directory tells the audit trail which tables exist and whether
    history is kept for each of them.
    
    Example Usage:
        ```python
        table = directory.get_reference_table_by_name("sample")
        if table is not None and table.keep_history:
            ...
        ```
    """
    
    @abstractmethod
    def get_reference_table_by_name(self, table_name: str) -> Optional[ReferenceTable]:
        """Look up a reference table by name.
        
        Parameters:
            table_name: Name of the audited table
        
        Returns:
            Optional[ReferenceTable]: The directory entry, or None if not found
        """
        pass


class HistoryPort(ABC):
    """Abstract contract for persisting History rows.
    
    Implementations must take part in the caller's transaction and raise on
    failure; the audit trail never retries.
    """
    
    @abstractmethod
    def insert(self, history: History) -> str:
        """Persist a History row.
        
        Parameters:
            history: Fully built, immutable History record
        
        Returns:
            str: Identifier assigned to the stored row
        
        Raises:
            StorageError: If the row cannot be stored
        """
        pass
