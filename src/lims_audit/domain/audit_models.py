"""Audit Trail Models.

This module defines the records produced by the audit trail: the individual
field-level change entries and the History row that groups them.

Security Impact:
    - History rows are immutable once built (frozen models)
    - Every row names the acting user; anonymous changes are rejected upstream
    - Change payloads may contain PII from the audited entity

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - History is the unit handed to the HistoryPort for persistence
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class Activity(str, Enum):
    """Kind of mutation recorded in a History row."""
    INSERT = "I"
    UPDATE = "U"
    DELETE = "D"


class ChangeEntry(BaseModel):
    """A single changed field.
    
    Parameters:
        label: Field label (tag name in the changes payload)
        value: Stringified value recorded for the field
    """
    
    label: str = Field(..., min_length=1, description="Field label")
    value: str = Field("", description="Recorded value (already stringified)")
    
    model_config = {
        'frozen': True,
    }


class ReferenceTable(BaseModel):
    """Directory entry describing an audited table.
    
    Parameters:
        id: Reference table identifier stored on History rows
        table_name: Name of the table (e.g. 'sample', 'analysis')
        keep_history: Retention flag; None means it was never configured
    """
    
    id: str = Field(..., description="Reference table identifier")
    table_name: str = Field(..., description="Audited table name")
    keep_history: Optional[bool] = Field(None, description="Whether history is retained")
    
    model_config = {
        'frozen': True,
    }


class History(BaseModel):
    """Persistable audit record for one entity mutation.
    
    Parameters:
        id: Assigned identifier (None until persisted)
        reference_id: Identifier of the affected entity
        sys_user_id: Identifier of the acting user
        reference_table: Identifier of the ReferenceTable the entity belongs to
        timestamp: When the mutation happened
        activity: INSERT, UPDATE or DELETE
        changes: Encoded changes payload (None for inserts)
    """
    
    id: Optional[str] = Field(None, description="Assigned history identifier")
    reference_id: Optional[str] = Field(None, description="Identifier of the audited entity")
    sys_user_id: str = Field(..., min_length=1, description="Acting user identifier")
    reference_table: str = Field(..., description="Reference table identifier")
    timestamp: datetime = Field(default_factory=datetime.now, description="Mutation timestamp")
    activity: Activity = Field(..., description="Kind of mutation")
    changes: Optional[bytes] = Field(None, description="Encoded changes payload")
    
    model_config = {
        'frozen': True,
    }
    
    def to_audit_dict(self) -> dict:
        """Convert to dictionary for database insertion.
        
        Returns:
            Dictionary with column values for the history table
        """
        return {
            'id': self.id,
            'reference_id': self.reference_id,
            'sys_user_id': self.sys_user_id,
            'reference_table': self.reference_table,
            'timestamp': self.timestamp,
            'activity': self.activity.value,
            'changes': self.changes,
        }


def coerce_activity(value: Union[Activity, str, None]) -> Optional[Activity]:
    """Accept an Activity, its code ('I', 'U', 'D') or its name."""
    if value is None or isinstance(value, Activity):
        return value
    try:
        return Activity(value)
    except ValueError:
        pass
    if not isinstance(value, str):
        raise ValueError(f"Unknown audit activity: {value!r}")
    try:
        return Activity[value.upper()]
    except KeyError:
        raise ValueError(f"Unknown audit activity: {value!r}")
