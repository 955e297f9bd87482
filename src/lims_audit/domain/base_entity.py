"""Base Entity Definition.

This module defines the common persisted fields shared by every auditable
laboratory entity (samples, analyses, tests, organizations, ...).

Architecture:
    - Pure domain model with zero infrastructure dependencies
    - Concrete entities subclass BaseEntity and declare their own fields
    - Nested entities are held as BaseEntity instances, which lets the
      diff engine recognise relationships structurally
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BaseEntity(BaseModel):
    """Common fields of all persisted LIMS entities.
    
    Parameters:
        id: Primary key (string or integer, None before first save)
        sys_user_id: Identifier of the user who last saved the entity
        system_user: Resolved user object, when loaded
        last_updated: Timestamp of the last save
        original_last_updated: Timestamp read at load time (optimistic locking)
    """
    
    id: Optional[Union[int, str]] = Field(None, description="Primary key")
    sys_user_id: Optional[str] = Field(None, description="Id of the last modifying user")
    system_user: Optional["BaseEntity"] = Field(None, description="Last modifying user")
    last_updated: Optional[datetime] = Field(None, description="Last update timestamp")
    original_last_updated: Optional[datetime] = Field(
        None, description="Last update timestamp as read from storage"
    )
    
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        populate_by_name=True,
    )
    
    @property
    def string_id(self) -> str:
        """Primary key rendered as a string ('' when unsaved)."""
        return "" if self.id is None else str(self.id)
