"""Domain layer for LIMS Audit.

This module contains the entity base model, the audit trail models and the
change detection service. All domain models are pure Python with no external
dependencies beyond Pydantic.
"""

from .audit_models import Activity, ChangeEntry, History, ReferenceTable
from .base_entity import BaseEntity
from .field_table import FieldSpec, FieldTable, FieldTableRegistry, register_entity

__all__ = [
    "Activity",
    "BaseEntity",
    "ChangeEntry",
    "FieldSpec",
    "FieldTable",
    "FieldTableRegistry",
    "History",
    "ReferenceTable",
    "register_entity",
]
