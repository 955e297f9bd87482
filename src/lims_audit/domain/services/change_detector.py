"""Change Detection Service.

This service detects field-level changes between the persisted ("before")
and updated ("after") snapshots of a single entity, producing the ordered
change entries recorded in the audit trail.

Security Impact:
    - Compares values that may contain PII
    - Change entries are recorded in the immutable audit trail
    - Field values are never written to the application log

Architecture:
    - Pure domain service with no infrastructure dependencies
    - Field enumeration comes from static FieldTables, not runtime reflection
    - Returns domain models (ChangeEntry) for use by the audit trail service
"""

import logging
from typing import Any, List, Optional

from lims_audit.domain.audit_models import ChangeEntry
from lims_audit.domain.base_entity import BaseEntity
from lims_audit.domain.field_table import FieldSpec, FieldTableRegistry, default_registry
from lims_audit.domain.resolvers import (
    ReferenceResolver,
    as_text,
    normalize_placeholder,
    read_value,
)

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Service for detecting field-level changes between two entity snapshots.
    
    Plain fields are compared by their string form and record the *after*
    value. Relationship fields are compared by the identifiers of the
    referenced entities and record the *before* identifier. Special-cased
    fields are compared through a dedicated accessor. Entity-valued fields
    with no resolver never produce an entry.
    
    Example Usage:
        ```python
        detector = ChangeDetector()
        changes = detector.compute_changes(persisted, updated, "sample")
        for entry in changes:
            print(entry.label, entry.value)
        ```
    """
    
    def __init__(self, registry: Optional[FieldTableRegistry] = None):
        """Initialize change detector.
        
        Parameters:
            registry: Field table registry (defaults to the shared registry)
        """
        self.registry = registry or default_registry
    
    def compute_changes(
        self,
        before: Any,
        after: Optional[Any],
        entity_kind: Optional[str] = None
    ) -> List[ChangeEntry]:
        """Compute the changed fields between two snapshots.
        
        Parameters:
            before: Persisted state of the entity (required)
            after: Updated state of the entity (None for deletes)
            entity_kind: Logical table name, used to pick a registered field table
        
        Returns:
            Change entries in audit field order (possibly empty)
        
        Raises:
            ValueError: If before is None
        """
        if before is None:
            raise ValueError("A 'before' snapshot is required to compute changes")
        
        table = self.registry.table_for(before, entity_kind)
        changes: List[ChangeEntry] = []
        
        for spec in table.audited_fields:
            entry = self._compare_field(spec, before, after)
            if entry is not None:
                changes.append(entry)
        
        logger.debug(
            f"Detected {len(changes)} changed field(s) on "
            f"{entity_kind or type(before).__name__}"
        )
        return changes
    
    def _compare_field(self, spec: FieldSpec, before: Any, after: Any) -> Optional[ChangeEntry]:
        if spec.resolver is not None and not isinstance(spec.resolver, ReferenceResolver):
            return spec.resolver.resolve(spec.label, before, after)
        
        old_value = read_value(spec.accessor, before)
        new_value = read_value(spec.accessor, after)
        holds_entity = isinstance(old_value, BaseEntity) or isinstance(new_value, BaseEntity)
        
        # Relationship resolution applies only when a referenced entity is present
        if spec.resolver is not None and holds_entity:
            return spec.resolver.resolve(spec.label, before, after)
        
        # Nested entities without a resolver are never diffed here
        if holds_entity:
            return None
        
        old_text = as_text(old_value)
        new_text = as_text(new_value)
        if old_text == new_text:
            return None
        
        return ChangeEntry(label=spec.label, value=normalize_placeholder(new_text))
