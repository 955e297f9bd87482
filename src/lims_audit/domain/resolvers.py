"""Field Value Resolvers.

Resolvers compare fields that cannot be diffed by their plain string form:
references to other entities (compared by identifier) and the special
cases where a dedicated accessor on the entity supplies the audited value.

Architecture:
    - Pure domain helpers with zero infrastructure dependencies
    - One parameterised resolver per behaviour, configured with accessor
      and identifier-extractor callables instead of one branch per field
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from lims_audit.domain.audit_models import ChangeEntry

logger = logging.getLogger(__name__)

# Placeholders produced by generic stringification of empty values
NULL_PLACEHOLDERS = frozenset({"{null}", "null"})


def read_value(accessor: Callable[[Any], Any], snapshot: Any) -> Any:
    """Read a value from a snapshot, absorbing read failures.
    
    Parameters:
        accessor: Callable extracting the value from the snapshot
        snapshot: Entity snapshot (may be None)
    
    Returns:
        The value, or None if the snapshot is None or the read failed
    """
    if snapshot is None:
        return None
    try:
        return accessor(snapshot)
    except Exception as e:
        logger.debug(
            f"Failed to read value from {type(snapshot).__name__}: {e}. "
            "Treating it as empty."
        )
        return None


def as_text(value: Any) -> str:
    """Render a value the way it is compared and recorded ('' for None)."""
    if value is None:
        return ""
    return str(value)


def normalize_placeholder(value: str) -> str:
    """Map the null placeholders to the empty string."""
    if value in NULL_PLACEHOLDERS:
        return ""
    return value


def string_id(entity: Any) -> Optional[str]:
    """Default identifier extractor for referenced entities."""
    return entity.string_id


@dataclass(frozen=True)
class ReferenceResolver:
    """Compare a relationship field by the identifiers of the referenced entities.
    
    The recorded value is the identifier on the *before* side.
    
    Parameters:
        accessor: Callable returning the referenced entity from a snapshot
        id_extractor: Callable returning the identifier of a referenced entity
    """
    
    accessor: Callable[[Any], Any]
    id_extractor: Callable[[Any], Optional[str]] = string_id
    
    def identifier(self, snapshot: Any) -> str:
        """Identifier of the entity referenced by the snapshot ('' if none)."""
        referenced = read_value(self.accessor, snapshot)
        if referenced is None:
            return ""
        return as_text(read_value(self.id_extractor, referenced))
    
    def resolve(self, label: str, before: Any, after: Any) -> Optional[ChangeEntry]:
        old_id = self.identifier(before)
        new_id = self.identifier(after)
        if old_id == new_id:
            return None
        return ChangeEntry(label=label, value=normalize_placeholder(old_id))


@dataclass(frozen=True)
class AccessorResolver:
    """Audit a field through a dedicated accessor on the entity itself.
    
    Used where the raw field is a reference whose meaningful change is
    exposed by another property (e.g. the completed date of a QA event).
    The entry is labelled with the accessor's name and records the value
    read from the *after* snapshot; an empty value produces no entry.
    
    Parameters:
        label: Label recorded for the entry (the accessor's property name)
        accessor: Callable returning the audited value from a snapshot
    """
    
    label: str
    accessor: Callable[[Any], Any]
    
    def resolve(self, label: str, before: Any, after: Any) -> Optional[ChangeEntry]:
        old_text = as_text(read_value(self.accessor, before))
        new_text = as_text(read_value(self.accessor, after))
        if old_text == new_text or not new_text:
            return None
        return ChangeEntry(label=self.label, value=normalize_placeholder(new_text))
