"""Static Field Tables for Audited Entities.

A field table lists, for one entity model, every persisted field in audit
order together with how it is read and compared. Tables are built once per
model class from the pydantic field definitions and cached, so diffing never
needs to inspect an entity's type at runtime beyond the first call.

Field order:
    Fields declared on the concrete class come first, then fields of each
    ancestor class up to (and including) BaseEntity, each in declaration
    order.

Exclusions:
    - ClassVar and private attributes (never pydantic fields)
    - Fields declared with Field(exclude=True) (not persisted)
    - Collection-typed fields (lists, sets, tuples, dicts, ...)
    - Protocol fields: id, sys_user_id, system_user, original_last_updated
"""

import inspect
import logging
import types
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Dict, Iterator, List, Optional, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from lims_audit.domain.resolvers import AccessorResolver, ReferenceResolver

logger = logging.getLogger(__name__)

RESERVED_FIELD_NAMES = frozenset({
    "id",
    "sys_user_id",
    "system_user",
    "original_last_updated",
})

# Fields holding a reference to another entity, compared by identifier
RELATIONSHIP_FIELD_NAMES = frozenset({
    "test",
    "test_section",
    "county",
    "region",
    "scriptlet",
    "organization",
    "panel",
    "person",
    "test_result",
    "analysis",
    "analyte",
    "sample_item",
    "parent_analysis",
    "parent_result",
    "sample",
    "method",
    "test_trailer",
    "unit_of_measure",
    "test_analyte",
    "label",
    "city",
    "added_test",
})

# Fields audited through another property of the owning entity
SPECIAL_ACCESSORS = {
    "qa_event": "completed_date",
    "sample": "collection_date",
}

Resolver = Union[ReferenceResolver, AccessorResolver]


@dataclass(frozen=True)
class FieldSpec:
    """How one field of an entity model is audited.
    
    Parameters:
        name: Attribute name on the model
        label: Tag name recorded in the changes payload
        accessor: Callable reading the field from a snapshot
        excluded: True if the field is never diffed
        resolver: Relationship/special-case resolver, or None for plain fields
    """
    
    name: str
    label: str
    accessor: Callable[[Any], Any]
    excluded: bool = False
    resolver: Optional[Resolver] = None


def is_collection_type(annotation: Any) -> bool:
    """Check whether a field annotation declares a multi-valued container.
    
    Optional/Union annotations are collections if any non-None member is.
    Strings and bytes are not treated as collections.
    """
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        return any(
            is_collection_type(arg) for arg in get_args(annotation) if arg is not type(None)
        )
    target = origin or annotation
    if not isinstance(target, type):
        return False
    if issubclass(target, (str, bytes, bytearray)):
        return False
    return issubclass(target, (Collection, Mapping))


def _declared_field_names(model_cls: type) -> List[str]:
    """Field names in audit order: subclass fields first, then ancestors."""
    names: List[str] = []
    seen = set()
    for klass in model_cls.__mro__:
        if klass is BaseModel or not (isinstance(klass, type) and issubclass(klass, BaseModel)):
            continue
        for name in inspect.get_annotations(klass):
            if name in model_cls.model_fields and name not in seen:
                seen.add(name)
                names.append(name)
    return names


def _exclusion_reason(name: str, field_info: FieldInfo) -> Optional[str]:
    if name in RESERVED_FIELD_NAMES:
        return "reserved"
    if field_info.exclude is True:
        return "transient"
    if is_collection_type(field_info.annotation):
        return "collection"
    return None


def _resolver_for(name: str) -> Optional[Resolver]:
    if name in SPECIAL_ACCESSORS:
        accessor_name = SPECIAL_ACCESSORS[name]
        return AccessorResolver(label=accessor_name, accessor=attrgetter(accessor_name))
    if name in RELATIONSHIP_FIELD_NAMES:
        return ReferenceResolver(accessor=attrgetter(name))
    return None


class FieldTable:
    """Ordered audit field specifications for one entity model."""
    
    def __init__(self, model_cls: type, fields: List[FieldSpec]):
        self.model_cls = model_cls
        self.fields = tuple(fields)
    
    @classmethod
    def for_model(cls, model_cls: type) -> 'FieldTable':
        """Build the field table of a pydantic entity model.
        
        Parameters:
            model_cls: Entity model class (a BaseModel subclass)
        
        Returns:
            FieldTable listing every model field in audit order
        
        Raises:
            TypeError: If model_cls is not a pydantic model
        """
        if not (isinstance(model_cls, type) and issubclass(model_cls, BaseModel)):
            raise TypeError(f"Cannot build a field table for {model_cls!r}")
        
        specs = []
        for name in _declared_field_names(model_cls):
            field_info = model_cls.model_fields[name]
            reason = _exclusion_reason(name, field_info)
            specs.append(FieldSpec(
                name=name,
                label=field_info.alias or name,
                accessor=attrgetter(name),
                excluded=reason is not None,
                resolver=None if reason else _resolver_for(name),
            ))
            if reason:
                logger.debug(f"{model_cls.__name__}.{name} excluded from audit ({reason})")
        return cls(model_cls, specs)
    
    @property
    def audited_fields(self) -> List[FieldSpec]:
        """Fields that take part in diffing, in audit order."""
        return [spec for spec in self.fields if not spec.excluded]
    
    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)
    
    def __len__(self) -> int:
        return len(self.fields)


class FieldTableRegistry:
    """Cache of field tables, addressable by model class or entity kind.
    
    A table registered for an entity kind (table name) is used only for
    snapshots of exactly the registered class; any other snapshot is walked
    through the table of its own concrete class.
    """
    
    def __init__(self):
        self._by_kind: Dict[str, FieldTable] = {}
        self._by_model: Dict[type, FieldTable] = {}
    
    def register(self, entity_kind: str, model_cls: type) -> FieldTable:
        """Register the model audited under an entity kind.
        
        Parameters:
            entity_kind: Logical table name (e.g. 'sample')
            model_cls: Entity model class
        
        Returns:
            The field table now registered for the kind
        """
        table = self.for_model(model_cls)
        self._by_kind[entity_kind] = table
        logger.debug(f"Registered field table for '{entity_kind}': {model_cls.__name__}")
        return table
    
    def for_model(self, model_cls: type) -> FieldTable:
        table = self._by_model.get(model_cls)
        if table is None:
            table = FieldTable.for_model(model_cls)
            self._by_model[model_cls] = table
        return table
    
    def table_for(self, snapshot: Any, entity_kind: Optional[str] = None) -> FieldTable:
        """Field table to use for a snapshot.
        
        Parameters:
            snapshot: The 'before' snapshot being diffed
            entity_kind: Logical table name, if known
        
        Returns:
            The table registered for entity_kind when it was built for the
            snapshot's class, else the snapshot class's table
        """
        registered = self._by_kind.get(entity_kind) if entity_kind is not None else None
        if registered is not None and type(snapshot) is registered.model_cls:
            return registered
        if registered is not None:
            logger.debug(
                f"Snapshot class {type(snapshot).__name__} differs from "
                f"{registered.model_cls.__name__} registered for '{entity_kind}'"
            )
        return self.for_model(type(snapshot))
    
    def is_registered(self, entity_kind: str) -> bool:
        return entity_kind in self._by_kind


default_registry = FieldTableRegistry()


def register_entity(entity_kind: str):
    """Class decorator registering an entity model under an entity kind.
    
    Example:
        ```python
        @register_entity("sample")
        class Sample(BaseEntity):
            accession_number: Optional[str] = None
        ```
    """
    def decorator(model_cls: type) -> type:
        default_registry.register(entity_kind, model_cls)
        return model_cls
    return decorator
