"""Unit tests for static field tables."""

from typing import Optional

import pytest

from lims_audit.domain.field_table import (
    FieldTable,
    FieldTableRegistry,
    default_registry,
    is_collection_type,
    register_entity,
)
from lims_audit.domain.resolvers import AccessorResolver, ReferenceResolver
from lab_entities import Analysis, LabTest, ReferredAnalysis, Sample


class TestFieldTable:
    """Test suite for FieldTable construction."""
    
    def test_field_order_and_exclusions(self):
        table = FieldTable.for_model(Sample)
        
        assert [spec.name for spec in table] == [
            "accession_number",
            "status",
            "collection_date",
            "organization",
            "supervisor",
            "sample_items",
            "notes_cache",
            "id",
            "sys_user_id",
            "system_user",
            "last_updated",
            "original_last_updated",
        ]
        assert [spec.name for spec in table.audited_fields] == [
            "accession_number",
            "status",
            "collection_date",
            "organization",
            "supervisor",
            "last_updated",
        ]
    
    def test_class_vars_and_private_attributes_are_not_fields(self):
        names = {spec.name for spec in FieldTable.for_model(Sample)}
        
        assert "TABLE_NAME" not in names
        assert "_loaded" not in names
    
    def test_subclass_fields_come_first(self):
        table = FieldTable.for_model(ReferredAnalysis)
        
        assert [spec.name for spec in table.audited_fields] == [
            "referral_reason", "status", "test", "sample", "last_updated"
        ]
    
    def test_redeclared_field_keeps_subclass_position(self):
        class AmendedSample(Sample):
            status: Optional[str] = "amended"
        
        names = [spec.name for spec in FieldTable.for_model(AmendedSample).audited_fields]
        
        assert names[:3] == ["status", "accession_number", "collection_date"]
        assert names.count("status") == 1
    
    def test_resolvers(self):
        specs = {spec.name: spec for spec in FieldTable.for_model(Analysis)}
        
        assert specs["status"].resolver is None
        assert isinstance(specs["test"].resolver, ReferenceResolver)
        assert isinstance(specs["sample"].resolver, AccessorResolver)
        assert specs["sample"].resolver.label == "collection_date"
    
    def test_accessor_reads_field(self):
        specs = {spec.name: spec for spec in FieldTable.for_model(LabTest)}
        
        assert specs["name"].accessor(LabTest(name="Glucose")) == "Glucose"
    
    def test_rejects_non_models(self):
        with pytest.raises(TypeError):
            FieldTable.for_model(dict)


class TestIsCollectionType:
    
    @pytest.mark.parametrize("annotation", [
        list, list[str], Optional[list[str]], set[int], tuple[str, ...], dict[str, int], frozenset,
    ])
    def test_collections(self, annotation):
        assert is_collection_type(annotation)
    
    @pytest.mark.parametrize("annotation", [
        str, Optional[str], bytes, int, LabTest, Optional[LabTest],
    ])
    def test_non_collections(self, annotation):
        assert not is_collection_type(annotation)


class TestFieldTableRegistry:
    
    def test_tables_are_cached_per_model(self):
        registry = FieldTableRegistry()
        
        assert registry.for_model(Sample) is registry.for_model(Sample)
    
    def test_register_by_entity_kind(self):
        registry = FieldTableRegistry()
        table = registry.register("analysis", Analysis)
        
        assert registry.is_registered("analysis")
        assert registry.table_for(Analysis(), "analysis") is table
        assert registry.table_for(ReferredAnalysis(), "analysis").model_cls is ReferredAnalysis
        assert registry.table_for(ReferredAnalysis(), "other").model_cls is ReferredAnalysis
        assert registry.table_for(ReferredAnalysis()).model_cls is ReferredAnalysis
    
    def test_register_entity_decorator(self):
        @register_entity("test_register_entity_decorator")
        class Panel(LabTest):
            panel_code: Optional[str] = None
        
        assert default_registry.is_registered("test_register_entity_decorator")
        table = default_registry.table_for(Panel(), "test_register_entity_decorator")
        assert table.model_cls is Panel
