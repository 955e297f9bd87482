"""Laboratory entity models used across the audit trail tests."""

from datetime import date, datetime
from typing import ClassVar, Optional

from pydantic import Field, PrivateAttr

from lims_audit.domain.base_entity import BaseEntity


class Organization(BaseEntity):
    organization_name: Optional[str] = None


class Person(BaseEntity):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class Address(BaseEntity):
    """Contact address whose plain fields share relationship names."""
    
    street: Optional[str] = None
    city: Optional[str] = None
    label: Optional[str] = None


class Section(BaseEntity):
    section_name: Optional[str] = None


class LabTest(BaseEntity):
    name: Optional[str] = None
    test_section: Optional[Section] = None


class QaEvent(BaseEntity):
    name: Optional[str] = None


class Sample(BaseEntity):
    """Sample with a mix of plain, relationship and excluded fields."""
    
    TABLE_NAME: ClassVar[str] = "sample"
    
    accession_number: Optional[str] = None
    status: Optional[str] = None
    collection_date: Optional[datetime] = None
    organization: Optional[Organization] = None
    supervisor: Optional[Person] = None
    sample_items: list[str] = Field(default_factory=list)
    notes_cache: Optional[str] = Field(None, exclude=True)
    
    _loaded: bool = PrivateAttr(default=False)


class Analysis(BaseEntity):
    status: Optional[str] = None
    test: Optional[LabTest] = None
    sample: Optional[Sample] = None


class ReferredAnalysis(Analysis):
    referral_reason: Optional[str] = None


class SampleItem(BaseEntity):
    sort_order: Optional[str] = None
    sample: Optional[Sample] = None
    
    @property
    def collection_date(self) -> Optional[datetime]:
        return self.sample.collection_date if self.sample else None


class AnalysisQaEvent(BaseEntity):
    qa_event: Optional[QaEvent] = None
    completed_at: Optional[datetime] = None
    analysis: Optional[Analysis] = None
    
    @property
    def completed_date(self) -> Optional[date]:
        return self.completed_at.date() if self.completed_at else None


class LegacyResult(BaseEntity):
    """Entity whose payload tags keep the legacy camelCase names."""
    
    result_value: Optional[str] = Field(None, alias="resultValue")
    test_result: Optional[BaseEntity] = Field(None, alias="testResult")
