"""End-to-End Example: Auditing Sample Changes in DuckDB.

This example demonstrates the complete audit flow:
1. Register audited tables (with and without history retention)
2. Insert a sample and record the INSERT
3. Update it and record only the changed fields
4. Delete it and record the DELETE

Run it after installing the package (pip install -e .).
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from lims_audit.adapters.storage.duckdb_adapter import DuckDBAuditAdapter
from lims_audit.domain.audit_models import Activity
from lims_audit.domain.base_entity import BaseEntity
from lims_audit.domain.field_table import register_entity
from lims_audit.infrastructure.audit.audit_trail_service import AuditTrailService
from lims_audit.infrastructure.logging_config import setup_logging
from lims_audit.infrastructure.settings import settings


class Organization(BaseEntity):
    organization_name: Optional[str] = None


@register_entity("sample")
class Sample(BaseEntity):
    accession_number: Optional[str] = None
    status: Optional[str] = None
    collection_date: Optional[datetime] = None
    organization: Optional[Organization] = None
    sample_items: list[str] = Field(default_factory=list)


def print_history(adapter: DuckDBAuditAdapter) -> None:
    rows = adapter._get_connection().execute(
        f"SELECT reference_id, activity, sys_user_id, changes FROM {adapter.history_table} ORDER BY timestamp"
    ).fetchall()
    for reference_id, activity, sys_user_id, changes in rows:
        print(f"  {activity} sample={reference_id} by={sys_user_id}")
        if changes:
            for line in changes.decode(settings.audit_config.payload_encoding).splitlines():
                print(f"      {line}")


def main():
    setup_logging(use_json=settings.log_json, log_level=settings.log_level)
    
    adapter = DuckDBAuditAdapter(db_config=settings.db_config)
    adapter.initialize_schema()
    adapter.register_reference_table("sample", keep_history=True)
    adapter.register_reference_table("sample_item", keep_history=False)
    
    service = AuditTrailService(adapter, adapter, audit_config=settings.audit_config)
    
    county_lab = Organization(id=3, organization_name="County Lab")
    state_lab = Organization(id=4, organization_name="State Lab")
    sample = Sample(
        id=1001,
        accession_number="20240001",
        status="entered",
        organization=county_lab,
        last_updated=datetime(2024, 6, 1, 8, 0),
    )
    
    service.save_new_history(sample, sys_user_id="1", table_name="sample")
    
    updated = sample.model_copy(update={
        "status": "received",
        "organization": state_lab,
        "sample_items": ["serum"],
    })
    service.save_history(updated, sample, "1", Activity.UPDATE, "sample")
    
    # No changed fields: nothing is recorded
    service.save_history(updated.model_copy(), updated, "1", Activity.UPDATE, "sample")
    
    service.save_history(None, updated, "2", Activity.DELETE, "sample")
    
    print("History:")
    print_history(adapter)
    adapter.close()


if __name__ == "__main__":
    main()
