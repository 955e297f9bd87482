"""Unit tests for audit trail models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from lims_audit.domain.audit_models import (
    Activity,
    ChangeEntry,
    History,
    ReferenceTable,
    coerce_activity,
)
from lab_entities import LabTest


class TestActivity:
    
    @pytest.mark.parametrize("value,expected", [
        (Activity.UPDATE, Activity.UPDATE),
        ("I", Activity.INSERT),
        ("D", Activity.DELETE),
        ("update", Activity.UPDATE),
        (None, None),
    ])
    def test_coerce_activity(self, value, expected):
        assert coerce_activity(value) is expected
    
    def test_coerce_unknown_activity(self):
        with pytest.raises(ValueError):
            coerce_activity("X")
    
    @pytest.mark.parametrize("value", [5, 1.5, object()])
    def test_coerce_non_string_activity(self, value):
        with pytest.raises(ValueError):
            coerce_activity(value)


class TestHistory:
    
    def test_history_is_immutable(self):
        history = History(sys_user_id="1", reference_table="10", activity=Activity.INSERT)
        
        with pytest.raises(ValidationError):
            history.reference_id = "2"
    
    def test_actor_is_required(self):
        with pytest.raises(ValidationError):
            History(sys_user_id="", reference_table="10", activity=Activity.INSERT)
    
    def test_to_audit_dict(self):
        timestamp = datetime(2024, 5, 1, 12, 0)
        history = History(
            reference_id="42",
            sys_user_id="1",
            reference_table="10",
            timestamp=timestamp,
            activity=Activity.UPDATE,
            changes=b"<status>done</status>\n",
        )
        
        assert history.to_audit_dict() == {
            'id': None,
            'reference_id': "42",
            'sys_user_id': "1",
            'reference_table': "10",
            'timestamp': timestamp,
            'activity': "U",
            'changes': b"<status>done</status>\n",
        }


class TestSmallModels:
    
    def test_change_entry_requires_label(self):
        with pytest.raises(ValidationError):
            ChangeEntry(label="", value="x")
    
    def test_reference_table_retention_defaults_to_unconfigured(self):
        assert ReferenceTable(id="1", table_name="sample").keep_history is None
    
    def test_string_id(self):
        assert LabTest(id=12).string_id == "12"
        assert LabTest().string_id == ""
