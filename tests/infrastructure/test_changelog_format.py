"""Tests for the changes payload format."""

from lims_audit.domain.audit_models import ChangeEntry
from lims_audit.infrastructure.audit.changelog_format import encode_changes, render_changes


class TestChangelogFormat:
    
    def test_render_one_element_per_entry(self):
        entries = [
            ChangeEntry(label="status", value="done"),
            ChangeEntry(label="test", value="12"),
        ]
        
        assert render_changes(entries) == "<status>done</status>\n<test>12</test>\n"
    
    def test_empty_value(self):
        assert render_changes([ChangeEntry(label="status", value="")]) == "<status></status>\n"
    
    def test_no_entries(self):
        assert render_changes([]) == ""
    
    def test_values_are_written_verbatim(self):
        """Existing rows were written without escaping, so new ones are too."""
        entry = ChangeEntry(label="note", value="a < b & c")
        
        assert render_changes([entry]) == "<note>a < b & c</note>\n"
    
    def test_encode_changes(self):
        entry = ChangeEntry(label="status", value="é")
        
        assert encode_changes([entry], "utf-8") == "<status>é</status>\n".encode("utf-8")
        assert encode_changes([entry], "latin-1") == b"<status>\xe9</status>\n"
