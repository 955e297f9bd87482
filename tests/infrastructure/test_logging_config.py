"""Tests for structured logging configuration."""

import json
import logging

from lims_audit.infrastructure.logging_config import StructuredFormatter, setup_logging


def make_record(**extra):
    record = logging.LogRecord(
        name="lims_audit.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Recorded %s history",
        args=("UPDATE",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    
    def test_formats_json(self):
        payload = json.loads(StructuredFormatter().format(make_record()))
        
        assert payload["level"] == "INFO"
        assert payload["logger"] == "lims_audit.test"
        assert payload["message"] == "Recorded UPDATE history"
    
    def test_includes_audit_context(self):
        record = make_record(table_name="sample", activity="U", reference_id="42")
        
        payload = json.loads(StructuredFormatter().format(record))
        
        assert payload["table_name"] == "sample"
        assert payload["activity"] == "U"
        assert payload["reference_id"] == "42"
    
    def test_includes_extra_fields(self):
        payload = json.loads(StructuredFormatter().format(make_record(extra_fields={"operation": "insert"})))
        
        assert payload["operation"] == "insert"


class TestSetupLogging:
    
    def test_json_handler(self):
        root_logger = logging.getLogger()
        previous_handlers = root_logger.handlers[:]
        previous_level = root_logger.level
        try:
            setup_logging(use_json=True, log_level="debug")
            
            assert root_logger.level == logging.DEBUG
            assert len(root_logger.handlers) == 1
            assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)
        finally:
            root_logger.handlers[:] = previous_handlers
            root_logger.setLevel(previous_level)
