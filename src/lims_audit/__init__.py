"""LIMS Audit: field-level change auditing for laboratory entities.

Every insert, update or delete of a persisted business entity can be recorded
as a History row naming who changed it, when, and which fields changed.
"""

__version__ = "1.0.0"
