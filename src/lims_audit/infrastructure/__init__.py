"""Infrastructure layer for LIMS Audit.

Configuration, logging and the audit trail service that wires the domain
change detector to the storage ports.
"""
