"""Domain Services.

This package contains domain services that implement business logic
without infrastructure dependencies.
"""

from lims_audit.domain.services.change_detector import ChangeDetector

__all__ = ['ChangeDetector']
