"""Kernel services: imperative shell around the database."""

from envmon_kernel.services.auditor_service import AuditorService, AuditSink
from envmon_kernel.services.reference_data_loader import ReferenceDataLoader

__all__ = [
    "AuditSink",
    "AuditorService",
    "ReferenceDataLoader",
]
