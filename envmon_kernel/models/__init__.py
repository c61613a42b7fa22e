"""ORM models. Importing this package registers every table on Base.metadata."""

from envmon_kernel.models.audit_event import AuditEvent
from envmon_kernel.models.measurement import MeasurementResult
from envmon_kernel.models.parameter import Parameter
from envmon_kernel.models.site import MonitoringSite

__all__ = [
    "AuditEvent",
    "MeasurementResult",
    "MonitoringSite",
    "Parameter",
]
