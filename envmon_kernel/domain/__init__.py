"""Pure domain types for the kernel. ZERO I/O."""

from envmon_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from envmon_kernel.domain.reference_data import (
    CatalogAccessor,
    ReferenceParameter,
    ReferenceSite,
    ReferenceSnapshot,
    normalize_parameter_category,
    normalize_parameter_code,
)

__all__ = [
    "CatalogAccessor",
    "Clock",
    "DeterministicClock",
    "ReferenceParameter",
    "ReferenceSite",
    "ReferenceSnapshot",
    "SystemClock",
    "normalize_parameter_category",
    "normalize_parameter_code",
]
