"""
Reference data snapshot -- sites and parameters for one validation pass.

A ``ReferenceSnapshot`` is a point-in-time copy of master data, keyed for
O(1) lookup per row. It is built fresh for every Preview and every Confirm
and never mutated or shared between calls.

ZERO I/O. Loading lives in ``envmon_kernel.services.reference_data_loader``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Protocol, runtime_checkable

PARAMETER_CATEGORIES = frozenset({"air", "water"})
DEFAULT_PARAMETER_CATEGORY = "water"


def normalize_parameter_category(value: str | None) -> str:
    """Return "air" or "water"; blank or unrecognized values become "water"."""
    if value is None or not value.strip():
        return DEFAULT_PARAMETER_CATEGORY
    normalized = value.strip().lower()
    return normalized if normalized in PARAMETER_CATEGORIES else DEFAULT_PARAMETER_CATEGORY


def normalize_parameter_code(value: str | None) -> str:
    """Trimmed, upper-cased parameter code ("" for None)."""
    return (value or "").strip().upper()


@dataclass(frozen=True)
class ReferenceSite:
    """Active monitoring site."""

    id: int
    name: str


@dataclass(frozen=True)
class ReferenceParameter:
    """Active measured parameter. ``code`` is normalized upper case."""

    code: str
    name: str
    unit: str | None = None
    category: str = DEFAULT_PARAMETER_CATEGORY


@dataclass(frozen=True)
class ReferenceSnapshot:
    """Keyed, read-only view of sites and parameters."""

    sites: Mapping[int, ReferenceSite] = field(default_factory=dict)
    parameters: Mapping[str, ReferenceParameter] = field(default_factory=dict)
    captured_at: datetime | None = None

    @classmethod
    def build(
        cls,
        sites: Iterable[ReferenceSite],
        parameters: Iterable[ReferenceParameter],
        captured_at: datetime | None = None,
    ) -> ReferenceSnapshot:
        """Key sites by id and parameters by normalized code."""
        site_map = {s.id: s for s in sites}
        param_map: dict[str, ReferenceParameter] = {}
        for p in parameters:
            code = normalize_parameter_code(p.code)
            param_map[code] = ReferenceParameter(
                code=code,
                name=p.name,
                unit=p.unit,
                category=normalize_parameter_category(p.category),
            )
        return cls(
            sites=MappingProxyType(site_map),
            parameters=MappingProxyType(param_map),
            captured_at=captured_at,
        )

    def site(self, site_id: int) -> ReferenceSite | None:
        return self.sites.get(site_id)

    def parameter(self, code: str) -> ReferenceParameter | None:
        return self.parameters.get(normalize_parameter_code(code))


@runtime_checkable
class CatalogAccessor(Protocol):
    """Source of the current active sites and parameters.

    Must reflect the latest committed state at call time; implementations
    must not cache across calls.
    """

    def load_snapshot(self) -> ReferenceSnapshot:
        ...
