"""Header mapping and cell coercion for measurement rows. ZERO I/O."""

from envmon_ingestion.mapping.engine import (
    CellResult,
    CellState,
    coerce_boolean,
    coerce_datetime,
    coerce_float,
    coerce_integer,
    coerce_string,
    parse_echoed_row,
    parse_row,
)
from envmon_ingestion.mapping.headers import (
    HEADER_SYNONYMS,
    HeaderMap,
    build_header_map,
    normalize_header,
)

__all__ = [
    "HEADER_SYNONYMS",
    "CellResult",
    "CellState",
    "HeaderMap",
    "build_header_map",
    "coerce_boolean",
    "coerce_datetime",
    "coerce_float",
    "coerce_integer",
    "coerce_string",
    "normalize_header",
    "parse_echoed_row",
    "parse_row",
]
