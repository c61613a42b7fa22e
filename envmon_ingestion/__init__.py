"""
envmon_ingestion -- Spreadsheet import of environmental measurements.

Reads an uploaded workbook, maps its headers, coerces and validates every
row against live site/parameter reference data (Preview), then re-validates
and persists accepted rows one at a time (Confirm).

Architecture:
    envmon_ingestion/ is a top-level package. Nothing in envmon_kernel/
    imports from ingestion.
"""
