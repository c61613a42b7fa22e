#!/usr/bin/env python3
"""
Preview a measurement workbook and optionally confirm the import.

Preview validates every data row of the first worksheet against the sites
and parameters in the database and prints a report. With --confirm, the
valid rows are re-validated and written.

Usage:
    python3 scripts/run_import.py --file <path.xlsx> [options]

Examples:
    # Preview only
    python3 scripts/run_import.py --file results.xlsx --site-id 3

    # Preview, then persist the valid rows
    python3 scripts/run_import.py --file results.xlsx --confirm --actor-id analyst-7

    # Machine-readable output
    python3 scripts/run_import.py --file results.xlsx --json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import measurement results: preview -> [confirm].",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--file",
        required=True,
        type=Path,
        help="Path to the .xlsx workbook.",
    )
    parser.add_argument(
        "--site-id",
        type=int,
        default=None,
        help="Default site for rows without a site id (required if the sheet has no site column).",
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Persist the valid rows after previewing.",
    )
    parser.add_argument(
        "--actor-id",
        default=None,
        help="Actor recorded on the audit event.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (header synonyms, date formats, database URL).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL. Overrides settings and ENVMON_DATABASE_URL.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before importing.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON.",
    )
    return parser.parse_args(argv)


def _print_rows(rows) -> None:
    for row in rows:
        if row.is_valid:
            continue
        print(f"  row {row.row_number}: {' '.join(row.errors)}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from envmon_config import get_import_settings
    from envmon_ingestion.promoters import SqlMeasurementWriter
    from envmon_ingestion.services import MeasurementImportService
    from envmon_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from envmon_kernel.domain.clock import SystemClock
    from envmon_kernel.exceptions import EnvMonitorError
    from envmon_kernel.logging_config import configure_logging
    from envmon_kernel.services import AuditorService, ReferenceDataLoader

    try:
        settings = get_import_settings(args.config)
    except EnvMonitorError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    init_engine_from_url(args.db_url or settings.database_url)
    if args.create_tables:
        create_tables()

    session_factory = get_session_factory()
    clock = SystemClock()
    service = MeasurementImportService(
        catalog=ReferenceDataLoader(session_factory, clock=clock),
        writer=SqlMeasurementWriter(session_factory),
        auditor=AuditorService(session_factory, clock=clock),
        clock=clock,
        settings=settings,
    )

    try:
        preview = service.preview(args.file, default_site_id=args.site_id)
    except EnvMonitorError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    output: dict = {"preview": preview.to_dict()}
    if not args.json:
        print(
            f"Preview: {preview.total_rows} rows, {preview.valid_rows} valid, "
            f"{preview.invalid_rows} invalid"
        )
        _print_rows(preview.rows)

    if args.confirm:
        try:
            confirmed = service.confirm(preview.rows, actor_id=args.actor_id)
        except EnvMonitorError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        output["confirm"] = confirmed.to_dict()
        if not args.json:
            print(confirmed.message)
            _print_rows(confirmed.rows)

    if args.json:
        print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
