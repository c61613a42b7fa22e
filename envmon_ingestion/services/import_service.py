"""
Import service: Preview (read-only) and Confirm (persist) of measurement sheets.

Responsibility:
    Orchestrates the sheet adapter, header mapper, cell coercer and row
    validator. Preview reports every row with its errors and persists
    nothing. Confirm re-validates caller-echoed rows against a fresh
    reference snapshot and writes each accepted row on its own.

Architecture position:
    Ingestion > Services -- imperative shell. Collaborators (catalog,
    writer, audit sink, adapter, clock) are injected.

Invariants:
    - Both entry points run the same ``validate_import_row``.
    - Every call loads its own snapshot; none is reused.
    - ``inserted_rows + failed_rows == total_rows`` on every ConfirmResult.

Failure modes:
    - ImportStructureError subclasses: the sheet cannot be processed at all.
    - NoRowsSuppliedError: Confirm called with nothing to import.
    - ReferenceDataUnavailableError: the reference snapshot could not be read.
    - MeasurementPersistenceError: the store failed mid-Confirm; rows already
      written stay committed.
    - Audit failures are logged and swallowed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import uuid4

from envmon_config.schema import ImportSettings
from envmon_ingestion.adapters.base import SheetAdapter, SheetSource
from envmon_ingestion.adapters.xlsx_adapter import XlsxSheetAdapter
from envmon_ingestion.domain.types import (
    CanonicalField,
    ConfirmResult,
    ImportBatchResult,
    ImportRowInput,
    ImportRowPreview,
    MeasurementRecord,
)
from envmon_ingestion.domain.validators import validate_import_row
from envmon_ingestion.mapping.engine import parse_echoed_row, parse_row
from envmon_ingestion.mapping.headers import build_header_map
from envmon_ingestion.promoters.base import MeasurementWriter
from envmon_kernel.domain.clock import Clock, SystemClock
from envmon_kernel.domain.reference_data import CatalogAccessor
from envmon_kernel.exceptions import (
    DefaultSiteNotFoundError,
    ImportStructureError,
    MeasurementPersistenceError,
    MeasurementStoreUnavailableError,
    MissingSiteSourceError,
    NoDataRowsError,
    NoRowsSuppliedError,
)
from envmon_kernel.logging_config import LogContext, get_logger
from envmon_kernel.services.auditor_service import AuditSink

logger = get_logger("ingestion.import_service")

AUDIT_ACTION = "MeasurementResult.Import"
AUDIT_ENTITY_TYPE = "MeasurementResult"
AUDIT_ENTITY_ID = "bulk"

NOTHING_IMPORTED_MESSAGE = (
    "No measurement results were imported because all rows contain validation errors."
)


class MeasurementImportService:
    """Two-phase spreadsheet import of measurement results."""

    def __init__(
        self,
        catalog: CatalogAccessor,
        writer: MeasurementWriter,
        auditor: AuditSink | None = None,
        clock: Clock | None = None,
        settings: ImportSettings | None = None,
        adapter: SheetAdapter | None = None,
    ):
        self._catalog = catalog
        self._writer = writer
        self._auditor = auditor
        self._clock = clock or SystemClock()
        self._settings = settings or ImportSettings()
        self._adapter = adapter or XlsxSheetAdapter()

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def preview(
        self,
        source: SheetSource | None,
        default_site_id: int | None = None,
    ) -> ImportBatchResult:
        """
        Validate every data row of the first worksheet. Persists nothing.

        Args:
            source: Uploaded workbook as a binary stream, bytes, or a path.
            default_site_id: Site used for rows whose site cell is empty.

        Raises:
            ImportStructureError: the sheet cannot be processed at all.
        """
        with LogContext.bind(correlation_id=str(uuid4()), producer="ingestion.preview"):
            logger.info("import_preview_started", extra={"default_site_id": default_site_id})
            try:
                result = self._preview(source, default_site_id)
            except ImportStructureError as exc:
                logger.warning(
                    "import_preview_rejected",
                    extra={"error_code": exc.code, "error_msg": str(exc)},
                )
                raise
            logger.info(
                "import_preview_completed",
                extra={
                    "total_rows": result.total_rows,
                    "valid_rows": result.valid_rows,
                    "invalid_rows": result.invalid_rows,
                },
            )
            return result

    def _preview(
        self,
        source: SheetSource | None,
        default_site_id: int | None,
    ) -> ImportBatchResult:
        sheet = self._adapter.read(source)

        header_map = build_header_map(sheet.header_cells, self._settings.header_synonyms)
        header_map.require_mandatory_columns()
        logger.info(
            "import_header_mapped",
            extra={
                "header_row": sheet.header_row_number,
                "columns": {f.value: col for f, col in header_map.columns.items()},
            },
        )

        snapshot = self._catalog.load_snapshot()
        if not header_map.has(CanonicalField.SITE_ID) and default_site_id is None:
            raise MissingSiteSourceError()
        if default_site_id is not None and snapshot.site(default_site_id) is None:
            raise DefaultSiteNotFoundError(default_site_id)

        now = self._clock.now_naive()
        previews: list[ImportRowPreview] = []
        for raw in sheet.rows:
            parsed = parse_row(raw, header_map, self._settings.local_date_formats)
            if parsed is None:
                continue
            if parsed.site_id is None and default_site_id is not None:
                parsed.site_id = default_site_id
            preview = validate_import_row(parsed, snapshot, now)
            logger.debug(
                "import_row_validated",
                extra={"row_number": preview.row_number, "errors": list(preview.errors)},
            )
            previews.append(preview)

        if not previews:
            raise NoDataRowsError()
        return ImportBatchResult(rows=tuple(previews))

    # -------------------------------------------------------------------------
    # Confirm
    # -------------------------------------------------------------------------

    def confirm(
        self,
        rows: Iterable[ImportRowPreview | Mapping[str, Any]],
        actor_id: str | None = None,
    ) -> ConfirmResult:
        """
        Re-validate rows echoed back from Preview and persist the valid ones.

        Each row is written in its own transaction. A row the store rejects
        is reported as failed with "Row could not be saved." and the import
        continues. Dict rows are coerced like sheet cells; a field that cannot
        be read fails only its own row.

        Raises:
            NoRowsSuppliedError: ``rows`` is empty.
            InvalidRowNumberError: a dict row has no usable ``row_number``.
            ReferenceDataUnavailableError: sites and parameters could not be read.
            MeasurementPersistenceError: the store became unavailable.
        """
        supplied = list(rows)
        if not supplied:
            raise NoRowsSuppliedError()

        with LogContext.bind(
            batch_id=str(uuid4()),
            actor_id=actor_id,
            producer="ingestion.confirm",
        ):
            logger.info("import_confirm_started", extra={"rows_supplied": len(supplied)})

            inputs = [
                self._confirm_input(r, position)
                for position, r in enumerate(supplied, start=1)
            ]
            snapshot = self._catalog.load_snapshot()
            now = self._clock.now_naive()
            previews = [validate_import_row(i, snapshot, now) for i in inputs]
            total = len(previews)

            results: list[ImportRowPreview] = []
            inserted = 0
            for preview in previews:
                if not preview.is_valid:
                    results.append(preview)
                    continue
                try:
                    outcome = self._writer.write(MeasurementRecord.from_preview(preview))
                except MeasurementStoreUnavailableError as exc:
                    logger.error(
                        "import_confirm_aborted",
                        extra={
                            "row_number": preview.row_number,
                            "inserted_rows": inserted,
                            "total_rows": total,
                        },
                    )
                    raise MeasurementPersistenceError(inserted, total, exc.detail) from exc

                if outcome.success:
                    inserted += 1
                    results.append(preview)
                else:
                    logger.warning(
                        "measurement_write_failed",
                        extra={"row_number": preview.row_number, "error_msg": outcome.error},
                    )
                    results.append(
                        preview.with_error(f"Row could not be saved. {outcome.error or ''}".rstrip())
                    )

            failed = total - inserted
            if inserted > 0:
                self._record_audit(inserted, total, actor_id)

            message = (
                f"Imported {inserted} of {total} rows." if inserted > 0 else NOTHING_IMPORTED_MESSAGE
            )
            logger.info(
                "import_confirm_completed",
                extra={"total_rows": total, "inserted_rows": inserted, "failed_rows": failed},
            )
            return ConfirmResult(
                rows=tuple(results),
                total_rows=total,
                inserted_rows=inserted,
                failed_rows=failed,
                message=message,
            )

    def _confirm_input(
        self,
        row: ImportRowPreview | Mapping[str, Any],
        position: int,
    ) -> ImportRowInput:
        if isinstance(row, ImportRowPreview):
            return ImportRowInput.from_preview(row)
        return parse_echoed_row(row, position, self._settings.local_date_formats)

    def _record_audit(self, inserted: int, total: int, actor_id: str | None) -> None:
        if self._auditor is None:
            return
        try:
            self._auditor.record(
                AUDIT_ACTION,
                AUDIT_ENTITY_TYPE,
                AUDIT_ENTITY_ID,
                f"Imported {inserted} measurement results.",
                {"inserted": inserted, "total": total},
                actor_id=actor_id,
            )
        except Exception:
            # rows are already committed; a sink failure is only logged
            logger.warning(
                "audit_failed",
                extra={"action": AUDIT_ACTION},
                exc_info=True,
            )
