"""Tests for MeasurementImportService.preview."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from envmon_config.schema import ImportSettings
from envmon_ingestion.services.import_service import MeasurementImportService
from envmon_kernel.exceptions import (
    DefaultSiteNotFoundError,
    ImportStructureError,
    MissingRequiredColumnsError,
    MissingSiteSourceError,
    NoDataRowsError,
    NoSourceFileError,
    ReferenceDataUnavailableError,
    SourceUnreadableError,
)
from envmon_kernel.models.measurement import MeasurementResult
from envmon_kernel.services.reference_data_loader import ReferenceDataLoader

HEADER = ["Source", "Parameter", "Value", "Measurement Date"]


class TestPreviewScenarios:
    def test_unknown_parameter_reported(self, import_service, make_workbook):
        data = make_workbook([HEADER, [1, "XYZ", 5.5, datetime(2024, 3, 1, 10, 0)]])

        result = import_service.preview(data)

        assert result.total_rows == 1
        assert result.valid_rows == 0
        assert result.invalid_rows == 1
        assert any("XYZ" in e for e in result.rows[0].errors)

    def test_blank_row_between_valid_rows_not_counted(self, import_service, make_workbook):
        data = make_workbook([
            HEADER,
            [1, "PM10", 12.5, datetime(2024, 3, 1, 10, 0)],
            [None, None, None, None],
            [2, "cod", "40.1", datetime(2024, 3, 1, 11, 0)],
        ])

        result = import_service.preview(data)

        assert result.total_rows == 2
        assert result.valid_rows == 2
        assert [r.row_number for r in result.rows] == [2, 4]

    def test_numeric_serial_date(self, import_service, make_workbook):
        data = make_workbook([HEADER, [1, "PM10", 3, 45000]])

        result = import_service.preview(data)

        assert result.rows[0].is_valid
        assert result.rows[0].measurement_date == datetime(2023, 3, 15)


class TestPreviewRows:
    def test_row_fields_filled_from_reference(self, import_service, make_workbook):
        data = make_workbook([
            HEADER + ["Approved", "Notes"],
            [2, " cod ", 41, datetime(2024, 3, 2, 8, 0), "yes", " after rain "],
        ])

        row = import_service.preview(data).rows[0]

        assert row.is_valid
        assert row.site_name == "River Outfall"
        assert row.parameter_code == "COD"
        assert row.parameter_name == "Chemical Oxygen Demand"
        assert row.parameter_category == "water"
        assert row.unit == "mg/L"
        assert row.remark == "after rain"
        assert row.entry_date == datetime(2024, 3, 2, 8, 0)
        assert row.is_approved is True
        # stamped from the injected clock as naive UTC
        assert row.approved_at == datetime(2024, 6, 1, 8, 30)

    def test_default_site_fills_missing_site(self, import_service, make_workbook):
        data = make_workbook([
            ["Parameter", "Value", "Entry Date"],
            ["PM10", 1, datetime(2024, 3, 1)],
        ])

        row = import_service.preview(data, default_site_id=2).rows[0]

        assert row.site_id == 2
        assert row.is_valid

    def test_default_site_does_not_override_sheet_value(self, import_service, make_workbook):
        data = make_workbook([
            HEADER,
            [1, "PM10", 1, datetime(2024, 3, 1)],
            [None, "PM10", 2, datetime(2024, 3, 1)],
        ])

        rows = import_service.preview(data, default_site_id=2).rows

        assert [r.site_id for r in rows] == [1, 2]

    def test_deleted_reference_rows_are_unknown(self, import_service, make_workbook):
        data = make_workbook([HEADER, [9, "NOX", 1, datetime(2024, 3, 1)]])

        row = import_service.preview(data).rows[0]

        assert row.errors == ("Site #9 was not found.", "Parameter NOX was not found.")

    def test_coercion_errors_surface_on_row(self, import_service, make_workbook):
        data = make_workbook([HEADER, ["abc", "PM10", "lots", "whenever"]])

        row = import_service.preview(data).rows[0]

        assert row.errors == (
            "Site ID is invalid.",
            "Measurement date value is invalid.",
            "Value is invalid.",
            "Site ID is required.",
            "Measurement date is required.",
        )

    def test_settings_synonyms_and_date_formats(self, catalog, counting_writer, deterministic_clock, make_workbook):
        service = MeasurementImportService(
            catalog=catalog,
            writer=counting_writer,
            clock=deterministic_clock,
            settings=ImportSettings(
                header_synonyms={"station": "SiteId", "reading": "Value"},
                local_date_formats=("%Y.%m.%d",),
            ),
        )
        data = make_workbook([
            ["Station", "Parameter", "Reading", "Measurement Date"],
            [1, "PM10", 7, "2024.03.09"],
        ])

        row = service.preview(data).rows[0]

        assert row.is_valid
        assert row.measurement_date == datetime(2024, 3, 9)

    def test_preview_persists_nothing(self, import_service, make_workbook, seeded_reference, counting_writer, audit_sink):
        data = make_workbook([HEADER, [1, "PM10", 12.5, datetime(2024, 3, 1, 10, 0)]])

        import_service.preview(data)

        assert counting_writer.records == []
        assert audit_sink.events == []
        with seeded_reference() as session:
            assert session.scalar(select(func.count()).select_from(MeasurementResult)) == 0

    def test_preview_logs(self, import_service, make_workbook, captured_logs):
        data = make_workbook([HEADER, [1, "PM10", 12.5, datetime(2024, 3, 1, 10, 0)]])

        import_service.preview(data)

        messages = [r["message"] for r in captured_logs()]
        assert "import_preview_started" in messages
        assert "import_header_mapped" in messages
        completed = next(r for r in captured_logs() if r["message"] == "import_preview_completed")
        assert completed["total_rows"] == 1
        assert completed["valid_rows"] == 1
        assert completed["producer"] == "ingestion.preview"


class TestPreviewStructuralFailures:
    def test_no_file(self, import_service):
        with pytest.raises(NoSourceFileError):
            import_service.preview(None)

    def test_unreadable_file(self, import_service):
        with pytest.raises(SourceUnreadableError):
            import_service.preview(b"\x00\x01not a zip")

    def test_missing_required_columns(self, import_service, make_workbook):
        data = make_workbook([["Source", "Parameter", "Measurement Date"], [1, "PM10", 45000]])
        with pytest.raises(MissingRequiredColumnsError) as exc_info:
            import_service.preview(data)
        assert exc_info.value.missing == ["Value"]

    def test_no_site_column_and_no_default(self, import_service, make_workbook):
        data = make_workbook([["Parameter", "Value", "Entry Date"], ["PM10", 1, 45000]])
        with pytest.raises(MissingSiteSourceError) as exc_info:
            import_service.preview(data)
        assert str(exc_info.value) == "Select a site or include a SiteID column in the Excel file."

    def test_unknown_default_site(self, import_service, make_workbook):
        data = make_workbook([HEADER, [1, "PM10", 1, 45000]])
        with pytest.raises(DefaultSiteNotFoundError) as exc_info:
            import_service.preview(data, default_site_id=9)
        assert str(exc_info.value) == "Site #9 was not found."

    def test_header_only(self, import_service, make_workbook):
        data = make_workbook([HEADER, [None, None, None, None], []])
        with pytest.raises(NoDataRowsError) as exc_info:
            import_service.preview(data)
        assert str(exc_info.value) == "The uploaded file does not contain any readable data rows."

    def test_rejection_is_logged(self, import_service, make_workbook, captured_logs):
        with pytest.raises(ImportStructureError):
            import_service.preview(make_workbook([HEADER]))
        rejected = [r for r in captured_logs() if r["message"] == "import_preview_rejected"]
        assert rejected and rejected[0]["error_code"] == "NO_DATA_ROWS"

    def test_reference_store_failure_is_typed(self, counting_writer, make_workbook, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'reference.db'}")
        service = MeasurementImportService(
            catalog=ReferenceDataLoader(sessionmaker(bind=engine)),
            writer=counting_writer,
        )

        with pytest.raises(ReferenceDataUnavailableError):
            service.preview(make_workbook([HEADER, [1, "PM10", 1, 45000]]))
        engine.dispose()
