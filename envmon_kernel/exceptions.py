"""
Typed exception hierarchy for the measurement import system.

Every error has a typed class (catch by type, not message), a ``code`` class
attribute (machine-readable) and structured attributes. The ``str()`` of each
exception is user-facing text: the primary consumer of an import failure is a
person reviewing a spreadsheet, not a program.

    EnvMonitorError (base)
    |
    +-- ImportStructureError          whole import aborted, no row data
    |   +-- NoSourceFileError
    |   +-- SourceUnreadableError
    |   +-- MissingWorksheetError
    |   +-- MissingHeaderRowError
    |   +-- MissingRequiredColumnsError
    |   +-- MissingSiteSourceError
    |   +-- DefaultSiteNotFoundError
    |   +-- NoDataRowsError
    |   +-- NoRowsSuppliedError
    |   +-- InvalidRowNumberError
    |
    +-- PersistenceError
    |   +-- ReferenceDataUnavailableError
    |   +-- MeasurementStoreUnavailableError
    |   +-- MeasurementPersistenceError
    |
    +-- AuditError
    |   +-- AuditWriteError
    |
    +-- ConfigError

Row-level validation failures are NOT exceptions. They are accumulated as
messages on each preview row and never abort a batch.
"""


class EnvMonitorError(Exception):
    """
    Base exception for all measurement import errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "ENV_MONITOR_ERROR"


# Structural import failures


class ImportStructureError(EnvMonitorError):
    """Base for failures that prevent any row from being processed."""

    code: str = "IMPORT_STRUCTURE_ERROR"


class NoSourceFileError(ImportStructureError):
    """No file, or a zero-length file, was supplied."""

    code: str = "NO_SOURCE_FILE"

    def __init__(self) -> None:
        super().__init__("Please choose an Excel file to import.")


class SourceUnreadableError(ImportStructureError):
    """The supplied bytes are not a readable workbook."""

    code: str = "SOURCE_UNREADABLE"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Unable to read the Excel file. {detail}".rstrip())


class MissingWorksheetError(ImportStructureError):
    """Workbook contains no worksheet."""

    code: str = "MISSING_WORKSHEET"

    def __init__(self) -> None:
        super().__init__("The uploaded file does not contain any worksheets.")


class MissingHeaderRowError(ImportStructureError):
    """First worksheet has no non-empty row to use as header."""

    code: str = "MISSING_HEADER_ROW"

    def __init__(self) -> None:
        super().__init__("The uploaded file is missing a header row.")


class MissingRequiredColumnsError(ImportStructureError):
    """Header row lacks ParameterCode, Value, or both date columns."""

    code: str = "MISSING_REQUIRED_COLUMNS"

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            "The Excel file must include ParameterCode, Value, and either "
            "MeasurementDate or EntryDate columns."
        )


class MissingSiteSourceError(ImportStructureError):
    """No site column in the sheet and no default site supplied."""

    code: str = "MISSING_SITE_SOURCE"

    def __init__(self) -> None:
        super().__init__(
            "Select a site or include a SiteID column in the Excel file."
        )


class DefaultSiteNotFoundError(ImportStructureError):
    """The caller-chosen default site is not an active site."""

    code: str = "DEFAULT_SITE_NOT_FOUND"

    def __init__(self, site_id: int):
        self.site_id = site_id
        super().__init__(f"Site #{site_id} was not found.")


class NoDataRowsError(ImportStructureError):
    """Header parsed but no non-blank data row follows it."""

    code: str = "NO_DATA_ROWS"

    def __init__(self) -> None:
        super().__init__(
            "The uploaded file does not contain any readable data rows."
        )


class NoRowsSuppliedError(ImportStructureError):
    """Confirm was called with an empty row list."""

    code: str = "NO_ROWS_SUPPLIED"

    def __init__(self) -> None:
        super().__init__("No rows were supplied for import.")


class InvalidRowNumberError(ImportStructureError):
    """A row sent back for import carries no usable row number."""

    code: str = "INVALID_ROW_NUMBER"

    def __init__(self, position: int):
        self.position = position
        super().__init__(
            f"Row {position} of the submitted rows has no valid row number."
        )


# Persistence failures


class PersistenceError(EnvMonitorError):
    """Base exception for measurement store errors."""

    code: str = "PERSISTENCE_ERROR"


class ReferenceDataUnavailableError(PersistenceError):
    """Sites and parameters could not be read, so no row can be checked."""

    code: str = "REFERENCE_DATA_UNAVAILABLE"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Sites and parameters could not be loaded. {detail}")


class MeasurementStoreUnavailableError(PersistenceError):
    """
    The measurement store failed in a way that affects every write
    (lost connection, database unavailable).

    Raised by writers. Per-record rejections are reported as a failed
    ``WriteResult`` instead.
    """

    code: str = "MEASUREMENT_STORE_UNAVAILABLE"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"The measurement store is unavailable. {detail}")


class MeasurementPersistenceError(PersistenceError):
    """
    Confirm stopped on a fatal store error.

    Rows written before the failure stay committed; ``inserted_rows`` says
    how many.
    """

    code: str = "MEASUREMENT_PERSISTENCE_FAILED"

    def __init__(self, inserted_rows: int, total_rows: int, detail: str):
        self.inserted_rows = inserted_rows
        self.total_rows = total_rows
        self.detail = detail
        super().__init__(
            f"Saving measurement results failed after {inserted_rows} of "
            f"{total_rows} rows were imported. {detail}"
        )


# Audit failures


class AuditError(EnvMonitorError):
    """Base exception for audit trail errors."""

    code: str = "AUDIT_ERROR"


class AuditWriteError(AuditError):
    """An audit event could not be recorded."""

    code: str = "AUDIT_WRITE_FAILED"

    def __init__(self, action: str, detail: str):
        self.action = action
        self.detail = detail
        super().__init__(f"Audit event {action} could not be recorded: {detail}")


# Configuration


class ConfigError(EnvMonitorError):
    """Import settings could not be loaded or are invalid."""

    code: str = "CONFIG_ERROR"
