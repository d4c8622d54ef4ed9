# Path: backend/carbonledger/exceptions/ledger_exceptions.py

from typing import Optional


class LedgerError(Exception):
    """Base class for domain errors translated to HTTP responses at the request boundary."""

    status_code: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PublishedRecordError(LedgerError):
    status_code = 403
    default_message = "Cannot modify published emissions"


class InvalidStatusTransition(LedgerError):
    status_code = 400
    default_message = "Invalid status transition"


class ReportNotReady(LedgerError):
    status_code = 400
    default_message = "Report is not ready for download"


class InvalidReportTransition(LedgerError):
    status_code = 409
    default_message = "Report job cannot change to the requested status"


class DataIntegrityError(LedgerError):
    """Aggregation input violates a stored-data invariant (e.g. a scope outside 1..3)."""

    status_code = 500
    default_message = "Emission data failed integrity checks"
