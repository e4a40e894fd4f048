from intake.ingestion.exceptions import ClientInputError


class PdfInspectionError(ClientInputError):
    """Raised when a PDF cannot be opened or has no pages."""


class InvalidCredentialsError(PdfInspectionError):
    """Raised when a protected PDF is opened with a missing or wrong password."""
