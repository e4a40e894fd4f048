class IngestionError(Exception):
    """Base exception for all ingestion-related errors."""


class ClientInputError(IngestionError):
    """Raised when the upload request itself is unacceptable. Never retried."""


class InvalidIdentifierError(ClientInputError):
    """Raised when a tenant or submission id cannot be used as a key segment."""


class UnreadableFileError(ClientInputError):
    """Raised when a local file handed to the CLI cannot be read."""


class SubmissionNotFoundError(ClientInputError):
    """Raised when no submission profile exists for the tenant/submission."""


class MissingDocumentTypeError(ClientInputError):
    """Raised when the request carries no document type."""


class InvalidDocumentTypeError(ClientInputError):
    """Raised when the document type is not a recognized value."""


class DocumentTypeAccessError(ClientInputError):
    """Raised when the caller may not upload files of the declared document type."""


class EmptyFileError(ClientInputError):
    """Raised when the file payload is empty."""


class FileTooLargeError(ClientInputError):
    """Raised when the file payload exceeds the configured upload limit."""


class FileRecordNotFoundError(ClientInputError):
    """Raised when a requested file record does not exist."""


class ClassificationError(IngestionError):
    """Raised when content sniffing cannot read the stream or the stream is empty."""


class StorageError(IngestionError):
    """Raised when the object store or aggregation store call fails."""


class ObjectNotFoundError(StorageError):
    """Raised when no object exists under the requested storage key."""


class RecordExistsError(StorageError):
    """Raised when a create-only write hits an existing record."""


class RecordNotFoundError(StorageError):
    """Raised when an update targets a record that does not exist."""


class AggregationIncompleteError(StorageError):
    """Raised when file bytes were stored but aggregate writes did not all complete.

    The object under ``storage_key`` is left in place for reconciliation.
    """

    def __init__(
        self,
        message: str,
        *,
        storage_key: str,
        failed_step: str,
        completed_writes: tuple[str, ...],
    ) -> None:
        super().__init__(message)
        self.storage_key = storage_key
        self.failed_step = failed_step
        self.completed_writes = completed_writes
