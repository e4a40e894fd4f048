from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any

from intake.aggregation.keys import CompositeKey
from intake.aggregation.models import SubmissionDocument, SubmissionFile, SubmissionProfile


class BaseAggregationStore(ABC):
    """Contract for the key-value store holding profile, document and file records.

    Every failing call raises ``StorageError`` (or a subclass).
    """

    @abstractmethod
    def get_profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile | None:
        """Return the submission profile, or None if the submission is unknown."""

    @abstractmethod
    def create_profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile:
        """Create a zeroed profile if absent and return the stored profile."""

    @abstractmethod
    def list_by_prefix(self, partition: str, sort_prefix: str) -> list[SubmissionFile]:
        """Return file records under ``partition`` whose sort key starts with the prefix."""

    @abstractmethod
    def get_file(self, key: CompositeKey) -> SubmissionFile | None:
        ...

    @abstractmethod
    def put_file(self, key: CompositeKey, record: SubmissionFile) -> None:
        """Create a file record.

        Raises:
            RecordExistsError: if a record already exists under ``key``.
        """

    @abstractmethod
    def increment_profile(
        self,
        tenant_id: str,
        submission_id: str,
        *,
        pages: int,
        documents: int,
    ) -> SubmissionProfile:
        """Add to the profile counters (upsert, additive merge) and return the result."""

    @abstractmethod
    def get_document(self, key: CompositeKey) -> SubmissionDocument | None:
        ...

    @abstractmethod
    def put_document(self, key: CompositeKey, record: SubmissionDocument) -> None:
        """Create a document record.

        Raises:
            RecordExistsError: if a record already exists under ``key``.
        """

    @abstractmethod
    def update_document(self, key: CompositeKey, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into an existing document record.

        Raises:
            RecordNotFoundError: if no record exists under ``key``.
        """

    @abstractmethod
    def document_lock(
        self,
        tenant_id: str,
        submission_id: str,
        document_type: str,
    ) -> AbstractContextManager[None]:
        """Mutual exclusion for one (tenant, submission, document type).

        Held across index assignment and all aggregate writes of one upload.
        """
