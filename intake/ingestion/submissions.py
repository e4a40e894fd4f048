from dataclasses import dataclass

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.keys import file_key
from intake.aggregation.models import SubmissionFile, SubmissionProfile
from intake.ingestion.exceptions import FileRecordNotFoundError, SubmissionNotFoundError
from intake.ingestion.identifiers import check_identifier
from intake.ingestion.models import DocumentType
from intake.logging.logger import Log
from intake.storage.base import BaseObjectStore


def register_submission(
    store: BaseAggregationStore,
    tenant_id: str,
    submission_id: str,
) -> SubmissionProfile:
    """Create the zeroed profile uploads require. Safe to call repeatedly.

    Raises:
        InvalidIdentifierError: if either id cannot be used in record keys.
    """
    check_identifier("tenant_id", tenant_id)
    check_identifier("submission_id", submission_id)
    profile = store.create_profile(tenant_id, submission_id)
    Log.info(f"Registered submission {submission_id}", tenant_id=tenant_id)
    return profile


@dataclass(frozen=True)
class StoredFile:
    record: SubmissionFile
    content: bytes


class SubmissionReader:
    """Read path over the aggregation store and the object store."""

    def __init__(self, store: BaseAggregationStore, object_store: BaseObjectStore) -> None:
        self._store = store
        self._object_store = object_store

    def profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile:
        profile = self._store.get_profile(tenant_id, submission_id)
        if profile is None:
            raise SubmissionNotFoundError(
                f"Submission {submission_id} not found for tenant {tenant_id}"
            )
        return profile

    def read_file(
        self,
        tenant_id: str,
        submission_id: str,
        document_type: DocumentType,
        index: int,
    ) -> StoredFile:
        """Fetch a file record and the bytes it points at.

        Raises:
            FileRecordNotFoundError: if no file record exists at that index.
            ObjectNotFoundError: if the record exists but its object is missing.
        """
        record = self._store.get_file(
            file_key(tenant_id, submission_id, document_type.value, index)
        )
        if record is None:
            raise FileRecordNotFoundError(
                f"No {document_type.value} file #{index} in submission {submission_id}"
            )
        return StoredFile(record=record, content=self._object_store.get(record.storage_key))
