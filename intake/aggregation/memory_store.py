import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.keys import CompositeKey, profile_key
from intake.aggregation.models import SubmissionDocument, SubmissionFile, SubmissionProfile
from intake.ingestion.exceptions import RecordExistsError, RecordNotFoundError


@dataclass
class _DocumentLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class InMemoryAggregationStore(BaseAggregationStore):
    """Process-local aggregation store for local runs and tests.

    Records live in ``{partition: {sort: attributes}}``; every access goes
    through one guard lock, and ``document_lock`` hands out one lock per
    (tenant, submission, document type). A lock is dropped once no thread holds
    or waits for it.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, dict[str, Any]]] = {}
        self._guard = threading.Lock()
        self._document_locks: dict[tuple[str, str, str], _DocumentLock] = {}

    def get_profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile | None:
        attributes = self._get(profile_key(tenant_id, submission_id))
        return SubmissionProfile.from_attributes(attributes) if attributes else None

    def create_profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile:
        key = profile_key(tenant_id, submission_id)
        with self._guard:
            partition = self._records.setdefault(key.partition, {})
            if key.sort not in partition:
                partition[key.sort] = SubmissionProfile(tenant_id, submission_id).to_attributes()
            return SubmissionProfile.from_attributes(partition[key.sort])

    def list_by_prefix(self, partition: str, sort_prefix: str) -> list[SubmissionFile]:
        with self._guard:
            records = self._records.get(partition, {})
            return [
                SubmissionFile.from_attributes(records[sort])
                for sort in sorted(records)
                if sort.startswith(sort_prefix)
            ]

    def get_file(self, key: CompositeKey) -> SubmissionFile | None:
        attributes = self._get(key)
        return SubmissionFile.from_attributes(attributes) if attributes else None

    def put_file(self, key: CompositeKey, record: SubmissionFile) -> None:
        self._create(key, record.to_attributes())

    def increment_profile(
        self,
        tenant_id: str,
        submission_id: str,
        *,
        pages: int,
        documents: int,
    ) -> SubmissionProfile:
        key = profile_key(tenant_id, submission_id)
        with self._guard:
            partition = self._records.setdefault(key.partition, {})
            current = partition.setdefault(
                key.sort, SubmissionProfile(tenant_id, submission_id).to_attributes()
            )
            current["total_pages"] = current.get("total_pages", 0) + pages
            current["total_documents"] = current.get("total_documents", 0) + documents
            return SubmissionProfile.from_attributes(current)

    def get_document(self, key: CompositeKey) -> SubmissionDocument | None:
        attributes = self._get(key)
        return SubmissionDocument.from_attributes(attributes) if attributes else None

    def put_document(self, key: CompositeKey, record: SubmissionDocument) -> None:
        self._create(key, record.to_attributes())

    def update_document(self, key: CompositeKey, fields: dict[str, Any]) -> None:
        with self._guard:
            current = self._records.get(key.partition, {}).get(key.sort)
            if current is None:
                raise RecordNotFoundError(f"No record at {key.partition}/{key.sort}")
            current.update(copy.deepcopy(fields))

    @contextmanager
    def document_lock(
        self,
        tenant_id: str,
        submission_id: str,
        document_type: str,
    ) -> Iterator[None]:
        lock_id = (tenant_id, submission_id, document_type)
        with self._guard:
            entry = self._document_locks.setdefault(lock_id, _DocumentLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._document_locks[lock_id]

    def _get(self, key: CompositeKey) -> dict[str, Any] | None:
        with self._guard:
            attributes = self._records.get(key.partition, {}).get(key.sort)
            return copy.deepcopy(attributes) if attributes is not None else None

    def _create(self, key: CompositeKey, attributes: dict[str, Any]) -> None:
        with self._guard:
            partition = self._records.setdefault(key.partition, {})
            if key.sort in partition:
                raise RecordExistsError(f"Record already exists at {key.partition}/{key.sort}")
            partition[key.sort] = copy.deepcopy(attributes)
