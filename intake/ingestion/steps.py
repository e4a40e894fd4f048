from datetime import UTC, datetime

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.keys import (
    document_key,
    file_key,
    file_type_prefix,
    partition_key,
)
from intake.aggregation.models import SubmissionDocument, SubmissionFile
from intake.classification.classifier import ContentClassifier
from intake.ingestion.exceptions import (
    DocumentTypeAccessError,
    EmptyFileError,
    FileTooLargeError,
    InvalidDocumentTypeError,
    MissingDocumentTypeError,
    SubmissionNotFoundError,
)
from intake.ingestion.identifiers import check_identifier
from intake.ingestion.models import DocumentType
from intake.ingestion.pipeline import IngestionContext, IngestionStage, IngestionStep
from intake.logging.logger import Log
from intake.pdf.base import BasePdfInspector
from intake.storage.base import BaseObjectStore
from intake.storage.keys import build_storage_key, generate_file_id


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class ValidateRequestStep(IngestionStep):
    """Preconditions. Writes nothing."""

    def __init__(self, store: BaseAggregationStore, max_upload_size_bytes: int) -> None:
        self._store = store
        self._max_upload_size_bytes = max_upload_size_bytes

    def run(self, context: IngestionContext) -> IngestionContext:
        request = context.request
        check_identifier("tenant_id", request.tenant_id)
        check_identifier("submission_id", request.submission_id)
        if self._store.get_profile(request.tenant_id, request.submission_id) is None:
            raise SubmissionNotFoundError(
                f"Submission {request.submission_id} not found for tenant {request.tenant_id}"
            )

        if not request.document_type:
            raise MissingDocumentTypeError("Document type is required")
        try:
            document_type = DocumentType(request.document_type)
        except ValueError as exc:
            raise InvalidDocumentTypeError(
                f"Unknown document type '{request.document_type}'"
            ) from exc

        if not request.content:
            raise EmptyFileError("File is required")
        if len(request.content) > self._max_upload_size_bytes:
            raise FileTooLargeError(
                f"File of {len(request.content)} bytes exceeds the "
                f"{self._max_upload_size_bytes} byte limit"
            )

        allowed = request.allowed_document_types
        if allowed is not None and document_type not in allowed:
            raise DocumentTypeAccessError(
                f"Uploading {document_type.value} documents is not allowed"
            )

        context.document_type = document_type
        context.stage = IngestionStage.VALIDATED
        return context


class CountExistingFilesStep(IngestionStep):
    def __init__(self, store: BaseAggregationStore) -> None:
        self._store = store

    def run(self, context: IngestionContext) -> IngestionContext:
        request = context.request
        existing = self._store.list_by_prefix(
            partition_key(request.tenant_id, request.submission_id),
            file_type_prefix(context.require_document_type().value),
        )
        context.file_index = len(existing)
        return context


class ClassifyContentStep(IngestionStep):
    def __init__(self, classifier: ContentClassifier) -> None:
        self._classifier = classifier

    def run(self, context: IngestionContext) -> IngestionContext:
        context.classification = self._classifier.detect(context.request.content)
        context.stage = IngestionStage.CLASSIFIED
        Log.debug(
            f"Classified upload as {context.classification.mime_type}",
            submission_id=context.request.submission_id,
        )
        return context


class BuildStorageKeyStep(IngestionStep):
    def run(self, context: IngestionContext) -> IngestionContext:
        request = context.request
        context.file_id = generate_file_id()
        context.storage_key = build_storage_key(
            request.tenant_id,
            request.submission_id,
            context.require_document_type().value,
            context.file_id,
            context.require_classification().extension,
        )
        return context


class InspectStructureStep(IngestionStep):
    """Counts pages of PDFs; every other format counts as one page."""

    def __init__(self, pdf_inspector: BasePdfInspector) -> None:
        self._pdf_inspector = pdf_inspector

    def run(self, context: IngestionContext) -> IngestionContext:
        if context.require_classification().is_pdf:
            context.page_count = self._pdf_inspector.page_count(
                context.request.content,
                password=context.request.password,
            )
        else:
            context.page_count = 1
        context.stage = IngestionStage.INSPECTED
        return context


class UploadObjectStep(IngestionStep):
    def __init__(self, object_store: BaseObjectStore) -> None:
        self._object_store = object_store

    def run(self, context: IngestionContext) -> IngestionContext:
        self._object_store.put(
            context.storage_key,
            context.request.content,
            content_type=context.require_classification().mime_type,
        )
        context.stage = IngestionStage.UPLOADED
        return context


class WriteFileRecordStep(IngestionStep):
    def __init__(self, store: BaseAggregationStore) -> None:
        self._store = store

    def run(self, context: IngestionContext) -> IngestionContext:
        request = context.request
        document_type = context.require_document_type().value
        record = SubmissionFile(
            tenant_id=request.tenant_id,
            submission_id=request.submission_id,
            document_type=document_type,
            index=context.file_index,
            storage_key=context.storage_key,
            relative_path=request.relative_path,
            type_prefix=file_type_prefix(document_type),
            content_type=context.require_classification().mime_type,
            display_name=request.display_name,
            page_count=context.page_count,
        )
        self._store.put_file(
            file_key(request.tenant_id, request.submission_id, document_type, context.file_index),
            record,
        )
        context.completed_writes.append("file_record")
        return context


class IncrementProfileStep(IngestionStep):
    def __init__(self, store: BaseAggregationStore) -> None:
        self._store = store

    def run(self, context: IngestionContext) -> IngestionContext:
        request = context.request
        self._store.increment_profile(
            request.tenant_id,
            request.submission_id,
            pages=context.page_count,
            documents=1,
        )
        context.completed_writes.append("profile_counters")
        return context


class RecordDocumentStep(IngestionStep):
    """Creates the document record for the first file of a type, touches it afterwards."""

    def __init__(self, store: BaseAggregationStore) -> None:
        self._store = store

    def run(self, context: IngestionContext) -> IngestionContext:
        request = context.request
        document_type = context.require_document_type().value
        key = document_key(request.tenant_id, request.submission_id, document_type)
        now = _utc_now()
        if context.file_index == 0:
            self._store.put_document(
                key,
                SubmissionDocument(
                    tenant_id=request.tenant_id,
                    submission_id=request.submission_id,
                    document_type=document_type,
                    created_at=now,
                    updated_at=now,
                ),
            )
            context.document_created = True
        else:
            self._store.update_document(key, {"updated_at": now})
        context.completed_writes.append("document_record")
        context.stage = IngestionStage.AGGREGATED
        return context
