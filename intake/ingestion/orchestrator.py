from intake.aggregation.base import BaseAggregationStore
from intake.classification.classifier import ContentClassifier
from intake.config.settings import Settings
from intake.ingestion.exceptions import (
    AggregationIncompleteError,
    ClassificationError,
    ClientInputError,
    StorageError,
)
from intake.ingestion.models import IngestionResult, UploadRequest
from intake.ingestion.pipeline import IngestionContext, IngestionStage, IngestionStep
from intake.ingestion.steps import (
    BuildStorageKeyStep,
    ClassifyContentStep,
    CountExistingFilesStep,
    IncrementProfileStep,
    InspectStructureStep,
    RecordDocumentStep,
    UploadObjectStep,
    ValidateRequestStep,
    WriteFileRecordStep,
)
from intake.logging.logger import Log
from intake.pdf.base import BasePdfInspector
from intake.storage.base import BaseObjectStore


class IngestionOrchestrator:
    """Accepts one uploaded file and updates all derived state.

    Pipeline: validate -> [lock] count -> classify -> key -> inspect -> upload
    -> file record -> profile counters -> document record [unlock].

    Index assignment and the create-vs-update decision for the document record
    run under the store's per-document-type lock. Object bytes are written
    before any aggregate record refers to them; nothing is rolled back.
    """

    def __init__(
        self,
        store: BaseAggregationStore,
        preconditions: list[IngestionStep],
        steps: list[IngestionStep],
    ) -> None:
        self._store = store
        self._preconditions = preconditions
        self._steps = steps

    def ingest(self, request: UploadRequest) -> IngestionResult:
        """Run the pipeline for one upload.

        Raises:
            ClientInputError: request rejected, nothing written.
            ClassificationError: content could not be sniffed, nothing written.
            StorageError: a store call failed. ``AggregationIncompleteError``
                when the object was stored but aggregation did not finish.
        """
        context = IngestionContext(request=request)
        try:
            for step in self._preconditions:
                context = step.run(context)
            document_type = context.require_document_type()
            with self._store.document_lock(
                request.tenant_id, request.submission_id, document_type.value
            ):
                for step in self._steps:
                    context = self._run_step(step, context)
        except (ClientInputError, ClassificationError) as exc:
            Log.warning(
                f"Rejected upload for submission {request.submission_id}: {exc}",
                tenant_id=request.tenant_id,
                error_type=type(exc).__name__,
            )
            raise

        Log.info(
            f"Accepted file #{context.file_index} of type {document_type.value} "
            f"for submission {request.submission_id}",
            tenant_id=request.tenant_id,
            storage_key=context.storage_key,
            page_count=context.page_count,
        )
        return IngestionResult(
            tenant_id=request.tenant_id,
            submission_id=request.submission_id,
            document_type=document_type,
            file_index=context.file_index,
            storage_key=context.storage_key,
            content_type=context.require_classification().mime_type,
            page_count=context.page_count,
            document_created=context.document_created,
        )

    def _run_step(self, step: IngestionStep, context: IngestionContext) -> IngestionContext:
        try:
            return step.run(context)
        except Exception as exc:
            if not context.object_stored or context.stage == IngestionStage.AGGREGATED:
                raise
            self._report_consistency_gap(step, context, exc)
            if isinstance(exc, StorageError):
                raise AggregationIncompleteError(
                    f"File stored at {context.storage_key} but aggregation failed "
                    f"in {step.name}: {exc}",
                    storage_key=context.storage_key,
                    failed_step=step.name,
                    completed_writes=tuple(context.completed_writes),
                ) from exc
            raise

    def _report_consistency_gap(
        self,
        step: IngestionStep,
        context: IngestionContext,
        exc: Exception,
    ) -> None:
        request = context.request
        Log.error(
            f"Consistency gap: uploaded but unaggregated file {context.storage_key}: {exc}",
            tenant_id=request.tenant_id,
            submission_id=request.submission_id,
            storage_key=context.storage_key,
            failed_step=step.name,
            completed_writes=",".join(context.completed_writes) or "none",
        )


def build_orchestrator(
    settings: Settings,
    store: BaseAggregationStore,
    object_store: BaseObjectStore,
    pdf_inspector: BasePdfInspector,
    classifier: ContentClassifier | None = None,
) -> IngestionOrchestrator:
    """Wire the ingestion pipeline in its fixed step order."""
    return IngestionOrchestrator(
        store=store,
        preconditions=[ValidateRequestStep(store, settings.max_upload_size_bytes)],
        steps=[
            CountExistingFilesStep(store),
            ClassifyContentStep(classifier or ContentClassifier()),
            BuildStorageKeyStep(),
            InspectStructureStep(pdf_inspector),
            UploadObjectStep(object_store),
            WriteFileRecordStep(store),
            IncrementProfileStep(store),
            RecordDocumentStep(store),
        ],
    )
