from unittest.mock import MagicMock

import pytest

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.keys import CompositeKey
from intake.aggregation.models import SubmissionProfile
from intake.classification.models import Classification
from intake.ingestion.exceptions import (
    DocumentTypeAccessError,
    EmptyFileError,
    FileTooLargeError,
    InvalidDocumentTypeError,
    InvalidIdentifierError,
    MissingDocumentTypeError,
    SubmissionNotFoundError,
)
from intake.ingestion.models import DocumentType, UploadRequest
from intake.ingestion.pipeline import IngestionContext, IngestionStage
from intake.ingestion.steps import (
    BuildStorageKeyStep,
    CountExistingFilesStep,
    IncrementProfileStep,
    InspectStructureStep,
    RecordDocumentStep,
    ValidateRequestStep,
    WriteFileRecordStep,
)
from intake.pdf.base import BasePdfInspector

PDF = Classification(mime_type="application/pdf", extension="pdf")
PNG = Classification(mime_type="image/png", extension="png")


def _request(**overrides: object) -> UploadRequest:
    values: dict[str, object] = {
        "tenant_id": "acme",
        "submission_id": "sub-1",
        "document_type": "INVOICE",
        "display_name": "invoice.pdf",
        "content": b"%PDF-1.4 fake",
    }
    values.update(overrides)
    return UploadRequest(**values)  # type: ignore[arg-type]


def _context(**overrides: object) -> IngestionContext:
    context = IngestionContext(request=_request(**overrides))
    context.document_type = DocumentType.INVOICE
    return context


def _store_with_profile() -> MagicMock:
    store = MagicMock(spec=BaseAggregationStore)
    store.get_profile.return_value = SubmissionProfile("acme", "sub-1")
    return store


class TestValidateRequestStep:
    def test_sets_document_type_and_stage(self) -> None:
        step = ValidateRequestStep(_store_with_profile(), max_upload_size_bytes=1024)

        context = step.run(IngestionContext(request=_request()))

        assert context.document_type is DocumentType.INVOICE
        assert context.stage is IngestionStage.VALIDATED

    def test_accepts_enum_document_type(self) -> None:
        step = ValidateRequestStep(_store_with_profile(), max_upload_size_bytes=1024)

        context = step.run(IngestionContext(request=_request(document_type=DocumentType.CONTRACT)))

        assert context.document_type is DocumentType.CONTRACT

    def test_rejects_unknown_submission(self) -> None:
        store = MagicMock(spec=BaseAggregationStore)
        store.get_profile.return_value = None

        with pytest.raises(SubmissionNotFoundError):
            ValidateRequestStep(store, 1024).run(IngestionContext(request=_request()))

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("tenant_id", "acme#x"),
            ("submission_id", "x#s1"),
            ("tenant_id", "acme/eu"),
            ("submission_id", "s1\\eu"),
            ("tenant_id", ".."),
            ("submission_id", "."),
            ("tenant_id", ""),
        ],
    )
    def test_rejects_unusable_ids_before_touching_the_store(self, field: str, value: str) -> None:
        store = _store_with_profile()

        with pytest.raises(InvalidIdentifierError, match=field):
            ValidateRequestStep(store, 1024).run(
                IngestionContext(request=_request(**{field: value}))
            )

        store.get_profile.assert_not_called()

    @pytest.mark.parametrize("document_type", [None, ""])
    def test_rejects_missing_document_type(self, document_type: str | None) -> None:
        step = ValidateRequestStep(_store_with_profile(), 1024)

        with pytest.raises(MissingDocumentTypeError):
            step.run(IngestionContext(request=_request(document_type=document_type)))

    def test_rejects_unknown_document_type(self) -> None:
        step = ValidateRequestStep(_store_with_profile(), 1024)

        with pytest.raises(InvalidDocumentTypeError, match="RECEIPT"):
            step.run(IngestionContext(request=_request(document_type="RECEIPT")))

    def test_rejects_empty_file(self) -> None:
        step = ValidateRequestStep(_store_with_profile(), 1024)

        with pytest.raises(EmptyFileError):
            step.run(IngestionContext(request=_request(content=b"")))

    def test_rejects_oversized_file(self) -> None:
        step = ValidateRequestStep(_store_with_profile(), max_upload_size_bytes=4)

        with pytest.raises(FileTooLargeError):
            step.run(IngestionContext(request=_request(content=b"12345")))

    def test_rejects_type_outside_caller_access(self) -> None:
        step = ValidateRequestStep(_store_with_profile(), 1024)
        request = _request(allowed_document_types=frozenset({DocumentType.CONTRACT}))

        with pytest.raises(DocumentTypeAccessError):
            step.run(IngestionContext(request=request))

    def test_never_writes(self) -> None:
        store = _store_with_profile()

        ValidateRequestStep(store, 1024).run(IngestionContext(request=_request()))

        store.put_file.assert_not_called()
        store.increment_profile.assert_not_called()
        store.put_document.assert_not_called()


class TestCountExistingFilesStep:
    def test_index_is_count_of_existing_files(self) -> None:
        store = MagicMock(spec=BaseAggregationStore)
        store.list_by_prefix.return_value = [MagicMock(), MagicMock()]

        context = CountExistingFilesStep(store).run(_context())

        assert context.file_index == 2
        store.list_by_prefix.assert_called_once_with("acme#sub-1", "FILE#INVOICE#")


class TestBuildStorageKeyStep:
    def test_key_ignores_display_name(self) -> None:
        context = _context(display_name="../../etc/passwd")
        context.classification = PDF

        context = BuildStorageKeyStep().run(context)

        assert context.storage_key == f"acme/sub-1/INVOICE/{context.file_id}.pdf"
        assert "passwd" not in context.storage_key


class TestInspectStructureStep:
    def test_counts_pdf_pages_with_password(self) -> None:
        inspector = MagicMock(spec=BasePdfInspector)
        inspector.page_count.return_value = 3
        context = _context(password="pw")
        context.classification = PDF

        context = InspectStructureStep(inspector).run(context)

        assert context.page_count == 3
        assert context.stage is IngestionStage.INSPECTED
        inspector.page_count.assert_called_once_with(b"%PDF-1.4 fake", password="pw")

    def test_non_pdf_is_one_page_without_inspection(self) -> None:
        inspector = MagicMock(spec=BasePdfInspector)
        context = _context()
        context.classification = PNG

        context = InspectStructureStep(inspector).run(context)

        assert context.page_count == 1
        inspector.page_count.assert_not_called()


class TestWriteFileRecordStep:
    def test_writes_record_at_assigned_index(self) -> None:
        store = MagicMock(spec=BaseAggregationStore)
        context = _context(display_name="March invoice", relative_path="2024/march.pdf")
        context.classification = PDF
        context.file_index = 4
        context.storage_key = "acme/sub-1/INVOICE/abc.pdf"
        context.page_count = 2

        WriteFileRecordStep(store).run(context)

        key, record = store.put_file.call_args.args
        assert key == CompositeKey("acme#sub-1", "FILE#INVOICE#000004")
        assert record.index == 4
        assert record.display_name == "March invoice"
        assert record.relative_path == "2024/march.pdf"
        assert record.type_prefix == "FILE#INVOICE#"
        assert record.content_type == "application/pdf"
        assert record.page_count == 2
        assert context.completed_writes == ["file_record"]


class TestIncrementProfileStep:
    def test_passes_ids_and_page_count(self) -> None:
        store = MagicMock(spec=BaseAggregationStore)
        context = _context()
        context.page_count = 3

        IncrementProfileStep(store).run(context)

        store.increment_profile.assert_called_once_with("acme", "sub-1", pages=3, documents=1)
        assert context.completed_writes == ["profile_counters"]


class TestRecordDocumentStep:
    def test_first_file_creates_document(self) -> None:
        store = MagicMock(spec=BaseAggregationStore)
        context = _context()
        context.file_index = 0

        context = RecordDocumentStep(store).run(context)

        store.put_document.assert_called_once()
        store.update_document.assert_not_called()
        assert context.document_created
        assert context.stage is IngestionStage.AGGREGATED

    def test_later_files_touch_document(self) -> None:
        store = MagicMock(spec=BaseAggregationStore)
        context = _context()
        context.file_index = 1

        context = RecordDocumentStep(store).run(context)

        store.put_document.assert_not_called()
        key, fields = store.update_document.call_args.args
        assert key == CompositeKey("acme#sub-1", "DOCUMENT#INVOICE")
        assert set(fields) == {"updated_at"}
        assert not context.document_created
