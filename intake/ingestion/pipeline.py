from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from intake.classification.models import Classification
from intake.ingestion.models import DocumentType, UploadRequest


class IngestionStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    CLASSIFIED = "classified"
    INSPECTED = "inspected"
    UPLOADED = "uploaded"
    AGGREGATED = "aggregated"


@dataclass(slots=True)
class IngestionContext:
    request: UploadRequest
    stage: IngestionStage = IngestionStage.RECEIVED
    document_type: DocumentType | None = None
    file_index: int = 0
    classification: Classification | None = None
    file_id: str = ""
    storage_key: str = ""
    page_count: int = 1
    document_created: bool = False
    completed_writes: list[str] = field(default_factory=list)

    @property
    def object_stored(self) -> bool:
        return self.stage in (IngestionStage.UPLOADED, IngestionStage.AGGREGATED)

    def require_document_type(self) -> DocumentType:
        if self.document_type is None:
            raise ValueError("IngestionContext.document_type must be set by validation")
        return self.document_type

    def require_classification(self) -> Classification:
        if self.classification is None:
            raise ValueError("IngestionContext.classification must be set before use")
        return self.classification


class IngestionStep(ABC):
    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def run(self, context: IngestionContext) -> IngestionContext:
        raise NotImplementedError
