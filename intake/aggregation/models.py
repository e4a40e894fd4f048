from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class SubmissionProfile:
    """Aggregate counters for one (tenant, submission)."""

    tenant_id: str
    submission_id: str
    total_pages: int = 0
    total_documents: int = 0

    def to_attributes(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_attributes(cls, attributes: dict[str, Any]) -> "SubmissionProfile":
        return cls(
            tenant_id=attributes["tenant_id"],
            submission_id=attributes["submission_id"],
            total_pages=int(attributes.get("total_pages", 0)),
            total_documents=int(attributes.get("total_documents", 0)),
        )


@dataclass
class SubmissionDocument:
    """Marks that a submission holds at least one file of a document type."""

    tenant_id: str
    submission_id: str
    document_type: str
    created_at: str | None = None
    updated_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_attributes(self) -> dict[str, Any]:
        attributes = asdict(self)
        extra = attributes.pop("extra")
        return {**extra, **attributes}

    @classmethod
    def from_attributes(cls, attributes: dict[str, Any]) -> "SubmissionDocument":
        known = {"tenant_id", "submission_id", "document_type", "created_at", "updated_at"}
        return cls(
            tenant_id=attributes["tenant_id"],
            submission_id=attributes["submission_id"],
            document_type=attributes["document_type"],
            created_at=attributes.get("created_at"),
            updated_at=attributes.get("updated_at"),
            extra={k: v for k, v in attributes.items() if k not in known},
        )


@dataclass(frozen=True)
class SubmissionFile:
    """One uploaded file. Written once, never mutated."""

    tenant_id: str
    submission_id: str
    document_type: str
    index: int
    storage_key: str
    relative_path: str
    type_prefix: str
    content_type: str
    display_name: str
    page_count: int

    def to_attributes(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_attributes(cls, attributes: dict[str, Any]) -> "SubmissionFile":
        return cls(
            tenant_id=attributes["tenant_id"],
            submission_id=attributes["submission_id"],
            document_type=attributes["document_type"],
            index=int(attributes["index"]),
            storage_key=attributes["storage_key"],
            relative_path=attributes.get("relative_path", ""),
            type_prefix=attributes["type_prefix"],
            content_type=attributes["content_type"],
            display_name=attributes.get("display_name", ""),
            page_count=int(attributes["page_count"]),
        )
