from dataclasses import dataclass
from enum import Enum


class DocumentType(str, Enum):
    """Categories under which submission files are grouped."""

    INVOICE = "INVOICE"
    CONTRACT = "CONTRACT"
    BANK_STATEMENT = "BANK_STATEMENT"
    PAYSLIP = "PAYSLIP"
    TAX_RETURN = "TAX_RETURN"
    IDENTITY_DOCUMENT = "IDENTITY_DOCUMENT"
    PROOF_OF_ADDRESS = "PROOF_OF_ADDRESS"
    OTHER = "OTHER"


@dataclass(frozen=True)
class UploadRequest:
    """One uploaded file as handed over by the HTTP layer.

    ``allowed_document_types`` is the caller's type-level access as resolved by
    the authorization layer; ``None`` means unrestricted.
    """

    tenant_id: str
    submission_id: str
    document_type: str | None
    display_name: str
    content: bytes
    password: str | None = None
    relative_path: str = ""
    allowed_document_types: frozenset[DocumentType] | None = None


@dataclass(frozen=True)
class IngestionResult:
    """Success acknowledgement for an accepted file."""

    tenant_id: str
    submission_id: str
    document_type: DocumentType
    file_index: int
    storage_key: str
    content_type: str
    page_count: int
    document_created: bool
