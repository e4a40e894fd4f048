from dataclasses import dataclass

PROFILE_SORT_KEY = "PROFILE"
DOCUMENT_SORT_PREFIX = "DOCUMENT#"
FILE_SORT_PREFIX = "FILE#"


@dataclass(frozen=True)
class CompositeKey:
    """Addresses one record in the aggregation store."""

    partition: str
    sort: str


def partition_key(tenant_id: str, submission_id: str) -> str:
    return f"{tenant_id}#{submission_id}"


def profile_key(tenant_id: str, submission_id: str) -> CompositeKey:
    return CompositeKey(partition_key(tenant_id, submission_id), PROFILE_SORT_KEY)


def document_key(tenant_id: str, submission_id: str, document_type: str) -> CompositeKey:
    return CompositeKey(
        partition_key(tenant_id, submission_id),
        f"{DOCUMENT_SORT_PREFIX}{document_type}",
    )


def file_type_prefix(document_type: str) -> str:
    """Sort-key prefix shared by every file record of one document type.

    The trailing separator keeps ``INV`` from matching ``INVOICE`` files.
    """
    return f"{FILE_SORT_PREFIX}{document_type}#"


def file_key(
    tenant_id: str,
    submission_id: str,
    document_type: str,
    index: int,
) -> CompositeKey:
    if index < 0:
        raise ValueError(f"File index must be non-negative, got {index}")
    return CompositeKey(
        partition_key(tenant_id, submission_id),
        f"{file_type_prefix(document_type)}{index:06d}",
    )
