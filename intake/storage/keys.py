import uuid


def generate_file_id() -> str:
    """Random object name. Never derived from user input."""
    return uuid.uuid4().hex


def build_storage_key(
    tenant_id: str,
    submission_id: str,
    document_type: str,
    file_id: str,
    extension: str,
) -> str:
    """Build ``tenant/submission/documentType/fileId.ext``.

    Raises:
        ValueError: if any segment is empty, contains a slash, or is a dot segment.
    """
    segments = {
        "tenant_id": tenant_id,
        "submission_id": submission_id,
        "document_type": document_type,
        "file_id": file_id,
    }
    for name, value in segments.items():
        _check_segment(name, value)
    extension = extension.lstrip(".")
    _check_segment("extension", extension)
    return f"{tenant_id}/{submission_id}/{document_type}/{file_id}.{extension}"


def _check_segment(name: str, value: str) -> None:
    if not value or "/" in value or "\\" in value or value in {".", ".."}:
        raise ValueError(f"Invalid storage key segment {name}={value!r}")
