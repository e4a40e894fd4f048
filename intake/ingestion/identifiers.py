from intake.ingestion.exceptions import InvalidIdentifierError

# "#" separates partition key parts, "/" and "\" separate storage key segments.
RESERVED_CHARACTERS = ("#", "/", "\\")


def check_identifier(name: str, value: str) -> str:
    """Reject tenant and submission ids that would break key or path construction."""
    if not value or value in (".", ".."):
        raise InvalidIdentifierError(f"Invalid {name} '{value}'")
    reserved = [c for c in RESERVED_CHARACTERS if c in value]
    if reserved:
        raise InvalidIdentifierError(
            f"Invalid {name} '{value}': must not contain {' '.join(reserved)}"
        )
    return value
