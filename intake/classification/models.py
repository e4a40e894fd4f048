from dataclasses import dataclass


@dataclass(frozen=True)
class Classification:
    """Content type detected from the file's bytes."""

    mime_type: str
    extension: str

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"
