from abc import ABC, abstractmethod


class BasePdfInspector(ABC):
    """Contract for all PDF structure inspection adapters."""

    @abstractmethod
    def page_count(self, pdf_bytes: bytes, password: str | None = None) -> int:
        """Open a PDF, unlocking it with ``password`` if needed, and count its pages.

        The document handle is released before returning, on every path.

        Returns:
            Number of pages, always >= 1.

        Raises:
            InvalidCredentialsError: if the document is protected and the
                password is missing or wrong.
            PdfInspectionError: if the document cannot be opened or has no pages.
        """
