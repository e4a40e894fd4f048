import pymupdf

from intake.pdf.base import BasePdfInspector
from intake.pdf.exceptions import InvalidCredentialsError, PdfInspectionError


class PyMuPdfAdapter(BasePdfInspector):
    """Counts PDF pages using PyMuPDF."""

    def page_count(self, pdf_bytes: bytes, password: str | None = None) -> int:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                if doc.needs_pass and not doc.authenticate(password or ""):
                    raise InvalidCredentialsError("Invalid password for protected PDF")
                pages = doc.page_count
        except PdfInspectionError:
            raise
        except Exception as exc:
            raise PdfInspectionError(f"pymupdf could not open document: {exc}") from exc

        if pages < 1:
            raise PdfInspectionError("PDF has no pages")
        return pages
