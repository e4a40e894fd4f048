import io

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect

from intake.pdf.base import BasePdfInspector
from intake.pdf.exceptions import InvalidCredentialsError, PdfInspectionError


def _is_password_error(exc: BaseException) -> bool:
    """Find PDFPasswordIncorrect anywhere in the cause chain or wrapped args.

    pdfplumber wraps pdfminer errors raised while opening a document.
    """
    pending: list[BaseException] = [exc]
    seen: set[int] = set()
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, PDFPasswordIncorrect):
            return True
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                pending.append(linked)
    return False


class PdfPlumberAdapter(BasePdfInspector):
    """Counts PDF pages using pdfplumber."""

    def page_count(self, pdf_bytes: bytes, password: str | None = None) -> int:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes), password=password or "") as pdf:
                pages = len(pdf.pages)
        except PdfInspectionError:
            raise
        except Exception as exc:
            if _is_password_error(exc):
                raise InvalidCredentialsError("Invalid password for protected PDF") from exc
            raise PdfInspectionError(f"pdfplumber could not open document: {exc}") from exc

        if pages < 1:
            raise PdfInspectionError("PDF has no pages")
        return pages
