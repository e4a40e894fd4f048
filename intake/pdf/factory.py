from collections.abc import Callable, Mapping

from intake.config.backends import build_backend
from intake.config.settings import Settings
from intake.pdf.base import BasePdfInspector
from intake.pdf.pdfplumber_adapter import PdfPlumberAdapter
from intake.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfInspectorFactory:
    """Creates the PDF inspector for the configured engine."""

    ENGINES: Mapping[str, Callable[[Settings], BasePdfInspector]] = {
        "pdfplumber": lambda _settings: PdfPlumberAdapter(),
        "pymupdf": lambda _settings: PyMuPdfAdapter(),
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfInspector:
        return build_backend("PDF engine", settings.pdf_engine, cls.ENGINES, settings)
