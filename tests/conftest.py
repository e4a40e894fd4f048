import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

PDF_PASSWORD = "s3cret"


def _render_pdf(page_count: int, encrypt: str | None = None) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter, encrypt=encrypt)
    for number in range(1, page_count + 1):
        c.drawString(72, 720, f"Page {number}")
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Single-page PDF."""
    return _render_pdf(1)


@pytest.fixture()
def three_page_pdf_bytes() -> bytes:
    return _render_pdf(3)


@pytest.fixture()
def protected_pdf_bytes() -> bytes:
    """Three-page PDF that needs PDF_PASSWORD to open."""
    return _render_pdf(3, encrypt=PDF_PASSWORD)


@pytest.fixture()
def png_bytes() -> bytes:
    """PNG signature followed by an IHDR-sized header; enough for content sniffing."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32


@pytest.fixture()
def pdf_password() -> str:
    return PDF_PASSWORD
