import codecs
from typing import BinaryIO

import filetype

from intake.classification.models import Classification
from intake.ingestion.exceptions import ClassificationError

TEXT_SAMPLE_SIZE = 4096


class ContentClassifier:
    """Sniffs raw bytes to find the true MIME type, ignoring client metadata."""

    FALLBACK_BINARY = Classification(mime_type="application/octet-stream", extension="bin")
    FALLBACK_TEXT = Classification(mime_type="text/plain", extension="txt")

    def detect(self, source: bytes | BinaryIO) -> Classification:
        """Classify a byte payload or a readable binary stream.

        Raises:
            ClassificationError: if the stream cannot be read or is empty.
        """
        data = self._read(source)
        if not data:
            raise ClassificationError("Cannot classify an empty file")

        kind = filetype.guess(data)
        if kind is not None:
            return Classification(mime_type=kind.mime, extension=kind.extension)
        if self._looks_like_text(data):
            return self.FALLBACK_TEXT
        return self.FALLBACK_BINARY

    def _read(self, source: bytes | BinaryIO) -> bytes:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return bytes(source)
        try:
            return source.read()
        except (OSError, ValueError) as exc:
            raise ClassificationError(f"Cannot read file stream: {exc}") from exc

    def _looks_like_text(self, data: bytes) -> bool:
        sample = data[:TEXT_SAMPLE_SIZE]
        if b"\x00" in sample:
            return False
        decoder = codecs.getincrementaldecoder("utf-8")()
        try:
            decoder.decode(sample, final=len(data) <= TEXT_SAMPLE_SIZE)
        except UnicodeDecodeError:
            return False
        return True
