# audit_client/extraction.py
"""
Plain-text extraction for uploaded RFQ and bid documents.

Supported: .txt, .pdf (pypdf), .docx (python-docx).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from docx import Document
from pypdf import PdfReader

from audit_client.errors import ExtractionError, UnsupportedFileTypeError

_logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx")


def _txt_to_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _pdf_to_text(path: Path) -> str:
    reader = PdfReader(str(path))
    parts = []
    for page in reader.pages:
        parts.append(page.extract_text() or "")
    return "\n\n".join(parts)


def _docx_to_text(path: Path) -> str:
    doc = Document(str(path))
    return "\n".join(p.text for p in doc.paragraphs)


_EXTRACTORS = {
    ".txt": _txt_to_text,
    ".pdf": _pdf_to_text,
    ".docx": _docx_to_text,
}


def extract_text(path: Union[str, Path]) -> str:
    """
    Read a document and return its text.

    Raises:
        UnsupportedFileTypeError: If the extension is not supported
        ExtractionError: If the file is missing or cannot be parsed
    """
    path = Path(path)
    extractor = _EXTRACTORS.get(path.suffix.lower())
    if extractor is None:
        raise UnsupportedFileTypeError(
            f"Unsupported file type: {path.name} (use {', '.join(SUPPORTED_EXTENSIONS)})"
        )

    if not path.is_file():
        raise ExtractionError(f"File not found: {path}")

    try:
        text = extractor(path)
    except Exception as e:
        _logger.warning(f"Failed to extract {path}: {e!r}")
        raise ExtractionError(f"Could not read {path.name}: {e}") from e

    _logger.debug(f"Extracted {len(text)} characters from {path.name}")
    return text
