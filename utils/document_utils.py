"""
Document reading utilities for exam-listening-studio.
"""

import re
from pathlib import Path
from typing import List

import docx
import fitz
from loguru import logger

from utils.errors import DocumentReadError, UnsupportedDocumentError

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


def extract_text_from_pdf_bytes(pdf_bytes: bytes, file_name: str = "") -> str:
    """
    Extracts plain text from PDF bytes using PyMuPDF (fitz), one page after another.
    Unreadable pages are skipped with a warning; line breaks are kept.
    """
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as exc:
        raise DocumentReadError(f"could not read PDF {file_name or '(bytes)'}: {exc}") from exc
    with doc:
        texts = []
        for i, page in enumerate(doc):
            try:
                text = page.get_text()
            except Exception as page_exc:
                logger.warning("Page {} in {} could not be read: {}", i + 1, file_name or "PDF", page_exc)
                continue
            if text.strip():
                texts.append(text)
    return "\n".join(texts).strip()


def extract_text_from_docx(path: Path) -> str:
    try:
        document = docx.Document(str(path))
    except Exception as exc:
        raise DocumentReadError(f"could not read Word document {Path(path).name}: {exc}") from exc
    return "\n".join(paragraph.text for paragraph in document.paragraphs).strip()


def extract_text(path: Path) -> str:
    """
    Returns the plain text of a .pdf, .docx or .txt file.
    """
    path = Path(path)
    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedDocumentError(
            f"unsupported document type {ext or '(none)'}; use one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    logger.info("Reading document {}", path.name)
    if ext == ".pdf":
        return extract_text_from_pdf_bytes(path.read_bytes(), path.name)
    if ext == ".docx":
        return extract_text_from_docx(path)
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DocumentReadError(f"could not read text file {path.name}: {exc}") from exc


def read_lines(path: Path) -> List[str]:
    """
    Non-blank lines of a document with runs of whitespace collapsed,
    ready to be used as batch input (one audio file per line).
    """
    lines = []
    for line in extract_text(path).splitlines():
        line = re.sub(r"\s+", " ", line).strip()
        if line:
            lines.append(line)
    return lines
