"""Raw text extraction from uploaded grant documents."""

import csv
import logging
from pathlib import Path

from equityplan.exceptions import DocumentParseError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".pdf", ".csv", ".tsv", ".txt")


def extract_document_text(path: Path) -> str:
    """Return the plain text of a grant document.

    PDFs are read page by page with pdfplumber. Spreadsheet exports (CSV/TSV)
    are flattened to one ``" | "``-joined line per row.

    Raises:
        DocumentParseError: unsupported file type, unreadable file, or no text.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise DocumentParseError(
            str(path), f"Unsupported file type '{suffix}'. Use one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )
    if not path.exists():
        raise DocumentParseError(str(path), "File not found")

    if suffix == ".pdf":
        text = _pdf_text(path)
    elif suffix in (".csv", ".tsv"):
        text = _delimited_text(path, "\t" if suffix == ".tsv" else ",")
    else:
        text = path.read_text(encoding="utf-8", errors="replace")

    if not text.strip():
        raise DocumentParseError(
            str(path), "No extractable text (the document may be scanned or image-only)"
        )
    logger.debug("Extracted %d characters from %s", len(text), path.name)
    return text


def _pdf_text(path: Path) -> str:
    import pdfplumber

    pages: list[str] = []
    try:
        with pdfplumber.open(path) as pdf:
            for number, page in enumerate(pdf.pages, start=1):
                page_text = page.extract_text() or ""
                if not page_text.strip():
                    logger.warning("Page %d of %s has no extractable text", number, path.name)
                pages.append(page_text)
    except Exception as exc:
        raise DocumentParseError(str(path), f"PDF could not be read: {exc}") from exc
    return "\n".join(pages)


def _delimited_text(path: Path, delimiter: str) -> str:
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = [" | ".join(cell.strip() for cell in row) for row in csv.reader(f, delimiter=delimiter)]
    return "\n".join(row for row in rows if row.strip(" |"))
