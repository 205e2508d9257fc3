"""Text extraction from uploaded documents (PDF via pypdf, text-like types decoded as UTF-8)."""

import logging
from dataclasses import dataclass
from typing import BinaryIO

from pypdf import PdfReader

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES: frozenset[str] = frozenset({"application/pdf"})
TEXT_CONTENT_TYPES: frozenset[str] = frozenset(
    {"text/plain", "text/markdown", "text/csv", "application/json"}
)


@dataclass
class ParseResult:
    success: bool
    extracted_text: str = ""
    page_count: int | None = None
    error_message: str | None = None


def _normalize(content_type: str | None) -> str:
    """Strip parameters ("text/plain; charset=utf-8" -> "text/plain") and lowercase."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_supported(content_type: str | None) -> bool:
    ct = _normalize(content_type)
    return ct in PDF_CONTENT_TYPES or ct in TEXT_CONTENT_TYPES


def _parse_pdf(stream: BinaryIO) -> ParseResult:
    reader = PdfReader(stream)
    pages = [page.extract_text() or "" for page in reader.pages]
    return ParseResult(
        success=True,
        extracted_text="\n".join(pages).strip(),
        page_count=len(reader.pages),
    )


def _parse_text(stream: BinaryIO) -> ParseResult:
    raw = stream.read()
    text = raw.decode("utf-8", errors="replace")
    return ParseResult(success=True, extracted_text=text, page_count=1)


def parse(stream: BinaryIO, content_type: str | None) -> ParseResult:
    """
    Extract text from the stream. Never raises: unsupported types and parser
    errors come back as an unsuccessful ParseResult.
    """
    ct = _normalize(content_type)
    try:
        if ct in PDF_CONTENT_TYPES:
            return _parse_pdf(stream)
        if ct in TEXT_CONTENT_TYPES:
            return _parse_text(stream)
    except Exception as e:
        logger.warning(
            "Document parsing failed",
            extra={"content_type": ct, "error": str(e)},
        )
        return ParseResult(success=False, error_message=f"Error parsing document: {e}")
    return ParseResult(success=False, error_message=f"Unsupported content type: {ct or 'unknown'}")
