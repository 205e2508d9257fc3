"""Resolve analyzable text for a project's documents: cached extraction first, on-demand parse second."""

import logging

from complykit.models import Document
from complykit.schemas.analysis import DocumentContent
from complykit.services import document_parsing
from complykit.services.storage import FileStorage

logger = logging.getLogger(__name__)


class DocumentContentAggregator:
    def __init__(self, storage: FileStorage) -> None:
        self.storage = storage

    def content_for(self, document: Document) -> DocumentContent:
        """Text for one document; any storage or parser failure yields empty text."""
        text = document.extracted_text or ""
        page_count = document.page_count
        if not text.strip() and document_parsing.is_supported(document.content_type):
            try:
                with self.storage.get_file(document.storage_path) as stream:
                    result = document_parsing.parse(stream, document.content_type)
                if result.success:
                    text = result.extracted_text
                    page_count = result.page_count
                else:
                    logger.warning(
                        "On-demand extraction unsuccessful; analyzing with empty content",
                        extra={"document_id": str(document.id), "error": result.error_message},
                    )
            except Exception:
                logger.warning(
                    "On-demand extraction failed; analyzing with empty content",
                    extra={"document_id": str(document.id)},
                    exc_info=True,
                )
                text = ""
        return DocumentContent(
            document_id=document.id,
            file_name=document.file_name,
            content=text,
            content_type=document.content_type,
            page_count=page_count,
        )

    def collect(self, documents: list[Document]) -> list[DocumentContent]:
        """One DocumentContent per document, in input order; a bad document never aborts the batch."""
        return [self.content_for(d) for d in documents]
