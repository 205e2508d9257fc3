"""Tests for document text resolution, parsing and local storage."""

import io
import tempfile
import unittest
import uuid
from unittest.mock import MagicMock, patch

from pypdf.errors import PdfReadError

from complykit.models import Document
from complykit.services import document_parsing
from complykit.services.document_content import DocumentContentAggregator
from complykit.services.storage import LocalFileStorage, StorageError, delete_file_best_effort


def _document(**kwargs: object) -> Document:
    defaults = {
        "id": uuid.uuid4(),
        "file_name": "policy.txt",
        "storage_path": "org/project/policy.txt",
        "content_type": "text/plain",
    }
    defaults.update(kwargs)
    return Document(**defaults)


class TestDocumentContentAggregator(unittest.TestCase):
    def test_cached_text_is_used_without_touching_storage(self) -> None:
        storage = MagicMock()
        aggregator = DocumentContentAggregator(storage)
        content = aggregator.content_for(_document(extracted_text="Cached text", page_count=3))
        self.assertEqual(content.content, "Cached text")
        self.assertEqual(content.page_count, 3)
        storage.get_file.assert_not_called()

    def test_extracts_on_demand_when_cache_is_empty(self) -> None:
        storage = MagicMock()
        storage.get_file.return_value = io.BytesIO(b"Fresh text from storage")
        aggregator = DocumentContentAggregator(storage)
        content = aggregator.content_for(_document(extracted_text="   "))
        self.assertEqual(content.content, "Fresh text from storage")
        storage.get_file.assert_called_once_with("org/project/policy.txt")

    def test_storage_failure_yields_empty_content(self) -> None:
        storage = MagicMock()
        storage.get_file.side_effect = StorageError("gone")
        aggregator = DocumentContentAggregator(storage)
        with self.assertLogs("complykit.services.document_content", level="WARNING"):
            content = aggregator.content_for(_document())
        self.assertEqual(content.content, "")

    def test_unsupported_type_yields_empty_content(self) -> None:
        storage = MagicMock()
        aggregator = DocumentContentAggregator(storage)
        content = aggregator.content_for(
            _document(
                file_name="scan.docx",
                content_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            )
        )
        self.assertEqual(content.content, "")
        storage.get_file.assert_not_called()

    def test_collect_keeps_order_and_isolates_failures(self) -> None:
        storage = MagicMock()
        storage.get_file.side_effect = [StorageError("gone"), io.BytesIO(b"second")]
        aggregator = DocumentContentAggregator(storage)
        docs = [_document(file_name="a.txt"), _document(file_name="b.txt")]
        contents = aggregator.collect(docs)
        self.assertEqual([c.document_id for c in contents], [d.id for d in docs])
        self.assertEqual([c.content for c in contents], ["", "second"])


class TestDocumentParsing(unittest.TestCase):
    def test_text_with_charset_parameter(self) -> None:
        result = document_parsing.parse(io.BytesIO(b"hello"), "text/plain; charset=utf-8")
        self.assertTrue(result.success)
        self.assertEqual(result.extracted_text, "hello")

    def test_unsupported_type(self) -> None:
        result = document_parsing.parse(io.BytesIO(b"x"), "image/png")
        self.assertFalse(result.success)
        self.assertIn("Unsupported content type", result.error_message)
        self.assertFalse(document_parsing.is_supported("image/png"))
        self.assertTrue(document_parsing.is_supported("application/pdf"))

    @patch("complykit.services.document_parsing.PdfReader", side_effect=PdfReadError("EOF marker not found"))
    def test_corrupt_pdf_is_reported_not_raised(self, mock_reader: MagicMock) -> None:
        result = document_parsing.parse(io.BytesIO(b"not a pdf"), "application/pdf")
        self.assertFalse(result.success)
        self.assertTrue(result.error_message.startswith("Error parsing document"))

    @patch("complykit.services.document_parsing.PdfReader")
    def test_pdf_pages_are_joined(self, mock_reader: MagicMock) -> None:
        page_one, page_two = MagicMock(), MagicMock()
        page_one.extract_text.return_value = "Page one"
        page_two.extract_text.return_value = "Page two"
        mock_reader.return_value.pages = [page_one, page_two]
        result = document_parsing.parse(io.BytesIO(b"%PDF"), "application/pdf")
        self.assertTrue(result.success)
        self.assertEqual(result.extracted_text, "Page one\nPage two")
        self.assertEqual(result.page_count, 2)


class TestLocalFileStorage(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.storage = LocalFileStorage(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_save_get_delete(self) -> None:
        org_id, project_id = uuid.uuid4(), uuid.uuid4()
        path = self.storage.save_file(b"data", "Policy.PDF", org_id, project_id)
        self.assertTrue(path.startswith(f"{org_id}/{project_id}/"))
        self.assertTrue(path.endswith(".pdf"))
        with self.storage.get_file(path) as stream:
            self.assertEqual(stream.read(), b"data")
        self.storage.delete_file(path)
        with self.assertRaises(StorageError):
            self.storage.get_file(path)

    def test_deleting_missing_file_is_not_an_error(self) -> None:
        self.storage.delete_file("org/project/missing.txt")

    def test_paths_outside_root_are_rejected(self) -> None:
        with self.assertRaises(StorageError):
            self.storage.get_file("../../etc/passwd")

    def test_best_effort_delete_reports_failure(self) -> None:
        storage = MagicMock()
        storage.delete_file.side_effect = StorageError("denied")
        with self.assertLogs("complykit.services.storage", level="WARNING"):
            self.assertFalse(delete_file_best_effort(storage, "a/b/c.txt"))
        self.assertFalse(delete_file_best_effort(storage, None))


if __name__ == "__main__":
    unittest.main()
