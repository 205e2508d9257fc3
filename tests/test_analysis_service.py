"""Analysis client: request payload carries configured options, responses are parsed and failures mapped (no network)."""

import asyncio
import json
import unittest
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from complykit.models.enums import ComplianceStatus
from complykit.schemas.analysis import (
    AnalysisOptions,
    ControlSummary,
    DocumentContent,
    FrameworkAnalysisRequest,
)
from complykit.services.analysis import (
    AnalysisServiceError,
    OllamaAnalysisService,
    build_prompt,
)

from support import make_settings

CONTROL_ID = uuid.UUID("00000000-0000-0000-0000-0000000000c1")
DOCUMENT_ID = uuid.UUID("00000000-0000-0000-0000-0000000000d1")


def _request(**options: object) -> FrameworkAnalysisRequest:
    return FrameworkAnalysisRequest(
        project_id=uuid.uuid4(),
        framework_id=uuid.uuid4(),
        framework_code="SOC2",
        framework_name="SOC 2",
        controls=[ControlSummary(control_id=CONTROL_ID, control_code="C1", title="Access control")],
        documents=[DocumentContent(document_id=DOCUMENT_ID, file_name="D1.txt", content="Policy text")],
        options=AnalysisOptions(**options),
    )


MODEL_OUTPUT = {
    "results": [
        {
            "control_id": str(CONTROL_ID),
            "status": "NonCompliant",
            "risk_level": "High",
            "finding_title": "No access reviews",
            "evidence_references": [
                {"document_id": str(DOCUMENT_ID), "excerpt": "Reviews are ad hoc.", "evidence_type": "Contradicting"}
            ],
        }
    ]
}


def _mock_client(mock_client_class: MagicMock, post: AsyncMock) -> None:
    mock_instance = MagicMock()
    mock_instance.post = post
    mock_client_class.return_value.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_client_class.return_value.__aexit__ = AsyncMock(return_value=None)


def _response(status_code: int = 200, body: object = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body if body is not None else {"response": json.dumps(MODEL_OUTPUT)}
    return resp


class TestPrompt(unittest.TestCase):
    def test_prompt_lists_controls_and_documents(self) -> None:
        prompt = build_prompt(_request(), max_document_chars=1000)
        self.assertIn(str(CONTROL_ID), prompt)
        self.assertIn(f"Document {DOCUMENT_ID} (D1.txt)", prompt)
        self.assertIn("Policy text", prompt)

    def test_long_documents_are_truncated(self) -> None:
        request = _request()
        request.documents[0].content = "x" * 50
        prompt = build_prompt(request, max_document_chars=10)
        self.assertIn("x" * 10 + "\n[... content truncated ...]", prompt)
        self.assertNotIn("x" * 11, prompt)


class TestOllamaAnalysisService(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_payload_includes_deterministic_options(self, mock_client_class: MagicMock) -> None:
        post = AsyncMock(return_value=_response())
        _mock_client(mock_client_class, post)
        asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))

        url = post.call_args.args[0]
        payload = post.call_args.kwargs["json"]
        self.assertEqual(url, "http://localhost:11434/api/generate")
        self.assertEqual(payload["model"], "test-model")
        self.assertEqual(payload["format"], "json")
        self.assertFalse(payload["stream"])
        self.assertEqual(payload["options"], {"temperature": 0.3, "top_p": 1.0, "seed": 42})

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_request_options_override_configuration(self, mock_client_class: MagicMock) -> None:
        post = AsyncMock(return_value=_response())
        _mock_client(mock_client_class, post)
        result = asyncio.run(
            OllamaAnalysisService(self.settings).analyze(_request(model="other", temperature=0.0))
        )
        payload = post.call_args.kwargs["json"]
        self.assertEqual(payload["model"], "other")
        self.assertEqual(payload["options"]["temperature"], 0.0)
        self.assertEqual(result.model, "other")

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_result_is_parsed_and_summarized(self, mock_client_class: MagicMock) -> None:
        fenced = "```json\n" + json.dumps(MODEL_OUTPUT) + "\n```"
        _mock_client(mock_client_class, AsyncMock(return_value=_response(body={"response": fenced})))
        result = asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))
        (control_result,) = result.results
        self.assertEqual(control_result.control_id, CONTROL_ID)
        self.assertEqual(control_result.status, ComplianceStatus.NON_COMPLIANT)
        self.assertEqual(control_result.evidence_references[0].document_id, DOCUMENT_ID)
        self.assertEqual(result.summary.non_compliant_count, 1)
        self.assertEqual(result.summary.compliance_score, 0.0)
        self.assertIsNotNone(result.analysis_completed_at)
        self.assertIsNotNone(result.duration_seconds)

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_connect_error_is_unavailable(self, mock_client_class: MagicMock) -> None:
        _mock_client(mock_client_class, AsyncMock(side_effect=httpx.ConnectError("refused")))
        with self.assertRaises(AnalysisServiceError) as ctx:
            asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))
        self.assertTrue(ctx.exception.unavailable)
        self.assertIn("unreachable", ctx.exception.message)

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_timeout_is_unavailable(self, mock_client_class: MagicMock) -> None:
        _mock_client(mock_client_class, AsyncMock(side_effect=httpx.ReadTimeout("slow")))
        with self.assertRaises(AnalysisServiceError) as ctx:
            asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))
        self.assertTrue(ctx.exception.unavailable)

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_non_200_is_bad_response(self, mock_client_class: MagicMock) -> None:
        _mock_client(mock_client_class, AsyncMock(return_value=_response(status_code=404, body={})))
        with self.assertRaises(AnalysisServiceError) as ctx:
            asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))
        self.assertFalse(ctx.exception.unavailable)
        self.assertIn("404", ctx.exception.message)

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_invalid_model_json_is_bad_response(self, mock_client_class: MagicMock) -> None:
        _mock_client(
            mock_client_class, AsyncMock(return_value=_response(body={"response": "not json"}))
        )
        with self.assertRaises(AnalysisServiceError) as ctx:
            asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))
        self.assertFalse(ctx.exception.unavailable)

    @patch("complykit.services.analysis.httpx.AsyncClient")
    def test_schema_mismatch_is_bad_response(self, mock_client_class: MagicMock) -> None:
        bad = {"results": [{"control_id": "not-a-uuid", "status": "Maybe"}]}
        _mock_client(
            mock_client_class, AsyncMock(return_value=_response(body={"response": json.dumps(bad)}))
        )
        with self.assertRaises(AnalysisServiceError) as ctx:
            asyncio.run(OllamaAnalysisService(self.settings).analyze(_request()))
        self.assertIn("expected schema", ctx.exception.message)


if __name__ == "__main__":
    unittest.main()
