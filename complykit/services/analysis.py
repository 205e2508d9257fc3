"""Analysis capability: send a framework's controls and project document text to a local LLM (Ollama) and return per-control verdicts."""

import json
import logging
import time
from typing import TYPE_CHECKING, Protocol

import httpx

from complykit.models.base import utcnow
from complykit.schemas.analysis import (
    ComplianceSummary,
    FrameworkAnalysisRequest,
    FrameworkAnalysisResult,
)
from complykit.services.scoring import StatusCounts, compliance_score

if TYPE_CHECKING:
    from complykit.core.config import Settings

logger = logging.getLogger(__name__)


class AnalysisServiceError(Exception):
    """Raised when the analysis capability cannot complete (unreachable, timeout, or invalid JSON)."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        unavailable: bool = False,
    ) -> None:
        self.message = message
        self.cause = cause
        # True when the backend could not be reached at all (vs. a bad response).
        self.unavailable = unavailable
        super().__init__(message)


class AnalysisCapability(Protocol):
    async def analyze(self, request: FrameworkAnalysisRequest) -> FrameworkAnalysisResult:
        ...


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n[... content truncated ...]"


def build_prompt(request: FrameworkAnalysisRequest, max_document_chars: int) -> str:
    """Single prompt with every control and every document; the model must answer with JSON only."""
    controls_data = [
        {
            "control_id": str(c.control_id),
            "control_code": c.control_code,
            "title": c.title,
            "description": c.description,
            "implementation_guidance": c.implementation_guidance or "",
            "default_risk_level": c.default_risk_level.value,
            "is_mandatory": c.is_mandatory,
        }
        for c in request.controls
    ]
    documents_text = "\n\n".join(
        f"--- Document {d.document_id} ({d.file_name}) ---\n"
        f"{_truncate(d.content, max_document_chars) or '[no extractable text]'}"
        for d in request.documents
    )
    return f"""You are a compliance auditor assessing a project against the framework "{request.framework_name}" ({request.framework_code}).

Controls (JSON):
{json.dumps(controls_data, indent=2)}

Project documents:
{documents_text}

For every control, decide whether the documents demonstrate compliance. Respond with ONLY a single valid JSON object (no markdown, no code fence, no extra text) of exactly this shape:
{{
  "results": [
    {{
      "control_id": "<control_id from the list>",
      "status": "Compliant|PartiallyCompliant|NonCompliant|NotAssessed|NotApplicable",
      "risk_level": "Low|Medium|High|Critical",
      "finding_title": "Short title of the gap (empty when compliant).",
      "finding_description": "What is missing or insufficient.",
      "remediation_guidance": "Concrete steps to close the gap.",
      "estimated_effort_hours": 8,
      "confidence_score": 0.8,
      "evidence_references": [
        {{
          "document_id": "<document id from the headers above>",
          "excerpt": "Quoted text supporting the verdict.",
          "page_reference": "p. 3",
          "relevance_score": 0.9,
          "evidence_type": "Supporting|Contradicting|Contextual"
        }}
      ]
    }}
  ]
}}

Include exactly one object in "results" per control, in the same order. Output only the JSON object."""


def _strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        lines = raw.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        raw = "\n".join(lines)
    return raw


def summarize(result: FrameworkAnalysisResult) -> ComplianceSummary:
    counts = StatusCounts.from_statuses(r.status for r in result.results)
    return ComplianceSummary(
        compliance_score=compliance_score(counts),
        compliant_count=counts.compliant,
        partial_count=counts.partial,
        non_compliant_count=counts.non_compliant,
        not_assessed_count=counts.not_assessed,
    )


class OllamaAnalysisService:
    """AnalysisCapability backed by Ollama's /api/generate in JSON mode."""

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings

    def _log_failure(self, elapsed: float, request: FrameworkAnalysisRequest, model: str) -> None:
        logger.info(
            "LLM compliance analysis request failed",
            extra={
                "llm_latency_seconds": elapsed,
                "control_count": len(request.controls),
                "document_count": len(request.documents),
                "model": model,
                "status": "error",
            },
        )

    async def analyze(self, request: FrameworkAnalysisRequest) -> FrameworkAnalysisResult:
        """
        Run one analysis over all controls and documents.

        Raises AnalysisServiceError on connection failure, timeout, non-200 status,
        invalid JSON, or output that does not match the result schema.
        """
        settings = self.settings
        model = request.options.model or settings.OLLAMA_MODEL
        temperature = (
            request.options.temperature
            if request.options.temperature is not None
            else settings.OLLAMA_TEMPERATURE
        )
        url = f"{settings.OLLAMA_BASE_URL.rstrip('/')}/api/generate"
        payload = {
            "model": model,
            "prompt": build_prompt(request, settings.ANALYSIS_MAX_DOCUMENT_CHARS),
            "stream": False,
            "format": "json",
            "options": {
                "temperature": temperature,
                "top_p": settings.OLLAMA_TOP_P,
                "seed": settings.OLLAMA_SEED,
            },
        }
        timeout = httpx.Timeout(settings.OLLAMA_REQUEST_TIMEOUT_SEC)
        start = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, json=payload)
            elapsed = time.perf_counter() - start
        except httpx.ConnectError as e:
            self._log_failure(time.perf_counter() - start, request, model)
            raise AnalysisServiceError(
                "Analysis service is unreachable. Ensure Ollama is running and OLLAMA_BASE_URL is correct.",
                cause=e,
                unavailable=True,
            ) from e
        except httpx.TimeoutException as e:
            self._log_failure(time.perf_counter() - start, request, model)
            raise AnalysisServiceError(
                "Analysis request timed out. Try increasing OLLAMA_REQUEST_TIMEOUT_SEC or analyzing fewer documents.",
                cause=e,
                unavailable=True,
            ) from e
        except httpx.HTTPError as e:
            self._log_failure(time.perf_counter() - start, request, model)
            raise AnalysisServiceError("Analysis request failed.", cause=e) from e

        if response.status_code != 200:
            raise AnalysisServiceError(
                f"Analysis service returned status {response.status_code}. Check that the model is pulled (e.g. ollama pull {model})."
            )

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise AnalysisServiceError(
                "Analysis service response body is not valid JSON.",
                cause=e,
            ) from e

        logger.info(
            "LLM compliance analysis request completed",
            extra={
                "llm_latency_seconds": elapsed,
                "control_count": len(request.controls),
                "document_count": len(request.documents),
                "model": model,
            },
        )

        raw_response = body.get("response")
        if raw_response is None:
            raise AnalysisServiceError("Analysis service response missing 'response' field.")

        if isinstance(raw_response, str):
            try:
                parsed = json.loads(_strip_code_fence(raw_response))
            except json.JSONDecodeError as e:
                raise AnalysisServiceError(
                    "Invalid JSON from model. The model must respond with only valid JSON.",
                    cause=e,
                ) from e
        else:
            parsed = raw_response

        if not isinstance(parsed, dict):
            raise AnalysisServiceError("Model output is not a JSON object.")

        try:
            result = FrameworkAnalysisResult.model_validate(
                {"results": parsed.get("results", [])}
            )
        except Exception as e:
            raise AnalysisServiceError(
                "Model output does not match expected schema (results with control_id, status, risk_level, evidence_references).",
                cause=e,
            ) from e

        result.summary = summarize(result)
        result.duration_seconds = elapsed
        result.model = model
        result.analysis_completed_at = utcnow()
        return result
