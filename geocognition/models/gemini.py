"""Google Gemini integration via the ``generateContent`` REST endpoint."""

from __future__ import annotations

import base64
import logging
from typing import Any

import requests
from requests import Response, Session

from ..config import AppConfig
from .base import (
    BackendCapability,
    BackendInfo,
    InferenceRequest,
    InferenceResponse,
    TransportError,
    TransportErrorKind,
)
from .registry import BackendRegistry

logger = logging.getLogger(__name__)

_CREDENTIAL_REASONS = {"API_KEY_INVALID", "API_KEY_EXPIRED"}
_CREDENTIAL_MESSAGES = ("api key not valid", "invalid api key", "api key expired")
_CREDENTIAL_STATUS_CODES = {400, 401, 403}


def classify_http_error(status_code: int | None, error_body: dict[str, Any]) -> TransportErrorKind:
    """Derive a typed error kind from an HTTP status and the structured error body."""
    status = str(error_body.get("status") or "").upper()
    if status_code == 429 or status == "RESOURCE_EXHAUSTED":
        return TransportErrorKind.RATE_LIMIT

    if status_code in _CREDENTIAL_STATUS_CODES:
        reasons = {
            str(detail.get("reason") or "").upper()
            for detail in error_body.get("details") or []
            if isinstance(detail, dict)
        }
        if reasons & _CREDENTIAL_REASONS:
            return TransportErrorKind.CREDENTIAL
        message = str(error_body.get("message") or "").lower()
        if any(marker in message for marker in _CREDENTIAL_MESSAGES):
            return TransportErrorKind.CREDENTIAL
    return TransportErrorKind.OTHER


class GeminiBackend:
    """Multimodal inference transport talking to the Gemini REST API."""

    INFO = BackendInfo(
        identifier="remote.gemini",
        display_name="Google Gemini",
        description="Gemini multimodal models with structured output and Google Search grounding.",
        capabilities=(
            BackendCapability.VISION,
            BackendCapability.STRUCTURED_OUTPUT,
            BackendCapability.SEARCH_GROUNDING,
        ),
        tags=("remote", "gemini", "vision", "http"),
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._api_key = self._config.require_api_key()
        self._session: Session | None = None

    def info(self) -> BackendInfo:
        return self.INFO

    def load(self) -> None:
        self._session = requests.Session()

    def generate(self, request: InferenceRequest) -> InferenceResponse:
        endpoint = f"{self._config.remote_base_url}/v1beta/models/{request.model}:generateContent"
        response = self._session_post(endpoint, self._build_payload(request))
        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Gemini returned a non-JSON body for the {request.phase.value} call.",
                status_code=response.status_code,
            ) from exc
        return self._parse_response(data)

    # ----- Request creation ------------------------------------------------

    def _build_payload(self, request: InferenceRequest) -> dict[str, Any]:
        parts: list[dict[str, Any]] = []
        if request.image is not None:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": request.mime_type or "application/octet-stream",
                        "data": base64.b64encode(request.image).decode("ascii"),
                    }
                }
            )
        parts.append({"text": request.prompt})

        generation_config: dict[str, Any] = {"temperature": request.temperature}
        if request.response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = request.response_schema

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }
        if request.use_search:
            payload["tools"] = [{"google_search": {}}]
        return payload

    # ----- Response handling -----------------------------------------------

    @staticmethod
    def _parse_response(data: dict[str, Any]) -> InferenceResponse:
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback") or {}
            reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            raise TransportError(
                f"Gemini returned no candidates{f' (blocked: {reason})' if reason else ''}."
            )
        candidate = candidates[0] if isinstance(candidates[0], dict) else {}
        content = candidate.get("content") or {}
        texts = [
            part["text"]
            for part in content.get("parts") or []
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]

        chunks: list[dict[str, Any]] = []
        metadata = candidate.get("groundingMetadata") or {}
        for chunk in metadata.get("groundingChunks") or []:
            if isinstance(chunk, dict) and isinstance(chunk.get("web"), dict):
                chunks.append(dict(chunk["web"]))
        return InferenceResponse(text="".join(texts), grounding_chunks=chunks)

    # ----- HTTP helpers ----------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

    def _session_post(self, url: str, payload: dict[str, Any]) -> Response:
        if self._session is None:
            raise TransportError("HTTP session not initialised.")
        timeout = self._config.remote_timeout
        try:
            response = self._session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise TransportError(f"Gemini request timed out after {timeout}s.") from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Failed to contact Gemini: {exc}") from exc
        if response.status_code >= 400:
            error_body = self._error_body(response)
            kind = classify_http_error(response.status_code, error_body)
            message = error_body.get("message") or response.text
            logger.debug("Gemini HTTP %s classified as %s", response.status_code, kind.value)
            raise TransportError(
                f"Gemini returned HTTP {response.status_code}: {message}",
                kind=kind,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _error_body(response: Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        error = data.get("error") if isinstance(data, dict) else None
        return error if isinstance(error, dict) else {}


def _register() -> None:
    BackendRegistry.register(
        "remote.gemini",
        lambda config=None: GeminiBackend(config=config),
        info=GeminiBackend.INFO,
    )


_register()
