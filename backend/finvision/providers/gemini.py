from __future__ import annotations

import http.client
import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from finvision.config.settings import ProviderSettings
from finvision.providers.errors import CredentialMissingError, NetworkError, ResponseError
from finvision.schemas.asset import Source


logger = logging.getLogger(__name__)

_GENERATE_PATH = "/models/{model}:generateContent"


@dataclass
class GeminiClient:
    api_key: str | None
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float | None = None

    @classmethod
    def from_settings(cls, provider_settings: ProviderSettings) -> "GeminiClient":
        return cls(
            api_key=provider_settings.gemini_api_key,
            model=provider_settings.gemini_model,
            base_url=provider_settings.gemini_base_url,
            timeout=provider_settings.request_timeout_seconds,
        )

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    def _build_url(self) -> str:
        return self.base_url.rstrip("/") + _GENERATE_PATH.format(model=self.model)

    def generate_content(self, body: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise CredentialMissingError("Gemini API key is not configured.")

        request = Request(
            self._build_url(),
            data=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key},
            method="POST",
        )
        options = {"timeout": self.timeout} if self.timeout else {}
        logger.debug("POST generateContent model=%s", self.model)
        try:
            with urlopen(request, **options) as response:
                body = response.read()
        except HTTPError as exc:
            raise NetworkError(f"Gemini request failed with HTTP {exc.code}.") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise NetworkError(f"Gemini request failed: {exc}") from exc

        try:
            payload = json.loads(body.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise ResponseError("Gemini returned a body that is not UTF-8.") from exc
        except json.JSONDecodeError as exc:
            raise ResponseError("Gemini returned a non-JSON envelope.") from exc
        if not isinstance(payload, dict):
            raise ResponseError("Gemini returned an unexpected envelope.")
        return payload


def _first_candidate(payload: dict[str, Any]) -> dict[str, Any]:
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return {}
    first = candidates[0]
    return first if isinstance(first, dict) else {}


def response_text(payload: dict[str, Any]) -> str:
    content = _first_candidate(payload).get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


def grounding_sources(payload: dict[str, Any]) -> list[Source]:
    metadata = _first_candidate(payload).get("groundingMetadata") or {}
    chunks = metadata.get("groundingChunks") if isinstance(metadata, dict) else None
    if not isinstance(chunks, list):
        return []

    sources: list[Source] = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        uri = web.get("uri")
        if not isinstance(uri, str) or not uri.strip():
            continue
        title = web.get("title")
        sources.append(Source(title=title if isinstance(title, str) else None, uri=uri))
    return sources
