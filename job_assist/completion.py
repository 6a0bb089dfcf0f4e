"""
Client for the local Ollama server – the only completion service this app talks to.

`OllamaClient.complete()` posts to /api/chat (non-streaming) and returns the
assistant message text. Every failure (connection refused, timeout, HTTP
error, unexpected body) surfaces as ServiceUnavailableError: to the pipeline
they all mean "there is no text to work with".
"""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

import config

logger = logging.getLogger(__name__)


class ServiceUnavailableError(RuntimeError):
    """The completion service could not produce a reply."""
    pass


class OllamaClient:
    """Thin wrapper around the Ollama HTTP API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.OLLAMA_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def complete(self, prompt: str, model: str, system: Optional[str] = None) -> str:
        """
        Send one prompt and return the assistant message content.
        Raises ServiceUnavailableError on any failure.
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        body = self._post("/api/chat", {
            "model":    model,
            "stream":   False,
            "messages": messages,
            "options":  {"temperature": config.OLLAMA_TEMPERATURE},
        })
        if "error" in body:
            raise ServiceUnavailableError(f"Ollama error: {body['error']}")
        try:
            content = body["message"]["content"]
        except (KeyError, TypeError) as exc:
            raise ServiceUnavailableError(f"Unexpected Ollama response shape: missing key {exc}") from exc
        if not isinstance(content, str):
            raise ServiceUnavailableError(
                f"Unexpected Ollama response shape: content is {type(content).__name__}"
            )
        return content

    def list_models(self) -> List[str]:
        """Names of the models installed on the Ollama server, sorted."""
        url = f"{self.base_url}/api/tags"
        try:
            resp = self.session.get(url, timeout=min(self.timeout, 5))
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise ServiceUnavailableError(f"Ollama unreachable ({self.base_url}): {exc}") from exc
        except ValueError as exc:
            raise ServiceUnavailableError(f"Ollama returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ServiceUnavailableError("Unexpected Ollama response shape: body is not an object")
        return sorted(m.get("name", "") for m in data.get("models", []) if m.get("name"))

    def is_available(self) -> bool:
        try:
            self.list_models()
        except ServiceUnavailableError as exc:
            logger.debug("Ollama health check failed: %s", exc)
            return False
        return True

    # ── helpers ────────────────────────────────────────────────
    def _post(self, path: str, payload: dict) -> dict:
        url = self.base_url + path
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.Timeout as exc:
            raise ServiceUnavailableError(f"Ollama timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise ServiceUnavailableError(f"Ollama unreachable ({self.base_url}): {exc}") from exc

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("error", resp.reason)
            except ValueError:
                detail = resp.reason
            raise ServiceUnavailableError(f"Ollama HTTP {resp.status_code}: {detail}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise ServiceUnavailableError(f"Ollama returned invalid JSON: {exc}") from exc
        if not isinstance(body, dict):
            raise ServiceUnavailableError("Unexpected Ollama response shape: body is not an object")
        return body
