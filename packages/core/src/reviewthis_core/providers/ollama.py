from __future__ import annotations

import logging

import httpx

from reviewthis_core.providers.base import BaseInferenceClient, InferenceError

logger = logging.getLogger(__name__)

# The liveness check should answer instantly; generation may take minutes.
_PING_TIMEOUT = 5.0


class OllamaClient(BaseInferenceClient):
    """Blocking client for a local Ollama server's /api/generate endpoint."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "codellama",
        temperature: float = 0.2,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.host = host.rstrip("/")
        self.model = model
        self.temperature = temperature
        # timeout=None waits for the model as long as it takes.
        self._client = httpx.Client(base_url=self.host, timeout=timeout, transport=transport)

    def _ping(self) -> None:
        try:
            response = self._client.get("/api/tags", timeout=_PING_TIMEOUT)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise InferenceError(
                f"Ollama is not reachable at {self.host} ({e}). Please start Ollama first."
            ) from e

    def _call_api(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        logger.debug("POST %s/api/generate (model=%s, %d prompt chars)", self.host, self.model, len(prompt))
        try:
            response = self._client.post("/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise InferenceError(f"Ollama API error: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Cannot reach Ollama at {self.host}: {e}") from e
        except ValueError as e:
            raise InferenceError(f"Ollama returned a malformed response: {e}") from e

        if not isinstance(data, dict):
            raise InferenceError("Ollama returned a malformed response: expected a JSON object")
        if data.get("error"):
            raise InferenceError(f"Ollama error: {data['error']}")
        text = data.get("response")
        if not isinstance(text, str):
            raise InferenceError("Ollama response has no 'response' field")
        return text

    def close(self) -> None:
        self._client.close()
