"""HTTP client for a local Ollama-compatible text generation API.

Requests are non-streaming: POST {endpoint}/api/generate with
{"model", "prompt", "stream": false} and a single {"response", "done"}
object back. The client is async so the enricher can run its calls
concurrently and cancel in-flight requests.
"""

import logging
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from argus.config import AIConfig

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2"
DEFAULT_TIMEOUT = 120.0


class LLMError(Exception):
    """Base error for text generation calls."""


class LLMConnectionError(LLMError):
    """The endpoint could not be reached or timed out."""


class LLMResponseError(LLMError):
    """The endpoint answered with an error status or an unreadable body."""


class OllamaClient:
    """Client for the /api/generate endpoint.

    Attributes:
        endpoint: Base URL without trailing slash
        model: Model name sent with every request
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def http_client(self) -> httpx.AsyncClient:
        """New AsyncClient bound to the endpoint; callers own its lifetime."""
        return httpx.AsyncClient(
            base_url=self.endpoint,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def generate(self, prompt: str, http: httpx.AsyncClient | None = None) -> str:
        """Generate a completion for one prompt.

        Args:
            prompt: Prompt text
            http: Shared AsyncClient (a temporary one is used if None)

        Returns:
            The "response" text

        Raises:
            LLMConnectionError: If the endpoint is unreachable or times out
            LLMResponseError: On a non-2xx status or a malformed body
        """
        if http is None:
            async with self.http_client() as owned:
                return await self.generate(prompt, owned)

        payload = {"model": self.model, "prompt": prompt, "stream": False}
        try:
            response = await http.post("/api/generate", json=payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise LLMConnectionError(f"Request to {self.endpoint} timed out after {self.timeout}s") from e
        except httpx.ConnectError as e:
            raise LLMConnectionError(f"Cannot connect to {self.endpoint}: {e}") from e
        except httpx.HTTPStatusError as e:
            raise LLMResponseError(
                f"Generation failed with status {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise LLMConnectionError(f"Request to {self.endpoint} failed: {e}") from e

        try:
            data: Any = response.json()
        except ValueError as e:
            raise LLMResponseError(f"Invalid JSON from {self.endpoint}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise LLMResponseError("Response body has no 'response' field")
        if data.get("done") is False:
            logger.debug("Generation reported done=false for model %s", self.model)
        return data["response"]

    async def is_available(self) -> bool:
        """True when GET /api/tags answers 200."""
        try:
            async with self.http_client() as http:
                response = await http.get("/api/tags")
        except httpx.HTTPError as e:
            logger.debug("LLM endpoint %s unavailable: %s", self.endpoint, e)
            return False
        return response.status_code == 200


def create_client(config: "AIConfig", transport: httpx.AsyncBaseTransport | None = None) -> OllamaClient:
    """Create a client from the ai section of the configuration."""
    return OllamaClient(
        endpoint=config.endpoint,
        model=config.model,
        timeout=config.timeout,
        transport=transport,
    )
