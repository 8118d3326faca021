"""AI enrichment for argus.

Talks to a local Ollama-compatible endpoint over httpx. Enrichment is an
optional post-pass: the deterministic Analysis never depends on it.
"""

from argus.llm.client import (
    LLMConnectionError,
    LLMError,
    LLMResponseError,
    OllamaClient,
    create_client,
)
from argus.llm.enricher import Enricher, EnrichmentError, parse_insights
from argus.llm.prompts import PROMPT_BUILDERS

__all__ = [
    "Enricher",
    "EnrichmentError",
    "LLMConnectionError",
    "LLMError",
    "LLMResponseError",
    "OllamaClient",
    "PROMPT_BUILDERS",
    "create_client",
    "parse_insights",
]
