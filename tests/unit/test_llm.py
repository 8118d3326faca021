"""Unit tests for the AI enrichment client, prompts and enricher."""

import asyncio
import json
import threading

import httpx
import pytest

from argus.analyzers.base import AnalysisCancelledError
from argus.config import AIConfig
from argus.llm import (
    PROMPT_BUILDERS,
    Enricher,
    EnrichmentError,
    LLMConnectionError,
    LLMResponseError,
    OllamaClient,
    create_client,
    parse_insights,
)
from argus.models.analysis import Analysis, EnrichedInsight

INSIGHTS = json.dumps(
    [
        {"title": "Error wrapping", "description": "Wrap errors with context"},
        {"title": "Table tests", "description": "Prefer table-driven tests"},
    ]
)


def client_for(handler) -> OllamaClient:
    return OllamaClient(model="test-model", transport=httpx.MockTransport(handler))


def ok(text: str) -> httpx.Response:
    return httpx.Response(200, json={"response": text, "done": True})


# =============================================================================
# Client
# =============================================================================


class TestOllamaClient:
    """Tests for OllamaClient.generate()."""

    def test_sends_non_streaming_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return ok("hello")

        result = asyncio.run(client_for(handler).generate("Say hi"))

        assert result == "hello"
        assert seen[0].url.path == "/api/generate"
        assert json.loads(seen[0].content) == {
            "model": "test-model",
            "prompt": "Say hi",
            "stream": False,
        }

    def test_error_status(self) -> None:
        client = client_for(lambda request: httpx.Response(500, text="model not loaded"))

        with pytest.raises(LLMResponseError, match="status 500"):
            asyncio.run(client.generate("x"))

    def test_connection_refused(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(LLMConnectionError, match="Cannot connect"):
            asyncio.run(client_for(handler).generate("x"))

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(LLMConnectionError, match="timed out"):
            asyncio.run(client_for(handler).generate("x"))

    def test_body_without_response_field(self) -> None:
        client = client_for(lambda request: httpx.Response(200, json={"done": True}))

        with pytest.raises(LLMResponseError, match="no 'response' field"):
            asyncio.run(client.generate("x"))

    def test_body_not_json(self) -> None:
        client = client_for(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(LLMResponseError, match="Invalid JSON"):
            asyncio.run(client.generate("x"))

    def test_is_available(self) -> None:
        up = client_for(lambda request: httpx.Response(200, json={"models": []}))
        down = client_for(lambda request: httpx.Response(404))

        assert asyncio.run(up.is_available()) is True
        assert asyncio.run(down.is_available()) is False

    def test_create_client_from_config(self) -> None:
        client = create_client(AIConfig(endpoint="http://gpu-box:11434/", model="qwen2.5", timeout=5))

        assert client.endpoint == "http://gpu-box:11434"
        assert client.model == "qwen2.5"
        assert client.timeout == 5


# =============================================================================
# Prompts and parsing
# =============================================================================


class TestPrompts:
    """Tests for the prompt builders."""

    def test_call_order(self) -> None:
        assert list(PROMPT_BUILDERS) == [
            "summary",
            "conventions",
            "architecture",
            "best_practices",
            "patterns",
        ]

    def test_prompts_are_deterministic(self, sample_analysis: Analysis) -> None:
        for build in PROMPT_BUILDERS.values():
            assert build(sample_analysis) == build(sample_analysis)

    def test_summary_mentions_stack(self, sample_analysis: Analysis) -> None:
        prompt = PROMPT_BUILDERS["summary"](sample_analysis)

        assert "Project: shop" in prompt
        assert "Languages: Go, TypeScript" in prompt
        assert "README description: An example storefront." in prompt

    def test_insight_prompts_ask_for_json(self, sample_analysis: Analysis) -> None:
        for name in ("conventions", "architecture", "best_practices", "patterns"):
            assert "Respond with ONLY the JSON array." in PROMPT_BUILDERS[name](sample_analysis)

    def test_conventions_prompt_lists_detected(self, sample_analysis: Analysis) -> None:
        prompt = PROMPT_BUILDERS["conventions"](sample_analysis)

        assert "Primary language: Go" in prompt
        assert "- [naming] Components use PascalCase naming" in prompt


class TestParseInsights:
    """Tests for parse_insights()."""

    def test_array_surrounded_by_prose(self) -> None:
        response = f"Here you go:\n```json\n{INSIGHTS}\n```\nHope this helps."

        assert parse_insights(response) == [
            EnrichedInsight("Error wrapping", "Wrap errors with context"),
            EnrichedInsight("Table tests", "Prefer table-driven tests"),
        ]

    def test_incomplete_entries_are_dropped(self) -> None:
        response = json.dumps([{"title": "Only title"}, {"title": "A", "description": "B"}, "text"])

        assert parse_insights(response) == [EnrichedInsight("A", "B")]

    def test_unparseable(self) -> None:
        assert parse_insights("no json here") == []
        assert parse_insights("[not, valid") == []
        assert parse_insights('{"title": "object"}') == []


# =============================================================================
# Enricher
# =============================================================================


def route_by_prompt(fail: set[str]):
    """Handler answering each enrichment call, failing the named ones."""
    markers = {
        "summary": "technical writer",
        "conventions": "additional coding conventions",
        "architecture": "software architect",
        "best_practices": "best practices",
        "patterns": "code reviewer",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        prompt = json.loads(request.content)["prompt"]
        name = next(n for n, marker in markers.items() if marker in prompt)
        if name in fail:
            return httpx.Response(503, text="overloaded")
        if name == "summary":
            return ok("  A storefront with a Go API.  ")
        return ok(INSIGHTS)

    return handler


class TestEnricher:
    """Tests for Enricher.enrich()."""

    def test_all_calls_succeed(self, sample_analysis: Analysis) -> None:
        enricher = Enricher(client_for(route_by_prompt(fail=set())))

        enrichment = enricher.enrich(sample_analysis)

        assert sample_analysis.ai_enrichment is enrichment
        assert enrichment.model == "test-model"
        assert enrichment.project_summary == "A storefront with a Go API."
        assert len(enrichment.conventions) == 2
        assert len(enrichment.patterns) == 2

    def test_partial_failure_keeps_successful_groups(self, sample_analysis: Analysis) -> None:
        enricher = Enricher(client_for(route_by_prompt(fail={"summary"})))

        enrichment = enricher.enrich(sample_analysis)

        assert enrichment.project_summary == ""
        for group in ("conventions", "architecture", "best_practices", "patterns"):
            assert len(getattr(enrichment, group)) == 2
        assert sample_analysis.ai_enrichment is enrichment

    def test_all_calls_fail(self, sample_analysis: Analysis) -> None:
        enricher = Enricher(client_for(route_by_prompt(fail=set(PROMPT_BUILDERS))))

        with pytest.raises(EnrichmentError) as exc_info:
            enricher.enrich(sample_analysis)

        assert list(exc_info.value.failures) == list(PROMPT_BUILDERS)
        assert sample_analysis.ai_enrichment is None

    def test_cancelled_before_start(self, sample_analysis: Analysis) -> None:
        event = threading.Event()
        event.set()
        enricher = Enricher(client_for(route_by_prompt(fail=set())))

        with pytest.raises(AnalysisCancelledError):
            enricher.enrich(sample_analysis, cancel_event=event)

        assert sample_analysis.ai_enrichment is None

    def test_cancel_aborts_in_flight_requests(self, sample_analysis: Analysis) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(30)
            return ok("late")

        event = threading.Event()
        timer = threading.Timer(0.1, event.set)
        enricher = Enricher(client_for(slow))

        timer.start()
        try:
            with pytest.raises(AnalysisCancelledError):
                enricher.enrich(sample_analysis, cancel_event=event)
        finally:
            timer.cancel()

        assert sample_analysis.ai_enrichment is None
