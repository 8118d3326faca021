"""AI enrichment post-pass.

Five generation calls (summary, conventions, architecture, best practices,
patterns) run concurrently against one HTTP client. Results are merged after
all calls settle. Individual failures are logged and skipped; the pass fails
only when every call failed.
"""

import asyncio
import json
import logging
import threading
from collections.abc import Iterable
from typing import Any

from argus.analyzers.base import AnalysisCancelledError
from argus.llm.client import OllamaClient, create_client
from argus.llm.prompts import PROMPT_BUILDERS
from argus.models.analysis import AIEnrichment, Analysis, EnrichedInsight

logger = logging.getLogger(__name__)

# Poll interval for the cancellation watcher
CANCEL_POLL_INTERVAL = 0.05


class EnrichmentError(Exception):
    """Every enrichment call failed.

    Attributes:
        failures: Call name -> error, in call order
    """

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = failures
        detail = "; ".join(f"{name}: {err}" for name, err in failures.items())
        super().__init__(f"All AI enrichment calls failed ({detail})")


def parse_insights(response: str) -> list[EnrichedInsight]:
    """Extract insights from a model response.

    The JSON array between the first "[" and the last "]" is decoded; entries
    without both a title and a description are dropped. Unparseable text
    yields an empty list.
    """
    text = response.strip()
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        return []

    try:
        data: Any = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        logger.debug("Failed to parse insights JSON: %s", e)
        return []
    if not isinstance(data, list):
        return []

    insights = []
    for item in data:
        if not isinstance(item, dict):
            continue
        title, description = item.get("title"), item.get("description")
        if isinstance(title, str) and isinstance(description, str) and title and description:
            insights.append(EnrichedInsight(title=title, description=description))
    return insights


class Enricher:
    """Runs the enrichment calls for one Analysis."""

    def __init__(self, client: OllamaClient) -> None:
        self.client = client

    @classmethod
    def from_config(cls, config: Any) -> "Enricher":
        """Build from an AIConfig."""
        return cls(create_client(config))

    def is_available(self) -> bool:
        return asyncio.run(self.client.is_available())

    def enrich(self, analysis: Analysis, cancel_event: threading.Event | None = None) -> AIEnrichment:
        """Synchronous wrapper around enrich_async."""
        return asyncio.run(self.enrich_async(analysis, cancel_event))

    async def enrich_async(
        self,
        analysis: Analysis,
        cancel_event: threading.Event | None = None,
    ) -> AIEnrichment:
        """Run all calls and attach the merged result to analysis.ai_enrichment.

        Args:
            analysis: Analysis to enrich (prompts are built from it up front)
            cancel_event: Cancellation token; setting it cancels in-flight requests

        Returns:
            The attached AIEnrichment

        Raises:
            AnalysisCancelledError: If cancelled before all calls settled
            EnrichmentError: If every call failed
        """
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError()

        prompts = {name: build(analysis) for name, build in PROMPT_BUILDERS.items()}

        async with self.client.http_client() as http:
            tasks = {
                name: asyncio.create_task(self.client.generate(prompt, http), name=f"enrich-{name}")
                for name, prompt in prompts.items()
            }
            watcher = None
            if cancel_event is not None:
                watcher = asyncio.create_task(_watch_cancel(cancel_event, tasks.values()))
            try:
                outcomes = await asyncio.gather(*tasks.values(), return_exceptions=True)
            finally:
                if watcher is not None:
                    watcher.cancel()

        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError()

        enrichment = AIEnrichment(model=self.client.model)
        failures: dict[str, BaseException] = {}
        for name, outcome in zip(tasks, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.warning("AI enrichment call %s failed: %s", name, outcome)
                failures[name] = outcome
                continue
            if name == "summary":
                enrichment.project_summary = outcome.strip()
            else:
                setattr(enrichment, name, parse_insights(outcome))

        if len(failures) == len(tasks):
            raise EnrichmentError(failures)

        logger.info(
            "AI enrichment complete: %d of %d calls succeeded",
            len(tasks) - len(failures),
            len(tasks),
        )
        analysis.ai_enrichment = enrichment
        return enrichment


async def _watch_cancel(cancel_event: threading.Event, tasks: Iterable[asyncio.Task]) -> None:
    """Cancel the tasks once cancel_event is set."""
    pending = list(tasks)
    while not all(task.done() for task in pending):
        if cancel_event.is_set():
            for task in pending:
                task.cancel()
            return
        await asyncio.sleep(CANCEL_POLL_INTERVAL)
