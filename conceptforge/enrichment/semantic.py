"""Semantic enrichment runner.

Applies a ConceptEnricher to every concept in fixed-size batches:

    concepts ──► [batch 1] ──► [batch 2] ──► ...      (sequential)
                   │ │ │ │ │
                   ▼ ▼ ▼ ▼ ▼                        (parallel in a batch)
                enricher.enrich(copy, context)

Items of a batch run concurrently, one daemon thread each, and may finish
in any order; results are applied in concept order. Each batch is bounded
by ``EnrichmentConfig.timeout_sec``: calls that fail or do not finish in
time yield empty fields, a warning, and a failure count. Nothing here
blocks indefinitely.

Python threads cannot be killed. A call that hangs past the timeout keeps
its worker thread until the enricher returns; the thread is a daemon, so
a CLI run still exits as soon as the map is written. A long-lived server
using an enricher that can hang should give it its own network timeouts.
"""

from __future__ import annotations

import copy
import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from conceptforge.core.config import EnrichmentConfig
from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, EnrichmentFields
from conceptforge.enrichment.enrichers import (
    ConceptEnricher,
    EnrichmentContext,
    TextualEnricher,
)

logger = get_logger(__name__)

WORKER_THREAD_PREFIX = "conceptforge-enrich"


@dataclass
class EnrichmentReport:
    """Outcome of one enrichment pass."""

    definitions_added: int = 0
    examples_added: int = 0
    related_terms_added: int = 0
    failures: int = 0
    semantic_depth: float = 0.0
    batches: int = 0

    @property
    def stats(self) -> Dict[str, int]:
        """Counters in the metadata shape."""
        return {
            "definitionsCount": self.definitions_added,
            "examplesCount": self.examples_added,
            "relatedTermsCount": self.related_terms_added,
            "failures": self.failures,
        }


@dataclass
class _BatchOutcome:
    fields: List[EnrichmentFields] = field(default_factory=list)
    failures: int = 0


def _submit_daemon(name: str, func: Callable[..., Any], *args: Any) -> Future:
    """Run func on a daemon thread and expose the outcome as a Future.

    A call that never returns keeps its thread alive but does not hold
    up interpreter exit.
    """
    future: Future = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = func(*args)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    threading.Thread(target=_run, name=name, daemon=True).start()
    return future


def recompute_importance(concept: Concept) -> float:
    """Fallback importance from level and related terms."""
    related = len(concept.related_terms or ())
    return round((1 / (concept.level + 1)) * (related + 1), 3)


def semantic_depth(concepts: List[Concept]) -> float:
    """Mean of 1[definition] + 0.5*|examples| + 0.3*|relatedTerms|."""
    if not concepts:
        return 0.0
    total = 0.0
    for concept in concepts:
        total += 1.0 if concept.definition else 0.0
        total += 0.5 * len(concept.examples or ())
        total += 0.3 * len(concept.related_terms or ())
    return round(total / len(concepts), 3)


class SemanticEnricher:
    """Run a ConceptEnricher over all concepts with batching and timeouts."""

    def __init__(
        self,
        enricher: Optional[ConceptEnricher] = None,
        config: Optional[EnrichmentConfig] = None,
        include_definitions: bool = True,
        include_examples: bool = True,
    ) -> None:
        """Initialize runner.

        Args:
            enricher: Knowledge source (TextualEnricher if omitted)
            config: Batch size, timeout and list caps
            include_definitions: Apply definitions produced by the enricher
            include_examples: Apply examples produced by the enricher
        """
        self.enricher = enricher if enricher is not None else TextualEnricher()
        self.config = config or EnrichmentConfig()
        self.include_definitions = include_definitions
        self.include_examples = include_examples

    def enrich(self, concepts: List[Concept], text: str) -> EnrichmentReport:
        """Enrich concepts in place.

        Only enrichment fields are written; id, name and level are never
        touched. Concepts left without importance get it recomputed.

        Args:
            concepts: Concepts to enrich
            text: Source text

        Returns:
            EnrichmentReport with counters and semantic depth
        """
        report = EnrichmentReport()
        context = EnrichmentContext.build(
            text,
            concepts,
            max_examples=self.config.max_examples,
            max_related_terms=self.config.max_related_terms,
        )

        if not self.enricher.is_available():
            logger.warning("Enricher unavailable, skipping", enricher=repr(self.enricher))
        else:
            size = self.config.batch_size
            for start in range(0, len(concepts), size):
                batch = concepts[start : start + size]
                outcome = self._run_batch(batch, context)
                report.batches += 1
                report.failures += outcome.failures
                for concept, fields in zip(batch, outcome.fields):
                    self._apply(concept, fields)

        for concept in concepts:
            if concept.importance is None:
                concept.importance = recompute_importance(concept)
            if concept.definition:
                report.definitions_added += 1
            report.examples_added += len(concept.examples or ())
            report.related_terms_added += len(concept.related_terms or ())

        report.semantic_depth = semantic_depth(concepts)
        logger.debug(
            "Enrichment complete",
            concepts=len(concepts),
            batches=report.batches,
            failures=report.failures,
        )
        return report

    def _run_batch(
        self, batch: List[Concept], context: EnrichmentContext
    ) -> _BatchOutcome:
        """Enrich one batch concurrently, bounded by the batch timeout."""
        outcome = _BatchOutcome()
        futures = [
            _submit_daemon(
                f"{WORKER_THREAD_PREFIX}-{concept.id}",
                self.enricher.enrich,
                copy.deepcopy(concept),
                context,
            )
            for concept in batch
        ]
        done, _ = wait(futures, timeout=self.config.timeout_sec)

        for concept, future in zip(batch, futures):
            if future not in done:
                logger.warning(
                    "Enrichment timed out",
                    concept=concept.name,
                    timeout_sec=self.config.timeout_sec,
                )
                outcome.failures += 1
                outcome.fields.append(EnrichmentFields())
                continue
            try:
                fields = future.result()
            except Exception as e:
                logger.warning("Enrichment failed", concept=concept.name, error=str(e))
                outcome.failures += 1
                outcome.fields.append(EnrichmentFields())
                continue
            if not isinstance(fields, EnrichmentFields):
                logger.warning(
                    "Enricher returned unexpected type",
                    concept=concept.name,
                    type=type(fields).__name__,
                )
                outcome.failures += 1
                fields = EnrichmentFields()
            outcome.fields.append(fields)

        return outcome

    def _apply(self, concept: Concept, fields: EnrichmentFields) -> None:
        """Apply fields with per-level example caps."""
        example_cap = min(self.config.max_examples, max(1, 3 - concept.level))
        capped = EnrichmentFields(
            definition=fields.definition,
            examples=list(fields.examples)[:example_cap],
            related_terms=set(sorted(fields.related_terms)[: self.config.max_related_terms]),
            category=fields.category,
            subcategory=fields.subcategory,
        )
        concept.apply_enrichment(
            capped,
            include_definitions=self.include_definitions,
            include_examples=self.include_examples,
        )
