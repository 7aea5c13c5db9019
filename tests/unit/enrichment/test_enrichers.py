"""
Tests for concept enrichers and the batched semantic enrichment runner.

Organization
------------
- TestEnrichmentContext: Sentence lookup shared by enrichers
- TestTextualEnricher: Fields derived from the source text
- TestStaticLookupEnricher: Glossary lookups and YAML loading
- TestSemanticEnricher: Batching, caps, timeouts and failures
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from conceptforge.core.config import EnrichmentConfig
from conceptforge.core.exceptions import ConfigValidationError, EnrichmentError
from conceptforge.core.models import EnrichmentFields
from conceptforge.enrichment import (
    ConceptEnricher,
    EnrichmentContext,
    NullEnricher,
    SemanticEnricher,
    StaticLookupEnricher,
    TextualEnricher,
    get_default_enricher,
)
from conceptforge.enrichment.enrichers import category_for_level
from conceptforge.enrichment.semantic import (
    WORKER_THREAD_PREFIX,
    recompute_importance,
    semantic_depth,
)

TEXT = (
    "Ideas connect concepts. Concepts form maps. "
    "Maps organize ideas visually. Ideas grow."
)


@pytest.fixture
def concepts(make_concept):
    return [
        make_concept("c0", "ideas", level=0, importance=5.0),
        make_concept("c1", "concepts", level=1, importance=3.0, position=6),
        make_concept("c2", "maps", level=2, importance=2.0, position=30),
    ]


class TestEnrichmentContext:
    """Tests for EnrichmentContext."""

    def test_sentences_for(self, concepts) -> None:
        context = EnrichmentContext.build(TEXT, concepts)

        assert context.sentences_for("c0") == [
            "Ideas connect concepts",
            "Maps organize ideas visually",
            "Ideas grow",
        ]

    def test_co_occurring(self, concepts) -> None:
        context = EnrichmentContext.build(TEXT, concepts)

        assert context.co_occurring("c1") == ["ideas", "maps"]
        assert context.co_occurring("unknown") == []


class TestTextualEnricher:
    """Tests for TextualEnricher."""

    def test_fields_from_text(self, concepts) -> None:
        context = EnrichmentContext.build(TEXT, concepts)

        fields = TextualEnricher().enrich(concepts[0], context)

        assert fields.definition == "Ideas connect concepts"
        assert fields.examples == ["Maps organize ideas visually", "Ideas grow"]
        assert fields.related_terms == {"concepts", "maps"}
        assert fields.category == "core concept"
        assert fields.subcategory is None

    def test_fallback_definition(self, make_concept) -> None:
        concept = make_concept("x", "absent", level=3, original_form="Absent")
        context = EnrichmentContext.build(TEXT, [concept])

        fields = TextualEnricher().enrich(concept, context)

        assert fields.definition == "Absent is a key idea of the text."
        assert fields.examples == []
        assert fields.category == "specific detail"

    def test_heading_subcategory(self, make_concept) -> None:
        concept = make_concept("h", "ideas", origin="heading")
        context = EnrichmentContext.build(TEXT, [concept])

        assert TextualEnricher().enrich(concept, context).subcategory == "section heading"

    def test_category_for_level(self) -> None:
        assert category_for_level(0) == "core concept"
        assert category_for_level(1) == "supporting concept"
        assert category_for_level(7) == "specific detail"

    def test_repr_and_metadata(self) -> None:
        enricher = TextualEnricher()

        assert repr(enricher) == "TextualEnricher(available)"
        assert enricher.get_metadata() == {"name": "TextualEnricher", "available": True}


class TestStaticLookupEnricher:
    """Tests for glossary-backed enrichment."""

    def test_lookup_normalizes_terms(self, make_concept) -> None:
        enricher = StaticLookupEnricher(
            {"Ideas": {"definition": "Units  of thought", "examples": ["A plan"]}}
        )
        context = EnrichmentContext.build(TEXT, [])

        fields = enricher.enrich(make_concept("c0", "ideas"), context)

        assert fields.definition == "Units of thought"
        assert fields.examples == ["A plan"]
        assert len(enricher) == 1

    def test_missing_term_is_empty(self, make_concept) -> None:
        enricher = StaticLookupEnricher({"maps": {"definition": "x"}})

        fields = enricher.enrich(make_concept("c0", "ideas"), EnrichmentContext(text=""))

        assert fields.is_empty()

    def test_malformed_lists_raise(self, make_concept) -> None:
        enricher = StaticLookupEnricher({"ideas": {"examples": "not a list"}})

        with pytest.raises(EnrichmentError):
            enricher.enrich(make_concept("c0", "ideas"), EnrichmentContext(text=""))

    def test_non_mapping_entry_rejected(self) -> None:
        with pytest.raises(ConfigValidationError):
            StaticLookupEnricher({"ideas": "plain string"})

    def test_from_yaml(self, temp_dir: Path, make_concept) -> None:
        path = temp_dir / "glossary.yaml"
        path.write_text(
            "ideas:\n  definition: Units of thought\n  related_terms: [concepts]\n",
            encoding="utf-8",
        )

        enricher = get_default_enricher(path)
        fields = enricher.enrich(make_concept("c0", "ideas"), EnrichmentContext(text=""))

        assert isinstance(enricher, StaticLookupEnricher)
        assert fields.related_terms == {"concepts"}

    def test_from_yaml_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigValidationError):
            StaticLookupEnricher.from_yaml(temp_dir / "missing.yaml")

    def test_empty_glossary_unavailable(self) -> None:
        assert StaticLookupEnricher({}).is_available() is False

    def test_default_enricher_is_textual(self) -> None:
        assert isinstance(get_default_enricher(), TextualEnricher)


class SlowEnricher(ConceptEnricher):
    """Blocks on one concept until released."""

    def __init__(self, slow_name: str) -> None:
        self.slow_name = slow_name
        self.release = threading.Event()

    def enrich(self, concept, context):
        if concept.name == self.slow_name:
            self.release.wait(timeout=5)
        return EnrichmentFields(definition=f"About {concept.name}")

    def is_available(self):
        return True


class RecordingEnricher(ConceptEnricher):
    """Records concurrent calls per batch."""

    def __init__(self) -> None:
        self.calls = []
        self._lock = threading.Lock()

    def enrich(self, concept, context):
        with self._lock:
            self.calls.append(concept.id)
        return EnrichmentFields(
            definition="d",
            examples=["e1", "e2", "e3"],
            related_terms={f"t{i}" for i in range(10)},
        )

    def is_available(self):
        return True


class TestSemanticEnricher:
    """Tests for SemanticEnricher."""

    def test_default_enrichment(self, concepts) -> None:
        report = SemanticEnricher().enrich(concepts, TEXT)

        assert report.definitions_added == 3
        assert report.failures == 0
        assert report.batches == 1
        assert concepts[0].definition == "Ideas connect concepts"
        assert report.semantic_depth == semantic_depth(concepts)

    def test_batches(self, make_concept) -> None:
        many = [make_concept(f"c{i}", f"term{i}", position=i) for i in range(12)]
        enricher = RecordingEnricher()

        report = SemanticEnricher(enricher, EnrichmentConfig(batch_size=5)).enrich(
            many, "term0 term1"
        )

        assert report.batches == 3
        assert sorted(enricher.calls) == sorted(c.id for c in many)

    def test_caps_by_level(self, concepts) -> None:
        SemanticEnricher(RecordingEnricher()).enrich(concepts, TEXT)

        assert len(concepts[0].examples) == 3
        assert len(concepts[1].examples) == 2
        assert len(concepts[2].examples) == 1
        assert all(len(c.related_terms) == 5 for c in concepts)

    def test_include_flags(self, concepts) -> None:
        runner = SemanticEnricher(
            RecordingEnricher(), include_definitions=False, include_examples=False
        )

        report = runner.enrich(concepts, TEXT)

        assert all(c.definition is None and c.examples is None for c in concepts)
        assert report.definitions_added == 0
        assert report.related_terms_added == 15

    def test_failures_yield_empty_fields(self, concepts) -> None:
        class Broken(ConceptEnricher):
            def enrich(self, concept, context):
                if concept.name == "concepts":
                    raise EnrichmentError("source down")
                if concept.name == "maps":
                    return {"definition": "wrong type"}
                return EnrichmentFields(definition="fine")

            def is_available(self):
                return True

        report = SemanticEnricher(Broken()).enrich(concepts, TEXT)

        assert report.failures == 2
        assert concepts[0].definition == "fine"
        assert concepts[1].definition is None
        assert concepts[2].definition is None

    def test_timeout_is_bounded(self, concepts) -> None:
        enricher = SlowEnricher("concepts")
        config = EnrichmentConfig(timeout_sec=0.2)

        start = time.monotonic()
        try:
            report = SemanticEnricher(enricher, config).enrich(concepts, TEXT)
        finally:
            enricher.release.set()
        elapsed = time.monotonic() - start

        assert elapsed < 2.0
        assert report.failures == 1
        assert concepts[1].definition is None
        assert concepts[0].definition == "About ideas"

    def test_timed_out_workers_are_daemons(self, concepts) -> None:
        enricher = SlowEnricher("concepts")
        config = EnrichmentConfig(timeout_sec=0.1)

        try:
            SemanticEnricher(enricher, config).enrich(concepts, TEXT)
            workers = [
                t
                for t in threading.enumerate()
                if t.name.startswith(WORKER_THREAD_PREFIX)
            ]
            assert workers
            assert all(t.daemon for t in workers)
        finally:
            enricher.release.set()

    def test_unavailable_enricher_skipped(self, concepts) -> None:
        report = SemanticEnricher(StaticLookupEnricher({})).enrich(concepts, TEXT)

        assert report.batches == 0
        assert all(c.definition is None for c in concepts)

    def test_falsy_enricher_not_replaced(self) -> None:
        empty = StaticLookupEnricher({})

        assert len(empty) == 0
        assert SemanticEnricher(empty).enricher is empty

    def test_identity_untouched(self, concepts) -> None:
        class Mutating(ConceptEnricher):
            def enrich(self, concept, context):
                concept.id = "changed"
                concept.level = 42
                return EnrichmentFields()

            def is_available(self):
                return True

        SemanticEnricher(Mutating()).enrich(concepts, TEXT)

        assert [c.id for c in concepts] == ["c0", "c1", "c2"]
        assert [c.level for c in concepts] == [0, 1, 2]

    def test_null_enricher(self, concepts) -> None:
        report = SemanticEnricher(NullEnricher()).enrich(concepts, TEXT)

        assert report.stats == {
            "definitionsCount": 0,
            "examplesCount": 0,
            "relatedTermsCount": 0,
            "failures": 0,
        }


class TestImportanceHelpers:
    """Tests for importance recomputation and semantic depth."""

    def test_recompute_importance(self, make_concept) -> None:
        concept = make_concept("c", "ideas", level=1, related_terms={"a", "b"})

        assert recompute_importance(concept) == 1.5

    def test_missing_importance_recomputed(self, make_concept) -> None:
        concept = make_concept("c", "ideas", level=0)
        concept.importance = None

        SemanticEnricher(NullEnricher()).enrich([concept], "ideas")

        assert concept.importance == 1.0

    def test_semantic_depth(self, make_concept) -> None:
        concept = make_concept(
            "c", "ideas", definition="d", examples=["a", "b"], related_terms={"x"}
        )

        assert semantic_depth([concept]) == 2.3
        assert semantic_depth([]) == 0.0
