"""Fixtures for integration tests.

Provides a scripted mock chat model, fast workflow settings and sample
model outputs for running the full pipeline without network access.
"""

import json
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from research_lens.errors import RetryPolicy
from research_lens.graphs import PaperWorkflow
from research_lens.nodes import (
    ConflictClassifier,
    LiteratureSearcher,
    PaperAnalyzer,
    ReferenceExtractor,
)
from research_lens.state import RelatedPaper


# =============================================================================
# Mock LLM Response Fixtures
# =============================================================================


class MockLLMResponse:
    """Mock response from Claude API."""

    def __init__(self, content: str):
        self.content = content

    @property
    def text(self) -> str:
        return self.content


class MockChatModel:
    """Mock Anthropic Chat model returning scripted responses in order."""

    def __init__(self, responses: list[str] | None = None):
        self.responses = responses or ["{}"]
        self.call_count = 0
        self.calls: list[dict] = []

    def invoke(self, messages: list, **kwargs) -> MockLLMResponse:
        """Synchronous invoke."""
        self.calls.append({"messages": messages, "kwargs": kwargs})
        response = self.responses[min(self.call_count, len(self.responses) - 1)]
        self.call_count += 1
        return MockLLMResponse(response)

    async def ainvoke(self, messages: list, **kwargs) -> MockLLMResponse:
        """Async invoke."""
        return self.invoke(messages, **kwargs)

    def bind_tools(self, tools: list):
        """Return self with tools bound."""
        return self

    def with_structured_output(self, schema, include_raw: bool = False) -> "MockStructuredModel":
        """Wrap the scripted responses in schema parsing."""
        return MockStructuredModel(self, schema, include_raw)


class MockStructuredModel:
    """Structured-output view of a MockChatModel.

    Scripted responses are JSON strings validated against the schema, the
    way tool-call arguments are parsed for a real model.
    """

    def __init__(self, model: MockChatModel, schema, include_raw: bool):
        self.model = model
        self.schema = schema
        self.include_raw = include_raw

    async def ainvoke(self, messages: list, **kwargs):
        raw = self.model.invoke(messages, **kwargs)
        try:
            parsed, error = self.schema.model_validate_json(raw.content), None
        except ValidationError as e:
            if not self.include_raw:
                raise
            parsed, error = None, e
        if not self.include_raw:
            return parsed
        return {"raw": raw, "parsed": parsed, "parsing_error": error}


# =============================================================================
# Sample Model Outputs
# =============================================================================


ANALYSIS_RESPONSE = json.dumps({
    "title": "Graph Neural Networks for Calorimeter Energy Regression",
    "summary": "The paper applies GNNs to energy regression in calorimeters.",
    "sampleSize": "2.4M simulated events",
    "methodology": "Supervised GNN regression",
    "keyFindings": ["48.6% energy resolution"],
    "statisticalTests": ["bootstrap confidence intervals"],
    "limitations": ["simulation only"],
})

QUERIES_RESPONSE = json.dumps({"queries": [
    "GNN calorimeter energy regression",
    "limitations of graph neural networks calorimetry",
    "CNN vs GNN calorimeter",
    "calorimeter machine learning review",
]})

SEARCH_RESPONSES = [
    "```json\n" + json.dumps([{
        "title": "Transformers Outperform GNNs for Calorimetry",
        "authors": "Smith, Jones",
        "year": 2023,
        "journal": "JINST",
        "finding": "Transformers reach 42% resolution with 5M events.",
        "url": "https://example.org/transformers",
    }]) + "\n```",
    json.dumps([{
        "title": "Independent Replication of GNN Calorimetry",
        "authors": "Lee",
        "year": 2022,
        "journal": "EPJC",
        "finding": "Confirms GNN resolution within errors.",
    }, {
        "title": "Calorimetry in the 1990s Revisited",
        "authors": "Old",
        "year": 1995,
    }]),
    "I searched but found nothing relevant.",
]

CLASSIFICATION_RESPONSE = json.dumps({"papers": [
    {
        "id": "Independent Replication of GNN Calorimetry",
        "status": "supporting",
        "statusText": "Replicates",
        "comparisonDetails": {"differenceType": "Results", "reason": "Same resolution."},
    },
    {
        "id": "Transformers Outperform GNNs for Calorimetry",
        "status": "conflicting",
        "statusText": "Outperforms",
        "finding": "Rewritten by the model",
        "comparisonDetails": {
            "differenceType": "Approach",
            "uploadedPaperValue": "48.6% with 2.4M events",
            "externalPaperValue": "42% with 5M events",
            "reason": "Transformers report better resolution.",
        },
    },
]})


ARXIV_PAPER = RelatedPaper(
    title="Point Cloud Methods for Calorimeter Showers",
    authors="Garcia",
    year=2021,
    journal="arXiv Preprint",
    finding="Point clouds match GNN performance...",
    url="http://arxiv.org/abs/2101.00001v1",
)


# =============================================================================
# Workflow Fixtures
# =============================================================================


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy that never sleeps."""
    return RetryPolicy(retries=3, initial_delay=0.0, rate_limit_base_delay=0.0, rate_limit_step=0.0)


@pytest.fixture
def arxiv_search() -> AsyncMock:
    """arXiv search returning one preprint per query."""
    return AsyncMock(return_value=[ARXIV_PAPER])


@pytest.fixture
def workflow_factory(fast_policy, arxiv_search):
    """Factory building a PaperWorkflow over scripted mock models."""
    def _create(
        analysis: list[str] | None = None,
        queries: list[str] | None = None,
        search: list[str] | None = None,
        classification: list[str] | None = None,
        references: list[str] | None = None,
    ) -> PaperWorkflow:
        return PaperWorkflow(
            analyzer=PaperAnalyzer(model=MockChatModel(analysis or [ANALYSIS_RESPONSE])),
            searcher=LiteratureSearcher(
                model=MockChatModel(queries or [QUERIES_RESPONSE]),
                search_model=MockChatModel(search or SEARCH_RESPONSES),
                retry_policy=fast_policy,
                arxiv_search=arxiv_search,
                query_pause=0,
            ),
            classifier=ConflictClassifier(model=MockChatModel(classification or [CLASSIFICATION_RESPONSE])),
            reference_extractor=ReferenceExtractor(
                model=MockChatModel(references or ['{"references": []}']),
                retry_policy=fast_policy,
            ),
            retry_policy=fast_policy,
            search_delay=0,
        )
    return _create
