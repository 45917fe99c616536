"""Tests for the paper analyzer."""

import json

import pytest

from research_lens.errors import LLMResponseError
from research_lens.nodes import PaperAnalyzer
from research_lens.state import AnalysisResult


ANALYSIS_JSON = json.dumps({
    "title": "Energy Regression with Graph Networks",
    "summary": "Applies GNNs to calorimeter regression.",
    "sampleSize": "2.4M simulated events",
    "methodology": "Supervised GNN",
    "keyFindings": ["48.6% resolution"],
    "statisticalTests": ["bootstrap"],
    "limitations": ["simulation only"],
})


def structured_call(model):
    return model.with_structured_output.return_value.ainvoke


def prompt_of(model) -> str:
    messages = structured_call(model).await_args.args[0]
    return messages[0].content


class TestPaperAnalyzer:
    """Tests for PaperAnalyzer.analyze."""

    async def test_parses_full_response(self, model_factory):
        model = model_factory(ANALYSIS_JSON)

        result = await PaperAnalyzer(model=model).analyze("paper text")

        assert result.title == "Energy Regression with Graph Networks"
        assert result.sample_size == "2.4M simulated events"
        assert result.key_findings == ["48.6% resolution"]

    async def test_requests_analysis_schema(self, model_factory):
        model = model_factory(ANALYSIS_JSON)

        await PaperAnalyzer(model=model).analyze("paper text")

        model.with_structured_output.assert_called_once_with(AnalysisResult, include_raw=True)
        model.ainvoke.assert_not_called()

    async def test_missing_fields_get_defaults(self, model_factory):
        model = model_factory('{"title": "Only a title", "summary": null}')

        result = await PaperAnalyzer(model=model).analyze("paper text")

        assert result.title == "Only a title"
        assert result.summary == "No summary available."
        assert result.sample_size == "Not specified"
        assert result.limitations == []

    async def test_no_structured_answer_gives_defaults(self, model_factory):
        model = model_factory(None)

        result = await PaperAnalyzer(model=model).analyze("paper text")

        assert result == AnalysisResult()

    async def test_text_truncated_to_limit(self, model_factory):
        model = model_factory(ANALYSIS_JSON)
        text = "a" * 30000 + "TAIL-MARKER"

        await PaperAnalyzer(model=model).analyze(text)

        prompt = prompt_of(model)
        assert "a" * 30000 in prompt
        assert "TAIL-MARKER" not in prompt

    async def test_parsing_error_raises(self, model_factory):
        model = model_factory("I cannot analyse this {paper")

        with pytest.raises(LLMResponseError, match="AnalysisResult"):
            await PaperAnalyzer(model=model).analyze("paper text")

    async def test_model_error_propagates(self, model_factory):
        model = model_factory(RuntimeError("overloaded"))

        with pytest.raises(RuntimeError, match="overloaded"):
            await PaperAnalyzer(model=model).analyze("paper text")
