"""Tests for state models, enums and the workspace schema."""

import pytest
from pydantic import ValidationError

from research_lens.state import (
    AnalysisResult,
    ComparisonDetails,
    PaperStatus,
    Reference,
    RelatedPaper,
    WorkspaceState,
    create_initial_state,
)


class TestPaperStatus:
    """Tests for PaperStatus ordering."""

    def test_priorities(self):
        assert PaperStatus.CONFLICTING.priority == 3
        assert PaperStatus.SUPPORTING.priority == 2
        assert PaperStatus.RELATED.priority == 1

    def test_string_comparison(self):
        assert PaperStatus.CONFLICTING == "conflicting"


class TestAnalysisResult:
    """Tests for AnalysisResult defaults."""

    def test_empty_payload_gets_defaults(self):
        result = AnalysisResult.model_validate({})

        assert result.title == "Untitled Paper"
        assert result.summary == "No summary available."
        assert result.sample_size == "Not specified"
        assert result.methodology == "Not specified"
        assert result.key_findings == []
        assert result.statistical_tests == []
        assert result.limitations == []

    def test_camel_case_payload(self):
        result = AnalysisResult.model_validate({
            "title": "Jet Tagging with GNNs",
            "sampleSize": "2.4M simulated events",
            "keyFindings": ["48.6% resolution"],
            "statisticalTests": ["t-test"],
        })

        assert result.sample_size == "2.4M simulated events"
        assert result.key_findings == ["48.6% resolution"]
        assert result.statistical_tests == ["t-test"]

    def test_null_and_blank_fields_fall_back(self):
        result = AnalysisResult.model_validate({
            "title": "   ",
            "summary": None,
            "methodology": "",
            "keyFindings": "not a list",
            "limitations": ["small sample", None, ""],
        })

        assert result.title == "Untitled Paper"
        assert result.summary == "No summary available."
        assert result.methodology == "Not specified"
        assert result.key_findings == []
        assert result.limitations == ["small sample"]

    def test_json_dump_uses_camel_case(self):
        data = AnalysisResult(title="T").to_json_dict()
        assert "sampleSize" in data
        assert "keyFindings" in data


class TestRelatedPaper:
    """Tests for RelatedPaper coercion."""

    def test_minimal_paper_defaults(self):
        paper = RelatedPaper(title="Graph networks for calorimetry")

        assert paper.authors == "Unknown"
        assert paper.methodology == "See paper"
        assert paper.status == PaperStatus.RELATED
        assert paper.status_text == "Pending analysis"
        assert paper.comparison_details.reason == "Analyzing..."

    def test_title_required(self):
        with pytest.raises(ValidationError):
            RelatedPaper.model_validate({"authors": "Someone"})

    def test_author_list_joined_and_truncated(self):
        paper = RelatedPaper.model_validate({
            "title": "A sufficiently long title",
            "authors": ["Ada Lovelace", "Alan Turing"],
        })
        assert paper.authors == "Ada Lovelace, Alan Turing"

        long = RelatedPaper.model_validate({"title": "Another long title", "authors": "x" * 150})
        assert len(long.authors) == 100

    @pytest.mark.parametrize("raw, expected", [
        (2021, 2021),
        ("2019", 2019),
        ("2018-04-01T00:00:00Z", 2018),
        (2020.0, 2020),
        ("unknown", None),
        (None, None),
    ])
    def test_year_parsing(self, raw, expected):
        paper = RelatedPaper.model_validate({"title": "A sufficiently long title", "year": raw})
        assert paper.year == expected

    @pytest.mark.parametrize("raw, expected", [
        ("conflicting", PaperStatus.CONFLICTING),
        ("SUPPORTING", PaperStatus.SUPPORTING),
        ("contradicts", PaperStatus.RELATED),
        (None, PaperStatus.RELATED),
        (PaperStatus.SUPPORTING, PaperStatus.SUPPORTING),
    ])
    def test_status_parsing(self, raw, expected):
        paper = RelatedPaper.model_validate({"title": "A sufficiently long title", "status": raw})
        assert paper.status == expected

    def test_with_pending_status_resets_classification(self):
        paper = RelatedPaper(
            title="A sufficiently long title",
            finding="It works",
            status=PaperStatus.CONFLICTING,
            status_text="Contradicts",
            comparison_details=ComparisonDetails(reason="Different data"),
        )

        pending = paper.with_pending_status()

        assert pending.status == PaperStatus.RELATED
        assert pending.status_text == "Pending analysis"
        assert pending.comparison_details.reason == "Analyzing..."
        assert pending.finding == "It works"
        assert paper.status == PaperStatus.CONFLICTING

    def test_json_dump(self):
        data = RelatedPaper(title="A sufficiently long title", year=2022).to_json_dict()

        assert data["status"] == "related"
        assert data["statusText"] == "Pending analysis"
        assert data["comparisonDetails"]["differenceType"] == ""
        assert data["year"] == 2022


class TestReference:
    """Tests for Reference."""

    def test_year_as_string(self):
        ref = Reference.model_validate({"title": "Attention is all you need", "author": "Vaswani", "year": 2017})
        assert ref.year == "2017"

    def test_missing_title_rejected(self):
        with pytest.raises(ValidationError):
            Reference.model_validate({"author": "Nobody"})


class TestWorkspaceState:
    """Tests for WorkspaceState."""

    def test_initial_state(self):
        state = create_initial_state(generation=4, text_length=1200)

        assert state.generation == 4
        assert state.text_length == 1200
        assert state.analysis_result is None
        assert state.related_papers == []
        assert state.error is None
        assert state.is_busy is False

    def test_is_busy(self):
        assert WorkspaceState(analyzing=True).is_busy
        assert WorkspaceState(searching=True).is_busy

    def test_json_dump(self):
        data = WorkspaceState(status_text="Searching literature...").to_json_dict()

        assert data["statusText"] == "Searching literature..."
        assert data["analysisResult"] is None
        assert data["relatedPapers"] == []
