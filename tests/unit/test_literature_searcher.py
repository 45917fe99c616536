"""Tests for the literature searcher."""

import asyncio
import json
from unittest.mock import AsyncMock, call, patch

from langchain_core.messages import AIMessage

from research_lens.nodes import LiteratureSearcher, deduplicate_papers, normalize_title
from research_lens.nodes.literature_searcher import parse_search_entries
from research_lens.state import PaperStatus, RelatedPaper, SearchQueries


def search_payload(*titles: str, year: int = 2021) -> str:
    return json.dumps([
        {
            "title": title,
            "authors": "A. Researcher",
            "year": year,
            "journal": "NeurIPS",
            "finding": f"Finding of {title}",
            "url": "https://example.org/paper",
        }
        for title in titles
    ])


def queries_payload(*queries: str) -> str:
    return json.dumps({"queries": list(queries)})


def make_searcher(model, search_model, retry_policy, arxiv=None) -> LiteratureSearcher:
    return LiteratureSearcher(
        model=model,
        search_model=search_model,
        retry_policy=retry_policy,
        arxiv_search=arxiv or AsyncMock(return_value=[]),
        query_pause=0,
    )


class TestNormalizeTitle:
    """Tests for normalize_title."""

    def test_lowercase_alphanumeric(self):
        assert normalize_title("Deep Learning: A Review (2nd ed.)") == "deeplearningareview2nded"

    def test_truncated_to_sixty(self):
        assert len(normalize_title("x" * 100)) == 60


class TestDeduplicatePapers:
    """Tests for deduplicate_papers."""

    def test_later_entry_wins_at_first_position(self):
        first = RelatedPaper(title="Deep Learning for Jet Tagging", authors="First Source")
        other = RelatedPaper(title="Boosted Decision Trees Revisited")
        later = RelatedPaper(title="deep learning for jet-tagging!", authors="Second Source")

        result = deduplicate_papers([first, other, later])

        assert len(result) == 2
        assert result[0].authors == "Second Source"
        assert result[1].title == "Boosted Decision Trees Revisited"

    def test_short_titles_dropped(self):
        result = deduplicate_papers([RelatedPaper(title="Short one"), RelatedPaper(title="Long enough title")])
        assert [p.title for p in result] == ["Long enough title"]


class TestParseSearchEntries:
    """Tests for parse_search_entries."""

    def test_filters_invalid_entries(self):
        entries = [
            {"title": "A valid paper title", "authors": "X", "year": 2015},
            {"title": "Too old to be included", "authors": "X", "year": 2005},
            {"title": "No authors on this one", "year": 2020},
            {"title": "Tiny", "authors": "X", "year": 2020},
            {"title": "Year is missing entirely", "authors": "X"},
            "not a dict",
        ]

        papers = parse_search_entries(entries)

        assert [p.title for p in papers] == ["A valid paper title"]


class TestLiteratureSearcher:
    """Tests for LiteratureSearcher.search."""

    async def test_uses_first_three_queries_and_two_arxiv_calls(self, model_factory, fast_retry):
        model = model_factory(queries_payload("q one", "q two", "q three", "q four", "q five"))
        search_model = model_factory(
            search_payload("Paper from query one"),
            search_payload("Paper from query two"),
            search_payload("Paper from query three"),
        )
        arxiv = AsyncMock(return_value=[RelatedPaper(title="An arXiv preprint paper", journal="arXiv Preprint")])

        papers = await make_searcher(model, search_model, fast_retry, arxiv).search("paper text")

        assert search_model.ainvoke.await_count == 3
        assert [c.args[0] for c in arxiv.await_args_list] == ["q one", "q two"]
        assert [p.title for p in papers] == [
            "Paper from query one",
            "Paper from query two",
            "Paper from query three",
            "An arXiv preprint paper",
        ]

    async def test_papers_stamped_pending(self, model_factory, fast_retry):
        model = model_factory(queries_payload("q one"))
        search_model = model_factory(json.dumps([{
            "title": "Already labelled paper",
            "authors": "A. Researcher",
            "year": 2020,
            "status": "conflicting",
            "statusText": "Contradicts",
        }]))

        papers = await make_searcher(model, search_model, fast_retry).search("paper text")

        assert papers[0].status == PaperStatus.RELATED
        assert papers[0].status_text == "Pending analysis"
        assert papers[0].comparison_details.reason == "Analyzing..."

    async def test_duplicates_across_sources_collapsed(self, model_factory, fast_retry):
        model = model_factory(queries_payload("q one"))
        search_model = model_factory(search_payload("Graph Networks for Calorimetry"))
        arxiv = AsyncMock(return_value=[
            RelatedPaper(title="Graph networks for calorimetry.", journal="arXiv Preprint"),
        ])

        papers = await make_searcher(model, search_model, fast_retry, arxiv).search("paper text")

        assert len(papers) == 1
        assert papers[0].journal == "arXiv Preprint"

    async def test_failed_query_skipped(self, model_factory, no_retry):
        model = model_factory(queries_payload("q one", "q two", "q three"))
        search_model = model_factory(
            RuntimeError("search tool unavailable"),
            search_payload("Paper from query two"),
            search_payload("Paper from query three"),
        )

        papers = await make_searcher(model, search_model, no_retry).search("paper text")

        assert [p.title for p in papers] == ["Paper from query two", "Paper from query three"]

    async def test_malformed_search_output_retried(self, model_factory, fast_retry):
        model = model_factory(queries_payload("q one"))
        search_model = model_factory('[{"title": "broken', search_payload("Paper after retry"))

        papers = await make_searcher(model, search_model, fast_retry).search("paper text")

        assert [p.title for p in papers] == ["Paper after retry"]
        assert search_model.ainvoke.await_count == 2

    async def test_no_queries_returns_empty(self, model_factory, fast_retry):
        model = model_factory(queries_payload())
        search_model = model_factory()
        arxiv = AsyncMock(return_value=[])

        assert await make_searcher(model, search_model, fast_retry, arxiv).search("text") == []
        search_model.ainvoke.assert_not_called()
        arxiv.assert_not_called()

    async def test_query_generation_failure_returns_empty(self, model_factory, fast_retry):
        model = model_factory(*[RuntimeError("down")] * 4)
        search_model = model_factory()

        assert await make_searcher(model, search_model, fast_retry).search("text") == []
        assert model.with_structured_output.return_value.ainvoke.await_count == 4

    async def test_query_text_truncated(self, model_factory, fast_retry):
        model = model_factory(queries_payload())
        text = "b" * 5000 + "TAIL-MARKER"

        await make_searcher(model, model_factory(), fast_retry).search(text)

        prompt = model.with_structured_output.return_value.ainvoke.await_args.args[0][0].content
        assert "TAIL-MARKER" not in prompt

    async def test_query_generation_uses_query_schema(self, model_factory, fast_retry):
        model = model_factory(queries_payload("q one", 7, "  "))

        queries = await make_searcher(model, model_factory(), fast_retry).generate_queries("text")

        assert queries == ["q one"]
        model.with_structured_output.assert_called_once_with(SearchQueries, include_raw=True)
        model.ainvoke.assert_not_called()


class TestSearchPacing:
    """Tests for the pacing of web-search and arXiv calls."""

    async def test_pauses_between_web_searches(self, model_factory, fast_retry):
        model = model_factory(queries_payload("q one", "q two", "q three"))
        search_model = model_factory(
            search_payload("Paper from query one"),
            search_payload("Paper from query two"),
            search_payload("Paper from query three"),
        )
        searcher = LiteratureSearcher(
            model=model,
            search_model=search_model,
            retry_policy=fast_retry,
            arxiv_search=AsyncMock(return_value=[]),
        )

        with patch("research_lens.nodes.literature_searcher.asyncio.sleep", new=AsyncMock()) as sleep:
            await searcher.search("paper text")

        assert sleep.await_args_list == [call(1.5), call(1.5)]

    async def test_web_searches_never_overlap(self, model_factory, fast_retry):
        active = 0
        peak = 0

        async def slow_search(messages):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return AIMessage(content=search_payload("A paper found by web search"))

        search_model = AsyncMock()
        search_model.ainvoke = AsyncMock(side_effect=slow_search)
        model = model_factory(queries_payload("q one", "q two", "q three"))

        await make_searcher(model, search_model, fast_retry).search("paper text")

        assert search_model.ainvoke.await_count == 3
        assert peak == 1

    async def test_arxiv_queries_run_concurrently(self, model_factory, fast_retry):
        started = []
        both_started = asyncio.Event()

        async def arxiv(query):
            started.append(query)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1.0)
            return [RelatedPaper(title=f"arXiv result for {query}", journal="arXiv Preprint")]

        model = model_factory(queries_payload("q one", "q two", "q three"))
        search_model = model_factory(search_payload("First web paper"), "[]", "[]")

        papers = await make_searcher(model, search_model, fast_retry, AsyncMock(side_effect=arxiv)).search("text")

        assert started == ["q one", "q two"]
        assert [p.title for p in papers][-2:] == ["arXiv result for q one", "arXiv result for q two"]
