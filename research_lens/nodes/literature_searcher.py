"""LITERATURE_SEARCHER: find papers that support or challenge the upload.

This component:
1. Asks Claude for search queries weighted toward critiques and alternatives
2. Runs the first three through Claude's web search, one at a time
3. Queries arXiv directly for the first two as a deterministic supplement
4. Deduplicates by normalised title and stamps placeholder classifications

The search never raises: a failed query is skipped, a failed arXiv call
contributes nothing, and a failure of the whole stage yields no papers.
"""

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.runnables import Runnable
from pydantic import ValidationError

from research_lens.agents.base import (
    create_model,
    create_search_model,
    invoke_structured,
    response_text,
)
from research_lens.config import settings
from research_lens.errors import (
    LiteratureSearchError,
    LLMResponseError,
    RetryPolicy,
    create_llm_retry_policy,
    log_error_with_context,
)
from research_lens.state.enums import WorkflowStage
from research_lens.state.models import RelatedPaper, SearchQueries
from research_lens.tools.arxiv_search import search_arxiv
from research_lens.tools.json_parsing import decode_json_array

logger = logging.getLogger(__name__)

MAX_ACTIVE_QUERIES = 3
MAX_ARXIV_QUERIES = 2
MIN_TITLE_LENGTH = 10
MIN_YEAR = 2010
TITLE_KEY_LENGTH = 60


# =============================================================================
# Prompts
# =============================================================================


def build_query_prompt(text: str) -> str:
    """Prompt asking for search queries biased toward conflicting work."""
    return f"""You are an academic search strategist. Generate diverse search queries that will find:
1. Papers that SUPPORT the uploaded paper's approach
2. Papers that CONFLICT with or CHALLENGE the uploaded paper (most important)
3. Papers that COMPARE different approaches
4. Papers that REVIEW the field
5. Papers that identify LIMITATIONS

First identify the paper's main topic, domain, methods, key technical terms and
the problem it solves. Then follow these rules:
- Generate 6 queries.
- PRIORITIZE finding alternative approaches and critiques.
- Use terms like "vs", "comparison", "limitations of", "critique", "challenges".

Text: {text}"""


def build_paper_search_prompt(query: str) -> str:
    """Prompt asking the web-search model for real papers matching a query."""
    return f"""You are an academic paper search assistant.

Search Google Scholar, arXiv, IEEE Xplore, and PubMed for papers matching: "{query}"

REQUIREMENTS:
1. Find 4-5 REAL academic papers.
2. Prioritize papers with free PDF access.
3. Papers must be from 2010 onwards.
4. Include direct URLs to papers.

For EACH paper return this exact structure:
{{
  "title": "Full paper title",
  "authors": "Author names (max 100 chars)",
  "year": 2024,
  "journal": "Journal/Conference name",
  "methodology": "Brief method (or 'See paper')",
  "finding": "Main result in 1-2 sentences",
  "url": "Direct link to paper or PDF"
}}

Return ONLY a valid JSON array: [{{"title": "...", ...}}, {{...}}]"""


# =============================================================================
# Result Processing
# =============================================================================


def normalize_title(title: str) -> str:
    """Deduplication key: lowercase alphanumerics, first 60 characters."""
    return re.sub(r"[^a-z0-9]", "", (title or "").lower())[:TITLE_KEY_LENGTH]


def deduplicate_papers(papers: list[RelatedPaper]) -> list[RelatedPaper]:
    """
    Drop short titles and collapse papers whose normalised titles collide.

    The last paper seen for a key wins, at the position where that key
    first appeared.

    Args:
        papers: Papers in merge order.

    Returns:
        Unique papers.
    """
    unique: dict[str, RelatedPaper] = {}
    for paper in papers:
        if len(paper.title) <= MIN_TITLE_LENGTH:
            continue
        unique[normalize_title(paper.title)] = paper
    return list(unique.values())


def parse_search_entries(entries: list[Any]) -> list[RelatedPaper]:
    """
    Validate the papers the web-search model returned.

    Entries need a title longer than 10 characters, a year of 2010 or later,
    and an authors field; anything else is dropped.

    Args:
        entries: Decoded JSON array items.

    Returns:
        Papers that passed validation.
    """
    papers = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        if not isinstance(title, str) or len(title.strip()) <= MIN_TITLE_LENGTH:
            continue
        if not entry.get("authors"):
            continue
        try:
            paper = RelatedPaper.model_validate(entry)
        except ValidationError:
            continue
        if paper.year is None or paper.year < MIN_YEAR:
            continue
        papers.append(paper)
    return papers


# =============================================================================
# Searcher
# =============================================================================


class LiteratureSearcher:
    """Builds the candidate related-paper list for an uploaded paper."""

    def __init__(
        self,
        model: BaseChatModel | None = None,
        search_model: Runnable | None = None,
        retry_policy: RetryPolicy | None = None,
        arxiv_search: Callable[[str], Awaitable[list[RelatedPaper]]] = search_arxiv,
        query_pause: float | None = None,
        char_limit: int | None = None,
    ):
        self.model = model or create_model()
        self.search_model = search_model or create_search_model()
        self.retry_policy = retry_policy or create_llm_retry_policy()
        self.arxiv_search = arxiv_search
        self.query_pause = settings.query_pause if query_pause is None else query_pause
        self.char_limit = char_limit or settings.query_char_limit

    async def generate_queries(self, text: str) -> list[str]:
        """
        Ask the model for search queries.

        Args:
            text: Paper text (truncated to the query character limit).

        Returns:
            Non-empty query strings, in model order.

        Raises:
            LLMResponseError: If the reply does not fit the query schema.
        """
        result = await invoke_structured(
            self.model,
            SearchQueries,
            build_query_prompt(text[:self.char_limit]),
            description="Query generation",
        )
        return result.queries if result is not None else []

    async def search_with_model(self, query: str) -> list[RelatedPaper]:
        """
        Find papers for one query with the web-search model.

        Args:
            query: Search query.

        Returns:
            Validated papers.

        Raises:
            LLMResponseError: If the response holds malformed JSON.
        """
        response = await self.search_model.ainvoke(
            [HumanMessage(content=build_paper_search_prompt(query))]
        )
        decoded = decode_json_array(response_text(response))
        if not decoded.ok:
            raise LLMResponseError(
                f"Paper search response could not be decoded: {decoded.error}",
                response_body=decoded.raw,
            )
        return parse_search_entries(decoded.value)

    async def _search_queries_sequentially(self, queries: list[str]) -> list[RelatedPaper]:
        """Run model searches one after another, pausing between them."""
        results: list[RelatedPaper] = []
        for index, query in enumerate(queries):
            if index > 0 and self.query_pause > 0:
                await asyncio.sleep(self.query_pause)
            try:
                papers = await self.retry_policy.execute(
                    lambda q=query: self.search_with_model(q),
                    description=f"paper search for {query!r}",
                )
            except Exception as e:
                log_error_with_context(
                    LiteratureSearchError(
                        f"Search failed for {query!r}, skipping: {e}",
                        query=query,
                        source="web_search",
                        papers_found=len(results),
                    ),
                    stage=WorkflowStage.SEARCH.value,
                    level=logging.WARNING,
                )
                continue
            logger.info(f"Query {query!r} returned {len(papers)} papers")
            results.extend(papers)
        return results

    async def _search_arxiv(self, queries: list[str]) -> list[RelatedPaper]:
        """Query arXiv for several queries concurrently."""
        batches = await asyncio.gather(*(self.arxiv_search(q) for q in queries))
        return [paper for batch in batches for paper in batch]

    async def search(self, text: str) -> list[RelatedPaper]:
        """
        Find related papers for the uploaded paper.

        Args:
            text: Extracted paper text.

        Returns:
            Deduplicated papers with pending classification, possibly empty.
        """
        try:
            queries = await self.retry_policy.execute(
                lambda: self.generate_queries(text),
                description="search query generation",
            )
            active_queries = queries[:MAX_ACTIVE_QUERIES]
            if not active_queries:
                logger.info("No search queries generated")
                return []
            logger.info(f"Generated queries: {active_queries}")

            model_papers = await self._search_queries_sequentially(active_queries)
            arxiv_papers = await self._search_arxiv(active_queries[:MAX_ARXIV_QUERIES])

            unique = deduplicate_papers(model_papers + arxiv_papers)
            logger.info(
                f"Literature search found {len(unique)} unique papers "
                f"({len(model_papers)} from web search, {len(arxiv_papers)} from arXiv)"
            )
            return [paper.with_pending_status() for paper in unique]

        except Exception as e:
            logger.error(f"Literature search failed: {e}")
            return []
