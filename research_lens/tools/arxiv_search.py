"""arXiv search used as a deterministic supplement to LLM web search.

Queries the arXiv Atom API directly (no model involved) and maps each
feed entry onto the RelatedPaper shape. Failures never propagate: a
broken or unreachable API yields an empty list so the literature search
can carry on with whatever the model found.
"""

import logging
import re
import xml.etree.ElementTree as ET

import httpx

from research_lens.config import settings
from research_lens.errors import NO_RETRY_POLICY, RateLimitError, RetryPolicy
from research_lens.state.models import RelatedPaper

logger = logging.getLogger(__name__)

ARXIV_NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}
ARXIV_JOURNAL = "arXiv Preprint"
MIN_TITLE_LENGTH = 10
MAX_AUTHORS_LENGTH = 100
FINDING_LENGTH = 200


def build_arxiv_query(search_term: str, max_words: int = 5) -> str:
    """Reduce a free-text query to arXiv ``all:`` syntax.
    
    Punctuation is dropped and only the first few words are kept, since
    long natural-language queries match almost nothing on arXiv.
    
    Args:
        search_term: Query text, typically generated by the model.
        max_words: Number of words to keep.
        
    Returns:
        The ``search_query`` parameter value, or "" if nothing usable remains.
    """
    clean = re.sub(r"[^a-zA-Z0-9\s]", "", search_term or "")
    words = clean.split()[:max_words]
    if not words:
        return ""
    return "all:" + " ".join(words)


def _text(entry: ET.Element, tag: str) -> str:
    elem = entry.find(tag, ARXIV_NAMESPACES)
    if elem is None or elem.text is None:
        return ""
    return " ".join(elem.text.split())


def parse_arxiv_feed(xml_text: str, limit: int = 5) -> list[RelatedPaper]:
    """Parse an arXiv Atom feed into related papers.
    
    Entries whose title is 10 characters or shorter are dropped.
    
    Args:
        xml_text: Atom XML returned by the arXiv API.
        limit: Maximum number of papers to return.
        
    Returns:
        Parsed papers, in feed order.
        
    Raises:
        xml.etree.ElementTree.ParseError: If the feed is not valid XML.
    """
    root = ET.fromstring(xml_text)
    
    papers = []
    for entry in root.findall("atom:entry", ARXIV_NAMESPACES):
        title = _text(entry, "atom:title")
        if len(title) <= MIN_TITLE_LENGTH:
            continue
        
        names = []
        for author in entry.findall("atom:author", ARXIV_NAMESPACES):
            name = _text(author, "atom:name")
            if name:
                names.append(name)
        authors = ", ".join(names)[:MAX_AUTHORS_LENGTH] or "Unknown"
        
        published = _text(entry, "atom:published")
        summary = _text(entry, "atom:summary")
        
        papers.append(RelatedPaper(
            title=title,
            authors=authors,
            year=published[:4] or None,
            journal=ARXIV_JOURNAL,
            methodology="See paper",
            finding=summary[:FINDING_LENGTH] + "...",
            url=_text(entry, "atom:id") or None,
        ))
        
        if len(papers) >= limit:
            break
    
    return papers


async def _fetch_feed(client: httpx.AsyncClient, params: dict, query: str) -> str:
    response = await client.get(settings.arxiv_api_url, params=params)
    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After", "")
        raise RateLimitError(
            f"arXiv rate limit hit for query {query!r}",
            service="arxiv",
            retry_after=float(retry_after) if retry_after.isdigit() else None,
        )
    response.raise_for_status()
    return response.text


async def search_arxiv(
    query: str,
    max_results: int = 5,
    client: httpx.AsyncClient | None = None,
    retry_policy: RetryPolicy = NO_RETRY_POLICY,
) -> list[RelatedPaper]:
    """
    Search arXiv for papers matching a query.
    
    Args:
        query: Free-text search query.
        max_results: Maximum number of papers (default 5).
        client: Optional shared HTTP client; one is created when omitted.
        retry_policy: Policy for re-sending a request; a single attempt
            by default. HTTP 429 counts as a rate limit.
        
    Returns:
        Matching papers, or an empty list on any failure.
        
    Example:
        >>> await search_arxiv("limitations of graph neural networks calorimetry")
    """
    search_query = build_arxiv_query(query)
    if not search_query:
        return []
    
    params = {
        "search_query": search_query,
        "start": 0,
        "max_results": max_results,
    }
    
    description = f"arXiv search for {query!r}"
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout,
                follow_redirects=True,
            ) as owned_client:
                xml_text = await retry_policy.execute(
                    lambda: _fetch_feed(owned_client, params, query), description=description
                )
        else:
            xml_text = await retry_policy.execute(
                lambda: _fetch_feed(client, params, query), description=description
            )
        return parse_arxiv_feed(xml_text, limit=max_results)
    
    except RateLimitError as e:
        logger.warning(f"{e}; giving up")
    except httpx.HTTPStatusError as e:
        logger.warning(f"arXiv API error {e.response.status_code} for query {query!r}")
    except httpx.RequestError as e:
        logger.warning(f"arXiv request failed for query {query!r}: {e}")
    except ET.ParseError as e:
        logger.warning(f"arXiv returned malformed XML for query {query!r}: {e}")
    except Exception as e:
        logger.warning(f"Unexpected arXiv error for query {query!r}: {e}")
    return []
