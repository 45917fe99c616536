"""Tools for Research Lens: search, document and decoding helpers."""

from research_lens.tools.arxiv_search import (
    build_arxiv_query,
    parse_arxiv_feed,
    search_arxiv,
)
from research_lens.tools.json_parsing import (
    DecodeResult,
    decode_json_array,
    strip_code_fences,
)
from research_lens.tools.pdf_text import extract_pdf_text

__all__ = [
    "build_arxiv_query",
    "parse_arxiv_feed",
    "search_arxiv",
    "DecodeResult",
    "decode_json_array",
    "strip_code_fences",
    "extract_pdf_text",
]
