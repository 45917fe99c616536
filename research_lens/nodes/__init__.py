"""Workflow components for Research Lens.

Each component wraps one model-backed step of the analysis pipeline:
- PaperAnalyzer: structured analysis of the uploaded paper
- LiteratureSearcher: web search plus arXiv for related papers
- ConflictClassifier: conflicting / supporting / related labels
- ReferenceExtractor: bibliography entries from the paper's tail
"""

from research_lens.nodes.conflict_classifier import (
    ConflictClassifier,
    merge_classifications,
    sort_by_priority,
)
from research_lens.nodes.literature_searcher import (
    LiteratureSearcher,
    deduplicate_papers,
    normalize_title,
)
from research_lens.nodes.paper_analyzer import PaperAnalyzer
from research_lens.nodes.reference_extractor import ReferenceExtractor

__all__ = [
    "PaperAnalyzer",
    "LiteratureSearcher",
    "normalize_title",
    "deduplicate_papers",
    "ConflictClassifier",
    "merge_classifications",
    "sort_by_priority",
    "ReferenceExtractor",
]
