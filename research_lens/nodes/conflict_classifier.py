"""CONFLICT_CLASSIFIER: label found papers relative to the uploaded paper.

One structured-output call classifies every paper as conflicting,
supporting or related. A verdict only ever contributes ``status``,
``statusText`` and ``comparisonDetails``; everything else, including the
paper's own finding, stays as the search produced it. Any failure leaves
the input list untouched.
"""

import json
import logging
from typing import Any

from langchain_core.language_models import BaseChatModel

from research_lens.agents.base import create_model, invoke_structured
from research_lens.state.models import (
    AnalysisResult,
    ClassificationBatch,
    PaperClassification,
    RelatedPaper,
)

logger = logging.getLogger(__name__)


def paper_projection(paper: RelatedPaper) -> dict[str, Any]:
    """The slice of a paper the classifier prompt needs."""
    return {
        "id": paper.id or paper.title,
        "title": paper.title,
        "finding": paper.finding,
        "year": paper.year,
    }


def build_classification_prompt(analysis: AnalysisResult, papers: list[RelatedPaper]) -> str:
    """Prompt comparing the uploaded paper with each found paper."""
    projected = [paper_projection(paper) for paper in papers]
    return f"""You are a critical research analyst. Compare the uploaded paper with each found paper.

UPLOADED PAPER:
Title: {analysis.title}
Methodology: {analysis.methodology}
Key Findings: {"; ".join(analysis.key_findings)}

FOUND PAPERS:
{json.dumps(projected, indent=2)}

Classify each paper:

SUPPORTING: the paper validates the approach, or uses similar methods
with positive results.

CONFLICTING (look hard for these):
- it directly contradicts the uploaded paper's results;
- it highlights a limitation, bias or failure of the uploaded paper's
  specific method ("{analysis.methodology}");
- it proposes an alternative method claimed to be superior, faster or
  more accurate (a paper offering a "better" way is conflicting);
- it raises an ethical or practical objection to this specific approach.

RELATED: general context, a review, or a different problem.

For each paper give its id, status, a short statusText label and
comparisonDetails (differenceType, uploadedPaperValue,
externalPaperValue, reason).

Rules for comparisonDetails.reason:
- Write exactly one sentence of 15-25 words.
- Do not write several sentences.
- Do not repeat the same idea in different words.
- Do not write both a headline and an explanation.
- Cite the specific numbers or metrics that differ, e.g. "This paper
  reaches 42% resolution with 5M events against your 48.6% with 2.4M,
  suggesting larger datasets help."

Classify every paper listed above."""


def _matches(candidate: PaperClassification, paper: RelatedPaper) -> bool:
    """Whether a verdict refers to a paper, by title or id."""
    if candidate.title is not None and candidate.title == paper.title:
        return True
    return bool(candidate.id) and candidate.id in (paper.title, paper.id)


def apply_classification(paper: RelatedPaper, candidate: PaperClassification) -> RelatedPaper:
    """
    Copy a paper with the classification fields of a verdict.

    Args:
        paper: Paper as produced by the search.
        candidate: Matching verdict from the classifier.

    Returns:
        Updated paper; the finding and bibliographic fields are unchanged.
    """
    updates: dict[str, Any] = {}
    if candidate.status is not None:
        updates["status"] = candidate.status
    if candidate.status_text:
        updates["status_text"] = candidate.status_text
    if candidate.comparison_details is not None:
        updates["comparison_details"] = candidate.comparison_details.model_copy()
    return paper.model_copy(update=updates)


def merge_classifications(
    papers: list[RelatedPaper],
    candidates: list[PaperClassification],
) -> list[RelatedPaper]:
    """Merge verdicts into papers; unmatched papers pass through."""
    merged = []
    for paper in papers:
        match = next((entry for entry in candidates if _matches(entry, paper)), None)
        merged.append(apply_classification(paper, match) if match else paper)
    return merged


def sort_by_priority(papers: list[RelatedPaper]) -> list[RelatedPaper]:
    """Stable sort: conflicting, then supporting, then related."""
    return sorted(papers, key=lambda paper: -paper.priority)


class ConflictClassifier:
    """Classifies found papers against the uploaded paper's analysis."""

    def __init__(self, model: BaseChatModel | None = None):
        self.model = model or create_model()

    async def classify(
        self,
        analysis: AnalysisResult,
        papers: list[RelatedPaper],
    ) -> list[RelatedPaper]:
        """
        Classify and order papers.

        Args:
            analysis: Analysis of the uploaded paper.
            papers: Papers from the literature search.

        Returns:
            Classified papers sorted conflicting-first, or the input list
            unchanged if classification fails.
        """
        if not papers:
            return papers

        try:
            batch = await invoke_structured(
                self.model,
                ClassificationBatch,
                build_classification_prompt(analysis, papers),
                description="Classification",
            )
            verdicts = batch.papers if batch is not None else []
            ordered = sort_by_priority(merge_classifications(papers, verdicts))
        except Exception as e:
            logger.warning(f"Conflict classification failed, keeping unclassified papers: {e}")
            return papers

        conflicts = sum(1 for paper in ordered if paper.status == "conflicting")
        logger.info(f"Classified {len(ordered)} papers ({conflicts} conflicting)")
        return ordered
