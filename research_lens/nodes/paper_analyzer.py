"""PAPER_ANALYZER: structured analysis of the uploaded paper.

Sends the first 30,000 characters of the extracted text to Claude with
``AnalysisResult`` as the structured output schema. Missing fields take
their defaults; a reply that does not fit the schema raises so the retry
policy re-runs the whole call.
"""

import logging

from langchain_core.language_models import BaseChatModel

from research_lens.agents.base import create_model, invoke_structured
from research_lens.config import settings
from research_lens.state.models import AnalysisResult

logger = logging.getLogger(__name__)


def build_analysis_prompt(text: str) -> str:
    """Build the extraction prompt for a paper's text."""
    return f"""Analyze the following research paper text. Extract structured information.

1. Title of the paper (infer from content if not explicit)
2. A brief 2-3 sentence summary of the paper
3. Sample Size / Population: the participants, events, or datasets used for training and testing
4. Methodology: the study design, tools, or simulations used
5. Key Findings: 4-6 main results
6. Statistical Tests Used: every test mentioned
7. Limitations: 3-5 concerns or limitations

Fill in every field.

Paper Text: {text}"""


class PaperAnalyzer:
    """Extracts an AnalysisResult from paper text."""

    def __init__(
        self,
        model: BaseChatModel | None = None,
        char_limit: int | None = None,
    ):
        self.model = model or create_model()
        self.char_limit = char_limit or settings.analysis_char_limit

    async def analyze(self, text: str) -> AnalysisResult:
        """
        Analyze a paper.

        Args:
            text: Extracted text of the uploaded document.

        Returns:
            AnalysisResult with defaults for anything the model left out.

        Raises:
            LLMResponseError: If the reply does not fit the analysis schema.
            Exception: Any model call error, unchanged.
        """
        prompt = build_analysis_prompt(text[:self.char_limit])
        try:
            result = await invoke_structured(
                self.model, AnalysisResult, prompt, description="Paper analysis"
            )
        except Exception as e:
            logger.error(f"Paper analysis call failed: {e}")
            raise

        if result is None:
            logger.warning("Paper analysis returned no structured output; using defaults")
            result = AnalysisResult()
        logger.info(f"Analyzed paper: {result.title!r} ({len(result.key_findings)} findings)")
        return result
