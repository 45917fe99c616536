"""REFERENCE_EXTRACTOR: pull bibliography entries from the paper's tail."""

import logging

from langchain_core.language_models import BaseChatModel

from research_lens.agents.base import create_model, invoke_structured
from research_lens.config import settings
from research_lens.errors import RetryPolicy, create_llm_retry_policy
from research_lens.state.models import Reference, ReferenceList

logger = logging.getLogger(__name__)

MAX_REFERENCES = 15


def build_reference_prompt(text: str) -> str:
    """Prompt asking for the most important references."""
    return f"""Extract the top {MAX_REFERENCES} most important references from this text.
Give the title, author and year of each.

Text: {text}"""


class ReferenceExtractor:
    """Extracts up to fifteen references from the end of a paper."""

    def __init__(
        self,
        model: BaseChatModel | None = None,
        retry_policy: RetryPolicy | None = None,
        char_limit: int | None = None,
    ):
        self.model = model or create_model()
        self.retry_policy = retry_policy or create_llm_retry_policy()
        self.char_limit = char_limit or settings.reference_char_limit

    async def _extract_once(self, text: str) -> list[Reference]:
        result = await invoke_structured(
            self.model,
            ReferenceList,
            build_reference_prompt(text),
            description="Reference extraction",
        )
        if result is None:
            return []
        return result.references[:MAX_REFERENCES]

    async def extract(self, text: str) -> list[Reference]:
        """
        Extract references; bibliographies sit at the end of papers.

        Args:
            text: Full extracted paper text.

        Returns:
            Up to fifteen references, empty on failure.
        """
        tail = text[-self.char_limit:] if len(text) > self.char_limit else text
        try:
            references = await self.retry_policy.execute(
                lambda: self._extract_once(tail),
                description="reference extraction",
            )
        except Exception as e:
            logger.warning(f"Reference extraction failed: {e}")
            return []
        logger.info(f"Extracted {len(references)} references")
        return references
