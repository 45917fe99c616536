"""Pydantic models for Research Lens workflow state.

Attribute names are snake_case; JSON produced for (and accepted from) the
front end and the LLM uses the camelCase aliases.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from research_lens.state.enums import (
    PENDING_REASON,
    PENDING_STATUS_TEXT,
    ChatRole,
    PaperStatus,
)


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _text_or(value: Any, default: str) -> str:
    """Return value as a stripped string, or default when blank or not text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _string_list(value: Any) -> list[str]:
    """Coerce a model-supplied list into a list of non-empty strings."""
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _paper_status(value: Any) -> PaperStatus:
    """Parse a status label; unknown labels count as related."""
    if isinstance(value, PaperStatus):
        return value
    try:
        return PaperStatus(str(value).strip().lower())
    except ValueError:
        return PaperStatus.RELATED


class CamelModel(BaseModel):
    """Base model serialising to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Paper Analysis
# =============================================================================


class AnalysisResult(CamelModel):
    """Structured analysis of the uploaded paper.

    Missing, null or blank fields from the model fall back to fixed
    placeholders so consumers never see null.
    """

    title: str = Field(default="Untitled Paper", description="Paper title")
    summary: str = Field(default="No summary available.", description="2-3 sentence summary")
    sample_size: str = Field(default="Not specified", description="Population or dataset")
    methodology: str = Field(default="Not specified", description="Study design")
    key_findings: list[str] = Field(default_factory=list, description="4-6 main results")
    statistical_tests: list[str] = Field(default_factory=list, description="Every test mentioned")
    limitations: list[str] = Field(default_factory=list, description="3-5 concerns")

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> str:
        return _text_or(value, "Untitled Paper")

    @field_validator("summary", mode="before")
    @classmethod
    def _default_summary(cls, value: Any) -> str:
        return _text_or(value, "No summary available.")

    @field_validator("sample_size", "methodology", mode="before")
    @classmethod
    def _default_not_specified(cls, value: Any) -> str:
        return _text_or(value, "Not specified")

    @field_validator("key_findings", "statistical_tests", "limitations", mode="before")
    @classmethod
    def _default_list(cls, value: Any) -> list[str]:
        return _string_list(value)


# =============================================================================
# Related Literature
# =============================================================================


class ComparisonDetails(CamelModel):
    """How a found paper compares with the uploaded one."""

    difference_type: str = ""
    uploaded_paper_value: str = ""
    external_paper_value: str = ""
    reason: str = ""

    @field_validator(
        "difference_type", "uploaded_paper_value", "external_paper_value", "reason",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or(value, "")


class RelatedPaper(CamelModel):
    """A candidate related paper found by the literature search."""

    id: str | None = Field(default=None, description="Optional stable identifier")
    title: str = Field(..., min_length=1)
    authors: str = Field(default="Unknown")
    year: int | None = Field(default=None)
    journal: str = Field(default="")
    methodology: str = Field(default="See paper")
    finding: str = Field(default="")
    status: PaperStatus = Field(default=PaperStatus.RELATED)
    status_text: str = Field(default=PENDING_STATUS_TEXT)
    url: str | None = Field(default=None)
    comparison_details: ComparisonDetails = Field(
        default_factory=lambda: ComparisonDetails(reason=PENDING_REASON)
    )

    @field_validator("title", mode="before")
    @classmethod
    def _clean_title(cls, value: Any) -> Any:
        if isinstance(value, str):
            return " ".join(value.split())
        return value

    @field_validator("authors", mode="before")
    @classmethod
    def _join_authors(cls, value: Any) -> str:
        if isinstance(value, list):
            value = ", ".join(str(name) for name in value if name)
        return _text_or(value, "Unknown")[:100]

    @field_validator("year", mode="before")
    @classmethod
    def _parse_year(cls, value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str) and value.strip()[:4].isdigit():
            return int(value.strip()[:4])
        return None

    @field_validator("journal", "finding", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or(value, "")

    @field_validator("methodology", mode="before")
    @classmethod
    def _default_methodology(cls, value: Any) -> str:
        return _text_or(value, "See paper")

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> PaperStatus:
        return _paper_status(value)

    @field_validator("status_text", mode="before")
    @classmethod
    def _default_status_text(cls, value: Any) -> str:
        return _text_or(value, PENDING_STATUS_TEXT)

    @field_validator("id", "url", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        text = _text_or(value, "")
        return text or None

    @property
    def priority(self) -> int:
        """Sort priority of the current classification."""
        return self.status.priority

    def with_pending_status(self) -> "RelatedPaper":
        """Copy stamped with the pre-classification placeholders."""
        return self.model_copy(update={
            "status": PaperStatus.RELATED,
            "status_text": PENDING_STATUS_TEXT,
            "comparison_details": ComparisonDetails(reason=PENDING_REASON),
        })


class Reference(CamelModel):
    """A bibliography entry of the uploaded paper."""

    title: str = Field(..., min_length=1)
    author: str = Field(default="")
    year: str = Field(default="")

    @field_validator("author", "year", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or(value, "")


# =============================================================================
# Chat
# =============================================================================


class ChatMessage(CamelModel):
    """One turn of the chat assistant conversation."""

    role: ChatRole
    content: str
    timestamp: datetime = Field(default_factory=_utc_now)


# =============================================================================
# Workflow Error Tracking
# =============================================================================


class WorkflowError(CamelModel):
    """An error recorded during a workflow run."""

    stage: str = Field(..., description="Stage where the error occurred")
    category: str = Field(..., description="Error category")
    message: str = Field(..., description="Error message")
    recoverable: bool = Field(default=True)
    occurred_at: datetime = Field(default_factory=_utc_now)
    details: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Structured Model Output
# =============================================================================


class SearchQueries(CamelModel):
    """Search queries proposed for the literature search."""

    queries: list[str] = Field(default_factory=list, description="Search queries, most important first")

    @field_validator("queries", mode="before")
    @classmethod
    def _text_queries(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]


class PaperClassification(CamelModel):
    """Classifier verdict for one found paper.

    Fields the model leaves out stay unset so the paper keeps its own value.
    """

    id: str | None = Field(default=None, description="Id of the paper as given in the prompt")
    title: str | None = Field(default=None)
    status: PaperStatus | None = Field(default=None)
    status_text: str = Field(default="", description="Short label such as 'Outperforms'")
    comparison_details: ComparisonDetails | None = Field(default=None)

    @field_validator("id", "title", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        return _text_or(value, "") or None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> PaperStatus | None:
        return None if value is None else _paper_status(value)

    @field_validator("status_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or(value, "")

    @field_validator("comparison_details", mode="before")
    @classmethod
    def _details_object(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, ComparisonDetails)) else None


class ClassificationBatch(CamelModel):
    """Classifier verdicts for every found paper."""

    papers: list[PaperClassification] = Field(default_factory=list)

    @field_validator("papers", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, (dict, PaperClassification))]


class ReferenceList(CamelModel):
    """Bibliography entries picked from the paper."""

    references: list[Reference] = Field(default_factory=list, description="Most important references")

    @field_validator("references", mode="before")
    @classmethod
    def _valid_entries(cls, value: Any) -> list[Reference]:
        if not isinstance(value, list):
            return []
        references = []
        for entry in value:
            try:
                references.append(Reference.model_validate(entry))
            except ValidationError:
                continue
        return references
