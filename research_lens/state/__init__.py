"""State management for Research Lens."""

from research_lens.state.enums import (
    ChatRole,
    PaperStatus,
    WorkflowStage,
    STATUS_CLASSIFYING,
    STATUS_IDLE,
    STATUS_INITIALIZING,
    STATUS_NO_PAPERS,
    STATUS_SEARCHING,
)
from research_lens.state.models import (
    AnalysisResult,
    ChatMessage,
    ClassificationBatch,
    ComparisonDetails,
    PaperClassification,
    Reference,
    ReferenceList,
    RelatedPaper,
    SearchQueries,
    WorkflowError,
)
from research_lens.state.schema import WorkspaceState, create_initial_state

__all__ = [
    # Enums
    "ChatRole",
    "PaperStatus",
    "WorkflowStage",
    "STATUS_CLASSIFYING",
    "STATUS_IDLE",
    "STATUS_INITIALIZING",
    "STATUS_NO_PAPERS",
    "STATUS_SEARCHING",
    # Models
    "AnalysisResult",
    "ChatMessage",
    "ComparisonDetails",
    "Reference",
    "RelatedPaper",
    "WorkflowError",
    # Structured model output
    "ClassificationBatch",
    "PaperClassification",
    "ReferenceList",
    "SearchQueries",
    # Schema
    "WorkspaceState",
    "create_initial_state",
]
