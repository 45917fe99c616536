"""Enums and constants for Research Lens workflow state."""

from enum import Enum


class PaperStatus(str, Enum):
    """How a found paper relates to the uploaded one."""

    SUPPORTING = "supporting"    # Validates the approach or its results
    CONFLICTING = "conflicting"  # Contradicts, critiques or outperforms it
    RELATED = "related"          # Context, reviews, different problems

    @property
    def priority(self) -> int:
        """Sort priority: conflicting first, related last."""
        return STATUS_PRIORITY[self]


STATUS_PRIORITY = {
    PaperStatus.CONFLICTING: 3,
    PaperStatus.SUPPORTING: 2,
    PaperStatus.RELATED: 1,
}


class ChatRole(str, Enum):
    """Speaker of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class WorkflowStage(str, Enum):
    """Stages of the analysis workflow."""

    ANALYSIS = "analysis"
    SEARCH = "search"
    CLASSIFICATION = "classification"
    REFERENCES = "references"
    CHAT = "chat"


# Human-readable status messages published while a run is in flight
STATUS_INITIALIZING = "Initializing analysis..."
STATUS_SEARCHING = "Searching literature..."
STATUS_CLASSIFYING = "Detecting conflicts & validating..."
STATUS_NO_PAPERS = "No related papers found."
STATUS_IDLE = ""

# Placeholders stamped on papers before classification
PENDING_STATUS_TEXT = "Pending analysis"
PENDING_REASON = "Analyzing..."
