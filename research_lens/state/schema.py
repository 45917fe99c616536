"""WorkspaceState schema for Research Lens.

The workspace is the single piece of mutable state behind the UI: the
current upload's analysis, related papers, references, loading flags and
status text. Only the workflow coordinator writes it; everyone else gets
deep-copied snapshots.
"""

from pydantic import Field

from research_lens.state.enums import STATUS_IDLE
from research_lens.state.models import (
    AnalysisResult,
    CamelModel,
    Reference,
    RelatedPaper,
    WorkflowError,
)


class WorkspaceState(CamelModel):
    """Snapshot of one upload's analysis workspace.

    Attributes:
        generation: Run counter; bumped on every upload.
        analyzing: Analysis panel is loading.
        searching: Related-papers panel is loading.
        status_text: Human-readable progress message.
        analysis_result: Structured analysis, once available.
        related_papers: Found papers, classified once the run completes.
        references: Bibliography entries, extracted on demand.
        error: User-visible error message, if the run failed outright.
        errors: Degraded-stage errors recorded during the run.
        text_length: Length of the extracted text of the current upload.
    """

    generation: int = 0
    analyzing: bool = False
    searching: bool = False
    status_text: str = STATUS_IDLE
    analysis_result: AnalysisResult | None = None
    related_papers: list[RelatedPaper] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)
    error: str | None = None
    errors: list[WorkflowError] = Field(default_factory=list)
    text_length: int = 0

    @property
    def is_busy(self) -> bool:
        """Whether a run is still in flight."""
        return self.analyzing or self.searching


def create_initial_state(generation: int = 0, text_length: int = 0) -> WorkspaceState:
    """Create the state a fresh run starts from.

    Args:
        generation: Run counter for the new run.
        text_length: Length of the extracted text being analysed.

    Returns:
        Empty workspace for the new run.
    """
    return WorkspaceState(generation=generation, text_length=text_length)
