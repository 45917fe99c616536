"""Workflow coordination for Research Lens."""

from research_lens.graphs.workflow import DEFAULT_ERROR_MESSAGE, PaperWorkflow

__all__ = ["PaperWorkflow", "DEFAULT_ERROR_MESSAGE"]
