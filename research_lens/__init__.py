"""Research Lens: LLM-assisted paper analysis and conflict detection."""

__version__ = "0.1.0"
