"""Configuration for Research Lens."""

from research_lens.config.settings import PROJECT_ROOT, Settings, settings

__all__ = ["PROJECT_ROOT", "Settings", "settings"]
