"""Application settings and environment configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
PROJECT_ROOT = Path(__file__).parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Anthropic
    anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
    default_model: str = os.getenv("DEFAULT_MODEL", "claude-sonnet-4-5-20250929")
    max_output_tokens: int = int(os.getenv("MAX_OUTPUT_TOKENS", "8192"))
    web_search_max_uses: int = int(os.getenv("WEB_SEARCH_MAX_USES", "5"))

    # LangSmith
    langsmith_api_key: str = os.getenv("LANGSMITH_API_KEY", "")
    langsmith_tracing: bool = os.getenv("LANGSMITH_TRACING", "false").lower() == "true"
    langsmith_project: str = os.getenv("LANGSMITH_PROJECT", "research-lens")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Retry policy (seconds)
    retry_budget: int = int(os.getenv("RETRY_BUDGET", "3"))
    retry_initial_delay: float = float(os.getenv("RETRY_INITIAL_DELAY", "2.0"))
    retry_max_total_delay: float = float(os.getenv("RETRY_MAX_TOTAL_DELAY", "90.0"))

    # Workflow pacing (seconds)
    search_stagger_delay: float = float(os.getenv("SEARCH_STAGGER_DELAY", "2.0"))
    query_pause: float = float(os.getenv("QUERY_PAUSE", "1.5"))

    # Prompt size limits
    max_pdf_pages: int = int(os.getenv("MAX_PDF_PAGES", "15"))
    analysis_char_limit: int = 30000
    query_char_limit: int = 5000
    reference_char_limit: int = 30000

    # arXiv
    arxiv_api_url: str = os.getenv("ARXIV_API_URL", "https://export.arxiv.org/api/query")
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30.0"))

    # HTTP server
    server_host: str = os.getenv("HOST", "127.0.0.1")
    server_port: int = int(os.getenv("PORT", "5001"))
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

    def __post_init__(self):
        """Configure LangSmith environment variables."""
        if self.langsmith_api_key:
            os.environ["LANGSMITH_API_KEY"] = self.langsmith_api_key
            os.environ["LANGSMITH_TRACING"] = str(self.langsmith_tracing).lower()
            os.environ["LANGSMITH_PROJECT"] = self.langsmith_project

    def validate(self) -> list[str]:
        """List configuration problems.

        Nothing here is enforced at start-up; a missing API key only
        surfaces when the first model call fails.
        """
        errors = []
        if not self.anthropic_api_key:
            errors.append("ANTHROPIC_API_KEY is not set")
        if self.retry_budget < 0:
            errors.append("RETRY_BUDGET must not be negative")
        return errors


# Global settings instance
settings = Settings()
