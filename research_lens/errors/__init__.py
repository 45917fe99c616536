"""Error handling for Research Lens.

This module provides:
- Custom exception types for workflow errors
- The retry policy used around LLM calls
- Error handlers for classification, responses and logging
"""

from research_lens.errors.exceptions import (
    ResearchLensError,
    WorkflowError,
    APIError,
    RateLimitError,
    LLMResponseError,
    DocumentError,
    SearchError,
    LiteratureSearchError,
    AnalysisError,
)
from research_lens.errors.handlers import (
    is_rate_limit_error,
    create_error_response,
    create_workflow_error_model,
    log_error_with_context,
)
from research_lens.errors.policies import (
    RetryPolicy,
    NO_RETRY_POLICY,
    create_llm_retry_policy,
)

__all__ = [
    # Exceptions
    "ResearchLensError",
    "WorkflowError",
    "APIError",
    "RateLimitError",
    "LLMResponseError",
    "DocumentError",
    "SearchError",
    "LiteratureSearchError",
    "AnalysisError",
    # Handlers
    "is_rate_limit_error",
    "create_error_response",
    "create_workflow_error_model",
    "log_error_with_context",
    # Policies
    "RetryPolicy",
    "NO_RETRY_POLICY",
    "create_llm_retry_policy",
]
