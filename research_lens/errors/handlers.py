"""Error handlers for graceful error management.

This module classifies exceptions (notably rate-limit signals, which the
retry policy treats specially), builds serialisable error responses and
logs errors with their workflow context.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any

from research_lens.errors.exceptions import (
    APIError,
    AnalysisError,
    DocumentError,
    LLMResponseError,
    RateLimitError,
    ResearchLensError,
    SearchError,
    WorkflowError,
)
from research_lens.state.models import WorkflowError as WorkflowErrorModel

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "quota", "RESOURCE_EXHAUSTED")


# =============================================================================
# Classification
# =============================================================================


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error signals rate limiting or quota exhaustion.
    
    Looks at the exception type, a numeric ``status``/``status_code``
    attribute (as set by the Anthropic SDK and by httpx responses), and
    the message text.
    
    Args:
        error: The exception to inspect
        
    Returns:
        True if the error is a rate-limit signal
    """
    if isinstance(error, RateLimitError):
        return True
    
    for attr in ("status", "status_code"):
        if getattr(error, attr, None) == 429:
            return True
    
    response = getattr(error, "response", None)
    if response is not None and getattr(response, "status_code", None) == 429:
        return True
    
    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def _detect_error_category(error: Exception) -> str:
    """Detect error category from exception type.
    
    Args:
        error: The exception
        
    Returns:
        Category string
    """
    if is_rate_limit_error(error):
        return "rate_limit"
    elif isinstance(error, LLMResponseError):
        return "decode_error"
    elif isinstance(error, APIError):
        return "api_error"
    elif isinstance(error, SearchError):
        return "search_error"
    elif isinstance(error, DocumentError):
        return "document_error"
    elif isinstance(error, AnalysisError):
        return "analysis_error"
    elif isinstance(error, WorkflowError):
        return "workflow_error"
    elif isinstance(error, ResearchLensError):
        return "research_lens_error"
    elif isinstance(error, (TimeoutError, ConnectionError)):
        return "connection_error"
    else:
        return "unknown_error"


# =============================================================================
# Error Response Creation
# =============================================================================


def create_error_response(
    error: Exception,
    stage: str | None = None,
    include_traceback: bool = False,
) -> dict[str, Any]:
    """Create a standardized error response dictionary.
    
    Args:
        error: The exception that occurred
        stage: Workflow stage where the error occurred
        include_traceback: Whether to include full traceback
        
    Returns:
        Standardized error response dictionary
    """
    if isinstance(error, ResearchLensError):
        response = {
            "error_type": error.__class__.__name__,
            "message": error.message,
            "details": error.details,
            "recoverable": error.recoverable,
        }
    else:
        response = {
            "error_type": error.__class__.__name__,
            "message": str(error),
            "details": {},
            "recoverable": True,  # Assume recoverable for unknown errors
        }
    
    if stage:
        response["stage"] = stage
    
    response["timestamp"] = datetime.now(timezone.utc).isoformat()
    
    if include_traceback:
        response["traceback"] = traceback.format_exc()
    
    return response


def create_workflow_error_model(
    error: Exception,
    stage: str,
    category: str | None = None,
) -> WorkflowErrorModel:
    """Create a WorkflowError model from an exception.
    
    Args:
        error: The exception that occurred
        stage: Stage where the error occurred
        category: Error category (auto-detected if not provided)
        
    Returns:
        WorkflowErrorModel for state tracking
    """
    if category is None:
        category = _detect_error_category(error)
    
    if isinstance(error, ResearchLensError):
        message = error.message
        recoverable = error.recoverable
        details = error.details
    else:
        message = str(error)
        recoverable = True
        details = {"original_type": error.__class__.__name__}
    
    return WorkflowErrorModel(
        stage=stage,
        category=category,
        message=message,
        recoverable=recoverable,
        details=details,
    )


# =============================================================================
# Error Logging
# =============================================================================


def log_error_with_context(
    error: Exception,
    stage: str | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with full context.
    
    Args:
        error: The exception that occurred
        stage: Stage where the error occurred
        context: Additional context to log
        level: Logging level (default: ERROR)
    """
    parts = [f"Error: {error.__class__.__name__}: {error}"]
    
    if stage:
        parts.append(f"Stage: {stage}")
    
    if isinstance(error, ResearchLensError):
        if error.details:
            parts.append(f"Details: {error.details}")
        parts.append(f"Recoverable: {error.recoverable}")
    
    if context:
        parts.append(f"Context: {context}")
    
    logger.log(level, " | ".join(parts))
    
    # Log traceback at debug level
    logger.debug(f"Traceback:\n{traceback.format_exc()}")
