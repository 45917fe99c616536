"""Custom exception types for Research Lens.

This module defines a hierarchy of exceptions for categorizing errors
throughout the analysis workflow, enabling targeted retry and recovery.
"""

from typing import Any


class ResearchLensError(Exception):
    """Base exception for all Research Lens errors.
    
    Attributes:
        message: Human-readable error description
        details: Additional error context
        recoverable: Whether the workflow can recover from this error
    """
    
    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        super().__init__(message)
    
    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Workflow-Level Errors
# =============================================================================


class WorkflowError(ResearchLensError):
    """Error at the workflow orchestration level."""
    
    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        details = details or {}
        if stage:
            details["stage"] = stage
        super().__init__(message, details, recoverable)
        self.stage = stage


# =============================================================================
# API-Related Errors
# =============================================================================


class APIError(ResearchLensError):
    """Error from external API calls.
    
    Base class for LLM and bibliographic API failures.
    """
    
    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        details = details or {}
        details["service"] = service
        if status_code:
            details["status_code"] = status_code
        if response_body:
            details["response_body"] = response_body[:500]  # Truncate
        super().__init__(message, details, recoverable)
        self.service = service
        self.status_code = status_code


class RateLimitError(APIError):
    """Rate limit or quota exhausted on an external API.
    
    Attributes:
        retry_after: Seconds to wait before retrying (if provided)
    """
    
    def __init__(
        self,
        message: str,
        service: str,
        retry_after: float | None = None,
        status_code: int = 429,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if retry_after:
            details["retry_after"] = retry_after
        super().__init__(
            message,
            service=service,
            status_code=status_code,
            details=details,
            recoverable=True,
        )
        self.retry_after = retry_after


class LLMResponseError(APIError):
    """The model answered, but not with decodable JSON of the expected shape."""
    
    def __init__(
        self,
        message: str,
        service: str = "anthropic",
        response_body: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            service=service,
            response_body=response_body,
            details=details,
            recoverable=True,
        )


# =============================================================================
# Domain-Specific Errors
# =============================================================================


class DocumentError(ResearchLensError):
    """The uploaded document could not be read or has no text."""
    
    def __init__(
        self,
        message: str,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, details, recoverable=False)
        self.filename = filename


class SearchError(ResearchLensError):
    """Error during search operations."""
    
    def __init__(
        self,
        message: str,
        query: str | None = None,
        source: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        details = details or {}
        if query:
            details["query"] = query[:200]  # Truncate
        if source:
            details["source"] = source
        super().__init__(message, details, recoverable)
        self.query = query
        self.source = source


class LiteratureSearchError(SearchError):
    """Error searching arXiv or the model's web search for papers."""
    
    def __init__(
        self,
        message: str,
        query: str | None = None,
        source: str = "unknown",
        papers_found: int = 0,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        details = details or {}
        details["papers_found"] = papers_found
        super().__init__(message, query, source, details, recoverable)
        self.papers_found = papers_found


class AnalysisError(ResearchLensError):
    """Error producing the structured analysis of the uploaded paper."""
    
    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        details = details or {}
        if stage:
            details["stage"] = stage
        super().__init__(message, details, recoverable)
        self.stage = stage
