# DEPENDENCIES
from typing import List
from typing import Optional


class ContractAnalysisError(Exception):
    """
    Base class for all analysis pipeline errors
    """
    error_code = "ANALYSIS_ERROR"


class InputValidationError(ContractAnalysisError):
    """
    Empty, oversized or non-text input; raised before any analysis runs
    """
    error_code = "INVALID_INPUT"


class ContentBlockedError(ContractAnalysisError):
    """
    Moderation flagged the submission; AI analysis is not attempted
    """
    error_code = "CONTENT_BLOCKED"

    def __init__(self, categories: Optional[List[str]] = None):
        self.categories = list(categories or [])
        super().__init__("Content blocked by moderation")


class SchemaViolationError(ContractAnalysisError):
    """
    Model reply could not be parsed into the analysis schema
    """
    error_code = "SCHEMA_VIOLATION"


class AIUnavailableError(ContractAnalysisError):
    """
    Every configured model failed; callers fall back to rule-only results
    """
    error_code = "AI_UNAVAILABLE"

    def __init__(self, message: str = "AI analysis unavailable", attempts: Optional[List[dict]] = None):
        self.attempts = list(attempts or [])
        super().__init__(message)


class AnalysisNotFoundError(ContractAnalysisError):
    error_code = "NOT_FOUND"


class RateLimitExceeded(ContractAnalysisError):
    error_code = "RATE_LIMITED"

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Please wait {retry_after} seconds before trying again.")
