"""
Chapter-related custom exceptions
"""

from typing import Any, Dict, Optional


class ChapterError(Exception):
    """
    Base class for chapter data-access errors.

    API layers catch these and convert them with to_dict():
        ChapterNotFoundError -> 404
        InvalidChapterRequestError -> 400
        ChapterOperationError -> 500

    Attributes:
        message: Human-readable error message
        error_code: Fixed code for frontend detection
        details: Optional extra context (ids, scope, ...)
    """

    error_code = "CHAPTER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON response"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ChapterNotFoundError(ChapterError):
    """Raised when a chapter, or a legacy id for a joined scope, cannot be found"""

    error_code = "CHAPTER_NOT_FOUND"


class InvalidChapterRequestError(ChapterError):
    """Raised when the caller passes arguments the operation cannot work with"""

    error_code = "INVALID_CHAPTER_REQUEST"


class ChapterOperationError(ChapterError):
    """Raised when the database rejects or fails a chapter operation"""

    error_code = "CHAPTER_OPERATION_FAILED"
