"""
Custom exceptions for the chapters service
"""

from .chapter_exceptions import (
    ChapterError,
    ChapterNotFoundError,
    ChapterOperationError,
    InvalidChapterRequestError,
)

__all__ = [
    "ChapterError",
    "ChapterNotFoundError",
    "ChapterOperationError",
    "InvalidChapterRequestError",
]
