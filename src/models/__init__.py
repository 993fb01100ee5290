"""
📦 MODELS PACKAGE
Centralized models for the chapters service
"""

from .chapter_models import (
    FLAG_OFF,
    FLAG_ON,
    ChapterSave,
    JoinOrderItem,
    JoinRequest,
    JoinScope,
    JoinType,
)

__all__ = [
    "FLAG_OFF",
    "FLAG_ON",
    "ChapterSave",
    "JoinOrderItem",
    "JoinRequest",
    "JoinScope",
    "JoinType",
]
