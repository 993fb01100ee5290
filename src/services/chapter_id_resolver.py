"""
Chapter id resolution
Legacy (oldId) ids from the old SQL database are still accepted everywhere a
chapter or content id is; they are swapped for the ObjectId before querying.
"""

import logging
from typing import Any, Dict, Union

from bson import ObjectId
from pymongo.errors import PyMongoError

from config import config
from src.exceptions import ChapterNotFoundError, ChapterOperationError
from src.models.chapter_models import JoinScope

logger = logging.getLogger("chapters")


def is_object_id(value: Any) -> bool:
    """True if value is (or parses as) a MongoDB ObjectId"""
    if isinstance(value, ObjectId):
        return True
    return value is not None and ObjectId.is_valid(str(value))


def chapter_query(chapter_id: Union[str, ObjectId]) -> Dict[str, Any]:
    """Filter matching a chapter by ObjectId, or by oldId for legacy ids"""
    if is_object_id(chapter_id):
        return {"_id": ObjectId(str(chapter_id))}
    return {"oldId": str(chapter_id)}


class ChapterIdResolver:
    """Resolves scope ids (content or chapters) to ObjectIds"""

    def __init__(self, db):
        """
        Args:
            db: PyMongo Database object (synchronous)
        """
        self.collections = {
            JoinScope.CHAPTERS.value: db[config.CHAPTERS_COLLECTION],
            JoinScope.CONTENT.value: db[config.CONTENT_COLLECTION],
        }

    def resolve(self, scope_id: Union[str, ObjectId], scope: str) -> ObjectId:
        """
        Resolve a scope id to its ObjectId

        Args:
            scope_id: ObjectId string or legacy oldId
            scope: "content" or "chapters" (only consulted for legacy ids)

        Returns:
            ObjectId of the scope document

        Raises:
            ChapterNotFoundError: Unknown scope or no document with that oldId
        """
        if is_object_id(scope_id):
            return ObjectId(str(scope_id))

        collection = self.collections.get(scope)
        if collection is None:
            raise ChapterNotFoundError(
                f"This {scope} was not found.",
                {"scope": scope, "scope_id": scope_id},
            )

        try:
            found = collection.find_one({"oldId": str(scope_id)}, {"_id": 1})
        except PyMongoError as e:
            logger.error(f"❌ Error resolving {scope} {scope_id}: {e}")
            raise ChapterOperationError(str(e), {"scope_id": str(scope_id)}) from e

        if not found:
            logger.warning(f"⚠️ No {scope} with legacy id {scope_id}")
            raise ChapterNotFoundError(
                f"This {scope} was not found.",
                {"scope": scope, "scope_id": scope_id},
            )

        return found["_id"]

    def resolve_chapter(self, chapter_id: Union[str, ObjectId]) -> ObjectId:
        """Resolve a chapter id (ObjectId or oldId) to its ObjectId"""
        return self.resolve(chapter_id, JoinScope.CHAPTERS.value)
