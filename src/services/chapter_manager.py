"""
Chapter Manager Service
Database operations for chapters and the joins that order their content

Example chapter in MongoDB:
{
    "_id": ObjectId("51cbfc9ef702fc2ba812fe67"),
    "dateCreated": ISODate("2012-08-13T14:01:07Z"),
    "name": "Sample Chapter",
    "oldId": "81380",
    "joins": [
        {"_id": ObjectId("51cbf94d7896bb431f6baa64"), "scope": "content", "joinType": "primary"},
        {"_id": ObjectId("51cbfc9ef702fc2ba812fe68"), "scope": "chapters", "joinType": "selected"},
        {"_id": ObjectId("51cbf49e7896bb431f6b0024"), "scope": "content", "joinType": "primary", "hide": "1"},
        {"_id": ObjectId("51cbf5867896bb431f6b229e"), "scope": "content", "joinType": "primary",
         "isLCP": "1", "lcpedFrom": "9399"},
        {"_id": ObjectId("52546e850cf250213f33f932"), "scope": "chapters", "joinType": "selected",
         "isAdminOnly": "1"}
    ]
}

- "oldId" is the legacy id from the old SQL database, still accepted wherever a chapter id is
- "joins" attaches content and other chapters; its order is the display order
- LCP fields mark content or chapters published somewhere other than the original book
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from bson import ObjectId
from pymongo.errors import PyMongoError

from config import config
from src.exceptions import (
    ChapterNotFoundError,
    ChapterOperationError,
    InvalidChapterRequestError,
)
from src.models.chapter_models import (
    FLAG_OFF,
    FLAG_ON,
    ChapterSave,
    JoinOrderItem,
    JoinRequest,
    JoinScope,
)
from src.services.chapter_id_resolver import (
    ChapterIdResolver,
    chapter_query,
    is_object_id,
)
from src.utils.document_utils import serialize_document

logger = logging.getLogger("chapters")

# Content versions visible through a chapter
PUBLISHED_STATUS = "Published"
ADMIN_ONLY_CONTENT_TYPE = "questionpool"

CONTENT_FIELDS = {
    "title": 1,
    "type": 1,
    "contentId": 1,
    "publishedDate": 1,
    "body": 1,
    "users": 1,
    "costs": 1,
    "_id": 0,
}

JOINED_CHAPTER_FIELDS = {
    "name": 1,
    "shortName": 1,
    "lcpCopyOfChapter": 1,
    "lcpLiveUpdates": 1,
    "imageId": 1,
    "joins.scope": 1,
}

# Projecting a positional join ("joins.$") drops every field not listed,
# so reverse lookups spell out the whole chapter
VIEWABLE_FIELDS = [
    "_id",
    "name",
    "description",
    "abstract",
    "shortName",
    "imageId",
    "slideShowId",
    "mainFeature",
    "inactive",
    "displayImage",
    "randomFeatures",
    "showUpdatedContent",
    "lcpCopyOfChapter",
    "lcpLiveUpdates",
    "lcpPrivateCommenting",
    "joins",
    "dateCreated",
    "lastUpdatedTime",
    "galleryId",
]

# Join flags that take "1" (set) / "0" (unset) / anything else (untouched)
JOIN_FLAGS = ("featured", "hide", "isLCP")


class ChapterManager:
    """Manages chapters and their joins in MongoDB"""

    def __init__(self, db):
        """
        Initialize ChapterManager

        Args:
            db: PyMongo Database object (synchronous)
        """
        self.db = db
        self.chapters_collection = db[config.CHAPTERS_COLLECTION]
        self.content_versions_collection = db[config.CONTENT_VERSIONS_COLLECTION]
        self.resolver = ChapterIdResolver(db)

    def create_indexes(self):
        """Create indexes used by chapter lookups"""
        try:
            existing_indexes = [
                idx["name"] for idx in self.chapters_collection.list_indexes()
            ]

            # Legacy id lookups
            if "chapter_old_id" not in existing_indexes:
                self.chapters_collection.create_index(
                    "oldId", sparse=True, name="chapter_old_id"
                )
                logger.info("✅ Created index: chapter_old_id")

            # Reverse lookups and cascading removal
            if "chapter_joins" not in existing_indexes:
                self.chapters_collection.create_index(
                    [("joins._id", 1), ("joins.scope", 1)], name="chapter_joins"
                )
                logger.info("✅ Created index: chapter_joins")

            existing_version_indexes = [
                idx["name"] for idx in self.content_versions_collection.list_indexes()
            ]

            # Published versions of joined content
            if "content_versions_published" not in existing_version_indexes:
                self.content_versions_collection.create_index(
                    [("contentId", 1), ("status", 1)],
                    name="content_versions_published",
                )
                logger.info("✅ Created index: content_versions_published")

            logger.info("✅ Chapter indexes verified/created")
        except PyMongoError as e:
            logger.error(f"❌ Error creating chapter indexes: {e}")
            raise

    # ------------------------------------------------------------------
    # Chapter records
    # ------------------------------------------------------------------

    def get_chapter(self, chapter_id: Union[str, ObjectId]) -> Dict[str, Any]:
        """
        Get a chapter by ObjectId or legacy oldId

        Raises:
            ChapterNotFoundError: No chapter matches
        """
        try:
            chapter = self.chapters_collection.find_one(chapter_query(chapter_id))
        except PyMongoError as e:
            logger.error(f"❌ Error loading chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        if not chapter:
            raise ChapterNotFoundError(
                "That chapter could not be found", {"chapter_id": str(chapter_id)}
            )
        return chapter

    def save_chapter(self, chapter: Union[ChapterSave, Dict[str, Any]]) -> str:
        """
        Create a chapter, or update the fields that were sent

        Args:
            chapter: ChapterSave model or dict of its fields.
                None leaves a field alone, "" removes it, any other value sets it.

        Returns:
            chapter id (ObjectId string)

        Raises:
            ChapterNotFoundError: Updating a chapter that does not exist
        """
        if isinstance(chapter, dict):
            chapter = ChapterSave(**chapter)

        to_set = {}
        to_unset = {}
        for key, value in chapter.stored_fields().items():
            # name is always written as sent, never removed
            if value != "" or key == "name":
                to_set[key] = value
            else:
                to_unset[key] = ""

        now = datetime.now(timezone.utc)

        try:
            if chapter.is_new:
                to_set["dateCreated"] = now
                result = self.chapters_collection.insert_one(to_set)
                chapter_id = str(result.inserted_id)
                logger.info(f"✅ Created chapter: {chapter_id}")
                return chapter_id

            chapter_oid = self.resolver.resolve_chapter(chapter.id)

            to_set["lastUpdatedTime"] = now
            update = {"$set": to_set}
            if to_unset:
                update["$unset"] = to_unset

            result = self.chapters_collection.update_one({"_id": chapter_oid}, update)
            if result.matched_count == 0:
                raise ChapterNotFoundError(
                    "That chapter could not be found", {"chapter_id": chapter.id}
                )

            if chapter.admin_only is not None:
                self._sync_admin_only_joins(
                    chapter_oid, chapter.admin_only == FLAG_ON
                )

            logger.info(
                f"✅ Updated chapter: {chapter_oid} "
                f"(set: {len(to_set)}, unset: {len(to_unset)})"
            )
            return str(chapter_oid)
        except PyMongoError as e:
            logger.error(f"❌ Error saving chapter {chapter.id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": chapter.id}) from e

    def _sync_admin_only_joins(self, chapter_oid: ObjectId, admin_only: bool) -> int:
        """Mirror a chapter's adminOnly flag onto the joins that point at it"""
        field = "joins.$[join].isAdminOnly"
        update = {"$set": {field: FLAG_ON}} if admin_only else {"$unset": {field: ""}}

        result = self.chapters_collection.update_many(
            {"joins._id": chapter_oid},
            update,
            array_filters=[
                {"join._id": chapter_oid, "join.scope": JoinScope.CHAPTERS.value}
            ],
        )
        logger.info(
            f"✅ Synced isAdminOnly={admin_only} for chapter {chapter_oid} "
            f"in {result.modified_count} parent chapters"
        )
        return result.modified_count

    # ------------------------------------------------------------------
    # Joined content
    # ------------------------------------------------------------------

    def get_content_for_chapter(
        self,
        chapter_id: Union[str, ObjectId],
        start: int = 0,
        count: int = 20,
        is_admin: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Get everything joined to a chapter, in join order

        Joins are sliced first (start/count), then the content versions and
        chapters they point at are fetched and merged with the join metadata.
        Non-admins do not see question pools or admin-only chapters.

        Args:
            chapter_id: ObjectId or legacy oldId
            start: Index of the first join
            count: Maximum number of joins
            is_admin: Caller is an administrator

        Returns:
            List of joined items; join fields win over fetched fields

        Raises:
            InvalidChapterRequestError: Negative start or count
            ChapterNotFoundError: Chapter does not exist
        """
        if start < 0 or count < 0:
            raise InvalidChapterRequestError(
                "start and count must not be negative",
                {"start": start, "count": count},
            )

        chapter = self.get_chapter(chapter_id)
        joins = chapter.get("joins")
        if not joins:
            return []

        chapter_ids = []
        content_ids = []
        ordered_joins = {}

        for join in joins[start : start + count]:
            if "_id" not in join or "scope" not in join:
                continue

            join_id = str(join["_id"])
            if not is_object_id(join_id):
                logger.warning(f"⚠️ Skipping join with invalid id {join_id}")
                continue

            if join["scope"] == JoinScope.CHAPTERS.value:
                chapter_ids.append(ObjectId(join_id))
            else:
                content_ids.append(ObjectId(join_id))

            ordered_joins[join_id] = {**join, "_id": join_id}

        resolved = {}

        try:
            if content_ids:
                query = {"contentId": {"$in": content_ids}, "status": PUBLISHED_STATUS}
                # Question pools are for administrators only
                if not is_admin:
                    query["type"] = {"$ne": ADMIN_ONLY_CONTENT_TYPE}

                for version in self.content_versions_collection.find(
                    query, CONTENT_FIELDS
                ):
                    content_id = str(version.pop("contentId"))
                    join_info = ordered_joins.get(content_id)
                    if join_info is not None:
                        resolved[content_id] = {**version, **join_info}

            if chapter_ids:
                query = {"_id": {"$in": chapter_ids}}
                if not is_admin:
                    query["adminOnly"] = {"$ne": FLAG_ON}

                for joined in self.chapters_collection.find(
                    query, JOINED_CHAPTER_FIELDS
                ):
                    joined_id = str(joined.pop("_id"))
                    join_info = ordered_joins.get(joined_id)
                    if join_info is None:
                        continue
                    joined["title"] = joined.pop("name", None)
                    joined["type"] = JoinScope.CHAPTERS.value
                    resolved[joined_id] = {**joined, **join_info}
        except PyMongoError as e:
            logger.error(f"❌ Error loading content for chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        items = [resolved[join_id] for join_id in ordered_joins if join_id in resolved]
        logger.info(
            f"📊 Chapter {chapter_id}: {len(items)}/{len(ordered_joins)} joins visible "
            f"(start={start}, count={count}, admin={is_admin})"
        )
        return serialize_document(items)

    # ------------------------------------------------------------------
    # Join ordering and editing
    # ------------------------------------------------------------------

    def change_join_order(
        self,
        chapter_id: Union[str, ObjectId],
        order: List[Union[JoinOrderItem, Dict[str, Any]]],
    ) -> bool:
        """
        Put a chapter's joins in the given order

        Joins named in order come first, in that order; joins not named keep
        their relative order after them.

        Args:
            chapter_id: ObjectId or legacy oldId
            order: Items with "scope" and "scopeId", in the intended order

        Returns:
            True if reordered, False if the chapter has no joins, an id
            could not be resolved or the joins changed since they were read

        Raises:
            InvalidChapterRequestError: order is empty
            ChapterNotFoundError: Chapter does not exist
        """
        if not order:
            raise InvalidChapterRequestError("A List of Ids is required.")

        chapter = self.get_chapter(chapter_id)
        joins = chapter.get("joins")
        if joins is None:
            return False

        ids = []
        for item in order:
            if isinstance(item, dict):
                if "scope" not in item or "scopeId" not in item:
                    continue
                item = JoinOrderItem(scope=str(item["scope"]), scopeId=str(item["scopeId"]))

            try:
                ids.append(str(self.resolver.resolve(item.scope_id, item.scope)))
            except ChapterNotFoundError:
                logger.warning(
                    f"⚠️ Cannot reorder chapter {chapter_id}: "
                    f"{item.scope} {item.scope_id} not found"
                )
                return False

        ordered_joins = {join_id: None for join_id in ids}
        for join in joins:
            if "_id" in join:
                ordered_joins[str(join["_id"])] = join

        new_joins = [join for join in ordered_joins.values() if join is not None]

        try:
            # Only if the joins are still the ones that were read
            result = self.chapters_collection.update_one(
                {"_id": chapter["_id"], "joins": joins}, {"$set": {"joins": new_joins}}
            )
        except PyMongoError as e:
            logger.error(f"❌ Error reordering chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        if result.matched_count == 0:
            logger.warning(f"⚠️ Joins of chapter {chapter_id} changed while reordering")
            return False

        logger.info(f"✅ Reordered {len(new_joins)} joins in chapter {chapter_id}")
        return True

    def add_content_to_chapter(
        self,
        chapter_id: Union[str, ObjectId],
        scope_id: Union[JoinRequest, Dict[str, Any], str, ObjectId],
        scope: str = "",
        join_type: str = "",
        featured: str = "",
        hide: str = "",
        is_lcp: str = "",
        lcped_from: str = "",
    ) -> bool:
        """
        Join content or a chapter to a chapter, or update the existing join

        Args:
            chapter_id: ObjectId or legacy oldId of the owning chapter
            scope_id: ObjectId or legacy oldId of what is joined, or a
                JoinRequest (or dict of its fields) carrying every argument below
            scope: "content" or "chapters"
            join_type: "primary" or "selected"
            featured: "1" to feature, "0" to stop featuring
            hide: "1" to hide, "0" to show
            is_lcp: "1" if this scope is LCPed, "0" if not
            lcped_from: Book id the scope was LCPed from. Leave empty for copied chapters.

        Returns:
            True if the chapter was updated, False if the chapter does not exist

        Raises:
            ChapterNotFoundError: scope_id could not be resolved
        """
        if isinstance(scope_id, dict):
            scope_id = JoinRequest(**scope_id)
        if isinstance(scope_id, JoinRequest):
            return self.add_content_to_chapter(chapter_id, **scope_id.model_dump())

        scope_oid = self.resolver.resolve(scope_id, scope)
        query = chapter_query(chapter_id)
        flags = {"featured": featured, "hide": hide, "isLCP": is_lcp}

        try:
            existing = self.chapters_collection.find_one(
                {**query, "joins._id": scope_oid}, {"_id": 1}
            )

            if existing:
                # Only touch the fields that were sent
                to_set = {}
                to_unset = {}
                if scope:
                    to_set["joins.$.scope"] = scope
                if join_type:
                    to_set["joins.$.joinType"] = join_type

                for key in JOIN_FLAGS:
                    if flags[key] == FLAG_ON:
                        to_set[f"joins.$.{key}"] = FLAG_ON
                    elif flags[key] == FLAG_OFF:
                        to_unset[f"joins.$.{key}"] = ""

                if lcped_from:
                    to_set["joins.$.lcpedFrom"] = lcped_from
                else:
                    to_unset["joins.$.lcpedFrom"] = ""

                update = {}
                if to_set:
                    update["$set"] = to_set
                if to_unset:
                    update["$unset"] = to_unset

                self.chapters_collection.update_one(
                    {"_id": existing["_id"], "joins._id": scope_oid}, update
                )
                logger.info(f"✅ Updated join {scope} {scope_oid} in chapter {chapter_id}")
                return True

            join = {"_id": scope_oid, "scope": scope, "joinType": join_type}
            for key in JOIN_FLAGS:
                if flags[key] == FLAG_ON:
                    join[key] = FLAG_ON
            if lcped_from:
                join["lcpedFrom"] = lcped_from
            if scope == JoinScope.CHAPTERS.value and self._is_admin_only(scope_oid):
                join["isAdminOnly"] = FLAG_ON

            result = self.chapters_collection.update_one(query, {"$push": {"joins": join}})
        except PyMongoError as e:
            logger.error(f"❌ Error joining {scope} {scope_id} to chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        if result.matched_count == 0:
            logger.warning(f"⚠️ Chapter not found: {chapter_id}")
            return False

        logger.info(f"✅ Joined {scope} {scope_oid} to chapter {chapter_id}")
        return True

    def _is_admin_only(self, chapter_oid: ObjectId) -> bool:
        joined = self.chapters_collection.find_one({"_id": chapter_oid}, {"adminOnly": 1})
        return bool(joined) and joined.get("adminOnly") == FLAG_ON

    def remove_content_from_chapter(
        self,
        chapter_id: Union[str, ObjectId],
        scope_id: Union[str, ObjectId],
        scope: str,
    ) -> bool:
        """
        Remove one join from a chapter

        Returns:
            True (also when the chapter does not hold the join)

        Raises:
            ChapterNotFoundError: scope_id could not be resolved
        """
        scope_oid = self.resolver.resolve(scope_id, scope)

        try:
            found = self.chapters_collection.find_one(
                {**chapter_query(chapter_id), "joins._id": scope_oid}, {"_id": 1}
            )
            if not found:
                return True

            self.chapters_collection.update_one(
                {"_id": found["_id"]}, {"$pull": {"joins": {"_id": scope_oid}}}
            )
        except PyMongoError as e:
            logger.error(f"❌ Error removing {scope} {scope_id} from chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        logger.info(f"🗑️ Removed {scope} {scope_oid} from chapter {chapter_id}")
        return True

    # ------------------------------------------------------------------
    # Cascading removal
    # ------------------------------------------------------------------

    def remove_from_all_chapters(
        self, scope_id: Union[str, ObjectId], scope: str
    ) -> int:
        """
        Remove a scope from every chapter it is joined to

        Returns:
            Number of chapters modified

        Raises:
            ChapterNotFoundError: scope_id could not be resolved
        """
        scope_oid = self.resolver.resolve(scope_id, scope)
        return self._pull_from_all_chapters(scope_oid, scope)

    def _pull_from_all_chapters(self, scope_oid: ObjectId, scope: str) -> int:
        join = {"_id": scope_oid, "scope": scope}
        try:
            result = self.chapters_collection.update_many(
                {"joins": {"$elemMatch": join}}, {"$pull": {"joins": join}}
            )
        except PyMongoError as e:
            logger.error(f"❌ Error removing {scope} {scope_oid} from chapters: {e}")
            raise ChapterOperationError(str(e), {"scope_id": str(scope_oid)}) from e

        logger.info(
            f"🗑️ Removed {scope} {scope_oid} from {result.modified_count} chapters"
        )
        return result.modified_count

    def delete_chapter(self, chapter_id: Union[str, ObjectId]) -> bool:
        """
        Delete a chapter after removing it from every chapter it is joined to

        Returns:
            True if the chapter was deleted, False if it does not exist
        """
        try:
            chapter_oid = self.resolver.resolve_chapter(chapter_id)
        except ChapterNotFoundError:
            return False

        self._pull_from_all_chapters(chapter_oid, JoinScope.CHAPTERS.value)

        try:
            result = self.chapters_collection.delete_one({"_id": chapter_oid})
        except PyMongoError as e:
            logger.error(f"❌ Error deleting chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        if result.deleted_count > 0:
            logger.info(f"🗑️ Deleted chapter: {chapter_oid}")
            return True
        return False

    # ------------------------------------------------------------------
    # Reverse lookups
    # ------------------------------------------------------------------

    def get_all_chapters_for_content(
        self, scope_id: Union[str, ObjectId], scope: str
    ) -> List[Dict[str, Any]]:
        """
        Get every chapter a scope is directly joined to

        Each chapter comes back with only the matching join in "joins".

        Raises:
            ChapterNotFoundError: scope_id could not be resolved
        """
        scope_oid = self.resolver.resolve(scope_id, scope)

        fields = {field: 1 for field in VIEWABLE_FIELDS if field != "joins"}
        fields["joins.$"] = 1

        try:
            chapters = list(
                self.chapters_collection.find({"joins._id": scope_oid}, fields)
            )
        except PyMongoError as e:
            logger.error(f"❌ Error finding chapters for {scope} {scope_id}: {e}")
            raise ChapterOperationError(str(e), {"scope_id": str(scope_id)}) from e

        logger.info(f"📊 {scope} {scope_oid} joined to {len(chapters)} chapters")
        return serialize_document(chapters)

    def get_parent_chapter(self, chapter_id: Union[str, ObjectId]) -> Dict[str, Any]:
        """
        Get the chapter a chapter was originally joined to

        LCPed joins (with lcpedFrom) are not parents.

        Returns:
            Parent chapter document, or {} if there is none

        Raises:
            ChapterNotFoundError: Legacy chapter id could not be resolved
        """
        chapter_oid = self.resolver.resolve_chapter(chapter_id)

        try:
            parent = self.chapters_collection.find_one(
                {
                    "joins": {
                        "$elemMatch": {
                            "_id": chapter_oid,
                            "lcpedFrom": {"$exists": False},
                        }
                    }
                }
            )
        except PyMongoError as e:
            logger.error(f"❌ Error finding parent of chapter {chapter_id}: {e}")
            raise ChapterOperationError(str(e), {"chapter_id": str(chapter_id)}) from e

        return serialize_document(parent or {})
