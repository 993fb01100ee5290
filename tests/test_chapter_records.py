"""
Tests for reading and saving chapter records

Run tests:
python -m pytest tests/test_chapter_records.py -v
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from src.exceptions import ChapterNotFoundError
from src.models.chapter_models import ChapterSave

from conftest import CHAPTER_ID


class TestGetChapter:
    def test_by_object_id(self, chapter_manager, chapters_collection, sample_chapter):
        chapters_collection.find_one.return_value = sample_chapter

        assert chapter_manager.get_chapter(str(CHAPTER_ID)) == sample_chapter
        chapters_collection.find_one.assert_called_once_with({"_id": CHAPTER_ID})

    def test_by_legacy_id(self, chapter_manager, chapters_collection, sample_chapter):
        chapters_collection.find_one.return_value = sample_chapter

        chapter_manager.get_chapter("81380")
        chapters_collection.find_one.assert_called_once_with({"oldId": "81380"})

    def test_not_found(self, chapter_manager, chapters_collection):
        chapters_collection.find_one.return_value = None

        with pytest.raises(ChapterNotFoundError) as exc_info:
            chapter_manager.get_chapter("81380")
        assert exc_info.value.message == "That chapter could not be found"
        assert exc_info.value.to_dict()["error"] == "CHAPTER_NOT_FOUND"


class TestSaveChapter:
    def test_create_inserts_only_sent_fields(self, chapter_manager, chapters_collection):
        new_id = ObjectId()
        chapters_collection.insert_one.return_value.inserted_id = new_id

        chapter_id = chapter_manager.save_chapter(
            ChapterSave(name="Intro", short_name="intro", description=None)
        )

        assert chapter_id == str(new_id)
        inserted = chapters_collection.insert_one.call_args[0][0]
        assert inserted["name"] == "Intro"
        assert inserted["shortName"] == "intro"
        assert "description" not in inserted
        assert isinstance(inserted["dateCreated"], datetime)
        chapters_collection.update_one.assert_not_called()

    def test_id_zero_means_create(self, chapter_manager, chapters_collection):
        chapters_collection.insert_one.return_value.inserted_id = ObjectId()

        chapter_manager.save_chapter({"id": "0", "name": "New"})

        chapters_collection.insert_one.assert_called_once()

    def test_update_sets_and_unsets(self, chapter_manager, chapters_collection):
        chapters_collection.update_one.return_value.matched_count = 1

        chapter_id = chapter_manager.save_chapter(
            {
                "id": str(CHAPTER_ID),
                "name": "Renamed",
                "description": "",
                "shortName": "short",
                "inactive": "1",
            }
        )

        assert chapter_id == str(CHAPTER_ID)
        query, update = chapters_collection.update_one.call_args[0]
        assert query == {"_id": CHAPTER_ID}
        assert update["$set"]["name"] == "Renamed"
        assert update["$set"]["shortName"] == "short"
        assert update["$set"]["inactive"] == "1"
        assert isinstance(update["$set"]["lastUpdatedTime"], datetime)
        assert update["$unset"] == {"description": ""}
        # Untouched fields are not mentioned at all
        assert "abstract" not in update["$set"]
        assert "abstract" not in update["$unset"]

    def test_update_without_removals_has_no_unset(
        self, chapter_manager, chapters_collection
    ):
        chapters_collection.update_one.return_value.matched_count = 1

        chapter_manager.save_chapter({"id": str(CHAPTER_ID), "imageId": "img-1"})

        update = chapters_collection.update_one.call_args[0][1]
        assert "$unset" not in update
        assert update["$set"]["imageId"] == "img-1"

    def test_empty_name_is_set_not_removed(self, chapter_manager, chapters_collection):
        chapters_collection.update_one.return_value.matched_count = 1

        chapter_manager.save_chapter({"id": str(CHAPTER_ID), "name": ""})

        update = chapters_collection.update_one.call_args[0][1]
        assert update["$set"]["name"] == ""
        assert "$unset" not in update

    def test_update_by_legacy_id(self, chapter_manager, chapters_collection):
        chapters_collection.find_one.return_value = {"_id": CHAPTER_ID}
        chapters_collection.update_one.return_value.matched_count = 1

        assert chapter_manager.save_chapter({"id": "81380", "name": "X"}) == str(
            CHAPTER_ID
        )
        chapters_collection.find_one.assert_called_once_with(
            {"oldId": "81380"}, {"_id": 1}
        )
        assert chapters_collection.update_one.call_args[0][0] == {"_id": CHAPTER_ID}

    def test_update_unknown_legacy_id(self, chapter_manager, chapters_collection):
        chapters_collection.find_one.return_value = None

        with pytest.raises(ChapterNotFoundError):
            chapter_manager.save_chapter({"id": "99999", "name": "X"})
        chapters_collection.update_one.assert_not_called()

    def test_update_missing_chapter(self, chapter_manager, chapters_collection):
        chapters_collection.update_one.return_value.matched_count = 0

        with pytest.raises(ChapterNotFoundError):
            chapter_manager.save_chapter({"id": str(CHAPTER_ID), "name": "X"})

    def test_admin_only_is_mirrored_onto_joins(
        self, chapter_manager, chapters_collection
    ):
        chapters_collection.update_one.return_value.matched_count = 1
        chapters_collection.update_many.return_value = MagicMock(modified_count=2)

        chapter_manager.save_chapter({"id": str(CHAPTER_ID), "adminOnly": "1"})

        query, update = chapters_collection.update_many.call_args[0]
        assert query == {"joins._id": CHAPTER_ID}
        assert update == {"$set": {"joins.$[join].isAdminOnly": "1"}}
        assert chapters_collection.update_many.call_args[1]["array_filters"] == [
            {"join._id": CHAPTER_ID, "join.scope": "chapters"}
        ]

    def test_clearing_admin_only_unsets_join_flag(
        self, chapter_manager, chapters_collection
    ):
        chapters_collection.update_one.return_value.matched_count = 1
        chapters_collection.update_many.return_value = MagicMock(modified_count=0)

        chapter_manager.save_chapter({"id": str(CHAPTER_ID), "adminOnly": ""})

        update = chapters_collection.update_one.call_args[0][1]
        assert update["$unset"] == {"adminOnly": ""}
        assert chapters_collection.update_many.call_args[0][1] == {
            "$unset": {"joins.$[join].isAdminOnly": ""}
        }

    def test_admin_only_other_than_flag_unsets_join_flag(
        self, chapter_manager, chapters_collection
    ):
        chapters_collection.update_one.return_value.matched_count = 1
        chapters_collection.update_many.return_value = MagicMock(modified_count=1)

        chapter_manager.save_chapter({"id": str(CHAPTER_ID), "adminOnly": "0"})

        # Stored as sent, but only "1" marks the chapter admin only
        update = chapters_collection.update_one.call_args[0][1]
        assert update["$set"]["adminOnly"] == "0"
        assert chapters_collection.update_many.call_args[0][1] == {
            "$unset": {"joins.$[join].isAdminOnly": ""}
        }

    def test_admin_only_untouched_skips_join_sync(
        self, chapter_manager, chapters_collection
    ):
        chapters_collection.update_one.return_value.matched_count = 1

        chapter_manager.save_chapter({"id": str(CHAPTER_ID), "name": "X"})

        chapters_collection.update_many.assert_not_called()
