"""
Shared fixtures: a ChapterManager over mocked MongoDB collections
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from src.services.chapter_manager import ChapterManager

CHAPTER_ID = ObjectId("51cbfc9ef702fc2ba812fe67")
CONTENT_A = ObjectId("51cbf94d7896bb431f6baa64")
CONTENT_B = ObjectId("51cbf49e7896bb431f6b0024")
CONTENT_C = ObjectId("51cbf5867896bb431f6b229e")
SUB_CHAPTER = ObjectId("51cbfc9ef702fc2ba812fe68")
ADMIN_CHAPTER = ObjectId("52546e850cf250213f33f932")


def assert_json_safe(value):
    """No ObjectId or datetime anywhere in a returned document"""
    if isinstance(value, dict):
        for item in value.values():
            assert_json_safe(item)
    elif isinstance(value, list):
        for item in value:
            assert_json_safe(item)
    else:
        assert not isinstance(value, (ObjectId, datetime)), value


@pytest.fixture
def collections():
    """One MagicMock per collection the manager touches"""
    return {
        "chapters": MagicMock(),
        "content": MagicMock(),
        "content_versions": MagicMock(),
    }


@pytest.fixture
def mock_db(collections):
    """Mock PyMongo Database that hands out the collection mocks by name"""
    db = MagicMock()
    db.__getitem__.side_effect = collections.__getitem__
    return db


@pytest.fixture
def chapters_collection(collections):
    return collections["chapters"]


@pytest.fixture
def content_collection(collections):
    return collections["content"]


@pytest.fixture
def versions_collection(collections):
    return collections["content_versions"]


@pytest.fixture
def chapter_manager(mock_db):
    return ChapterManager(mock_db)


@pytest.fixture
def sample_chapter():
    """Chapter as stored in MongoDB"""
    return {
        "_id": CHAPTER_ID,
        "name": "Sample Chapter",
        "oldId": "81380",
        "joins": [
            {"_id": CONTENT_A, "scope": "content", "joinType": "primary"},
            {"_id": SUB_CHAPTER, "scope": "chapters", "joinType": "selected"},
            {"_id": CONTENT_B, "scope": "content", "joinType": "primary", "hide": "1"},
            {
                "_id": CONTENT_C,
                "scope": "content",
                "joinType": "primary",
                "isLCP": "1",
                "lcpedFrom": "9399",
            },
            {
                "_id": ADMIN_CHAPTER,
                "scope": "chapters",
                "joinType": "selected",
                "isAdminOnly": "1",
            },
        ],
    }
