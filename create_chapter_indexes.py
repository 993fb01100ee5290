"""
Create indexes for the chapters service

Collections: chapters, content_versions
Indexes needed for legacy id lookups, reverse join lookups and published content
"""

from pymongo.errors import PyMongoError

from src.database.db_manager import DBManager
from src.services.chapter_manager import ChapterManager
from src.utils.logger import setup_logger

logger = setup_logger()


def create_chapter_indexes():
    """Create MongoDB indexes for chapters and content_versions"""
    db_manager = DBManager()
    print(f"🔗 Connected to MongoDB: {db_manager.db_name}")

    try:
        ChapterManager(db_manager.db).create_indexes()
        print("\n✅ All chapter indexes created")
    except PyMongoError as e:
        print(f"\n❌ Failed to create chapter indexes: {e}")
        raise
    finally:
        db_manager.close()


if __name__ == "__main__":
    create_chapter_indexes()
