"""
Database configuration for the chapters service
"""

from src.database.db_manager import DBManager

# Global database instance
_db_manager = None


def get_database():
    """Get database instance (synchronous)"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DBManager()
    return _db_manager.db


def get_db_manager():
    """Get database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DBManager()
    return _db_manager


def get_chapter_manager():
    """Get a ChapterManager bound to the shared database"""
    from src.services.chapter_manager import ChapterManager

    return ChapterManager(get_database())
