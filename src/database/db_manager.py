import pymongo
from pymongo.errors import PyMongoError

from config import config
from src.utils.logger import setup_logger

logger = setup_logger()


class DBManager:
    def __init__(self, mongo_uri: str = None, db_name: str = None):
        """
        MongoDB manager for the chapters service

        Args:
            mongo_uri: Optional URI override, otherwise MONGODB_URI_AUTH
            db_name: Optional database name override, otherwise MONGODB_NAME
        """
        mongo_uri = mongo_uri or config.MONGODB_URI_AUTH
        self.db_name = db_name or config.MONGODB_NAME

        try:
            self.client = pymongo.MongoClient(
                mongo_uri, serverSelectionTimeoutMS=config.MONGODB_TIMEOUT_MS
            )
            self.db = self.client[self.db_name]

            # Test connection first
            self.client.admin.command("ping")
            logger.info(f"✅ Connected to MongoDB: {self.db_name}")
        except PyMongoError as e:
            logger.error(f"❌ Failed to connect to MongoDB: {e}")
            raise

    def close(self):
        """Close the underlying client"""
        if self.client:
            self.client.close()
            logger.info("🔌 MongoDB connection closed")
