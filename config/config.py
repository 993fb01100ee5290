import os
from pathlib import Path

# Only load environment if not already loaded by the caller
if not os.getenv("CONFIG_LOADED"):
    try:
        from dotenv import load_dotenv

        ENV = os.getenv("ENV", "production").lower()

        if ENV == "development":
            # Try development.env first, fallback to .env
            dev_env_file = Path(__file__).parent.parent / "development.env"
            env_file = Path(__file__).parent.parent / ".env"

            if dev_env_file.exists():
                load_dotenv(dev_env_file, override=True)
                print(f"Config: Loaded DEVELOPMENT from development.env")
            elif env_file.exists():
                load_dotenv(env_file, override=True)
                print(f"Config: Loaded DEVELOPMENT from .env (fallback)")
        else:
            # Production - use .env
            env_file = Path(__file__).parent.parent / ".env"
            if env_file.exists():
                load_dotenv(env_file, override=True)
                print(f"Config: Loaded PRODUCTION from .env")

    except ImportError:
        print("Config: python-dotenv not installed, using environment variables only")

# Get environment after loading
ENV = os.getenv("ENV", "production").lower()

# Environment-specific database configuration
if ENV == "development":
    MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/")
    MONGODB_NAME = os.getenv("MONGODB_NAME", "chapters_dev_db")
else:
    # Docker network container name in production
    MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://mongodb:27017/")
    MONGODB_NAME = os.getenv("MONGODB_NAME", "chapters_db")

# Authenticated URI: explicit, else built from app credentials, else the plain URI
MONGODB_URI_AUTH = os.getenv("MONGODB_URI_AUTH")
if not MONGODB_URI_AUTH:
    _mongo_user = os.getenv("MONGODB_APP_USERNAME")
    _mongo_pass = os.getenv("MONGODB_APP_PASSWORD")
    if _mongo_user and _mongo_pass:
        _mongo_host = MONGODB_URI.replace("mongodb://", "").rstrip("/")
        MONGODB_URI_AUTH = f"mongodb://{_mongo_user}:{_mongo_pass}@{_mongo_host}/{MONGODB_NAME}?authSource=admin"
    else:
        MONGODB_URI_AUTH = MONGODB_URI
MONGODB_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", "10000"))

# Collections
CHAPTERS_COLLECTION = os.getenv("CHAPTERS_COLLECTION", "chapters")
CONTENT_COLLECTION = os.getenv("CONTENT_COLLECTION", "content")
CONTENT_VERSIONS_COLLECTION = os.getenv(
    "CONTENT_VERSIONS_COLLECTION", "content_versions"
)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if ENV == "development" else "INFO")
