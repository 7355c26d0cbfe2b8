"""
Configuration Settings for the Reelcast Client

This module centralizes all configuration settings for the Reelcast client,
including the hosted backend connection, collection identifiers, and the
constants used by the upload and social pipelines.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


# =============================================================================
# Backend Connection (Appwrite)
# =============================================================================

APPWRITE_ENDPOINT = os.getenv("APPWRITE_ENDPOINT", "https://nyc.cloud.appwrite.io/v1").rstrip("/")
APPWRITE_PROJECT_ID = os.getenv("APPWRITE_PROJECT_ID", "")
APPWRITE_PLATFORM = os.getenv("APPWRITE_PLATFORM", "com.reelcast.client")
APPWRITE_API_KEY = os.getenv("APPWRITE_API_KEY")  # Optional server key

# Storage bucket and database
APPWRITE_STORAGE_ID = os.getenv("APPWRITE_STORAGE_ID", "")
APPWRITE_DATABASE_ID = os.getenv("APPWRITE_DATABASE_ID", "")

# Collections
USER_COLLECTION_ID = os.getenv("APPWRITE_USER_COLLECTION_ID", "")
VIDEO_COLLECTION_ID = os.getenv("APPWRITE_VIDEO_COLLECTION_ID", "")
POST_COLLECTION_ID = os.getenv("APPWRITE_POST_COLLECTION_ID", "")
COMMENTS_COLLECTION_ID = os.getenv("APPWRITE_COMMENTS_COLLECTION_ID", "")
BOOKMARKS_COLLECTION_ID = os.getenv("APPWRITE_BOOKMARKS_COLLECTION_ID", "")
NOTIFICATIONS_COLLECTION_ID = os.getenv("APPWRITE_NOTIFICATIONS_COLLECTION_ID", "")
LIVE_STREAMS_COLLECTION_ID = os.getenv("APPWRITE_LIVE_STREAMS_COLLECTION_ID", "")
LIVE_COMMENTS_COLLECTION_ID = os.getenv("APPWRITE_LIVE_COMMENTS_COLLECTION_ID", "")
LIVE_REACTIONS_COLLECTION_ID = os.getenv("APPWRITE_LIVE_REACTIONS_COLLECTION_ID", "")

# =============================================================================
# Upload Pipeline Settings
# =============================================================================

UPLOAD_MAX_ATTEMPTS = _env_int("UPLOAD_MAX_ATTEMPTS", 3)
UPLOAD_RETRY_BASE_DELAY = _env_float("UPLOAD_RETRY_BASE_DELAY", 1.0)   # Seconds before attempt 2
UPLOAD_CHUNK_SIZE = 5 * 1024 * 1024  # Backend rejects single requests above 5 MiB

# Image preview transform (videos are served untransformed)
IMAGE_PREVIEW_WIDTH = 2000
IMAGE_PREVIEW_HEIGHT = 2000
IMAGE_PREVIEW_GRAVITY = "top"
IMAGE_PREVIEW_QUALITY = 100

# Query parameters that break native video playback
VIDEO_URL_STRIP_PARAMS = ["format", "quality", "mode"]

REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 30.0)   # Seconds per HTTP request

# =============================================================================
# Social Settings
# =============================================================================

NOTIFICATION_AVATAR_MAX_LENGTH = 100   # Remote attribute size for fromUserAvatar
AVATAR_SERVICE_URL = "https://ui-avatars.com/api/"

BOOKMARK_TITLE_LENGTH = 15
BOOKMARK_CREATOR_LENGTH = 10

LATEST_POSTS_LIMIT = 7
RECENTLY_WATCHED_LIMIT = 10

# =============================================================================
# Live Streaming Settings
# =============================================================================

LIVE_STREAMS_LIMIT = 50
USER_LIVE_STREAMS_LIMIT = 20
LIVE_COMMENTS_LIMIT = 50
DEFAULT_LIVE_CATEGORY = "General"

# =============================================================================
# Connectivity Check
# =============================================================================

CONNECTIVITY_TIMEOUT = 3   # Seconds per connectivity check endpoint
CONNECTIVITY_ENDPOINTS = [
    f"{APPWRITE_ENDPOINT}/health",
    "https://www.google.com",
    "https://httpbin.org/get",
]
USER_AGENT = "Reelcast/1.0 (+https://reelcast.app)"
