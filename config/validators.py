"""
Configuration Validation for the Reelcast Client

This module contains configuration validation logic.
Kept apart from settings.py so importing settings never raises.
"""

import logging

from utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []

    # Required environment variables
    required_vars = [
        ("APPWRITE_ENDPOINT", settings.APPWRITE_ENDPOINT),
        ("APPWRITE_PROJECT_ID", settings.APPWRITE_PROJECT_ID),
        ("APPWRITE_STORAGE_ID", settings.APPWRITE_STORAGE_ID),
        ("APPWRITE_DATABASE_ID", settings.APPWRITE_DATABASE_ID),
        ("APPWRITE_USER_COLLECTION_ID", settings.USER_COLLECTION_ID),
        ("APPWRITE_VIDEO_COLLECTION_ID", settings.VIDEO_COLLECTION_ID),
        ("APPWRITE_POST_COLLECTION_ID", settings.POST_COLLECTION_ID),
        ("APPWRITE_NOTIFICATIONS_COLLECTION_ID", settings.NOTIFICATIONS_COLLECTION_ID),
    ]

    for var_name, var_value in required_vars:
        if not var_value:
            errors.append(f"Missing required environment variable: {var_name}")

    if settings.APPWRITE_ENDPOINT and not settings.APPWRITE_ENDPOINT.startswith(("http://", "https://")):
        errors.append(f"APPWRITE_ENDPOINT must be an http(s) URL, got {settings.APPWRITE_ENDPOINT}")

    # Optional features only warn when their collections are missing
    optional_vars = [
        ("APPWRITE_COMMENTS_COLLECTION_ID", settings.COMMENTS_COLLECTION_ID),
        ("APPWRITE_BOOKMARKS_COLLECTION_ID", settings.BOOKMARKS_COLLECTION_ID),
        ("APPWRITE_LIVE_STREAMS_COLLECTION_ID", settings.LIVE_STREAMS_COLLECTION_ID),
        ("APPWRITE_LIVE_COMMENTS_COLLECTION_ID", settings.LIVE_COMMENTS_COLLECTION_ID),
        ("APPWRITE_LIVE_REACTIONS_COLLECTION_ID", settings.LIVE_REACTIONS_COLLECTION_ID),
    ]

    for var_name, var_value in optional_vars:
        if not var_value:
            logger.warning(f"{var_name} is not set; the related feature will fail when used")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("UPLOAD_MAX_ATTEMPTS", settings.UPLOAD_MAX_ATTEMPTS, 1, 10),
        ("UPLOAD_RETRY_BASE_DELAY", settings.UPLOAD_RETRY_BASE_DELAY, 0.0, 60.0),
        ("IMAGE_PREVIEW_WIDTH", settings.IMAGE_PREVIEW_WIDTH, 1, 4000),
        ("IMAGE_PREVIEW_HEIGHT", settings.IMAGE_PREVIEW_HEIGHT, 1, 4000),
        ("IMAGE_PREVIEW_QUALITY", settings.IMAGE_PREVIEW_QUALITY, 0, 100),
        ("NOTIFICATION_AVATAR_MAX_LENGTH", settings.NOTIFICATION_AVATAR_MAX_LENGTH, 4, 2000),
        ("LATEST_POSTS_LIMIT", settings.LATEST_POSTS_LIMIT, 1, 100),
        ("RECENTLY_WATCHED_LIMIT", settings.RECENTLY_WATCHED_LIMIT, 1, 100),
        ("LIVE_STREAMS_LIMIT", settings.LIVE_STREAMS_LIMIT, 1, 100),
        ("LIVE_COMMENTS_LIMIT", settings.LIVE_COMMENTS_LIMIT, 1, 100),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    # Validate timeout values are positive
    timeout_settings = [
        ("REQUEST_TIMEOUT", settings.REQUEST_TIMEOUT),
        ("CONNECTIVITY_TIMEOUT", settings.CONNECTIVITY_TIMEOUT),
    ]

    for name, value in timeout_settings:
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    # Import settings here to avoid circular imports
    from config import settings

    return {
        "backend": {
            "endpoint": settings.APPWRITE_ENDPOINT,
            "project": settings.APPWRITE_PROJECT_ID,
            "api_key_configured": bool(settings.APPWRITE_API_KEY),
        },
        "storage": {
            "bucket": settings.APPWRITE_STORAGE_ID,
            "database": settings.APPWRITE_DATABASE_ID,
        },
        "upload": {
            "max_attempts": settings.UPLOAD_MAX_ATTEMPTS,
            "retry_base_delay": settings.UPLOAD_RETRY_BASE_DELAY,
            "image_preview": f"{settings.IMAGE_PREVIEW_WIDTH}x{settings.IMAGE_PREVIEW_HEIGHT}"
                             f"@{settings.IMAGE_PREVIEW_QUALITY}",
        },
        "features": {
            "comments": bool(settings.COMMENTS_COLLECTION_ID),
            "bookmarks": bool(settings.BOOKMARKS_COLLECTION_ID),
            "live_streaming": bool(settings.LIVE_STREAMS_COLLECTION_ID),
        }
    }
