"""
Upload Service Module

This module uploads media assets to the backend's file storage. It
normalizes each asset, transmits it with bounded retries, derives the public
URL for the asset's kind, and turns failures into user-facing messages.
"""

from typing import Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from config import settings
from data.models import AssetKind, MediaAsset, UploadedAsset
from data.protocols import FileStorage
from services.asset_normalizer import normalize
from utils.exceptions import USER_MESSAGES, ErrorKind, MediaUploadError
from utils.helpers import classify_error, execute_with_retry
from utils.logger import get_logger

logger = get_logger(__name__)


def ios_compatible_video_url(video_url: Optional[str]) -> Optional[str]:
    """
    Strip query parameters that break native video playback.

    Args:
        video_url: A stored video URL.

    Returns:
        Optional[str]: The cleaned URL, the input unchanged if it cannot be
        parsed, or None for an empty input.
    """
    if not video_url:
        return None
    try:
        parts = urlsplit(video_url)
    except ValueError as e:
        logger.warning(f"Could not parse video URL {video_url}: {e}")
        return video_url
    if not parts.scheme or not parts.netloc:
        return video_url
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
             if k not in settings.VIDEO_URL_STRIP_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


class UploadService:
    """Service for uploading media assets and deriving their public URLs."""

    def __init__(self, storage: FileStorage, bucket_id: Optional[str] = None,
                 max_attempts: Optional[int] = None, base_delay: Optional[float] = None,
                 sleep=None):
        """
        Initialize the upload service.

        Args:
            storage: FileStorage implementation (normally AppwriteClient)
            bucket_id: Storage bucket for uploads (default from settings)
            max_attempts: Attempts per upload (default from settings)
            base_delay: Seconds before the second attempt (default from settings)
            sleep: Wait function passed to the retry helper (tests pass a no-op)
        """
        self.storage = storage
        self.bucket_id = bucket_id if bucket_id is not None else settings.APPWRITE_STORAGE_ID
        self.max_attempts = max_attempts or settings.UPLOAD_MAX_ATTEMPTS
        self.base_delay = base_delay if base_delay is not None else settings.UPLOAD_RETRY_BASE_DELAY
        self._retry_kwargs = {'sleep': sleep} if sleep is not None else {}

    def build_file_url(self, file_id: str, kind: AssetKind) -> str:
        """
        Derive the public URL of a stored file.

        Images get a resized preview; videos, documents and audio are served
        untransformed so they are never re-encoded.
        """
        if kind is AssetKind.IMAGE:
            return self.storage.file_preview_url(
                self.bucket_id, file_id,
                width=settings.IMAGE_PREVIEW_WIDTH,
                height=settings.IMAGE_PREVIEW_HEIGHT,
                gravity=settings.IMAGE_PREVIEW_GRAVITY,
                quality=settings.IMAGE_PREVIEW_QUALITY,
            )
        return self.storage.file_view_url(self.bucket_id, file_id)

    def upload_asset(self, asset: Optional[MediaAsset], kind: Union[AssetKind, str]) -> Optional[UploadedAsset]:
        """
        Upload an asset and return the stored file's id and URL.

        Args:
            asset: The picked file, or None for an absent optional attachment.
            kind: What the file is used as.

        Returns:
            Optional[UploadedAsset]: The uploaded asset, or None when no asset was given.

        Raises:
            MediaUploadError: With a user-facing message; the original error is chained.
        """
        if asset is None:
            logger.info("No file provided for upload")
            return None

        try:
            kind = AssetKind(kind)
        except ValueError as e:
            raise MediaUploadError(USER_MESSAGES[ErrorKind.UNSUPPORTED_FORMAT],
                                   ErrorKind.UNSUPPORTED_FORMAT) from e

        normalized = normalize(asset, kind)
        logger.info(f"Uploading {kind.value} file: name={normalized.name}, "
                    f"mime={normalized.mime_type}, size={normalized.size}")

        try:
            uploaded = execute_with_retry(
                lambda: self.storage.create_file(self.bucket_id, normalized),
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                **self._retry_kwargs
            )
        except Exception as e:
            error_kind = classify_error(e)
            logger.error(f"Error uploading file {normalized.name} ({error_kind.value}): {e}")
            raise MediaUploadError(USER_MESSAGES[error_kind], error_kind) from e

        file_id = uploaded.get('$id') if uploaded else None
        if not file_id:
            logger.error(f"Upload of {normalized.name} returned no file id")
            raise MediaUploadError(USER_MESSAGES[ErrorKind.UNKNOWN], ErrorKind.UNKNOWN)
        url = self.build_file_url(file_id, kind)
        logger.info(f"File uploaded successfully: {file_id}")
        return UploadedAsset(file_id=file_id, url=url, kind=kind)

    def upload(self, asset: Optional[MediaAsset], kind: Union[AssetKind, str]) -> Optional[str]:
        """
        Upload an asset and return its public URL.

        Returns:
            Optional[str]: The URL, or None when no asset was given.

        Raises:
            MediaUploadError: If the upload failed.
        """
        uploaded = self.upload_asset(asset, kind)
        return uploaded.url if uploaded else None
