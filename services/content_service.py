"""
Content Service Module

This module creates video posts from uploaded media and provides the feed
queries, share counters and watch history built on the videos collection.
"""

from datetime import datetime, timezone
from typing import List, Optional

from config import settings
from data.appwrite_client import Query
from data.models import ContentRecord, MediaAsset, UserProfile
from data.protocols import DocumentStore
from services.upload_service import UploadService
from utils.exceptions import DocumentDecodeError, MissingMediaError, RemoteServiceError
from utils.helpers import best_effort
from utils.logger import get_logger

logger = get_logger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class ContentService:
    """Service for video posts and their counters."""

    def __init__(self, store: DocumentStore, uploader: UploadService,
                 videos_collection_id: Optional[str] = None, users_collection_id: Optional[str] = None):
        """
        Initialize the content service.

        Args:
            store: DocumentStore implementation
            uploader: UploadService used for video and thumbnail uploads
            videos_collection_id: Collection of video posts (default from settings)
            users_collection_id: Collection of user documents (default from settings)
        """
        self.store = store
        self.uploader = uploader
        self.videos_collection_id = videos_collection_id or settings.VIDEO_COLLECTION_ID
        self.users_collection_id = users_collection_id or settings.USER_COLLECTION_ID

    def create_video_post(self, title: str, creator_id: str, video: Optional[MediaAsset],
                          thumbnail: Optional[MediaAsset] = None, prompt: str = "") -> ContentRecord:
        """
        Upload a video (and optional thumbnail) and create the post referencing them.

        The video is uploaded first and is required. Without a thumbnail the
        video URL is stored as the thumbnail, so neither URL is ever empty.

        Args:
            title: Post title.
            creator_id: User document id of the author.
            video: The video file.
            thumbnail: Optional cover image.
            prompt: Optional description text.

        Returns:
            ContentRecord: The created post.

        Raises:
            MissingMediaError: If no video was supplied. Nothing is uploaded or written.
            MediaUploadError: If the video or thumbnail upload failed. No post is written.
        """
        logger.info(f"Creating video post '{title}' for {creator_id} "
                    f"(thumbnail: {'yes' if thumbnail else 'no'})")

        if video is None:
            raise MissingMediaError("A video file is required to create a post")

        video_url = self.uploader.upload(video, "video")
        if not video_url:
            raise MissingMediaError("Failed to upload video")

        if thumbnail is not None:
            thumbnail_url = self.uploader.upload(thumbnail, "image")
        else:
            thumbnail_url = video_url

        document = self.store.create_document(self.videos_collection_id, {
            'title': title,
            'thumbnail': thumbnail_url,
            'video': video_url,
            'prompt': prompt,
            'creator': creator_id,
        })
        record = ContentRecord.from_document(document)
        logger.info(f"Video post created successfully: {record.id}")
        return record

    # -------------------------------------------------------------------------
    # Feed queries
    # -------------------------------------------------------------------------

    def _list(self, queries: Optional[List[str]] = None) -> List[ContentRecord]:
        documents = self.store.list_documents(self.videos_collection_id, queries)
        return [ContentRecord.from_document(doc) for doc in documents]

    def get_all_posts(self) -> List[ContentRecord]:
        return self._list()

    def get_user_posts(self, user_id: str) -> List[ContentRecord]:
        return self._list([Query.equal('creator', user_id)])

    def get_video_by_id(self, video_id: str) -> ContentRecord:
        return ContentRecord.from_document(self.store.get_document(self.videos_collection_id, video_id))

    def search_posts(self, query: str) -> List[ContentRecord]:
        return self._list([Query.search('title', query)])

    def get_latest_posts(self, limit: Optional[int] = None) -> List[ContentRecord]:
        """Return the newest posts (default count from settings)."""
        return self._list([Query.order_desc('$createdAt'), Query.limit(limit or settings.LATEST_POSTS_LIMIT)])

    def get_following_posts(self, user_id: str) -> List[ContentRecord]:
        """
        Return posts by every user that user_id follows, newest first.

        A creator whose posts cannot be fetched or decoded is skipped.
        """
        user = UserProfile.from_document(self.store.get_document(self.users_collection_id, user_id))
        posts: List[ContentRecord] = []
        for following_id in user.following:
            try:
                posts.extend(self.get_user_posts(following_id))
            except (RemoteServiceError, DocumentDecodeError) as e:
                logger.error(f"Error fetching posts for user {following_id}: {e}")

        return sorted(posts, key=lambda p: p.created_at or _OLDEST, reverse=True)

    # -------------------------------------------------------------------------
    # Counters and history
    # -------------------------------------------------------------------------

    def get_share_count(self, video_id: str) -> int:
        return self.get_video_by_id(video_id).shares

    def increment_share_count(self, video_id: str) -> int:
        """
        Record a share of a video.

        The share itself already happened, so the counter write is
        best-effort: if the collection has no shares attribute the new count
        is still returned.

        Returns:
            int: The incremented count.
        """
        new_shares = self.get_share_count(video_id) + 1
        best_effort(self.store.update_document, self.videos_collection_id, video_id, {'shares': new_shares},
                    description=f"share count update for {video_id}")
        return new_shares

    def add_to_recently_watched(self, user_id: str, video_id: str) -> None:
        """Move video_id to the front of the user's watch history; never raises."""
        best_effort(self._add_to_recently_watched, user_id, video_id, description="watch history update")

    def _add_to_recently_watched(self, user_id: str, video_id: str) -> None:
        user = UserProfile.from_document(self.store.get_document(self.users_collection_id, user_id))
        history = [video_id] + [v for v in user.recently_watched if v != video_id]
        history = history[:settings.RECENTLY_WATCHED_LIMIT]
        self.store.update_document(self.users_collection_id, user_id, {'recentlyWatched': history})
        logger.info(f"Added video {video_id} to recently watched for user {user_id}")

    def get_recently_watched_videos(self, user_id: str) -> List[ContentRecord]:
        """
        Return the user's recently watched videos, most recent first.

        Ids that no longer resolve are dropped and pruned from the user's
        history with a best-effort write.
        """
        user = UserProfile.from_document(self.store.get_document(self.users_collection_id, user_id))

        videos: List[ContentRecord] = []
        for video_id in user.recently_watched:
            try:
                videos.append(self.get_video_by_id(video_id))
            except (RemoteServiceError, DocumentDecodeError) as e:
                logger.warning(f"Dropping unavailable video {video_id} from history: {e}")

        valid_ids = [v.id for v in videos]
        if len(valid_ids) != len(user.recently_watched):
            best_effort(self.store.update_document, self.users_collection_id, user_id,
                        {'recentlyWatched': valid_ids}, description="watch history cleanup")
        return videos
