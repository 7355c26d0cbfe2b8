"""
Engagement Service Module

This module handles comments and bookmarks on posts, and the like counts
shown on profiles.
"""

import json
from typing import List, Optional

from config import settings
from data.appwrite_client import Query
from data.models import Bookmark, Comment, NotificationType, UserProfile, document_creator_id
from data.protocols import DocumentStore
from services.notification_service import NotificationService
from utils.exceptions import RemoteServiceError
from utils.helpers import best_effort, utc_now_iso
from utils.logger import get_logger

logger = get_logger(__name__)

# Keys a bookmark snapshot may carry; older bookmarks use the long names
SNAPSHOT_KEYS = ("t", "c", "title", "creator", "thumbnail")


def compact_snapshot(title: Optional[str], creator: Optional[str]) -> str:
    """
    Build the bookmark snapshot string stored in ``postData``.

    The attribute is small, so only a prefix of the title and creator is kept.
    """
    return json.dumps({
        't': (title or '')[:settings.BOOKMARK_TITLE_LENGTH],
        'c': (creator or '')[:settings.BOOKMARK_CREATOR_LENGTH],
    }, separators=(',', ':'))


class EngagementService:
    """Service for comments, bookmarks and like counts."""

    def __init__(self, store: DocumentStore, notifier: Optional[NotificationService] = None):
        self.store = store
        self.notifier = notifier or NotificationService(store)
        self.users_collection_id = settings.USER_COLLECTION_ID
        self.videos_collection_id = settings.VIDEO_COLLECTION_ID
        self.posts_collection_id = settings.POST_COLLECTION_ID
        self.comments_collection_id = settings.COMMENTS_COLLECTION_ID
        self.bookmarks_collection_id = settings.BOOKMARKS_COLLECTION_ID

    # =========================================================================
    # Comments
    # =========================================================================

    def add_comment(self, post_id: str, user_id: str, content: str) -> Comment:
        """
        Add a comment to a post.

        The author's username and avatar are copied into the comment. If the
        post can be found in the videos or posts collection, its creator
        receives a comment notification unless they wrote the comment.

        Args:
            post_id: The post commented on.
            user_id: The comment author.
            content: Comment text.

        Returns:
            Comment: The created comment.
        """
        author = UserProfile.from_document(self.store.get_document(self.users_collection_id, user_id))
        document = self.store.create_document(self.comments_collection_id, {
            'postId': post_id,
            'userId': user_id,
            'username': author.username,
            'avatar': author.avatar,
            'content': content,
            'createdAt': utc_now_iso(),
        })
        comment = Comment.from_document(document)
        logger.info(f"Comment {comment.id} added to {post_id} by {user_id}")

        creator = self._find_post_creator(post_id)
        if creator and creator != user_id:
            best_effort(self.notifier.notify, NotificationType.COMMENT, user_id, creator, post_id,
                        description="comment notification")
        return comment

    def _find_post_creator(self, post_id: str) -> Optional[str]:
        for collection_id in (self.videos_collection_id, self.posts_collection_id):
            try:
                return document_creator_id(self.store.get_document(collection_id, post_id))
            except RemoteServiceError:
                continue
        logger.info(f"Post {post_id} not found in videos or posts, skipping notification")
        return None

    def get_comments(self, post_id: str) -> List[Comment]:
        """Return a post's comments, newest first."""
        documents = self.store.list_documents(self.comments_collection_id, [
            Query.equal('postId', post_id),
            Query.order_desc('createdAt'),
        ])
        return [Comment.from_document(doc) for doc in documents]

    # =========================================================================
    # Likes
    # =========================================================================

    def get_post_likes(self, post_id: str, collection_id: Optional[str] = None) -> List[str]:
        """Return a post's likes (default: from the videos collection)."""
        document = self.store.get_document(collection_id or self.videos_collection_id, post_id)
        likes = document.get('likes') or []
        return list(likes) if isinstance(likes, list) else []

    def get_user_likes_count(self, user_id: str, collection_id: Optional[str] = None) -> int:
        """Sum the likes across all posts created by user_id."""
        documents = self.store.list_documents(collection_id or self.videos_collection_id,
                                              [Query.equal('creator', user_id)])
        return sum(len(doc['likes']) for doc in documents if isinstance(doc.get('likes'), list))

    # =========================================================================
    # Bookmarks
    # =========================================================================

    def add_bookmark(self, user_id: str, post_id: str, title: str = "", creator: str = "") -> Bookmark:
        """
        Bookmark a post with a compact snapshot of its title and creator.

        Args:
            user_id: The user saving the post.
            post_id: The saved post.
            title: Post title for the snapshot.
            creator: Creator name for the snapshot.

        Returns:
            Bookmark: The created bookmark.
        """
        snapshot = compact_snapshot(title, creator)
        document = self.store.create_document(self.bookmarks_collection_id, {
            'userId': user_id,
            'postId': post_id,
            'postData': snapshot,
            'createdAt': utc_now_iso(),
        })
        bookmark = Bookmark.from_document(document)
        logger.info(f"Bookmark added successfully: {bookmark.id} ({len(snapshot)} bytes of post data)")
        return bookmark

    def remove_bookmark(self, bookmark_id: str) -> None:
        self.store.delete_document(self.bookmarks_collection_id, bookmark_id)
        logger.info(f"Bookmark removed successfully: {bookmark_id}")

    def _find_bookmarks(self, user_id: str, post_id: str) -> List[Bookmark]:
        documents = self.store.list_documents(self.bookmarks_collection_id, [
            Query.equal('userId', user_id),
            Query.equal('postId', post_id),
        ])
        return [Bookmark.from_document(doc) for doc in documents]

    def is_bookmarked(self, user_id: str, post_id: str) -> bool:
        return bool(self._find_bookmarks(user_id, post_id))

    def toggle_bookmark(self, user_id: str, post_id: str, title: str = "", creator: str = "") -> bool:
        """
        Bookmark a post, or remove the existing bookmark.

        Returns:
            bool: True if the post is now bookmarked.
        """
        existing = self._find_bookmarks(user_id, post_id)
        if existing:
            self.remove_bookmark(existing[0].id)
            return False
        self.add_bookmark(user_id, post_id, title, creator)
        return True

    def get_user_bookmarks(self, user_id: str) -> List[Bookmark]:
        """
        Return a user's bookmarks that carry a usable snapshot.

        Bookmarks whose snapshot is empty, not JSON, or has none of the known
        keys are left out.
        """
        documents = self.store.list_documents(self.bookmarks_collection_id, [Query.equal('userId', user_id)])
        bookmarks = [Bookmark.from_document(doc) for doc in documents]

        valid = []
        for bookmark in bookmarks:
            snapshot = bookmark.snapshot()
            if snapshot and any(snapshot.get(key) for key in SNAPSHOT_KEYS):
                valid.append(bookmark)
            else:
                logger.debug(f"Skipping bookmark {bookmark.id} with unusable post data")

        logger.info(f"Found {len(bookmarks)} total bookmarks, {len(valid)} valid")
        return valid
