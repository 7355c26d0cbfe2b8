"""
Notification Service Module

This module creates, lists and updates notification records. Notifications
are a side effect of likes, comments and follows; callers run notify()
through utils.helpers.best_effort so a failure here never affects the
interaction that triggered it.
"""

from typing import List, Optional, Union

from config import settings
from data.appwrite_client import Query
from data.models import NotificationRecord, NotificationType, UserProfile
from data.protocols import DocumentStore
from utils.exceptions import NotificationError
from utils.helpers import extract_file_id, truncate_text, utc_now_iso
from utils.logger import get_logger

logger = get_logger(__name__)


def shorten_avatar(avatar: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Fit an avatar reference into the notification's avatar attribute.

    Long storage URLs are reduced to their file id; other long values are
    truncated with an ellipsis.

    Args:
        avatar: The avatar URL or reference.
        max_length: Attribute size limit (default from settings).

    Returns:
        str: A value no longer than max_length.
    """
    max_length = max_length or settings.NOTIFICATION_AVATAR_MAX_LENGTH
    if not avatar:
        return ""
    if len(avatar) <= max_length:
        return avatar

    file_id = extract_file_id(avatar)
    if file_id and len(file_id) <= max_length:
        return file_id
    return truncate_text(avatar, max_length)


class NotificationService:
    """Service for notification records."""

    def __init__(self, store: DocumentStore, users_collection_id: Optional[str] = None,
                 notifications_collection_id: Optional[str] = None):
        self.store = store
        self.users_collection_id = users_collection_id or settings.USER_COLLECTION_ID
        self.notifications_collection_id = notifications_collection_id or settings.NOTIFICATIONS_COLLECTION_ID

    def notify(self, kind: Union[NotificationType, str], source_user_id: str, target_user_id: str,
               subject_id: Optional[str] = None) -> Optional[NotificationRecord]:
        """
        Create a notification for target_user_id about an action by source_user_id.

        Args:
            kind: like, comment or follow.
            source_user_id: The user who acted.
            target_user_id: The user to notify.
            subject_id: The post involved, if any.

        Returns:
            Optional[NotificationRecord]: The created record, or None when the
            source and target are the same user.

        Raises:
            NotificationError: If the source user lookup or the write failed.
        """
        if source_user_id == target_user_id:
            return None

        try:
            kind = NotificationType(kind)
            source = UserProfile.from_document(
                self.store.get_document(self.users_collection_id, source_user_id)
            )
            document = self.store.create_document(self.notifications_collection_id, {
                'type': kind.value,
                'fromUserId': source_user_id,
                'fromUsername': source.username,
                'fromUserAvatar': shorten_avatar(source.avatar),
                'targetUserId': target_user_id,
                'postId': subject_id,
                'isRead': False,
                'createdAt': utc_now_iso(),
            })
            record = NotificationRecord.from_document(document)
        except Exception as e:
            logger.error(f"Error creating {kind} notification for {target_user_id}: {e}")
            raise NotificationError(f"Failed to create notification: {e}") from e

        logger.info(f"Created {kind.value} notification {record.id} for user {target_user_id}")
        return record

    def mark_as_read(self, notification_id: str) -> None:
        """Mark a notification as read."""
        self.store.update_document(self.notifications_collection_id, notification_id, {'isRead': True})

    def get_notifications(self, user_id: str) -> List[NotificationRecord]:
        """Return the notifications addressed to a user, newest first."""
        documents = self.store.list_documents(self.notifications_collection_id, [
            Query.equal('targetUserId', user_id),
            Query.order_desc('createdAt'),
        ])
        return [NotificationRecord.from_document(doc) for doc in documents]
