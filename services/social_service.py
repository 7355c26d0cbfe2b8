"""
Social Service Module

This module handles the social graph: likes on posts, follows between users,
follower lists and profile privacy. Relationship sets are array fields on
documents, updated with a read-modify-write of the whole array.

There is no compare-and-swap on these writes. Two concurrent toggles by the
same user both read the pre-toggle state and the later write wins. A follow
touches two user documents with two independent writes, so a failure between
them leaves the graph asymmetric.
"""

from typing import Any, Dict, List, Optional, Tuple

from config import settings
from data.models import (
    FollowResult, MembershipChange, NotificationType, UserProfile, UserSummary, document_creator_id
)
from data.protocols import DocumentStore
from services.notification_service import NotificationService
from utils.exceptions import InvalidOperationError, RemoteServiceError
from utils.helpers import best_effort
from utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_ACTIONS = ("approve", "deny")


def toggle_member(members: List[str], actor_id: str) -> Tuple[List[str], bool]:
    """
    Toggle an id in a relationship set.

    Args:
        members: Current ids; not modified.
        actor_id: The id to add or remove.

    Returns:
        Tuple[List[str], bool]: The new list without duplicates, and True if
        actor_id was added.
    """
    if actor_id in members:
        return [m for m in members if m != actor_id], False
    deduped = list(dict.fromkeys(members))
    deduped.append(actor_id)
    return deduped, True


class SocialService:
    """Service for likes, follows and profile access."""

    def __init__(self, store: DocumentStore, notifier: Optional[NotificationService] = None,
                 users_collection_id: Optional[str] = None, likes_collection_id: Optional[str] = None):
        """
        Initialize the social service.

        Args:
            store: DocumentStore implementation
            notifier: NotificationService used for like and follow notifications
            users_collection_id: User documents (default from settings)
            likes_collection_id: Collection of likeable posts (default: the videos
                collection that ContentService writes)
        """
        self.store = store
        self.notifier = notifier or NotificationService(store)
        self.users_collection_id = users_collection_id or settings.USER_COLLECTION_ID
        self.likes_collection_id = likes_collection_id or settings.VIDEO_COLLECTION_ID

    def _get_user(self, user_id: str) -> UserProfile:
        return UserProfile.from_document(self.store.get_document(self.users_collection_id, user_id))

    def toggle_membership(self, collection_id: str, document_id: str, field: str,
                          actor_id: str) -> MembershipChange:
        """
        Add actor_id to a document's relationship set, or remove it if present.

        Args:
            collection_id: Collection holding the document.
            document_id: The container document.
            field: Name of the array field.
            actor_id: The id to toggle.

        Returns:
            MembershipChange: The written set and whether actor_id was added.
        """
        _, change = self._toggle(collection_id, document_id, field, actor_id)
        return change

    def _toggle(self, collection_id: str, document_id: str, field: str,
                actor_id: str) -> Tuple[Dict[str, Any], MembershipChange]:
        # Returns the document as read, before the toggle was written
        document = self.store.get_document(collection_id, document_id)
        current = document.get(field) or []
        if not isinstance(current, list):
            raise InvalidOperationError(f"Field '{field}' of {document_id} is not a relationship set")

        members, added = toggle_member(current, actor_id)
        self.store.update_document(collection_id, document_id, {field: members})
        logger.info(f"{'Added' if added else 'Removed'} {actor_id} {'to' if added else 'from'} "
                    f"{field} of {document_id}")
        return document, MembershipChange(members=members, added=added)

    def toggle_like(self, post_id: str, user_id: str, collection_id: Optional[str] = None) -> List[str]:
        """
        Like or unlike a post.

        A new like by someone other than the post's creator sends a like
        notification. Notification failures are logged and ignored.

        Args:
            post_id: The post to like.
            user_id: The user liking it.
            collection_id: Collection of the post (default: videos collection).

        Returns:
            List[str]: The post's updated likes.
        """
        collection_id = collection_id or self.likes_collection_id
        document, change = self._toggle(collection_id, post_id, 'likes', user_id)

        if change.added:
            creator = document_creator_id(document)
            if creator and creator != user_id:
                best_effort(self.notifier.notify, NotificationType.LIKE, user_id, creator, post_id,
                            description="like notification")
        return change.members

    def toggle_follow(self, current_user_id: str, target_user_id: str) -> FollowResult:
        """
        Follow or unfollow a user.

        Updates the follower's ``following`` and the followee's ``followers``
        with two separate writes. A new follow sends a follow notification.

        Args:
            current_user_id: The user following or unfollowing.
            target_user_id: The user being followed.

        Returns:
            FollowResult: Both updated sets and the new follow state.

        Raises:
            InvalidOperationError: If a user tries to follow themselves.
        """
        if current_user_id == target_user_id:
            raise InvalidOperationError("Users cannot follow themselves")

        current_user = self._get_user(current_user_id)
        target_user = self._get_user(target_user_id)

        following, now_following = toggle_member(current_user.following, target_user_id)
        if now_following:
            followers = list(dict.fromkeys(target_user.followers + [current_user_id]))
        else:
            followers = [f for f in target_user.followers if f != current_user_id]

        self.store.update_document(self.users_collection_id, current_user_id, {'following': following})
        self.store.update_document(self.users_collection_id, target_user_id, {'followers': followers})
        logger.info(f"User {current_user_id} {'followed' if now_following else 'unfollowed'} {target_user_id}")

        if now_following:
            best_effort(self.notifier.notify, NotificationType.FOLLOW, current_user_id, target_user_id,
                        description="follow notification")

        return FollowResult(following=following, followers=followers, is_following=now_following)

    def is_following(self, follower_id: str, following_id: str) -> bool:
        """Return True if follower_id follows following_id."""
        return following_id in self._get_user(follower_id).following

    def _resolve_users(self, user_ids: List[str]) -> List[UserSummary]:
        summaries = []
        for user_id in user_ids:
            try:
                summaries.append(UserSummary.from_profile(self._get_user(user_id)))
            except RemoteServiceError as e:
                logger.error(f"Error fetching user details for {user_id}: {e}")
        return summaries

    def get_followers(self, user_id: str) -> List[UserSummary]:
        """Return display details for each follower; unresolvable ids are skipped."""
        return self._resolve_users(self._get_user(user_id).followers)

    def get_following(self, user_id: str) -> List[UserSummary]:
        """Return display details for each followed user; unresolvable ids are skipped."""
        return self._resolve_users(self._get_user(user_id).following)

    def update_user_profile(self, user_id: str, username: str, avatar: str,
                            is_private: bool = False) -> UserProfile:
        """Update a user's display fields and privacy flag."""
        document = self.store.update_document(self.users_collection_id, user_id, {
            'username': username,
            'avatar': avatar,
            'isPrivate': is_private,
        })
        logger.info(f"User profile updated: {user_id}")
        return UserProfile.from_document(document)

    def handle_profile_access_request(self, profile_user_id: str, requesting_user_id: str,
                                      action: str) -> UserProfile:
        """
        Approve or deny a request to view a private profile.

        Args:
            profile_user_id: Owner of the private profile.
            requesting_user_id: The user who asked for access.
            action: "approve" or "deny".

        Returns:
            UserProfile: The updated profile.

        Raises:
            InvalidOperationError: For any other action.
        """
        if action not in ACCESS_ACTIONS:
            raise InvalidOperationError(f"Unknown access request action: {action}")

        profile = self._get_user(profile_user_id)
        allowed_viewers = list(profile.allowed_viewers)
        if action == "approve" and requesting_user_id not in allowed_viewers:
            allowed_viewers.append(requesting_user_id)
        pending_requests = [r for r in profile.pending_requests if r != requesting_user_id]

        document = self.store.update_document(self.users_collection_id, profile_user_id, {
            'allowedViewers': allowed_viewers,
            'pendingRequests': pending_requests,
        })
        logger.info(f"Profile access request for {requesting_user_id} on {profile_user_id}: {action}")
        return UserProfile.from_document(document)
