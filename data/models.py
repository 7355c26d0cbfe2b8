"""
Data Models for the Reelcast Client

This module contains the record types exchanged with the hosted backend.
Remote documents are schemaless, so every record is decoded through
``from_document()``, which checks field types once and fills optional fields
with explicit defaults instead of leaving null checks to the call sites.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from utils.exceptions import DocumentDecodeError

_MISSING = object()


def _field(doc: Dict[str, Any], key: str, expected_type, default: Any = _MISSING) -> Any:
    """Read one field from a document, enforcing its type.

    A missing or null field yields ``default``; without a default it is a
    decode error.
    """
    value = doc.get(key)
    if value is None:
        if default is _MISSING:
            raise DocumentDecodeError(f"Document {doc.get('$id', '?')} is missing required field '{key}'")
        return default
    if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
        raise DocumentDecodeError(
            f"Field '{key}' of document {doc.get('$id', '?')} should be "
            f"{getattr(expected_type, '__name__', expected_type)}, got {type(value).__name__}"
        )
    return value


def _id_list(doc: Dict[str, Any], key: str) -> List[str]:
    """Read a relationship set field (list of ids), defaulting to empty."""
    values = _field(doc, key, list, [])
    if not all(isinstance(v, str) for v in values):
        raise DocumentDecodeError(f"Field '{key}' of document {doc.get('$id', '?')} must contain only ids")
    return list(values)


def _timestamp(doc: Dict[str, Any], key: str) -> Optional[datetime]:
    value = _field(doc, key, str, None)
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError as e:
        raise DocumentDecodeError(f"Field '{key}' is not an ISO timestamp: {value}") from e


# =============================================================================
# Media
# =============================================================================

class AssetKind(Enum):
    """Kind of media an upload represents; decides naming and URL derivation."""
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"
    AUDIO = "audio"


@dataclass
class MediaAsset:
    """A local file selected on the device, before upload.

    ``mime_type`` is the explicit metadata field; ``type`` is the secondary
    field some pickers fill instead.
    """
    uri: str
    name: Optional[str] = None
    mime_type: Optional[str] = None
    type: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_picker(cls, data: Dict[str, Any]) -> "MediaAsset":
        """Build an asset from a media-picker result dictionary."""
        return cls(
            uri=data.get('uri') or data.get('path') or '',
            name=data.get('name') or data.get('fileName'),
            mime_type=data.get('mimeType'),
            type=data.get('type'),
            size=data.get('size') or data.get('fileSize'),
        )


@dataclass(frozen=True)
class NormalizedAsset:
    """An asset renamed and re-typed so the backend accepts and serves it."""
    uri: str
    name: str
    mime_type: Optional[str]
    size: Optional[int] = None


@dataclass
class UploadedAsset:
    """A stored file and the public URL derived for it."""
    file_id: str
    url: str
    kind: AssetKind


# =============================================================================
# Content
# =============================================================================

def document_creator_id(doc: Dict[str, Any]) -> Optional[str]:
    """Return the creator id of a post document, or None if it has none."""
    creator = doc.get('creator')
    # Expanded relationship attributes arrive as nested documents
    if isinstance(creator, dict):
        creator = creator.get('$id')
    return creator if isinstance(creator, str) and creator else None


@dataclass
class ContentRecord:
    """A video post."""
    id: str
    creator: str
    title: str
    video: str
    thumbnail: str
    prompt: str = ""
    likes: List[str] = field(default_factory=list)
    comments_count: int = 0
    shares: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ContentRecord":
        creator = document_creator_id(doc)
        if creator is None:
            raise DocumentDecodeError(f"Document {doc.get('$id', '?')} has no creator id")
        return cls(
            id=_field(doc, '$id', str),
            creator=creator,
            title=_field(doc, 'title', str, ""),
            video=_field(doc, 'video', str, ""),
            thumbnail=_field(doc, 'thumbnail', str, ""),
            prompt=_field(doc, 'prompt', str, ""),
            likes=_id_list(doc, 'likes'),
            comments_count=_field(doc, 'commentsCount', int, 0),
            shares=_field(doc, 'shares', int, 0),
            created_at=_timestamp(doc, '$createdAt'),
        )


@dataclass
class Comment:
    """A comment on a post, with the author's display fields copied in."""
    id: str
    post_id: str
    user_id: str
    content: str
    username: str = ""
    avatar: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Comment":
        return cls(
            id=_field(doc, '$id', str),
            post_id=_field(doc, 'postId', str),
            user_id=_field(doc, 'userId', str),
            content=_field(doc, 'content', str, ""),
            username=_field(doc, 'username', str, ""),
            avatar=_field(doc, 'avatar', str, ""),
            created_at=_timestamp(doc, 'createdAt') or _timestamp(doc, '$createdAt'),
        )


@dataclass
class Bookmark:
    """A saved post. ``post_data`` is a compact JSON snapshot of the post."""
    id: str
    user_id: str
    post_id: str
    post_data: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Bookmark":
        return cls(
            id=_field(doc, '$id', str),
            user_id=_field(doc, 'userId', str),
            post_id=_field(doc, 'postId', str),
            post_data=_field(doc, 'postData', str, ""),
            created_at=_timestamp(doc, 'createdAt'),
        )

    def snapshot(self) -> Optional[Dict[str, Any]]:
        """Return the parsed post snapshot, or None if it is empty or not JSON."""
        if not self.post_data or not self.post_data.strip():
            return None
        try:
            parsed = json.loads(self.post_data)
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None


# =============================================================================
# Users and Social Graph
# =============================================================================

@dataclass
class UserProfile:
    """A user document: display fields plus relationship sets."""
    id: str
    account_id: str
    username: str
    email: str = ""
    avatar: str = ""
    followers: List[str] = field(default_factory=list)
    following: List[str] = field(default_factory=list)
    is_private: bool = False
    allowed_viewers: List[str] = field(default_factory=list)
    pending_requests: List[str] = field(default_factory=list)
    recently_watched: List[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=_field(doc, '$id', str),
            account_id=_field(doc, 'accountId', str, ""),
            username=_field(doc, 'username', str, ""),
            email=_field(doc, 'email', str, ""),
            avatar=_field(doc, 'avatar', str, ""),
            followers=_id_list(doc, 'followers'),
            following=_id_list(doc, 'following'),
            is_private=_field(doc, 'isPrivate', bool, False),
            allowed_viewers=_id_list(doc, 'allowedViewers'),
            pending_requests=_id_list(doc, 'pendingRequests'),
            recently_watched=_id_list(doc, 'recentlyWatched'),
        )


@dataclass
class UserSummary:
    """The display fields of a user, as shown in follower lists."""
    id: str
    username: str
    avatar: str
    email: str

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserSummary":
        return cls(id=profile.id, username=profile.username, avatar=profile.avatar, email=profile.email)


@dataclass
class MembershipChange:
    """Result of toggling an id in a relationship set."""
    members: List[str]
    added: bool


@dataclass
class FollowResult:
    """Both sides of a follow toggle."""
    following: List[str]
    followers: List[str]
    is_following: bool


# =============================================================================
# Notifications
# =============================================================================

class NotificationType(Enum):
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"


@dataclass
class NotificationRecord:
    """A notification shown to ``target_user_id`` about an action by ``from_user_id``."""
    id: str
    type: NotificationType
    from_user_id: str
    target_user_id: str
    from_username: str = ""
    from_user_avatar: str = ""
    post_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "NotificationRecord":
        raw_type = _field(doc, 'type', str)
        try:
            notification_type = NotificationType(raw_type)
        except ValueError as e:
            raise DocumentDecodeError(f"Unknown notification type: {raw_type}") from e
        return cls(
            id=_field(doc, '$id', str),
            type=notification_type,
            from_user_id=_field(doc, 'fromUserId', str),
            target_user_id=_field(doc, 'targetUserId', str),
            from_username=_field(doc, 'fromUsername', str, ""),
            from_user_avatar=_field(doc, 'fromUserAvatar', str, ""),
            post_id=_field(doc, 'postId', str, None),
            is_read=_field(doc, 'isRead', bool, False),
            created_at=_timestamp(doc, 'createdAt'),
        )


# =============================================================================
# Live Streaming
# =============================================================================

@dataclass
class LiveStream:
    id: str
    host_id: str
    title: str
    host_username: str = ""
    host_avatar: str = ""
    description: str = ""
    category: str = "General"
    is_live: bool = False
    status: str = "ended"
    viewer_count: int = 0
    thumbnail: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LiveStream":
        return cls(
            id=_field(doc, '$id', str),
            host_id=_field(doc, 'hostId', str),
            title=_field(doc, 'title', str, ""),
            host_username=_field(doc, 'hostUsername', str, ""),
            host_avatar=_field(doc, 'hostAvatar', str, ""),
            description=_field(doc, 'description', str, ""),
            category=_field(doc, 'category', str, "General"),
            is_live=_field(doc, 'isLive', bool, False),
            status=_field(doc, 'status', str, "ended"),
            viewer_count=_field(doc, 'viewerCount', int, 0),
            thumbnail=_field(doc, 'thumbnail', str, ""),
            start_time=_timestamp(doc, 'startTime'),
            end_time=_timestamp(doc, 'endTime'),
        )


@dataclass
class LiveComment:
    id: str
    stream_id: str
    user_id: str
    content: str
    username: str = ""
    avatar: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LiveComment":
        return cls(
            id=_field(doc, '$id', str),
            stream_id=_field(doc, 'streamId', str),
            user_id=_field(doc, 'userId', str),
            content=_field(doc, 'content', str, ""),
            username=_field(doc, 'username', str, ""),
            avatar=_field(doc, 'avatar', str, ""),
            created_at=_timestamp(doc, 'createdAt'),
        )


@dataclass
class LiveReaction:
    id: str
    stream_id: str
    user_id: str
    reaction_type: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LiveReaction":
        return cls(
            id=_field(doc, '$id', str),
            stream_id=_field(doc, 'streamId', str),
            user_id=_field(doc, 'userId', str),
            reaction_type=_field(doc, 'reactionType', str),
            created_at=_timestamp(doc, 'createdAt'),
        )
