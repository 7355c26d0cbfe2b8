"""
Live Stream Service Module

This module manages live stream records, their comments and reactions, and
realtime subscriptions to stream and comment changes.

Viewer counts are a plain counter adjusted on join and leave. Individual
viewers are not tracked, so a client that never calls leave leaves the count
too high until the stream ends.
"""

from typing import Any, Callable, Dict, List, Optional

from config import settings
from data.appwrite_client import Query
from data.models import LiveComment, LiveReaction, LiveStream, UserProfile
from data.protocols import DocumentStore, RealtimeChannel
from utils.helpers import best_effort, utc_now_iso
from utils.logger import get_logger

logger = get_logger(__name__)

RealtimeCallback = Callable[[Dict[str, Any]], None]


class LiveStreamService:
    """Service for live streams and their realtime feeds."""

    def __init__(self, store: DocumentStore, realtime: Optional[RealtimeChannel] = None):
        """
        Initialize the live stream service.

        Args:
            store: DocumentStore implementation
            realtime: RealtimeChannel for subscriptions; without one,
                subscribe calls return None
        """
        self.store = store
        self.realtime = realtime
        self.database_id = settings.APPWRITE_DATABASE_ID
        self.users_collection_id = settings.USER_COLLECTION_ID
        self.streams_collection_id = settings.LIVE_STREAMS_COLLECTION_ID
        self.comments_collection_id = settings.LIVE_COMMENTS_COLLECTION_ID
        self.reactions_collection_id = settings.LIVE_REACTIONS_COLLECTION_ID

    # =========================================================================
    # Streams
    # =========================================================================

    def create_live_stream(self, user_id: str, title: str, description: str = "",
                           category: Optional[str] = None) -> LiveStream:
        """
        Start a live stream hosted by user_id.

        The host's username and avatar are copied into the stream, and the
        avatar doubles as the stream thumbnail.
        """
        host = UserProfile.from_document(self.store.get_document(self.users_collection_id, user_id))
        document = self.store.create_document(self.streams_collection_id, {
            'hostId': user_id,
            'hostUsername': host.username,
            'hostAvatar': host.avatar,
            'title': title,
            'description': description or '',
            'category': category or settings.DEFAULT_LIVE_CATEGORY,
            'isLive': True,
            'status': 'live',
            'viewerCount': 0,
            'startTime': utc_now_iso(),
            'thumbnail': host.avatar,
        })
        stream = LiveStream.from_document(document)
        logger.info(f"Live stream created: {stream.id}")
        return stream

    def end_live_stream(self, stream_id: str) -> None:
        self.store.update_document(self.streams_collection_id, stream_id, {
            'isLive': False,
            'status': 'ended',
            'endTime': utc_now_iso(),
        })
        logger.info(f"Live stream ended: {stream_id}")

    def _list_streams(self, queries: List[str]) -> List[LiveStream]:
        documents = self.store.list_documents(self.streams_collection_id, queries)
        return [LiveStream.from_document(doc) for doc in documents]

    def get_active_live_streams(self) -> List[LiveStream]:
        """Return streams that are live now, most recently started first."""
        return self._list_streams([
            Query.equal('isLive', True),
            Query.order_desc('startTime'),
            Query.limit(settings.LIVE_STREAMS_LIMIT),
        ])

    def get_user_live_streams(self, user_id: str) -> List[LiveStream]:
        return self._list_streams([
            Query.equal('hostId', user_id),
            Query.order_desc('startTime'),
            Query.limit(settings.USER_LIVE_STREAMS_LIMIT),
        ])

    def get_live_stream_by_id(self, stream_id: str) -> LiveStream:
        return LiveStream.from_document(self.store.get_document(self.streams_collection_id, stream_id))

    def join_live_stream(self, stream_id: str, user_id: str) -> int:
        """Count a viewer in; returns the new viewer count."""
        stream = self.get_live_stream_by_id(stream_id)
        count = stream.viewer_count + 1
        self.store.update_document(self.streams_collection_id, stream_id, {'viewerCount': count})
        logger.debug(f"User {user_id} joined stream {stream_id} ({count} viewers)")
        return count

    def leave_live_stream(self, stream_id: str, user_id: str) -> int:
        """Count a viewer out, never going below zero; returns the new viewer count."""
        stream = self.get_live_stream_by_id(stream_id)
        count = max(0, stream.viewer_count - 1)
        self.store.update_document(self.streams_collection_id, stream_id, {'viewerCount': count})
        logger.debug(f"User {user_id} left stream {stream_id} ({count} viewers)")
        return count

    # =========================================================================
    # Comments and reactions
    # =========================================================================

    def add_live_comment(self, stream_id: str, user_id: str, username: str, avatar: str,
                         content: str) -> LiveComment:
        document = self.store.create_document(self.comments_collection_id, {
            'streamId': stream_id,
            'userId': user_id,
            'username': username,
            'avatar': avatar,
            'content': content,
            'createdAt': utc_now_iso(),
        })
        return LiveComment.from_document(document)

    def get_live_comments(self, stream_id: str, limit: Optional[int] = None) -> List[LiveComment]:
        """
        Return the latest comments on a stream in chat order.

        The newest ``limit`` comments are fetched and returned oldest first.
        """
        documents = self.store.list_documents(self.comments_collection_id, [
            Query.equal('streamId', stream_id),
            Query.order_desc('createdAt'),
            Query.limit(limit or settings.LIVE_COMMENTS_LIMIT),
        ])
        return [LiveComment.from_document(doc) for doc in reversed(documents)]

    def add_live_reaction(self, stream_id: str, user_id: str, reaction_type: str) -> LiveReaction:
        document = self.store.create_document(self.reactions_collection_id, {
            'streamId': stream_id,
            'userId': user_id,
            'reactionType': reaction_type,
            'createdAt': utc_now_iso(),
        })
        return LiveReaction.from_document(document)

    # =========================================================================
    # Realtime
    # =========================================================================

    def _subscribe(self, channel: str, callback: RealtimeCallback) -> Optional[Callable[[], None]]:
        if self.realtime is None:
            logger.warning(f"No realtime channel configured, cannot subscribe to {channel}")
            return None
        return best_effort(self.realtime.subscribe, channel, callback,
                           description=f"realtime subscription to {channel}")

    def subscribe_live_stream_updates(self, stream_id: str,
                                      callback: RealtimeCallback) -> Optional[Callable[[], None]]:
        """
        Deliver every change to one stream document to callback.

        Returns:
            The unsubscribe function, or None if the subscription failed.
        """
        channel = f"databases.{self.database_id}.collections.{self.streams_collection_id}.documents.{stream_id}"
        return self._subscribe(channel, callback)

    def subscribe_live_comments(self, stream_id: str,
                                callback: RealtimeCallback) -> Optional[Callable[[], None]]:
        """
        Deliver new comments on one stream to callback.

        The channel carries comments for every stream; events for other
        streams are dropped here.

        Returns:
            The unsubscribe function, or None if the subscription failed.
        """
        def on_event(event: Dict[str, Any]) -> None:
            payload = event.get('payload') or {}
            if payload.get('streamId') == stream_id:
                callback(event)

        channel = f"databases.{self.database_id}.collections.{self.comments_collection_id}.documents"
        return self._subscribe(channel, on_event)
