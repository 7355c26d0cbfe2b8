"""
Shared Test Fixtures for the Reelcast Client

This module provides common fixtures used across all test modules.
Fixtures include test settings, in-memory fakes for the backend protocols,
logging capture, HTTP responses, and data factories for test documents.
"""

import pytest
from unittest.mock import MagicMock
from typing import Optional, Dict, Any, List, Callable
from urllib.parse import urlencode
import itertools
import json
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from utils.exceptions import DocumentNotFoundError


# =============================================================================
# Settings Fixtures
# =============================================================================

TEST_SETTINGS = {
    'APPWRITE_ENDPOINT': 'https://appwrite.test/v1',
    'APPWRITE_PROJECT_ID': 'test-project',
    'APPWRITE_API_KEY': None,
    'APPWRITE_STORAGE_ID': 'media',
    'APPWRITE_DATABASE_ID': 'reelcast',
    'USER_COLLECTION_ID': 'users',
    'VIDEO_COLLECTION_ID': 'videos',
    'POST_COLLECTION_ID': 'posts',
    'COMMENTS_COLLECTION_ID': 'comments',
    'BOOKMARKS_COLLECTION_ID': 'bookmarks',
    'NOTIFICATIONS_COLLECTION_ID': 'notifications',
    'LIVE_STREAMS_COLLECTION_ID': 'live_streams',
    'LIVE_COMMENTS_COLLECTION_ID': 'live_comments',
    'LIVE_REACTIONS_COLLECTION_ID': 'live_reactions',
    'UPLOAD_MAX_ATTEMPTS': 3,
    'UPLOAD_RETRY_BASE_DELAY': 0.0,
}


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """
    Point every setting at test values.

    Services read settings when they are constructed or called, so patching
    the module attributes is enough. Individual tests may override more
    values through the returned module.

    Returns:
        module: The patched config.settings module.
    """
    for name, value in TEST_SETTINGS.items():
        monkeypatch.setattr(settings, name, value)
    return settings


# =============================================================================
# Backend Fakes
# =============================================================================

class FakeDocumentStore:
    """
    In-memory DocumentStore.

    Understands the equal, search, orderDesc and limit queries. Failures can
    be injected per method and collection with fail().
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self._failures: Dict[tuple, Exception] = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(0)

    def fail(self, method: str, collection_id: str, error: Exception):
        """Make every call of method on collection_id raise error."""
        self._failures[(method, collection_id)] = error

    def _check(self, method: str, collection_id: str):
        self.calls.append((method, collection_id))
        error = self._failures.get((method, collection_id))
        if error is not None:
            raise error

    def _timestamp(self) -> str:
        tick = next(self._clock)
        return f"2025-01-01T{tick // 3600:02d}:{tick // 60 % 60:02d}:{tick % 60:02d}.000+00:00"

    def seed(self, collection_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document directly, without recording a call."""
        doc = dict(document)
        doc.setdefault('$id', f"doc-{next(self._ids)}")
        doc.setdefault('$createdAt', self._timestamp())
        self.collections.setdefault(collection_id, {})[doc['$id']] = doc
        return doc

    def get_document(self, collection_id, document_id):
        self._check('get_document', collection_id)
        try:
            return dict(self.collections[collection_id][document_id])
        except KeyError:
            raise DocumentNotFoundError(f"Document with the requested ID could not be found: {document_id}")

    def list_documents(self, collection_id, queries=None):
        self._check('list_documents', collection_id)
        documents = [dict(d) for d in self.collections.get(collection_id, {}).values()]
        order = None
        limit = None
        for raw in queries or []:
            query = json.loads(raw)
            method = query['method']
            if method == 'equal':
                documents = [d for d in documents if d.get(query['attribute']) in query['values']]
            elif method == 'search':
                needle = query['values'][0].lower()
                documents = [d for d in documents if needle in str(d.get(query['attribute'], '')).lower()]
            elif method == 'orderDesc':
                order = query['attribute']
            elif method == 'limit':
                limit = query['values'][0]
        if order:
            documents.sort(key=lambda d: d.get(order) or '', reverse=True)
        if limit is not None:
            documents = documents[:limit]
        return documents

    def create_document(self, collection_id, data, document_id="unique()"):
        self._check('create_document', collection_id)
        doc = dict(data)
        if document_id != "unique()":
            doc['$id'] = document_id
        return dict(self.seed(collection_id, doc))

    def update_document(self, collection_id, document_id, data):
        self._check('update_document', collection_id)
        try:
            doc = self.collections[collection_id][document_id]
        except KeyError:
            raise DocumentNotFoundError(f"Document with the requested ID could not be found: {document_id}")
        doc.update(data)
        return dict(doc)

    def delete_document(self, collection_id, document_id):
        self._check('delete_document', collection_id)
        try:
            del self.collections[collection_id][document_id]
        except KeyError:
            raise DocumentNotFoundError(f"Document with the requested ID could not be found: {document_id}")

    def documents(self, collection_id: str) -> List[Dict[str, Any]]:
        return list(self.collections.get(collection_id, {}).values())


class FakeFileStorage:
    """
    In-memory FileStorage with the same URL shapes as AppwriteClient.

    Set ``errors`` to a list of exceptions to fail the next create_file
    calls in order.
    """

    endpoint = 'https://appwrite.test/v1'
    project_id = 'test-project'

    def __init__(self):
        self.files: Dict[str, Any] = {}
        self.uploads: List[Any] = []
        self.errors: List[Exception] = []
        self._ids = itertools.count(1)

    def create_file(self, bucket_id, asset, file_id="unique()"):
        self.uploads.append(asset)
        if self.errors:
            raise self.errors.pop(0)
        new_id = f"file-{next(self._ids)}" if file_id == "unique()" else file_id
        self.files[new_id] = asset
        return {'$id': new_id, 'bucketId': bucket_id, 'name': asset.name, 'mimeType': asset.mime_type}

    def file_view_url(self, bucket_id, file_id):
        query = urlencode({'project': self.project_id})
        return f"{self.endpoint}/storage/buckets/{bucket_id}/files/{file_id}/view?{query}"

    def file_preview_url(self, bucket_id, file_id, width, height, gravity, quality):
        query = urlencode({'width': width, 'height': height, 'gravity': gravity,
                           'quality': quality, 'project': self.project_id})
        return f"{self.endpoint}/storage/buckets/{bucket_id}/files/{file_id}/preview?{query}"


class FakeRealtimeChannel:
    """RealtimeChannel that records subscriptions and lets tests publish events."""

    def __init__(self):
        self.subscriptions: Dict[str, List[Callable]] = {}
        self.unsubscribed: List[str] = []

    def subscribe(self, channel, callback):
        self.subscriptions.setdefault(channel, []).append(callback)

        def unsubscribe():
            self.subscriptions[channel].remove(callback)
            self.unsubscribed.append(channel)
        return unsubscribe

    def publish(self, channel: str, event: Dict[str, Any]):
        for callback in list(self.subscriptions.get(channel, [])):
            callback(event)


@pytest.fixture
def store():
    """An empty in-memory document store."""
    return FakeDocumentStore()


@pytest.fixture
def storage():
    """An empty in-memory file storage."""
    return FakeFileStorage()


@pytest.fixture
def realtime():
    """A realtime channel that delivers events synchronously."""
    return FakeRealtimeChannel()


class RecordingSleep:
    """Stand-in for time.sleep that records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def no_sleep():
    """A sleep replacement that records requested delays instead of waiting."""
    return RecordingSleep()


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger()
    original_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)

    yield handler.records

    root_logger.removeHandler(handler)
    root_logger.setLevel(original_level)


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(
                status_code=200,
                json_data={'key': 'value'},
            )
            # ... test code

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        json_data: Optional[Any] = None,
        text: str = '',
        headers: Optional[Dict[str, str]] = None,
    ) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.ok = 200 <= status_code < 300
        mock_response.headers = headers or {'Content-Type': 'application/json'}

        if json_data is not None:
            mock_response.json.return_value = json_data
            mock_response.text = text or json.dumps(json_data)
        else:
            mock_response.json.side_effect = ValueError("No JSON data")
            mock_response.text = text
        mock_response.content = mock_response.text.encode('utf-8')

        return mock_response

    return _create_response


# =============================================================================
# Data Factories
# =============================================================================

@pytest.fixture
def user_factory(store):
    """
    Factory fixture that seeds user documents into the store.

    Usage:
        def test_follow(user_factory):
            alice = user_factory('alice')
    """
    def _create_user(user_id: str, username: Optional[str] = None, **fields) -> Dict[str, Any]:
        doc = {
            '$id': user_id,
            'accountId': f"acct-{user_id}",
            'username': username or user_id,
            'email': f"{user_id}@example.com",
            'avatar': f"https://appwrite.test/v1/storage/buckets/media/files/avatar-{user_id}/view",
            'followers': [],
            'following': [],
        }
        doc.update(fields)
        return store.seed('users', doc)

    return _create_user


@pytest.fixture
def post_factory(store):
    """Factory fixture that seeds post documents into a collection (videos by default)."""
    def _create_post(post_id: str, creator: str, collection_id: str = 'videos', **fields) -> Dict[str, Any]:
        doc = {
            '$id': post_id,
            'creator': creator,
            'title': f"Post {post_id}",
            'video': f"https://appwrite.test/v1/storage/buckets/media/files/{post_id}/view",
            'thumbnail': f"https://appwrite.test/v1/storage/buckets/media/files/{post_id}/preview",
            'likes': [],
        }
        doc.update(fields)
        return store.seed(collection_id, doc)

    return _create_post
