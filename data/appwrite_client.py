"""
Appwrite REST Client

This module talks to the hosted Appwrite backend over its REST API using
requests. It implements the DocumentStore, FileStorage and AccountService
protocols and is the single place where failed calls are classified into
ErrorKind values.
"""

import json
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import requests

from config import settings
from data.models import NormalizedAsset
from utils.exceptions import DocumentNotFoundError, ErrorKind, RemoteServiceError
from utils.helpers import classify_message
from utils.logger import get_logger

logger = get_logger(__name__)

# Backend error types with a known classification
ERROR_TYPE_KINDS = {
    "storage_file_type_unsupported": ErrorKind.EXTENSION_NOT_ALLOWED,
    "storage_invalid_file_size": ErrorKind.FILE_TOO_LARGE,
    "storage_invalid_file": ErrorKind.UNSUPPORTED_FORMAT,
    "storage_invalid_content_range": ErrorKind.UNSUPPORTED_FORMAT,
    "user_unauthorized": ErrorKind.UNAUTHORIZED,
    "general_unauthorized_scope": ErrorKind.UNAUTHORIZED,
    "user_session_not_found": ErrorKind.UNAUTHORIZED,
    "user_jwt_invalid": ErrorKind.UNAUTHORIZED,
    "general_rate_limit_exceeded": ErrorKind.QUOTA_EXCEEDED,
}

STATUS_KINDS = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.PERMISSION_DENIED,
    408: ErrorKind.NETWORK,
    413: ErrorKind.FILE_TOO_LARGE,
    415: ErrorKind.UNSUPPORTED_FORMAT,
    429: ErrorKind.QUOTA_EXCEEDED,
}


class Query:
    """Builders for the backend's JSON query strings."""

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return json.dumps({"method": "equal", "attribute": attribute, "values": values})

    @staticmethod
    def search(attribute: str, value: str) -> str:
        return json.dumps({"method": "search", "attribute": attribute, "values": [value]})

    @staticmethod
    def order_desc(attribute: str) -> str:
        return json.dumps({"method": "orderDesc", "attribute": attribute})

    @staticmethod
    def limit(count: int) -> str:
        return json.dumps({"method": "limit", "values": [count]})


def classify_response(response: requests.Response) -> RemoteServiceError:
    """
    Convert a failed HTTP response into a RemoteServiceError with its ErrorKind.

    The backend's error type wins over the HTTP status, and the status wins
    over message matching.

    Args:
        response: A response with a non-2xx status.

    Returns:
        RemoteServiceError: The classified error (DocumentNotFoundError for 404).
    """
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    status = response.status_code
    message = body.get('message') or response.text or f"HTTP {status}"
    error_type = body.get('type')

    if status == 404:
        return DocumentNotFoundError(message, code=status, error_type=error_type)

    if error_type in ERROR_TYPE_KINDS:
        kind = ERROR_TYPE_KINDS[error_type]
    elif status in STATUS_KINDS:
        kind = STATUS_KINDS[status]
    elif status >= 500:
        kind = ErrorKind.NETWORK
    else:
        kind = classify_message(message)

    return RemoteServiceError(message, kind=kind, code=status, error_type=error_type)


def _local_path(uri: str) -> str:
    """Turn a ``file://`` URI or plain path into a filesystem path."""
    if uri.startswith("file://"):
        return uri[len("file://"):]
    return uri


class AppwriteClient:
    """REST client for the hosted backend's databases, storage and account APIs."""

    def __init__(self, endpoint: Optional[str] = None, project_id: Optional[str] = None,
                 database_id: Optional[str] = None, api_key: Optional[str] = None,
                 platform: Optional[str] = None, timeout: Optional[float] = None,
                 chunk_size: Optional[int] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            endpoint: API root, e.g. https://cloud.appwrite.io/v1 (default from settings)
            project_id: Project identifier (default from settings)
            database_id: Database holding every collection (default from settings)
            api_key: Optional server API key (default from settings)
            platform: Platform identifier sent with every request (default from settings)
            timeout: Per-request timeout in seconds (default from settings)
            chunk_size: Upload chunk size in bytes (default from settings)
            session: requests.Session to use, mainly for tests
        """
        self.endpoint = (endpoint or settings.APPWRITE_ENDPOINT).rstrip("/")
        self.project_id = project_id if project_id is not None else settings.APPWRITE_PROJECT_ID
        self.database_id = database_id if database_id is not None else settings.APPWRITE_DATABASE_ID
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.chunk_size = chunk_size or settings.UPLOAD_CHUNK_SIZE

        self.session = session or requests.Session()
        self.session.headers.update({
            'X-Appwrite-Project': self.project_id,
            'X-Appwrite-Platform': platform or settings.APPWRITE_PLATFORM,
            'User-Agent': settings.USER_AGENT,
        })
        api_key = api_key if api_key is not None else settings.APPWRITE_API_KEY
        if api_key:
            self.session.headers['X-Appwrite-Key'] = api_key

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.endpoint}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RemoteServiceError(f"Network request failed: {e}", kind=ErrorKind.NETWORK) from e

        if not response.ok:
            error = classify_response(response)
            logger.error(f"{method} {path} returned {response.status_code} ({error.kind.value}): {error}")
            raise error
        return response

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = self._send(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def _documents_path(self, collection_id: str, document_id: Optional[str] = None) -> str:
        path = f"/databases/{quote(self.database_id)}/collections/{quote(collection_id)}/documents"
        if document_id is not None:
            path += f"/{quote(document_id)}"
        return path

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def get_document(self, collection_id: str, document_id: str) -> Dict[str, Any]:
        return self._request('GET', self._documents_path(collection_id, document_id))

    def list_documents(self, collection_id: str, queries: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        params = {'queries[]': queries} if queries else None
        result = self._request('GET', self._documents_path(collection_id), params=params)
        return result.get('documents', [])

    def create_document(self, collection_id: str, data: Dict[str, Any],
                        document_id: str = "unique()") -> Dict[str, Any]:
        return self._request('POST', self._documents_path(collection_id),
                             json={'documentId': document_id, 'data': data})

    def update_document(self, collection_id: str, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PATCH', self._documents_path(collection_id, document_id), json={'data': data})

    def delete_document(self, collection_id: str, document_id: str) -> None:
        self._request('DELETE', self._documents_path(collection_id, document_id))

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def create_file(self, bucket_id: str, asset: NormalizedAsset, file_id: str = "unique()") -> Dict[str, Any]:
        """
        Upload a local file, splitting it into chunks when it exceeds chunk_size.

        Args:
            bucket_id: Target storage bucket.
            asset: The normalized asset; its uri must point at a readable local file.
            file_id: Requested file id, or "unique()" for a server-assigned one.

        Returns:
            Dict[str, Any]: The stored file's metadata.
        """
        path = f"/storage/buckets/{quote(bucket_id)}/files"
        local_path = _local_path(asset.uri)
        size = os.path.getsize(local_path)
        if asset.size and asset.size != size:
            logger.warning(f"Declared size {asset.size} of {asset.name} differs from file size {size}")
        mime_type = asset.mime_type or 'application/octet-stream'

        with open(local_path, 'rb') as fh:
            if size <= self.chunk_size:
                return self._request('POST', path, data={'fileId': file_id},
                                     files={'file': (asset.name, fh, mime_type)})

            result: Dict[str, Any] = {}
            headers: Dict[str, str] = {}
            offset = 0
            while offset < size:
                chunk = fh.read(self.chunk_size)
                if not chunk:
                    break
                end = offset + len(chunk) - 1
                headers['Content-Range'] = f"bytes {offset}-{end}/{size}"
                result = self._request('POST', path, data={'fileId': file_id},
                                       files={'file': (asset.name, chunk, mime_type)},
                                       headers=dict(headers))
                if result.get('$id'):
                    headers['x-appwrite-id'] = result['$id']
                offset = end + 1
                logger.debug(f"Uploaded {offset}/{size} bytes of {asset.name}")
            return result

    def file_view_url(self, bucket_id: str, file_id: str) -> str:
        query = urlencode({'project': self.project_id})
        return f"{self.endpoint}/storage/buckets/{bucket_id}/files/{file_id}/view?{query}"

    def file_preview_url(self, bucket_id: str, file_id: str, width: int, height: int,
                         gravity: str, quality: int) -> str:
        query = urlencode({
            'width': width,
            'height': height,
            'gravity': gravity,
            'quality': quality,
            'project': self.project_id,
        })
        return f"{self.endpoint}/storage/buckets/{bucket_id}/files/{file_id}/preview?{query}"

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------

    def create_account(self, email: str, password: str, name: str, user_id: str = "unique()") -> Dict[str, Any]:
        return self._request('POST', '/account',
                             json={'userId': user_id, 'email': email, 'password': password, 'name': name})

    def create_email_password_session(self, email: str, password: str) -> Dict[str, Any]:
        response = self._send('POST', '/account/sessions/email', json={'email': email, 'password': password})
        # Clients without a cookie jar get the session back in this header
        fallback = response.headers.get('X-Fallback-Cookies')
        if fallback:
            self.session.headers['X-Fallback-Cookies'] = fallback
        return response.json()

    def delete_session(self, session_id: str = "current") -> None:
        self._request('DELETE', f"/account/sessions/{quote(session_id)}")
        if session_id == "current":
            self.session.headers.pop('X-Fallback-Cookies', None)
            self.session.cookies.clear()

    def get_account(self) -> Dict[str, Any]:
        return self._request('GET', '/account')
