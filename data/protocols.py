"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for the hosted backend's
collaborators. Services depend on these protocols rather than on the REST
adapter, which keeps them testable with in-memory fakes.

Protocols defined:
- DocumentStore: Interface for collections of schemaless documents
- FileStorage: Interface for binary file storage and URL derivation
- AccountService: Interface for account and session management
- RealtimeChannel: Interface for subscribing to change events
"""

from typing import Any, Callable, Dict, List, Optional, Protocol

from data.models import NormalizedAsset


class DocumentStore(Protocol):
    """Protocol defining the interface for remote document operations.

    Documents are plain dictionaries carrying server-assigned ``$id`` and
    ``$createdAt`` fields. Failed calls raise RemoteServiceError.
    """

    def get_document(self, collection_id: str, document_id: str) -> Dict[str, Any]:
        """Fetch one document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...

    def list_documents(self, collection_id: str, queries: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """List documents matching the given query strings (see data.appwrite_client.Query)."""
        ...

    def create_document(self, collection_id: str, data: Dict[str, Any],
                        document_id: str = "unique()") -> Dict[str, Any]:
        """Create a document and return it with its assigned id."""
        ...

    def update_document(self, collection_id: str, document_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite the given fields of a document and return the result."""
        ...

    def delete_document(self, collection_id: str, document_id: str) -> None:
        """Delete a document."""
        ...


class FileStorage(Protocol):
    """Protocol defining the interface for file storage."""

    def create_file(self, bucket_id: str, asset: NormalizedAsset, file_id: str = "unique()") -> Dict[str, Any]:
        """Upload a file and return its metadata, including ``$id``."""
        ...

    def file_view_url(self, bucket_id: str, file_id: str) -> str:
        """Return the untransformed view URL of a file."""
        ...

    def file_preview_url(self, bucket_id: str, file_id: str, width: int, height: int,
                         gravity: str, quality: int) -> str:
        """Return a resized preview URL of an image file."""
        ...


class AccountService(Protocol):
    """Protocol defining the interface for account and session operations."""

    def create_account(self, email: str, password: str, name: str, user_id: str = "unique()") -> Dict[str, Any]:
        ...

    def create_email_password_session(self, email: str, password: str) -> Dict[str, Any]:
        ...

    def delete_session(self, session_id: str = "current") -> None:
        ...

    def get_account(self) -> Dict[str, Any]:
        ...


class RealtimeChannel(Protocol):
    """Protocol for the realtime push channel.

    Events are dictionaries with ``events`` (list of event-type strings such
    as ``databases.*.documents.*.create``) and ``payload`` (the document).
    Delivery is at-least-once and unordered relative to our own writes.
    """

    def subscribe(self, channel: str, callback: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        """Subscribe to a channel; returns a function that unsubscribes."""
        ...
