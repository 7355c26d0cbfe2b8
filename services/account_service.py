"""
Account Service Module

This module owns the signed-in session. A SessionManager is created once per
application and passed to whatever needs the current user, instead of the
current user living in a global.
"""

from typing import Optional
from urllib.parse import quote

from config import settings
from data.appwrite_client import Query
from data.models import UserProfile
from data.protocols import AccountService, DocumentStore
from utils.exceptions import ErrorKind, NotAuthenticatedError, RemoteServiceError
from utils.logger import get_logger

logger = get_logger(__name__)

# Failures meaning there is no usable session, as opposed to a transient error
SESSION_GONE_KINDS = {ErrorKind.UNAUTHORIZED, ErrorKind.PERMISSION_DENIED, ErrorKind.NOT_FOUND}


def default_avatar_url(username: str) -> str:
    """Return a generated initials avatar for a new user."""
    return f"{settings.AVATAR_SERVICE_URL}?name={quote(username)}&background=random"


class SessionManager:
    """Signs users up, in and out, and tracks the current user."""

    def __init__(self, account: AccountService, store: DocumentStore,
                 users_collection_id: Optional[str] = None):
        self.account = account
        self.store = store
        self.users_collection_id = users_collection_id or settings.USER_COLLECTION_ID
        self.current_user: Optional[UserProfile] = None

    @property
    def is_logged_in(self) -> bool:
        return self.current_user is not None

    def sign_up(self, email: str, password: str, username: str) -> UserProfile:
        """
        Create an account and its user document, and sign the new user in.

        Any session already open on this client is closed first.

        Args:
            email: Login email.
            password: Login password.
            username: Display name.

        Returns:
            UserProfile: The new user, now the current user.
        """
        new_account = self.account.create_account(email, password, username)
        try:
            self.account.delete_session("current")
        except RemoteServiceError as e:
            logger.info(f"No existing session to close before sign-up: {e}")
        self.account.create_email_password_session(email, password)

        document = self.store.create_document(self.users_collection_id, {
            'accountId': new_account['$id'],
            'email': email,
            'username': username,
            'avatar': default_avatar_url(username),
        })
        self.current_user = UserProfile.from_document(document)
        logger.info(f"New user created: {self.current_user.id} ({username})")
        return self.current_user

    def sign_in(self, email: str, password: str) -> UserProfile:
        """
        Open a session and load the matching user document.

        Raises:
            NotAuthenticatedError: If the account has no user document.
        """
        self.account.create_email_password_session(email, password)
        user = self._load_user()
        if user is None:
            raise NotAuthenticatedError(f"No user profile exists for {email}")
        self.current_user = user
        logger.info(f"Signed in as {user.username} ({user.id})")
        return user

    def sign_out(self) -> None:
        try:
            self.account.delete_session("current")
        finally:
            self.current_user = None
        logger.info("Signed out")

    def refresh(self) -> Optional[UserProfile]:
        """
        Reload the current user from the backend.

        Returns:
            Optional[UserProfile]: The current user, or None if the session
            has expired or was never opened.
        """
        try:
            self.current_user = self._load_user()
        except RemoteServiceError as e:
            if e.kind not in SESSION_GONE_KINDS:
                raise
            logger.info(f"No active session: {e}")
            self.current_user = None
        return self.current_user

    def require_user(self) -> UserProfile:
        """Return the current user, or raise NotAuthenticatedError."""
        if self.current_user is None:
            raise NotAuthenticatedError("Sign in to continue")
        return self.current_user

    def _load_user(self) -> Optional[UserProfile]:
        account = self.account.get_account()
        documents = self.store.list_documents(self.users_collection_id, [
            Query.equal('accountId', account['$id']),
        ])
        if not documents:
            return None
        return UserProfile.from_document(documents[0])
