"""Supabase Auth adapter, the single authority for emails and passwords.

Profiles in the ``users`` table share their primary key with the Supabase Auth
user. Nothing in this service stores or compares password hashes itself.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Request
from supabase import AuthApiError, Client, ClientOptions, create_client
from supabase import AuthError as SupabaseAuthError

from dental_api.config.settings import Settings
from dental_api.utils.errors import ConflictError, UpstreamError

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 1000


@dataclass
class CredentialUser:
    id: str
    email: str | None
    created_at: str | None = None


def _to_credential_user(user) -> CredentialUser:
    created = getattr(user, "created_at", None)
    if isinstance(created, datetime):
        created = created.isoformat()
    return CredentialUser(id=str(user.id), email=user.email, created_at=created)


class CredentialStore:
    def __init__(self, admin: Client, settings: Settings):
        self._admin = admin
        self._settings = settings

    def create_user(self, email: str, password: str) -> CredentialUser:
        try:
            response = self._admin.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
            })
        except AuthApiError as e:
            if e.status == 422 and "already" in e.message.lower():
                raise ConflictError("Email already registered")
            raise UpstreamError(e.message)
        except SupabaseAuthError as e:
            raise UpstreamError(e.message)
        return _to_credential_user(response.user)

    def get_user(self, user_id: str) -> CredentialUser | None:
        try:
            response = self._admin.auth.admin.get_user_by_id(user_id)
        except AuthApiError as e:
            if e.status == 404:
                return None
            raise UpstreamError(e.message)
        except SupabaseAuthError as e:
            raise UpstreamError(e.message)
        if response is None or response.user is None:
            return None
        return _to_credential_user(response.user)

    def list_users(self) -> list[CredentialUser]:
        users: list[CredentialUser] = []
        page = 1
        while True:
            try:
                batch = self._admin.auth.admin.list_users(page=page, per_page=LIST_PAGE_SIZE)
            except SupabaseAuthError as e:
                raise UpstreamError(e.message)
            users.extend(_to_credential_user(u) for u in batch)
            if len(batch) < LIST_PAGE_SIZE:
                return users
            page += 1

    def find_user_by_email(self, email: str) -> CredentialUser | None:
        wanted = email.strip().lower()
        for user in self.list_users():
            if user.email and user.email.lower() == wanted:
                return user
        return None

    def user_from_access_token(self, access_token: str) -> CredentialUser | None:
        """Resolve a provider-issued token (e.g. from a reset link) to its user."""
        try:
            response = self._admin.auth.get_user(access_token)
        except SupabaseAuthError:
            return None
        if response is None or response.user is None:
            return None
        return _to_credential_user(response.user)

    def verify_password(self, email: str, password: str) -> bool:
        # A throwaway client keeps the sign-in session off the service-role client.
        client = create_client(
            self._settings.SUPABASE_URL,
            self._settings.SUPABASE_ANON_KEY,
            options=ClientOptions(persist_session=False, auto_refresh_token=False),
        )
        try:
            client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthApiError as e:
            logger.debug("Password verification rejected: %s", e.message)
            return False
        except SupabaseAuthError as e:
            raise UpstreamError(e.message)
        try:
            client.auth.sign_out()
        except SupabaseAuthError:
            logger.warning("Could not revoke a password verification session")
        return True

    def update_password(self, user_id: str, password: str) -> None:
        self._update(user_id, {"password": password})

    def update_email(self, user_id: str, email: str) -> None:
        self._update(user_id, {"email": email, "email_confirm": True})

    def _update(self, user_id: str, attributes: dict) -> None:
        try:
            self._admin.auth.admin.update_user_by_id(user_id, attributes)
        except AuthApiError as e:
            if e.status == 422 and "already" in e.message.lower():
                raise ConflictError("Email already registered")
            raise UpstreamError(e.message)
        except SupabaseAuthError as e:
            raise UpstreamError(e.message)

    def delete_user(self, user_id: str) -> None:
        try:
            self._admin.auth.admin.delete_user(user_id)
        except SupabaseAuthError as e:
            raise UpstreamError(e.message)

    def send_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            self._admin.auth.reset_password_for_email(email, options)
        except SupabaseAuthError as e:
            raise UpstreamError(e.message)


def get_credentials(request: Request) -> CredentialStore:
    return request.app.state.credentials
