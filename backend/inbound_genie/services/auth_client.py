from typing import Any, Dict, Optional, Tuple
from uuid import uuid4
from datetime import datetime, timezone
import hashlib
import hmac
import logging
import secrets
import time

from supabase import create_client, Client

from ..config import env, supabase_credentials


logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 3600


class AuthError(Exception):
    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _user_dict(user: Any) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": str(getattr(user, "id", "")),
        "email": getattr(user, "email", None),
        "email_confirmed_at": _iso(getattr(user, "email_confirmed_at", None)),
        "user_metadata": getattr(user, "user_metadata", None) or {},
    }


def _session_dict(session: Any) -> Optional[Dict[str, Any]]:
    if session is None:
        return None
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": getattr(session, "expires_at", None),
        "expires_in": getattr(session, "expires_in", None),
    }


def _raise_auth_error(e: Exception) -> None:
    message = getattr(e, "message", None) or str(e)
    status = getattr(e, "status", None) or 400
    raise AuthError(message, int(status)) from e


class SupabaseAuth:
    """Supabase auth reached through the admin (service role) client."""

    def __init__(self, client: Client, url: str, key: str) -> None:
        self.client = client
        self._url = url
        self._key = key

    def _session_client(self) -> Client:
        # Password and token flows mutate client session state, keep them off the shared admin client
        return create_client(self._url, env("SUPABASE_ANON_KEY") or self._key)

    def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        try:
            res = self.client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": False,
                "user_metadata": metadata,
            })
        except Exception as e:
            _raise_auth_error(e)
        if not res or not res.user:
            raise AuthError("User creation failed - no user data returned", 500)
        return _user_dict(res.user)

    def sign_in(self, email: str, password: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        try:
            res = self._session_client().auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            _raise_auth_error(e)
        if not res.user or not res.session:
            raise AuthError("Sign in failed - no user or session data returned", 500)
        return _user_dict(res.user), _session_dict(res.session)

    def sign_out(self, access_token: str) -> None:
        try:
            self.client.auth.admin.sign_out(access_token)
        except Exception as e:
            _raise_auth_error(e)

    def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        try:
            res = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"Token lookup failed: {e}")
            return None
        return _user_dict(res.user) if res else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            res = self.client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            logger.warning(f"Could not get auth user by ID: {e}")
            return None
        return _user_dict(res.user) if res else None

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            users = self.client.auth.admin.list_users()
        except Exception as e:
            logger.error(f"Error listing users: {e}")
            return None
        for user in users or []:
            if (getattr(user, "email", "") or "").lower() == email.lower():
                return _user_dict(user)
        return None

    def confirm_email(self, user_id: str) -> None:
        try:
            self.client.auth.admin.update_user_by_id(user_id, {"email_confirm": True})
        except Exception as e:
            _raise_auth_error(e)

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        try:
            res = self._session_client().auth.refresh_session(refresh_token)
        except Exception as e:
            raise AuthError(getattr(e, "message", None) or "Failed to refresh session", 401) from e
        if not res or not res.session:
            raise AuthError("Session refresh failed - no session data returned", 500)
        return _session_dict(res.session)

    def resend_signup(self, email: str) -> None:
        try:
            self.client.auth.resend({"type": "signup", "email": email})
        except Exception as e:
            _raise_auth_error(e)

    def verify_otp(self, email: str, token: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        try:
            res = self._session_client().auth.verify_otp({"email": email, "token": token, "type": "signup"})
        except Exception as e:
            _raise_auth_error(e)
        if not res or not res.user:
            raise AuthError("Verification failed - no user data returned", 500)
        return _user_dict(res.user), _session_dict(res.session)


class InMemoryAuth:
    """Demo-mode auth with the same surface as SupabaseAuth."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.passwords: Dict[str, str] = {}
        self.sessions: Dict[str, str] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.resent: list = []

    @staticmethod
    def _hash(password: str, salt: str) -> str:
        return hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000).hex()

    def _issue_session(self, user_id: str) -> Dict[str, Any]:
        access_token = secrets.token_urlsafe(32)
        refresh_token = secrets.token_urlsafe(32)
        self.sessions[access_token] = user_id
        self.refresh_tokens[refresh_token] = user_id
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "expires_at": int(time.time()) + SESSION_TTL_SECONDS,
            "expires_in": SESSION_TTL_SECONDS,
        }

    def create_user(self, email: str, password: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        if self.find_user_by_email(email):
            raise AuthError("A user with this email address has already been registered", 422)
        uid = str(uuid4())
        self.users[uid] = {
            "id": uid,
            "email": email,
            "email_confirmed_at": None,
            "user_metadata": dict(metadata or {}),
        }
        self.passwords[uid] = f"{uid}${self._hash(password, uid)}"
        return dict(self.users[uid])

    def sign_in(self, email: str, password: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        user = self.find_user_by_email(email)
        if not user:
            raise AuthError("Invalid login credentials", 400)
        salt, digest = self.passwords[user["id"]].split("$", 1)
        if not hmac.compare_digest(digest, self._hash(password, salt)):
            raise AuthError("Invalid login credentials", 400)
        if not user.get("email_confirmed_at"):
            raise AuthError("Email not confirmed", 400)
        return user, self._issue_session(user["id"])

    def sign_out(self, access_token: str) -> None:
        if self.sessions.pop(access_token, None) is None:
            raise AuthError("Invalid or expired token", 401)

    def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        uid = self.sessions.get(access_token)
        return dict(self.users[uid]) if uid in self.users else None

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        user = self.users.get(str(user_id))
        return dict(user) if user else None

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for user in self.users.values():
            if (user.get("email") or "").lower() == (email or "").lower():
                return dict(user)
        return None

    def confirm_email(self, user_id: str) -> None:
        user = self.users.get(str(user_id))
        if user is None:
            raise AuthError("User not found", 404)
        user["email_confirmed_at"] = datetime.now(timezone.utc).isoformat()

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        uid = self.refresh_tokens.pop(refresh_token, None)
        if uid is None:
            raise AuthError("Invalid Refresh Token", 401)
        return self._issue_session(uid)

    def resend_signup(self, email: str) -> None:
        self.resent.append(email)

    def verify_otp(self, email: str, token: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        raise AuthError("Token has expired or is invalid", 400)


_auth_instance: Optional[Any] = None


def get_auth():
    global _auth_instance
    creds = supabase_credentials()
    if creds:
        if _auth_instance is None or not isinstance(_auth_instance, SupabaseAuth):
            from ..db import get_db
            db = get_db()
            _auth_instance = SupabaseAuth(db.client, *creds)
        return _auth_instance
    if _auth_instance is None or not isinstance(_auth_instance, InMemoryAuth):
        _auth_instance = InMemoryAuth()
    return _auth_instance
