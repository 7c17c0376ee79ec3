import hashlib
import time
import logging
from supabase import Client
from app.database.supabase_client import PKCEStorage, SessionClientFactory, create_session_client
from app.config.settings import settings
from app.core.errors import Unauthorized, transport_failure
from app.core.viewer import Viewer, viewer_from_user
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)

AUTH_FAILED_MESSAGE = "Sorry, we failed to authenticate you."


class TokenUserCache:
    """Short-lived map of access token -> user, so an infinite scroll does not hit Supabase Auth per page."""

    def __init__(self, ttl_seconds: float = 60, max_entries: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        # Raw tokens are never kept in memory
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        user_data, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return user_data

    def put(self, token: str, user_data: Dict[str, Any]) -> None:
        now = time.monotonic()
        if len(self._entries) >= self.max_entries:
            self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
            if len(self._entries) >= self.max_entries:
                return
        self._entries[self._key(token)] = (user_data, now + self.ttl_seconds)

    def discard(self, token: str) -> None:
        self._entries.pop(self._key(token), None)

    def clear(self) -> None:
        self._entries.clear()


_user_cache = TokenUserCache()


def clear_user_cache() -> None:
    _user_cache.clear()


def _user_to_dict(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
    }


class AuthService:
    """Token lookups use the shared client; anything that creates a session runs on a throwaway one."""

    def __init__(
        self,
        supabase: Client,
        cache: TokenUserCache = _user_cache,
        session_client_factory: SessionClientFactory = create_session_client,
    ):
        self.supabase = supabase
        self.cache = cache
        self.session_client_factory = session_client_factory

    def get_oauth_url(self) -> Tuple[str, str]:
        """Build the provider sign-in URL; returns (url, PKCE code verifier) for the callback."""
        redirect_to = f"{settings.site_url.rstrip('/')}/api/v1/auth/callback"
        storage = PKCEStorage()
        try:
            client = self.session_client_factory(storage)
            response = client.auth.sign_in_with_oauth({
                "provider": settings.oauth_provider,
                "options": {"redirect_to": redirect_to},
            })
        except Exception as e:
            raise transport_failure(e, "Could not start sign-in")
        if not storage.code_verifier:
            raise transport_failure(RuntimeError("no PKCE code verifier issued"), "Could not start sign-in")
        return response.url, storage.code_verifier

    def exchange_code(self, code: str, code_verifier: str) -> str:
        """Exchange an OAuth callback code for a session and return its access token."""
        try:
            client = self.session_client_factory(PKCEStorage())
            response = client.auth.exchange_code_for_session({
                "auth_code": code,
                "code_verifier": code_verifier,
            })
        except Exception as e:
            logger.warning(f"OAuth code exchange failed: {e}")
            raise Unauthorized(AUTH_FAILED_MESSAGE)
        if not response or not response.session:
            raise Unauthorized(AUTH_FAILED_MESSAGE)
        logger.info(f"User {response.user.id if response.user else '?'} signed in")
        return response.session.access_token

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve the user behind an access token, served from the token cache when fresh."""
        cached = self.cache.get(token)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            reason = str(e)
            lowered = reason.lower()
            if "jwt" in lowered or "expired" in lowered or "invalid" in lowered:
                raise Unauthorized("Invalid or expired token")
            raise Unauthorized("Authentication failed", {"reason": reason})
        if not user_response or not user_response.user:
            raise Unauthorized("Invalid or expired token")

        user_data = _user_to_dict(user_response.user)
        self.cache.put(token, user_data)
        return user_data

    def get_viewer(self, token: Optional[str]) -> Viewer:
        if not token:
            return viewer_from_user(None)
        return viewer_from_user(self.get_current_user(token))

    def logout(self, token: str) -> bool:
        """Revoke the token's session with Supabase Auth; the cached user is dropped either way."""
        self.cache.discard(token)
        try:
            # Admin sign-out acts on the given JWT only and leaves the shared client's state alone
            self.supabase.auth.admin.sign_out(token)
        except Exception as e:
            logger.warning(f"Supabase sign out failed: {e}")
            return False
        return True
