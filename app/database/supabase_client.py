import logging
from supabase import create_client, Client, ClientOptions
from typing import Callable, Dict, Optional
from app.config.settings import settings

logger = logging.getLogger(__name__)

CODE_VERIFIER_SUFFIX = "-code-verifier"


def _connect(key: str, label: str, **options) -> Client:
    if not settings.supabase_url or not key:
        raise RuntimeError(f"Supabase {label} client is not configured (SUPABASE_URL / key missing)")
    client_options = ClientOptions(
        postgrest_client_timeout=settings.supabase_timeout_seconds,
        auto_refresh_token=False,
        persist_session=False,
        **options,
    )
    logger.debug(f"Connecting Supabase {label} client to {settings.supabase_url}")
    return create_client(settings.supabase_url, key, options=client_options)


class SupabaseClient:
    """Process-wide clients: the anon client for request paths, the service client for the auth hook.

    Auth session methods (sign in, code exchange, sign out) are never called on these:
    a stored session would rewrite the shared Authorization header for every request.
    """
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = _connect(settings.supabase_key, "anon")
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Bypasses RLS; the sign-up hook runs before any session exists. Falls back to the anon client."""
        if cls._service_client is None:
            if not settings.supabase_service_role_key:
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not set, school lookup uses the anon client")
                return cls.get_client()
            cls._service_client = _connect(settings.supabase_service_role_key, "service")
        return cls._service_client

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


class PKCEStorage:
    """In-memory auth storage for one OAuth round trip; exposes the PKCE code verifier it received."""

    def __init__(self):
        self.items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    @property
    def code_verifier(self) -> Optional[str]:
        return next((v for k, v in self.items.items() if k.endswith(CODE_VERIFIER_SUFFIX)), None)


SessionClientFactory = Callable[[PKCEStorage], Client]


def create_session_client(storage: PKCEStorage) -> Client:
    """Throwaway anon client for the OAuth start or the code exchange of a single request"""
    return _connect(settings.supabase_key, "session", flow_type="pkce", storage=storage)


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()


def get_session_client_factory() -> SessionClientFactory:
    return create_session_client
