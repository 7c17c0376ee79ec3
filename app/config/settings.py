from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for the school lookup in the auth hook
    supabase_timeout_seconds: int = 10

    # Auth
    auth_hook_secret: Optional[str] = None  # Shared bearer secret sent by the Supabase auth hook
    site_url: str = "http://localhost:3000"
    oauth_provider: str = "google"
    access_token_cookie: str = "access_token"
    oauth_verifier_cookie: str = "oauth_code_verifier"  # PKCE verifier carried from /auth/login to /auth/callback
    oauth_verifier_max_age_seconds: int = 600

    # Event discovery
    events_page_size: int = 9
    events_cache_ttl_seconds: int = 30
    events_cache_max_entries: int = 500

    # App
    app_name: str = "campusplus-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
