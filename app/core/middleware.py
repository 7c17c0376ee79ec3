"""
ASGI middleware shared by every route
"""

from typing import Dict, Iterable, Optional, Tuple

DEFAULT_SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# Responses that carry the viewer's session or tracking marks must not be shared by caches
PRIVATE_PATH_PREFIXES: Tuple[str, ...] = (
    "/api/v1/auth",
    "/api/v1/events",
    "/api/v1/clubs/joined",
    "/api/v1/schools/me",
)


class SecurityHeadersMiddleware:
    def __init__(
        self,
        app,
        headers: Optional[Dict[str, str]] = None,
        private_prefixes: Iterable[str] = PRIVATE_PATH_PREFIXES,
    ):
        self.app = app
        self.headers = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or DEFAULT_SECURITY_HEADERS).items()
        ]
        self.private_prefixes = tuple(private_prefixes)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        private = scope["path"].startswith(self.private_prefixes)

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                headers = message.setdefault("headers", [])
                headers.extend(self.headers)
                if private:
                    headers.append((b"Cache-Control", b"private, no-store"))
            await send(message)

        await self.app(scope, receive, send_with_headers)
