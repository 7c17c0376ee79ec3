"""
Core dependencies for resolving the viewer of a request
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.settings import settings
from app.core.errors import Forbidden, Unauthorized
from app.core.viewer import Student, Viewer
from app.database.supabase_client import SessionClientFactory, get_session_client_factory, get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Anonymous requests are allowed: they resolve to a Guest viewer
security = HTTPBearer(auto_error=False)


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    session_client_factory: SessionClientFactory = Depends(get_session_client_factory),
) -> AuthService:
    return AuthService(supabase, session_client_factory=session_client_factory)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    """Bearer header first, then the session cookie set by the OAuth callback"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.access_token_cookie)


def get_current_viewer(
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Viewer:
    """No token -> anonymous Guest; invalid token -> 401"""
    return auth_service.get_viewer(token)


def require_token(token: Optional[str] = Depends(get_access_token)) -> str:
    if not token:
        raise Unauthorized("You must be signed in.")
    return token


def require_student(viewer: Viewer = Depends(get_current_viewer)) -> Student:
    if not isinstance(viewer, Student):
        if viewer.user_id is None:
            raise Unauthorized("Authentication error: You must be logged in.")
        raise Forbidden("This action is only available to students with a verified school email.")
    return viewer
