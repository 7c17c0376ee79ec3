from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from urllib.parse import urlencode
from app.config.settings import settings
from app.core.dependencies import get_auth_service, get_current_viewer, require_token
from app.core.errors import AppError, Unauthorized
from app.core.viewer import Viewer
from app.modules.auth.schemas import OAuthLoginResponse, ViewerResponse, LogoutResponse
from app.modules.auth.service import AuthService, AUTH_FAILED_MESSAGE
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])

# The verifier cookie is only ever sent back to the callback
VERIFIER_COOKIE_PATH = "/api/v1/auth"


def _error_redirect(message: str) -> RedirectResponse:
    query = urlencode({"error": message})
    response = RedirectResponse(url=f"/api/v1/auth/error?{query}", status_code=303)
    response.delete_cookie(settings.oauth_verifier_cookie, path=VERIFIER_COOKIE_PATH)
    return response


@router.get("/login", response_model=OAuthLoginResponse)
async def login(response: Response, service: AuthService = Depends(get_auth_service)):
    """Get the OAuth provider URL to start sign-in; the PKCE verifier is kept in an http-only cookie"""
    url, code_verifier = service.get_oauth_url()
    response.set_cookie(
        settings.oauth_verifier_cookie,
        code_verifier,
        max_age=settings.oauth_verifier_max_age_seconds,
        path=VERIFIER_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return OAuthLoginResponse(provider=settings.oauth_provider, url=url)


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Exchange the OAuth code for a session, then send the browser home or to the error view"""
    code_verifier = request.cookies.get(settings.oauth_verifier_cookie)
    if not code or not code_verifier:
        return _error_redirect(AUTH_FAILED_MESSAGE)
    try:
        access_token = service.exchange_code(code, code_verifier)
    except AppError:
        return _error_redirect(AUTH_FAILED_MESSAGE)

    response = RedirectResponse(url=f"{settings.site_url.rstrip('/')}/", status_code=303)
    response.delete_cookie(settings.oauth_verifier_cookie, path=VERIFIER_COOKIE_PATH)
    response.set_cookie(
        settings.access_token_cookie,
        access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.get("/error")
async def auth_error(error: Optional[str] = None):
    """Dedicated failure view for identity/session errors"""
    failure = Unauthorized(error or "An unexpected error occurred. Please try again.")
    return JSONResponse(status_code=failure.status_code, content=failure.to_envelope())


@router.get("/me", response_model=ViewerResponse)
async def get_me(viewer: Viewer = Depends(get_current_viewer)):
    """Current viewer and role (guest or student)"""
    return ViewerResponse(
        user_id=viewer.user_id,
        role=viewer.role,
        school_id=getattr(viewer, "school_id", None),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    token: str = Depends(require_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and clear the session cookie"""
    service.logout(token)
    response = JSONResponse(content=LogoutResponse().model_dump())
    response.delete_cookie(settings.access_token_cookie)
    return response
