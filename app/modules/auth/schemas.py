from pydantic import BaseModel
from typing import Optional
from app.core.viewer import Role


class OAuthLoginResponse(BaseModel):
    provider: str
    url: str


class ViewerResponse(BaseModel):
    user_id: Optional[str] = None
    role: Role
    school_id: Optional[str] = None


class LogoutResponse(BaseModel):
    message: str = "Logged out successfully"
