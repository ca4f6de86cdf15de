from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from sqlmodel import Session

from quickblog.core.errors import AuthenticationError, ForbiddenError, NotFoundError
from quickblog.core.security import decode_access_token
from quickblog.db.session import get_session
from quickblog.models.user import AdminRole, User
from quickblog.services.auth import AuthService

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/admin/login", auto_error=False)

EDITOR_ROLES = (AdminRole.SUPER_ADMIN, AdminRole.ADMIN)
MODERATOR_ROLES = (AdminRole.SUPER_ADMIN, AdminRole.ADMIN, AdminRole.MODERATOR)


class LoginRequest(BaseModel):
    email: str
    password: str

class LoginResponse(BaseModel):
    success: bool = True
    token: str
    message: Optional[str] = None

class CurrentAdmin(BaseModel):
    id: int
    role: AdminRole


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(session)

async def get_current_admin(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> CurrentAdmin:
    """Identity and role come from the token alone; no session lookup."""
    if not token:
        if not request.headers.get("Authorization"):
            raise AuthenticationError("No authorization header provided")
        raise AuthenticationError("Invalid authorization format. Use: Bearer <token>")

    payload = decode_access_token(token)
    try:
        return CurrentAdmin(id=int(payload["sub"]), role=AdminRole(payload["role"]))
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token")

def require_roles(*roles: AdminRole):
    allowed = set(roles)

    async def role_checker(admin: CurrentAdmin = Depends(get_current_admin)) -> CurrentAdmin:
        if admin.role not in allowed:
            raise ForbiddenError(f"Role ({admin.role.value}) is not allowed to access this resource")
        return admin

    return role_checker

require_editor = require_roles(*EDITOR_ROLES)
require_moderator = require_roles(*MODERATOR_ROLES)


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    token, bootstrapped = service.login(data.email, data.password)
    if bootstrapped:
        return LoginResponse(token=token, message="Super Admin Created and Logged In")
    return LoginResponse(token=token)

@router.get("/me")
def read_me(admin: CurrentAdmin = Depends(get_current_admin), session: Session = Depends(get_session)):
    user = session.get(User, admin.id)
    if not user:
        raise NotFoundError("User not found")
    return {
        "success": True,
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "created_at": user.created_at,
        },
    }
