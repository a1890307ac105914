"""
Account registration, login and session resolution.

Features:
- bcrypt password hashing
- Stateless sessions: signed JWT in an HTTP-only cookie or a bearer header
- Roles re-read from the user store on every request
- `get_current_user` / `require_admin` dependencies for protected endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from cinesync.core import state
from cinesync.core.config import settings
from cinesync.core.errors import AppError, BadRequest, Forbidden, Internal, Unauthorized
from cinesync.core.logging import get_logger
from cinesync.core.security import COOKIE_NAME, create_session_token, decode_session_token
from cinesync.models.user import LoginRequest, RegisterRequest, SessionUser

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def resolve_session(token: Optional[str]) -> Optional[SessionUser]:
    """Map a session token to the identity behind it, or None."""
    if not token:
        return None

    claims = decode_session_token(token, settings)
    if not claims:
        return None

    user = state.user_store.get_user(claims.get("sub", ""))
    if not user or not user.is_active:
        return None

    return SessionUser(id=user.id, email=user.email, name=user.name, role=user.role)


def session_token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return request.cookies.get(COOKIE_NAME)


async def get_optional_user(request: Request) -> Optional[SessionUser]:
    return resolve_session(session_token_from_request(request))


async def get_current_user(user: Optional[SessionUser] = Depends(get_optional_user)) -> SessionUser:
    """
    Get current authenticated user from the session.
    Use as dependency for protected endpoints.
    """
    if user is None:
        raise Unauthorized("Unauthorized")
    return user


async def require_admin(user: Optional[SessionUser] = Depends(get_optional_user)) -> SessionUser:
    """401 without a session, 403 for a session without the admin role."""
    if user is None:
        raise Unauthorized("Unauthorized")
    if not user.is_admin:
        raise Forbidden("Forbidden: Admin access required")
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest):
    """Create an account. 409 when the email is already registered."""
    if not request.email or not request.password or not request.name:
        raise BadRequest("Missing required fields")

    try:
        user = state.user_store.register_user(request.email, request.password, request.name)
    except AppError:
        raise
    except Exception:
        logger.exception("Registration failed")
        raise Internal("Internal server error")

    return {"message": "User created successfully", "user": user.public().to_json()}


@router.post("/login")
async def login(request: LoginRequest, response: Response):
    """Check credentials and start a session."""
    user = state.user_store.authenticate(request.email, request.password)
    if not user:
        logger.info("Failed login for %s", request.email)
        raise Unauthorized("Invalid email or password")

    token = create_session_token(user.id, settings)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_MAX_AGE,
    )
    logger.info("User authenticated: %s", user.email)

    session = SessionUser(id=user.id, email=user.email, name=user.name, role=user.role)
    return {"user": session.to_json(), "token": token}


@router.post("/logout")
async def logout(response: Response):
    """Logout user."""
    response.delete_cookie(key=COOKIE_NAME)
    return {"success": True}


@router.get("/session")
async def check_session(user: Optional[SessionUser] = Depends(get_optional_user)):
    """Check if user has valid session."""
    if user is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": user.to_json()}
