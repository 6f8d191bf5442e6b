"""Authentication for the notesync backend.

Tokens are issued by the account service; this service only verifies them.
The token subject is the user id that scopes every sync operation.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings, get_settings
from .logging_config import get_logger

logger = get_logger("notesync.auth")

# Cookie name for httpOnly auth
AUTH_COOKIE_NAME = "notesync_auth"

# Plan claim value that unlocks sync when sync_requires_pro is on
PRO_PLAN = "pro"

# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthContext:
    """Identity taken from a verified token."""

    def __init__(self, user_id: str, plan: str = "free"):
        self.user_id = user_id
        self.plan = plan

    @property
    def is_pro(self) -> bool:
        return self.plan == PRO_PLAN


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext:
    """Get the authenticated user from the bearer token or auth cookie."""
    # Try Authorization header first, then fall back to cookie
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(AUTH_COOKIE_NAME)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - provide Authorization header or auth cookie",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(token, settings)
    # Some issuers only set user_id
    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id or not isinstance(user_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    plan = payload.get("plan") or "free"
    return AuthContext(user_id=user_id, plan=str(plan))


# Type alias for dependency injection
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]


async def require_sync_access(
    auth: CurrentUser,
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthContext:
    """Gate sync endpoints on the pro plan when the deployment requires it."""
    if settings.sync_requires_pro and not auth.is_pro:
        logger.info(f"SYNC DENIED | {auth.user_id} | plan={auth.plan}")
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="Sync requires a Pro subscription",
        )
    return auth


SyncUser = Annotated[AuthContext, Depends(require_sync_access)]
