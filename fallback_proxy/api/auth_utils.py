import logging
import secrets
from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger("FallbackProxy")

# auto_error=False lets us return our own 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


async def require_management_key(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """
    Dependency guarding the management API with a bearer management key.
    Handles 'AUTH_ENABLED=False' by letting every request through.
    """
    config = getattr(request.app.state, "config", None) or {}
    auth_settings = config.get("auth_settings", {})

    if not auth_settings.get("enabled", True):
        return

    management_key = auth_settings.get("management_key") or ""
    if not management_key:
        logger.error("Management API is enabled but no MANAGEMENT_KEY is configured.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Management API disabled: no management key configured",
        )

    if not creds:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(creds.credentials.encode("utf-8"), management_key.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
