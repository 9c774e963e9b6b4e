"""
FastAPI dependencies for authentication and service access.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from letternest.infrastructure.logging import get_logger
from letternest.services.container import ServiceContainer

logger = get_logger(__name__)


def get_services(request: Request) -> ServiceContainer:
    """Service container attached to the running application."""
    return request.app.state.services


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def authenticate(authorization: Optional[str], services: ServiceContainer) -> str:
    """
    Resolve the calling user from the Authorization header.

    Raises 401 when the header is missing or the session provider does not
    recognise the token.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = extract_bearer_token(authorization)
    user_id = await services.auth.get_user_id(token) if token else None
    if not user_id:
        logger.info("Authentication failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


async def get_current_user_id(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    services: ServiceContainer = Depends(get_services),
) -> str:
    """Dependency form of ``authenticate``."""
    return await authenticate(authorization, services)
