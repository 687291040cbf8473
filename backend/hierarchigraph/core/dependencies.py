from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Request, status

from hierarchigraph.core.auth import extract_roles_from_token, validate_token
from hierarchigraph.core.config import settings
from hierarchigraph.models.auth import UserInfo
from hierarchigraph.services.hierarchy_engine import HierarchyEngine

logger = logging.getLogger(__name__)


async def get_current_user(authorization: str | None = Header(None)) -> UserInfo:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1]

    try:
        payload = validate_token(token, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Token validation error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    roles = extract_roles_from_token(payload)
    return UserInfo(
        id=payload.get("sub"),
        name=payload.get("name"),
        email=payload.get("email"),
        roles=roles,
    )


def require_role(*roles: str):
    async def _check_role(user: UserInfo = Depends(get_current_user)) -> UserInfo:
        if not any(r in user.roles for r in roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(roles)}",
            )
        return user

    return _check_role


def get_engine(request: Request) -> HierarchyEngine:
    engine: HierarchyEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Hierarchy engine not initialized",
        )
    return engine
