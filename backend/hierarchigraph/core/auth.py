"""Bearer JWT validation for tokens signed with the shared application secret."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger("hierarchigraph_auth")


def validate_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing JWT configuration",
        )

    options = {
        "verify_signature": True,
        "verify_exp": True,
        "require": ["exp", "sub"],
    }

    try:
        return jwt.decode(token, secret, algorithms=[algorithm], options=options)
    except ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is expired",
        ) from e
    except JWTClaimsError as e:
        logger.warning("Rejected token claims: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        ) from e
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
        ) from e


def extract_roles_from_token(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles")
    if roles is None:
        role = payload.get("role")
        return [role] if isinstance(role, str) and role else []
    if not isinstance(roles, list):
        return []
    return [str(r) for r in roles if isinstance(r, str | int)]
