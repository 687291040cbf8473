from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from hierarchigraph.core.config import settings
from hierarchigraph.core.dependencies import get_current_user
from hierarchigraph.models.auth import UserInfo

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(request: Request):
    services: dict[str, str] = {}

    engine = getattr(request.app.state, "engine", None)
    try:
        if engine is not None:
            ok = await engine.check_connection()
            services["graph_store"] = "ok" if ok else "error"
        else:
            services["graph_store"] = "not_configured"
    except Exception:
        services["graph_store"] = "error"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "store_backend": type(engine.store).__name__ if engine is not None else None,
        "services": services,
    }


@router.get("/protected")
async def health_protected(user: UserInfo = Depends(get_current_user)):
    return {"status": "ok", "user": user.model_dump()}


@router.get("/ready")
async def readiness_probe(request: Request):
    return {"ready": getattr(request.app.state, "engine", None) is not None}
