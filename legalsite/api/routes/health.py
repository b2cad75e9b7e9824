"""
Existence checks for the API. No side effects, no database access.

- /api        - name, version and running status
- /api/health - liveness probe
"""
from typing import Dict

from fastapi import APIRouter

from legalsite.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/api", summary="API root")
async def api_root() -> Dict[str, str]:
    return {
        "message": f"{settings.PROJECT_NAME} API",
        "version": settings.VERSION,
        "status": "running",
    }


@router.get("/api/health", summary="Health check")
async def health_check() -> Dict[str, str]:
    return {"status": "healthy"}
