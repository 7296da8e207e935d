from fastapi import APIRouter
from fastapi.responses import Response

from crm_api.core.config import get_settings
from crm_api.crm.api import crm_routers
from crm_api.errors import NotFound
from crm_api.identity.api import identity_routers
from crm_api.metrics import render_metrics

router = APIRouter()
for _router in identity_routers + crm_routers:
    router.include_router(_router)


@router.get("/api/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/api/metrics", tags=["system"])
def metrics() -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise NotFound("not found")
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
