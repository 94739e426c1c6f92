"""API v1 routes package."""
from sitepub.api.v1.routes.builds import router as builds_router
from sitepub.api.v1.routes.deployments import router as deployments_router
from sitepub.api.v1.routes.health import router as health_router
from sitepub.api.v1.routes.preview import router as preview_router
from sitepub.api.v1.routes.publish import router as publish_router

__all__ = [
    "builds_router",
    "deployments_router",
    "health_router",
    "preview_router",
    "publish_router",
]
