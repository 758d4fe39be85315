from fastapi import APIRouter, Depends

from portal_api.dependencies import get_gateway
from portal_api.gateway import StorageGateway

router = APIRouter()


@router.get("/health")
async def health_check(gateway: StorageGateway = Depends(get_gateway)):
    """
    Health check endpoint for monitoring API status and component readiness.

    The gateway provisions every resource before the app starts, so this only
    reports what it holds; it makes no remote calls.
    """
    health_status = {
        "status": "ok",
        "components": {
            "api": "ready",
            "tables": "ready" if gateway.tables else "missing",
            "blobs": "ready" if gateway.containers else "missing",
            "queue": "ready" if gateway.queue.queue_url else "missing",
            "file_share": "ready" if gateway.file_share.root.is_dir() else "missing",
        },
        "ready": False,
    }

    components_ready = all(state == "ready" for state in health_status["components"].values())
    if components_ready:
        health_status["ready"] = True
    else:
        health_status["status"] = "degraded"

    return health_status
