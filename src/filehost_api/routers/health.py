import logging

from fastapi import APIRouter, Request, Response, status

from filehost_api.errors import FileError
from filehost_api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Health check endpoint for monitoring API status and component readiness.

    Pings the record store and the blob store; any failing component marks
    the service as degraded and answers 503.
    """
    settings = request.app.state.settings
    checks = {
        "record_store": request.app.state.record_store,
        "blob_store": request.app.state.blob_store,
    }

    components = {"api": "ready"}
    for name, store in checks.items():
        try:
            store.ping()
            components[name] = "ready"
        except FileError as e:
            logger.warning(f"Health check failed for {name}: {e.message}")
            components[name] = f"error: {e.code.value}"

    ready = all(state == "ready" for state in components.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="ok" if ready else "degraded",
        deployment_mode=settings.deployment_mode,
        components=components,
        ready=ready,
    )
