"""Health check endpoint."""

from fastapi import APIRouter, Request

from streamarr.config import VERSION

router = APIRouter()


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint with startup status and store counters."""
    startup_state = request.app.state.startup_state
    services = getattr(request.app.state, "services", None)

    response = {
        "status": "healthy" if startup_state.is_ready else "starting",
        "version": VERSION,
        "startup": startup_state.to_dict(),
    }
    if services is not None:
        response["mapping_version"] = services.registry.version
        response["overrides"] = services.store.stats()
    return response
