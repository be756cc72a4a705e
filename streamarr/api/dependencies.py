"""Shared route dependencies."""

from fastapi import Depends, HTTPException, Request

from streamarr.services import StreamServices


def get_services(request: Request) -> StreamServices:
    """Stream services created by the app lifespan."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Stream services not started")
    return services


def get_connection(services: StreamServices = Depends(get_services)):
    """Get database connection."""
    if services.db_path is None:
        raise HTTPException(status_code=503, detail="Database disabled")
    with services.db() as conn:
        yield conn
