"""API routes for stream source overrides."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from streamarr.api.dependencies import get_services
from streamarr.api.models import (
    LatestSourcesResponse,
    PlaybackResponse,
    StreamSourceCreate,
    StreamSourceListResponse,
    StreamSourceResponse,
    StreamSourceUpdate,
)
from streamarr.core.types import LeagueId
from streamarr.services import OverrideExistsError, StreamServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stream-sources", tags=["Stream Sources"])


def _save(
    services: StreamServices, stream_id: int, changes: dict, create_only: bool = False
) -> StreamSourceResponse:
    store = services.store
    try:
        if create_only:
            source = store.create(stream_id, changes)
        else:
            source = store.upsert(stream_id, changes)
    except OverrideExistsError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except OSError as e:
        logger.error("[API] Could not persist stream %d: %s", stream_id, e)
        raise HTTPException(status_code=500, detail="Could not persist stream source") from e
    return StreamSourceResponse.from_source(source)


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=StreamSourceListResponse, response_model_by_alias=True)
def list_stream_sources(
    league: LeagueId | None = Query(None, description="Filter by league"),
    services: StreamServices = Depends(get_services),
):
    """List every stream source, overrides merged over registry defaults."""
    sources = services.store.get_all()
    if league is not None:
        sources = [s for s in sources if s.league_id == league]
    return StreamSourceListResponse(
        sources=[StreamSourceResponse.from_source(s) for s in sources],
        total=len(sources),
    )


@router.get("/latest", response_model=LatestSourcesResponse, response_model_by_alias=True)
def latest_stream_sources(
    v: int | None = Query(None, description="Mapping version the client last synced"),
    services: StreamServices = Depends(get_services),
):
    """Full catalog with the current mapping version.

    stale is true when the client's version predates the current mapping,
    meaning any stream IDs it cached must be refreshed.
    """
    sources = services.store.get_all()
    return LatestSourcesResponse(
        sources=[StreamSourceResponse.from_source(s) for s in sources],
        total=len(sources),
        mapping_version=services.registry.version,
        client_version=v,
        stale=v is not None and services.registry.is_stale(v),
    )


@router.get("/{stream_id}", response_model=StreamSourceResponse, response_model_by_alias=True)
def get_stream_source(stream_id: int, services: StreamServices = Depends(get_services)):
    source = services.store.get(stream_id)
    if source is None:
        raise HTTPException(status_code=404, detail="Stream source not found")
    return StreamSourceResponse.from_source(source)


@router.get(
    "/{stream_id}/playback", response_model=PlaybackResponse, response_model_by_alias=True
)
def get_playback(stream_id: int, services: StreamServices = Depends(get_services)):
    """Canonical URL plus a legacy-host alternate for player failover.

    404 when the stream is unknown or inactive.
    """
    url = services.store.url_for(stream_id)
    if url is None:
        raise HTTPException(status_code=404, detail="No active stream for this ID")
    return PlaybackResponse(
        stream_id=stream_id,
        url=url,
        alternate_url=services.template.alternate_host_url(url),
    )


@router.post(
    "", response_model=StreamSourceResponse, response_model_by_alias=True, status_code=201
)
def create_stream_source(
    request: StreamSourceCreate,
    services: StreamServices = Depends(get_services),
):
    """Create an override. 409 if one is already saved for the ID."""
    return _save(services, request.id, request.changes(), create_only=True)


@router.put("/{stream_id}", response_model=StreamSourceResponse, response_model_by_alias=True)
@router.patch("/{stream_id}", response_model=StreamSourceResponse, response_model_by_alias=True)
def update_stream_source(
    stream_id: int,
    request: StreamSourceUpdate,
    services: StreamServices = Depends(get_services),
):
    """Merge the supplied fields onto the stream source, creating it if needed."""
    return _save(services, stream_id, request.changes())


@router.delete("/{stream_id}", status_code=204)
def delete_stream_source(stream_id: int, services: StreamServices = Depends(get_services)):
    """Remove an override. Catalog IDs revert to their registry default."""
    try:
        existed = services.store.delete(stream_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except OSError as e:
        logger.error("[API] Could not persist delete of stream %d: %s", stream_id, e)
        raise HTTPException(status_code=500, detail="Could not persist stream source") from e
    if not existed:
        raise HTTPException(status_code=404, detail="No override saved for this stream")
    return Response(status_code=204)
