"""API routes for the mapping version history."""

from sqlite3 import Connection

from fastapi import APIRouter, Depends, HTTPException

from streamarr.api.dependencies import get_connection, get_services
from streamarr.api.models import (
    MappingVersionCreate,
    MappingVersionListResponse,
    MappingVersionResponse,
)
from streamarr.database.mapping_versions import (
    list_mapping_versions,
    record_mapping_version,
)
from streamarr.services import StreamServices

router = APIRouter(prefix="/mapping-versions", tags=["Mapping Versions"])


@router.get("", response_model=MappingVersionListResponse, response_model_by_alias=True)
def list_versions(
    services: StreamServices = Depends(get_services),
    conn: Connection = Depends(get_connection),
):
    """Recorded renumbering events, oldest first."""
    records = list_mapping_versions(conn)
    return MappingVersionListResponse(
        versions=[
            MappingVersionResponse(version=r.version, note=r.note, created_at=r.created_at)
            for r in records
        ],
        current=services.registry.version,
        latest_recorded=records[-1].version if records else None,
    )


@router.post(
    "", response_model=MappingVersionResponse, response_model_by_alias=True, status_code=201
)
def create_version(request: MappingVersionCreate, conn: Connection = Depends(get_connection)):
    """Record a renumbering event. 409 unless above every recorded version."""
    try:
        record_mapping_version(conn, request.version, request.note)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return MappingVersionResponse(version=request.version, note=request.note)
