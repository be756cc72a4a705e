"""API route for resolving a game to its stream URLs."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from streamarr.api.dependencies import get_services
from streamarr.api.models import GameStreamsRequest, GameStreamsResponse
from streamarr.services import StreamServices

router = APIRouter(prefix="/games", tags=["Games"])


@router.post("/streams", response_model=GameStreamsResponse, response_model_by_alias=True)
def resolve_game_streams(
    request: GameStreamsRequest,
    services: StreamServices = Depends(get_services),
):
    """Resolve home and away stream URLs for a game.

    Responds 404 with code no_stream_available when neither side matched;
    the body still carries the per-side diagnostics.
    """
    result = services.resolver.resolve(request.to_game_dict())
    response = GameStreamsResponse.from_result(result)
    if not result.has_stream:
        return JSONResponse(
            status_code=404,
            content={
                "code": "no_stream_available",
                "detail": "No stream available for this game",
                **response.model_dump(mode="json", by_alias=True),
            },
        )
    return response
