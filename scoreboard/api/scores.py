"""
Score endpoints for the active round
"""
from fastapi import APIRouter

from scoreboard.api.common import get_board, to_http
from scoreboard.errors import ScoreboardError
from scoreboard.models import PointsRequest, ScoreOverride


router = APIRouter(prefix="/scores", tags=["scores"])


@router.post("/{candidate_id}/add")
async def add_points(candidate_id: str, payload: PointsRequest):
    """
    Add points to a candidate in the active round

    Request:
        {"points": 5}   # one of the configured increments
    """
    board = get_board()
    try:
        record = await board.add_points(candidate_id, payload.points)
    except ScoreboardError as e:
        raise to_http(e, "updating score") from e

    if record is None:
        return {"saved": False}
    return {"saved": True, "record": record.model_dump()}


@router.put("/{candidate_id}")
async def set_score(candidate_id: str, payload: ScoreOverride):
    """
    Override a candidate's score in the active round

    Request:
        {"value": "42"}   # non-numeric text is ignored
    """
    board = get_board()
    try:
        record = await board.set_score(candidate_id, payload.value)
    except ScoreboardError as e:
        raise to_http(e, "updating candidate score") from e

    if record is None:
        return {"saved": False}
    return {"saved": True, "record": record.model_dump()}
