"""
Round management endpoints
"""
from fastapi import APIRouter

from scoreboard.api.common import get_board, to_http
from scoreboard.errors import ScoreboardError
from scoreboard.models import NameUpdate, NewRound


router = APIRouter(prefix="/rounds", tags=["rounds"])


@router.get("")
async def list_rounds():
    """List rounds in creation order"""
    board = get_board()
    return {
        "rounds": [r.model_dump() for r in board.rounds],
        "active_round_id": board.view.active_round_id,
        "can_delete": len(board.rounds) > 1,
    }


@router.post("")
async def add_round(payload: NewRound):
    """
    Add a round; it becomes the active round

    Request:
        {"name": "Semi Final"}   # blank → "Round N"
    """
    board = get_board()
    try:
        rnd = await board.add_round(payload.name)
    except ScoreboardError as e:
        raise to_http(e, "adding round") from e

    return {
        "success": True,
        "round": rnd.model_dump(),
        "active_round_id": board.view.active_round_id,
    }


@router.patch("/{round_id}")
async def rename_round(round_id: str, payload: NameUpdate):
    board = get_board()
    try:
        rnd = await board.rename_round(round_id, payload.name)
    except ScoreboardError as e:
        raise to_http(e, "renaming round") from e

    if rnd is None:
        return {"saved": False}
    return {"saved": True, "round": rnd.model_dump()}


@router.post("/{round_id}/select")
async def select_round(round_id: str):
    """Make a round active and leave the grand-total view"""
    board = get_board()
    try:
        rnd = await board.select_round(round_id)
    except ScoreboardError as e:
        raise to_http(e, "loading round scores") from e

    return {"active_round_id": rnd.id, "round_name": rnd.name}


@router.delete("/{round_id}")
async def delete_round(round_id: str, confirm: bool = False):
    """
    Delete a round and all its scores

    The last remaining round can never be deleted. Pass ?confirm=true to
    acknowledge that the round's scores are removed permanently.
    """
    board = get_board()
    try:
        rnd = await board.delete_round(round_id, confirm=confirm)
    except ScoreboardError as e:
        raise to_http(e, "deleting round") from e

    return {
        "success": True,
        "deleted_round_id": rnd.id,
        "active_round_id": board.view.active_round_id,
        "message": f"{rnd.name} deleted."
    }
