"""Candidate management endpoints"""
from fastapi import APIRouter

from scoreboard.api.common import get_board, to_http
from scoreboard.errors import ScoreboardError
from scoreboard.models import NameUpdate, NewCandidate


router = APIRouter(prefix="/candidates", tags=["candidates"])


@router.get("")
async def list_candidates():
    board = get_board()
    return {"candidates": [c.model_dump() for c in board.candidates]}


@router.post("")
async def add_candidate(payload: NewCandidate):
    board = get_board()
    try:
        candidate = await board.add_candidate(payload.name, payload.letter)
    except ScoreboardError as e:
        raise to_http(e, "adding candidate") from e

    if candidate is None:
        return {"saved": False}
    return {"saved": True, "candidate": candidate.model_dump()}


@router.patch("/{candidate_id}")
async def rename_candidate(candidate_id: str, payload: NameUpdate):
    board = get_board()
    try:
        candidate = await board.rename_candidate(candidate_id, payload.name)
    except ScoreboardError as e:
        raise to_http(e, "updating candidate name") from e

    if candidate is None:
        return {"saved": False}
    return {"saved": True, "candidate": candidate.model_dump()}


@router.delete("/{candidate_id}")
async def delete_candidate(candidate_id: str, confirm: bool = False):
    board = get_board()
    try:
        candidate = await board.delete_candidate(candidate_id, confirm=confirm)
    except ScoreboardError as e:
        raise to_http(e, "deleting candidate") from e

    return {
        "success": True,
        "deleted_candidate_id": candidate.id,
        "message": f"{candidate.name} removed."
    }
