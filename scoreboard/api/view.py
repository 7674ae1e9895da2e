"""
View state endpoints

Drive the edit / add inputs and display toggles of the scoreboard view.
"""
from fastapi import APIRouter

from scoreboard.api.common import get_board, to_http
from scoreboard.errors import ScoreboardError
from scoreboard.models import DraftUpdate


router = APIRouter(prefix="/view", tags=["view"])


def _view_data() -> dict:
    return get_board().view.model_dump()


@router.get("")
async def get_view():
    return _view_data()


@router.post("/edit-name/{candidate_id}")
async def start_edit_name(candidate_id: str):
    board = get_board()
    try:
        board.start_edit_name(candidate_id)
    except ScoreboardError as e:
        raise to_http(e, "opening name editor") from e
    return _view_data()


@router.post("/edit-score/{candidate_id}")
async def start_edit_score(candidate_id: str):
    """Open the score input; ignored when the candidate has no record yet"""
    board = get_board()
    try:
        board.start_edit_score(candidate_id)
    except ScoreboardError as e:
        raise to_http(e, "opening score editor") from e
    return _view_data()


@router.post("/add-candidate")
async def start_add_candidate():
    board = get_board()
    try:
        board.view.start_add_candidate()
    except ScoreboardError as e:
        raise to_http(e, "opening candidate form") from e
    return _view_data()


@router.post("/add-round")
async def start_add_round():
    board = get_board()
    try:
        board.view.start_add_round()
    except ScoreboardError as e:
        raise to_http(e, "opening round form") from e
    return _view_data()


@router.post("/draft")
async def set_draft(payload: DraftUpdate):
    board = get_board()
    try:
        board.view.set_draft(payload.draft, payload.letter)
    except ScoreboardError as e:
        raise to_http(e, "updating draft") from e
    return _view_data()


@router.post("/save")
async def save():
    """
    Persist the open input

    Response:
        {"saved": true|false, "result": {...}|null, "view": {...}}
    """
    board = get_board()
    try:
        result = await board.save_edit()
    except ScoreboardError as e:
        raise to_http(e, "saving edit") from e

    return {
        "saved": result is not None,
        "result": result.model_dump() if result is not None else None,
        "view": _view_data(),
    }


@router.post("/cancel")
async def cancel():
    get_board().view.finish()
    return _view_data()


@router.post("/toggle-others")
async def toggle_others():
    get_board().view.toggle_others()
    return _view_data()


@router.post("/celebrate/{rank}")
async def toggle_celebration(rank: int):
    get_board().view.toggle_celebration(rank)
    return _view_data()
