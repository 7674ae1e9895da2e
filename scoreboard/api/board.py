"""
Board endpoints
"""
from fastapi import APIRouter

from scoreboard.api.common import get_board, to_http
from scoreboard.errors import ScoreboardError
from scoreboard.services.leaderboard import get_grand_total_board, get_round_board


router = APIRouter(prefix="/board", tags=["board"])


@router.get("")
async def round_board():
    """
    Active round board

    Returns cards ordered by letter with:
    - Round score, positional rank, medal badge
    - Colour theme
    - Total score across all candidates
    """
    return get_round_board(get_board())


@router.get("/grand-total")
async def grand_total_board():
    """Cumulative standings (podium + others) from the cached records"""
    return get_grand_total_board(get_board())


@router.post("/grand-total")
async def show_grand_total():
    """Switch to the grand-total view, re-fetching every round's scores"""
    board = get_board()
    try:
        await board.show_grand_total()
    except ScoreboardError as e:
        raise to_http(e, "loading all round scores") from e

    return get_grand_total_board(board)
