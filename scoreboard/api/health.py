"""
Health check and system status endpoints
"""
from fastapi import APIRouter
from scoreboard import state


router = APIRouter(tags=["health"])


@router.get("/")
async def health_check():
    """Health check endpoint"""
    board = state.BOARD
    return {
        "status": "ok" if board is not None else "loading",
        "message": "Candidate Scoreboard",
        "version": "1.0.0",
        "total_rounds": len(board.rounds) if board else 0,
        "total_candidates": len(board.candidates) if board else 0,
    }
