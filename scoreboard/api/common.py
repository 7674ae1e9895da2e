"""
Helpers shared by the API routers
"""
import logging

from fastapi import HTTPException

from scoreboard import state
from scoreboard.errors import (
    ConfirmationRequired, InvalidTransition, LastRoundError, NotFoundError, ScoreboardError, StoreError
)
from scoreboard.services.scoreboard import Scoreboard


logger = logging.getLogger(__name__)


def get_board() -> Scoreboard:
    """Loaded scoreboard session, 503 before startup finished"""
    if state.BOARD is None:
        raise HTTPException(status_code=503, detail="Scoreboard is not loaded")
    return state.BOARD


def to_http(exc: ScoreboardError, action: str) -> HTTPException:
    """
    Map a scoreboard failure to an HTTP error

    Store failures are logged here; the caches were left untouched by the
    service, and nothing is retried.
    """
    if isinstance(exc, StoreError):
        logger.error(f"❌ Error {action}: {exc}")
        return HTTPException(status_code=502, detail=f"Store error while {action}")
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, LastRoundError):
        return HTTPException(status_code=409, detail={"error": "last_round", "message": str(exc)})
    if isinstance(exc, ConfirmationRequired):
        return HTTPException(
            status_code=409,
            detail={"error": "confirmation_required", "message": str(exc)}
        )
    if isinstance(exc, InvalidTransition):
        return HTTPException(status_code=409, detail={"error": "invalid_transition", "message": str(exc)})

    logger.error(f"❌ Unexpected error {action}: {type(exc).__name__}: {exc}")
    return HTTPException(status_code=500, detail=f"Error while {action}")
