"""
Configuration endpoints
"""
from fastapi import APIRouter

from scoreboard import state


router = APIRouter(tags=["config"])


@router.get("/config")
async def get_config():
    """Get the point buttons, colour themes and store backend in use"""
    settings = state.SETTINGS
    return {
        "increments": settings.increments,
        "color_themes": settings.color_themes,
        "default_round_name": settings.default_round_name,
        "store_backend": settings.store.backend,
    }
