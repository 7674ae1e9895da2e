"""
FastAPI main application
Candidate Scoreboard - per-round and grand-total standings

Modular architecture with separated API routers in scoreboard/api/:
- health.py: Health check and system status
- rounds.py: Round management (add, rename, select, delete)
- candidates.py: Candidate management (add, rename, delete)
- scores.py: Point buttons and score overrides
- board.py: Round board and grand-total standings
- view.py: Edit inputs and display toggles
- config.py: Configuration retrieval

All routers access shared state via scoreboard.state module.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from scoreboard import state
from scoreboard.config import load_settings
from scoreboard.services.scoreboard import Scoreboard
from scoreboard.store import create_store

# Import all API routers
from scoreboard.api import health, rounds, candidates, scores, board, view
from scoreboard.api import config as config_router


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup: build the store and load the session caches
    state.SETTINGS = load_settings()
    state.STORE = create_store(state.SETTINGS.store)
    state.BOARD = Scoreboard(state.STORE, state.SETTINGS)
    try:
        await state.BOARD.load()
        logger.info(f"✅ Server started with {len(state.BOARD.candidates)} candidates")
    except Exception as e:
        logger.error(f"❌ Failed to load scoreboard: {e}")
        await state.STORE.close()
        raise

    yield

    # Shutdown
    await state.STORE.close()
    state.BOARD = None
    state.STORE = None
    logger.info("🛑 Server shutting down")


# Create FastAPI app
app = FastAPI(
    title="Candidate Scoreboard",
    description="Per-round and cumulative candidate scoring with medal rankings",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== INCLUDE ROUTERS ====================

# Health check (GET /)
app.include_router(health.router)

# Rounds (GET/POST /rounds, PATCH/DELETE /rounds/{id}, POST /rounds/{id}/select)
app.include_router(rounds.router)

# Candidates (GET/POST /candidates, PATCH/DELETE /candidates/{id})
app.include_router(candidates.router)

# Scores (POST /scores/{id}/add, PUT /scores/{id})
app.include_router(scores.router)

# Boards (GET /board, GET/POST /board/grand-total)
app.include_router(board.router)

# View state (GET /view, POST /view/...)
app.include_router(view.router)

# Config endpoint (GET /config)
app.include_router(config_router.router)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
