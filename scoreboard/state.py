"""
Global application state
Shared resources accessible across all modules
"""
from typing import Optional

from scoreboard.models import Settings
from scoreboard.services.scoreboard import Scoreboard
from scoreboard.store import RowStore

# Loaded at startup from config/scoreboard.yaml
SETTINGS: Settings = Settings()

# Row store backend, built at startup
STORE: Optional[RowStore] = None

# The scoreboard session driving the view
BOARD: Optional[Scoreboard] = None
