"""
Data models for the scoreboard server
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class Round(BaseModel):
    """A named scoring period"""
    id: str
    name: str
    seq: Optional[int] = None         # per-row creation ordinal
    created_at: Optional[str] = None


class Candidate(BaseModel):
    """A scored candidate"""
    id: str
    name: str
    letter: str               # single upper-case letter, avatar label + board sort key
    color_theme: str          # assigned at creation, never reassigned
    seq: Optional[int] = None         # per-row creation ordinal
    created_at: Optional[str] = None


class ScoreRecord(BaseModel):
    """Mutable score for one (round, candidate) pair"""
    id: str
    round_id: str
    candidate_id: str
    score: int = 0
    seq: Optional[int] = None         # per-row creation ordinal
    created_at: Optional[str] = None


class Badge(BaseModel):
    """Medal shown next to a top-3 positional rank"""
    icon: str                 # "trophy" | "medal"
    tier: str                 # "gold" | "silver" | "bronze"
    label: str                # "1st" | "2nd" | "3rd"


class SeedCandidate(BaseModel):
    name: str
    letter: str


class StoreSettings(BaseModel):
    """Row store backend selection"""
    backend: str = "memory"   # "memory" | "rest"
    url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 10.0


class Settings(BaseModel):
    """Scoreboard configuration"""
    store: StoreSettings = StoreSettings()
    increments: List[int] = Field(default=[1, 2, 5, 10], min_length=1)
    color_themes: List[str] = Field(default=[
        "from-yellow-400 to-orange-500",
        "from-orange-400 to-pink-500",
        "from-cyan-400 to-teal-500",
        "from-purple-400 to-indigo-500",
        "from-green-400 to-blue-500",
        "from-red-400 to-pink-500",
        "from-blue-400 to-purple-500",
        "from-indigo-400 to-gray-500",
    ], min_length=1)
    default_round_name: str = "Round 1"
    seed_candidates: List[SeedCandidate] = [
        SeedCandidate(name=f"Candidate {letter}", letter=letter)
        for letter in "ABCDEF"
    ]

    @field_validator("increments")
    @classmethod
    def increments_positive(cls, value: List[int]) -> List[int]:
        if any(points <= 0 for points in value):
            raise ValueError("increments must be positive")
        return value


# ==================== REQUEST PAYLOADS ====================

class NameUpdate(BaseModel):
    name: str


class NewRound(BaseModel):
    name: str = ""


class NewCandidate(BaseModel):
    name: str
    letter: str


class PointsRequest(BaseModel):
    points: int


class ScoreOverride(BaseModel):
    """Raw text typed into the score field"""
    value: str


class DraftUpdate(BaseModel):
    draft: str = ""
    letter: str = ""


# ==================== BOARD ROWS ====================

class BoardEntry(BaseModel):
    """One candidate card on a board"""
    candidate_id: str
    name: str
    letter: str
    color_theme: str
    score: int
    rank: int
    badge: Optional[Badge] = None
    percentage: Optional[float] = None    # grand total only: share of leader score
    celebrating: Optional[bool] = None    # grand total only
