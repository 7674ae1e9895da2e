"""
View state for the scoreboard UI

Explicit state object replacing ad hoc UI flags:

    idle → editing_name     → idle   (save / cancel)
    idle → editing_score    → idle   (save / cancel)
    idle → adding_candidate → idle   (save / cancel)
    idle → adding_round     → idle   (save / cancel)

Round selection, the grand-total toggle, expansion of the non-podium rows
and celebration toggles are allowed in any mode.
"""
from typing import Optional, Set

from pydantic import BaseModel

from scoreboard.errors import InvalidTransition


IDLE = "idle"
EDITING_NAME = "editing_name"
EDITING_SCORE = "editing_score"
ADDING_CANDIDATE = "adding_candidate"
ADDING_ROUND = "adding_round"


class ViewState(BaseModel):
    """What the scoreboard view is currently showing and editing"""
    active_round_id: Optional[str] = None
    show_grand_total: bool = False
    mode: str = IDLE
    target_id: Optional[str] = None       # candidate being edited
    draft: str = ""                       # text in the open input
    letter_draft: str = ""                # letter input when adding a candidate
    expanded_others: bool = False
    celebrating_ranks: Set[int] = {1, 2, 3}

    def _begin(self, mode: str, target_id: Optional[str] = None, draft: str = "") -> None:
        if self.mode != IDLE:
            raise InvalidTransition(f"Cannot start {mode} while {self.mode}")
        self.mode = mode
        self.target_id = target_id
        self.draft = draft
        self.letter_draft = ""

    def start_edit_name(self, candidate_id: str, current_name: str) -> None:
        self._begin(EDITING_NAME, candidate_id, current_name)

    def start_edit_score(self, candidate_id: str, current_score: int) -> None:
        self._begin(EDITING_SCORE, candidate_id, str(current_score))

    def start_add_candidate(self) -> None:
        self._begin(ADDING_CANDIDATE)

    def start_add_round(self) -> None:
        self._begin(ADDING_ROUND)

    def set_draft(self, draft: str, letter: str = "") -> None:
        if self.mode == IDLE:
            raise InvalidTransition("No input is open")
        self.draft = draft
        if self.mode == ADDING_CANDIDATE:
            self.letter_draft = letter

    def finish(self) -> None:
        """Close the open input (after save or cancel)"""
        self.mode = IDLE
        self.target_id = None
        self.draft = ""
        self.letter_draft = ""

    def select_round(self, round_id: str) -> None:
        self.active_round_id = round_id
        self.show_grand_total = False

    def show_totals(self) -> None:
        self.show_grand_total = True
        self.active_round_id = None

    def toggle_others(self) -> bool:
        self.expanded_others = not self.expanded_others
        return self.expanded_others

    def toggle_celebration(self, rank: int) -> bool:
        """Flip celebration for a rank, returns the new flag"""
        if rank in self.celebrating_ranks:
            self.celebrating_ranks.discard(rank)
            return False
        self.celebrating_ranks.add(rank)
        return True
