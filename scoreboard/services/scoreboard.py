"""
Scoreboard service - session caches over the row store

The store is the source of truth. This service keeps the rounds, candidates
and score records of the current session in memory, mutates the store record
by record, and patches the caches only after the store call succeeded.
"""
import logging
from typing import List, Optional

from scoreboard.core import view_state
from scoreboard.core.view_state import ViewState
from scoreboard.errors import (
    ConfirmationRequired, InvalidTransition, LastRoundError, NotFoundError
)
from scoreboard.models import Candidate, Round, ScoreRecord, Settings
from scoreboard.store import CANDIDATES, CREATION_ORDER, ROUNDS, SCORES, RowStore
from scoreboard.utils import clean_letter, next_round_name, parse_score_input


logger = logging.getLogger(__name__)


def creation_key(item):
    """Creation order: timestamp, then per-row ordinal, then id"""
    return (item.created_at or "", item.seq if item.seq is not None else 0, item.id)


class Scoreboard:
    """
    Rounds, candidates and scores of one scoreboard session

    Args:
        store: Row store backend
        settings: Increments, colour themes and seed data
    """

    def __init__(self, store: RowStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings()
        self.rounds: List[Round] = []
        self.candidates: List[Candidate] = []
        self.scores: List[ScoreRecord] = []
        self.view = ViewState()

    # ==================== LOOKUPS ====================

    def get_round(self, round_id: str) -> Round:
        for rnd in self.rounds:
            if rnd.id == round_id:
                return rnd
        raise NotFoundError(f"Round {round_id} not found")

    def get_candidate(self, candidate_id: str) -> Candidate:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        raise NotFoundError(f"Candidate {candidate_id} not found")

    def round_records(self, round_id: Optional[str]) -> List[ScoreRecord]:
        """Cached score records of one round"""
        return [s for s in self.scores if s.round_id == round_id]

    def find_record(self, round_id: str, candidate_id: str) -> Optional[ScoreRecord]:
        for record in self.scores:
            if record.round_id == round_id and record.candidate_id == candidate_id:
                return record
        return None

    # ==================== LOADING ====================

    async def load(self) -> None:
        """Fetch rounds and candidates, seed a first run, activate the first round"""
        round_rows = await self.store.list(ROUNDS, order_by=CREATION_ORDER)
        if not round_rows:
            round_rows = await self.store.insert(ROUNDS, [{"name": self.settings.default_round_name}])
            logger.info(f"🌱 Created default round '{self.settings.default_round_name}'")

        candidate_rows = await self.store.list(CANDIDATES, order_by=CREATION_ORDER)
        if not candidate_rows:
            themes = self.settings.color_themes
            seed = [
                {"name": c.name, "letter": c.letter, "color_theme": themes[idx % len(themes)]}
                for idx, c in enumerate(self.settings.seed_candidates)
            ]
            candidate_rows = await self.store.insert(CANDIDATES, seed) if seed else []
            logger.info(f"🌱 Created {len(candidate_rows)} default candidates")

        # Re-sort locally so ties never depend on the order rows arrive in
        self.rounds = sorted((Round(**r) for r in round_rows), key=creation_key)
        self.candidates = sorted((Candidate(**c) for c in candidate_rows), key=creation_key)
        await self.refresh_scores()
        await self.select_round(self.rounds[0].id)

        logger.info(
            f"✅ Loaded {len(self.rounds)} rounds, {len(self.candidates)} candidates, "
            f"{len(self.scores)} score records"
        )

    async def refresh_scores(self) -> None:
        """Re-fetch every score record"""
        rows = await self.store.list(SCORES, order_by=CREATION_ORDER)
        self.scores = [ScoreRecord(**r) for r in rows]

    async def ensure_round_scores(self, round_id: str) -> int:
        """
        Give every candidate a score record in a round

        Check-then-insert: only missing (round, candidate) pairs get a
        0 record, so running it again creates nothing.

        Returns:
            Number of records created
        """
        existing = await self.store.list(SCORES, filters={"round_id": round_id})
        have = {r["candidate_id"] for r in existing}
        missing = [
            {"round_id": round_id, "candidate_id": c.id, "score": 0}
            for c in self.candidates if c.id not in have
        ]
        if missing:
            await self.store.insert(SCORES, missing)
            logger.info(f"➕ Backfilled {len(missing)} score records for round {round_id}")

        rows = await self.store.list(SCORES, filters={"round_id": round_id}, order_by=CREATION_ORDER)
        self.scores = [s for s in self.scores if s.round_id != round_id]
        self.scores.extend(ScoreRecord(**r) for r in rows)
        return len(missing)

    async def ensure_candidate_scores(self, candidate_id: str) -> int:
        """
        Give a candidate a score record in every round (idempotent)

        Returns:
            Number of records created
        """
        created = 0
        for rnd in self.rounds:
            existing = await self.store.list(
                SCORES, filters={"round_id": rnd.id, "candidate_id": candidate_id}
            )
            if existing:
                continue
            rows = await self.store.insert(
                SCORES, [{"round_id": rnd.id, "candidate_id": candidate_id, "score": 0}]
            )
            self.scores.extend(ScoreRecord(**r) for r in rows)
            created += len(rows)

        if created:
            logger.info(f"➕ Backfilled {created} score records for candidate {candidate_id}")
        return created

    # ==================== NAVIGATION ====================

    async def select_round(self, round_id: str) -> Round:
        """Activate a round and load its scores, creating missing records"""
        rnd = self.get_round(round_id)
        self.view.select_round(round_id)
        await self.ensure_round_scores(round_id)
        return rnd

    async def show_grand_total(self) -> None:
        """Switch to the cumulative view and re-fetch all rounds' scores"""
        self.view.show_totals()
        await self.refresh_scores()

    # ==================== SCORES ====================

    async def _write_score(self, record: ScoreRecord, new_score: int) -> ScoreRecord:
        await self.store.update(SCORES, record.id, {"score": new_score})
        record.score = new_score
        return record

    async def _active_record(self, candidate_id: str) -> Optional[ScoreRecord]:
        round_id = self.view.active_round_id
        if not round_id:
            return None
        self.get_candidate(candidate_id)

        record = self.find_record(round_id, candidate_id)
        if record is None:
            await self.ensure_round_scores(round_id)
            record = self.find_record(round_id, candidate_id)
        return record

    async def add_points(self, candidate_id: str, points: int) -> Optional[ScoreRecord]:
        """
        Add one of the configured increments to a candidate's active-round score

        Returns:
            Updated record, or None when there is no active round or the
            increment is not offered
        """
        if points not in self.settings.increments:
            logger.warning(f"⚠️ Ignoring unsupported increment {points}")
            return None

        record = await self._active_record(candidate_id)
        if record is None:
            return None

        return await self._write_score(record, record.score + points)

    async def set_score(self, candidate_id: str, text: str) -> Optional[ScoreRecord]:
        """
        Replace a candidate's active-round score with typed text

        Returns:
            Updated record, or None when the text is not a number
        """
        new_score = parse_score_input(text)
        if new_score is None:
            logger.info(f"Ignoring non-numeric score input {text!r}")
            return None

        record = await self._active_record(candidate_id)
        if record is None:
            return None

        return await self._write_score(record, new_score)

    # ==================== CANDIDATES ====================

    async def add_candidate(self, name: str, letter: str) -> Optional[Candidate]:
        """
        Create a candidate and give it a 0 score in every round

        Returns:
            The new candidate, or None when name or letter is blank
        """
        name = (name or "").strip()
        letter = clean_letter(letter)
        if not name or not letter:
            return None

        themes = self.settings.color_themes
        theme = themes[len(self.candidates) % len(themes)]
        rows = await self.store.insert(
            CANDIDATES, [{"name": name, "letter": letter, "color_theme": theme}]
        )
        candidate = Candidate(**rows[0])
        self.candidates.append(candidate)
        logger.info(f"👤 Added candidate {candidate.name} ({candidate.letter})")

        await self.ensure_candidate_scores(candidate.id)
        return candidate

    async def rename_candidate(self, candidate_id: str, name: str) -> Optional[Candidate]:
        """Rename a candidate, blank names are ignored"""
        candidate = self.get_candidate(candidate_id)
        name = (name or "").strip()
        if not name:
            return None

        await self.store.update(CANDIDATES, candidate_id, {"name": name})
        candidate.name = name
        return candidate

    async def delete_candidate(self, candidate_id: str, confirm: bool = False) -> Candidate:
        """
        Delete a candidate and, through the store cascade, all its scores

        Raises:
            NotFoundError: Unknown candidate
            ConfirmationRequired: confirm was not given
        """
        candidate = self.get_candidate(candidate_id)
        if not confirm:
            raise ConfirmationRequired(
                f"Are you sure you want to remove {candidate.name}? This will delete all "
                f"their scores across all rounds. This action cannot be undone."
            )

        await self.store.delete(CANDIDATES, candidate_id)
        self.candidates = [c for c in self.candidates if c.id != candidate_id]
        if self.view.target_id == candidate_id:
            self.view.finish()
        await self.refresh_scores()
        logger.info(f"🗑️ Deleted candidate {candidate.name}")
        return candidate

    # ==================== ROUNDS ====================

    async def add_round(self, name: str = "") -> Round:
        """
        Create a round, make it active and give every candidate a 0 score

        A blank name defaults to "Round N+1".
        """
        name = (name or "").strip() or next_round_name(len(self.rounds))
        rows = await self.store.insert(ROUNDS, [{"name": name}])
        rnd = Round(**rows[0])
        self.rounds.append(rnd)
        logger.info(f"🆕 Added round {rnd.name}")

        await self.select_round(rnd.id)
        return rnd

    async def rename_round(self, round_id: str, name: str) -> Optional[Round]:
        rnd = self.get_round(round_id)
        name = (name or "").strip()
        if not name:
            return None

        await self.store.update(ROUNDS, round_id, {"name": name})
        rnd.name = name
        return rnd

    async def delete_round(self, round_id: str, confirm: bool = False) -> Round:
        """
        Delete a round and its scores

        Raises:
            LastRoundError: Only one round exists (checked before any store call)
            NotFoundError: Unknown round
            ConfirmationRequired: confirm was not given
        """
        if len(self.rounds) == 1:
            logger.warning("⚠️ Refusing to delete the last round")
            raise LastRoundError()

        rnd = self.get_round(round_id)
        if not confirm:
            raise ConfirmationRequired(
                f"Are you sure you want to delete {rnd.name}? This will permanently delete "
                f"all scores for this round. This action cannot be undone."
            )

        await self.store.delete(ROUNDS, round_id)
        self.rounds = [r for r in self.rounds if r.id != round_id]
        self.scores = [s for s in self.scores if s.round_id != round_id]
        logger.info(f"🗑️ Deleted round {rnd.name}")

        if self.view.active_round_id == round_id:
            await self.select_round(self.rounds[0].id)
        return rnd

    # ==================== EDITING ====================

    def start_edit_score(self, candidate_id: str) -> bool:
        """Open the score input, only when the active round has a record"""
        self.get_candidate(candidate_id)
        record = self.find_record(self.view.active_round_id, candidate_id)
        if record is None:
            return False
        self.view.start_edit_score(candidate_id, record.score)
        return True

    def start_edit_name(self, candidate_id: str) -> None:
        candidate = self.get_candidate(candidate_id)
        self.view.start_edit_name(candidate_id, candidate.name)

    async def save_edit(self):
        """
        Persist the open input and close it

        Invalid input closes the input without saving, except for a new
        candidate, whose form stays open until both fields are filled.
        A store failure leaves the input open.

        Returns:
            The saved object, or None when nothing was persisted
        """
        view = self.view
        if view.mode == view_state.IDLE:
            raise InvalidTransition("Nothing to save")

        if view.mode == view_state.EDITING_NAME:
            result = await self.rename_candidate(view.target_id, view.draft)
        elif view.mode == view_state.EDITING_SCORE:
            result = await self.set_score(view.target_id, view.draft)
        elif view.mode == view_state.ADDING_CANDIDATE:
            result = await self.add_candidate(view.draft, view.letter_draft)
            if result is None:
                return None
        else:
            result = await self.add_round(view.draft)

        view.finish()
        return result
