"""
Tests for the scoreboard service: mutations, backfill and guarded deletes
"""
import asyncio

import httpx
import pytest

from scoreboard.core import view_state
from scoreboard.core.ranking import grand_total, rank_candidates
from scoreboard.errors import (
    ConfirmationRequired, InvalidTransition, LastRoundError, NotFoundError, StoreError
)
from scoreboard.models import SeedCandidate, Settings
from scoreboard.services.scoreboard import Scoreboard
from scoreboard.store import CANDIDATES, ROUNDS, SCORES, MemoryRowStore, RestRowStore


class RecordingStore(MemoryRowStore):
    """Memory store that logs mutating calls and can be made to fail"""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.fail = False

    async def insert(self, table, records):
        self.calls.append(("insert", table))
        return await super().insert(table, records)

    async def update(self, table, record_id, patch):
        self.calls.append(("update", table))
        if self.fail:
            raise StoreError("service unavailable")
        return await super().update(table, record_id, patch)

    async def delete(self, table, record_id):
        self.calls.append(("delete", table))
        if self.fail:
            raise StoreError("service unavailable")
        return await super().delete(table, record_id)


def make_settings(*letters):
    return Settings(
        seed_candidates=[SeedCandidate(name=f"Candidate {l}", letter=l) for l in letters]
    )


async def loaded_board(*letters):
    board = Scoreboard(RecordingStore(), make_settings(*letters))
    await board.load()
    return board


def by_letter(board, letter):
    return next(c for c in board.candidates if c.letter == letter)


def grand_ranks(board):
    return rank_candidates(board.candidates, lambda cid: grand_total(cid, board.scores))


def test_first_run_seeds_round_and_candidates():
    """Empty store → one default round, seeded candidates, 0 scores"""
    async def scenario():
        board = await loaded_board("A", "B", "C")
        assert [r.name for r in board.rounds] == ["Round 1"]
        assert [c.letter for c in board.candidates] == ["A", "B", "C"]
        assert board.view.active_round_id == board.rounds[0].id
        assert len(board.scores) == 3
        assert all(s.score == 0 for s in board.scores)

    asyncio.run(scenario())


def test_seed_assigns_color_themes_in_order():
    async def scenario():
        board = await loaded_board(*"ABCDEFGHI")
        themes = board.settings.color_themes
        assert board.candidates[0].color_theme == themes[0]
        assert board.candidates[8].color_theme == themes[0]   # wraps after 8
        assert board.candidates[1].color_theme == themes[1]

    asyncio.run(scenario())


def test_load_existing_data_does_not_reseed():
    async def scenario():
        store = RecordingStore()
        first = Scoreboard(store, make_settings("A", "B"))
        await first.load()
        await first.add_round("Second")

        again = Scoreboard(store, make_settings("X", "Y", "Z"))
        await again.load()
        assert [r.name for r in again.rounds] == ["Round 1", "Second"]
        assert [c.letter for c in again.candidates] == ["A", "B"]
        assert again.view.active_round_id == again.rounds[0].id

    asyncio.run(scenario())


def test_scenario_points_rounds_and_override():
    """A:0, B:0 in R1 → +5 to A → add R2 → set B's R1 score to 10"""
    async def scenario():
        board = await loaded_board("A", "B")
        a, b = by_letter(board, "A"), by_letter(board, "B")
        r1 = board.rounds[0]

        await board.add_points(a.id, 5)
        assert grand_total(a.id, board.scores) == 5
        assert grand_total(b.id, board.scores) == 0
        assert grand_ranks(board) == {a.id: 1, b.id: 2}

        r2 = await board.add_round("R2")
        assert board.view.active_round_id == r2.id
        assert grand_total(a.id, board.scores) == 5
        assert grand_total(b.id, board.scores) == 0
        assert len(board.round_records(r2.id)) == 2

        await board.select_round(r1.id)
        await board.set_score(b.id, "10")
        assert grand_ranks(board) == {a.id: 2, b.id: 1}

    asyncio.run(scenario())


def test_mutation_persists_before_cache():
    """Store and cache agree after a successful mutation"""
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        record = await board.add_points(a.id, 10)
        assert record.score == 10

        stored = await board.store.list(SCORES, filters={"id": record.id})
        assert stored[0]["score"] == 10

    asyncio.run(scenario())


def test_store_failure_leaves_cache_unchanged():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        await board.add_points(a.id, 2)

        board.store.fail = True
        with pytest.raises(StoreError):
            await board.add_points(a.id, 5)
        with pytest.raises(StoreError):
            await board.set_score(a.id, "99")

        record = board.find_record(board.view.active_round_id, a.id)
        assert record.score == 2
        stored = await board.store.list(SCORES, filters={"id": record.id})
        assert stored[0]["score"] == 2

    asyncio.run(scenario())


def test_unsupported_increment_ignored():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        assert await board.add_points(a.id, 3) is None
        assert ("update", SCORES) not in board.store.calls

    asyncio.run(scenario())


def test_set_score_non_numeric_ignored():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        assert await board.set_score(a.id, "abc") is None
        assert ("update", SCORES) not in board.store.calls

        record = await board.set_score(a.id, " -4 ")
        assert record.score == -4

    asyncio.run(scenario())


def test_points_without_active_round_ignored():
    """In the grand-total view there is no active round to score"""
    async def scenario():
        board = await loaded_board("A")
        await board.show_grand_total()
        assert board.view.show_grand_total
        assert await board.add_points(board.candidates[0].id, 1) is None

    asyncio.run(scenario())


def test_points_for_unknown_candidate():
    async def scenario():
        board = await loaded_board("A")
        with pytest.raises(NotFoundError):
            await board.add_points("missing", 1)

    asyncio.run(scenario())


def test_missing_record_created_lazily():
    """A pairing missing from the store is created on first use"""
    async def scenario():
        board = await loaded_board("A", "B")
        a = by_letter(board, "A")
        store = board.store
        store.tables[SCORES] = [r for r in store.tables[SCORES] if r["candidate_id"] != a.id]
        board.scores = [s for s in board.scores if s.candidate_id != a.id]

        record = await board.add_points(a.id, 2)
        assert record.score == 2
        assert len(await store.list(SCORES, filters={"candidate_id": a.id})) == 1

    asyncio.run(scenario())


def test_round_backfill_idempotent():
    async def scenario():
        board = await loaded_board("A", "B", "C")
        rnd = await board.add_round("R2")
        count = len(await board.store.list(SCORES))
        assert count == 6

        assert await board.ensure_round_scores(rnd.id) == 0
        assert len(await board.store.list(SCORES)) == count
        assert len(board.scores) == count

    asyncio.run(scenario())


def test_candidate_backfill_every_round():
    async def scenario():
        board = await loaded_board("A")
        await board.add_round("R2")
        await board.add_round("R3")

        d = await board.add_candidate("  Dana ", "d")
        assert d.name == "Dana"
        assert d.letter == "D"
        records = await board.store.list(SCORES, filters={"candidate_id": d.id})
        assert len(records) == 3
        assert all(r["score"] == 0 for r in records)

        assert await board.ensure_candidate_scores(d.id) == 0
        assert len(await board.store.list(SCORES)) == 6

    asyncio.run(scenario())


def test_add_candidate_blank_ignored():
    async def scenario():
        board = await loaded_board("A")
        assert await board.add_candidate("", "B") is None
        assert await board.add_candidate("Bob", "  ") is None
        assert len(board.candidates) == 1

    asyncio.run(scenario())


def test_add_candidate_theme_follows_count():
    async def scenario():
        board = await loaded_board("A", "B")
        c = await board.add_candidate("Cleo", "cx")
        assert c.letter == "C"
        assert c.color_theme == board.settings.color_themes[2]

    asyncio.run(scenario())


def test_rename_candidate():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        assert await board.rename_candidate(a.id, "   ") is None
        renamed = await board.rename_candidate(a.id, " Alice ")
        assert renamed.name == "Alice"
        stored = await board.store.list(CANDIDATES, filters={"id": a.id})
        assert stored[0]["name"] == "Alice"

    asyncio.run(scenario())


def test_delete_candidate_requires_confirmation():
    async def scenario():
        board = await loaded_board("A", "B")
        a = by_letter(board, "A")
        with pytest.raises(ConfirmationRequired, match="Candidate A"):
            await board.delete_candidate(a.id)
        assert len(board.candidates) == 2
        assert ("delete", CANDIDATES) not in board.store.calls

    asyncio.run(scenario())


def test_delete_candidate_keeps_other_totals():
    """Deleting a scored candidate leaves no orphan rows and other totals intact"""
    async def scenario():
        board = await loaded_board("A", "B", "C")
        a, b, c = (by_letter(board, l) for l in "ABC")
        await board.add_points(a.id, 5)
        await board.add_points(b.id, 10)
        await board.add_round("R2")
        await board.add_points(b.id, 2)
        await board.add_points(c.id, 1)

        await board.delete_candidate(b.id, confirm=True)

        assert [x.letter for x in board.candidates] == ["A", "C"]
        assert grand_total(a.id, board.scores) == 5
        assert grand_total(c.id, board.scores) == 1
        assert grand_total(b.id, board.scores) == 0
        assert await board.store.list(SCORES, filters={"candidate_id": b.id}) == []

    asyncio.run(scenario())


def test_delete_last_round_rejected_before_store_call():
    async def scenario():
        board = await loaded_board("A")
        with pytest.raises(LastRoundError, match="last round"):
            await board.delete_round(board.rounds[0].id, confirm=True)
        assert ("delete", ROUNDS) not in board.store.calls
        assert len(board.rounds) == 1

    asyncio.run(scenario())


def test_delete_active_round_reassigns():
    async def scenario():
        board = await loaded_board("A")
        first = board.rounds[0]
        second = await board.add_round("")
        assert second.name == "Round 2"
        assert board.view.active_round_id == second.id

        await board.delete_round(second.id, confirm=True)
        assert board.view.active_round_id == first.id
        assert [r.id for r in board.rounds] == [first.id]
        assert board.round_records(second.id) == []

    asyncio.run(scenario())


def test_delete_inactive_round_keeps_active():
    async def scenario():
        board = await loaded_board("A")
        first = board.rounds[0]
        second = await board.add_round("R2")
        await board.delete_round(first.id, confirm=True)
        assert board.view.active_round_id == second.id

    asyncio.run(scenario())


def test_delete_round_needs_confirmation():
    async def scenario():
        board = await loaded_board("A")
        second = await board.add_round("R2")
        with pytest.raises(ConfirmationRequired, match="R2"):
            await board.delete_round(second.id)
        assert len(board.rounds) == 2

    asyncio.run(scenario())


def test_failed_round_delete_keeps_cache():
    async def scenario():
        board = await loaded_board("A")
        second = await board.add_round("R2")
        board.store.fail = True
        with pytest.raises(StoreError):
            await board.delete_round(second.id, confirm=True)
        assert len(board.rounds) == 2
        assert board.view.active_round_id == second.id

    asyncio.run(scenario())


def test_rename_round():
    async def scenario():
        board = await loaded_board("A")
        rnd = board.rounds[0]
        assert await board.rename_round(rnd.id, "") is None
        assert (await board.rename_round(rnd.id, "Opening")).name == "Opening"
        with pytest.raises(NotFoundError):
            await board.rename_round("missing", "x")

    asyncio.run(scenario())


def test_save_edit_score_flow():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        await board.add_points(a.id, 5)

        assert board.start_edit_score(a.id)
        assert board.view.mode == view_state.EDITING_SCORE
        assert board.view.draft == "5"

        board.view.set_draft("12")
        record = await board.save_edit()
        assert record.score == 12
        assert board.view.mode == view_state.IDLE

    asyncio.run(scenario())


def test_save_edit_invalid_score_closes():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        board.start_edit_score(a.id)
        board.view.set_draft("lots")
        assert await board.save_edit() is None
        assert board.view.mode == view_state.IDLE
        assert board.find_record(board.view.active_round_id, a.id).score == 0

    asyncio.run(scenario())


def test_save_edit_store_failure_keeps_input_open():
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        board.start_edit_name(a.id)
        board.view.set_draft("Alice")
        board.store.fail = True
        with pytest.raises(StoreError):
            await board.save_edit()
        assert board.view.mode == view_state.EDITING_NAME
        assert a.name == "Candidate A"

    asyncio.run(scenario())


def test_save_edit_new_candidate_form_stays_open_when_blank():
    async def scenario():
        board = await loaded_board("A")
        board.view.start_add_candidate()
        board.view.set_draft("Ben", letter="")
        assert await board.save_edit() is None
        assert board.view.mode == view_state.ADDING_CANDIDATE

        board.view.set_draft("Ben", letter="b")
        candidate = await board.save_edit()
        assert candidate.letter == "B"
        assert board.view.mode == view_state.IDLE

    asyncio.run(scenario())


def test_save_edit_new_round():
    async def scenario():
        board = await loaded_board("A")
        board.view.start_add_round()
        rnd = await board.save_edit()
        assert rnd.name == "Round 2"
        assert board.view.active_round_id == rnd.id

    asyncio.run(scenario())


def test_save_without_open_input():
    async def scenario():
        board = await loaded_board("A")
        with pytest.raises(InvalidTransition):
            await board.save_edit()

    asyncio.run(scenario())


def test_last_write_wins():
    """Concurrent increments are not serialized; the last write sticks"""
    async def scenario():
        board = await loaded_board("A")
        a = board.candidates[0]
        await asyncio.gather(board.add_points(a.id, 1), board.add_points(a.id, 10))
        record = board.find_record(board.view.active_round_id, a.id)
        stored = await board.store.list(SCORES, filters={"id": record.id})
        assert stored[0]["score"] == record.score

    asyncio.run(scenario())


def test_delete_candidate_being_edited_closes_input():
    """Deleting the candidate whose name is open leaves no dangling edit"""
    async def scenario():
        board = await loaded_board("A", "B")
        a, b = by_letter(board, "A"), by_letter(board, "B")
        board.start_edit_name(a.id)
        await board.delete_candidate(a.id, confirm=True)

        assert board.view.mode == view_state.IDLE
        assert board.view.target_id is None
        with pytest.raises(InvalidTransition):
            await board.save_edit()

        board.start_edit_name(b.id)
        assert board.view.target_id == b.id

    asyncio.run(scenario())


def test_delete_other_candidate_keeps_input_open():
    async def scenario():
        board = await loaded_board("A", "B")
        a, b = by_letter(board, "A"), by_letter(board, "B")
        board.start_edit_name(b.id)
        await board.delete_candidate(a.id, confirm=True)
        assert board.view.mode == view_state.EDITING_NAME
        assert board.view.target_id == b.id

    asyncio.run(scenario())


TIED_AT = "2024-01-01T00:00:00+00:00"


def tied_rest_handler(candidate_rows):
    """Serves one round and tied candidates in the given order"""
    scores = [
        {"id": f"s{row['seq']}", "round_id": "r1", "candidate_id": row["id"], "score": 0,
         "seq": 10 + row["seq"], "created_at": TIED_AT}
        for row in candidate_rows
    ]

    def handler(request):
        assert request.method == "GET", "tied rows need no writes"
        table = request.url.path.rsplit("/", 1)[-1]
        if table == ROUNDS:
            return httpx.Response(200, json=[{"id": "r1", "name": "Round 1", "seq": 1, "created_at": TIED_AT}])
        if table == CANDIDATES:
            return httpx.Response(200, json=candidate_rows)
        return httpx.Response(200, json=scores)

    return handler


def test_rest_tie_break_ignores_arrival_order():
    """Candidates from one batch insert rank by seq, whatever order the API returns"""
    rows = [
        {"id": f"c{letter}", "name": f"Candidate {letter}", "letter": letter,
         "color_theme": "t", "seq": seq, "created_at": TIED_AT}
        for seq, letter in enumerate("ABC", start=1)
    ]

    async def scenario(served):
        store = RestRowStore(
            "https://example.supabase.co", transport=httpx.MockTransport(tied_rest_handler(served))
        )
        board = Scoreboard(store, make_settings())
        try:
            await board.load()
        finally:
            await store.close()
        return board

    in_order = asyncio.run(scenario(rows))
    shuffled = asyncio.run(scenario([rows[2], rows[0], rows[1]]))

    for board in (in_order, shuffled):
        assert [c.letter for c in board.candidates] == ["A", "B", "C"]
        ranks = grand_ranks(board)
        assert [ranks[f"c{letter}"] for letter in "ABC"] == [1, 2, 3]
