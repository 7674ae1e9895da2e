"""
Leaderboard service - Assemble and format board data
"""
from typing import Dict

from scoreboard.core.ranking import (
    badge_for_rank, grand_total, rank_candidates, round_score, round_total, score_percentage
)
from scoreboard.models import BoardEntry
from scoreboard.services.scoreboard import Scoreboard

PODIUM_SIZE = 3


def get_round_board(board: Scoreboard) -> Dict:
    """
    Get the active round's board

    Cards are ordered by candidate letter; rank and badge come from the
    round score.

    Args:
        board: Scoreboard session

    Returns:
        Formatted round board data
    """
    round_id = board.view.active_round_id
    if round_id is None:
        return {
            "active_round_id": None,
            "candidates": [],
            "message": "No active round"
        }

    records = board.round_records(round_id)
    ranks = rank_candidates(board.candidates, lambda cid: round_score(cid, records))

    entries = []
    for candidate in sorted(board.candidates, key=lambda c: c.letter):
        rank = ranks[candidate.id]
        entries.append(BoardEntry(
            candidate_id=candidate.id,
            name=candidate.name,
            letter=candidate.letter,
            color_theme=candidate.color_theme,
            score=round_score(candidate.id, records),
            rank=rank,
            badge=badge_for_rank(rank),
        ))

    return {
        "active_round_id": round_id,
        "round_name": board.get_round(round_id).name,
        "increments": board.settings.increments,
        "candidates": [e.model_dump() for e in entries],
        "total_score": round_total(records),
    }


def get_grand_total_board(board: Scoreboard) -> Dict:
    """
    Get cumulative standings across all rounds

    The top three form the podium; the remaining candidates are only
    listed while the "others" section is expanded.

    Args:
        board: Scoreboard session

    Returns:
        Formatted standings data
    """
    totals = {c.id: grand_total(c.id, board.scores) for c in board.candidates}
    ranks = rank_candidates(board.candidates, lambda cid: totals[cid])
    max_score = max(totals.values(), default=0)

    ordered = sorted(board.candidates, key=lambda c: ranks[c.id])
    entries = [
        BoardEntry(
            candidate_id=c.id,
            name=c.name,
            letter=c.letter,
            color_theme=c.color_theme,
            score=totals[c.id],
            rank=ranks[c.id],
            badge=badge_for_rank(ranks[c.id]),
            percentage=round(score_percentage(totals[c.id], max_score), 1),
            celebrating=ranks[c.id] in board.view.celebrating_ranks,
        ).model_dump()
        for c in ordered
    ]

    others = entries[PODIUM_SIZE:]
    return {
        "podium": entries[:PODIUM_SIZE],
        "others": others if board.view.expanded_others else [],
        "other_count": len(others),
        "expanded": board.view.expanded_others,
        "rounds": len(board.rounds),
    }
