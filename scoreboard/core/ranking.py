"""
Score aggregation and ranking

Rules:
  - Round score: the candidate's record in the active round, 0 if missing
  - Grand total: sum of the candidate's scores over every round
  - Positional rank: 1-based index in a descending-score sort
    (ties take distinct consecutive positions, not a shared rank)
  - Tie-break: candidate order as given (store creation order)
  - Badges: 1 → trophy, 2 → silver medal, 3 → bronze medal, 4+ → none

Every value is recomputed from the current snapshot on each call.
"""
from typing import Callable, Dict, Iterable, List, Optional

from scoreboard.models import Badge, Candidate, ScoreRecord


BADGES: Dict[int, Badge] = {
    1: Badge(icon="trophy", tier="gold", label="1st"),
    2: Badge(icon="medal", tier="silver", label="2nd"),
    3: Badge(icon="medal", tier="bronze", label="3rd"),
}


def round_score(candidate_id: str, records: Iterable[ScoreRecord]) -> int:
    """
    Score of a candidate in the active round

    Args:
        candidate_id: Candidate ID
        records: Score records of the active round

    Returns:
        The matching record's score, or 0 when no record exists
    """
    for record in records:
        if record.candidate_id == candidate_id:
            return record.score
    return 0


def grand_total(candidate_id: str, records: Iterable[ScoreRecord]) -> int:
    """
    Sum of a candidate's scores across all rounds

    Args:
        candidate_id: Candidate ID
        records: Score records of every round

    Returns:
        Total score (0 when the candidate has no records)
    """
    return sum(r.score for r in records if r.candidate_id == candidate_id)


def round_total(records: Iterable[ScoreRecord]) -> int:
    """Total score across all candidates of a round"""
    return sum(r.score for r in records)


def rank_candidates(
    candidates: List[Candidate],
    score_fn: Callable[[str], int],
) -> Dict[str, int]:
    """
    Positional ranking of candidates

    Sorts a copy of the candidates by score (desc). sorted() is stable, so
    candidates with equal scores stay in the order they were given.

    Example:
        scores A=5, B=5, C=9  →  C=1, A=2, B=3

    Args:
        candidates: Candidates in tie-break order
        score_fn: candidate_id → score

    Returns:
        Mapping candidate_id → rank (a permutation of 1..N)
    """
    scores = {c.id: score_fn(c.id) for c in candidates}
    ordered = sorted(candidates, key=lambda c: -scores[c.id])
    return {c.id: idx + 1 for idx, c in enumerate(ordered)}


def rank_of(
    candidate_id: str,
    candidates: List[Candidate],
    score_fn: Callable[[str], int],
) -> int:
    """Rank of one candidate, 0 if the candidate is not in the list"""
    return rank_candidates(candidates, score_fn).get(candidate_id, 0)


def badge_for_rank(rank: int) -> Optional[Badge]:
    """Badge for the top three positional ranks, None otherwise"""
    return BADGES.get(rank)


def score_percentage(score: int, max_score: int) -> float:
    """
    Share of the leader's score, used for podium bars

    Returns:
        score / max_score * 100, or 0.0 when max_score <= 0
    """
    if max_score <= 0:
        return 0.0
    return score / max_score * 100
