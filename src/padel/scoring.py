"""
Set score helpers shared by bracket advancement and zone standings.

Scores are a list of ``[games_a, games_b]`` pairs, one per set, ordered as
the match's slot A / slot B.
"""
from typing import List, Optional, Tuple

from .errors import InvalidResult
from .models import MatchStatus


def normalize_sets(sets) -> List[List[int]]:
    """Validate and coerce set scores to ints."""
    normalized = []
    for set_score in sets or []:
        if not isinstance(set_score, (list, tuple)) or len(set_score) != 2:
            raise InvalidResult(f"Set score must be a pair of games, got {set_score!r}")
        try:
            games_a, games_b = int(set_score[0]), int(set_score[1])
        except (TypeError, ValueError):
            raise InvalidResult(f"Set score must be numeric, got {set_score!r}")
        if games_a < 0 or games_b < 0:
            raise InvalidResult(f"Set score cannot be negative, got {set_score!r}")
        normalized.append([games_a, games_b])
    return normalized


def tally(sets) -> Tuple[int, int, int, int]:
    """Return (sets_a, sets_b, games_a, games_b)."""
    sets_a = sets_b = games_a = games_b = 0
    for a, b in sets:
        games_a += a
        games_b += b
        if a > b:
            sets_a += 1
        elif b > a:
            sets_b += 1
    return sets_a, sets_b, games_a, games_b


def determine_winner(sets) -> Optional[int]:
    """Winner index (0 for slot A, 1 for slot B) or None if undecided.

    Best of three needs two sets; a single set decides on its own.
    """
    if not sets:
        return None
    sets_a, sets_b, _, _ = tally(sets)
    if sets_a >= 2 or (len(sets) == 1 and sets_a > sets_b):
        return 0
    if sets_b >= 2 or (len(sets) == 1 and sets_b > sets_a):
        return 1
    return None


def resolve_result(match, winner_id=None, scores=None, walkover=False):
    """
    Work out the outcome of ``match`` from a winner and/or set scores.

    Returns (winner_id, scores, status). When both a winner and scores are
    given they must agree.
    """
    couple_ids = match.couple_ids
    if winner_id is not None and winner_id not in couple_ids:
        raise InvalidResult(f"Couple {winner_id} is not playing match {match.id}")

    if walkover:
        if winner_id is None:
            raise InvalidResult(f"Walkover in match {match.id} needs a winner")
        return winner_id, [], MatchStatus.WALKOVER

    sets = normalize_sets(scores)
    if sets:
        index = determine_winner(sets)
        if index is None:
            raise InvalidResult(f"Scores {sets} do not decide match {match.id}")
        scored_winner = match.slots[index].couple_id
        if winner_id is not None and winner_id != scored_winner:
            raise InvalidResult(f"Winner {winner_id} contradicts scores {sets} in match {match.id}")
        winner_id = scored_winner
    elif winner_id is None:
        raise InvalidResult(f"Match {match.id} needs a winner or scores")
    return winner_id, sets, MatchStatus.COMPLETED
