"""
Single elimination bracket generation and advancement.
"""
import copy
import logging
import math
from typing import Dict, List, Optional, Sequence

from .errors import (
    AmbiguousSeed,
    BracketSizeOverflow,
    DuplicateCouple,
    EmptyEntrantList,
    MatchAlreadyDecided,
    MatchNotFound,
    MatchNotPlayable,
)
from .models import Bracket, ByeAssignment, Couple, Match, MatchStatus, Round, Slot
from .scoring import resolve_result

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRANTS = 64


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of couples in it."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_teams)
    return bracket_size - num_teams


def generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 couples: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    Winners: 1v4 side, 2v3 side
    Final: 1v2 (if chalk)
    """
    if bracket_size <= 1:
        return [1] if bracket_size == 1 else []
    if bracket_size == 2:
        return [1, 2]

    half_size = bracket_size // 2
    upper_half = generate_bracket_order(half_size)

    # Each upper seed is paired with its complement
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def match_id_for(round_index: int, match_index: int) -> str:
    return f"R{round_index + 1}-M{match_index + 1}"


def validate_entrants(seeded: Sequence[Couple], check_seeds: bool = True):
    """Reject duplicate couples and, with ``check_seeds``, seed ranks that cannot be ordered."""
    ids = set()
    seen_seeds = {}
    for couple in seeded:
        if couple.id in ids:
            raise DuplicateCouple(f"Couple {couple.id} appears twice in the draw")
        ids.add(couple.id)
        if not check_seeds or couple.seed is None or couple.registered_at is None:
            continue
        key = (couple.seed, couple.registered_at)
        if key in seen_seeds:
            raise AmbiguousSeed(
                f"Couples {seen_seeds[key]} and {couple.id} share seed {couple.seed} "
                f"and registration time {couple.registered_at.isoformat()}"
            )
        seen_seeds[key] = couple.id


def _first_round_slot(seed_to_id: Dict[int, str], seed_number: int) -> Slot:
    couple_id = seed_to_id.get(seed_number)
    if couple_id is None:
        return Slot.bye()
    return Slot.for_couple(couple_id)


def _place_winner(bracket: Bracket, match: Match):
    if match.next_match_id is None:
        return
    next_match = bracket.get_match(match.next_match_id)
    slot = next_match.slot_a if next_match.slot_a.source_match_id == match.id else next_match.slot_b
    slot.couple_id = match.winner_id


def build_bracket(seeded: Sequence[Couple], max_entrants: Optional[int] = DEFAULT_MAX_ENTRANTS,
                  bye_assignment=ByeAssignment.HIGHEST_SEED_FIRST, validate_seeds: bool = True) -> Bracket:
    """
    Build the full single elimination tree from couples in seed order.

    Seeds missing from a non-power-of-two field become byes; with the
    standard order they always face seeds 1, 2, ... so the highest seeds get
    the byes. Bye matches are walkovers and their winners are already placed
    in round 2.

    Pass ``validate_seeds=False`` when the order does not come from seed
    ranks, e.g. couples qualified from zone standings.
    """
    ByeAssignment.coerce(bye_assignment)
    seeded = list(seeded)
    num_teams = len(seeded)
    if num_teams == 0:
        raise EmptyEntrantList("Cannot build a bracket without couples")
    if max_entrants is not None and num_teams > max_entrants:
        raise BracketSizeOverflow(f"{num_teams} couples exceed the maximum of {max_entrants}")
    validate_entrants(seeded, check_seeds=validate_seeds)

    bracket_size = calculate_bracket_size(num_teams)
    entrants = [c.id for c in seeded]
    if bracket_size == 1:
        return Bracket(bracket_size, [], entrants)

    total_rounds = int(math.log2(bracket_size))
    seed_to_id = {i + 1: couple.id for i, couple in enumerate(seeded)}
    bracket_order = generate_bracket_order(bracket_size)

    rounds = []
    teams_in_round = bracket_size
    for round_index in range(total_rounds):
        matches = []
        for i in range(teams_in_round // 2):
            if round_index == 0:
                slot_a = _first_round_slot(seed_to_id, bracket_order[2 * i])
                slot_b = _first_round_slot(seed_to_id, bracket_order[2 * i + 1])
            else:
                slot_a = Slot.winner_of(match_id_for(round_index - 1, 2 * i))
                slot_b = Slot.winner_of(match_id_for(round_index - 1, 2 * i + 1))
            next_match_id = match_id_for(round_index + 1, i // 2) if round_index < total_rounds - 1 else None
            matches.append(Match(match_id_for(round_index, i), slot_a, slot_b,
                                 round_index=round_index, next_match_id=next_match_id))
        rounds.append(Round(round_index, get_round_name(teams_in_round), matches))
        teams_in_round //= 2

    bracket = Bracket(bracket_size, rounds, entrants)
    for match in rounds[0].matches:
        if match.is_bye:
            match.winner_id = match.couple_ids[0]
            match.status = MatchStatus.WALKOVER
            _place_winner(bracket, match)

    logger.debug("Built bracket of size %d for %d couples (%d byes)",
                 bracket_size, num_teams, bracket.byes)
    return bracket


def _get_match(bracket: Bracket, match_id) -> Match:
    match = bracket.get_match(match_id)
    if match is None:
        raise MatchNotFound(f"No match {match_id} in bracket")
    return match


def start_match(bracket: Bracket, match_id) -> Bracket:
    """Return a new bracket with the match marked in progress."""
    updated = copy.deepcopy(bracket)
    match = _get_match(updated, match_id)
    if not match.is_playable:
        raise MatchNotPlayable(f"Match {match_id} cannot start yet")
    match.status = MatchStatus.IN_PROGRESS
    return updated


def record_result(bracket: Bracket, match_id, winner_id=None, scores=None,
                  walkover: bool = False) -> Bracket:
    """
    Return a new bracket with the result applied and the winner advanced.

    A decided match may be corrected as long as the match it feeds is still
    pending.
    """
    updated = copy.deepcopy(bracket)
    match = _get_match(updated, match_id)
    if match.is_bye:
        raise MatchNotPlayable(f"Match {match_id} is a bye")
    if not (match.slot_a.is_resolved and match.slot_b.is_resolved):
        raise MatchNotPlayable(f"Match {match_id} is still waiting for {match.slot_a.label} / {match.slot_b.label}")
    if match.is_decided and match.next_match_id is not None:
        next_match = updated.get_match(match.next_match_id)
        if next_match.status is not MatchStatus.PENDING:
            raise MatchAlreadyDecided(f"Match {next_match.id} already started; {match_id} cannot change")

    match.winner_id, match.scores, match.status = resolve_result(match, winner_id, scores, walkover)
    _place_winner(updated, match)

    logger.debug("Match %s won by %s", match_id, match.winner_id)
    return updated


def bracket_summary(bracket: Bracket) -> Dict:
    """Get bracket statistics formatted for display."""
    matches_per_round = {}
    for rnd in bracket.rounds:
        matches_per_round[rnd.name] = len([m for m in rnd.matches if not m.is_bye])
    return {
        'total_teams': len(bracket.entrants),
        'bracket_size': bracket.size,
        'total_rounds': len(bracket.rounds),
        'byes': bracket.byes,
        'matches_per_round': matches_per_round,
        'champion': bracket.champion_id,
    }
