"""
Zone standings and seeding of the elimination phase from them.
"""
import logging
import random
from itertools import groupby
from typing import Dict, List, Optional, Sequence

from .errors import InvalidConfiguration
from .models import Zone
from .scoring import tally

logger = logging.getLogger(__name__)

POINTS_FOR_WINNING_MATCH = 3
POINTS_FOR_LOSING_MATCH = 1


class Standing:
    def __init__(self, couple_id: str):
        self.couple_id = couple_id
        self.played = 0
        self.wins = 0
        self.losses = 0
        self.sets_won = 0
        self.sets_lost = 0
        self.games_won = 0
        self.games_lost = 0
        self.position = None

    @property
    def set_diff(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def game_diff(self) -> int:
        return self.games_won - self.games_lost

    @property
    def points(self) -> int:
        return self.wins * POINTS_FOR_WINNING_MATCH + self.losses * POINTS_FOR_LOSING_MATCH

    def to_dict(self) -> Dict:
        return {
            'couple_id': self.couple_id,
            'position': self.position,
            'played': self.played,
            'wins': self.wins,
            'losses': self.losses,
            'sets_won': self.sets_won,
            'sets_lost': self.sets_lost,
            'set_diff': self.set_diff,
            'games_won': self.games_won,
            'games_lost': self.games_lost,
            'game_diff': self.game_diff,
            'points': self.points,
        }

    def __repr__(self):
        return f"Standing(couple_id={self.couple_id}, position={self.position}, wins={self.wins})"


def _head_to_head_winner(zone: Zone, first: str, second: str) -> Optional[str]:
    for match in zone.matches:
        if match.is_decided and set(match.couple_ids) == {first, second}:
            return match.winner_id
    return None


def _random_draw(zone: Zone, tied: List[Standing], rng: random.Random) -> List[Standing]:
    drawn = list(tied)
    rng.shuffle(drawn)
    logger.warning("Random draw in %s to break tie between %s: %s",
                   zone.name, [s.couple_id for s in tied], [s.couple_id for s in drawn])
    return drawn


def _break_tie(zone: Zone, tied: List[Standing], rng: Optional[random.Random]) -> List[Standing]:
    if zone.tiebreak_order:
        order = {couple_id: i for i, couple_id in enumerate(zone.tiebreak_order)}
        return sorted(tied, key=lambda s: order.get(s.couple_id, len(order)))
    if not zone.is_complete:
        # Provisional standings: seed order until the zone is finished
        return tied
    return _random_draw(zone, tied, rng or random.Random())


def draw_tiebreak(zone: Zone, rng: Optional[random.Random] = None) -> List[str]:
    """Random order of the zone's couples, kept on the zone to settle ties once it is complete."""
    drawn = list(zone.couple_ids)
    (rng or random.Random()).shuffle(drawn)
    logger.warning("Random draw in %s for tie-breaks: %s", zone.name, drawn)
    return drawn


def compute_zone_standings(zone: Zone, rng: Optional[random.Random] = None) -> List[Standing]:
    """
    Rank a zone from its decided matches.

    Ranking: wins -> set differential -> game differential -> head-to-head
    (exactly two tied) -> random draw.

    The draw uses ``zone.tiebreak_order`` when one is stored, so repeated
    calls agree. Without it, a finished zone draws with ``rng`` and an
    unfinished zone keeps seed order for ties.
    """
    stats = {couple_id: Standing(couple_id) for couple_id in zone.couple_ids}

    for match in zone.matches:
        if not match.is_decided:
            continue
        couple_a, couple_b = match.slot_a.couple_id, match.slot_b.couple_id
        if couple_a not in stats or couple_b not in stats:
            continue
        sets_a, sets_b, games_a, games_b = tally(match.scores)
        for couple_id, sw, sl, gw, gl in ((couple_a, sets_a, sets_b, games_a, games_b),
                                          (couple_b, sets_b, sets_a, games_b, games_a)):
            entry = stats[couple_id]
            entry.played += 1
            entry.sets_won += sw
            entry.sets_lost += sl
            entry.games_won += gw
            entry.games_lost += gl
            if couple_id == match.winner_id:
                entry.wins += 1
            else:
                entry.losses += 1

    def rank_key(s):
        return (-s.wins, -s.set_diff, -s.game_diff)

    ordered = sorted(stats.values(), key=rank_key)
    if not any(match.is_decided for match in zone.matches):
        # Nothing played yet: keep seed order
        for position, standing in enumerate(ordered, start=1):
            standing.position = position
        return ordered

    ranked = []
    for _, group in groupby(ordered, key=rank_key):
        tied = list(group)
        if len(tied) == 2:
            winner = _head_to_head_winner(zone, tied[0].couple_id, tied[1].couple_id)
            if winner is not None:
                tied.sort(key=lambda s: s.couple_id != winner)
            else:
                tied = _break_tie(zone, tied, rng)
        elif len(tied) > 2:
            tied = _break_tie(zone, tied, rng)
        ranked.extend(tied)

    for position, standing in enumerate(ranked, start=1):
        standing.position = position
    return ranked


def seed_from_zones(zones: Sequence[Zone], qualifiers_per_zone: int = 2,
                    rng: Optional[random.Random] = None) -> List[str]:
    """
    Couple ids advancing to the elimination phase, in seed order.

    All zone winners come first (in zone order), then all runners-up, etc.
    """
    if qualifiers_per_zone < 1:
        raise InvalidConfiguration(f"qualifiers_per_zone must be at least 1, got {qualifiers_per_zone}")
    standings = [compute_zone_standings(zone, rng) for zone in zones]
    seeded = []
    for position in range(qualifiers_per_zone):
        for zone_standings in standings:
            if position < len(zone_standings):
                seeded.append(zone_standings[position].couple_id)
    return seeded
