"""
Zone (round-robin group) generation.

Seeded couples are dealt into zones in serpentine order so top seeds are
spread across zones, then each zone gets a rotation schedule in which no
couple plays twice in the same rotation.
"""
import copy
import logging
import math
import string
from typing import Iterator, List, Sequence, Tuple

from .errors import (
    EmptyEntrantList,
    InsufficientEntrants,
    InvalidZoneSize,
    MatchNotFound,
    MatchNotPlayable,
)
from .models import Couple, Match, MatchStatus, PartialZonePolicy, Slot, Zone
from .scoring import resolve_result

logger = logging.getLogger(__name__)


def zone_name(index: int) -> str:
    """Zone A, Zone B, ... Zone Z, Zone AA, ..."""
    letters = ''
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = string.ascii_uppercase[rem] + letters
    return f"Zone {letters}"


def zone_capacities(num_couples: int, zone_size: int, policy=PartialZonePolicy.TRAILING) -> List[int]:
    """
    Sizes of each zone; there are always ceil(n / zone_size) of them.

    TRAILING fills zones completely and leaves the remainder in the last one
    (10 couples, size 4 -> [4, 4, 2]). BALANCED spreads the shortfall so sizes
    differ by at most one (10 couples, size 4 -> [4, 3, 3]).
    """
    policy = PartialZonePolicy.coerce(policy)
    if num_couples <= 0:
        return []
    zone_count = math.ceil(num_couples / zone_size)
    if policy is PartialZonePolicy.TRAILING:
        capacities = [zone_size] * zone_count
        capacities[-1] = num_couples - zone_size * (zone_count - 1)
        return capacities
    base, extra = divmod(num_couples, zone_count)
    return [base + 1 if i < extra else base for i in range(zone_count)]


def snake_order(zone_count: int) -> Iterator[int]:
    """Zone indices in serpentine order: 0, 1, .., N-1, N-1, .., 0, 0, 1, ..."""
    forward = list(range(zone_count))
    while True:
        yield from forward
        yield from reversed(forward)


def round_robin_schedule(couple_ids: Sequence[str]) -> List[List[Tuple[str, str]]]:
    """
    Circle-method rotations for a zone.

    The first couple stays fixed while the rest rotate; an odd field gets a
    phantom entrant whose pairings are dropped. For four couples this gives
    (1v4, 2v3), (1v3, 4v2), (1v2, 3v4).
    """
    ring = list(couple_ids)
    if len(ring) < 2:
        return []
    if len(ring) % 2:
        ring.append(None)
    n = len(ring)
    rotations = []
    for _ in range(n - 1):
        pairs = []
        for i in range(n // 2):
            a, b = ring[i], ring[n - 1 - i]
            if a is not None and b is not None:
                pairs.append((a, b))
        rotations.append(pairs)
        ring = [ring[0]] + [ring[-1]] + ring[1:-1]
    return rotations


def build_zone_matches(zone_id: str, couple_ids: Sequence[str]) -> List[Match]:
    matches = []
    for rotation, pairs in enumerate(round_robin_schedule(couple_ids), start=1):
        for a, b in pairs:
            matches.append(Match(f"{zone_id}-M{len(matches) + 1}", Slot.for_couple(a), Slot.for_couple(b),
                                 zone_id=zone_id, rotation=rotation))
    return matches


def build_zones(seeded: Sequence[Couple], zone_size: int, allow_partial: bool = True,
                partial_policy=PartialZonePolicy.TRAILING) -> List[Zone]:
    """Partition seeded couples into zones and generate their round-robin matches."""
    if not isinstance(zone_size, int) or zone_size < 2:
        raise InvalidZoneSize(f"Zone size must be an integer of at least 2, got {zone_size!r}")
    seeded = list(seeded)
    num_couples = len(seeded)
    if num_couples == 0:
        raise EmptyEntrantList("Cannot build zones without couples")
    if not allow_partial:
        if num_couples < zone_size:
            raise InsufficientEntrants(f"{num_couples} couples cannot fill a zone of {zone_size}")
        if num_couples % zone_size:
            raise InsufficientEntrants(
                f"{num_couples} couples leave a partial zone of {num_couples % zone_size} "
                f"and partial zones are disabled")

    capacities = zone_capacities(num_couples, zone_size, partial_policy)
    members = [[] for _ in capacities]
    order = snake_order(len(capacities))
    for couple in seeded:
        index = next(order)
        while len(members[index]) >= capacities[index]:
            index = next(order)
        members[index].append(couple.id)

    zones = []
    for i, couple_ids in enumerate(members):
        zone_id = f"Z{i + 1}"
        zones.append(Zone(zone_id, zone_name(i), couple_ids, build_zone_matches(zone_id, couple_ids)))

    logger.debug("Built %d zones of sizes %s", len(zones), [z.size for z in zones])
    return zones


def find_zone_match(zones: Sequence[Zone], match_id) -> Tuple[Zone, Match]:
    for zone in zones:
        match = zone.get_match(match_id)
        if match is not None:
            return zone, match
    raise MatchNotFound(f"No match {match_id} in zones")


def record_zone_result(zones: Sequence[Zone], match_id, winner_id=None, scores=None,
                       walkover: bool = False) -> List[Zone]:
    """Return new zones with the result applied. Zone results may be overwritten."""
    updated = copy.deepcopy(list(zones))
    _, match = find_zone_match(updated, match_id)
    match.winner_id, match.scores, match.status = resolve_result(match, winner_id, scores, walkover)
    logger.debug("Zone match %s won by %s", match_id, match.winner_id)
    return updated


def start_zone_match(zones: Sequence[Zone], match_id) -> List[Zone]:
    updated = copy.deepcopy(list(zones))
    _, match = find_zone_match(updated, match_id)
    if not match.is_playable:
        raise MatchNotPlayable(f"Match {match_id} already has a result")
    match.status = MatchStatus.IN_PROGRESS
    return updated
