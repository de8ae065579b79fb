"""
Seeding engine: orders registered couples before the draw is built.
"""
import logging
import random
from typing import List, Optional, Sequence

from .errors import EmptyEntrantList
from .models import Couple, SeedingPolicy

logger = logging.getLogger(__name__)


def registration_key(couple: Couple, index: int):
    """Sort key for registration order; couples without a timestamp go last, in input order."""
    if couple.registered_at is None:
        return (1, 0, index)
    return (0, couple.registered_at.timestamp(), index)


def seed(couples: Sequence[Couple], policy, rng: Optional[random.Random] = None,
         allow_empty: bool = False) -> List[Couple]:
    """
    Return couples in seed order (first element is seed 1).

    RANKED puts ranked couples first by seed rank, equal ranks broken by
    earlier registration; unranked couples follow in registration order.
    RANDOM shuffles with ``rng`` so tests can pin the outcome.
    REGISTRATION_ORDER is a stable sort by registration timestamp.
    """
    policy = SeedingPolicy.coerce(policy)
    couples = list(couples)
    if not couples:
        if allow_empty:
            return []
        raise EmptyEntrantList("Cannot seed a tournament without couples")

    logger.debug("Seeding %d couples with policy %s", len(couples), policy.value)

    indexed = list(enumerate(couples))
    if policy is SeedingPolicy.RANKED:
        ranked = [(i, c) for i, c in indexed if c.seed is not None]
        unranked = [(i, c) for i, c in indexed if c.seed is None]
        ranked.sort(key=lambda ic: (ic[1].seed, registration_key(ic[1], ic[0])))
        unranked.sort(key=lambda ic: registration_key(ic[1], ic[0]))
        return [c for _, c in ranked + unranked]

    if policy is SeedingPolicy.REGISTRATION_ORDER:
        indexed.sort(key=lambda ic: registration_key(ic[1], ic[0]))
        return [c for _, c in indexed]

    rng = rng or random.Random()
    rng.shuffle(couples)
    return couples
