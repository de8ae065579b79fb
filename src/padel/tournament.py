"""
Tournament lifecycle: registration, draw generation, results, champion.

The aggregate wraps the pure engine functions; every operation replaces the
draw with the new structure the engine returns. Callers must hold a
single-writer lock per tournament while loading, mutating and saving it.
"""
import logging
import random
from typing import Dict, List, Optional

from .config import TournamentConfig
from .elimination import build_bracket, record_result, start_match, validate_entrants
from .errors import DuplicateCouple, InvalidTransition, MatchNotFound
from .models import Bracket, Couple, TournamentFormat, Zone, _Choice
from .seeding import seed
from .standings import compute_zone_standings, draw_tiebreak, seed_from_zones
from .zones import build_zones, record_zone_result, start_zone_match

logger = logging.getLogger(__name__)


class TournamentStatus(_Choice):
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    FINISHED = 'finished'
    CANCELED = 'canceled'


class Tournament:
    def __init__(self, id: str, name: str, config: Optional[TournamentConfig] = None,
                 couples: Optional[List[Couple]] = None, status=TournamentStatus.NOT_STARTED,
                 seeded_ids: Optional[List[str]] = None, zones: Optional[List[Zone]] = None,
                 bracket: Optional[Bracket] = None):
        self.id = id
        self.name = name
        self.config = config or TournamentConfig()
        self.couples = couples or []
        self.status = TournamentStatus.coerce(status)
        self.seeded_ids = seeded_ids or []
        self.zones = zones
        self.bracket = bracket

    def get_couple(self, couple_id) -> Optional[Couple]:
        for couple in self.couples:
            if couple.id == couple_id:
                return couple
        return None

    @property
    def champion_id(self) -> Optional[str]:
        return self.bracket.champion_id if self.bracket is not None else None

    @property
    def phase(self) -> str:
        """One of: 'setup', 'zones', 'elimination', 'complete', 'canceled'."""
        if self.status is TournamentStatus.CANCELED:
            return 'canceled'
        if self.status is TournamentStatus.NOT_STARTED:
            return 'setup'
        if self.status is TournamentStatus.FINISHED:
            return 'complete'
        if self.bracket is not None:
            return 'elimination'
        return 'zones'

    def _require(self, *statuses):
        if self.status not in statuses:
            raise InvalidTransition(f"Tournament {self.id} is {self.status.value}")

    def register(self, couple: Couple):
        self._require(TournamentStatus.NOT_STARTED)
        if self.get_couple(couple.id) is not None:
            raise DuplicateCouple(f"Couple {couple.id} is already registered")
        self.couples.append(couple)

    def start(self, rng: Optional[random.Random] = None):
        """Seed the couples and generate zones or a bracket per the configured format."""
        self._require(TournamentStatus.NOT_STARTED)
        config = self.config
        seeded = seed(self.couples, config.seeding_policy, rng=rng, allow_empty=config.allow_empty)

        if not seeded:
            self.seeded_ids = []
            self.status = TournamentStatus.FINISHED
            logger.info("Tournament %s started without couples", self.id)
            return

        validate_entrants(seeded)
        self.seeded_ids = [c.id for c in seeded]
        if config.format is TournamentFormat.ZONES:
            self.zones = build_zones(seeded, config.zone_size, allow_partial=config.allow_partial_zones,
                                     partial_policy=config.partial_zone_policy)
            self._draw_completed_zones(rng)
        else:
            self.bracket = build_bracket(seeded, max_entrants=config.max_entrants,
                                         bye_assignment=config.bye_assignment)
        self.status = TournamentStatus.IN_PROGRESS
        self._finish_if_decided()
        logger.info("Tournament %s started with %d couples (%s)", self.id, len(seeded), config.format.value)

    def _finish_if_decided(self):
        if self.bracket is not None and self.bracket.is_complete:
            self.status = TournamentStatus.FINISHED
            logger.info("Tournament %s finished, champion %s", self.id, self.champion_id)

    def _draw_completed_zones(self, rng: Optional[random.Random] = None):
        for zone in self.zones or []:
            if zone.is_complete and zone.tiebreak_order is None:
                zone.tiebreak_order = draw_tiebreak(zone, rng)

    def _in_bracket(self, match_id) -> bool:
        return self.bracket is not None and self.bracket.get_match(match_id) is not None

    def _in_zones(self, match_id) -> bool:
        return bool(self.zones) and any(z.get_match(match_id) is not None for z in self.zones)

    def start_match(self, match_id):
        self._require(TournamentStatus.IN_PROGRESS)
        if self._in_bracket(match_id):
            self.bracket = start_match(self.bracket, match_id)
        elif self._in_zones(match_id):
            self._require_zone_phase()
            self.zones = start_zone_match(self.zones, match_id)
        else:
            raise MatchNotFound(f"No match {match_id} in tournament {self.id}")

    def _require_zone_phase(self):
        if self.bracket is not None:
            raise InvalidTransition(f"Zone phase of tournament {self.id} is closed")

    def record_result(self, match_id, winner_id=None, scores=None, walkover: bool = False,
                      rng: Optional[random.Random] = None):
        """Record a result; ``rng`` draws the tie-break order of a zone this result completes."""
        self._require(TournamentStatus.IN_PROGRESS)
        if self._in_bracket(match_id):
            self.bracket = record_result(self.bracket, match_id, winner_id=winner_id,
                                         scores=scores, walkover=walkover)
            self._finish_if_decided()
        elif self._in_zones(match_id):
            self._require_zone_phase()
            self.zones = record_zone_result(self.zones, match_id, winner_id=winner_id,
                                            scores=scores, walkover=walkover)
            self._draw_completed_zones(rng)
        else:
            raise MatchNotFound(f"No match {match_id} in tournament {self.id}")

    def zone_standings(self, rng: Optional[random.Random] = None) -> Dict[str, List]:
        return {zone.id: compute_zone_standings(zone, rng) for zone in self.zones or []}

    def start_elimination(self, rng: Optional[random.Random] = None):
        """Build the elimination bracket from completed zone standings."""
        self._require(TournamentStatus.IN_PROGRESS)
        if self.config.format is not TournamentFormat.ZONES or not self.zones:
            raise InvalidTransition(f"Tournament {self.id} has no zone phase")
        self._require_zone_phase()
        pending = [z.name for z in self.zones if not z.is_complete]
        if pending:
            raise InvalidTransition(f"Zones still in play: {', '.join(pending)}")

        self._draw_completed_zones(rng)
        qualified = seed_from_zones(self.zones, self.config.qualifiers_per_zone)
        # Bracket order comes from the standings, not from seed ranks
        self.bracket = build_bracket([self.get_couple(cid) for cid in qualified],
                                     max_entrants=self.config.max_entrants,
                                     bye_assignment=self.config.bye_assignment,
                                     validate_seeds=False)
        self._finish_if_decided()
        logger.info("Tournament %s elimination phase seeded with %d couples", self.id, len(qualified))

    def cancel(self):
        self._require(TournamentStatus.NOT_STARTED, TournamentStatus.IN_PROGRESS)
        self.status = TournamentStatus.CANCELED

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status.value,
            'phase': self.phase,
            'settings': self.config.to_dict(),
            'couples': [c.to_dict() for c in self.couples],
            'seeded_ids': list(self.seeded_ids),
            'zones': [z.to_dict() for z in self.zones] if self.zones is not None else None,
            'bracket': self.bracket.to_dict() if self.bracket is not None else None,
            'champion_id': self.champion_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        zones = data.get('zones')
        bracket = data.get('bracket')
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            config=TournamentConfig.from_dict(data.get('settings')),
            couples=[Couple.from_dict(c) for c in data.get('couples') or []],
            status=data.get('status', TournamentStatus.NOT_STARTED.value),
            seeded_ids=list(data.get('seeded_ids') or []),
            zones=[Zone.from_dict(z) for z in zones] if zones is not None else None,
            bracket=Bracket.from_dict(bracket) if bracket else None,
        )

    def __repr__(self):
        return f"Tournament(id={self.id}, status={self.status.value}, couples={len(self.couples)})"
