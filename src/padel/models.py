from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .errors import InvalidPolicy


class _Choice(Enum):
    """Enum whose coercion from user input raises InvalidPolicy."""

    @classmethod
    def coerce(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            allowed = ', '.join(m.value for m in cls)
            raise InvalidPolicy(f"Unknown {cls.__name__} '{value}' (expected one of: {allowed})")


class SeedingPolicy(_Choice):
    RANKED = 'ranked'
    RANDOM = 'random'
    REGISTRATION_ORDER = 'registration_order'


class TournamentFormat(_Choice):
    ELIMINATION = 'elimination'
    ZONES = 'zones'


class ByeAssignment(_Choice):
    HIGHEST_SEED_FIRST = 'highest_seed_first'


class PartialZonePolicy(_Choice):
    TRAILING = 'trailing'
    BALANCED = 'balanced'


class MatchStatus(_Choice):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    WALKOVER = 'walkover'


def _parse_timestamp(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class Couple:
    def __init__(self, id, player1_id, player2_id, seed=None, category=None,
                 registered_at=None, name=None):
        self.id = str(id)
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.seed = int(seed) if seed is not None else None
        self.category = category
        self.registered_at = _parse_timestamp(registered_at)
        self.name = name

    @property
    def player_ids(self) -> List:
        return [self.player1_id, self.player2_id]

    @property
    def label(self) -> str:
        return self.name or f"{self.player1_id} / {self.player2_id}"

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'player1_id': self.player1_id,
            'player2_id': self.player2_id,
            'seed': self.seed,
            'category': self.category,
            'registered_at': self.registered_at.isoformat() if self.registered_at else None,
            'name': self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Couple':
        return cls(
            id=data['id'],
            player1_id=data.get('player1_id'),
            player2_id=data.get('player2_id'),
            seed=data.get('seed'),
            category=data.get('category'),
            registered_at=data.get('registered_at'),
            name=data.get('name'),
        )

    def __eq__(self, other):
        return isinstance(other, Couple) and self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Couple(id={self.id}, seed={self.seed}, registered_at={self.registered_at})"


class Slot:
    """One side of a match: a couple, the pending winner of another match, or a bye."""

    def __init__(self, couple_id=None, source_match_id=None, is_bye=False):
        self.couple_id = couple_id
        self.source_match_id = source_match_id
        self.is_bye = is_bye

    @classmethod
    def for_couple(cls, couple_id) -> 'Slot':
        return cls(couple_id=couple_id)

    @classmethod
    def winner_of(cls, match_id, couple_id=None) -> 'Slot':
        return cls(couple_id=couple_id, source_match_id=match_id)

    @classmethod
    def bye(cls) -> 'Slot':
        return cls(is_bye=True)

    @property
    def is_resolved(self) -> bool:
        return self.couple_id is not None

    @property
    def label(self) -> str:
        if self.is_bye:
            return 'BYE'
        if self.couple_id is not None:
            return self.couple_id
        return f"Winner {self.source_match_id}"

    def to_dict(self) -> Dict:
        return {
            'couple_id': self.couple_id,
            'source_match_id': self.source_match_id,
            'is_bye': self.is_bye,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Slot':
        return cls(
            couple_id=data.get('couple_id'),
            source_match_id=data.get('source_match_id'),
            is_bye=bool(data.get('is_bye', False)),
        )

    def __eq__(self, other):
        return isinstance(other, Slot) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Slot({self.label})"


class Match:
    def __init__(self, id, slot_a: Slot, slot_b: Slot, round_index=None, zone_id=None,
                 rotation=None, status=MatchStatus.PENDING, scores=None, winner_id=None,
                 next_match_id=None):
        self.id = id
        self.slot_a = slot_a
        self.slot_b = slot_b
        self.round_index = round_index
        self.zone_id = zone_id
        self.rotation = rotation
        self.status = MatchStatus.coerce(status)
        self.scores = [list(s) for s in scores] if scores else []
        self.winner_id = winner_id
        self.next_match_id = next_match_id

    @property
    def slots(self) -> List[Slot]:
        return [self.slot_a, self.slot_b]

    @property
    def couple_ids(self) -> List:
        return [s.couple_id for s in self.slots if s.couple_id is not None]

    @property
    def is_bye(self) -> bool:
        return self.slot_a.is_bye or self.slot_b.is_bye

    @property
    def is_decided(self) -> bool:
        return self.status in (MatchStatus.COMPLETED, MatchStatus.WALKOVER)

    @property
    def is_playable(self) -> bool:
        """Both entrants known, not a bye, no result yet."""
        return (not self.is_bye and self.slot_a.is_resolved and self.slot_b.is_resolved
                and not self.is_decided)

    @property
    def loser_id(self) -> Optional[str]:
        if self.winner_id is None or self.is_bye:
            return None
        others = [c for c in self.couple_ids if c != self.winner_id]
        return others[0] if others else None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'slot_a': self.slot_a.to_dict(),
            'slot_b': self.slot_b.to_dict(),
            'round_index': self.round_index,
            'zone_id': self.zone_id,
            'rotation': self.rotation,
            'status': self.status.value,
            'scores': [list(s) for s in self.scores],
            'winner_id': self.winner_id,
            'next_match_id': self.next_match_id,
            'teams': [self.slot_a.label, self.slot_b.label],
            'is_bye': self.is_bye,
            'is_playable': self.is_playable,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            slot_a=Slot.from_dict(data['slot_a']),
            slot_b=Slot.from_dict(data['slot_b']),
            round_index=data.get('round_index'),
            zone_id=data.get('zone_id'),
            rotation=data.get('rotation'),
            status=data.get('status', MatchStatus.PENDING.value),
            scores=data.get('scores'),
            winner_id=data.get('winner_id'),
            next_match_id=data.get('next_match_id'),
        )

    def __repr__(self):
        return f"Match(id={self.id}, {self.slot_a.label} vs {self.slot_b.label}, status={self.status.value})"


class Round:
    def __init__(self, index: int, name: str, matches: List[Match]):
        self.index = index
        self.name = name
        self.matches = matches

    def to_dict(self) -> Dict:
        return {
            'index': self.index,
            'name': self.name,
            'matches': [m.to_dict() for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Round':
        return cls(data['index'], data['name'], [Match.from_dict(m) for m in data['matches']])

    def __repr__(self):
        return f"Round(index={self.index}, name={self.name}, matches={len(self.matches)})"


class Bracket:
    def __init__(self, size: int, rounds: List[Round], entrants: List[str]):
        self.size = size
        self.rounds = rounds
        self.entrants = entrants

    @property
    def byes(self) -> int:
        return self.size - len(self.entrants)

    @property
    def matches(self) -> List[Match]:
        return [m for r in self.rounds for m in r.matches]

    @property
    def decisive_matches(self) -> List[Match]:
        return [m for m in self.matches if not m.is_bye]

    def get_match(self, match_id) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    @property
    def champion_id(self) -> Optional[str]:
        if not self.rounds:
            return self.entrants[0] if len(self.entrants) == 1 else None
        return self.rounds[-1].matches[0].winner_id

    @property
    def is_complete(self) -> bool:
        return self.champion_id is not None

    def to_dict(self) -> Dict:
        return {
            'size': self.size,
            'entrants': list(self.entrants),
            'byes': self.byes,
            'rounds': [r.to_dict() for r in self.rounds],
            'champion_id': self.champion_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Bracket':
        return cls(
            size=data['size'],
            rounds=[Round.from_dict(r) for r in data.get('rounds', [])],
            entrants=list(data.get('entrants', [])),
        )

    def __repr__(self):
        return f"Bracket(size={self.size}, entrants={len(self.entrants)}, rounds={len(self.rounds)})"


class Zone:
    def __init__(self, id: str, name: str, couple_ids: List[str], matches: Optional[List[Match]] = None,
                 tiebreak_order: Optional[List[str]] = None):
        self.id = id
        self.name = name
        self.couple_ids = couple_ids
        self.matches = matches if matches is not None else []
        # Drawn once when the zone completes; settles ties nothing else can split
        self.tiebreak_order = tiebreak_order

    @property
    def size(self) -> int:
        return len(self.couple_ids)

    @property
    def is_complete(self) -> bool:
        return all(m.is_decided for m in self.matches)

    def get_match(self, match_id) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'couple_ids': list(self.couple_ids),
            'matches': [m.to_dict() for m in self.matches],
            'tiebreak_order': list(self.tiebreak_order) if self.tiebreak_order is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Zone':
        tiebreak_order = data.get('tiebreak_order')
        return cls(
            id=data['id'],
            name=data['name'],
            couple_ids=list(data.get('couple_ids', [])),
            matches=[Match.from_dict(m) for m in data.get('matches', [])],
            tiebreak_order=list(tiebreak_order) if tiebreak_order is not None else None,
        )

    def __repr__(self):
        return f"Zone(name={self.name}, couples={self.couple_ids})"
