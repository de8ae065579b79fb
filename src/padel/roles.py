"""
User roles and the tournament view each one gets.
"""
from enum import Enum
from typing import Dict, List, Optional

from .tournament import Tournament


class Role(Enum):
    PLAYER = 'player'
    CLUB = 'club'
    COACH = 'coach'
    GUEST = 'guest'

    @classmethod
    def from_value(cls, value) -> 'Role':
        """Map a stored role to a Role; anything unknown is a guest."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.GUEST


def _public_couple(couple) -> Dict:
    return {'id': couple.id, 'name': couple.label, 'seed': couple.seed, 'category': couple.category}


def _public_view(tournament: Tournament) -> Dict:
    data = tournament.to_dict()
    data['couples'] = [_public_couple(c) for c in tournament.couples]
    data['can_manage'] = False
    return data


def _all_matches(tournament: Tournament) -> List:
    matches = [m for z in tournament.zones or [] for m in z.matches]
    if tournament.bracket is not None:
        matches.extend(tournament.bracket.matches)
    return matches


def _club_view(tournament: Tournament, user_id=None) -> Dict:
    data = tournament.to_dict()
    data['can_manage'] = True
    data['playable_matches'] = [m.id for m in _all_matches(tournament) if m.is_playable]
    return data


def _player_view(tournament: Tournament, user_id=None) -> Dict:
    data = _public_view(tournament)
    mine = [c.id for c in tournament.couples if user_id is not None and user_id in c.player_ids]
    data['my_couples'] = mine
    data['my_matches'] = [m.to_dict() for m in _all_matches(tournament)
                          if any(cid in mine for cid in m.couple_ids)]
    data['can_register'] = tournament.phase == 'setup'
    return data


def _coach_view(tournament: Tournament, user_id=None) -> Dict:
    data = _public_view(tournament)
    data['standings'] = {zone_id: [s.to_dict() for s in standings]
                         for zone_id, standings in tournament.zone_standings().items()}
    return data


def _guest_view(tournament: Tournament, user_id=None) -> Dict:
    return _public_view(tournament)


_VIEWS = {
    Role.CLUB: _club_view,
    Role.PLAYER: _player_view,
    Role.COACH: _coach_view,
    Role.GUEST: _guest_view,
}


def tournament_view(role, tournament: Tournament, user_id: Optional[str] = None) -> Dict:
    """Render the tournament for the given role."""
    return _VIEWS[Role.from_value(role)](tournament, user_id)
