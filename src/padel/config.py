"""
Tournament settings, stored as YAML and merged over defaults.
"""
import os
from typing import Dict, Optional

import yaml

from .elimination import DEFAULT_MAX_ENTRANTS
from .errors import InvalidConfiguration, InvalidPolicy, InvalidZoneSize
from .models import ByeAssignment, PartialZonePolicy, SeedingPolicy, TournamentFormat


def get_default_settings() -> Dict:
    """Return default tournament settings."""
    return {
        'seeding_policy': SeedingPolicy.RANKED.value,
        'format': TournamentFormat.ELIMINATION.value,
        'zone_size': 4,
        'max_entrants': DEFAULT_MAX_ENTRANTS,
        'bye_assignment': ByeAssignment.HIGHEST_SEED_FIRST.value,
        'allow_partial_zones': True,
        'partial_zone_policy': PartialZonePolicy.TRAILING.value,
        'qualifiers_per_zone': 2,
        'allow_empty': False,
    }


def _positive_int(data: Dict, key: str, minimum: int = 1) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidConfiguration(f"'{key}' must be an integer >= {minimum}, got {value!r}")
    return value


class TournamentConfig:
    def __init__(self, seeding_policy=SeedingPolicy.RANKED, format=TournamentFormat.ELIMINATION,
                 zone_size=4, max_entrants=DEFAULT_MAX_ENTRANTS,
                 bye_assignment=ByeAssignment.HIGHEST_SEED_FIRST, allow_partial_zones=True,
                 partial_zone_policy=PartialZonePolicy.TRAILING, qualifiers_per_zone=2,
                 allow_empty=False):
        self.seeding_policy = SeedingPolicy.coerce(seeding_policy)
        try:
            self.format = TournamentFormat.coerce(format)
        except InvalidPolicy as e:
            raise InvalidConfiguration(str(e))
        self.zone_size = zone_size
        self.max_entrants = max_entrants
        self.bye_assignment = ByeAssignment.coerce(bye_assignment)
        self.allow_partial_zones = bool(allow_partial_zones)
        self.partial_zone_policy = PartialZonePolicy.coerce(partial_zone_policy)
        self.qualifiers_per_zone = qualifiers_per_zone
        self.allow_empty = bool(allow_empty)

    @classmethod
    def from_dict(cls, data: Optional[Dict] = None) -> 'TournamentConfig':
        """Merge ``data`` over the defaults and validate."""
        merged = get_default_settings()
        for key, value in (data or {}).items():
            if key not in merged:
                raise InvalidConfiguration(f"Unknown setting '{key}'")
            merged[key] = value

        zone_size = merged['zone_size']
        if isinstance(zone_size, bool) or not isinstance(zone_size, int) or zone_size < 2:
            raise InvalidZoneSize(f"Zone size must be an integer of at least 2, got {zone_size!r}")
        merged['max_entrants'] = _positive_int(merged, 'max_entrants')
        merged['qualifiers_per_zone'] = _positive_int(merged, 'qualifiers_per_zone')
        return cls(**merged)

    def to_dict(self) -> Dict:
        return {
            'seeding_policy': self.seeding_policy.value,
            'format': self.format.value,
            'zone_size': self.zone_size,
            'max_entrants': self.max_entrants,
            'bye_assignment': self.bye_assignment.value,
            'allow_partial_zones': self.allow_partial_zones,
            'partial_zone_policy': self.partial_zone_policy.value,
            'qualifiers_per_zone': self.qualifiers_per_zone,
            'allow_empty': self.allow_empty,
        }

    def __repr__(self):
        return f"TournamentConfig({self.to_dict()})"


def load_settings(path: str) -> TournamentConfig:
    """Load settings from a YAML file; a missing or empty file gives the defaults."""
    if not os.path.exists(path):
        return TournamentConfig.from_dict()
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise InvalidConfiguration(f"{path} must contain a mapping of settings")
    return TournamentConfig.from_dict(data)


def save_settings(path: str, config: TournamentConfig):
    """Save settings to a YAML file."""
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False)
