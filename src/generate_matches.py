import os
import sys
import yaml
from padel.config import TournamentConfig, load_settings
from padel.elimination import build_bracket
from padel.errors import TournamentError
from padel.models import Couple, TournamentFormat
from padel.seeding import seed
from padel.zones import build_zones


def load_couples(file_path, category=None):
    """Load couples from YAML: a list of couples, or {category: [couples]}."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        couples = []
        for category_name, entries in data.items():
            if category is not None and category_name != category:
                continue
            for entry in entries or []:
                couples.append(Couple.from_dict({'category': category_name, **entry}))
        return couples
    return [Couple.from_dict(entry) for entry in data]


def format_zones(zones, labels):
    lines = []
    for zone in zones:
        if lines:
            lines.append('')
        lines.append(f"# {zone.name}")
        for match in zone.matches:
            lines.append(f"{labels.get(match.slot_a.couple_id)} vs {labels.get(match.slot_b.couple_id)}")
    return lines


def format_bracket(bracket, labels):
    lines = []
    for rnd in bracket.rounds:
        if lines:
            lines.append('')
        lines.append(f"# {rnd.name}")
        for match in rnd.matches:
            team1 = labels.get(match.slot_a.couple_id, match.slot_a.label)
            team2 = labels.get(match.slot_b.couple_id, match.slot_b.label)
            lines.append(f"{match.id}: {team1} vs {team2}")
    return lines


def generate_draw(couples, config: TournamentConfig):
    seeded = seed(couples, config.seeding_policy)
    labels = {c.id: c.label for c in seeded}
    if config.format is TournamentFormat.ZONES:
        zones = build_zones(seeded, config.zone_size, allow_partial=config.allow_partial_zones,
                            partial_policy=config.partial_zone_policy)
        return format_zones(zones, labels)
    bracket = build_bracket(seeded, max_entrants=config.max_entrants,
                            bye_assignment=config.bye_assignment)
    return format_bracket(bracket, labels)


def main():
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line arguments if provided, otherwise use default paths
    couples_file = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base_dir, 'data', 'couples.yaml')
    settings_file = sys.argv[2] if len(sys.argv) > 2 else os.path.join(base_dir, 'data', 'settings.yaml')

    try:
        couples = load_couples(couples_file)
        config = load_settings(settings_file)
        lines = generate_draw(couples, config)
    except TournamentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
