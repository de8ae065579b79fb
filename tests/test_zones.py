"""
Tests for zone distribution and round-robin scheduling.
"""
import pytest
import sys
import os
from itertools import combinations

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import make_seeded
from padel.errors import (
    EmptyEntrantList,
    InsufficientEntrants,
    InvalidPolicy,
    InvalidZoneSize,
    MatchNotFound,
    MatchNotPlayable,
)
from padel.models import MatchStatus, PartialZonePolicy
from padel.zones import (
    build_zones,
    record_zone_result,
    round_robin_schedule,
    start_zone_match,
    zone_capacities,
    zone_name,
)


class TestZoneCapacities:
    def test_exact_fit(self):
        assert zone_capacities(8, 4) == [4, 4]

    def test_trailing(self):
        assert zone_capacities(10, 4) == [4, 4, 2]
        assert zone_capacities(7, 3) == [3, 3, 1]

    def test_balanced(self):
        assert zone_capacities(10, 4, PartialZonePolicy.BALANCED) == [4, 3, 3]
        assert zone_capacities(7, 3, "balanced") == [3, 2, 2]

    def test_unknown_policy(self):
        with pytest.raises(InvalidPolicy):
            zone_capacities(10, 4, "spread")

    def test_zone_names(self):
        assert zone_name(0) == "Zone A"
        assert zone_name(25) == "Zone Z"
        assert zone_name(26) == "Zone AA"


class TestBuildZones:
    """Tests for snake distribution into zones."""

    def test_ten_couples_zone_size_four(self):
        zones = build_zones(make_seeded(10), 4)
        assert sorted(z.size for z in zones) == [2, 4, 4]

    def test_seven_couples_zone_size_three(self):
        zones = build_zones(make_seeded(7), 3)
        assert sorted(z.size for z in zones) == [1, 3, 3]

    def test_seven_couples_balanced(self):
        zones = build_zones(make_seeded(7), 3, partial_policy=PartialZonePolicy.BALANCED)
        assert sorted(z.size for z in zones) == [2, 2, 3]

    def test_snake_distribution(self):
        """Seeds go 1, 2 forward then 3, 4 backward."""
        zones = build_zones(make_seeded(8), 4)
        assert zones[0].couple_ids == ["C1", "C4", "C5", "C8"]
        assert zones[1].couple_ids == ["C2", "C3", "C6", "C7"]

    @pytest.mark.parametrize("num_couples,zone_size", [(8, 4), (10, 4), (7, 3), (12, 3), (9, 2)])
    def test_top_seeds_in_distinct_zones(self, num_couples, zone_size):
        zones = build_zones(make_seeded(num_couples), zone_size)
        for index, zone in enumerate(zones):
            assert zone.couple_ids[0] == f"C{index + 1}"

    @pytest.mark.parametrize("num_couples,zone_size", [(8, 4), (10, 4), (7, 3), (13, 5)])
    def test_every_couple_in_one_zone(self, num_couples, zone_size):
        zones = build_zones(make_seeded(num_couples), zone_size)
        placed = [cid for z in zones for cid in z.couple_ids]
        assert sorted(placed) == sorted(f"C{i}" for i in range(1, num_couples + 1))

    def test_zone_ids_and_names(self):
        zones = build_zones(make_seeded(6), 3)
        assert [z.id for z in zones] == ["Z1", "Z2"]
        assert [z.name for z in zones] == ["Zone A", "Zone B"]

    def test_invalid_zone_size(self):
        with pytest.raises(InvalidZoneSize):
            build_zones(make_seeded(4), 1)

    def test_partial_zones_disallowed(self):
        with pytest.raises(InsufficientEntrants):
            build_zones(make_seeded(10), 4, allow_partial=False)
        with pytest.raises(InsufficientEntrants):
            build_zones(make_seeded(3), 4, allow_partial=False)

    def test_partial_zones_disallowed_exact_fit(self):
        zones = build_zones(make_seeded(8), 4, allow_partial=False)
        assert [z.size for z in zones] == [4, 4]

    def test_empty(self):
        with pytest.raises(EmptyEntrantList):
            build_zones([], 4)


class TestRoundRobin:
    """Tests for zone rotation schedules."""

    def test_four_couple_rotations(self):
        schedule = round_robin_schedule(["A", "B", "C", "D"])
        assert schedule == [
            [("A", "D"), ("B", "C")],
            [("A", "C"), ("D", "B")],
            [("A", "B"), ("C", "D")],
        ]

    @pytest.mark.parametrize("size", [2, 3, 4, 5, 6])
    def test_everyone_meets_once(self, size):
        couples = [f"C{i}" for i in range(size)]
        pairs = [frozenset(p) for rotation in round_robin_schedule(couples) for p in rotation]
        assert len(pairs) == size * (size - 1) // 2
        assert set(pairs) == {frozenset(p) for p in combinations(couples, 2)}

    @pytest.mark.parametrize("size", [3, 4, 5, 6])
    def test_no_couple_twice_in_a_rotation(self, size):
        for rotation in round_robin_schedule([f"C{i}" for i in range(size)]):
            playing = [cid for pair in rotation for cid in pair]
            assert len(playing) == len(set(playing))

    def test_single_couple_has_no_matches(self):
        assert round_robin_schedule(["A"]) == []

    def test_zone_matches(self):
        zones = build_zones(make_seeded(8), 4)
        matches = zones[0].matches
        assert len(matches) == 6
        assert [m.id for m in matches] == [f"Z1-M{i}" for i in range(1, 7)]
        assert [m.rotation for m in matches] == [1, 1, 2, 2, 3, 3]
        assert all(m.zone_id == "Z1" for m in matches)


class TestZoneResults:
    def test_record_result(self):
        zones = build_zones(make_seeded(4), 4)
        updated = record_zone_result(zones, "Z1-M1", scores=[[6, 1], [6, 2]])
        assert updated[0].matches[0].winner_id == "C1"
        assert zones[0].matches[0].winner_id is None

    def test_result_can_be_overwritten(self):
        zones = build_zones(make_seeded(4), 4)
        zones = record_zone_result(zones, "Z1-M1", winner_id="C1")
        zones = record_zone_result(zones, "Z1-M1", winner_id="C4")
        assert zones[0].matches[0].winner_id == "C4"

    def test_start_zone_match(self):
        zones = build_zones(make_seeded(4), 4)
        zones = start_zone_match(zones, "Z1-M2")
        assert zones[0].get_match("Z1-M2").status is MatchStatus.IN_PROGRESS
        zones = record_zone_result(zones, "Z1-M2", winner_id="C2")
        with pytest.raises(MatchNotPlayable):
            start_zone_match(zones, "Z1-M2")

    def test_unknown_match(self):
        zones = build_zones(make_seeded(4), 4)
        with pytest.raises(MatchNotFound):
            record_zone_result(zones, "Z9-M1", winner_id="C1")
