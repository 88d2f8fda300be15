"""
Integration tests for the wall-building packer.

Run with:
    python -m pytest tests/test_packer.py -v

Tests cover:
- The reference scenarios (cubes in a dry van, oversize item, wheel wells,
  flipped item, zero-gap stacking)
- Layout invariants on generated datasets for every trailer shape:
  gravity, no overlap, containment, yaw-only rotation
- Determinism, counts, stats consistency, input validation, cancellation
"""

import math

import pytest

from trailer_pack.config import (EPSILON, FrontBonus, PackConfig, ScoringWeights, TruckSpec,
                                 WheelWells, truck_from_preset)
from trailer_pack.datasets import generate_items
from trailer_pack.gravity import aabb_overlap
from trailer_pack.models import CargoItem, InvalidInputError, Orientation
from trailer_pack.packer import pack, score_candidate
from trailer_pack.stats import compute_stats
from trailer_pack.zones import blocked_zones, is_contained, zones_for


# ---------------------------------------------------------------------------
# Shared fixtures and helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def dry_van():
    return TruckSpec(636, 102, 98)


@pytest.fixture
def wells_truck():
    return TruckSpec(636, 102, 110, WheelWells(well_height=12, well_width=30,
                                               well_length=200, well_offset_from_rear=150))


def footprints_overlap(a, b, eps=EPSILON):
    return (a.min.x < b.max.x - eps and a.max.x > b.min.x + eps and
            a.min.z < b.max.z - eps and a.max.z > b.min.z + eps)


def assert_layout_valid(result, truck):
    zones = zones_for(truck)
    obstacles = blocked_zones(truck)
    placed = result.placements
    for p in placed:
        box = p.aabb
        # contained in a single zone
        assert is_contained(box, zones, EPSILON), p
        # only yaw rotations, oriented dims drive the box
        assert p.yaw in (0, 90)
        assert p.yaw == p.dims.yaw
        assert box.max.y - box.min.y == pytest.approx(p.dims.height)
        # resting on the floor, a well housing or another item
        bottom = p.bottom
        assert bottom >= -1e-9
        supports = [q.top for q in placed if q is not p and footprints_overlap(box, q.aabb)]
        supports += [o.max.y for o in obstacles if footprints_overlap(box, o)]
        assert abs(bottom) < 1e-9 or any(abs(bottom - t) < 1e-9 for t in supports), p
        for o in obstacles:
            assert not aabb_overlap(box, o, EPSILON), p
    for i, a in enumerate(placed):
        for b in placed[i + 1:]:
            assert not aabb_overlap(a.aabb, b.aabb, EPSILON), (a, b)


# ---------------------------------------------------------------------------
# 1. Reference scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_three_cubes_in_dry_van(self, dry_van):
        items = [CargoItem(f"c{i}", 24, 24, 24) for i in range(3)]
        result = pack(items, dry_van)
        assert len(result.placements) == 3
        assert result.unplaced == []
        assert result.stats.packed_cases == 3
        assert result.stats.total_cases == 3
        assert_layout_valid(result, dry_van)

    @pytest.mark.parametrize("can_flip", [False, True])
    def test_item_longer_than_truck_is_unplaced(self, dry_van, can_flip):
        result = pack([CargoItem("long", 700, 50, 50, can_flip=can_flip)], dry_van)
        assert result.placements == []
        assert result.unplaced == ["long"]
        assert result.stats.packed_cases == 0

    def test_item_over_wheel_well_lands_above_it(self):
        # the only room for the item is over a well, so it must rest on the housing
        truck = TruckSpec(30, 102, 110, WheelWells(well_height=12, well_width=30,
                                                   well_length=30, well_offset_from_rear=0))
        items = [CargoItem(f"w{i}", 30, 30, 10) for i in range(3)]
        result = pack(items, truck)
        assert len(result.placements) == 3
        wells = blocked_zones(truck)
        for p in result.placements:
            if any(footprints_overlap(p.aabb, w) for w in wells):
                assert p.bottom >= 12 - EPSILON
        assert any(p.bottom == 12 for p in result.placements)
        assert_layout_valid(result, truck)

    def test_flipped_item_uses_oriented_height(self):
        # only (24, 32, 48) fits a 24 x 32 x 50 space
        truck = TruckSpec(24, 32, 50)
        result = pack([CargoItem("f", 48, 24, 32, can_flip=True)], truck)
        assert len(result.placements) == 1
        p = result.placements[0]
        assert p.dims.height == 48
        assert p.position.y == pytest.approx(24)
        assert p.aabb.max.y == pytest.approx(48)
        assert result.stats.packed_cases == 1

    def test_second_item_rests_on_first_with_zero_gap(self):
        truck = TruckSpec(24, 24, 98)
        result = pack([CargoItem("a", 24, 24, 24), CargoItem("b", 24, 24, 24)], truck)
        first, second = result.placements
        assert first.bottom == 0
        assert second.bottom == first.top

    def test_positions_are_plain_floats(self, dry_van):
        result = pack([CargoItem("a", 24, 24, 24, weight=10)], dry_van)
        pos = result.placements[0].position
        assert all(type(v) is float for v in (pos.x, pos.y, pos.z))


# ---------------------------------------------------------------------------
# 2. Wall filling behavior
# ---------------------------------------------------------------------------

class TestWallFilling:
    def test_stacks_floor_to_ceiling(self):
        truck = TruckSpec(24, 24, 98)
        result = pack([CargoItem(str(i), 24, 24, 24) for i in range(4)], truck)
        assert [p.bottom for p in result.placements] == [0, 24, 48, 72]
        assert result.placements[-1].top == 96

    def test_scan_continues_past_a_blocked_position(self):
        # the tall box leaves no headroom on its column; short boxes must
        # still stack on the columns further along the same pass
        truck = TruckSpec(30, 100, 98)
        items = [CargoItem("tall", 30, 30, 90)] + [CargoItem(f"s{i}", 30, 30, 20) for i in range(4)]
        result = pack(items, truck)
        assert result.unplaced == []
        assert sorted(p.bottom for p in result.placements) == [0, 0, 0, 20, 20]
        assert_layout_valid(result, truck)

    def test_multiple_walls_advance_along_length(self, dry_van):
        items = [CargoItem(str(i), 51, 51, 98) for i in range(6)]
        result = pack(items, dry_van)
        assert len(result.placements) == 6
        faces = sorted({p.aabb.min.x for p in result.placements})
        assert faces == [0, 51, 102]

    def test_front_bonus_loads_from_the_front(self):
        truck = TruckSpec(600, 100, 110, FrontBonus(100, 60, 50))
        items = [CargoItem(str(i), 24, 24, 24) for i in range(20)]
        result = pack(items, truck)
        assert result.placements[0].aabb.max.x == pytest.approx(600)
        for p in result.placements:
            if p.aabb.max.x > 500 + EPSILON:
                assert p.aabb.min.z >= -30 - EPSILON and p.aabb.max.z <= 30 + EPSILON
                assert p.top <= 50 + EPSILON
        assert_layout_valid(result, truck)

    def test_payload_limit(self, dry_van):
        truck = TruckSpec(636, 102, 98, payload_kg=50)
        items = [CargoItem(str(i), 24, 24, 24, weight=30) for i in range(3)]
        result = pack(items, truck)
        assert len(result.placements) == 1
        assert result.unplaced == ["1", "2"]
        assert result.stats.total_weight == 30

        unlimited = pack(items, truck, PackConfig(enforce_payload=False))
        assert len(unlimited.placements) == 3

    def test_hidden_items_are_skipped(self, dry_van):
        items = [CargoItem("a", 24, 24, 24), CargoItem("h", 24, 24, 24, visible=False)]
        result = pack(items, dry_van)
        assert [p.item_id for p in result.placements] == ["a"]
        assert result.unplaced == []
        assert result.stats.total_cases == 1

    def test_largest_items_first(self, dry_van):
        items = [CargoItem("small", 10, 10, 10), CargoItem("big", 40, 40, 40)]
        result = pack(items, dry_van)
        assert result.placements[0].item_id == "big"


# ---------------------------------------------------------------------------
# 3. Invariants on generated datasets
# ---------------------------------------------------------------------------

TRUCK_PRESETS = ["53ft_dry_van_us", "53ft_dry_van_us_wheel_wells", "53ft_dry_van_us_front_overhang"]


class TestInvariants:
    @pytest.mark.parametrize("preset", TRUCK_PRESETS)
    def test_layout_invariants(self, preset):
        truck = truck_from_preset(preset)
        items = generate_items(30, seed=7)
        result = pack(items, truck)
        assert result.placements
        assert_layout_valid(result, truck)

    @pytest.mark.parametrize("preset", TRUCK_PRESETS)
    def test_counts_and_percent(self, preset):
        truck = truck_from_preset(preset)
        items = generate_items(30, seed=11)
        result = pack(items, truck)
        assert len(result.placements) + len(result.unplaced) == len(items)
        assert result.stats.packed_cases == len(result.placements)
        assert 0 <= result.stats.volume_percent <= 100
        assert result.stats == compute_stats(result.placements, truck, items)

    def test_overfull_truck(self):
        truck = TruckSpec(100, 60, 60)
        items = generate_items(40, seed=3)
        result = pack(items, truck)
        assert result.unplaced
        assert len(result.placements) + len(result.unplaced) == 40
        assert_layout_valid(result, truck)

    def test_deterministic(self, wells_truck):
        items = generate_items(25, seed=5)
        first = pack(items, wells_truck)
        second = pack(items, wells_truck)
        assert first == second

    def test_inputs_not_mutated(self, dry_van):
        items = [CargoItem("b", 10, 10, 10), CargoItem("a", 40, 40, 40)]
        snapshot = list(items)
        pack(items, dry_van)
        assert items == snapshot

    @pytest.mark.parametrize("lookahead,candidates", [(0, 2), (1, 3), (2, 4)])
    def test_lookahead_settings_keep_invariants(self, dry_van, lookahead, candidates):
        items = generate_items(20, seed=21)
        config = PackConfig(lookahead_depth=lookahead, wall_candidates=candidates)
        result = pack(items, dry_van, config)
        assert_layout_valid(result, dry_van)

    def test_custom_weights_keep_invariants(self, wells_truck):
        weights = ScoringWeights(height=5.0, width_fit=0.5, depth_use=0.5, face_area=0.0, volume=1.0)
        result = pack(generate_items(20, seed=2), wells_truck, PackConfig(weights=weights))
        assert_layout_valid(result, wells_truck)


class TestLookahead:
    """Single-lane trailer: every wall holds one item, so only wall depth matters."""

    @pytest.fixture
    def lane(self):
        return TruckSpec(30, 10, 10)

    @pytest.fixture
    def lane_items(self):
        # the 20 long crate wins the first wall on its own, but leaves a
        # 10 long remainder where neither 15 long case fits
        return [CargoItem("crate", 20, 10, 10), CargoItem("case1", 15, 10, 10),
                CargoItem("case2", 15, 10, 10)]

    def test_greedy_takes_the_bigger_first_wall(self, lane, lane_items):
        result = pack(lane_items, lane, PackConfig(lookahead_depth=0))
        assert [p.item_id for p in result.placements] == ["crate"]
        assert result.unplaced == ["case1", "case2"]

    def test_lookahead_picks_the_shallower_wall(self, lane, lane_items):
        result = pack(lane_items, lane, PackConfig(lookahead_depth=1))
        assert [p.item_id for p in result.placements] == ["case1", "case2"]
        assert result.placements[0].dims.length == 15
        assert [p.aabb.min.x for p in result.placements] == [0, 15]
        assert result.unplaced == ["crate"]

    def test_lookahead_places_more(self, lane, lane_items):
        greedy = pack(lane_items, lane, PackConfig(lookahead_depth=0))
        ahead = pack(lane_items, lane)
        assert len(ahead.placements) > len(greedy.placements)


# ---------------------------------------------------------------------------
# 4. Input handling and cancellation
# ---------------------------------------------------------------------------

class TestInputs:
    @pytest.mark.parametrize("dims", [(0, 102, 98), (636, 0, 98), (636, 102, 0)])
    def test_degenerate_truck_places_nothing(self, dims):
        result = pack([CargoItem("a", 10, 10, 10)], TruckSpec(*dims))
        assert result.placements == []
        assert result.unplaced == ["a"]
        assert result.stats.volume_percent == 0

    @pytest.mark.parametrize("dims", [(-1, 102, 98), (math.nan, 102, 98), (636, math.inf, 98)])
    def test_malformed_truck_raises(self, dims):
        with pytest.raises(InvalidInputError):
            pack([], TruckSpec(*dims))

    @pytest.mark.parametrize("dims", [(-1, 10, 10), (10, math.nan, 10), (10, 10, 0)])
    def test_malformed_item_raises(self, dry_van, dims):
        with pytest.raises(InvalidInputError):
            pack([CargoItem("bad", *dims)], dry_van)

    def test_duplicate_ids_raise(self, dry_van):
        with pytest.raises(InvalidInputError):
            pack([CargoItem("a", 1, 1, 1), CargoItem("a", 2, 2, 2)], dry_van)

    def test_empty_input(self, dry_van):
        result = pack([], dry_van)
        assert result.placements == [] and result.unplaced == []
        assert result.stats.total_cases == 0

    def test_cancel_before_first_wall(self, dry_van):
        result = pack([CargoItem("a", 10, 10, 10)], dry_van, should_cancel=lambda: True)
        assert result.cancelled
        assert result.placements == []
        assert result.unplaced == ["a"]

    def test_cancel_between_walls(self):
        # one cube per wall
        truck = TruckSpec(636, 50, 50)
        calls = []

        def should_cancel():
            calls.append(1)
            return len(calls) > 1

        result = pack([CargoItem(str(i), 50, 50, 50) for i in range(10)], truck,
                      should_cancel=should_cancel)
        assert result.cancelled
        assert len(result.placements) == 1
        assert len(result.unplaced) == 9


class TestScoring:
    def test_lower_rest_scores_higher(self):
        w = ScoringWeights()
        o = Orientation(24, 24, 24)
        assert score_candidate(w, 0, o, 100, 24, 98, 13824) > score_candidate(w, 48, o, 100, 24, 98, 13824)

    def test_tighter_width_scores_higher(self):
        w = ScoringWeights(height=0, depth_use=0, face_area=0, volume=0)
        assert (score_candidate(w, 0, Orientation(24, 48, 24), 50, 24, 98, 1)
                > score_candidate(w, 0, Orientation(24, 24, 24), 50, 24, 98, 1))
