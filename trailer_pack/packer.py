"""Wall-building auto packer.

The trailer is filled in depth slabs ("walls") from the loading end. For each
wall a handful of candidate depths is simulated, each followed by a cheap
estimate of the next wall(s), and the depth that places the most items over
that window wins. A wall is filled by passes across the width; every pass
drops items under gravity so later passes stack on earlier ones.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import EPSILON, PackConfig, ScoringWeights, TruckSpec
from .gravity import Occupancy, center_y
from .models import (AABB, CargoItem, Orientation, PackResult, PlacedItem, Vec3,
                     validate_items, validate_truck)
from .orientations import min_width, orientations_for
from .stats import compute_stats
from .zones import (blocked_zones, is_contained, loads_front_first, usable_z_ranges,
                    zone_boundaries_x, zones_for)

logger = logging.getLogger(__name__)

EPS = EPSILON


@dataclass(frozen=True)
class _Entry:
    item: CargoItem
    orientations: Tuple[Orientation, ...]
    min_width: float


class _Context:
    """Per-call constants: truck frame, zones, weights."""

    def __init__(self, truck: TruckSpec, config: PackConfig, max_volume: float):
        self.length = truck.length
        self.width = truck.width
        self.height = truck.height
        self.payload = truck.payload_kg if config.enforce_payload else None
        self.zones = zones_for(truck)
        self.obstacles = blocked_zones(truck)
        self.front_first = loads_front_first(truck)
        self.weights = config.weights
        self.max_volume = max_volume or 1.0
        # zone edges expressed as distance from the loading end
        edges = zone_boundaries_x(self.zones)
        if self.front_first:
            edges = [self.length - x for x in edges]
        self.edges = sorted(edges)

    def item_x(self, cursor: float, length: float) -> Tuple[float, float]:
        if self.front_first:
            x1 = self.length - cursor
            return x1 - length, x1
        return cursor, cursor + length

    def slab(self, cursor: float, depth: float) -> Tuple[float, float]:
        return self.item_x(cursor, depth)

    def face_probe(self, cursor: float) -> float:
        # a point just inside the wall, off the face shared with the previous zone
        x, _ = self.item_x(cursor, 0.0)
        return x - 2 * EPS if self.front_first else x + 2 * EPS

    def next_edge(self, cursor: float) -> Optional[float]:
        for e in self.edges:
            if e > cursor + EPS:
                return e
        return None


class _State:
    """Mutable working set for one simulated or committed run."""

    def __init__(self, remaining: List[_Entry], occ: Occupancy, weight: float = 0.0):
        self.remaining = remaining
        self.occ = occ
        self.weight = weight

    def copy(self) -> "_State":
        return _State(list(self.remaining), self.occ.copy(), self.weight)

    def min_width(self) -> float:
        return min(e.min_width for e in self.remaining)


@dataclass(frozen=True)
class _Option:
    score: float
    index: int
    orientation: Orientation
    position: Vec3
    aabb: AABB


def score_candidate(weights: ScoringWeights, resting: float, ori: Orientation, gap: float,
                    depth: float, truck_height: float, max_volume: float) -> float:
    """Higher is better. Every term is normalized to [0, 1] before weighting."""
    headroom = max(truck_height - resting, EPS)
    height_term = min(1.0, resting / truck_height) if truck_height > 0 else 0.0
    width_fit = min(1.0, ori.width / gap) if gap > 0 else 0.0
    depth_use = min(1.0, ori.length / depth) if depth > 0 else 0.0
    face = min(1.0, (ori.width * ori.height) / (max(gap, EPS) * headroom))
    volume = min(1.0, ori.volume / max_volume)
    return (-weights.height * height_term
            + weights.width_fit * width_fit
            + weights.depth_use * depth_use
            + weights.face_area * face
            + weights.volume * volume)


def _options_at(state: _State, ctx: _Context, cursor: float, depth: float,
                z: float, z_end: float) -> List[_Option]:
    """All contained placements at one scan position, best first."""
    gap = z_end - z
    keys: Dict[Tuple[float, float, float], Tuple[int, Orientation]] = {}
    for i, e in enumerate(state.remaining):
        if ctx.payload is not None and state.weight + e.item.weight > ctx.payload + EPS:
            continue
        for o in e.orientations:
            if o.length > depth + EPS or o.width > gap + EPS or o.height > ctx.height + EPS:
                continue
            # first item in volume order wins for identical boxes
            keys.setdefault(o.key, (i, o))
    if not keys:
        return []

    cands = list(keys.values())
    fps = np.empty((len(cands), 4), dtype=float)
    for k, (_, o) in enumerate(cands):
        x0, x1 = ctx.item_x(cursor, o.length)
        fps[k] = (x0, x1, z, z + o.width)
    rests = state.occ.resting_many(fps)

    out = []
    for k, (i, o) in enumerate(cands):
        rest = float(rests[k])
        if rest + o.height > ctx.height + EPS:
            continue
        x0, x1, z0, z1 = (float(v) for v in fps[k])
        pos = Vec3((x0 + x1) / 2.0, center_y(rest, o.height), (z0 + z1) / 2.0)
        box = AABB.from_center(pos, o.length, o.width, o.height)
        if not is_contained(box, ctx.zones, EPS):
            continue
        s = score_candidate(ctx.weights, rest, o, gap, depth, ctx.height, ctx.max_volume)
        out.append(_Option(s, i, o, pos, box))
    # stable: equal scores keep volume order
    out.sort(key=lambda op: -op.score)
    return out


def _place(state: _State, op: _Option) -> PlacedItem:
    entry = state.remaining.pop(op.index)
    p = PlacedItem(entry.item.id, op.position, op.orientation.yaw, op.orientation)
    state.occ.add(p)
    state.weight += entry.item.weight
    return p


def _fill_wall(state: _State, ctx: _Context, cursor: float, depth: float) -> Tuple[List[PlacedItem], float]:
    """Fill one wall in place. Returns the placements and the depth they consumed."""
    x0, x1 = ctx.slab(cursor, depth)
    probe = ctx.face_probe(cursor)
    placed: List[PlacedItem] = []
    while state.remaining:
        level = state.occ.max_top(x0, x1)
        ranges = usable_z_ranges(probe, level, ctx.zones)
        in_pass = 0
        for z_lo, z_hi in ranges:
            z = z_lo
            while state.remaining and z_hi - z > EPS:
                chosen = None
                for op in _options_at(state, ctx, cursor, depth, z, z_hi):
                    if not state.occ.collides(op.aabb):
                        chosen = op
                        break
                if chosen is None:
                    # skip ahead instead of giving up on the rest of the row
                    target = z + state.min_width()
                    edge = state.occ.next_edge_z(x0, x1, z)
                    if edge is not None and edge < target:
                        target = edge
                    z = target
                    continue
                placed.append(_place(state, chosen))
                in_pass += 1
                z = chosen.aabb.max.z
        if not in_pass:
            break
    consumed = max((p.dims.length for p in placed), default=0.0)
    return placed, consumed


def candidate_depths(state: _State, ctx: _Context, cursor: float) -> List[float]:
    """Distinct orientation depths that fit the remaining length, most common first."""
    left = ctx.length - cursor
    counts: Dict[float, int] = {}
    for e in state.remaining:
        seen = set()
        for o in e.orientations:
            if (o.length <= left + EPS and o.width <= ctx.width + EPS
                    and o.height <= ctx.height + EPS and o.length not in seen):
                seen.add(o.length)
                counts[o.length] = counts.get(o.length, 0) + 1
    return sorted(counts, key=lambda d: (-counts[d], -d))


def _estimate(state: _State, ctx: _Context, cursor: float, walls: int) -> int:
    """Items placed by ``walls`` greedy walls, each using the most common depth."""
    count = 0
    for _ in range(walls):
        if not state.remaining or cursor >= ctx.length - EPS:
            break
        depths = candidate_depths(state, ctx, cursor)
        if not depths:
            break
        placed, consumed = _fill_wall(state, ctx, cursor, depths[0])
        if not placed:
            break
        count += len(placed)
        cursor += consumed
    return count


def _choose_wall(state: _State, ctx: _Context, cursor: float, config: PackConfig):
    """Simulate the top candidate depths and return (depth, state after wall, placed, consumed)."""
    depths = candidate_depths(state, ctx, cursor)[:max(2, config.wall_candidates)]
    best = None
    best_key = None
    for rank, depth in enumerate(depths):
        sim = state.copy()
        placed, consumed = _fill_wall(sim, ctx, cursor, depth)
        total = len(placed)
        if placed and config.lookahead_depth > 0:
            total += _estimate(sim.copy(), ctx, cursor + consumed, config.lookahead_depth)
        volume = sum(p.dims.volume for p in placed)
        key = (total, volume, -rank)
        logger.debug("wall @%.2f depth=%s -> %d now, %d with lookahead", cursor, depth, len(placed), total)
        if best_key is None or key > best_key:
            best_key = key
            best = (depth, sim, placed, consumed)
    return best


def pack(items: Sequence[CargoItem], truck: TruckSpec, config: Optional[PackConfig] = None,
         should_cancel: Optional[Callable[[], bool]] = None) -> PackResult:
    """Place ``items`` inside ``truck``. Pure: inputs are not modified.

    Raises InvalidInputError for malformed input. Items that do not fit are
    listed in ``PackResult.unplaced``.
    """
    config = config or PackConfig()
    validate_truck(truck)
    items = list(items)
    validate_items(items)

    visible = [it for it in items if it.visible]
    # first-fit decreasing; sorted() is stable so ties keep input order
    ordered = sorted(visible, key=lambda it: -it.volume)
    entries = []
    for it in ordered:
        oris = tuple(orientations_for(it))
        entries.append(_Entry(it, oris, min_width(it)))

    ctx = _Context(truck, config, max((it.volume for it in visible), default=0.0))
    state = _State(entries, Occupancy(ctx.obstacles, EPS))
    logger.info("pack: %d items into %sx%sx%s %s (%d zones)", len(entries), truck.length,
                truck.width, truck.height, truck.shape.mode.value, len(ctx.zones))

    cancelled = False
    cursor = 0.0
    walls = 0
    while ctx.zones and state.remaining and cursor < ctx.length - EPS:
        if should_cancel is not None and should_cancel():
            cancelled = True
            logger.info("pack cancelled after %d walls", walls)
            break
        choice = _choose_wall(state, ctx, cursor, config)
        if choice is None:
            break
        depth, sim, placed, consumed = choice
        if not placed:
            edge = ctx.next_edge(cursor)
            if edge is None:
                break
            logger.debug("nothing fits at %.2f, skipping to zone edge %.2f", cursor, edge)
            cursor = edge
            continue
        state = sim
        walls += 1
        logger.debug("wall %d @%.2f depth=%s placed=%d consumed=%.2f", walls, cursor, depth,
                     len(placed), consumed)
        cursor += consumed

    placements = list(state.occ.placed)
    unplaced = [e.item.id for e in state.remaining]
    stats = compute_stats(placements, truck, visible)
    logger.info("pack: placed %d/%d in %d walls (%.1f%%)", len(placements), len(entries), walls,
                stats.volume_percent)
    return PackResult(placements, unplaced, stats, cancelled)
