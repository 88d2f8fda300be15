"""Usable sub-volumes of a trailer.

Zones are expressed in the trailer frame: x along the length from the rear
(0) to the front (L), y up from the floor, z across the width centered on 0.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from .config import EPSILON, FrontBonus, TruckSpec, WheelWells
from .models import AABB, Vec3, Zone

logger = logging.getLogger(__name__)

ZRange = Tuple[float, float]


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _zone(x0, y0, z0, x1, y1, z1) -> Zone:
    return Zone(Vec3(x0, y0, z0), Vec3(x1, y1, z1))


def _sanitize(zones: List[Zone]) -> List[Zone]:
    eps = 1e-9
    return [z for z in zones
            if z.max.x - z.min.x > eps and z.max.y - z.min.y > eps and z.max.z - z.min.z > eps]


def _is_degenerate(truck: TruckSpec) -> bool:
    return not (truck.length > 0 and truck.width > 0 and truck.height > 0)


def _bonus_params(truck: TruckSpec, shape: FrontBonus):
    L, W, H = truck.length, truck.width, truck.height
    bl = _clamp(0.12 * L if shape.bonus_length is None else shape.bonus_length, 0, L)
    bw = _clamp(W if shape.bonus_width is None else shape.bonus_width, 0, W)
    bh = _clamp(H if shape.bonus_height is None else shape.bonus_height, 0, H)
    return bl, bw, bh


def _well_params(truck: TruckSpec, shape: WheelWells):
    L, W, H = truck.length, truck.width, truck.height
    wh = _clamp(0.35 * H if shape.well_height is None else shape.well_height, 0, H)
    ww = _clamp(0.15 * W if shape.well_width is None else shape.well_width, 0, W / 2)
    wl = _clamp(0.35 * L if shape.well_length is None else shape.well_length, 0, L)
    x0 = _clamp(0.25 * L if shape.well_offset_from_rear is None else shape.well_offset_from_rear, 0, L)
    x1 = _clamp(x0 + wl, x0, L)
    between = max(0.0, W / 2 - ww)
    return wh, x0, x1, between


def zones_for(truck: TruckSpec) -> List[Zone]:
    """Legally packable boxes for ``truck``: 1 (rect), 2 (front bonus) or 5 (wheel wells)."""
    if _is_degenerate(truck):
        return []
    L, W, H = truck.length, truck.width, truck.height
    shape = truck.shape

    if isinstance(shape, FrontBonus):
        bl, bw, bh = _bonus_params(truck, shape)
        split = L - bl
        return _sanitize([
            _zone(0, 0, -W / 2, split, H, W / 2),
            _zone(split, 0, -bw / 2, L, bh, bw / 2),
        ])

    if isinstance(shape, WheelWells):
        wh, x0, x1, between = _well_params(truck, shape)
        return _sanitize([
            # rear, full width
            _zone(0, 0, -W / 2, x0, H, W / 2),
            # corridor between the wells, full height
            _zone(x0, 0, -between, x1, H, between),
            # above the left and right wells
            _zone(x0, wh, -W / 2, x1, H, -between),
            _zone(x0, wh, between, x1, H, W / 2),
            # front, full width
            _zone(x1, 0, -W / 2, L, H, W / 2),
        ])

    return [_zone(0, 0, -W / 2, L, H, W / 2)]


def blocked_zones(truck: TruckSpec) -> List[AABB]:
    """Solid wheel-well housings; empty for every other shape."""
    if _is_degenerate(truck) or not isinstance(truck.shape, WheelWells):
        return []
    W = truck.width
    wh, x0, x1, between = _well_params(truck, truck.shape)
    return _sanitize([
        _zone(x0, 0, -W / 2, x1, wh, -between),
        _zone(x0, 0, between, x1, wh, W / 2),
    ])


def loads_front_first(truck: TruckSpec) -> bool:
    return isinstance(truck.shape, FrontBonus)


def zone_volume(zone: Zone) -> float:
    return zone.volume


def capacity(truck: TruckSpec) -> float:
    return sum(zone_volume(z) for z in zones_for(truck))


def _inside(aabb: AABB, z: Zone, eps: float) -> bool:
    return (aabb.min.x >= z.min.x - eps and aabb.max.x <= z.max.x + eps and
            aabb.min.y >= z.min.y - eps and aabb.max.y <= z.max.y + eps and
            aabb.min.z >= z.min.z - eps and aabb.max.z <= z.max.z + eps)


def is_contained(aabb: AABB, zones: Sequence[Zone], epsilon: float = EPSILON) -> bool:
    """True if ``aabb`` fits inside at least one zone, within ``epsilon`` on every face.

    The engine and the stats reporter both call this with the same zones and
    the same epsilon so that a placement the engine accepted is never counted
    as unpacked afterwards.
    """
    for z in zones:
        if _inside(aabb, z, epsilon):
            if epsilon > 0 and not _inside(aabb, z, 0.0):
                logger.debug("containment within tolerance: %s in %s (eps=%s)", aabb, z, epsilon)
            return True
    return False


def usable_z_ranges(x_position: float, min_y: float, zones: Sequence[Zone],
                    x_end: Optional[float] = None, epsilon: float = EPSILON) -> List[ZRange]:
    """Width intervals usable at a length position and stack height.

    A zone contributes its z-interval when it covers ``x_position`` (or the
    whole span up to ``x_end``) and its ceiling is above ``min_y``. Intervals
    of different zones are kept apart because an item must fit inside a
    single zone.
    """
    lo = x_position if x_end is None else min(x_position, x_end)
    hi = x_position if x_end is None else max(x_position, x_end)
    out = set()
    for z in zones:
        if z.min.x - epsilon <= lo and hi <= z.max.x + epsilon and z.max.y > min_y + epsilon:
            out.add((z.min.z, z.max.z))
    return sorted(out)


def zone_boundaries_x(zones: Sequence[Zone]) -> List[float]:
    return sorted({v for z in zones for v in (z.min.x, z.max.x)})
