from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .config import EPSILON, TruckSpec
from .models import CargoItem, PackStats, PlacedItem, Vec3
from .zones import capacity, is_contained, zones_for

# center-of-gravity deviation limits, percent
COG_OK_PCT = 10.0
COG_WARN_PCT = 15.0


def _by_id(items: Sequence[CargoItem]) -> Dict[str, CargoItem]:
    return {it.id: it for it in items}


def compute_stats(placements: Sequence[PlacedItem], truck: TruckSpec,
                  items: Sequence[CargoItem]) -> PackStats:
    """Packed/unpacked counts and volume use for a set of placements.

    A placement counts as packed when its bounding box, built from the
    oriented dimensions it was placed with, passes the same containment test
    the packer uses. Placements whose id is not among ``items`` are ignored.
    """
    zones = zones_for(truck)
    cap = capacity(truck)
    lookup = _by_id(items)
    packed = 0
    used = 0.0
    weight = 0.0
    for p in placements:
        it = lookup.get(p.item_id)
        if it is None or not it.visible:
            continue
        if not is_contained(p.aabb, zones, EPSILON):
            continue
        packed += 1
        used += it.volume
        weight += it.weight
    pct = (used / cap) * 100.0 if cap > 0 else 0.0
    return PackStats(
        total_cases=sum(1 for it in items if it.visible),
        packed_cases=packed,
        volume_used=used,
        volume_percent=min(100.0, max(0.0, pct)),
        total_weight=weight,
    )


@dataclass(frozen=True)
class CogReport:
    position: Vec3
    deviation_x_pct: float
    deviation_z_pct: float
    total_weight: float
    within_tolerance: bool
    status: str

    def to_payload(self) -> dict:
        return {
            "position": {"x": self.position.x, "y": self.position.y, "z": self.position.z},
            "deviationPercent": {"x": self.deviation_x_pct, "z": self.deviation_z_pct},
            "totalWeight": self.total_weight,
            "withinTolerance": self.within_tolerance,
            "status": self.status,
        }


def compute_cog(placements: Sequence[PlacedItem], items: Sequence[CargoItem],
                truck: TruckSpec) -> Optional[CogReport]:
    """Weight-averaged center of the load; None when nothing placed has weight."""
    lookup = _by_id(items)
    total = wx = wy = wz = 0.0
    for p in placements:
        it = lookup.get(p.item_id)
        if it is None or it.weight <= 0:
            continue
        total += it.weight
        wx += p.position.x * it.weight
        wy += p.position.y * it.weight
        wz += p.position.z * it.weight
    if total <= 0:
        return None

    cog = Vec3(wx / total, wy / total, wz / total)
    dev_x = ((cog.x - truck.length / 2.0) / truck.length) * 100.0 if truck.length > 0 else 0.0
    dev_z = (cog.z / (truck.width / 2.0)) * 100.0 if truck.width > 0 else 0.0
    ok = bool(abs(dev_x) <= COG_OK_PCT and abs(dev_z) <= COG_OK_PCT)
    if ok:
        status = "ok"
    elif abs(dev_x) <= COG_WARN_PCT and abs(dev_z) <= COG_WARN_PCT:
        status = "warning"
    else:
        status = "critical"
    return CogReport(cog, dev_x, dev_z, total, ok, status)
