import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

ORIENTATION_LOCKS = ("any", "upright", "onside")


class InvalidInputError(ValueError):
    """Malformed truck or item data; packing must not proceed."""


@dataclass(frozen=True)
class Vec3:
    x: float; y: float; z: float


@dataclass(frozen=True)
class AABB:
    min: Vec3
    max: Vec3

    @classmethod
    def from_center(cls, center: Vec3, length: float, width: float, height: float) -> "AABB":
        hl, hh, hw = length / 2.0, height / 2.0, width / 2.0
        return cls(Vec3(center.x - hl, center.y - hh, center.z - hw),
                   Vec3(center.x + hl, center.y + hh, center.z + hw))

    @property
    def volume(self) -> float:
        return (max(0.0, self.max.x - self.min.x) * max(0.0, self.max.y - self.min.y)
                * max(0.0, self.max.z - self.min.z))


# A zone is just a legally packable box.
Zone = AABB


@dataclass(frozen=True)
class CargoItem:
    id: str
    length: float; width: float; height: float
    weight: float = 0.0
    volume: Optional[float] = None
    can_flip: bool = False
    visible: bool = True
    orientation_lock: str = "any"

    def __post_init__(self):
        if self.volume is None:
            object.__setattr__(self, "volume", self.length * self.width * self.height)

    @property
    def dims(self) -> Tuple[float, float, float]:
        return (self.length, self.width, self.height)


@dataclass(frozen=True)
class Orientation:
    """Oriented dimensions of an item: length along x, width along z, height along y.

    Only two rotations exist: ``yaw`` of 0 or 90 degrees about the vertical
    axis. Tipping an item over is expressed by relabeling which original
    dimension becomes ``height``, never by a pitch or roll angle, so a
    consumer can always take ``height/2`` as the vertical half-extent.
    """
    length: float
    width: float
    height: float
    yaw: int = 0

    def __post_init__(self):
        if self.yaw not in (0, 90):
            raise ValueError(f"yaw must be 0 or 90 degrees, got {self.yaw!r}")

    @property
    def key(self) -> Tuple[float, float, float]:
        return (self.length, self.width, self.height)

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass(frozen=True)
class PlacedItem:
    item_id: str
    position: Vec3
    yaw: int
    dims: Orientation

    @property
    def aabb(self) -> AABB:
        return AABB.from_center(self.position, self.dims.length, self.dims.width, self.dims.height)

    @property
    def bottom(self) -> float:
        return self.position.y - self.dims.height / 2.0

    @property
    def top(self) -> float:
        return self.position.y + self.dims.height / 2.0


@dataclass(frozen=True)
class PackStats:
    total_cases: int
    packed_cases: int
    volume_used: float
    volume_percent: float
    total_weight: float

    def to_payload(self) -> dict:
        return {
            "totalCases": self.total_cases,
            "packedCases": self.packed_cases,
            "volumeUsed": self.volume_used,
            "volumePercent": self.volume_percent,
            "totalWeight": self.total_weight,
        }


@dataclass(frozen=True)
class PackResult:
    placements: List[PlacedItem]
    unplaced: List[str]
    stats: PackStats
    cancelled: bool = False


def _bad_number(v) -> bool:
    try:
        return not math.isfinite(float(v))
    except (TypeError, ValueError):
        return True


def validate_truck(truck) -> None:
    for name in ("length", "width", "height"):
        v = getattr(truck, name)
        if _bad_number(v) or v < 0:
            raise InvalidInputError(f"truck {name} must be a finite non-negative number, got {v!r}")
    if truck.payload_kg is not None and (_bad_number(truck.payload_kg) or truck.payload_kg < 0):
        raise InvalidInputError(f"truck payload_kg must be non-negative, got {truck.payload_kg!r}")


def validate_items(items: List[CargoItem]) -> None:
    seen = set()
    for it in items:
        for name in ("length", "width", "height"):
            v = getattr(it, name)
            if _bad_number(v) or v <= 0:
                raise InvalidInputError(f"item {it.id!r}: {name} must be a finite positive number, got {v!r}")
        if _bad_number(it.weight) or it.weight < 0:
            raise InvalidInputError(f"item {it.id!r}: weight must be non-negative, got {it.weight!r}")
        if _bad_number(it.volume) or it.volume < 0:
            raise InvalidInputError(f"item {it.id!r}: volume must be non-negative, got {it.volume!r}")
        if it.orientation_lock not in ORIENTATION_LOCKS:
            raise InvalidInputError(f"item {it.id!r}: unknown orientation_lock {it.orientation_lock!r}")
        if it.id in seen:
            raise InvalidInputError(f"duplicate item id {it.id!r}")
        seen.add(it.id)
