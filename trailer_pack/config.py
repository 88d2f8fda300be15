from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

# Single tolerance shared by zone containment, collision and gravity.
# The stats reporter must use the same value as the engine.
EPSILON: float = 0.01

# Number of candidate wall depths simulated per wall (>= 2)
WALL_CANDIDATES: int = 3
# Number of extra walls estimated when ranking a candidate depth
LOOKAHEAD_DEPTH: int = 1


class ShapeMode(str, Enum):
    RECT = "rect"
    FRONT_BONUS = "frontBonus"
    WHEEL_WELLS = "wheelWells"


@dataclass(frozen=True)
class Rect:
    mode = ShapeMode.RECT


@dataclass(frozen=True)
class FrontBonus:
    # None -> 0.12*L, W, H
    bonus_length: Optional[float] = None
    bonus_width: Optional[float] = None
    bonus_height: Optional[float] = None
    mode = ShapeMode.FRONT_BONUS


@dataclass(frozen=True)
class WheelWells:
    # None -> 0.35*H, 0.15*W, 0.35*L, 0.25*L
    well_height: Optional[float] = None
    well_width: Optional[float] = None
    well_length: Optional[float] = None
    well_offset_from_rear: Optional[float] = None
    mode = ShapeMode.WHEEL_WELLS


TruckShape = Union[Rect, FrontBonus, WheelWells]


def shape_from_mode(mode) -> TruckShape:
    """Unknown modes fall back to a plain box."""
    try:
        mode = ShapeMode(mode)
    except ValueError:
        return Rect()
    if mode is ShapeMode.FRONT_BONUS:
        return FrontBonus()
    if mode is ShapeMode.WHEEL_WELLS:
        return WheelWells()
    return Rect()


@dataclass(frozen=True)
class TruckSpec:
    length: float
    width: float
    height: float
    shape: TruckShape = field(default_factory=Rect)
    name: str = ""
    payload_kg: Optional[float] = None


@dataclass(frozen=True)
class ScoringWeights:
    # penalty on resting height / truck height
    height: float = 0.5
    # reward for closing the remaining width gap
    width_fit: float = 2.0
    # reward for using the full wall depth
    depth_use: float = 1.5
    # reward for covering the wall face (w*h over gap*headroom)
    face_area: float = 1.0
    # tie-break toward larger items
    volume: float = 0.1


@dataclass(frozen=True)
class PackConfig:
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    wall_candidates: int = WALL_CANDIDATES
    lookahead_depth: int = LOOKAHEAD_DEPTH
    enforce_payload: bool = True


# Trailer presets (inches)
PRESETS = {
    "default": TruckSpec(636, 102, 98, Rect(), "Default"),
    "53ft_dry_van_us": TruckSpec(636, 102, 110, Rect(), "53 ft Dry Van (US)"),
    "53ft_dry_van_us_wheel_wells": TruckSpec(636, 102, 110, WheelWells(), "53 ft Dry Van (US, Wheel Wells)"),
    "53ft_dry_van_us_front_overhang": TruckSpec(636, 102, 110, FrontBonus(), "53 ft Dry Van (US, Front Overhang)"),
    "53ft_dry_van_low_us": TruckSpec(636, 102, 102, Rect(), "53 ft Dry Van (US, Low)"),
    "48ft_dry_van_us": TruckSpec(576, 102, 110, Rect(), "48 ft Dry Van (US)"),
    "40ft_dry_van_us": TruckSpec(480, 102, 110, Rect(), "40 ft Dry Van (US)"),
    "26ft_box_truck_us": TruckSpec(312, 96, 96, Rect(), "26 ft Box Truck (US)"),
    "24ft_box_truck_us": TruckSpec(288, 96, 96, Rect(), "24 ft Box Truck (US)"),
    "20ft_box_truck_us": TruckSpec(240, 96, 96, Rect(), "20 ft Box Truck (US)"),
    "16ft_box_truck_us": TruckSpec(192, 90, 84, Rect(), "16 ft Box Truck (US)"),
    "sprinter_extended": TruckSpec(168, 70, 72, Rect(), "Sprinter Van (Extended)"),
}


def truck_from_preset(preset_id: str) -> TruckSpec:
    try:
        return PRESETS[preset_id]
    except KeyError:
        raise KeyError(f"unknown trailer preset: {preset_id!r}") from None
