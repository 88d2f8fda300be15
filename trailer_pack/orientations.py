from typing import List

from .models import CargoItem, Orientation


def orientations_for(item: CargoItem) -> List[Orientation]:
    """Candidate orientations for an item, deduplicated in generation order.

    Upright: (l, w, h) at yaw 0 and (w, l, h) at yaw 90. A flippable item adds
    the relabelings where its length or width becomes the height. An
    "onside" lock allows only the two orientations lying on the length face;
    "upright" never flips.
    """
    L, W, H = item.length, item.width, item.height
    seen = set()
    out: List[Orientation] = []

    def add(l, w, h, yaw):
        if (l, w, h) not in seen:
            seen.add((l, w, h))
            out.append(Orientation(l, w, h, yaw))

    lock = item.orientation_lock
    if lock in ("any", "upright"):
        add(L, W, H, 0)
        add(W, L, H, 90)
    if lock == "onside":
        add(H, W, L, 0)
        add(W, H, L, 90)
    elif item.can_flip and lock == "any":
        add(H, W, L, 0)
        add(W, H, L, 90)
        add(L, H, W, 0)
        add(H, L, W, 90)
    return out


def min_width(item: CargoItem) -> float:
    return min(o.width for o in orientations_for(item))
