"""Resting height and collision queries against already-placed boxes."""
import logging
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .config import EPSILON
from .models import AABB, PlacedItem

logger = logging.getLogger(__name__)

# (x_min, x_max, z_min, z_max)
Footprint = Tuple[float, float, float, float]


def footprint_of(aabb: AABB) -> Footprint:
    return (aabb.min.x, aabb.max.x, aabb.min.z, aabb.max.z)


def _boxes(placed: Iterable[PlacedItem], obstacles: Iterable[AABB] = ()) -> np.ndarray:
    rows = [(b.min.x, b.min.y, b.min.z, b.max.x, b.max.y, b.max.z) for b in obstacles]
    rows += [_row(p.aabb) for p in placed]
    if not rows:
        return np.empty((0, 6), dtype=float)
    return np.asarray(rows, dtype=float)


def _row(b: AABB):
    return (b.min.x, b.min.y, b.min.z, b.max.x, b.max.y, b.max.z)


def _footprint_mask(boxes: np.ndarray, fp: Footprint, eps: float) -> np.ndarray:
    x0, x1, z0, z1 = fp
    return ((boxes[:, 0] < x1 - eps) & (boxes[:, 3] > x0 + eps) &
            (boxes[:, 2] < z1 - eps) & (boxes[:, 5] > z0 + eps))


def _overlap_mask(boxes: np.ndarray, b: AABB, eps: float) -> np.ndarray:
    return ((boxes[:, 0] < b.max.x - eps) & (boxes[:, 3] > b.min.x + eps) &
            (boxes[:, 1] < b.max.y - eps) & (boxes[:, 4] > b.min.y + eps) &
            (boxes[:, 2] < b.max.z - eps) & (boxes[:, 5] > b.min.z + eps))


def resting_y(footprint: Footprint, placed: Sequence[PlacedItem],
              obstacles: Sequence[AABB] = (), epsilon: float = EPSILON) -> float:
    """Height of the highest top surface under ``footprint``, or 0 for the floor."""
    boxes = _boxes(placed, obstacles)
    if not len(boxes):
        return 0.0
    mask = _footprint_mask(boxes, footprint, epsilon)
    if not mask.any():
        return 0.0
    return max(0.0, float(boxes[mask, 4].max()))


def center_y(resting: float, oriented_height: float) -> float:
    return resting + oriented_height / 2.0


def aabb_overlap(a: AABB, b: AABB, epsilon: float = EPSILON) -> bool:
    return (a.min.x < b.max.x - epsilon and a.max.x > b.min.x + epsilon and
            a.min.y < b.max.y - epsilon and a.max.y > b.min.y + epsilon and
            a.min.z < b.max.z - epsilon and a.max.z > b.min.z + epsilon)


def collides(aabb: AABB, placed: Sequence[PlacedItem],
             obstacles: Sequence[AABB] = (), epsilon: float = EPSILON) -> bool:
    boxes = _boxes(placed, obstacles)
    return bool(len(boxes)) and bool(_overlap_mask(boxes, aabb, epsilon).any())


class Occupancy:
    """Growing array of occupied boxes: fixed obstacles first, then placements.

    The packing loop asks the same two questions thousands of times per wall,
    so boxes are kept as one (n, 6) float array of min/max corners.
    """

    def __init__(self, obstacles: Sequence[AABB] = (), epsilon: float = EPSILON):
        self.epsilon = epsilon
        self._boxes = _boxes((), obstacles)
        self._n = len(self._boxes)
        self.placed = []

    def copy(self) -> "Occupancy":
        other = Occupancy.__new__(Occupancy)
        other.epsilon = self.epsilon
        other._boxes = self._boxes.copy()
        other._n = self._n
        other.placed = list(self.placed)
        return other

    @property
    def boxes(self) -> np.ndarray:
        return self._boxes[:self._n]

    def add(self, p: PlacedItem) -> None:
        if self._n == len(self._boxes):
            grown = np.empty((max(16, 2 * len(self._boxes)), 6), dtype=float)
            grown[:self._n] = self._boxes[:self._n]
            self._boxes = grown
        self._boxes[self._n] = _row(p.aabb)
        self._n += 1
        self.placed.append(p)

    def resting_many(self, footprints: np.ndarray) -> np.ndarray:
        """Resting heights for a (k, 4) array of footprints, as ``resting_y`` computes them."""
        k = len(footprints)
        if not self._n or not k:
            return np.zeros(k, dtype=float)
        b = self.boxes
        eps = self.epsilon
        fp = footprints[:, :, None]
        mask = ((b[None, :, 0] < fp[:, 1] - eps) & (b[None, :, 3] > fp[:, 0] + eps) &
                (b[None, :, 2] < fp[:, 3] - eps) & (b[None, :, 5] > fp[:, 2] + eps))
        tops = np.where(mask, b[None, :, 4], 0.0).max(axis=1)
        return np.maximum(tops, 0.0)

    def collides(self, aabb: AABB) -> bool:
        if not self._n:
            return False
        boxes = self.boxes
        if _overlap_mask(boxes, aabb, self.epsilon).any():
            return True
        near = _overlap_mask(boxes, aabb, 0.0)
        if near.any():
            logger.debug("contact within tolerance for %s (%d boxes)", aabb, int(near.sum()))
        return False

    def next_edge_z(self, x0: float, x1: float, z: float) -> Optional[float]:
        """Smallest box z-edge beyond ``z`` among boxes reaching into [x0, x1]."""
        if not self._n:
            return None
        boxes = self.boxes
        eps = self.epsilon
        in_slab = (boxes[:, 0] < x1 - eps) & (boxes[:, 3] > x0 + eps)
        if not in_slab.any():
            return None
        edges = np.concatenate([boxes[in_slab, 2], boxes[in_slab, 5]])
        edges = edges[edges > z + eps]
        return float(edges.min()) if len(edges) else None

    def max_top(self, x0: float, x1: float) -> float:
        """Highest placed top inside the slab [x0, x1]; obstacles excluded."""
        tops = [p.top for p in self.placed
                if p.aabb.min.x < x1 - self.epsilon and p.aabb.max.x > x0 + self.epsilon]
        return max(tops, default=0.0)
