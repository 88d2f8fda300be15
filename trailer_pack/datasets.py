"""Synthetic case lists for benchmarks and property tests."""
import numpy as np
import pandas as pd

from .main import items_from_frame


def generate_frame(num_items=60, seed=42, min_dim=12, max_dim=48, flip_share=0.3):
    """Realistic-ish case table in inches / lb, a few sizes repeated like real cargo."""
    rng = np.random.default_rng(seed)
    # draw from a small catalogue so walls see repeated depths
    catalogue = max(3, num_items // 6)
    sizes = rng.integers(min_dim, max_dim + 1, size=(catalogue, 3))
    pick = rng.integers(0, catalogue, size=num_items)
    dims = sizes[pick]

    volumes = dims.prod(axis=1) / 1728.0            # ft3
    density = rng.uniform(4, 15, num_items)         # lb/ft3, packed cartons
    weights = np.clip(np.round(volumes * density, 1), 2, 400)

    return pd.DataFrame({
        "id": [f"CASE_{i + 1:04d}" for i in range(num_items)],
        "length": dims[:, 0].astype(float),
        "width": dims[:, 1].astype(float),
        "height": dims[:, 2].astype(float),
        "weight": weights,
        "can_flip": rng.random(num_items) < flip_share,
    })


def generate_items(num_items=60, seed=42, **kwargs):
    return items_from_frame(generate_frame(num_items, seed, **kwargs))


def write_csv(path, num_items=500, seed=42):
    df = generate_frame(num_items, seed)
    df.to_csv(path, index=False)
    return df
