import csv, json

from .stats import compute_cog

LAYOUT_KEYS = ["id", "x", "y", "z", "length", "width", "height", "yaw"]


def layout_rows(placements):
    for p in placements:
        yield {
            "id": p.item_id,
            "x": p.position.x, "y": p.position.y, "z": p.position.z,
            "length": p.dims.length, "width": p.dims.width, "height": p.dims.height,
            "yaw": p.yaw,
        }


def save_layout_csv(placements, path):
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=LAYOUT_KEYS); w.writeheader()
        for row in layout_rows(placements): w.writerow(row)


def build_report(result, items, truck):
    cog = compute_cog(result.placements, items, truck)
    return {
        "truck": {"name": truck.name, "length": truck.length, "width": truck.width,
                  "height": truck.height, "shape": truck.shape.mode.value},
        "stats": result.stats.to_payload(),
        "unplaced": list(result.unplaced),
        "cancelled": result.cancelled,
        "centerOfGravity": cog.to_payload() if cog else None,
    }


def save_report_json(rep, path):
    with open(path, "w") as f: json.dump(rep, f, indent=2)
