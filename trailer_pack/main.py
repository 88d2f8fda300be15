import argparse, logging, os, sys
import pandas as pd

from .config import PRESETS, PackConfig, TruckSpec, shape_from_mode, truck_from_preset
from .models import CargoItem, InvalidInputError
from .packer import pack
from .utils import build_report, save_layout_csv, save_report_json

TRUTHY = {"1", "true", "yes", "y", "t"}


def _flag(v, default=False):
    if v is None or (isinstance(v, float) and pd.isna(v)):
        return default
    if isinstance(v, str):
        return v.strip().lower() in TRUTHY
    return bool(v)


def items_from_frame(df: pd.DataFrame):
    """Build cargo items from a table; rows with qty > 1 expand to id#1..id#n."""
    cols = {c.lower().strip(): c for c in df.columns}

    def col(row, *names, default=None):
        for n in names:
            if n in cols and not pd.isna(row[cols[n]]):
                return row[cols[n]]
        return default

    for need in ("length", "width", "height"):
        if need not in cols:
            raise InvalidInputError(f"items table is missing a '{need}' column")

    items = []
    for idx, r in df.iterrows():
        base_id = str(col(r, "id", "item_id", default=idx))
        qty = int(col(r, "qty", "quantity", default=1))
        visible = _flag(col(r, "visible"), True)
        if col(r, "hidden") is not None:
            visible = visible and not _flag(col(r, "hidden"))
        vol = col(r, "volume")
        for n in range(qty):
            items.append(CargoItem(
                id=base_id if qty == 1 else f"{base_id}#{n + 1}",
                length=float(col(r, "length")),
                width=float(col(r, "width")),
                height=float(col(r, "height")),
                weight=float(col(r, "weight", "weight_kg", default=0.0)),
                volume=None if vol is None else float(vol),
                can_flip=_flag(col(r, "can_flip", "canflip")),
                visible=visible,
                orientation_lock=str(col(r, "orientation_lock", default="any")).lower(),
            ))
    return items


def load_items_csv(path):
    return items_from_frame(pd.read_csv(path))


def truck_from_args(args) -> TruckSpec:
    base = truck_from_preset(args.preset) if args.preset else PRESETS["default"]
    shape = shape_from_mode(args.shape) if args.shape else base.shape
    return TruckSpec(
        length=args.length if args.length is not None else base.length,
        width=args.width if args.width is not None else base.width,
        height=args.height if args.height is not None else base.height,
        shape=shape,
        name=base.name,
        payload_kg=args.payload if args.payload is not None else base.payload_kg,
    )


def build_parser():
    ap = argparse.ArgumentParser(description="Auto-pack cargo items into a trailer.")
    ap.add_argument("--items", required=True)
    ap.add_argument("--preset", choices=sorted(PRESETS))
    ap.add_argument("--length", type=float)
    ap.add_argument("--width", type=float)
    ap.add_argument("--height", type=float)
    ap.add_argument("--shape", choices=["rect", "frontBonus", "wheelWells"])
    ap.add_argument("--payload", type=float)
    ap.add_argument("--candidates", type=int, default=None)
    ap.add_argument("--lookahead", type=int, default=None)
    ap.add_argument("--out", default=".")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    cfg = PackConfig()
    overrides = {}
    if args.candidates is not None: overrides["wall_candidates"] = args.candidates
    if args.lookahead is not None: overrides["lookahead_depth"] = args.lookahead
    if overrides:
        cfg = PackConfig(weights=cfg.weights, enforce_payload=cfg.enforce_payload, **overrides)

    try:
        truck = truck_from_args(args)
        items = load_items_csv(args.items)
        result = pack(items, truck, cfg)
    except InvalidInputError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2

    os.makedirs(args.out, exist_ok=True)
    save_layout_csv(result.placements, os.path.join(args.out, "packed_layout.csv"))
    save_report_json(build_report(result, items, truck), os.path.join(args.out, "report.json"))
    s = result.stats
    print(f"Placed: {s.packed_cases}/{s.total_cases} | Vol Util: {s.volume_percent:.1f}% | "
          f"Weight: {s.total_weight:.1f} | Unplaced: {len(result.unplaced)}")
    print("Wrote: packed_layout.csv, report.json")
    return 0


if __name__ == "__main__":
    sys.exit(main())
