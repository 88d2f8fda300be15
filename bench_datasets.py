"""
Save as `bench_datasets.py` at project root and run:
    python3 bench_datasets.py

This script:
- Scans CSV files in the repository root (generates a synthetic one if there are none).
- For each CSV it loads items using trailer_pack.main.load_items_csv.
- Tries a small grid of wall-candidate counts, lookahead depths and scoring weights
  on every trailer shape.
- Keeps and writes the best result (layout + report) per dataset and shape into `bench_results/`.

Run notes:
- The grid is small on purpose so a run finishes in a few minutes. Expand
  `CANDIDATES`, `LOOKAHEADS` and `WEIGHT_SETS` to search more combos.
"""
import os, glob, time
from itertools import product
from importlib import import_module

main_mod = import_module("trailer_pack.main")
cfg = import_module("trailer_pack.config")
pack_mod = import_module("trailer_pack.packer")
datasets = import_module("trailer_pack.datasets")
utils = import_module("trailer_pack.utils")

load_items_csv = main_mod.load_items_csv
pack = pack_mod.pack
save_layout_csv = utils.save_layout_csv
save_report_json = utils.save_report_json

ROOT = os.path.dirname(os.path.abspath(__file__))
CSV_FILES = [p for p in glob.glob(os.path.join(ROOT, "*.csv"))]
# ignore output files we might have generated
IGNORE_PREFIXES = {"packed_layout", "bench_results", "report"}
IGNORE_SUFFIXES = ("_debug_packed",)

CANDIDATES = [2, 3, 5]
LOOKAHEADS = [0, 1, 2]
WEIGHT_SETS = {
    "default": cfg.ScoringWeights(),
    "floor_heavy": cfg.ScoringWeights(height=3.0),
    "stack_friendly": cfg.ScoringWeights(height=0.2, face_area=2.0),
    "width_first": cfg.ScoringWeights(width_fit=4.0, depth_use=1.0),
}
TRUCKS = ["53ft_dry_van_us", "53ft_dry_van_us_wheel_wells", "53ft_dry_van_us_front_overhang"]

os.makedirs("bench_results", exist_ok=True)

if not [p for p in CSV_FILES if not os.path.basename(p).startswith(tuple(IGNORE_PREFIXES))]:
    synth = os.path.join(ROOT, "synthetic_cases_200.csv")
    datasets.write_csv(synth, num_items=200)
    print(f"No datasets found, generated {synth}")
    CSV_FILES.append(synth)

for csv_path in CSV_FILES:
    base = os.path.basename(csv_path).rsplit('.', 1)[0]
    if any(base.startswith(pref) for pref in IGNORE_PREFIXES) or base.endswith(IGNORE_SUFFIXES):
        print(f"Skipping generated file: {csv_path}")
        continue
    print(f"\n=== Dataset: {base} ({csv_path}) ===")
    try:
        items = load_items_csv(csv_path)
    except Exception as e:
        print(f"Skipping {csv_path}: failed to load as items CSV ({e})")
        continue
    print(f"Loaded {len(items)} items from {base}")

    for truck_id in TRUCKS:
        truck = cfg.truck_from_preset(truck_id)
        best = {"vol_pct": -1.0, "cfg": None}
        for k, look, wname in product(CANDIDATES, LOOKAHEADS, WEIGHT_SETS):
            config = cfg.PackConfig(weights=WEIGHT_SETS[wname], wall_candidates=k, lookahead_depth=look)
            t0 = time.perf_counter()
            result = pack(items, truck, config)
            dt = time.perf_counter() - t0
            s = result.stats
            print(f"{truck_id} K={k} look={look} w={wname} -> vol={s.volume_percent:.2f}% "
                  f"placed={s.packed_cases}/{s.total_cases} in {dt:.2f}s")
            if s.volume_percent > best["vol_pct"]:
                best = {"vol_pct": s.volume_percent,
                        "cfg": {"wall_candidates": k, "lookahead_depth": look, "weights": wname}}
                out_prefix = os.path.join("bench_results", f"{base}_{truck_id}_best")
                save_layout_csv(result.placements, out_prefix + "_packed_layout.csv")
                rep = utils.build_report(result, items, truck)
                rep["config"] = best["cfg"]
                rep["seconds"] = round(dt, 3)
                save_report_json(rep, out_prefix + "_report.json")
        print(f"BEST for {base} / {truck_id}: vol={best['vol_pct']:.2f}% cfg={best['cfg']}")

print('\nDone. Results saved under bench_results/.')
