"""
Debug runner: load items from a CSV and run the packer directly.
Prints the wall-by-wall breakdown of the result and writes a CSV for inspection.
Run:
    python3 run_pack_debug.py items.csv [preset_id]
"""
import sys, logging
from trailer_pack.main import load_items_csv
from trailer_pack.config import PRESETS, truck_from_preset
from trailer_pack.models import InvalidInputError
from trailer_pack.packer import pack
from trailer_pack.utils import save_layout_csv
from trailer_pack.zones import loads_front_first

if len(sys.argv) < 2:
    print('Usage: python3 run_pack_debug.py <items.csv> [preset_id]')
    sys.exit(1)

logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

path = sys.argv[1]
truck = truck_from_preset(sys.argv[2]) if len(sys.argv) > 2 else PRESETS["default"]
try:
    items = load_items_csv(path)
    print(f'Loaded {len(items)} items from {path}')
    result = pack(items, truck)
except InvalidInputError as e:
    print('Invalid input:', e, file=sys.stderr)
    sys.exit(2)

placed = result.placements
s = result.stats
print(f'Pack returned {len(placed)} placements, {len(result.unplaced)} unplaced, total weight {s.total_weight:.2f}')
print(f'Volume used {s.volume_used:.1f} ({s.volume_percent:.2f}% of usable zones)')

# wall breakdown: group by the x of the face each item was pushed against
walls = {}
front_first = loads_front_first(truck)
for p in placed:
    face = p.aabb.max.x if front_first else p.aabb.min.x
    walls.setdefault(round(face, 6), []).append(p)
print('Walls:', sorted(walls.keys()))
for x in sorted(walls.keys()):
    ws = walls[x]
    print(f' x={x:.2f}: {len(ws)} items; depth {max(p.dims.length for p in ws):.2f}; '
          f'stack top {max(p.top for p in ws):.2f}')
if result.unplaced:
    print('Unplaced:', ', '.join(result.unplaced))

out = path.rsplit('.', 1)[0] + '_debug_packed.csv'
save_layout_csv(placed, out)
print('Wrote debug CSV to', out)
