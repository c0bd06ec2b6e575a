from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, List

from routeconv.eval.metrics import compute_metrics

FIELDS = [
    "run_id",
    "name",
    "protocol",
    "seed",
    "converged_tick",
    "quiescent",
    "events_applied",
    "delivered_messages",
    "messages_per_change",
    "route_flaps",
    "reachable_pairs",
    "unreachable_pairs",
    "mean_route_cost",
    "last_route_change_tick",
]


def collect_runs(runs_dir: str | Path) -> List[Dict]:
    rows = []
    for result_file in sorted(Path(runs_dir).rglob("result.json")):
        with result_file.open("r", encoding="utf-8") as f:
            rows.append(compute_metrics(json.load(f)))
    return rows


def summarize_runs(runs_dir: str | Path, out_csv: str | Path) -> int:
    rows = collect_runs(runs_dir)
    out_path = Path(out_csv)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return len(rows)
