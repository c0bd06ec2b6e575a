from __future__ import annotations

import csv
from collections import defaultdict
from pathlib import Path
from typing import Dict, List


def plot_summary(input_csv: str | Path, out_png: str | Path) -> None:
    """Bar chart of delivered messages per run, grouped by protocol."""
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for plotting; install routeconv[plot]") from exc

    by_protocol: Dict[str, List[int]] = defaultdict(list)
    with Path(input_csv).open("r", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            by_protocol[row["protocol"]].append(int(row["delivered_messages"] or 0))

    protocols = sorted(by_protocol)
    means = [sum(v) / len(v) for v in (by_protocol[p] for p in protocols)]

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.bar(range(len(protocols)), means)
    ax.set_xticks(range(len(protocols)))
    ax.set_xticklabels(protocols)
    ax.set_ylabel("Messages until end of run (mean)")
    fig.tight_layout()
    Path(out_png).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_png, dpi=150)
    plt.close(fig)
