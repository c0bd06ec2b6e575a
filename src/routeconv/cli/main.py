from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from routeconv.backends.emu import EmuBackend
from routeconv.config import validate_config
from routeconv.eval.summarize import summarize_runs
from routeconv.protocols.registry import available_protocols
from routeconv.utils.io import load_yaml


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="routeconv", description="Routing convergence simulator CLI")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run a scenario on the tick simulator")
    p_run.add_argument("--config", required=True, help="YAML scenario path.")
    p_run.add_argument(
        "--protocol",
        action="append",
        choices=available_protocols(),
        help="Override the scenario protocol; repeat to run several.",
    )
    p_run.add_argument("--output-dir", help="Override the scenario output directory.")

    p_validate = sub.add_parser("validate", help="Validate a scenario file")
    p_validate.add_argument("--config", required=True)

    p_summary = sub.add_parser("summarize", help="Summarize run results into CSV")
    p_summary.add_argument("--runs", required=True, help="Directory containing run folders")
    p_summary.add_argument("--out", required=True, help="Output CSV path")

    p_plot = sub.add_parser("plot", help="Plot a summary CSV")
    p_plot.add_argument("--in", dest="input_csv", required=True)
    p_plot.add_argument("--out", dest="out_png", required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "run":
        raw = load_yaml(args.config)
        if args.output_dir:
            raw["output_dir"] = args.output_dir
        protocols = args.protocol or [raw.get("protocol", "dv")]
        results = []
        for protocol in protocols:
            run = EmuBackend().run({**raw, "protocol": protocol})
            results.append({k: v for k, v in run.items() if k != "route_hashes"})
        print(json.dumps(results if len(results) > 1 else results[0], indent=2, ensure_ascii=False, sort_keys=True))
        return 0

    if args.cmd == "validate":
        try:
            errors = validate_config(load_yaml(args.config))
        except ValueError as exc:
            errors = [str(exc)]
        if errors:
            print(json.dumps({"ok": False, "errors": errors}, ensure_ascii=False, indent=2))
            return 1
        print(json.dumps({"ok": True}, ensure_ascii=False, indent=2))
        return 0

    if args.cmd == "summarize":
        count = summarize_runs(args.runs, args.out)
        print(json.dumps({"runs": count, "out": args.out}, ensure_ascii=False, indent=2))
        return 0

    if args.cmd == "plot":
        from routeconv.eval.plot import plot_summary

        plot_summary(args.input_csv, args.out_png)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
