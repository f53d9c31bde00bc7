"""
CLI for the effort engine.

Usage examples:

    # COCOMO-style estimate + explanation for attributes in a JSON file
    python -m app.cli estimate project.json

    # Function-point estimate for a JSON file keyed AFP, Input, ...
    python -m app.cli estimate-china metrics.json

    # Effort insights and estimation accuracy for a task CSV
    python -m app.cli insights data/tasks.csv --project-id p1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from effort_engine.config import get_config
from effort_engine.errors import EffortEngineError
from effort_engine.estimators import CocomoEstimator, FunctionPointEstimator
from effort_engine.insights import evaluate_estimates, project_insights
from effort_engine.store import load_tasks_from_csv

logger = logging.getLogger("app.cli")


def _load_json(path_arg: str, command: str) -> dict:
    path = Path(path_arg).resolve()
    if not path.exists():
        raise SystemExit(f"[{command}] JSON file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SystemExit(f"[{command}] Invalid JSON in {path}: {e}")


# --- Commands ----------------------------------------------------------------


def cmd_estimate(args: argparse.Namespace) -> None:
    """
    COCOMO-style estimate for one project described in a JSON file.
    """
    payload = _load_json(args.json_path, "estimate")
    estimator = CocomoEstimator(default_size_kloc=get_config().default_size_kloc)

    try:
        result = estimator.estimate(payload)
        explanation = estimator.explain(payload)
    except EffortEngineError as e:
        raise SystemExit(f"[estimate] {e.message}")

    print(f"[estimate] Effort: {result['effort_pm']:.2f} person-months ({result['band']})")
    print(f"[estimate] EAF: {result['eaf']:.4f}")
    print(f"[estimate] Explained prediction: {explanation['prediction']:.2f} person-hours")
    print("[estimate] Feature importance:")
    for entry in explanation["feature_importance"]:
        print(f"  {entry['feature']:<6} {entry['importance']:>10.2f}")


def cmd_estimate_china(args: argparse.Namespace) -> None:
    """
    Function-point estimate for one project described in a JSON file.
    """
    payload = _load_json(args.json_path, "estimate-china")
    estimator = FunctionPointEstimator()

    try:
        explanation = estimator.explain(payload)
    except EffortEngineError as e:
        raise SystemExit(f"[estimate-china] {e.message}")

    print(
        f"[estimate-china] Effort: {explanation['prediction']:.2f} person-hours "
        f"({explanation['prediction_pm']:.2f} person-months)"
    )
    print("[estimate-china] Contributions:")
    for entry in explanation["feature_importance"]:
        print(f"  {entry['feature']:<10} {entry['importance']:>10.2f}")


def cmd_insights(args: argparse.Namespace) -> None:
    """
    Summarise estimates and, where tasks are done, estimation accuracy.
    """
    csv_path = Path(args.csv_path).resolve()
    if not csv_path.exists():
        raise SystemExit(f"[insights] CSV file not found: {csv_path}")

    try:
        tasks = load_tasks_from_csv(str(csv_path))
    except EffortEngineError as e:
        raise SystemExit(f"[insights] {e.message}")
    if args.project_id:
        tasks = [t for t in tasks if t.project_id == args.project_id]
    print(f"[insights] Loaded {len(tasks)} tasks.")

    print(json.dumps(project_insights(tasks), indent=2))

    try:
        accuracy = evaluate_estimates(tasks)
    except ValueError as e:
        print(f"[insights] Accuracy unavailable: {e}")
        return
    print("[insights] Estimation accuracy:")
    print(json.dumps(accuracy, indent=2))


# --- Main --------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Effort engine CLI – COCOMO and function-point estimates, task insights."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # estimate
    est_p = subparsers.add_parser(
        "estimate",
        help="COCOMO-style estimate from a JSON file of cost drivers.",
    )
    est_p.add_argument(
        "json_path",
        help="JSON with optional rely, cplx, acap, pcap, tool, sced, sizeKLOC.",
    )
    est_p.set_defaults(func=cmd_estimate)

    # estimate-china
    china_p = subparsers.add_parser(
        "estimate-china",
        help="Function-point estimate from a JSON file of project metrics.",
    )
    china_p.add_argument(
        "json_path",
        help="JSON with AFP, Input, Output, Enquiry, File, Interface, Resource, Duration.",
    )
    china_p.set_defaults(func=cmd_estimate_china)

    # insights
    ins_p = subparsers.add_parser(
        "insights",
        help="Effort insights and estimation accuracy for a task CSV.",
    )
    ins_p.add_argument("csv_path", help="Path to a task CSV (columns match Task fields).")
    ins_p.add_argument(
        "--project-id",
        default=None,
        help="Only include tasks of this project.",
    )
    ins_p.set_defaults(func=cmd_insights)

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=get_config().log_level)
    parser = build_parser()
    args = parser.parse_args(argv)
    logger.debug("Running %s", args.command)
    args.func(args)


if __name__ == "__main__":
    main()
