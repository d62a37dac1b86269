from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .features import DEFAULT_FEATURES
from .harness import FAILED, expand_index_types, run_case
from .report import serialize_cases_payload, write_markdown_report
from .scenario import DEFAULT_RUNTIME, load_scenario
from .tracking import build_tracking_sink
from .types import CaseResult


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="annverify",
        description="Build ANN indexes on synthetic data and check returned distances by brute force",
    )
    parser.add_argument("--scenario", default=None, help="Scenario YAML file path")
    parser.add_argument(
        "--index-types",
        nargs="+",
        default=None,
        help="Index types to check (e.g. FLAT IVF_FLAT BIN_IVF_FLAT), or 'all'",
    )
    parser.add_argument("--metric", default=None, help="Metric (L2, JACCARD). Defaults per index type.")
    parser.add_argument("--backend", default=None, help="Force a backend: faiss, hnswlib, annoy")
    parser.add_argument("--rows", type=int, default=None, help="Number of base vectors")
    parser.add_argument("--dim", type=int, default=None, help="Vector dimension (bits for binary)")
    parser.add_argument("--nq", type=int, default=None, help="Number of queries")
    parser.add_argument("--top-k", type=int, default=None, help="k for nearest-neighbor search")
    parser.add_argument("--tolerance", type=float, default=None, help="Absolute distance tolerance")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--no-strict-exact",
        action="store_true",
        help="Report distance mismatches of exact index types without failing",
    )
    parser.add_argument("--output", default=None, help="Output JSON file path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-cell mismatches")
    parser.add_argument("--wandb", action="store_true", help="Enable Weights & Biases tracking")
    parser.add_argument("--wandb-project", default=None, help="WandB project name")
    parser.add_argument("--wandb-mode", default=None, help="WandB mode (online/offline/disabled)")
    return parser.parse_args(argv)


def _build_runtime_config(args: argparse.Namespace) -> dict[str, Any]:
    if args.scenario:
        runtime = load_scenario(args.scenario)
    else:
        runtime = dict(DEFAULT_RUNTIME)

    if args.index_types is not None:
        runtime["index_types"] = list(args.index_types)
    if args.metric is not None:
        runtime["metric"] = args.metric
    if args.backend is not None:
        runtime["backend"] = args.backend
    if args.rows is not None:
        runtime["n"] = int(args.rows)
    if args.dim is not None:
        runtime["dim"] = int(args.dim)
    if args.nq is not None:
        runtime["nq"] = int(args.nq)
    if args.top_k is not None:
        runtime["topk"] = int(args.top_k)
    if args.tolerance is not None:
        runtime["tolerance"] = float(args.tolerance)
    if args.seed is not None:
        runtime["seed"] = int(args.seed)
    if args.no_strict_exact:
        runtime["strict_exact"] = False
    if args.output is not None:
        runtime["output"] = str(args.output)

    wandb_cfg = dict(runtime.get("wandb", {}))
    if args.wandb:
        wandb_cfg["enabled"] = True
    if args.wandb_project is not None:
        wandb_cfg["project"] = args.wandb_project
    if args.wandb_mode is not None:
        wandb_cfg["mode"] = args.wandb_mode
    runtime["wandb"] = wandb_cfg
    return runtime


def _print_summary(cases: list[CaseResult]) -> None:
    print("")
    print("Validation summary:")
    for case in cases:
        if case.report is None:
            print(f"- {case.index_type}: {case.status} ({case.reason})")
            continue
        report = case.report
        recall = "-" if report.recall is None else f"{report.recall:.4f}"
        print(
            f"- {case.index_type}/{case.metric} via {case.backend}: {case.status}, "
            f"matched={report.matched}/{report.checked}, max_err={report.max_abs_error:.2e}, "
            f"recall={recall}"
        )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    runtime = _build_runtime_config(args)
    features = DEFAULT_FEATURES.merged(runtime.get("features"))
    index_types = expand_index_types(runtime["index_types"], features)

    metadata: dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "index_types": index_types,
        "metric": runtime["metric"],
        "n": int(runtime["n"]),
        "dim": int(runtime["dim"]),
        "nq": int(runtime["nq"]),
        "topk": int(runtime["topk"]),
        "seed": int(runtime["seed"]),
        "tolerance": float(runtime["tolerance"]),
        "strict_exact": bool(runtime["strict_exact"]),
        "features": runtime.get("features", {}),
        "scenario_path": runtime.get("scenario_path"),
        "scenario_name": runtime.get("scenario_name"),
    }
    tracking_sink = build_tracking_sink(runtime=runtime)
    try:
        cases: list[CaseResult] = []
        for index_type in index_types:
            print(f"checking: {index_type}")
            case = run_case(
                index_type,
                runtime["metric"],
                n=int(runtime["n"]),
                dim=int(runtime["dim"]),
                nq=int(runtime["nq"]),
                topk=int(runtime["topk"]),
                seed=int(runtime["seed"]),
                tolerance=float(runtime["tolerance"]),
                strict=None if runtime["strict_exact"] else False,
                features=features,
                backend=runtime["backend"],
            )
            cases.append(case)
            tracking_sink.log_case(
                index_type=case.index_type,
                metric=case.metric,
                status=case.status,
                backend=case.backend,
                config=dict(case.config),
                summary=case.report.summary() if case.report is not None else None,
                build_time_s=case.build_time_s,
                search_time_s=case.search_time_s,
                reason=case.reason,
            )

        payload = serialize_cases_payload(cases, metadata)
        output = Path(runtime["output"])
        output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        report_md = write_markdown_report(output, cases, metadata)

        _print_summary(cases)
        print(f"\nresults written: {output.resolve()}")
        print(f"report (markdown): {report_md.resolve()}")
        tracking_sink.log_run_summary(metadata=metadata)
    finally:
        tracking_sink.finish()

    return 1 if any(case.status == FAILED for case in cases) else 0


if __name__ == "__main__":
    sys.exit(main())
