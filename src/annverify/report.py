from __future__ import annotations

import math
from pathlib import Path
from typing import Any

from .types import CaseResult


def _is_finite_number(value: Any) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _fmt_number(value: Any, decimals: int = 4) -> str:
    if not _is_finite_number(value):
        return "-"
    return f"{float(value):.{decimals}f}"


def case_row(case: CaseResult) -> dict[str, Any]:
    row: dict[str, Any] = {
        "index_type": case.index_type,
        "metric": case.metric,
        "backend": case.backend,
        "status": case.status,
        "config": dict(case.config),
        "build_time_s": case.build_time_s,
        "search_time_s": case.search_time_s,
        "reason": case.reason,
    }
    if case.report is not None:
        row["validation"] = case.report.summary()
        row["failures"] = [
            {
                "query": cell.query,
                "rank": cell.rank,
                "id": cell.candidate_id,
                "reported": cell.reported,
                "recomputed": cell.recomputed,
                "status": cell.status,
            }
            for cell in case.report.failures
        ]
    return row


def serialize_cases_payload(cases: list[CaseResult], metadata: dict[str, Any]) -> dict[str, Any]:
    counts: dict[str, int] = {}
    for case in cases:
        counts[case.status] = counts.get(case.status, 0) + 1
    return {
        "metadata": metadata,
        "status_counts": counts,
        "cases": [case_row(case) for case in cases],
    }


def _build_markdown(cases: list[CaseResult], metadata: dict[str, Any]) -> str:
    lines = [
        "# annverify validation report",
        "",
        f"- generated_at: {metadata.get('generated_at')}",
        f"- rows: {metadata.get('n')}, dim: {metadata.get('dim')}, nq: {metadata.get('nq')}, topk: {metadata.get('topk')}",
        f"- tolerance: {metadata.get('tolerance')}",
        "",
        "## cases",
        "",
        "| index_type | metric | backend | status | mismatched | invalid_ids | max_abs_error | recall |",
        "| --- | --- | --- | --- | ---: | ---: | ---: | ---: |",
    ]
    for case in cases:
        report = case.report
        if report is None:
            lines.append(
                f"| {case.index_type} | {case.metric} | {case.backend or '-'} | {case.status} | - | - | - | - |"
            )
            continue
        lines.append(
            "| "
            f"{case.index_type} | {case.metric} | {case.backend} | {case.status} | "
            f"{report.mismatched} | {report.invalid_ids} | {report.max_abs_error:.2e} | "
            f"{_fmt_number(report.recall)} |"
        )

    skipped = [case for case in cases if case.reason]
    if skipped:
        lines.extend(["", "## not run", ""])
        for case in skipped:
            lines.append(f"- {case.index_type}: {case.reason}")
    lines.append("")
    return "\n".join(lines)


def write_markdown_report(output_json_path: Path, cases: list[CaseResult], metadata: dict[str, Any]) -> Path:
    md_path = output_json_path.with_suffix(".md")
    md_path.write_text(_build_markdown(cases, metadata), encoding="utf-8")
    return md_path


__all__ = ["case_row", "serialize_cases_payload", "write_markdown_report"]
