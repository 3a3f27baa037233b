from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .contracts import AnalysisReport


def serialize_analysis_report(report: AnalysisReport) -> str:
    payload: dict[str, Any] = report.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_analysis_report_json(*, report: AnalysisReport, out_json: Path) -> None:
    out_json.parent.mkdir(parents=True, exist_ok=True)
    out_json.write_text(serialize_analysis_report(report), encoding="utf-8")
