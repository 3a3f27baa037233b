from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .artifacts import serialize_analysis_report, write_analysis_report_json
from .contracts import AnalyzeConfig
from .module import run_analyze_file


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bbox-analyze",
        description="Report the content bounding box (pt + mm) of an EPS/PS/PDF/AI/SVG file.",
    )
    p.add_argument("--file", required=True, type=Path, help="Document to analyze.")
    p.add_argument("--out-json", type=Path, default=None, help="Write the report here instead of stdout.")
    p.add_argument("--timeout-s", type=float, default=120.0, help="Hard timeout per external tool call.")
    p.add_argument("--svg-dpi", type=float, default=96.0, help="Nominal resolution of SVG user units.")
    p.add_argument("--gs-binary", default=None, help="Ghostscript binary (default: platform lookup).")
    p.add_argument("--rsvg-binary", default="rsvg-convert", help="rsvg-convert binary.")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = AnalyzeConfig(
        timeout_s=args.timeout_s,
        svg_dpi=args.svg_dpi,
        ghostscript_binary=args.gs_binary,
        rsvg_binary=args.rsvg_binary,
    )
    report = run_analyze_file(config=config, file=args.file, original_filename=args.file.name)

    if args.out_json is not None:
        write_analysis_report_json(report=report, out_json=args.out_json)
    else:
        sys.stdout.write(serialize_analysis_report(report))

    return 0 if report.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
