from __future__ import annotations

import argparse
import sys
from pathlib import Path

from analyze_bbox.contracts import AnalyzeConfig

from .artifacts import serialize_conversion_result
from .contracts import ConvertConfig
from .data_access import FileStore
from .module import run_convert_to_pdf


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bbox-convert",
        description="Convert SVG/AI/PDF into a single-page PDF cropped to its content bounding box.",
    )
    p.add_argument("--file", required=True, type=Path, help="Document to convert (left untouched).")
    p.add_argument("--out-dir", required=True, type=Path, help="Directory receiving the cropped PDF.")
    p.add_argument(
        "--work-dir",
        type=Path,
        default=None,
        help="Directory for intermediate PDFs (default: <out-dir>/.work).",
    )
    p.add_argument("--timeout-s", type=float, default=120.0, help="Hard timeout per external tool call.")
    p.add_argument("--svg-dpi", type=float, default=96.0, help="Nominal resolution of SVG user units.")
    p.add_argument("--gs-binary", default=None, help="Ghostscript binary (default: platform lookup).")
    p.add_argument("--rsvg-binary", default="rsvg-convert", help="rsvg-convert binary.")
    p.add_argument(
        "--no-enforce-page-boxes",
        action="store_true",
        help="Skip the second in-place page box pass after the Ghostscript crop.",
    )
    p.add_argument("--with-meta", action="store_true", help="Include pipeline meta in the JSON output.")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = ConvertConfig(
        analyze=AnalyzeConfig(
            timeout_s=args.timeout_s,
            svg_dpi=args.svg_dpi,
            ghostscript_binary=args.gs_binary,
            rsvg_binary=args.rsvg_binary,
        ),
        enforce_page_boxes=not args.no_enforce_page_boxes,
    )
    store = FileStore(
        upload_dir=args.work_dir or (args.out_dir / ".work"),
        converted_dir=args.out_dir,
        public_prefix=args.out_dir.resolve().as_posix(),
    )
    store.initialize()

    result = run_convert_to_pdf(
        config=config,
        store=store,
        file=args.file,
        original_filename=args.file.name,
    )
    sys.stdout.write(serialize_conversion_result(result, include_meta=args.with_meta))

    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
