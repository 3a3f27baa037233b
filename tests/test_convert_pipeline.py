from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from analyze_bbox.contracts import AnalyzeConfig, ErrorCode
from analyze_bbox.engines.pypdfium2_boxes import read_page_boxes
from contracts.bbox import BoundingBox
from contracts.units import mm_from_pt, round_mm
from convert_pdf.contracts import ConvertConfig
from convert_pdf.data_access import FileStore
from convert_pdf.module import run_convert_to_pdf

from fakes import FakeMarkupConverter, FakeRasterizer, make_pdf, process_failure

NOW_MS = 1700000000000


class _ConvertTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.store = FileStore(upload_dir=root / "uploads", converted_dir=root / "converted")
        self.store.initialize()
        self.config = ConvertConfig(analyze=AnalyzeConfig(timeout_s=5.0))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def upload(self, content: bytes, original_filename: str) -> Path:
        return self.store.stage_upload(content=content, original_filename=original_filename)

    def converted_files(self) -> list[str]:
        return sorted(p.name for p in self.store.converted_dir.iterdir())

    def upload_dir_files(self) -> list[str]:
        return sorted(p.name for p in self.store.upload_dir.iterdir())


class TestConvertPipeline(_ConvertTestCase):
    def test_scenario_c_pdf_crop(self) -> None:
        raster = FakeRasterizer(bbox=BoundingBox(llx=10, lly=10, urx=110, ury=60, source="ghostscript"))
        upload = make_pdf(self.store.upload_dir / "in.pdf", 612, 792)

        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=upload,
            original_filename="scenario c.pdf",
            rasterizer=raster,
            markup_converter=FakeMarkupConverter(),
            now_ms=NOW_MS,
        )

        self.assertTrue(result.ok, result.errors)
        d = result.to_dict()
        self.assertEqual(d["ok"], True)
        self.assertEqual(d["format"], "pdf")
        self.assertEqual(d["pdfFileName"], f"{NOW_MS}_scenario_c.pdf")
        self.assertEqual(d["pdfPath"], f"/converted/{NOW_MS}_scenario_c.pdf")
        self.assertEqual((d["widthPt"], d["heightPt"]), (100, 50))
        self.assertEqual((d["llx"], d["lly"], d["urx"], d["ury"]), (10, 10, 110, 60))
        self.assertEqual(d["source"], "ghostscript_pdf_cropped")
        self.assertEqual(d["width_mm"], round_mm(mm_from_pt(100)))

        # PDF input is cropped as-is (no baseline conversion).
        (in_pdf, out_pdf, crop_box), = raster.cropped
        self.assertEqual(in_pdf, upload)
        self.assertEqual(raster.converted, [])
        self.assertEqual((crop_box.llx, crop_box.lly, crop_box.width_pt, crop_box.height_pt), (10, 10, 100, 50))

        boxes = read_page_boxes(pdf_file=out_pdf)
        for name, box in boxes.items():
            self.assertEqual([round(v, 2) for v in box], [0.0, 0.0, 100.0, 50.0], name)
        self.assertEqual(result.meta["page_box_pass"], "applied")
        self.assertEqual(self.converted_files(), [f"{NOW_MS}_scenario_c.pdf"])

    def test_svg_reports_corrected_box_and_crops_in_baseline_space(self) -> None:
        raster = FakeRasterizer(bbox=BoundingBox(llx=30, lly=12, urx=130, ury=62, source="ghostscript"))
        markup = FakeMarkupConverter()
        upload = self.upload(b"<svg/>", "logo.svg")

        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=upload,
            original_filename="logo.svg",
            rasterizer=raster,
            markup_converter=markup,
            now_ms=NOW_MS,
        )

        self.assertTrue(result.ok, result.errors)
        d = result.to_dict()
        self.assertAlmostEqual(d["widthPt"], 100 * 96 / 72)
        self.assertAlmostEqual(d["heightPt"], 50 * 96 / 72)
        self.assertAlmostEqual(d["llx"], 30 * 96 / 72)
        self.assertEqual(d["width_mm"], round_mm(mm_from_pt(100 * 96 / 72)))
        self.assertEqual(d["source"], "ghostscript_svg_cropped")

        (_, baseline), = markup.converted
        (in_pdf, _, crop_box), = raster.cropped
        self.assertEqual(in_pdf, baseline)
        self.assertEqual((crop_box.llx, crop_box.lly, crop_box.urx, crop_box.ury), (30, 12, 130, 62))
        self.assertEqual(result.meta["crop_bbox"]["widthPt"], 100)
        self.assertFalse(baseline.exists())
        # Only the staged upload is left in the upload dir (the caller deletes it).
        self.assertEqual(self.upload_dir_files(), [upload.name])

    def test_cropped_content_lands_at_origin(self) -> None:
        # The probed box is where the content sits in the PDF that gets cropped.
        for name, content in (("a.svg", b"<svg/>"), ("b.ai", b"%PDF-1.5 AI"), ("c.pdf", None)):
            content_box = BoundingBox(llx=30, lly=7.5, urx=130.25, ury=57.5, source="ghostscript")
            raster = FakeRasterizer(bbox=content_box)
            upload = make_pdf(self.store.upload_dir / "c.pdf") if content is None else self.upload(content, name)

            result = run_convert_to_pdf(
                config=self.config,
                store=self.store,
                file=upload,
                original_filename=name,
                rasterizer=raster,
                markup_converter=FakeMarkupConverter(),
            )
            self.assertTrue(result.ok, (name, result.errors))

            (_, out_pdf, crop_box), = raster.cropped
            placed = (
                content_box.llx - crop_box.llx,
                content_box.lly - crop_box.lly,
                content_box.urx - crop_box.llx,
                content_box.ury - crop_box.lly,
            )
            for got, want in zip(placed, (0.0, 0.0, crop_box.width_pt, crop_box.height_pt)):
                self.assertAlmostEqual(got, want, delta=0.01, msg=name)
            self.assertAlmostEqual(crop_box.width_pt, content_box.width_pt, delta=0.01, msg=name)
            self.assertAlmostEqual(crop_box.height_pt, content_box.height_pt, delta=0.01, msg=name)

            boxes = read_page_boxes(pdf_file=out_pdf)
            self.assertEqual(len(set(boxes.values())), 1, name)
            for v, want in zip(boxes["mediabox"], (0.0, 0.0, content_box.width_pt, content_box.height_pt)):
                self.assertAlmostEqual(v, want, delta=0.01, msg=name)

    def test_ai_converts_with_rasterizer(self) -> None:
        raster = FakeRasterizer(bbox=BoundingBox(llx=5, lly=5, urx=25, ury=45, source="ghostscript"))
        markup = FakeMarkupConverter()
        upload = self.upload(b"%PDF-1.5 AI", "Art Work.AI")

        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=upload,
            original_filename="Art Work.AI",
            rasterizer=raster,
            markup_converter=markup,
            now_ms=NOW_MS,
        )

        self.assertTrue(result.ok, result.errors)
        self.assertEqual(result.to_dict()["source"], "ghostscript_ai_cropped")
        self.assertEqual(result.pdf_file_name, f"{NOW_MS}_Art_Work.pdf")
        self.assertEqual(markup.converted, [])
        (src, baseline), = raster.converted
        self.assertEqual(src, upload)
        self.assertEqual(raster.probed, [baseline])
        self.assertFalse(baseline.exists())

    def test_unsupported_formats(self) -> None:
        for name in ("a.eps", "b.ps", "c.png", "noext"):
            raster = FakeRasterizer()
            result = run_convert_to_pdf(
                config=self.config,
                store=self.store,
                file=self.upload(b"x", name),
                original_filename=name,
                rasterizer=raster,
                markup_converter=FakeMarkupConverter(),
            )
            self.assertFalse(result.ok)
            self.assertEqual(result.errors[0].code, ErrorCode.UNSUPPORTED_FORMAT.value)
            self.assertEqual(result.to_dict()["ok"], False)
            self.assertEqual(raster.probed, [])
        self.assertEqual(self.converted_files(), [])

    def test_degenerate_bbox_rejected_before_crop(self) -> None:
        raster = FakeRasterizer(bbox=BoundingBox(llx=20, lly=20, urx=20, ury=80, source="ghostscript"))
        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=make_pdf(self.store.upload_dir / "blank.pdf"),
            original_filename="blank.pdf",
            rasterizer=raster,
            markup_converter=FakeMarkupConverter(),
        )
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, ErrorCode.DEGENERATE_BBOX.value)
        self.assertEqual(raster.cropped, [])
        self.assertEqual(self.converted_files(), [])

    def test_crop_failure_leaves_no_artifact(self) -> None:
        raster = FakeRasterizer(
            bbox=BoundingBox(llx=0, lly=0, urx=10, ury=10, source="ghostscript"),
            crop_error=process_failure(),
        )
        markup = FakeMarkupConverter()
        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=self.upload(b"<svg/>", "x.svg"),
            original_filename="x.svg",
            rasterizer=raster,
            markup_converter=markup,
        )
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, ErrorCode.CROP_FAILURE.value)
        self.assertEqual(result.errors[0].detail["engine_code"], "PROCESS_FAILED")
        self.assertEqual(self.converted_files(), [])
        (_, baseline), = markup.converted
        self.assertFalse(baseline.exists())

    def test_probe_and_conversion_failures(self) -> None:
        cases = [
            (FakeRasterizer(), FakeMarkupConverter(), "x.pdf", ErrorCode.PROBE_PARSE_FAILURE),
            (FakeRasterizer(probe_error=process_failure()), FakeMarkupConverter(), "x.ai", ErrorCode.PROBE_PROCESS_FAILURE),
            (FakeRasterizer(), FakeMarkupConverter(error=process_failure()), "x.svg", ErrorCode.CONVERSION_FAILURE),
            (FakeRasterizer(to_pdf_error=process_failure()), FakeMarkupConverter(), "x.ai", ErrorCode.CONVERSION_FAILURE),
        ]
        for raster, markup, name, code in cases:
            result = run_convert_to_pdf(
                config=self.config,
                store=self.store,
                file=make_pdf(self.store.upload_dir / "src.pdf"),
                original_filename=name,
                rasterizer=raster,
                markup_converter=markup,
            )
            self.assertFalse(result.ok, name)
            self.assertEqual(result.errors[0].code, code.value, name)
            self.assertEqual(raster.cropped, [])
        self.assertEqual(self.converted_files(), [])
        self.assertEqual(self.upload_dir_files(), ["src.pdf"])

    def test_page_box_pass_failure_is_soft(self) -> None:
        raster = FakeRasterizer(
            bbox=BoundingBox(llx=10, lly=10, urx=110, ury=60, source="ghostscript"),
            crop_bytes=b"%PDF-1.4 not really a pdf",
        )
        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=make_pdf(self.store.upload_dir / "in.pdf"),
            original_filename="in.pdf",
            rasterizer=raster,
            markup_converter=FakeMarkupConverter(),
            now_ms=NOW_MS,
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.meta["page_box_pass"], "failed")
        self.assertEqual(
            [w["code"] for w in result.meta["warnings"]], [ErrorCode.PAGE_BOX_PASS_FAILED.value]
        )
        self.assertEqual(self.converted_files(), [f"{NOW_MS}_in.pdf"])

    def test_page_box_pass_can_be_disabled(self) -> None:
        raster = FakeRasterizer(
            bbox=BoundingBox(llx=10, lly=10, urx=110, ury=60, source="ghostscript"),
            crop_bytes=b"%PDF-1.4 not really a pdf",
        )
        config = ConvertConfig(analyze=AnalyzeConfig(timeout_s=5.0), enforce_page_boxes=False)
        with patch("convert_pdf.normalizer.set_page_boxes") as set_boxes:
            result = run_convert_to_pdf(
                config=config,
                store=self.store,
                file=make_pdf(self.store.upload_dir / "in.pdf"),
                original_filename="in.pdf",
                rasterizer=raster,
                markup_converter=FakeMarkupConverter(),
            )
        self.assertTrue(result.ok)
        set_boxes.assert_not_called()
        self.assertEqual(result.meta["page_box_pass"], "skipped")
        self.assertNotIn("warnings", result.meta)

    def test_cleanup_failure_is_not_fatal(self) -> None:
        raster = FakeRasterizer(bbox=BoundingBox(llx=0, lly=0, urx=10, ury=10, source="ghostscript"))
        with patch("pathlib.Path.unlink", side_effect=PermissionError("denied")):
            result = run_convert_to_pdf(
                config=self.config,
                store=self.store,
                file=self.upload(b"<svg/>", "x.svg"),
                original_filename="x.svg",
                rasterizer=raster,
                markup_converter=FakeMarkupConverter(),
            )
        self.assertTrue(result.ok)
        self.assertIn(ErrorCode.CLEANUP_FAILED.value, [w["code"] for w in result.meta["warnings"]])

    def test_multi_page_source_is_noted(self) -> None:
        raster = FakeRasterizer(bbox=BoundingBox(llx=0, lly=0, urx=10, ury=10, source="ghostscript"))
        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=make_pdf(self.store.upload_dir / "multi.pdf", pages=3),
            original_filename="multi.pdf",
            rasterizer=raster,
            markup_converter=FakeMarkupConverter(),
        )
        self.assertTrue(result.ok)
        self.assertEqual(result.meta["source_page_count"], 3)

    def test_internal_error_removes_artifact(self) -> None:
        class _Exploding(FakeRasterizer):
            def crop(self, *, in_pdf, out_pdf, bbox, timeout_s):
                out_pdf.write_bytes(b"%PDF-partial")
                raise RuntimeError("boom")

        result = run_convert_to_pdf(
            config=self.config,
            store=self.store,
            file=make_pdf(self.store.upload_dir / "in.pdf"),
            original_filename="in.pdf",
            rasterizer=_Exploding(bbox=BoundingBox(llx=0, lly=0, urx=10, ury=10, source="ghostscript")),
            markup_converter=FakeMarkupConverter(),
        )
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0].code, ErrorCode.CONVERT_INTERNAL_ERROR.value)
        self.assertEqual(self.converted_files(), [])


if __name__ == "__main__":
    unittest.main()
