from __future__ import annotations

import warnings

import pytest

from pixeldiff.compare import compare, compare_rasters
from pixeldiff.errors import FilesystemError, ImageDecodeError, SizeMismatchWarning
from pixeldiff.raster import load_image
from pixeldiff.types import PixelDiff, RasterImage
from tests.pixeldiff.images import BLACK, BLUE, RED, WHITE, make_raster


class TestCompare:
    def test_one_pixel_off_in_four_by_four(self, tmp_path, write_png):
        original = write_png("original.png", 4, 4, RED)
        screenshot = write_png("screenshot.png", 4, 4, RED, [(2, 1, BLUE)])
        report = compare(original, screenshot, tmp_path / "out", threshold=0)
        assert report.diff_pixels == 1
        assert report.total_pixels == 16
        assert report.matched_pixels == 15
        assert report.match_percentage == 93.75
        assert report.diff_percentage == 6.25
        assert report.passed is False

    def test_identical_white_images(self, tmp_path, write_png):
        original = write_png("original.png", 10, 10, WHITE)
        screenshot = write_png("screenshot.png", 10, 10, WHITE)
        report = compare(original, screenshot, tmp_path / "out", threshold=0.1)
        assert report.diff_pixels == 0
        assert report.match_percentage == 100.0
        assert report.passed is True
        assert report.size_mismatch is False

    def test_wider_screenshot_uses_overlap(self, tmp_path, write_png):
        original = write_png("original.png", 6, 4, WHITE)
        screenshot = write_png("screenshot.png", 8, 4, WHITE, [(7, 0, BLACK), (6, 3, BLACK)])
        with pytest.warns(SizeMismatchWarning):
            report = compare(original, screenshot, tmp_path / "out", threshold=0)
        assert (report.width, report.height) == (6, 4)
        assert report.total_pixels == 24
        assert report.diff_pixels == 0
        assert report.passed is True
        assert report.size_mismatch is True
        assert (report.screenshot_width, report.screenshot_height) == (8, 4)

    def test_region_is_minimum_of_each_dimension(self, tmp_path, write_png):
        original = write_png("original.png", 10, 3, WHITE)
        screenshot = write_png("screenshot.png", 4, 7, WHITE)
        with pytest.warns(SizeMismatchWarning):
            report = compare(original, screenshot, tmp_path / "out")
        assert (report.width, report.height) == (4, 3)
        assert report.total_pixels == 12

    def test_size_mismatch_is_logged(self, tmp_path, write_png, caplog):
        original = write_png("original.png", 6, 4, WHITE)
        screenshot = write_png("screenshot.png", 8, 4, WHITE)
        with pytest.warns(SizeMismatchWarning), caplog.at_level("WARNING"):
            compare(original, screenshot, tmp_path / "out")
        assert "deviceScaleFactor" in caplog.text

    def test_matching_sizes_do_not_warn(self, tmp_path, write_png):
        original = write_png("original.png", 3, 3, WHITE)
        screenshot = write_png("screenshot.png", 3, 3, WHITE)
        with warnings.catch_warnings():
            warnings.simplefilter("error", SizeMismatchWarning)
            compare(original, screenshot, tmp_path / "out")

    def test_writes_diff_image_with_region_size(self, tmp_path, write_png):
        original = write_png("original.png", 5, 9, WHITE)
        screenshot = write_png("screenshot.png", 7, 6, WHITE, [(1, 1, BLACK)])
        output_dir = tmp_path / "nested" / "out"
        with pytest.warns(SizeMismatchWarning):
            report = compare(original, screenshot, output_dir, threshold=0)
        assert report.diff_path == output_dir / "diff.png"
        assert report.diff_path.exists()
        diff = load_image(report.diff_path)
        assert diff.size == (5, 6)
        assert tuple(diff.pixels[1, 1]) == (255, 0, 0, 255)

    def test_match_percentage_decreases_with_more_changes(self, tmp_path, write_png):
        original = write_png("original.png", 10, 10, WHITE)
        percentages = []
        for k in range(6):
            changed = [(2 * i, 2 * i, BLACK) for i in range(k)]
            screenshot = write_png(f"screenshot_{k}.png", 10, 10, WHITE, changed)
            report = compare(original, screenshot, tmp_path / f"out_{k}", threshold=0)
            assert report.diff_pixels == k
            percentages.append(report.match_percentage)
        assert percentages == sorted(percentages, reverse=True)
        assert percentages[0] == 100.0
        assert percentages[5] == 95.0

    def test_zero_threshold_counts_softened_edge(self, tmp_path, write_png):
        left_half = [(x, y, BLACK) for x in range(5) for y in range(10)]
        gray_column = [(5, y, (128, 128, 128, 255)) for y in range(10)]
        original = write_png("original.png", 10, 10, WHITE, left_half)
        screenshot = write_png("screenshot.png", 10, 10, WHITE, left_half + gray_column)
        report = compare(original, screenshot, tmp_path / "out", threshold=0)
        assert report.diff_pixels == 10
        assert report.match_percentage == 90.0
        assert report.passed is False

    def test_deterministic(self, tmp_path, write_png):
        original = write_png("original.png", 8, 8, (40, 90, 200, 255))
        screenshot = write_png(
            "screenshot.png", 8, 8, (40, 90, 200, 255), [(3, 3, (45, 95, 190, 255))]
        )
        first = compare(original, screenshot, tmp_path / "a", threshold=0)
        second = compare(original, screenshot, tmp_path / "b", threshold=0)
        assert first.diff_pixels == second.diff_pixels
        assert first.match_percentage == second.match_percentage
        assert first.diff_path.read_bytes() == second.diff_path.read_bytes()

    def test_missing_input_raises_before_writing(self, tmp_path, write_png):
        original = write_png("original.png", 4, 4, WHITE)
        output_dir = tmp_path / "out"
        with pytest.raises(ImageDecodeError):
            compare(original, tmp_path / "missing.png", output_dir)
        assert not output_dir.exists()

    def test_corrupt_input_raises(self, tmp_path, write_png):
        original = write_png("original.png", 4, 4, WHITE)
        corrupt = tmp_path / "corrupt.png"
        corrupt.write_bytes(b"\x89PNG\r\n\x1a\nnot really a png")
        with pytest.raises(ImageDecodeError):
            compare(corrupt, original, tmp_path / "out")
        assert not (tmp_path / "out").exists()

    def test_output_dir_is_a_file(self, tmp_path, write_png):
        original = write_png("original.png", 4, 4, WHITE)
        blocker = tmp_path / "blocker"
        blocker.write_text("occupied")
        with pytest.raises(FilesystemError):
            compare(original, original, blocker)

    def test_threshold_out_of_range(self, tmp_path, write_png):
        original = write_png("original.png", 4, 4, WHITE)
        with pytest.raises(ValueError):
            compare(original, original, tmp_path / "out", threshold=2)
        assert not (tmp_path / "out").exists()

    def test_custom_comparator(self, tmp_path, write_png):
        class HalfComparator:
            def compare(self, expected, actual, threshold=None):
                return PixelDiff(diff_pixels=expected.width * expected.height // 2, image=expected)

        original = write_png("original.png", 4, 4, WHITE)
        report = compare(original, original, tmp_path / "out", comparator=HalfComparator())
        assert report.diff_pixels == 8
        assert report.match_percentage == 50.0


class TestCompareRasters:
    def test_crops_to_top_left_overlap(self):
        original = make_raster(3, 3, WHITE)
        screenshot = make_raster(5, 5, WHITE, [(4, 4, BLACK), (3, 0, BLACK)])
        with pytest.warns(SizeMismatchWarning):
            region, result = compare_rasters(original, screenshot, threshold=0)
        assert tuple(region) == (3, 3)
        assert region.total_pixels == 9
        assert result.diff_pixels == 0
        assert result.image.size == (3, 3)

    def test_does_not_touch_filesystem(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        original = make_raster(4, 4, RED)
        region, result = compare_rasters(original, make_raster(4, 4, BLUE), threshold=0)
        assert result.diff_pixels == 16
        assert list(tmp_path.iterdir()) == []

    def test_passes_threshold_to_comparator(self):
        seen = []

        class RecordingComparator:
            def compare(self, expected: RasterImage, actual: RasterImage, threshold=None):
                seen.append(threshold)
                return PixelDiff(diff_pixels=0, image=expected)

        img = make_raster(2, 2, WHITE)
        compare_rasters(img, img, threshold=0.25, comparator=RecordingComparator())
        assert seen == [0.25]
