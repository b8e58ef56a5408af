from __future__ import annotations

import logging
import warnings
from pathlib import Path

from pixeldiff import settings
from pixeldiff.errors import FilesystemError, InvalidThresholdError, SizeMismatchWarning
from pixeldiff.pixelmatch import ImageComparator, PixelmatchComparator
from pixeldiff.raster import comparison_region, crop_to_region, load_image, save_image
from pixeldiff.types import ComparisonRegion, ComparisonReport, PixelDiff, RasterImage

logger = logging.getLogger(__name__)

SIZE_MISMATCH_TIP = "Set deviceScaleFactor: 2 in the screenshot for @2x design exports"


def _check_threshold(threshold: float) -> float:
    if not 0.0 <= threshold <= 1.0:
        raise InvalidThresholdError(f"threshold must be between 0 and 1, got {threshold}")
    return threshold


def compare_rasters(
    original: RasterImage,
    screenshot: RasterImage,
    threshold: float | None = None,
    comparator: ImageComparator | None = None,
) -> tuple[ComparisonRegion, PixelDiff]:
    threshold = _check_threshold(settings.DEFAULT_THRESHOLD if threshold is None else threshold)
    comparator = comparator or PixelmatchComparator()

    region = comparison_region(original, screenshot)
    if original.size != screenshot.size:
        message = (
            f"Size mismatch: original {original.width}x{original.height}, "
            f"screenshot {screenshot.width}x{screenshot.height}; "
            f"using overlap area {region.width}x{region.height}"
        )
        logger.warning(
            "%s. Tip: %s",
            message,
            SIZE_MISMATCH_TIP,
            extra={
                "original_size": original.size,
                "screenshot_size": screenshot.size,
                "region": tuple(region),
            },
        )
        warnings.warn(message, SizeMismatchWarning, stacklevel=2)

    result = comparator.compare(
        crop_to_region(original, region),
        crop_to_region(screenshot, region),
        threshold,
    )
    return region, result


def compare(
    original_path: str | Path,
    screenshot_path: str | Path,
    output_dir: str | Path | None = None,
    threshold: float | None = None,
    comparator: ImageComparator | None = None,
) -> ComparisonReport:
    threshold = _check_threshold(settings.DEFAULT_THRESHOLD if threshold is None else threshold)
    output_dir = Path(settings.DEFAULT_OUTPUT_DIR if output_dir is None else output_dir)

    original = load_image(original_path)
    screenshot = load_image(screenshot_path)
    logger.info(
        "Loaded images for comparison",
        extra={"original_size": original.size, "screenshot_size": screenshot.size},
    )

    region, result = compare_rasters(original, screenshot, threshold, comparator)

    total_pixels = region.total_pixels
    matched_pixels = total_pixels - result.diff_pixels

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Unable to create output directory {output_dir}: {e}") from e
    diff_path = save_image(result.image, output_dir / settings.DIFF_FILENAME)

    report = ComparisonReport(
        width=region.width,
        height=region.height,
        total_pixels=total_pixels,
        diff_pixels=result.diff_pixels,
        matched_pixels=matched_pixels,
        match_percentage=round(matched_pixels / total_pixels * 100, 2),
        diff_percentage=round(result.diff_pixels / total_pixels * 100, 2),
        diff_path=diff_path,
        threshold=threshold,
        original_width=original.width,
        original_height=original.height,
        screenshot_width=screenshot.width,
        screenshot_height=screenshot.height,
        size_mismatch=original.size != screenshot.size,
    )
    logger.info(
        "Pixel comparison finished",
        extra={
            "diff_pixels": report.diff_pixels,
            "total_pixels": report.total_pixels,
            "match_percentage": report.match_percentage,
            "diff_path": str(diff_path),
        },
    )
    return report
