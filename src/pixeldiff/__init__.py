from pixeldiff.compare import compare, compare_rasters
from pixeldiff.errors import (
    FilesystemError,
    ImageDecodeError,
    InvalidThresholdError,
    PixelDiffError,
    SizeMismatchWarning,
    UsageError,
)
from pixeldiff.pixelmatch import ImageComparator, PixelmatchComparator
from pixeldiff.types import (
    ComparisonRegion,
    ComparisonReport,
    PixelDiff,
    PixelmatchOptions,
    RasterImage,
)

__all__ = [
    "ComparisonRegion",
    "ComparisonReport",
    "FilesystemError",
    "ImageComparator",
    "ImageDecodeError",
    "InvalidThresholdError",
    "PixelDiff",
    "PixelDiffError",
    "PixelmatchComparator",
    "PixelmatchOptions",
    "RasterImage",
    "SizeMismatchWarning",
    "UsageError",
    "compare",
    "compare_rasters",
]
