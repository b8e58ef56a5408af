from __future__ import annotations


class PixelDiffError(Exception):
    pass


class ImageDecodeError(PixelDiffError):
    """An input image is missing, unreadable, or not a valid raster."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Unable to load image {path}: {reason}")
        self.path = path
        self.reason = reason


class FilesystemError(PixelDiffError):
    """The output directory or the diff image could not be written."""


class UsageError(PixelDiffError):
    pass


class SizeMismatchWarning(UserWarning):
    """The compared images differ in size; only the overlap is compared."""


class InvalidThresholdError(PixelDiffError, ValueError):
    pass
