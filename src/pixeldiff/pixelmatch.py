"""Perceptual per-pixel image comparison.

Colour distance is measured in YIQ space after blending each pixel onto a
white background by its alpha. A pixel differs when the weighted squared
YIQ distance exceeds ``MAX_YIQ_DELTA * threshold ** 2``. Pixels that look
like anti-aliasing (a local brightness extreme sitting next to flat runs of
identical pixels in both images) are reported separately and are not
counted unless ``include_aa`` is set or the threshold is 0.
"""

from __future__ import annotations

import logging
from typing import Protocol

import numpy as np

from pixeldiff.types import PixelDiff, PixelmatchOptions, RasterImage

logger = logging.getLogger(__name__)

# Largest possible weighted YIQ distance between two colours
MAX_YIQ_DELTA = 35215

# x outer, y inner; the scan order decides which extreme wins ties
_NEIGHBOUR_OFFSETS = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)]


class ImageComparator(Protocol):
    def compare(
        self, expected: RasterImage, actual: RasterImage, threshold: float | None = None
    ) -> PixelDiff: ...


def _blend_on_white(pixels: np.ndarray) -> np.ndarray:
    rgb = pixels[..., :3].astype(np.float64)
    alpha = pixels[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def _rgb2y(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _rgb2i(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.59597799 - rgb[..., 1] * 0.27417610 - rgb[..., 2] * 0.32180189


def _rgb2q(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.21147017 - rgb[..., 1] * 0.52261711 + rgb[..., 2] * 0.31114694


def color_delta(expected: np.ndarray, actual: np.ndarray) -> np.ndarray:
    """Signed weighted YIQ distance per pixel; negative where ``actual`` is darker."""
    rgb1 = _blend_on_white(expected)
    rgb2 = _blend_on_white(actual)
    y1 = _rgb2y(rgb1)
    y2 = _rgb2y(rgb2)
    y = y1 - y2
    i = _rgb2i(rgb1) - _rgb2i(rgb2)
    q = _rgb2q(rgb1) - _rgb2q(rgb2)
    delta = 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q
    return np.where(y1 > y2, -delta, delta)


class _Neighbourhood:
    """Shifted views of per-pixel arrays, clamped to the image bounds."""

    def __init__(self, height: int, width: int) -> None:
        self.height = height
        self.width = width
        self.ys = np.arange(height)[:, None]
        self.xs = np.arange(width)[None, :]
        self.on_edge = (
            (self.xs == 0) | (self.xs == width - 1) | (self.ys == 0) | (self.ys == height - 1)
        )

    def shifted(self, arr: np.ndarray, dx: int, dy: int) -> tuple[np.ndarray, np.ndarray]:
        padded = np.pad(arr, 1, mode="edge")
        view = padded[1 + dy : 1 + dy + self.height, 1 + dx : 1 + dx + self.width]
        ny = self.ys + dy
        nx = self.xs + dx
        valid = (ny >= 0) & (ny < self.height) & (nx >= 0) & (nx < self.width)
        return view, valid

    def has_many_siblings(self, packed: np.ndarray) -> np.ndarray:
        zeroes = self.on_edge.astype(np.int8)
        for dx, dy in _NEIGHBOUR_OFFSETS:
            neighbour, valid = self.shifted(packed, dx, dy)
            zeroes = zeroes + (valid & (neighbour == packed))
        return zeroes > 2

    def antialiased(self, brightness: np.ndarray, siblings: np.ndarray) -> np.ndarray:
        zeroes = self.on_edge.astype(np.int8)
        darkest = np.zeros_like(brightness)
        brightest = np.zeros_like(brightness)
        shape = brightness.shape
        min_y = np.zeros(shape, dtype=np.intp)
        min_x = np.zeros(shape, dtype=np.intp)
        max_y = np.zeros(shape, dtype=np.intp)
        max_x = np.zeros(shape, dtype=np.intp)

        for dx, dy in _NEIGHBOUR_OFFSETS:
            neighbour, valid = self.shifted(brightness, dx, dy)
            delta = brightness - neighbour
            same = valid & (delta == 0)
            zeroes = zeroes + same
            lower = valid & ~same & (delta < darkest)
            higher = valid & ~same & ~lower & (delta > brightest)

            darkest = np.where(lower, delta, darkest)
            min_y = np.where(lower, self.ys + dy, min_y)
            min_x = np.where(lower, self.xs + dx, min_x)
            brightest = np.where(higher, delta, brightest)
            max_y = np.where(higher, self.ys + dy, max_y)
            max_x = np.where(higher, self.xs + dx, max_x)

        # a pixel with both a darker and a brighter neighbour, at most two equal ones,
        # and one of those extremes inside a flat area in both images
        candidate = (zeroes <= 2) & (darkest != 0) & (brightest != 0)
        return candidate & (siblings[min_y, min_x] | siblings[max_y, max_x])


def _pack(pixels: np.ndarray) -> np.ndarray:
    return np.ascontiguousarray(pixels).view(np.uint32)[..., 0]


def _gray_background(pixels: np.ndarray, alpha: float) -> np.ndarray:
    luminance = _rgb2y(pixels[..., :3].astype(np.float64))
    weight = alpha * pixels[..., 3].astype(np.float64) / 255.0
    value = np.clip(255.0 + (luminance - 255.0) * weight, 0, 255).astype(np.uint8)
    out = np.empty(pixels.shape, dtype=np.uint8)
    out[..., 0] = value
    out[..., 1] = value
    out[..., 2] = value
    out[..., 3] = 255
    return out


class PixelmatchComparator:
    def __init__(self, options: PixelmatchOptions | None = None) -> None:
        self.options = options or PixelmatchOptions()

    def _options_for(self, threshold: float | None) -> PixelmatchOptions:
        if threshold is None or threshold == self.options.threshold:
            return self.options
        return PixelmatchOptions(**{**self.options.model_dump(), "threshold": threshold})

    def compare(
        self, expected: RasterImage, actual: RasterImage, threshold: float | None = None
    ) -> PixelDiff:
        if expected.size != actual.size:
            raise ValueError(f"Image sizes do not match: {expected.size} vs {actual.size}")
        options = self._options_for(threshold)

        img1 = expected.pixels
        img2 = actual.pixels
        height, width = img1.shape[:2]

        if options.diff_mask:
            output = np.zeros((height, width, 4), dtype=np.uint8)
        else:
            output = _gray_background(img1, options.alpha)

        if expected.data == actual.data:
            return PixelDiff(diff_pixels=0, image=RasterImage.from_array(output))

        delta = color_delta(img1, img2)
        max_delta = MAX_YIQ_DELTA * options.threshold * options.threshold
        over = np.abs(delta) > max_delta

        aa = np.zeros((height, width), dtype=bool)
        # at threshold 0 every changed pixel counts, anti-aliased or not
        if not options.include_aa and options.threshold > 0 and over.any():
            hood = _Neighbourhood(height, width)
            siblings = hood.has_many_siblings(_pack(img1)) & hood.has_many_siblings(_pack(img2))
            aa = over & (
                hood.antialiased(_rgb2y(_blend_on_white(img1)), siblings)
                | hood.antialiased(_rgb2y(_blend_on_white(img2)), siblings)
            )
        diff = over & ~aa

        if not options.diff_mask:
            output[aa] = (*options.aa_color, 255)
        output[diff] = (*options.diff_color, 255)
        if options.diff_color_alt is not None:
            output[diff & (delta < 0)] = (*options.diff_color_alt, 255)

        diff_pixels = int(np.count_nonzero(diff))
        antialiased_pixels = int(np.count_nonzero(aa))
        logger.debug(
            "Compared pixel buffers",
            extra={
                "width": width,
                "height": height,
                "threshold": options.threshold,
                "diff_pixels": diff_pixels,
                "antialiased_pixels": antialiased_pixels,
            },
        )
        return PixelDiff(
            diff_pixels=diff_pixels,
            antialiased_pixels=antialiased_pixels,
            image=RasterImage.from_array(output),
        )
