from __future__ import annotations

from pathlib import Path
from typing import NamedTuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from pixeldiff import settings

Color = tuple[int, int, int]


class RasterImage(BaseModel):
    """Decoded RGBA bitmap, row-major, top-to-bottom."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(ge=1)
    height: int = Field(ge=1)
    data: bytes = Field(repr=False)
    path: Path | None = None

    @model_validator(mode="after")
    def _check_buffer_size(self) -> RasterImage:
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"RGBA buffer has {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height}"
            )
        return self

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        # frombuffer over immutable bytes gives a read-only view
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    @classmethod
    def from_array(cls, pixels: np.ndarray, path: Path | None = None) -> RasterImage:
        height, width = pixels.shape[:2]
        return cls(
            width=width,
            height=height,
            data=np.ascontiguousarray(pixels, dtype=np.uint8).tobytes(),
            path=path,
        )


class ComparisonRegion(NamedTuple):
    width: int
    height: int

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


class PixelmatchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold: float = Field(default=settings.DEFAULT_THRESHOLD, ge=0.0, le=1.0)
    include_aa: bool = settings.INCLUDE_AA
    alpha: float = Field(default=0.1, ge=0.0, le=1.0)
    aa_color: Color = (255, 255, 0)
    diff_color: Color = (255, 0, 0)
    diff_color_alt: Color | None = None
    diff_mask: bool = False


class PixelDiff(BaseModel):
    model_config = ConfigDict(frozen=True)

    diff_pixels: int = Field(ge=0)
    antialiased_pixels: int = Field(default=0, ge=0)
    image: RasterImage


class ComparisonReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    total_pixels: int
    diff_pixels: int
    matched_pixels: int
    match_percentage: float
    diff_percentage: float
    diff_path: Path
    threshold: float
    original_width: int
    original_height: int
    screenshot_width: int
    screenshot_height: int
    size_mismatch: bool = False

    @property
    def passed(self) -> bool:
        return self.match_percentage >= settings.PASS_THRESHOLD
