from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from pixeldiff.errors import FilesystemError, ImageDecodeError
from pixeldiff.types import ComparisonRegion, RasterImage

logger = logging.getLogger(__name__)


def load_image(path: str | Path) -> RasterImage:
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            rgba = img.convert("RGBA")
    except FileNotFoundError as e:
        raise ImageDecodeError(path, "file not found") from e
    except UnidentifiedImageError as e:
        raise ImageDecodeError(path, "not a recognized image format") from e
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(path, str(e) or type(e).__name__) from e

    try:
        width, height = rgba.size
        if width == 0 or height == 0:
            raise ImageDecodeError(path, "image has no pixels")
        return RasterImage(width=width, height=height, data=rgba.tobytes(), path=path)
    finally:
        rgba.close()


def save_image(image: RasterImage, path: str | Path) -> Path:
    path = Path(path)
    img = Image.frombytes("RGBA", image.size, image.data)
    try:
        img.save(path, "PNG")
    except OSError as e:
        if path.is_file():
            path.unlink()
        raise FilesystemError(f"Unable to write diff image {path}: {e}") from e
    finally:
        img.close()
    return path


def comparison_region(a: RasterImage, b: RasterImage) -> ComparisonRegion:
    return ComparisonRegion(min(a.width, b.width), min(a.height, b.height))


def crop_to_region(image: RasterImage, region: ComparisonRegion) -> RasterImage:
    """Keep the top-left ``region`` of ``image``; never resamples."""
    if image.size == (region.width, region.height):
        return image
    if region.width > image.width or region.height > image.height:
        raise ValueError(
            f"Region {region.width}x{region.height} exceeds image {image.width}x{image.height}"
        )
    logger.debug(
        "Cropping image to comparison region",
        extra={"path": str(image.path), "from": image.size, "to": tuple(region)},
    )
    return RasterImage.from_array(
        image.pixels[: region.height, : region.width],
        path=image.path,
    )
