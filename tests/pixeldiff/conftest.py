from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from tests.pixeldiff.images import RGBA, make_image


@pytest.fixture
def write_png(tmp_path: Path) -> Callable[..., Path]:
    def _write(
        name: str,
        width: int,
        height: int,
        color: RGBA,
        pixels: Iterable[tuple[int, int, RGBA]] = (),
    ) -> Path:
        path = tmp_path / name
        make_image(width, height, color, pixels).save(path, "PNG")
        return path

    return _write
