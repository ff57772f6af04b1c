from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest
from PIL import Image


def solid(size: tuple[int, int], color: tuple[int, ...], mode: str = "RGB") -> Image.Image:
    return Image.new(mode, size, color=color)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def photo_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "photos"
    folder.mkdir()
    colors = [(200, 30, 30), (30, 200, 30), (30, 30, 200)]
    sizes = [(400, 200), (150, 300), (256, 256)]
    for i, (c, s) in enumerate(zip(colors, sizes)):
        solid(s, c).save(folder / f"img_{i}.png")
    (folder / "notes.txt").write_text("not an image")
    return folder


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    log = logging.getLogger("collage")
    for handler in list(log.handlers):
        log.removeHandler(handler)
    log.setLevel(logging.NOTSET)
    log.propagate = True
