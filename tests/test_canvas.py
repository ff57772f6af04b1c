from __future__ import annotations

import pytest

import collage


@pytest.mark.parametrize(
    "ratio, size",
    [
        ("1:1", (1200, 1200)),
        ("16:9", (1920, 1080)),
        ("9:16", (1080, 1920)),
        ("1:3", (1080, 3240)),
        ("3:1", (3240, 1080)),
    ],
)
def test_canvas_for_ratio_table(ratio, size):
    canvas = collage.canvas_for_ratio(ratio)
    assert (canvas.width, canvas.height) == size


def test_canvas_for_ratio_is_stable():
    assert collage.canvas_for_ratio("16:9") == collage.canvas_for_ratio("16:9")


def test_ratios_in_display_order():
    assert collage.ASPECT_RATIOS == ("1:1", "16:9", "9:16", "1:3", "3:1")


@pytest.mark.parametrize("ratio", ["4:3", "", "16x9", " 1:1", None])
def test_unknown_ratio_rejected(ratio):
    with pytest.raises(collage.InvalidAspectRatio) as exc:
        collage.canvas_for_ratio(ratio)
    assert isinstance(exc.value, ValueError)


def test_parse_canvas_prefers_explicit_size():
    assert collage.parse_canvas("1:1", "800x600") == collage.CanvasSpec(800, 600)
    assert collage.parse_canvas("9:16", None) == collage.CanvasSpec(1080, 1920)
    assert collage.parse_canvas(None, None) == collage.CanvasSpec(1200, 1200)


def test_parse_canvas_bad_size():
    with pytest.raises(collage.InvalidCanvasSize):
        collage.parse_canvas(None, "0x600")
    with pytest.raises(ValueError):
        collage.parse_canvas(None, "800")


def test_parse_rgb():
    assert collage.parse_rgb("#ff8000") == (255, 128, 0)
    assert collage.parse_rgb("000000") == (0, 0, 0)
    with pytest.raises(ValueError):
        collage.parse_rgb("red")
