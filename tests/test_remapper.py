# tests/test_remapper.py

import numpy as np

from mask_editor.algorithms.rasterizer import MaskRasterizer
from mask_editor.algorithms.remapper import MaskRemapper
from mask_editor.algorithms.strokes import StrokeAccumulator
from mask_editor.models.display import EMPTY_RECT, compute_display_rect


def test_snapshot_is_lossless():
    acc = StrokeAccumulator(64, 48)
    acc.begin_stroke((20, 20), 6)
    remapper = MaskRemapper()

    assert np.array_equal(remapper.decode(remapper.snapshot(acc.buffer)), acc.buffer)


def test_noop_resize_reproduces_painted_region():
    rect = compute_display_rect(400, 200, 300, 300)
    acc = StrokeAccumulator(300, 300)
    acc.begin_stroke((100, 150), 12)
    acc.extend_stroke((200, 160))

    remapper = MaskRemapper()
    out = remapper.remap(remapper.snapshot(acc.buffer), rect, rect, (300, 300))

    assert np.array_equal(out, acc.buffer)


def test_growing_viewport_scales_paint_with_image():
    old_rect = compute_display_rect(400, 200, 200, 100)   # scale 0.5
    new_rect = compute_display_rect(400, 200, 400, 200)   # scale 1
    acc = StrokeAccumulator(200, 100)
    acc.begin_stroke((50, 50), 10)
    before = MaskRasterizer().rasterize((400, 200), acc.buffer, old_rect)

    out = MaskRemapper().remap(acc.buffer, old_rect, new_rect, (400, 200))
    after = MaskRasterizer().rasterize((400, 200), out, new_rect)

    assert out[100, 100] > 0
    assert out[50, 50] == 0
    overlap = np.logical_and(before.data, after.data).sum()
    union = np.logical_or(before.data, after.data).sum()
    assert overlap / union > 0.7


def test_recentering_moves_paint_with_image():
    # Same scale, wider viewport: image shifts right by 50
    old_rect = compute_display_rect(100, 100, 100, 100)
    new_rect = compute_display_rect(100, 100, 200, 100)
    painted = np.zeros((100, 100), dtype=np.uint8)
    painted[10:20, 10:20] = 102

    out = MaskRemapper().remap(painted, old_rect, new_rect, (200, 100))

    expected = np.zeros((100, 200), dtype=np.uint8)
    expected[10:20, 60:70] = 102
    assert np.array_equal(out, expected)


def test_empty_rects_yield_blank_surface():
    remapper = MaskRemapper()
    painted = np.full((10, 10), 255, dtype=np.uint8)
    rect = compute_display_rect(10, 10, 10, 10)

    assert not remapper.remap(painted, EMPTY_RECT, rect, (10, 10)).any()
    assert not remapper.should_remap(True, EMPTY_RECT)
    assert not remapper.should_remap(False, rect)
    assert remapper.should_remap(True, rect)
