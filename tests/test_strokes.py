# tests/test_strokes.py

import numpy as np
import pytest

from mask_editor.algorithms.strokes import StrokeAccumulator


def test_begin_stroke_stamps_a_dot():
    acc = StrokeAccumulator(100, 100)
    assert not acc.has_paint

    acc.begin_stroke((50, 50), 5)

    assert acc.has_paint
    assert acc.is_painted(50, 50)
    assert acc.is_painted(53, 50)
    assert not acc.is_painted(58, 50)
    assert acc.strokes[0].is_dot


def test_paint_value_follows_opacity():
    acc = StrokeAccumulator(20, 20, opacity=0.4)
    acc.begin_stroke((10, 10), 4)
    assert acc.buffer[10, 10] == 102


def test_extend_paints_continuous_band():
    acc = StrokeAccumulator(200, 100)
    acc.begin_stroke((20, 50), 4)
    assert acc.extend_stroke((180, 50))
    assert acc.extend_stroke((180, 90))

    # Along both segments, including the corner
    for x in range(20, 181):
        assert acc.is_painted(x, 50)
    for y in range(50, 91):
        assert acc.is_painted(180, y)
    # Round cap beyond the first point
    assert acc.is_painted(17, 50)
    assert not acc.is_painted(100, 60)
    assert acc.strokes[0].points == [(20, 50), (180, 50), (180, 90)]


def test_extend_without_open_stroke_is_noop():
    acc = StrokeAccumulator(50, 50)
    assert not acc.extend_stroke((10, 10))
    assert not acc.has_paint

    acc.begin_stroke((5, 5), 2)
    acc.end_stroke()
    before = acc.snapshot()
    assert not acc.extend_stroke((40, 40))
    assert np.array_equal(acc.buffer, before)


def test_clear_discards_everything():
    acc = StrokeAccumulator(50, 50)
    acc.begin_stroke((25, 25), 10)
    acc.extend_stroke((30, 30))
    acc.clear()

    assert not acc.has_paint
    assert not acc.is_stroking
    assert acc.strokes == []
    assert not acc.buffer.any()


def test_resize_clears_surface_but_keeps_paint_flag():
    acc = StrokeAccumulator(50, 50)
    acc.begin_stroke((25, 25), 10)
    acc.resize(80, 60)

    assert acc.buffer.shape == (60, 80)
    assert not acc.buffer.any()
    assert acc.has_paint


def test_composite_takes_maximum():
    acc = StrokeAccumulator(10, 10)
    acc.begin_stroke((2, 2), 1)
    other = np.zeros((10, 10), dtype=np.uint8)
    other[8, 8] = 50
    acc.composite(other)

    assert acc.buffer[8, 8] == 50
    assert acc.is_painted(2, 2)

    with pytest.raises(ValueError):
        acc.composite(np.zeros((5, 5), dtype=np.uint8))


def test_out_of_bounds_queries_and_bad_radius():
    acc = StrokeAccumulator(10, 10)
    assert not acc.is_painted(-1, 0)
    assert not acc.is_painted(10, 0)
    with pytest.raises(ValueError):
        acc.begin_stroke((1, 1), 0)
