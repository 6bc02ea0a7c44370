# tests/test_cli.py

import json
import logging

import numpy as np
import cv2
import pytest

import mask_tool
from mask_editor.utils.codec import decode_rgba


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def write_image(path, width, height):
    cv2.imwrite(str(path), np.full((height, width, 3), 180, dtype=np.uint8))


def test_paint_replays_strokes_and_saves_mask(tmp_path):
    image = tmp_path / "scan.png"
    write_image(image, 100, 50)
    strokes = tmp_path / "strokes.json"
    strokes.write_text(json.dumps({
        "strokes": [{"brush_size": 20, "points": [[60, 80]]}]
    }))
    output = tmp_path / "out"

    code = mask_tool.main([
        "--output-dir", str(output), "--no-cache",
        "paint", "--image", str(image), "--strokes", str(strokes),
        "--viewport", "200x200"
    ])

    assert code == 0
    saved = list(output.glob("scan_mask_*.png"))
    assert len(saved) == 1
    mask = decode_rgba(saved[0].read_bytes())
    assert mask.shape == (50, 100, 4)
    assert mask[5, 10, 0] == 255
    assert mask[45, 95, 0] == 0


def test_paint_without_strokes_fails(tmp_path):
    image = tmp_path / "scan.png"
    write_image(image, 10, 10)
    strokes = tmp_path / "strokes.json"
    strokes.write_text(json.dumps({"strokes": []}))

    code = mask_tool.main([
        "--output-dir", str(tmp_path / "out"), "--no-cache",
        "paint", "--image", str(image), "--strokes", str(strokes)
    ])

    assert code == 1


def test_apply_writes_composites(tmp_path):
    first, second = tmp_path / "a.png", tmp_path / "b.jpg"
    write_image(first, 20, 10)
    write_image(second, 8, 8)
    mask = tmp_path / "mask.png"
    cv2.imwrite(str(mask), np.zeros((4, 4), dtype=np.uint8))
    output = tmp_path / "out"

    code = mask_tool.main([
        "--output-dir", str(output), "--no-cache",
        "apply", "--mask", str(mask), str(first), str(second)
    ])

    assert code == 0
    result = decode_rgba((output / "a_masked.png").read_bytes())
    assert result.shape == (10, 20, 4)
    assert (result[..., 3] == 0).all()
    assert (output / "b_masked.png").exists()


def test_viewport_argument_parsing():
    assert mask_tool.parse_viewport("640X480") == (640, 480)
    with pytest.raises(Exception):
        mask_tool.parse_viewport("wide")
