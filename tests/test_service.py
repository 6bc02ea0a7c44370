# tests/test_service.py

import base64

import numpy as np
import pytest
from PIL import Image

from mask_editor.core.service import MaskEditorService
from mask_editor.utils.codec import decode_rgba, encode_png, parse_data_url

from conftest import gradient_rgba, png_data_url


@pytest.fixture
def service(tmp_path):
    return MaskEditorService(tmp_path / "output", clock=lambda: 1712345678.25)


def test_open_editor_messages(service):
    with_image = service.open_editor(image="data:image/png;base64,AAAA", session_id="abc")
    without = service.open_editor()

    assert with_image.structured_content['status'] == 'ready'
    assert "opened with image" in with_image.text
    assert without.structured_content == {
        'status': 'ready',
        'message': "Mask editor opened. Drop an image onto the canvas to begin."
    }


def test_save_mask_writes_named_file(service, tmp_path):
    payload = encode_png(np.zeros((2, 2), dtype=np.uint8))
    url = "data:image/png;base64," + base64.b64encode(payload).decode('ascii')

    result = service.save_mask(url, "holiday/beach.photo.jpg")

    expected = tmp_path / "output" / "beach.photo_mask_1712345678250.png"
    assert not result.is_error
    assert result.structured_content == {'status': 'saved', 'file_path': str(expected)}
    assert expected.read_bytes() == payload


def test_save_mask_defaults_base_name(service, tmp_path):
    result = service.save_mask("data:image/webp;base64,AAAA")
    assert result.structured_content['file_path'].endswith("mask_mask_1712345678250.webp")


@pytest.mark.parametrize("bad", [
    "not a data url",
    "data:text/plain;base64,AAAA",
    "data:image/png,AAAA",
    "data:image/png;base64,@@@@",
])
def test_save_mask_rejects_malformed_urls(service, tmp_path, bad):
    result = service.save_mask(bad, "x.png")

    assert result.is_error
    assert result.structured_content == {'status': 'error', 'file_path': ''}
    assert not (tmp_path / "output").exists()


def test_apply_mask_returns_png_data_url(service):
    image = gradient_rgba(20, 10)
    mask = np.zeros((5, 10), dtype=np.uint8)
    mask[:, 5:] = 255

    result = service.apply_mask(png_data_url(image), base64.b64encode(encode_png(mask)).decode('ascii'))

    assert not result.is_error
    assert result.text == result.structured_content['result']
    rgba = decode_rgba(parse_data_url(result.structured_content['result'])[1])
    assert rgba[0, 0, 3] == 0
    assert rgba[0, 19, 3] == 255
    assert np.array_equal(rgba[..., :3], image[..., :3])


def test_apply_mask_decode_failure_is_structured(service):
    result = service.apply_mask("data:image/png;base64,aGVsbG8=", "aGVsbG8=")

    assert result.is_error
    assert result.structured_content['status'] == 'error'
    assert result.to_dict()['isError'] is True


def test_apply_mask_oversized_image_is_structured_error(service, monkeypatch):
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 50)
    mask = base64.b64encode(encode_png(np.zeros((2, 2), dtype=np.uint8))).decode('ascii')

    result = service.apply_mask(png_data_url(gradient_rgba(20, 10)), mask)

    assert result.is_error
    assert result.structured_content['status'] == 'error'
