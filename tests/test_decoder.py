import numpy as np
import pytest
from PIL import Image, features

from imgcompress import DecodeError, DecodeLimits, TooLargeError, decode, probe

from conftest import image_bytes, make_photo_array


def test_decode_red_png_dimensions_and_samples(red_png):
    buf = decode(red_png)

    assert (buf.width, buf.height) == (100, 100)
    assert buf.size == 40000
    assert len(buf.tobytes()) == 100 * 100 * 4
    assert (buf.pixels == np.array([255, 0, 0, 255], dtype=np.uint8)).all()


def test_decode_jpeg_keeps_dimensions(photo_jpeg):
    buf = decode(photo_jpeg)
    assert (buf.width, buf.height) == (96, 64)
    assert buf.pixels.shape == (64, 96, 4)
    assert not buf.has_alpha


@pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WEBP")
def test_decode_webp():
    data = image_bytes(Image.new("RGB", (30, 20), color=(0, 0, 255)), "WEBP", quality=90)
    buf = decode(data)
    assert (buf.width, buf.height) == (30, 20)


def test_decode_preserves_alpha():
    img = Image.new("RGBA", (8, 4), color=(10, 20, 30, 77))
    buf = decode(image_bytes(img))
    assert buf.has_alpha
    assert (buf.pixels[..., 3] == 77).all()


def test_decode_palette_png_to_rgba():
    img = Image.new("P", (5, 5))
    img.putpalette([0, 255, 0] * 256)
    buf = decode(image_bytes(img))
    assert tuple(buf.pixels[0, 0]) == (0, 255, 0, 255)


def test_decode_sixteen_bit_grayscale_is_scaled():
    arr = np.full((4, 6), 65535, dtype=np.uint16)
    arr[0, 0] = 0
    buf = decode(image_bytes(Image.fromarray(arr)))
    assert (buf.width, buf.height) == (6, 4)
    assert tuple(buf.pixels[0, 0]) == (0, 0, 0, 255)
    assert tuple(buf.pixels[3, 5]) == (255, 255, 255, 255)


def test_decoded_buffer_is_frozen(red_png):
    buf = decode(red_png)
    with pytest.raises(ValueError):
        buf.pixels[0, 0, 0] = 1


def test_decode_does_not_mutate_input(red_png):
    data = bytearray(red_png)
    decode(data)
    assert bytes(data) == red_png


def test_empty_input_rejected():
    with pytest.raises(DecodeError):
        decode(b"")


def test_garbage_rejected():
    with pytest.raises(DecodeError):
        decode(b"definitely not an image" * 10)


def test_truncated_png_rejected(photo_png):
    with pytest.raises(DecodeError):
        decode(photo_png[: len(photo_png) // 2])


def test_truncated_jpeg_rejected(photo_jpeg):
    with pytest.raises(DecodeError):
        decode(photo_jpeg[: int(len(photo_jpeg) * 0.6)])


def test_unsupported_format_rejected():
    data = image_bytes(Image.new("RGB", (10, 10)), "BMP")
    with pytest.raises(DecodeError, match="Unsupported"):
        decode(data)


def test_format_subset_can_be_configured(photo_jpeg):
    limits = DecodeLimits(supported_formats=("png",))
    with pytest.raises(DecodeError):
        decode(photo_jpeg, limits)


def test_animated_png_rejected():
    frames = [Image.new("RGB", (10, 10), color=c) for c in ((255, 0, 0), (0, 255, 0))]
    out = image_bytes(frames[0], "PNG", save_all=True, append_images=frames[1:])
    with pytest.raises(DecodeError, match="multi-frame"):
        decode(out)


def test_dimension_guard(red_png):
    with pytest.raises(TooLargeError) as excinfo:
        decode(red_png, DecodeLimits(max_dimension=50))
    assert excinfo.value.width == 100
    assert excinfo.value.height == 100
    assert excinfo.value.limit == 50


def test_pixel_count_guard(red_png):
    with pytest.raises(TooLargeError):
        decode(red_png, DecodeLimits(max_pixels=9999))


def test_byte_guard(red_png):
    with pytest.raises(TooLargeError) as excinfo:
        decode(red_png, DecodeLimits(max_input_bytes=10))
    assert excinfo.value.size == len(red_png)


def test_too_large_is_distinct_from_decode_error(red_png):
    with pytest.raises(TooLargeError) as excinfo:
        decode(red_png, DecodeLimits(max_dimension=1))
    assert not isinstance(excinfo.value, DecodeError)


def test_probe_reads_header(photo_jpeg):
    info = probe(photo_jpeg)
    assert info.format == "JPEG"
    assert (info.width, info.height) == (96, 64)
    assert info.frames == 1


def test_probe_applies_guards():
    data = image_bytes(Image.fromarray(make_photo_array(width=200, height=10)))
    with pytest.raises(TooLargeError):
        probe(data, DecodeLimits(max_dimension=100))


def test_non_bytes_input_is_type_error():
    with pytest.raises(TypeError):
        decode("image.png")


@pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WEBP")
def test_animated_webp_rejected():
    frames = [Image.new("RGB", (12, 12), color=c) for c in ((255, 0, 0), (0, 0, 255))]
    out = image_bytes(frames[0], "WEBP", save_all=True, append_images=frames[1:], duration=100)
    with pytest.raises(DecodeError, match="multi-frame"):
        decode(out)


def test_mpo_decodes_primary_picture_as_jpeg():
    primary = Image.new("RGB", (40, 30), color=(0, 200, 0))
    preview = Image.new("RGB", (20, 15), color=(200, 0, 0))
    data = image_bytes(primary, "MPO", save_all=True, append_images=[preview])

    info = probe(data)
    assert info.format == "JPEG"
    assert info.frames == 2

    buf = decode(data)
    assert (buf.width, buf.height) == (40, 30)
    r, g, b, a = buf.pixels[15, 20]
    assert g > 150 and r < 50 and a == 255


def test_pillow_bomb_guard_maps_to_too_large(red_png, monkeypatch):
    # 100x100 is over twice this limit, so Pillow raises instead of warning
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(TooLargeError):
        decode(red_png)
