import pytest

from comic.images import decode_image, image_size, load_image_file, resize_for_upload, scaled_size
from comic.models import DisplayedImage


def test_load_image_file_guesses_mime(tmp_path, make_png):
    path = tmp_path / "page.png"
    path.write_bytes(make_png())
    image = load_image_file(path)
    assert image.mime_type == "image/png"
    assert image.data == path.read_bytes()


def test_load_image_file_unknown_extension_defaults_to_jpeg(tmp_path, make_png):
    path = tmp_path / "page.unknownext"
    path.write_bytes(make_png())
    assert load_image_file(path).mime_type == "image/jpeg"


def test_load_image_file_missing(tmp_path):
    with pytest.raises(OSError):
        load_image_file(tmp_path / "missing.png")


@pytest.mark.parametrize(
    "size, expected",
    [
        ((3000, 2000), (1536, 1024)),
        ((2000, 3000), (1024, 1536)),
        ((2000, 2000), (1536, 1536)),
        ((4000, 1001), (1536, 384)),
    ],
)
def test_scaled_size_keeps_aspect_ratio(size, expected):
    assert scaled_size(*size, 1536) == expected


def test_small_image_is_returned_unchanged(make_png):
    image = DisplayedImage("image/png", make_png(800, 600))
    assert resize_for_upload(image) is image


def test_image_on_the_limit_is_returned_unchanged(make_png):
    image = DisplayedImage("image/png", make_png(1536, 100))
    assert resize_for_upload(image) is image


def test_large_image_is_downscaled_to_jpeg(make_png):
    image = DisplayedImage("image/png", make_png(3072, 1536))
    resized = resize_for_upload(image)
    assert resized is not image
    assert resized.mime_type == "image/jpeg"
    assert resized.data[:2] == b"\xff\xd8"
    assert decode_image(resized).shape[:2] == (768, 1536)


def test_custom_max_dimension(make_png):
    image = DisplayedImage("image/png", make_png(200, 400))
    assert image_size(resize_for_upload(image, max_dimension=100)) == (50, 100)


def test_undecodable_image_falls_back_to_original():
    image = DisplayedImage("image/jpeg", b"garbage bytes")
    assert resize_for_upload(image) is image
    assert image_size(image) is None


def test_decode_empty_payload():
    with pytest.raises(ValueError):
        decode_image(DisplayedImage("image/png", b""))
