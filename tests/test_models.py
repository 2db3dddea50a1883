import pytest

from comic.models import (
    DisplayedImage,
    TranslatedBubble,
    average_confidence,
    confidence_tier,
    normalize_box,
    round_half_up,
)


def _bubble(confidence, box=(0, 0, 100, 100)):
    return TranslatedBubble(id="b", original_text="こんにちは", translated_text="Merhaba", box=box, confidence=confidence)


@pytest.mark.parametrize("value, expected", [(2.5, 3), (2.4, 2), (85.5, 86), (-0.5, 0), (7, 7)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_normalize_box_rounds_clamps_and_orders():
    assert normalize_box([900.4, -5, 100, 1200]) == (100, 0, 900, 1000)
    assert normalize_box([10, 20, 30, 40]) == (10, 20, 30, 40)


def test_bubble_coordinates():
    bubble = _bubble(80, box=(100, 200, 300, 400))
    assert (bubble.ymin, bubble.xmin, bubble.ymax, bubble.xmax) == (100, 200, 300, 400)


@pytest.mark.parametrize("confidence, low", [(0, True), (49, True), (50, False), (95, False), (None, False)])
def test_low_confidence_flag(confidence, low):
    assert _bubble(confidence).is_low_confidence is low


def test_average_confidence():
    assert average_confidence([_bubble(90), _bubble(81)]) == 86
    assert average_confidence([_bubble(40)]) == 40
    assert average_confidence([_bubble(80), _bubble(None)]) == 40
    assert average_confidence([]) == 0


@pytest.mark.parametrize("score, tier", [(100, "high"), (90, "high"), (89, "medium"), (70, "medium"), (69, "low"), (None, "low")])
def test_confidence_tier(score, tier):
    assert confidence_tier(score) == tier


def test_data_uri_round_trip():
    image = DisplayedImage("image/png", b"\x89PNG\r\n")
    uri = image.to_data_uri()
    assert uri.startswith("data:image/png;base64,")
    assert DisplayedImage.from_data_uri(uri) == image


@pytest.mark.parametrize("uri", ["not a uri", "data:image/png;base64,@@@", "data:;base64,AAAA"])
def test_invalid_data_uri(uri):
    with pytest.raises(ValueError):
        DisplayedImage.from_data_uri(uri)


def test_displayed_image_repr_hides_payload():
    assert "size=3" in repr(DisplayedImage("image/jpeg", b"abc"))
