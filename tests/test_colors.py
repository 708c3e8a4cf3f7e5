"""Tests for hex color parsing and blending."""
import pytest

from particle_engine.colors import RGBA, WHITE, lerp_color, parse_color


def test_parse_six_digit_color():
    """Six digits give an opaque color."""
    assert parse_color("#ff0000") == RGBA(255, 0, 0, 1.0)
    assert parse_color("#88bbff") == RGBA(0x88, 0xBB, 0xFF, 1.0)


def test_parse_eight_digit_color():
    """The last pair of eight digits is alpha."""
    color = parse_color("#ff000080")
    assert color[:3] == (255, 0, 0)
    assert color.a == pytest.approx(128 / 255)


def test_parse_without_hash_and_uppercase():
    assert parse_color("FF6600") == RGBA(255, 102, 0, 1.0)
    assert parse_color("#AbCdEf00") == RGBA(0xAB, 0xCD, 0xEF, 0.0)


@pytest.mark.parametrize(
    "value",
    [None, "", "#", "#fff", "#ff00000", "#ff0000000", "#gg0000", "not a color", 0xFF0000],
)
def test_malformed_color_falls_back_to_white(value):
    """Anything unparseable is opaque white, never an error."""
    assert parse_color(value) == WHITE
    assert WHITE == RGBA(255, 255, 255, 1.0)


def test_lerp_color_endpoints():
    start = parse_color("#ff6600")
    end = parse_color("#ff000033")

    assert lerp_color(start, end, 0.0) == start
    blended = lerp_color(start, end, 1.0)
    assert blended[:3] == end[:3]
    assert blended.a == pytest.approx(end.a)


def test_lerp_color_rounds_channels_but_not_alpha():
    black = RGBA(0, 0, 0, 0.0)
    white = RGBA(255, 255, 255, 1.0)

    mid = lerp_color(black, white, 0.5)

    # 127.5 rounds up
    assert mid[:3] == (128, 128, 128)
    assert all(isinstance(channel, int) for channel in mid[:3])
    assert mid.a == pytest.approx(0.5)

    quarter = lerp_color(black, white, 0.25)
    assert quarter[:3] == (64, 64, 64)
    assert quarter.a == pytest.approx(0.25)


def test_lerp_color_falling_channel():
    start = RGBA(200, 100, 50, 1.0)
    end = RGBA(0, 0, 0, 0.0)

    assert lerp_color(start, end, 0.3) == pytest.approx(RGBA(140, 70, 35, 0.7))


def test_css_rendering():
    assert RGBA(255, 102, 0, 0.5).to_css() == "rgba(255, 102, 0, 0.5)"
