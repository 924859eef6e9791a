from p2overlay.mapping import (
    display_size,
    round_half_away,
    scale_value,
    to_display,
)


def test_unit_scale_is_identity():
    for x in range(0, 256, 17):
        for y in range(0, 192, 13):
            assert to_display((x, y), 1) == (x, y)
            assert to_display((x, y), 1.0) == (x, y)


def test_half_rounds_away_from_zero():
    assert round_half_away(2.5) == 3
    assert round_half_away(7.5) == 8
    assert round_half_away(-2.5) == -3
    assert round_half_away(2.49) == 2
    assert scale_value(1, 2.5) == 3
    assert scale_value(3, 2.5) == 8


def test_integer_and_ratio_scales_agree():
    assert to_display((20, 30), 3) == (60, 90)
    assert to_display((20, 30), 480 / 192) == (50, 75)


def test_display_size():
    assert display_size(256, 192, 2.5) == (640, 480)
    assert display_size(256, 192, 3) == (768, 576)
