import pytest

from ponca.colormap import Color, get_color


def test_zero_is_white():
    assert get_color(0.0, -0.5, 0.5) == Color(1.0, 1.0, 1.0)


def test_extremes_are_blue_and_red():
    assert get_color(-0.5, -0.5, 0.5) == Color(0.0, 0.0, 1.0)
    assert get_color(0.5, -0.5, 0.5) == Color(1.0, 0.0, 0.0)


def test_values_are_clamped():
    assert get_color(-10.0, -0.5, 0.5) == get_color(-0.5, -0.5, 0.5)
    assert get_color(10.0, -0.5, 0.5) == get_color(0.5, -0.5, 0.5)


@pytest.mark.parametrize("delta", [0.05, 0.1, 0.25, 0.4, 0.5])
def test_map_is_symmetric_around_middle(delta):
    low = get_color(1.0 - delta, 0.5, 1.5)
    high = get_color(1.0 + delta, 0.5, 1.5)
    assert low.r == pytest.approx(high.b)
    assert low.g == pytest.approx(high.g)
    assert low.b == pytest.approx(high.r)


@pytest.mark.parametrize("value", [-0.45, -0.3, -0.1, 0.1, 0.3, 0.45])
def test_channels_stay_in_unit_range(value):
    c = get_color(value, -0.5, 0.5)
    for channel in (c.r, c.g, c.b):
        assert 0.0 <= channel <= 1.0
    if value < 0:
        assert c.b == 1.0
    else:
        assert c.r == 1.0


def test_invalid_range_rejected():
    with pytest.raises(ValueError):
        get_color(0.2, 0.5, 0.5)
    with pytest.raises(ValueError):
        get_color(0.2, 1.0, -1.0)