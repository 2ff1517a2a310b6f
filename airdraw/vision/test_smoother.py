import pytest

from airdraw.vision.frame_data import Point
from airdraw.vision.smoother import ExponentialSmoother


def test_single_step_blends_with_gain():
    s = ExponentialSmoother(0.2, initial=Point(100.0, 50.0))
    p = s.update(Point(200.0, 150.0))
    assert p.x == pytest.approx(120.0)
    assert p.y == pytest.approx(70.0)


def test_residual_decays_geometrically():
    s = ExponentialSmoother(0.2, initial=Point(0.0, 0.0))
    target = Point(100.0, -40.0)
    for n in range(1, 11):
        p = s.update(target)
        residual = 0.8 ** n
        assert target.x - p.x == pytest.approx(100.0 * residual)
        assert target.y - p.y == pytest.approx(-40.0 * residual)


def test_starts_from_origin():
    s = ExponentialSmoother()
    assert s.update(Point(10.0, 10.0)) == Point(2.0, 2.0)


def test_gain_one_follows_target():
    s = ExponentialSmoother(1.0)
    assert s.update(Point(7.0, 3.0)) == Point(7.0, 3.0)


def test_reset_restores_initial():
    s = ExponentialSmoother(0.5, initial=Point(1.0, 1.0))
    s.update(Point(9.0, 9.0))
    s.reset()
    assert s.value == Point(1.0, 1.0)


@pytest.mark.parametrize("gain", [0.0, -0.1, 1.5])
def test_invalid_gain(gain):
    with pytest.raises(ValueError):
        ExponentialSmoother(gain)
