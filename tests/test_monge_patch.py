import numpy as np
import pytest

from ponca.monge_patch import MongePatch
from ponca.plane import FitResult, Point


class ConstantWeight:
    def __init__(self, t):
        self.t = t

    def __call__(self, q, point):
        return 1.0 if np.linalg.norm(q) <= self.t else 0.0


def _grid(height):
    xs = np.linspace(-1.0, 1.0, 11)
    return [Point([x, y, height(x, y)]) for x in xs for y in xs]


def _paraboloid():
    return _grid(lambda x, y: 0.5 * (x * x + y * y))


def _fitted(points):
    fit = MongePatch(ConstantWeight(10.0))
    fit.init(np.zeros(3))
    result = fit.compute(points)
    return fit, result


def test_paraboloid_fit_is_stable_and_exact():
    points = _paraboloid()
    fit, result = _fitted(points)
    assert result is FitResult.STABLE
    for p in points[::7]:
        assert abs(fit.potential(p.pos)) < 1e-9
        assert np.allclose(fit.project(p.pos), p.pos, atol=1e-9)


def test_paraboloid_gaussian_curvature():
    fit, _ = _fitted(_paraboloid())
    assert fit.gaussian_curvature() == pytest.approx(0.25, abs=1e-9)
    assert abs(fit.h_u) < 1e-9 and abs(fit.h_v) < 1e-9


def test_eval_uv_at_origin_is_constant_term():
    fit, _ = _fitted(_paraboloid())
    assert fit.eval_uv(0.0, 0.0) == pytest.approx(fit.h_c)
    assert fit.eval_uv(1.0, 0.0) == pytest.approx(fit.h_uu + fit.h_u + fit.h_c)


def test_flat_patch_has_no_curvature():
    fit, result = _fitted(_grid(lambda x, y: 0.0))
    assert result is FitResult.STABLE
    assert abs(fit.gaussian_curvature()) < 1e-9
    assert abs(fit.k_mean()) < 1e-9


def test_first_pass_requests_another_pass():
    fit = MongePatch(ConstantWeight(10.0))
    fit.init(np.zeros(3))
    for p in _paraboloid():
        fit.add_neighbor(p)
    assert fit.finalize() is FitResult.NEED_OTHER_PASS
    assert not fit.is_ready()


def test_too_few_points_is_undefined():
    fit, result = _fitted([Point([0.0, 0.0, 0.0]), Point([1.0, 0.0, 0.0])])
    assert result is FitResult.UNDEFINED


def test_only_three_dimensions():
    with pytest.raises(ValueError):
        MongePatch(ConstantWeight(1.0), 2)