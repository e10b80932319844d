"""Height-field quadric fitted over a covariance plane."""

from __future__ import annotations

import numpy as np

from .plane import FitResult, Point
from .plane_fits import CovariancePlaneFit


class MongePatch(CovariancePlaneFit):
    """Quadric ``h(u, v)`` fitted in the tangent frame of a covariance plane.

    Fitting takes two passes: the first fits the plane, the second fits
    ``h = h_uu u^2 + h_vv v^2 + h_uv uv + h_u u + h_v v + h_c``. Only 3D.
    """

    def init(self, eval_pos) -> None:
        if self.dim != 3:
            raise ValueError("Monge patches are defined in 3D only")
        super().init(eval_pos)
        self._x = np.zeros(6)
        self._a = np.zeros((6, 6))
        self._b = np.zeros(6)
        self._plane_is_ready = False

    def add_neighbor(self, point: Point) -> bool:
        if not self._plane_is_ready:
            return super().add_neighbor(point)
        q = self._relative(point)
        w = float(self.weight(q, point))
        if w > 0.0:
            h, u, v = self.world_to_tangent_plane(point.pos)
            p = np.array([u * u, v * v, u * v, u, v, 1.0])
            self._a += w * np.outer(p, p)
            self._b += w * h * p
            return True
        return False

    def finalize(self) -> FitResult:
        if not self._plane_is_ready:
            result = super().finalize()
            if result is FitResult.STABLE:
                self._plane_is_ready = True
                self._a = np.zeros((6, 6))
                self._b = np.zeros(6)
                self.state = FitResult.NEED_OTHER_PASS
                return self.state
            return result
        self._x = np.linalg.lstsq(self._a, self._b, rcond=None)[0]
        self.state = FitResult.STABLE
        return self.state

    @property
    def h_uu(self) -> float:
        return float(self._x[0])

    @property
    def h_vv(self) -> float:
        return float(self._x[1])

    @property
    def h_uv(self) -> float:
        return float(self._x[2])

    @property
    def h_u(self) -> float:
        return float(self._x[3])

    @property
    def h_v(self) -> float:
        return float(self._x[4])

    @property
    def h_c(self) -> float:
        return float(self._x[5])

    def k_mean(self) -> float:
        """Estimate of the mean curvature."""
        hu, hv = self.h_u, self.h_v
        num = (1.0 + hv**2) * self.h_uu * 2.0 * hu * hv * self.h_uv + (
            1.0 + hu**2
        ) * self.h_vv
        return float(num / (2.0 * (1.0 + hu**2 + hv**2) ** 1.5))

    def gaussian_curvature(self) -> float:
        """Estimate of the Gaussian curvature."""
        return float(
            (self.h_uu * self.h_vv - self.h_uv**2)
            / (1.0 + self.h_u**2 + self.h_v**2) ** 2
        )

    def eval_uv(self, u: float, v: float) -> float:
        """Height of the patch at tangent coordinates ``(u, v)``."""
        return (
            self.h_uu * u * u
            + self.h_vv * v * v
            + self.h_uv * u * v
            + self.h_u * u
            + self.h_v * v
            + self.h_c
        )

    def potential(self, q) -> float:  # type: ignore[override]
        """Height difference between the patch and ``q``."""
        h, u, v = self.world_to_tangent_plane(q)
        return float(self.eval_uv(u, v) - h)

    def project(self, q) -> np.ndarray:
        """Move ``q`` along the plane normal onto the patch."""
        local = self.world_to_tangent_plane(q)
        local[0] = self.eval_uv(local[1], local[2])
        return self.tangent_plane_to_world(local)