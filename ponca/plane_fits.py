"""Plane fitting procedures: mean plane, covariance plane and its derivatives."""

from __future__ import annotations

from typing import Any, Callable, Iterable

import numpy as np

from .plane import FitResult, Plane, Point

WeightFunction = Callable[[np.ndarray, Point], float]


class _FittingProcedure(Plane):
    """Plane primitive driven by a weighted neighbourhood.

    ``weight`` is called as ``weight(q, point)`` where ``q`` is the neighbour
    position relative to the basis centre; it returns a non-negative weight.
    Subclasses provide ``init``, ``add_neighbor`` and ``finalize``.
    """

    def __init__(self, weight: WeightFunction, dim: int = 3) -> None:
        super().__init__(dim)
        self.weight = weight
        self.init(np.zeros(dim))

    def _relative(self, point: Point) -> np.ndarray:
        return self._vector(point.pos) - self.basis_center

    def _run_passes(self, points: Iterable[Point]) -> FitResult:
        samples = list(points)
        while True:
            for point in samples:
                self.add_neighbor(point)
            result = self.finalize()
            if result is not FitResult.NEED_OTHER_PASS:
                return result


class MeanPlaneFit(_FittingProcedure):
    """Plane through the weighted mean position, oriented by the mean normal."""

    def __init__(self, weight: WeightFunction, dim: int = 3) -> None:
        super().__init__(weight, dim)

    def init(self, eval_pos) -> None:
        self.reset_primitive()
        self.basis_center = eval_pos
        self._sum_p = np.zeros(self.dim)
        self._sum_n = np.zeros(self.dim)
        self._sum_w = 0.0

    def add_neighbor(self, point: Point) -> bool:
        if point.normal is None:
            raise ValueError("mean plane fitting needs points with normals")
        q = self._relative(point)
        w = float(self.weight(q, point))
        if w > 0.0:
            self._sum_p += w * q
            self._sum_n += w * self._vector(point.normal)
            self._sum_w += w
            self.nb_neighbors += 1
            return True
        return False

    def finalize(self) -> FitResult:
        if self._sum_w == 0.0 or self.nb_neighbors == 0:
            self.reset_primitive()
            self.state = FitResult.UNDEFINED
            return self.state
        self.set_plane(self._sum_n / self._sum_w, self._sum_p / self._sum_w)
        self.state = FitResult.STABLE
        return self.state

    def compute(self, points: Iterable[Point]) -> FitResult:
        """Add every point and finalize, repeating while another pass is needed."""
        return self._run_passes(points)


class CovariancePlaneFit(_FittingProcedure):
    """Plane from the eigen decomposition of the weighted covariance matrix."""

    def __init__(self, weight: WeightFunction, dim: int = 3) -> None:
        super().__init__(weight, dim)

    def init(self, eval_pos) -> None:
        self.reset_primitive()
        self.basis_center = eval_pos
        self._sum_w = 0.0
        self._cog = np.zeros(self.dim)
        self._cov = np.zeros((self.dim, self.dim))
        self._eigenvalues: Any = None
        self._eigenvectors: Any = None

    def add_neighbor(self, point: Point) -> bool:
        q = self._relative(point)
        w = float(self.weight(q, point))
        if w > 0.0:
            self._cog += w * q
            self._sum_w += w
            self._cov += w * np.outer(q, q)
            self.nb_neighbors += 1
            return True
        return False

    def finalize(self) -> FitResult:
        if self._sum_w == 0.0 or self.nb_neighbors < 3:
            self.reset_primitive()
            self.state = FitResult.UNDEFINED
            return self.state

        self._cog = self._cog / self._sum_w
        self._cov = self._cov / self._sum_w - np.outer(self._cog, self._cog)

        if not np.all(np.isfinite(self._cov)):
            self.reset_primitive()
            return self.state
        try:
            values, vectors = np.linalg.eigh(self._cov)
        except np.linalg.LinAlgError:
            self.reset_primitive()
            return self.state

        self._eigenvalues, self._eigenvectors = values, vectors
        self.set_plane(vectors[:, 0], self._cog)
        self.state = FitResult.STABLE
        return self.state

    def compute(self, points: Iterable[Point]) -> FitResult:
        """Add every point and finalize, repeating while another pass is needed."""
        return self._run_passes(points)

    def _require_solver(self) -> None:
        if self._eigenvectors is None:
            raise RuntimeError("the fit has not been finalized successfully")

    @property
    def cog(self) -> np.ndarray:
        """Weighted centroid, in the local basis."""
        return self._cog.copy()

    @property
    def eigenvalues(self) -> np.ndarray:
        self._require_solver()
        return self._eigenvalues.copy()

    @property
    def eigenvectors(self) -> np.ndarray:
        """Eigenvectors as columns, by increasing eigenvalue."""
        self._require_solver()
        return self._eigenvectors.copy()

    def surface_variation(self) -> float:
        """Smallest eigenvalue over the mean of the eigenvalues."""
        self._require_solver()
        return float(self._eigenvalues[0] / np.mean(self._eigenvalues))

    def world_to_tangent_plane(self, q, ignore_translation: bool = False) -> np.ndarray:
        """Express ``q`` in the eigenvector frame; the first axis is the normal."""
        self._require_solver()
        v = self._vector(q)
        if not ignore_translation:
            v = v - self.basis_center
        return self._eigenvectors.T @ v

    def tangent_plane_to_world(self, lq, ignore_translation: bool = False) -> np.ndarray:
        """Inverse of :meth:`world_to_tangent_plane`."""
        self._require_solver()
        world = np.linalg.inv(self._eigenvectors.T) @ self._vector(lq)
        if not ignore_translation:
            world = world + self.basis_center
        return world


class CovariancePlaneDer(CovariancePlaneFit):
    """Covariance plane fit with derivatives of the normal and offset.

    Derivatives are taken with respect to the scale (first column, when
    ``scale_der`` is set) and to the evaluation position (``dim`` columns,
    when ``space_der`` is set). The weight object must provide
    ``scaledw(q, point)`` and ``spacedw(q, point)`` for the enabled kinds.
    """

    def __init__(
        self,
        weight: WeightFunction,
        dim: int = 3,
        scale_der: bool = False,
        space_der: bool = True,
    ) -> None:
        if dim != 3:
            raise ValueError("covariance plane derivatives are defined in 3D only")
        if not (scale_der or space_der):
            raise ValueError("at least one kind of derivative must be enabled")
        self.scale_der = scale_der
        self.space_der = space_der
        self.nb_derivatives = (1 if scale_der else 0) + (dim if space_der else 0)
        super().__init__(weight, dim)

    def init(self, eval_pos) -> None:
        super().init(eval_pos)
        n = self.nb_derivatives
        self._d_cog = np.zeros((self.dim, n))
        self._d_sum_w = np.zeros(n)
        self._d_cov = [np.zeros((self.dim, self.dim)) for _ in range(n)]
        self._d_normal = np.zeros((self.dim, n))
        self._d_dist = np.zeros(n)

    def add_neighbor(self, point: Point) -> bool:
        if not super().add_neighbor(point):
            return False
        q = self._relative(point)
        dw = np.zeros(self.nb_derivatives)
        space_id = 1 if self.scale_der else 0
        if self.scale_der:
            dw[0] = float(self.weight.scaledw(q, point))
        if self.space_der:
            dw[space_id:space_id + self.dim] = -np.asarray(
                self.weight.spacedw(q, point), dtype=float
            )
        self._d_sum_w += dw
        self._d_cog += np.outer(q, dw)
        qq = np.outer(q, q)
        for k, dwk in enumerate(dw):
            self._d_cov[k] += dwk * qq
        return True

    def finalize(self) -> FitResult:
        super().finalize()
        if not self.is_ready():
            return self.state

        values, vectors = self._eigenvalues, self._eigenvectors
        epsilon = 2.0 * np.finfo(float).eps
        consider_as_zero = 2.0 * np.finfo(float).smallest_subnormal
        shifted = values[1:] - values[0]
        if shifted[0] < consider_as_zero or shifted[0] < epsilon * shifted[1]:
            shifted[0] = 0.0
        if shifted[1] < consider_as_zero:
            shifted[1] = 0.0
        safe = np.where(shifted > 0, shifted, 1.0)

        cog = self._cog
        normal = self.primitive_gradient()
        tangent = vectors[:, 1:]
        for k in range(self.nb_derivatives):
            d_cog_k = self._d_cog[:, k].copy()
            self._d_cov[k] = (
                self._d_cov[k]
                - np.outer(cog, d_cog_k)
                - np.outer(d_cog_k, cog)
                + self._d_sum_w[k] * np.outer(cog, cog)
            )
            self._d_cog[:, k] = (d_cog_k - self._d_sum_w[k] * cog) / self._sum_w

            # n' = -(C - l0 I)^+ C' n, applied through the eigen decomposition
            z = -tangent.T @ (self._d_cov[k] @ normal)
            z = np.where(shifted > 0, z / safe, z)
            self._d_normal[:, k] = tangent @ z

            d_diff = -self._d_cog[:, k]
            if k > 0 or not self.scale_der:
                d_diff[k - 1 if self.scale_der else k] += 1.0
            self._d_dist[k] = float(self._d_normal[:, k] @ cog + normal @ d_diff)

            self._d_normal /= 2.0
        return self.state

    @property
    def d_normal(self) -> np.ndarray:
        """Normal derivatives, one column per derivative."""
        return self._d_normal.copy()

    @property
    def d_dist(self) -> np.ndarray:
        """Offset derivatives, one entry per derivative."""
        return self._d_dist.copy()

    @property
    def d_cog(self) -> np.ndarray:
        """Centroid derivatives, one column per derivative."""
        return self._d_cog.copy()