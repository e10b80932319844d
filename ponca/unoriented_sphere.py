"""Algebraic sphere fitting from points with unoriented normals."""

from __future__ import annotations

import math
from typing import Callable, Iterable, Optional

import numpy as np

from .plane import FitResult, Point

WeightFunction = Callable[[np.ndarray, Point], float]


class UnorientedSphereFit:
    """Algebraic sphere ``uc + ul . x + uq |x|^2`` fitted to unoriented normals.

    The sphere is expressed in a local basis centred on :attr:`basis_center`.
    The gradient of the scalar field is aligned with the sample normals up
    to their sign, so flipping any normal leaves the fit unchanged.
    ``weight`` is called as ``weight(q, point)`` with ``q`` the neighbour
    position relative to the basis centre.
    """

    def __init__(self, weight: WeightFunction, dim: int = 3) -> None:
        if dim < 1:
            raise ValueError(f"dimension must be positive, got {dim}")
        self.dim = dim
        self.weight = weight
        self.init(np.zeros(dim))

    def _vector(self, value) -> np.ndarray:
        arr = np.asarray(value, dtype=float)
        if arr.shape != (self.dim,):
            raise ValueError(
                f"expected a vector of shape ({self.dim},), got {arr.shape}"
            )
        return arr

    def _reset_primitive(self) -> None:
        self.state = FitResult.UNDEFINED
        self.nb_neighbors = 0
        self.is_normalized = False
        self._ul = np.zeros(self.dim)
        self._uc = 0.0
        self._uq = 0.0

    @property
    def basis_center(self) -> np.ndarray:
        """Evaluation position the local basis is centred on."""
        return self._basis_center

    @property
    def ul(self) -> np.ndarray:
        """Linear coefficients of the algebraic sphere."""
        return self._ul.copy()

    @property
    def uc(self) -> float:
        """Constant coefficient of the algebraic sphere."""
        return self._uc

    @property
    def uq(self) -> float:
        """Quadratic coefficient of the algebraic sphere."""
        return self._uq

    def init(self, eval_pos) -> None:
        """Reset the fit and centre the local basis on ``eval_pos``."""
        self._reset_primitive()
        self._basis_center = self._vector(eval_pos).copy()
        self._mat_a = np.zeros((self.dim + 1, self.dim + 1))
        self._sum_p = np.zeros(self.dim)
        self._sum_dot_pp = 0.0
        self._sum_w = 0.0

    def add_neighbor(self, point: Point) -> bool:
        """Accumulate ``point``; return whether it received a positive weight."""
        if point.normal is None:
            raise ValueError("unoriented sphere fitting needs points with normals")
        q = self._vector(point.pos) - self._basis_center
        w = float(self.weight(q, point))
        if w > 0.0:
            normal = self._vector(point.normal)
            basis = np.append(normal, normal @ q)
            self._mat_a += w * np.outer(basis, basis)
            self._sum_p += w * q
            self._sum_dot_pp += w * float(q @ q)
            self._sum_w += w
            self.nb_neighbors += 1
            return True
        return False

    def _set_undefined(self) -> FitResult:
        self._ul = np.zeros(self.dim)
        self._uc = 0.0
        self._uq = 0.0
        self.is_normalized = False
        self.state = FitResult.UNDEFINED
        return self.state

    def finalize(self) -> FitResult:
        """Solve the generalised eigenproblem and set the sphere coefficients."""
        if self._sum_w == 0.0 or self.nb_neighbors < 3:
            return self._set_undefined()

        dim = self.dim
        inv_sum_w = 1.0 / self._sum_w

        q_mat = np.identity(dim + 1)
        q_mat[:dim, dim] = self._sum_p * inv_sum_w
        q_mat[dim, :dim] = self._sum_p * inv_sum_w
        q_mat[dim, dim] = self._sum_dot_pp * inv_sum_w
        self._mat_a *= inv_sum_w

        try:
            m = np.linalg.inv(q_mat) @ self._mat_a
            if not np.all(np.isfinite(m)):
                return self._set_undefined()
            eigenvalues, eigenvectors = np.linalg.eig(m)
        except np.linalg.LinAlgError:
            return self._set_undefined()

        max_id = int(np.argmax(eigenvalues.real))
        eivec = eigenvectors[:, max_id].real

        self._ul = eivec[:dim].copy()
        self._uq = 0.5 * float(eivec[dim])
        self._uc = -inv_sum_w * (
            float(self._ul @ self._sum_p) + self._sum_dot_pp * self._uq
        )
        self.is_normalized = False

        self.state = FitResult.UNSTABLE if self.nb_neighbors < 6 else FitResult.STABLE
        return self.state

    def compute(self, points: Iterable[Point]) -> FitResult:
        """Add every point and finalize."""
        for point in points:
            self.add_neighbor(point)
        return self.finalize()

    def potential(self, q: Optional[np.ndarray] = None) -> float:
        """Value of the scalar field at ``q``, or at the basis centre."""
        if q is None:
            return self._uc
        x = self._vector(q) - self._basis_center
        return float(self._uc + self._ul @ x + self._uq * (x @ x))

    def center(self) -> np.ndarray:
        """Centre of the sphere in world coordinates."""
        if self._uq == 0.0:
            raise ValueError("the fitted primitive is a plane and has no center")
        return self._basis_center + (-0.5 / self._uq) * self._ul

    def radius(self) -> float:
        """Radius of the sphere; infinite when the primitive is a plane."""
        if self._uq == 0.0:
            return math.inf
        b = 1.0 / self._uq
        local_center = -0.5 * b * self._ul
        return math.sqrt(float(local_center @ local_center) - self._uc * b)

    def is_ready(self) -> bool:
        return self.state in (FitResult.STABLE, FitResult.UNSTABLE)

    def is_stable(self) -> bool:
        return self.state is FitResult.STABLE