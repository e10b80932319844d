"""Implicit hyperplane primitive and shared fitting types."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

import numpy as np

_APPROX_PRECISION = 1e-12


class FitResult(enum.Enum):
    """Outcome of a fitting procedure."""

    STABLE = 0
    UNSTABLE = 1
    UNDEFINED = 2
    NEED_OTHER_PASS = 3


@dataclass
class Point:
    """A sample with a position and an optional normal."""

    pos: np.ndarray
    normal: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.pos = np.asarray(self.pos, dtype=float)
        if self.normal is not None:
            self.normal = np.asarray(self.normal, dtype=float)


class Plane:
    """Hyperplane given as the zero set of ``n . x + d`` in a local basis.

    Positions passed to :meth:`potential` and :meth:`project` are expressed
    in world coordinates and moved into the basis centred on
    :attr:`basis_center` before evaluation.
    """

    def __init__(self, dim: int = 3) -> None:
        if dim < 1:
            raise ValueError(f"dimension must be positive, got {dim}")
        self.dim = dim
        self._basis_center = np.zeros(dim)
        self.reset_primitive()

    def _vector(self, value) -> np.ndarray:
        arr = np.asarray(value, dtype=float)
        if arr.shape != (self.dim,):
            raise ValueError(
                f"expected a vector of shape ({self.dim},), got {arr.shape}"
            )
        return arr

    @property
    def basis_center(self) -> np.ndarray:
        """Evaluation position the local basis is centred on."""
        return self._basis_center

    @basis_center.setter
    def basis_center(self, value) -> None:
        self._basis_center = self._vector(value).copy()

    @property
    def normal(self) -> np.ndarray:
        return self._normal.copy()

    @property
    def offset(self) -> float:
        return self._offset

    @property
    def coefficients(self) -> np.ndarray:
        """Homogeneous plane vector ``[n, d]``."""
        return np.append(self._normal, self._offset)

    def reset_primitive(self) -> None:
        """Clear the plane and the fitting status."""
        self.state = FitResult.UNDEFINED
        self.nb_neighbors = 0
        self._normal = np.zeros(self.dim)
        self._offset = 0.0

    def set_plane(self, direction, position) -> None:
        """Set the plane from a (not necessarily unit) direction and a point."""
        d = self._vector(direction)
        p = self._vector(position)
        norm = np.linalg.norm(d)
        self._normal = d / norm if norm > 0 else np.zeros(self.dim)
        self._offset = -float(self._normal @ p)

    def _signed_distance(self, local: np.ndarray) -> float:
        return float(self._normal @ local + self._offset)

    def potential(self, q=None) -> float:
        """Signed distance to the plane at ``q``, or at the basis centre."""
        if q is None:
            return self._offset
        return self._signed_distance(self._vector(q) - self._basis_center)

    def project(self, q) -> np.ndarray:
        """Orthogonal projection of ``q`` on the plane."""
        local = self._vector(q) - self._basis_center
        return local - self._signed_distance(local) * self._normal + self._basis_center

    def primitive_gradient(self, q=None) -> np.ndarray:
        """Gradient of the scalar field; uniform for a plane."""
        if q is not None:
            self._vector(q)
        return self._normal.copy()

    def is_ready(self) -> bool:
        return self.state in (FitResult.STABLE, FitResult.UNSTABLE)

    def is_stable(self) -> bool:
        return self.state is FitResult.STABLE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Plane):
            return NotImplemented
        a, b = self.coefficients, other.coefficients
        if a.shape != b.shape:
            return False
        diff = float(np.sum((a - b) ** 2))
        bound = min(float(np.sum(a**2)), float(np.sum(b**2)))
        return diff <= _APPROX_PRECISION**2 * bound

    __hash__ = None  # type: ignore[assignment]