"""Conformal map contract.

A body is reached through a map ``m`` of the exterior of the unit circle (the
circle plane) onto the exterior of the body shape in body coordinates. The
boundary system only consumes the data listed on `ConformalMap`; building such
maps from polygons is left to external tools.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import math
import numpy as np
from numpy.typing import NDArray


class ConformalMap(Protocol):
    """What the boundary system needs from a map.

    prevertices: points on the unit circle mapped onto the body's vertices.
    angles: interior angles of the vertices, divided by π.
    constant: multiplicative constant of the Schwarz–Christoffel derivative
        ``m'(ζ) = constant · ζ⁻² · Π (ζ - ζₖ)^(1 - angleₖ)``.
    ccoeff: Laurent coefficients at infinity ``[C₁, C₀, C₋₁, C₋₂, ...]`` of
        ``m(ζ) = C₁ζ + C₀ + Σ C₋ₙ ζ⁻ⁿ``.
    dcoeff: Fourier coefficients ``[d₀, d₁, d₂, ...]`` of ``|m(e^{iθ})|²``
        (``d₋ₙ = conj(dₙ)``).
    """
    prevertices: NDArray[np.complex128]
    angles: NDArray[np.float64]
    constant: complex
    ccoeff: NDArray[np.complex128]
    dcoeff: NDArray[np.complex128]

    def __call__(self, zeta: complex | np.ndarray) -> complex | np.ndarray: ...

    def derivative(self, zeta: complex | np.ndarray, order: int = 1) -> complex | np.ndarray: ...


@dataclass(frozen=True, slots=True)
class FlatPlateMap:
    """Joukowski map of the unit circle onto a flat plate of chord `length`.

    ``m(ζ) = (L/4)(ζ + 1/ζ)``: ζ = 1 maps to the edge at +L/2 (vertex 0),
    ζ = -1 to the edge at -L/2 (vertex 1).
    """
    length: float

    def __post_init__(self) -> None:
        if not (np.isfinite(self.length) and self.length > 0.0):
            raise ValueError("length must be positive.")

    @property
    def _c(self) -> float:
        return 0.25 * self.length

    @property
    def prevertices(self) -> NDArray[np.complex128]:
        return np.array([1.0 + 0.0j, -1.0 + 0.0j])

    @property
    def angles(self) -> NDArray[np.float64]:
        return np.zeros(2)

    @property
    def constant(self) -> complex:
        return complex(self._c)

    @property
    def ccoeff(self) -> NDArray[np.complex128]:
        return np.array([self._c, 0.0, self._c], dtype=np.complex128)

    @property
    def dcoeff(self) -> NDArray[np.complex128]:
        # |C(ζ + 1/ζ)|² = C²(ζ² + 2 + ζ⁻²) on |ζ| = 1
        return np.array([2.0 * self._c**2, 0.0, self._c**2], dtype=np.complex128)

    def __call__(self, zeta: complex | np.ndarray) -> complex | np.ndarray:
        return self._c * (zeta + 1.0 / zeta)

    def derivative(self, zeta: complex | np.ndarray, order: int = 1) -> complex | np.ndarray:
        if order < 0:
            raise ValueError("order must be non-negative.")
        if order == 0:
            return self(zeta)
        # d^n/dζ^n ζ⁻¹ = (-1)^n n! ζ^(-n-1)
        tail = self._c * (-1) ** order * math.factorial(order) * zeta ** (-order - 1)
        if order == 1:
            return self._c + tail
        return tail
