"""Vortex sheets: curves of circulation discretized by Krasny blobs."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import logging
import math
import numpy as np
from numpy.typing import NDArray

from .advection import advect_into
from .elements import Blob, CompositeSource
from .induction import induce_at

logger = logging.getLogger(__name__)

ComplexArray = NDArray[np.complex128]
FloatArray = NDArray[np.float64]


# ---------------------------
# Utility
# ---------------------------
def _as_complex_array1(x: np.ndarray | Sequence[complex], name: str) -> ComplexArray:
    arr = np.asarray(x, dtype=np.complex128)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} contains non-finite values.")
    return np.ascontiguousarray(arr)


def _as_float_array1(x: np.ndarray | Sequence[float], name: str) -> FloatArray:
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D.")
    if not np.isfinite(arr).all():
        raise ValueError(f"{name} contains non-finite values.")
    return np.ascontiguousarray(arr)


def compute_trapezoidal_weights(gammas: FloatArray) -> FloatArray:
    """Blob strengths from cumulative circulation (trapezoidal rule)."""
    N = gammas.shape[0]
    dgammas = np.empty(N, dtype=np.float64)
    dgammas[0] = 0.5 * (gammas[1] - gammas[0])
    dgammas[1:-1] = 0.5 * (gammas[2:] - gammas[:-2])
    dgammas[-1] = 0.5 * (gammas[-1] - gammas[-2])
    return dgammas


def _blobs(zs: ComplexArray, gammas: FloatArray, delta: float) -> list[Blob]:
    dgammas = compute_trapezoidal_weights(gammas)
    return [Blob(complex(z), float(g), delta) for z, g in zip(zs, dgammas)]


# ---------------------------
# Sheet
# ---------------------------
class Sheet(CompositeSource):
    """Vortex sheet with cumulative circulation `gammas` at `positions`.

    Blob *i* carries the trapezoidal weight of `gammas` at *i*; all blobs
    share the core radius `delta`. Induction to and from a sheet is that of
    its blobs.
    """
    __slots__ = ("blobs", "gammas", "delta")

    def __init__(
        self,
        positions: np.ndarray | Sequence[complex],
        gammas: np.ndarray | Sequence[float],
        delta: float,
    ) -> None:
        z = _as_complex_array1(positions, "positions")
        g = _as_float_array1(gammas, "gammas")
        if g.shape[0] != z.shape[0]:
            raise ValueError("gammas must match positions length.")
        if z.shape[0] < 2:
            raise ValueError("a sheet needs at least two points.")
        if not (np.isfinite(delta) and delta >= 0.0):
            raise ValueError("delta must be non-negative.")
        self.delta: float = float(delta)
        self.gammas: FloatArray = g.copy()
        self.blobs: list[Blob] = _blobs(z, g, self.delta)

    def __len__(self) -> int:
        return len(self.blobs)

    # -------- properties --------
    @property
    def positions(self) -> ComplexArray:
        return np.array([b.z for b in self.blobs], dtype=np.complex128)

    @property
    def arclength(self) -> float:
        return float(np.sum(np.abs(np.diff(self.positions))))

    # -------- element interface --------
    def constituents(self) -> list[Blob]:
        return self.blobs

    def circulation(self) -> float:
        return float(self.gammas[-1] - self.gammas[0])

    def induce(self, zs: ComplexArray) -> ComplexArray:
        return induce_at(zs, self.blobs)

    def advect_from(self, src: Sheet, velocities: Any, dt: float) -> None:
        advect_into(self.blobs, src.blobs, velocities, dt)
        if self is not src:
            self.gammas = src.gammas.copy()
            self.delta = src.delta

    def copy(self) -> Sheet:
        return Sheet(self.positions, self.gammas, self.delta)

    # -------- diagnostics --------
    def diagnostics(self) -> dict[str, Any]:
        return {
            "points": len(self.blobs),
            "arclength": self.arclength,
            "circulation": self.circulation(),
            "delta": self.delta,
        }

    def __repr__(self) -> str:
        return f"Vortex Sheet: L ≈ {self.arclength:.3f}, Γ = {self.circulation():.3f}, δ = {self.delta:.3f}"


# ---------------------------
# Surgery
# ---------------------------
def append_segment(sheet: Sheet, z: complex, gamma: float) -> None:
    """Extend `sheet` to `z`, adding `gamma` to its cumulative circulation."""
    last = sheet.blobs[-1]
    sheet.blobs[-1] = Blob(last.z, last.gamma + 0.5 * gamma, sheet.delta)
    sheet.blobs.append(Blob(complex(z), 0.5 * gamma, sheet.delta))
    sheet.gammas = np.append(sheet.gammas, sheet.gammas[-1] + gamma)


def truncate(sheet: Sheet, n: int) -> float:
    """Drop the first `n` points of `sheet` and return the circulation removed."""
    if not 0 <= n <= len(sheet) - 2:
        raise ValueError(f"can only truncate between 0 and {len(sheet) - 2} points, got {n}.")
    if n == 0:
        return 0.0
    removed = float(sheet.gammas[n] - sheet.gammas[0])
    sheet.gammas = sheet.gammas[n:].copy()
    del sheet.blobs[:n]
    first = sheet.blobs[0]
    sheet.blobs[0] = Blob(first.z, 0.5 * (sheet.gammas[1] - sheet.gammas[0]), sheet.delta)
    logger.debug(f"Truncated {n} sheet points, ΔΓ = {removed:.4g}")
    return removed


def redistribute_points(sheet: Sheet, spacing: float) -> int:
    """Resample `sheet` uniformly in arclength with roughly `spacing` between points.

    End points and total circulation are preserved. Returns the new point count.
    """
    if not (np.isfinite(spacing) and spacing > 0.0):
        raise ValueError("spacing must be positive.")
    z = sheet.positions
    s = np.concatenate(([0.0], np.cumsum(np.abs(np.diff(z)))))
    L = float(s[-1])
    if L == 0.0:
        return len(sheet)

    n = max(2, int(math.ceil(L / spacing)) + 1)
    s_new = np.linspace(0.0, L, n)
    z_new = np.interp(s_new, s, z.real) + 1j * np.interp(s_new, s, z.imag)
    g_new = np.interp(s_new, s, sheet.gammas)
    sheet.gammas = g_new
    sheet.blobs = _blobs(z_new, g_new, sheet.delta)
    return n
