from __future__ import annotations

from collections.abc import Callable

import math
import numpy as np
from numpy.typing import NDArray
from numba import njit

from .config import get_config

ComplexArray = NDArray[np.complex128]
FloatArray = NDArray[np.float64]


# ---------------------------
# Numba (JIT) kernels
# ---------------------------
# Krasny kernel: w = i Γ r / (2π (|r|² + δ²)); δ = 0 gives the singular point
# vortex, with zero velocity at coincidence.

@njit(cache=True, nogil=True)
def _vortex_velocity_jit(zt: np.ndarray, zs: np.ndarray, gamma: np.ndarray, delta2: np.ndarray) -> np.ndarray:
    M = zt.shape[0]
    N = zs.shape[0]
    out = np.zeros(M, dtype=np.complex128)
    for i in range(M):
        acc = 0.0 + 0.0j
        for j in range(N):
            r = zt[i] - zs[j]
            den = 2.0 * math.pi * (r.real * r.real + r.imag * r.imag + delta2[j])
            if den > 0.0:
                acc += 1j * r * (gamma[j] / den)
        out[i] = acc
    return out


@njit(cache=True, nogil=True)
def _vortex_self_jit(z: np.ndarray, gamma: np.ndarray, delta2: float) -> np.ndarray:
    N = z.shape[0]
    out = np.zeros(N, dtype=np.complex128)
    for s in range(N):
        for t in range(s + 1, N):
            r = z[s] - z[t]
            den = 2.0 * math.pi * (r.real * r.real + r.imag * r.imag + delta2)
            if den > 0.0:
                k = 1j * r / den
                out[s] += gamma[t] * k
                out[t] -= gamma[s] * k
    return out


@njit(cache=True, nogil=True)
def _vortex_mutual_jit(za: np.ndarray, ga: np.ndarray, zb: np.ndarray, gb: np.ndarray, delta2: float) -> tuple[np.ndarray, np.ndarray]:
    M = za.shape[0]
    N = zb.shape[0]
    wa = np.zeros(M, dtype=np.complex128)
    wb = np.zeros(N, dtype=np.complex128)
    for i in range(M):
        for j in range(N):
            r = za[i] - zb[j]
            den = 2.0 * math.pi * (r.real * r.real + r.imag * r.imag + delta2)
            if den > 0.0:
                k = 1j * r / den
                wa[i] += gb[j] * k
                wb[j] -= ga[i] * k
    return wa, wb


# ---------------------------
# NumPy kernels
# ---------------------------
def _vortex_pair_numpy(zt: ComplexArray, zs: ComplexArray, gamma: FloatArray, delta2: FloatArray) -> ComplexArray:
    r = zt[:, None] - zs[None, :]                       # (m,n)
    r2 = r.real * r.real + r.imag * r.imag
    den = 2.0 * np.pi * (r2 + delta2[None, :])
    coef = np.divide(np.broadcast_to(gamma[None, :], den.shape), den,
                     out=np.zeros_like(den), where=den > 0.0)
    return np.sum(1j * r * coef, axis=1)


def _doublet_pair_numpy(zt: ComplexArray, zs: ComplexArray, strength: ComplexArray) -> ComplexArray:
    r = np.conj(zt[:, None] - zs[None, :])
    r2 = r * r
    nz = r2 != 0.0
    out = np.zeros(r2.shape, dtype=np.complex128)
    out[nz] = -np.broadcast_to(strength[None, :], r2.shape)[nz] / (np.pi * r2[nz])
    return np.sum(out, axis=1)


def _chunked_sum(pair: Callable[..., ComplexArray], zt: ComplexArray, zs: ComplexArray, *params: np.ndarray) -> ComplexArray:
    """Accumulate `pair` over query and source batches per the active ChunkConfig."""
    chunk = get_config().chunking
    qb = chunk.query_batch
    sb = chunk.source_batch
    M = zt.shape[0]
    N = zs.shape[0]
    out = np.zeros(M, dtype=np.complex128)
    if M == 0 or N == 0:
        return out

    q_step = qb or M
    s_step = sb or N
    for q in range(0, M, q_step):
        qs = slice(q, min(q + q_step, M))
        for s in range(0, N, s_step):
            ss = slice(s, min(s + s_step, N))
            out[qs] += pair(zt[qs], zs[ss], *(p[ss] for p in params))
    return out


# ---------------------------
# Public kernel entry points
# ---------------------------
def vortex_velocity(zt: ComplexArray, zs: ComplexArray, gamma: FloatArray, delta2: FloatArray) -> ComplexArray:
    """Velocity at `zt` induced by point vortices/blobs at `zs`."""
    if get_config().numba.enabled:
        return _chunked_sum(_vortex_velocity_jit, zt, zs, gamma, delta2)
    return _chunked_sum(_vortex_pair_numpy, zt, zs, gamma, delta2)


def doublet_velocity(zt: ComplexArray, zs: ComplexArray, strength: ComplexArray) -> ComplexArray:
    """Velocity at `zt` induced by doublets: w = -D / (π conj(z - z0)²)."""
    return _chunked_sum(_doublet_pair_numpy, zt, zs, strength)


def _vortex_self_numpy(z: ComplexArray, gamma: FloatArray, delta2: float) -> ComplexArray:
    N = z.shape[0]
    s, t = np.triu_indices(N, k=1)
    r = z[s] - z[t]
    den = 2.0 * np.pi * (r.real * r.real + r.imag * r.imag + delta2)
    inv = np.divide(1.0, den, out=np.zeros_like(den), where=den > 0.0)
    k = 1j * r * inv
    out = np.zeros(N, dtype=np.complex128)
    np.add.at(out, s, gamma[t] * k)
    np.add.at(out, t, -gamma[s] * k)
    return out


def _vortex_mutual_numpy(
    za: ComplexArray, ga: FloatArray, zb: ComplexArray, gb: FloatArray, delta2: float
) -> tuple[ComplexArray, ComplexArray]:
    r = za[:, None] - zb[None, :]                       # (m,n)
    den = 2.0 * np.pi * (r.real * r.real + r.imag * r.imag + delta2)
    inv = np.divide(1.0, den, out=np.zeros_like(den), where=den > 0.0)
    k = 1j * r * inv
    wa = np.sum(k * gb[None, :], axis=1)
    wb = -np.sum(k * ga[:, None], axis=0)
    return wa, wb


def _blocks(n: int, step: int | None) -> list[slice]:
    step = step or n
    return [slice(i, min(i + step, n)) for i in range(0, n, step)]


def vortex_self_velocity(z: ComplexArray, gamma: FloatArray, delta2: float) -> ComplexArray:
    """Velocities vortices with one shared regularization induce on each other.

    One kernel evaluation per unordered pair, applied with opposite signs.
    The pairs are visited in square blocks no wider than the active
    ChunkConfig batches: a block's own triangle on the diagonal, the mutual
    kernel off it.
    """
    N = z.shape[0]
    out = np.zeros(N, dtype=np.complex128)
    if N < 2:
        return out
    if get_config().numba.enabled:
        self_block, mutual_block = _vortex_self_jit, _vortex_mutual_jit
    else:
        self_block, mutual_block = _vortex_self_numpy, _vortex_mutual_numpy

    chunk = get_config().chunking
    step = min(chunk.query_batch or N, chunk.source_batch or N)
    d2 = float(delta2)
    blocks = _blocks(N, step)
    for i, a in enumerate(blocks):
        out[a] += self_block(z[a], gamma[a], d2)
        for b in blocks[i + 1:]:
            wa, wb = mutual_block(z[a], gamma[a], z[b], gamma[b], d2)
            out[a] += wa
            out[b] += wb
    return out


def vortex_mutual_velocity(
    za: ComplexArray, ga: FloatArray, zb: ComplexArray, gb: FloatArray, delta2: float
) -> tuple[ComplexArray, ComplexArray]:
    """Velocities two vortex arrays sharing one regularization induce on each other.

    `za` is split by `query_batch` and `zb` by `source_batch`.
    """
    wa = np.zeros(za.shape[0], dtype=np.complex128)
    wb = np.zeros(zb.shape[0], dtype=np.complex128)
    if za.shape[0] == 0 or zb.shape[0] == 0:
        return wa, wb
    mutual_block = _vortex_mutual_jit if get_config().numba.enabled else _vortex_mutual_numpy

    chunk = get_config().chunking
    d2 = float(delta2)
    for a in _blocks(za.shape[0], chunk.query_batch):
        for b in _blocks(zb.shape[0], chunk.source_batch):
            da, db = mutual_block(za[a], ga[a], zb[b], gb[b], d2)
            wa[a] += da
            wb[b] += db
    return wa, wb
