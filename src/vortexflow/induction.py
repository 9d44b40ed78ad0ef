"""Induction engine.

Targets and sources compose recursively:

- a ``list`` is a homogeneous array of point elements,
- a 1-D complex ``ndarray`` is an array of bare target positions,
- a ``tuple`` is a fixed-arity group of collections or composite elements.

Velocity buffers mirror that structure (see `allocate_velocity`): 1-D
``complex128`` arrays for leaves, tuples of buffers for groups. All ``*_into``
functions accumulate; they never overwrite.
"""
from __future__ import annotations

import logging
from typing import Any, Union

import numpy as np
from numpy.typing import NDArray

from .elements import (
    VORTEX_TYPES,
    Blob,
    CompositeSource,
    Doublet,
    Element,
    Freestream,
    Point,
    position,
    positions,
)
from .errors import BufferShapeError
from .kernels import doublet_velocity, vortex_mutual_velocity, vortex_self_velocity, vortex_velocity

logger = logging.getLogger(__name__)

ComplexArray = NDArray[np.complex128]
Buffer = Union[ComplexArray, tuple]


# ---------------------------
# Target structure
# ---------------------------
def _target_count(target: Any) -> int:
    if isinstance(target, np.ndarray):
        if target.ndim != 1:
            raise TypeError("Position arrays must be 1-D.")
        return int(target.shape[0])
    if isinstance(target, list):
        return len(target)
    if isinstance(target, Freestream):
        return 0
    if isinstance(target, CompositeSource):
        return len(target.targets())
    raise TypeError(f"{type(target).__name__} cannot be a velocity target collection; wrap single elements in a list.")


def _target_points(target: Any) -> ComplexArray:
    if isinstance(target, np.ndarray):
        return np.ascontiguousarray(target, dtype=np.complex128)
    if isinstance(target, list):
        return positions(target)
    if isinstance(target, Freestream):
        return np.zeros(0, dtype=np.complex128)
    if isinstance(target, CompositeSource):
        return positions(target.targets())
    raise TypeError(f"{type(target).__name__} cannot be a velocity target collection.")


# ---------------------------
# Coordinate frames
# ---------------------------
def _frame(x: Any) -> CompositeSource | None:
    """First element in `x` whose velocities live in its own coordinate plane."""
    if isinstance(x, (list, tuple)):
        for s in x:
            found = _frame(s)
            if found is not None:
                return found
    elif isinstance(x, CompositeSource) and x.pulls_back_freestreams:
        return x
    return None


def pull_back_freestreams(x: Any, frame: CompositeSource) -> Any:
    """Copy of the structure `x` with every `Freestream` expressed in `frame`'s plane."""
    if isinstance(x, Freestream):
        return frame.pullback(x)
    if isinstance(x, list):
        if any(isinstance(s, Freestream) for s in x):
            return [pull_back_freestreams(s, frame) for s in x]
        return x
    if isinstance(x, tuple):
        return tuple(pull_back_freestreams(s, frame) for s in x)
    return x


def _in_frame(source: Any, *others: Any) -> Any:
    frame = _frame((source, *others))
    if frame is None:
        return source
    return pull_back_freestreams(source, frame)


def _check_buffer(buf: Any, target: Any) -> None:
    """Raise BufferShapeError unless `buf` is shape-compatible with `target`."""
    if isinstance(target, tuple):
        if not isinstance(buf, tuple) or len(buf) != len(target):
            raise BufferShapeError(
                f"Expected a tuple buffer of length {len(target)}, got {type(buf).__name__}"
                + (f" of length {len(buf)}" if isinstance(buf, tuple) else "")
            )
        for b, t in zip(buf, target):
            _check_buffer(b, t)
        return
    n = _target_count(target)
    if not isinstance(buf, np.ndarray) or buf.ndim != 1 or not np.iscomplexobj(buf):
        raise BufferShapeError(f"Expected a 1-D complex buffer, got {type(buf).__name__}.")
    if buf.shape[0] != n:
        raise BufferShapeError(f"Buffer length {buf.shape[0]} does not match target length {n}.")


def allocate_velocity(target: Any) -> Buffer:
    """Allocate zeroed complex buffers matching the structure of `target`."""
    if isinstance(target, tuple):
        return tuple(allocate_velocity(t) for t in target)
    return np.zeros(_target_count(target), dtype=np.complex128)


def reset_velocity(buf: Buffer, sources: Any = None) -> Buffer:
    """Zero every velocity in `buf` and return the buffer to use.

    If `sources` is given, leaf arrays whose length no longer matches their
    counterpart are re-allocated. Tuple arity must match.
    """
    if isinstance(buf, tuple):
        if sources is None:
            for b in buf:
                reset_velocity(b)
            return buf
        if not isinstance(sources, tuple) or len(sources) != len(buf):
            raise BufferShapeError("Cannot reset a tuple buffer against a differently structured source.")
        return tuple(reset_velocity(b, s) for b, s in zip(buf, sources))

    if not isinstance(buf, np.ndarray) or buf.ndim != 1:
        raise BufferShapeError(f"Expected a 1-D complex buffer, got {type(buf).__name__}.")
    if sources is not None:
        if isinstance(sources, tuple):
            raise BufferShapeError("Cannot reset a leaf buffer against a tuple group.")
        n = _target_count(sources)
        if buf.shape[0] != n:
            return np.zeros(n, dtype=np.complex128)
    buf.fill(0.0)
    return buf


# ---------------------------
# Sources
# ---------------------------
def _vortex_arrays(elems: list[Any]) -> tuple[ComplexArray, NDArray[np.float64], NDArray[np.float64]]:
    z = positions(elems)
    gamma = np.array([e.gamma for e in elems], dtype=np.float64)
    delta2 = np.array([getattr(e, "delta", 0.0) ** 2 for e in elems], dtype=np.float64)
    return z, gamma, delta2


def _induce_from_list(zs: ComplexArray, sources: list[Any]) -> ComplexArray:
    out = np.zeros(zs.shape[0], dtype=np.complex128)
    vortices = [s for s in sources if isinstance(s, VORTEX_TYPES)]
    doublets = [s for s in sources if isinstance(s, Doublet)]
    if vortices:
        z, gamma, delta2 = _vortex_arrays(vortices)
        out += vortex_velocity(zs, z, gamma, delta2)
    if doublets:
        strength = np.array([d.strength for d in doublets], dtype=np.complex128)
        out += doublet_velocity(zs, positions(doublets), strength)
    for s in sources:
        if not isinstance(s, (*VORTEX_TYPES, Doublet)):
            out += induce_at(zs, s)
    return out


def induce_at(zs: ComplexArray, source: Any) -> ComplexArray:
    """Velocity induced by `source` at the complex positions `zs`."""
    if isinstance(source, Element):
        return source.induce(zs)
    if isinstance(source, list):
        return _induce_from_list(zs, source)
    if isinstance(source, tuple):
        out = np.zeros(zs.shape[0], dtype=np.complex128)
        for s in source:
            out += induce_at(zs, s)
        return out
    raise TypeError(f"{type(source).__name__} does not induce velocity.")


# ---------------------------
# Public API
# ---------------------------
def induce_velocity(target: Any, source: Any) -> complex | Buffer:
    """Compute the velocity induced by `source` on `target`.

    `target` can be a complex position, a point element, or a collection; for
    collections a freshly allocated buffer is returned. When a conformal body
    takes part, freestreams are pulled back to its circle plane.
    """
    source = _in_frame(source, target)
    if isinstance(target, (complex, float, int, np.number, Point, Blob, Doublet)):
        z = position(target)
        return complex(induce_at(np.array([z], dtype=np.complex128), source)[0])
    buf = allocate_velocity(target)
    _accumulate(buf, target, source)
    return buf


def _accumulate(buf: Buffer, target: Any, source: Any) -> None:
    if isinstance(target, tuple):
        for b, t in zip(buf, target):
            _accumulate(b, t, source)
        return
    zt = _target_points(target)
    if zt.shape[0]:
        buf += induce_at(zt, source)


def induce_velocity_into(buf: Buffer, target: Any, source: Any) -> Buffer:
    """Add the velocity induced by `source` on `target` into `buf`.

    `buf` should be the output of `allocate_velocity(target)`.
    """
    _check_buffer(buf, target)
    source = _in_frame(source, target)
    _accumulate(buf, target, source)
    return buf


def _leaf_vortices(x: Any) -> list[Any] | None:
    if isinstance(x, list):
        elems = x
    elif isinstance(x, CompositeSource) and x.delegates_to_constituents:
        elems = x.constituents()
    else:
        return None
    if all(isinstance(e, VORTEX_TYPES) for e in elems):
        return elems
    return None


def _uniform_delta2(delta2: NDArray[np.float64]) -> float | None:
    if delta2.size == 0:
        return None
    if np.all(delta2 == delta2[0]):
        return float(delta2[0])
    return None


def _mutual(buf_a: Buffer, buf_b: Buffer, a: Any, b: Any) -> None:
    va = _leaf_vortices(a)
    vb = _leaf_vortices(b)
    if va and vb:
        za, ga, da = _vortex_arrays(va)
        zb, gb, db = _vortex_arrays(vb)
        d2a = _uniform_delta2(da)
        if d2a is not None and d2a == _uniform_delta2(db):
            # antisymmetric kernel: one evaluation per pair
            wa, wb = vortex_mutual_velocity(za, ga, zb, gb, d2a)
            buf_a += wa
            buf_b += wb
            return
    _accumulate(buf_a, a, b)
    _accumulate(buf_b, b, a)


def mutually_induce_velocity_into(buf_a: Buffer, buf_b: Buffer, a: Any, b: Any) -> None:
    """Add the velocity `b` induces on `a` into `buf_a` and vice versa.

    Equivalent to two `induce_velocity_into` calls; arrays of point vortices or
    blobs sharing one core radius evaluate each pair kernel once.
    """
    _check_buffer(buf_a, a)
    _check_buffer(buf_b, b)
    frame = _frame((a, b))
    if frame is not None:
        a, b = pull_back_freestreams(a, frame), pull_back_freestreams(b, frame)
    _mutual(buf_a, buf_b, a, b)


def _self_induce_array(buf: ComplexArray, elems: list[Any]) -> None:
    N = len(elems)
    if N == 0:
        return
    buf += np.array([e.self_velocity() for e in elems], dtype=np.complex128)
    vortices = _leaf_vortices(elems)
    if vortices:
        z, gamma, delta2 = _vortex_arrays(vortices)
        d2 = _uniform_delta2(delta2)
        if d2 is not None:
            buf += vortex_self_velocity(z, gamma, d2)
            return
    zs = positions(elems)
    for s in range(N):
        for t in range(s + 1, N):
            buf[s] += elems[t].induce(zs[s:s + 1])[0]
            buf[t] += elems[s].induce(zs[t:t + 1])[0]


def _self_induce(buf: Buffer, group: Any) -> None:
    if isinstance(group, tuple):
        N = len(group)
        for s in range(N):
            _self_induce(buf[s], group[s])
            for t in range(s + 1, N):
                _mutual(buf[s], buf[t], group[s], group[t])
    elif isinstance(group, list):
        _self_induce_array(buf, group)
    elif isinstance(group, CompositeSource):
        if group.delegates_to_constituents:
            _self_induce_array(buf, group.constituents())
    elif isinstance(group, (Freestream, np.ndarray)):
        return
    else:
        raise TypeError(f"Cannot self-induce {type(group).__name__}.")


def self_induce_velocity_into(buf: Buffer, group: Any) -> Buffer:
    """Add the velocity the members of `group` induce on one another into `buf`.

    Tuples recurse into each member and then call
    `mutually_induce_velocity_into` once per unordered pair of members.
    """
    _check_buffer(buf, group)
    group = _in_frame(group)
    _self_induce(buf, group)
    return buf
