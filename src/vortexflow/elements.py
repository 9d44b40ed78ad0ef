"""Vortex element taxonomy.

Point-like elements (`PointSource`) carry a complex position and a strength and
can be advected. Composite elements (`CompositeSource`) own constituent point
elements and delegate induction to them.

Velocities are complex numbers ``u + iv`` throughout.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .kernels import doublet_velocity, vortex_velocity

ComplexArray = NDArray[np.complex128]


class Element:
    """Anything that induces velocity."""
    __slots__ = ()

    def induce(self, zs: ComplexArray) -> ComplexArray:
        """Velocity induced at the complex positions `zs`."""
        raise NotImplementedError

    def circulation(self) -> float:
        raise NotImplementedError

    def impulse(self) -> complex:
        raise NotImplementedError


class PointSource(Element):
    """Element with a single position; advectable."""
    __slots__ = ()

    def self_velocity(self) -> complex:
        return 0j

    def advect(self, w: complex, dt: float) -> PointSource:
        raise NotImplementedError


class CompositeSource(Element):
    """Element built out of point sources.

    `constituents` are the point elements it induces velocity through and
    `targets` the advectable points its velocity buffer holds.
    """
    __slots__ = ()

    #: induction to and from this element is exactly that of its constituents
    delegates_to_constituents = True
    #: velocities near this element are expressed in its own coordinate plane
    pulls_back_freestreams = False

    def constituents(self) -> list[PointSource]:
        raise NotImplementedError

    def targets(self) -> list[PointSource]:
        return self.constituents()

    def advect_from(self, src: CompositeSource, velocities: Any, dt: float) -> None:
        """Make `self` the state of `src` advected by `velocities` over `dt`."""
        raise NotImplementedError

    def circulation(self) -> float:
        return float(sum(e.circulation() for e in self.constituents()))

    def impulse(self) -> complex:
        return complex(sum(e.impulse() for e in self.constituents()))

    def pullback(self, stream: Freestream) -> Freestream:
        """`stream` as seen in the coordinates this element induces velocity in."""
        return stream


# ---------------------------
# Point sources
# ---------------------------
@dataclass(frozen=True, slots=True)
class Point(PointSource):
    """Singular point vortex with circulation `gamma`."""
    z: complex
    gamma: float

    def induce(self, zs: ComplexArray) -> ComplexArray:
        return vortex_velocity(zs, np.array([self.z], dtype=np.complex128),
                               np.array([self.gamma], dtype=np.float64),
                               np.zeros(1, dtype=np.float64))

    def circulation(self) -> float:
        return float(self.gamma)

    def impulse(self) -> complex:
        return -1j * self.gamma * self.z

    def advect(self, w: complex, dt: float) -> Point:
        return replace(self, z=self.z + w * dt)

    def __repr__(self) -> str:
        return f"Point Vortex: z = {_fmt(self.z)}, Γ = {self.gamma:.3g}"


@dataclass(frozen=True, slots=True)
class Blob(PointSource):
    """Point vortex regularized over core radius `delta` (Krasny kernel)."""
    z: complex
    gamma: float
    delta: float

    def induce(self, zs: ComplexArray) -> ComplexArray:
        return vortex_velocity(zs, np.array([self.z], dtype=np.complex128),
                               np.array([self.gamma], dtype=np.float64),
                               np.array([self.delta * self.delta], dtype=np.float64))

    def circulation(self) -> float:
        return float(self.gamma)

    def impulse(self) -> complex:
        return -1j * self.gamma * self.z

    def advect(self, w: complex, dt: float) -> Blob:
        return replace(self, z=self.z + w * dt)

    def __repr__(self) -> str:
        return f"Vortex Blob: z = {_fmt(self.z)}, Γ = {self.gamma:.3g}, δ = {self.delta:.3g}"


@dataclass(frozen=True, slots=True)
class Doublet(PointSource):
    """Doublet with complex strength `strength` (complex potential conj(D)/(π(z - z0)))."""
    z: complex
    strength: complex

    def induce(self, zs: ComplexArray) -> ComplexArray:
        return doublet_velocity(zs, np.array([self.z], dtype=np.complex128),
                                np.array([self.strength], dtype=np.complex128))

    def circulation(self) -> float:
        return 0.0

    def impulse(self) -> complex:
        return -2.0 * np.conj(self.strength)

    def advect(self, w: complex, dt: float) -> Doublet:
        return replace(self, z=self.z + w * dt)


@dataclass(frozen=True, slots=True)
class Freestream(PointSource):
    """Uniform flow with complex velocity `velocity`, given in the physical plane."""
    velocity: complex

    def induce(self, zs: ComplexArray) -> ComplexArray:
        return np.full(np.shape(zs), complex(self.velocity), dtype=np.complex128)

    def circulation(self) -> float:
        return 0.0

    def impulse(self) -> complex:
        return 0j

    def advect(self, w: complex, dt: float) -> Freestream:
        return self


VORTEX_TYPES = (Point, Blob)


# ---------------------------
# Generic accessors
# ---------------------------
def position(src: Any) -> complex:
    """Complex position of a point source (or of a bare complex number)."""
    if isinstance(src, (Point, Blob, Doublet)):
        return complex(src.z)
    if isinstance(src, (complex, float, int, np.number)):
        return complex(src)
    raise TypeError(f"{type(src).__name__} has no position.")


def positions(srcs: Iterable[Any]) -> ComplexArray:
    return np.array([position(s) for s in srcs], dtype=np.complex128)


def circulation(src: Any) -> float:
    """Total circulation contained in an element or collection."""
    if isinstance(src, Element):
        return src.circulation()
    if isinstance(src, (list, tuple)):
        return float(sum(circulation(s) for s in src))
    raise TypeError(f"Cannot compute circulation of {type(src).__name__}.")


def impulse(src: Any) -> complex:
    """Aerodynamic impulse about the origin of an element or collection."""
    if isinstance(src, Element):
        return complex(src.impulse())
    if isinstance(src, (list, tuple)):
        return complex(sum(impulse(s) for s in src))
    raise TypeError(f"Cannot compute impulse of {type(src).__name__}.")


def _fmt(z: complex) -> str:
    z = complex(z)
    sign = "+" if z.imag >= 0 else "-"
    return f"{z.real:.3g} {sign} {abs(z.imag):.3g}im"
