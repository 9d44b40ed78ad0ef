"""Rigid bodies reached through a conformal map."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .elements import CompositeSource, Freestream, PointSource
from .induction import induce_at
from .maps import ConformalMap

ComplexArray = NDArray[np.complex128]


@dataclass(slots=True)
class RigidBodyMotion:
    """Constant rigid-body kinematics: translation `cdot`, rotation rate `alphadot`."""
    cdot: complex = 0j
    alphadot: float = 0.0

    def __call__(self, t: float) -> tuple[complex, float]:
        return complex(self.cdot), float(self.alphadot)


class ConformalBody(CompositeSource):
    """Body whose exterior is the image of the circle plane under ``c + e^{iα} m(ζ)``.

    Ambient elements are expressed in circle-plane coordinates; a `Freestream`
    stays in the physical plane and is pulled back (`pullback`) whenever the
    body takes part in an induction call. As a velocity
    source the body induces the velocity of its images (`img`) plus the
    potential flow due to its rigid motion (`cdot`, `alphadot`). It holds no
    advectable points.
    """
    __slots__ = ("m", "c", "alpha", "cdot", "alphadot", "img")

    delegates_to_constituents = False
    pulls_back_freestreams = True

    def __init__(
        self,
        m: ConformalMap,
        c: complex = 0j,
        alpha: float = 0.0,
        cdot: complex = 0j,
        alphadot: float = 0.0,
    ) -> None:
        self.m = m
        self.c = complex(c)
        self.alpha = float(alpha)
        self.cdot = complex(cdot)
        self.alphadot = float(alphadot)
        self.img: list[PointSource] = []

    # -------- geometry --------
    @property
    def prevertices(self) -> ComplexArray:
        return np.asarray(self.m.prevertices, dtype=np.complex128)

    @property
    def ccoeff(self) -> ComplexArray:
        """Laurent coefficients at infinity of the physical map ``c + e^{iα} m(ζ)``."""
        cc = np.exp(1j * self.alpha) * np.asarray(self.m.ccoeff, dtype=np.complex128)
        cc[1] += self.c
        return cc

    def pullback(self, stream: Freestream) -> Freestream:
        """Circle-plane freestream ``U·conj(C₁)``, C₁ the leading Laurent coefficient."""
        return Freestream(complex(stream.velocity * np.conj(self.ccoeff[0])))

    def to_physical(self, zeta: complex | np.ndarray) -> complex | np.ndarray:
        return self.c + np.exp(1j * self.alpha) * self.m(zeta)

    def physical_velocity(self, zeta: complex | np.ndarray, w: complex | np.ndarray) -> complex | np.ndarray:
        """Physical-plane velocity from circle-plane velocity `w` at `zeta`."""
        dz = np.exp(1j * self.alpha) * self.m.derivative(zeta, 1)
        return w / np.conj(dz)

    # -------- element interface --------
    def constituents(self) -> list[PointSource]:
        return self.img

    def targets(self) -> list[PointSource]:
        return []

    def induce(self, zs: ComplexArray) -> ComplexArray:
        return induce_at(zs, self.img) + self.motion_velocity(zs)

    def motion_velocity(self, zs: ComplexArray) -> ComplexArray:
        """Circle-plane velocity at `zs` due to the rigid motion of the body."""
        zs = np.asarray(zs, dtype=np.complex128)
        dF = np.zeros(zs.shape, dtype=np.complex128)
        if self.cdot != 0.0:
            cc = self.ccoeff
            dF += self.cdot * np.conj(cc[0]) / zs**2
            for n, cn in enumerate(cc[2:], start=1):
                dF -= np.conj(self.cdot) * n * cn * zs ** (-n - 1)
        if self.alphadot != 0.0:
            # |z - c|² does not depend on orientation
            for n, dn in enumerate(np.asarray(self.m.dcoeff)[1:], start=1):
                dF += 1j * self.alphadot * n * np.conj(dn) * zs ** (-n - 1)
        return np.conj(dF)

    def advect_from(self, src: ConformalBody, velocities: Any, dt: float) -> None:
        # rigid-body kinematics are integrated by the caller
        if self is not src:
            self.m = src.m
            self.c, self.alpha = src.c, src.alpha
            self.cdot, self.alphadot = src.cdot, src.alphadot
            self.img = list(src.img)

    def snapshot(self) -> ConformalBody:
        """Independent copy of the body state; the map is shared."""
        other = ConformalBody(self.m, self.c, self.alpha, self.cdot, self.alphadot)
        other.img = list(self.img)
        return other

    def __repr__(self) -> str:
        return (f"Conformal body: centroid at {self.c:.3g}, angle {self.alpha:.3g}, "
                f"{len(self.img)} image elements")
