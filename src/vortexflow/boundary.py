"""No-flow-through enforcement and edge suction parameters for conformal bodies.

Ambient elements handed to these functions live in the circle plane; a
`Freestream` is given in the physical plane and pulled back through the map's
behavior at infinity.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np

from .bodies import ConformalBody, RigidBodyMotion
from .elements import Blob, CompositeSource, Doublet, Freestream, Point, PointSource, circulation
from .errors import UnsatisfiableConfigurationError
from .induction import induce_at, pull_back_freestreams
from .maps import ConformalMap

logger = logging.getLogger(__name__)

Motion = Callable[[float], tuple[complex, float]]


# ---------------------------
# Images
# ---------------------------
def image_position(z: complex) -> complex:
    """Reflection of `z` in the unit circle."""
    return 1.0 / np.conj(complex(z))


def get_image(src: PointSource, body: ConformalBody) -> PointSource:
    """Image of one ambient element across the unit circle.

    Vortices (circulation-type singularities) reflect with opposite circulation;
    doublets keep their strength; a freestream becomes a doublet at the origin.
    """
    if isinstance(src, (Point, Blob)):
        return Point(image_position(src.z), -src.gamma)
    if isinstance(src, Doublet):
        return Doublet(image_position(src.z), complex(src.strength))
    if isinstance(src, Freestream):
        U = body.pullback(src).velocity
        return Doublet(0j, np.pi * np.conj(U))
    raise TypeError(f"No image rule for {type(src).__name__}.")


def _collect_images(out: list[PointSource], src: Any, body: ConformalBody) -> None:
    if isinstance(src, (list, tuple)):
        for s in src:
            _collect_images(out, s, body)
    elif isinstance(src, ConformalBody):
        raise TypeError("Bodies cannot be imaged in another body.")
    elif isinstance(src, CompositeSource):
        out.extend(get_image(s, body) for s in src.constituents())
    else:
        out.append(get_image(src, body))


def enforce_no_flow_through(body: ConformalBody, motion: Motion, elements: Any, t: float) -> None:
    """Update `body` so that no fluid crosses it, given ambient `elements` and kinematics `motion`.

    The image list is rebuilt from scratch on every call.
    """
    cdot, alphadot = motion(t)
    body.cdot = complex(cdot)
    body.alphadot = float(alphadot)

    img: list[PointSource] = []
    _collect_images(img, elements, body)
    body.img = img
    logger.debug(f"Rebuilt {len(img)} images at t = {t:.4g} (ċ = {body.cdot:.4g}, α̇ = {body.alphadot:.4g})")


# ---------------------------
# Suction parameters
# ---------------------------
def suction_parameter_factor(k: int, m: ConformalMap) -> float:
    """Factor in front of the circle-plane tangential velocity at vertex `k`."""
    beta = 1.0 - np.asarray(m.angles, dtype=np.float64)
    zeta = np.asarray(m.prevertices, dtype=np.complex128)
    fact = (1.0 + beta[k]) ** beta[k] * abs(m.constant)
    for j in range(zeta.shape[0]):
        if j == k:
            continue
        fact *= abs(zeta[k] - zeta[j]) ** beta[j]
    return float(-fact ** (-1.0 / (1.0 + beta[k])))


def suction_parameter(edge: int, body: ConformalBody, system: Any, t: float) -> float:
    """Edge suction parameter of `body` at vertex `edge` due to `system`.

    `system` is everything inducing velocity, normally ``(body, ambient)``.
    Zero means the flow leaves the edge smoothly.
    """
    zeta = complex(body.prevertices[edge])
    w = complex(induce_at(np.array([zeta], dtype=np.complex128), pull_back_freestreams(system, body))[0])
    sigma = float(np.real(-1j * np.conj(zeta) * w)) * suction_parameter_factor(edge, body.m)
    logger.debug(f"Suction parameter at edge {edge}, t = {t:.4g}: {sigma:.6g}")
    return sigma


def _unit_sensitivities(body: ConformalBody, edges: Sequence[int], candidate: Any, t: float) -> list[float]:
    """Suction parameters at `edges` due to `candidate` alone on a stationary copy of `body`."""
    trial = body.snapshot()
    enforce_no_flow_through(trial, RigidBodyMotion(), candidate, 0.0)
    return [suction_parameter(e, body, (trial, candidate), t) for e in edges]


# ---------------------------
# Vorticity flux
# ---------------------------
def vorticity_flux(
    body: ConformalBody,
    edge: int,
    system: Any,
    candidate: Any,
    t: float,
    target: float = 0.0,
) -> float:
    """Strength a new element `candidate` must have to bring the suction parameter at `edge` to `target`.

    No vorticity is released (0.0 is returned) while the current suction
    parameter is within `target`; `target = inf` disables shedding at the
    edge and the default enforces the Kutta condition.
    """
    sigma = suction_parameter(edge, body, system, t)
    dsigma, = _unit_sensitivities(body, (edge,), candidate, t)
    gamma = circulation(candidate)

    if abs(target) > abs(sigma):
        logger.info(f"Edge {edge}: |σ| = {abs(sigma):.4g} within {target:.4g}, no shedding")
        return 0.0
    if dsigma == 0.0:
        raise UnsatisfiableConfigurationError(f"Candidate does not affect the suction parameter at edge {edge}.")
    K = (np.sign(sigma) * target - sigma) / dsigma
    logger.info(f"Edge {edge}: shedding Γ = {K * gamma:.6g}")
    return float(K * gamma)


SINGULAR_RTOL = 1e-12


def _solve_coupled(
    dsigma: tuple[tuple[float, float], tuple[float, float]],
    rhs: tuple[float, float],
    edges: tuple[int, int] = (0, 1),
) -> tuple[float, float]:
    """Cramer's rule for ``dsigma @ K = rhs``.

    The matrix is singular when its determinant is zero or no larger than
    `SINGULAR_RTOL` times the larger of ``|d11 d22|`` and ``|d12 d21|``.
    """
    (d11, d12), (d21, d22) = dsigma
    r1, r2 = rhs
    det = d11 * d22 - d12 * d21
    scale = max(abs(d11 * d22), abs(d12 * d21))
    if det == 0.0 or abs(det) <= SINGULAR_RTOL * scale:
        raise UnsatisfiableConfigurationError(
            f"Cannot enforce suction parameters at edges {edges[0]} and {edges[1]}: singular sensitivity matrix."
        )
    return (d22 * r1 - d12 * r2) / det, (d11 * r2 - d21 * r1) / det


def vorticity_flux_pair(
    body: ConformalBody,
    edge1: int,
    edge2: int,
    system: Any,
    candidate1: Any,
    candidate2: Any,
    t: float,
    target1: float = 0.0,
    target2: float = 0.0,
) -> tuple[float, float]:
    """Strengths of `candidate1`, `candidate2` enforcing `target1` at `edge1` and `target2` at `edge2`.

    Edges whose current suction parameter is within their target release
    nothing. When both edges shed, the coupled 2×2 system is solved; a
    singular system raises UnsatisfiableConfigurationError.
    """
    sigma1 = suction_parameter(edge1, body, system, t)
    sigma2 = suction_parameter(edge2, body, system, t)

    # dsigma_ij: effect of unit candidate j on edge i
    d11, d21 = _unit_sensitivities(body, (edge1, edge2), candidate1, t)
    d12, d22 = _unit_sensitivities(body, (edge1, edge2), candidate2, t)

    gamma1 = circulation(candidate1)
    gamma2 = circulation(candidate2)

    within1 = abs(target1) > abs(sigma1)
    within2 = abs(target2) > abs(sigma2)

    if within1 and within2:
        K1 = K2 = 0.0
    elif within1:
        if d22 == 0.0:
            raise UnsatisfiableConfigurationError(f"Candidate 2 does not affect edge {edge2}.")
        K1, K2 = 0.0, (np.sign(sigma2) * target2 - sigma2) / d22
    elif within2:
        if d11 == 0.0:
            raise UnsatisfiableConfigurationError(f"Candidate 1 does not affect edge {edge1}.")
        K1, K2 = (np.sign(sigma1) * target1 - sigma1) / d11, 0.0
    else:
        r1 = np.sign(sigma1) * target1 - sigma1
        r2 = np.sign(sigma2) * target2 - sigma2
        K1, K2 = _solve_coupled(((d11, d12), (d21, d22)), (r1, r2), (edge1, edge2))

    logger.info(f"Edges {edge1}, {edge2}: shedding Γ = ({K1 * gamma1:.6g}, {K2 * gamma2:.6g})")
    return float(K1 * gamma1), float(K2 * gamma2)
