from __future__ import annotations

import math

import numpy as np
import pytest

from vortexflow import (
    Blob,
    Doublet,
    Freestream,
    Point,
    advect,
    circulation,
    impulse,
    induce_velocity,
    position,
)


def test_point_vortex_velocity() -> None:
    point = Point(0j, 2.0 * math.pi)
    # counter-clockwise: unit speed at unit distance
    assert induce_velocity(1.0 + 0j, point) == pytest.approx(1j)
    assert induce_velocity(-2j, point) == pytest.approx(0.5 + 0j)


def test_point_vortex_has_no_velocity_at_its_own_position() -> None:
    point = Point(0.3 + 0.1j, 1.0)
    assert induce_velocity(point, point) == 0j


def test_blob_matches_point_far_away_and_vanishes_at_center() -> None:
    blob = Blob(0.2 + 0.1j, 1.3, 0.01)
    point = Point(0.2 + 0.1j, 1.3)
    z = 10.0 + 5.0j
    assert induce_velocity(z, blob) == pytest.approx(induce_velocity(z, point), rel=1e-5)
    assert induce_velocity(blob.z, blob) == 0j


def test_blob_velocity_is_bounded_inside_core() -> None:
    delta = 0.1
    blob = Blob(0j, 1.0, delta)
    speeds = [abs(induce_velocity(r + 0j, blob)) for r in np.linspace(1e-6, delta, 50)]
    # peak speed of the Krasny kernel is Γ/(4πδ) at r = δ
    assert max(speeds) <= 1.0 / (4.0 * math.pi * delta) + 1e-12


def test_doublet_velocity() -> None:
    doublet = Doublet(0j, math.pi + 0j)
    assert induce_velocity(1.0 + 0j, doublet) == pytest.approx(-1.0 + 0j)
    assert induce_velocity(1j, doublet) == pytest.approx(1.0 + 0j)
    assert induce_velocity(0j, doublet) == 0j


def test_freestream_is_uniform_and_not_advected() -> None:
    fs = Freestream(1.0 - 0.5j)
    w = induce_velocity(np.array([0j, 3.0 + 1j, -7j]), fs)
    np.testing.assert_allclose(w, np.full(3, 1.0 - 0.5j))
    assert advect(fs, 1.0 + 1j, 0.1) is fs
    with pytest.raises(TypeError):
        position(fs)


def test_impulse_and_circulation() -> None:
    sys = (Point(1j, math.pi), Blob(1j, -math.pi, 0.1))
    assert impulse(sys[0]) == pytest.approx(math.pi + 0j)
    assert impulse(sys) == pytest.approx(0j)
    points = [Point(1j, 1.0), Point(2j, 2.0)]
    assert circulation(points) == pytest.approx(3.0)
    assert circulation(Doublet(0j, 1.0 + 1j)) == 0.0


def test_advect_returns_moved_copy() -> None:
    point = Point(1.0 + 0j, 1.0)
    moved = advect(point, 1j, 1e-2)
    assert moved == Point(1.0 + 0.01j, 1.0)
    assert point.z == 1.0 + 0j
    blob = advect(Blob(0j, 2.0, 0.3), 1.0 + 0j, 0.5)
    assert blob.delta == 0.3 and blob.gamma == 2.0 and blob.z == 0.5 + 0j
    assert repr(moved).startswith("Point Vortex: z = 1")
