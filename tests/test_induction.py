from __future__ import annotations

import tracemalloc

import numpy as np
import pytest

from vortexflow import (
    Blob,
    BufferShapeError,
    ChunkConfig,
    ConformalBody,
    Doublet,
    FlatPlateMap,
    Freestream,
    InductionConfig,
    NumbaConfig,
    Point,
    Sheet,
    allocate_velocity,
    induce_velocity,
    induce_velocity_into,
    mutually_induce_velocity_into,
    reset_velocity,
    self_induce_velocity_into,
    use_config,
)


def make_points(n: int, seed: int = 0) -> list[Point]:
    rng = np.random.default_rng(seed)
    z = rng.uniform(-1.0, 1.0, n) + 1j * rng.uniform(-1.0, 1.0, n)
    g = rng.normal(0.0, 1.0, n)
    return [Point(complex(zi), float(gi)) for zi, gi in zip(z, g)]


def make_blobs(n: int, delta: float | np.ndarray, seed: int = 0) -> list[Blob]:
    rng = np.random.default_rng(seed)
    z = rng.uniform(-1.0, 1.0, n) + 1j * rng.uniform(-1.0, 1.0, n)
    g = rng.normal(0.0, 1.0, n)
    d = np.broadcast_to(np.asarray(delta, dtype=float), (n,))
    return [Blob(complex(zi), float(gi), float(di)) for zi, gi, di in zip(z, g, d)]


CONFIGS = [
    InductionConfig(),
    InductionConfig(numba=NumbaConfig(enabled=True)),
    InductionConfig(chunking=ChunkConfig(query_batch=7, source_batch=5)),
]


def test_allocate_velocity_matches_structure() -> None:
    points = make_points(3)
    sheet = Sheet(np.linspace(0.0, 1.0, 4) + 0j, np.arange(4.0), 0.1)
    body = ConformalBody(FlatPlateMap(1.0))
    ws = allocate_velocity((points, (sheet, body)))
    assert isinstance(ws, tuple) and isinstance(ws[1], tuple)
    assert ws[0].shape == (3,)
    assert ws[1][0].shape == (4,)
    assert ws[1][1].shape == (0,)
    assert allocate_velocity(np.zeros(5, dtype=complex)).shape == (5,)
    with pytest.raises(TypeError):
        allocate_velocity(Point(0j, 1.0))


def test_induce_velocity_into_accumulates() -> None:
    targets = make_points(6, seed=1)
    a = make_points(5, seed=2)
    b = make_blobs(4, 0.1, seed=3)

    ws = allocate_velocity(targets)
    induce_velocity_into(ws, targets, a)
    induce_velocity_into(ws, targets, b)
    np.testing.assert_allclose(ws, induce_velocity(targets, (a, b)), rtol=1e-13, atol=1e-13)

    induce_velocity_into(ws, targets, a)
    expected = 2.0 * induce_velocity(targets, a) + induce_velocity(targets, b)
    np.testing.assert_allclose(ws, expected, rtol=1e-13, atol=1e-13)


def test_induce_velocity_on_single_targets() -> None:
    sources = make_points(5, seed=4)
    target = Point(0.25 + 0.5j, 1.0)
    w = induce_velocity(target, sources)
    assert isinstance(w, complex)
    assert w == pytest.approx(induce_velocity(0.25 + 0.5j, sources))
    direct = sum(1j * p.gamma / (2.0 * np.pi * np.conj(target.z - p.z)) for p in sources)
    assert w == pytest.approx(direct)


def test_mismatched_buffers_are_rejected_before_accumulating() -> None:
    targets = (make_points(3), make_points(2, seed=1))
    sources = make_points(4, seed=2)
    good, bad = np.zeros(3, dtype=complex), np.zeros(5, dtype=complex)
    with pytest.raises(BufferShapeError):
        induce_velocity_into((good, bad), targets, sources)
    assert not good.any()
    with pytest.raises(BufferShapeError):
        induce_velocity_into((good,), targets, sources)
    with pytest.raises(BufferShapeError):
        induce_velocity_into(np.zeros(3), targets[0], sources)  # real-valued buffer
    with pytest.raises(BufferShapeError):
        induce_velocity_into(np.zeros(3, dtype=complex), targets, sources)


def test_reset_velocity() -> None:
    points = make_points(3)
    ws = allocate_velocity((points, points))
    ws[0][:] = 1.0
    same = reset_velocity(ws)
    assert same is ws and not ws[0].any()

    grown = make_points(5)
    ws = reset_velocity(ws, (grown, points))
    assert ws[0].shape == (5,) and ws[1].shape == (3,)
    with pytest.raises(BufferShapeError):
        reset_velocity(ws, (grown,))


@pytest.mark.parametrize("cfg", CONFIGS)
@pytest.mark.parametrize("kind", ["points", "blobs", "mixed_blobs"])
def test_mutual_induction_matches_two_calls(cfg: InductionConfig, kind: str) -> None:
    if kind == "points":
        a, b = make_points(13, seed=5), make_points(9, seed=6)
    elif kind == "blobs":
        a, b = make_blobs(13, 0.05, seed=5), make_blobs(9, 0.05, seed=6)
    else:
        a, b = make_blobs(13, 0.05, seed=5), make_blobs(9, np.linspace(0.01, 0.1, 9), seed=6)
    with use_config(cfg):
        wa, wb = allocate_velocity(a), allocate_velocity(b)
        mutually_induce_velocity_into(wa, wb, a, b)
        ra, rb = allocate_velocity(a), allocate_velocity(b)
        induce_velocity_into(ra, a, b)
        induce_velocity_into(rb, b, a)
    np.testing.assert_allclose(wa, ra, rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(wb, rb, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("cfg", CONFIGS)
def test_self_induction_of_arrays(cfg: InductionConfig) -> None:
    points = make_points(25, seed=7)
    blobs = make_blobs(20, 0.08, seed=8)
    mixed = [Point(0.1j, 1.0), Blob(0.5 + 0j, -2.0, 0.2), Blob(-0.3 + 0.2j, 0.7, 0.05), Doublet(0.4j, 0.3 - 0.1j)]
    with use_config(cfg):
        for group in (points, blobs, mixed):
            ws = allocate_velocity(group)
            self_induce_velocity_into(ws, group)
            # kernels vanish at coincidence, so the full sum is the reference
            np.testing.assert_allclose(ws, induce_velocity(group, group), rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("cfg", CONFIGS)
def test_self_induction_of_nested_groups(cfg: InductionConfig) -> None:
    points = make_points(10, seed=9)
    blobs = make_blobs(8, 0.1, seed=10)
    sheet = Sheet(np.linspace(-1.0, 1.0, 12) + 0.3j, np.cumsum(np.full(12, 0.1)), 0.1)
    group = (points, (blobs, sheet), Freestream(0.5 + 0j))
    with use_config(cfg):
        ws = allocate_velocity(group)
        self_induce_velocity_into(ws, group)
        np.testing.assert_allclose(ws[0], induce_velocity(points, group), rtol=1e-12, atol=1e-12)
        np.testing.assert_allclose(ws[1][0], induce_velocity(blobs, group), rtol=1e-12, atol=1e-12)
        np.testing.assert_allclose(ws[1][1], induce_velocity(sheet, group), rtol=1e-12, atol=1e-12)
    assert ws[2].shape == (0,)


@pytest.mark.parametrize("use_numba", [False, True])
@pytest.mark.parametrize("batches", [(50, 30), (64, None), (None, 17), (1, 1)])
def test_blocked_pair_sums_match_unblocked(use_numba: bool, batches: tuple[int | None, int | None]) -> None:
    blobs = make_blobs(157, 0.05, seed=14)
    others = make_blobs(61, 0.05, seed=15)
    numba = NumbaConfig(enabled=use_numba)
    unblocked = InductionConfig(numba=numba, chunking=ChunkConfig(query_batch=None, source_batch=None))
    blocked = InductionConfig(numba=numba, chunking=ChunkConfig(*batches))

    results = []
    for cfg in (unblocked, blocked):
        with use_config(cfg):
            ws = self_induce_velocity_into(allocate_velocity(blobs), blobs)
            wa, wb = allocate_velocity(blobs), allocate_velocity(others)
            mutually_induce_velocity_into(wa, wb, blobs, others)
        results.append((ws, wa, wb))
    for ref, got in zip(*results):
        np.testing.assert_allclose(got, ref, rtol=1e-10, atol=1e-10)


def test_blocked_self_induction_caps_peak_memory() -> None:
    blobs = make_blobs(3000, 0.03, seed=16)
    targets = np.array([b.z for b in blobs])
    with use_config(InductionConfig(chunking=ChunkConfig(query_batch=100, source_batch=100))):
        ws = allocate_velocity(blobs)
        tracemalloc.start()
        try:
            self_induce_velocity_into(ws, blobs)
            _, peak_self = tracemalloc.get_traced_memory()
            tracemalloc.reset_peak()
            induce_velocity(targets, blobs)
            _, peak_direct = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
    # a full pair table for 3000 blobs would take hundreds of MB
    assert peak_self < 20e6
    assert peak_self < 10 * max(peak_direct, 1e6)


def test_numba_and_numpy_kernels_agree() -> None:
    sources = make_blobs(300, 0.02, seed=11) + make_points(200, seed=12)
    targets = np.random.default_rng(13).uniform(-1.0, 1.0, 400) + 0j
    plain = induce_velocity(targets, sources)
    with use_config(InductionConfig(numba=NumbaConfig(enabled=True))):
        jit = induce_velocity(targets, sources)
    np.testing.assert_allclose(jit, plain, rtol=1e-12, atol=1e-12)


def test_vortex_pair_translates_at_theoretical_speed() -> None:
    gamma, a = 1.0, 0.12
    pair = [Point(-a + 0j, gamma), Point(a + 0j, -gamma)]
    ws = allocate_velocity(pair)
    self_induce_velocity_into(ws, pair)
    # U = Γ / (2π d), d = 2a, normal to the line joining the vortices
    U = gamma / (2.0 * np.pi * 2.0 * a)
    np.testing.assert_allclose(ws, [1j * U, 1j * U], rtol=1e-13)
