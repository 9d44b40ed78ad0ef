from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


# ----------------------
# Configuration objects
# ----------------------

@dataclass(slots=True)
class NumbaConfig:
    """Toggle Numba JIT for the direct pairwise kernels.
    If enabled, vortex sums and pair sums run through compiled loops.
    """
    enabled: bool = False


@dataclass(slots=True)
class ChunkConfig:
    """Chunking to reduce peak memory in direct sums.

    query_batch: number of target points per chunk (None -> no chunking).
    source_batch: number of source points per chunk for big-N accumulation.
    """
    query_batch: int | None = 20000
    source_batch: int | None = None

    def __post_init__(self) -> None:
        if self.query_batch is not None and self.query_batch <= 0:
            raise ValueError("query_batch must be positive or None.")
        if self.source_batch is not None and self.source_batch <= 0:
            raise ValueError("source_batch must be positive or None.")


@dataclass(slots=True)
class InductionConfig:
    """Numerical options for the induction engine."""
    numba: NumbaConfig = field(default_factory=NumbaConfig)
    chunking: ChunkConfig = field(default_factory=ChunkConfig)

    def __post_init__(self) -> None:
        if not isinstance(self.numba, NumbaConfig):
            raise ValueError(f"numba must be a NumbaConfig, got {type(self.numba).__name__}")
        if not isinstance(self.chunking, ChunkConfig):
            raise ValueError(f"chunking must be a ChunkConfig, got {type(self.chunking).__name__}")


_ACTIVE = InductionConfig()


def get_config() -> InductionConfig:
    return _ACTIVE


def set_config(config: InductionConfig) -> InductionConfig:
    """Install `config` process-wide and return the previous one."""
    global _ACTIVE
    if not isinstance(config, InductionConfig):
        raise ValueError("config must be an InductionConfig.")
    previous = _ACTIVE
    _ACTIVE = config
    return previous


@contextmanager
def use_config(config: InductionConfig) -> Iterator[InductionConfig]:
    previous = set_config(config)
    try:
        yield config
    finally:
        set_config(previous)
