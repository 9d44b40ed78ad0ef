from __future__ import annotations

import argparse
import tracemalloc
import numpy as np
from vortexflow import Blob, ChunkConfig, InductionConfig, NumbaConfig, induce_velocity, use_config


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--N", type=int, default=20000)
    ap.add_argument("--numba", action="store_true")
    ap.add_argument("--query-batch", type=int, default=20000)
    ap.add_argument("--source-batch", type=int, default=0)
    args = ap.parse_args()

    rng = np.random.default_rng(0)
    z = rng.uniform(-0.5, 0.5, args.N) + 1j * rng.uniform(-0.5, 0.5, args.N)
    g = rng.normal(0.0, 1.0, size=(args.N,)); g -= g.mean()
    src = [Blob(complex(zi), float(gi), 0.03) for zi, gi in zip(z, g)]

    cfg = InductionConfig(numba=NumbaConfig(enabled=bool(args.numba)),
                          chunking=ChunkConfig(query_batch=args.query_batch,
                                               source_batch=(args.source_batch or None)))

    tracemalloc.start()
    with use_config(cfg):
        _ = induce_velocity(z, src)
    current, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    print(f"induce_velocity(N={args.N}, numba={args.numba}) peak={peak/1e6:.1f} MB")

if __name__ == "__main__":
    main()
