from __future__ import annotations

from typing import Any

import numpy as np

from .elements import CompositeSource, Freestream, PointSource
from .errors import BufferShapeError


def advect(element: PointSource, w: complex, dt: float) -> PointSource:
    """Return a copy of `element` moved by velocity `w` over `dt` (Euler step)."""
    if not isinstance(element, PointSource):
        raise TypeError(f"{type(element).__name__} is not a point source.")
    return element.advect(complex(w), dt)


def advect_into(dst: Any, src: Any, velocities: Any, dt: float) -> None:
    """Move the elements of `src` by `velocities` over `dt` and store them in `dst`.

    `dst` may be `src` itself: every slot updates independently.
    """
    if isinstance(src, tuple):
        if not isinstance(dst, tuple) or len(dst) != len(src):
            raise BufferShapeError("Destination group does not match source group.")
        if not isinstance(velocities, tuple) or len(velocities) != len(src):
            raise BufferShapeError("Velocity group does not match source group.")
        for d, s, w in zip(dst, src, velocities):
            advect_into(d, s, w, dt)
    elif isinstance(src, list):
        if not isinstance(dst, list):
            raise BufferShapeError(f"Destination for a list must be a list, got {type(dst).__name__}.")
        if np.shape(velocities) != (len(src),):
            raise BufferShapeError(f"Expected {len(src)} velocities, got shape {np.shape(velocities)}.")
        dst[:] = [advect(e, w, dt) for e, w in zip(src, velocities)]
    elif isinstance(src, CompositeSource):
        if type(dst) is not type(src):
            raise BufferShapeError(f"Cannot advect {type(src).__name__} into {type(dst).__name__}.")
        dst.advect_from(src, velocities, dt)
    elif isinstance(src, Freestream):
        return
    else:
        raise TypeError(f"Cannot advect {type(src).__name__}.")
