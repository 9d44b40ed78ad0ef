from __future__ import annotations


class BufferShapeError(ValueError):
    """A velocity buffer does not match the structure of its target."""


class UnsatisfiableConfigurationError(RuntimeError):
    """Edge suction parameters cannot be enforced for the chosen edges and candidates."""
