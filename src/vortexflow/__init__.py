from .config import (
    NumbaConfig,
    ChunkConfig,
    InductionConfig,
    get_config,
    set_config,
    use_config,
)
from .errors import BufferShapeError, UnsatisfiableConfigurationError
from .elements import (
    Element,
    PointSource,
    CompositeSource,
    Point,
    Blob,
    Doublet,
    Freestream,
    position,
    circulation,
    impulse,
)
from .induction import (
    allocate_velocity,
    reset_velocity,
    induce_velocity,
    induce_velocity_into,
    mutually_induce_velocity_into,
    self_induce_velocity_into,
)
from .advection import advect, advect_into
from .sheets import Sheet, append_segment, truncate, redistribute_points
from .maps import ConformalMap, FlatPlateMap
from .bodies import ConformalBody, RigidBodyMotion
from .boundary import (
    enforce_no_flow_through,
    get_image,
    suction_parameter,
    suction_parameter_factor,
    vorticity_flux,
    vorticity_flux_pair,
)
from .logging_config import setup_logging

__all__ = [
    "NumbaConfig", "ChunkConfig", "InductionConfig", "get_config", "set_config", "use_config",
    "BufferShapeError", "UnsatisfiableConfigurationError",
    "Element", "PointSource", "CompositeSource", "Point", "Blob", "Doublet", "Freestream",
    "position", "circulation", "impulse",
    "allocate_velocity", "reset_velocity", "induce_velocity", "induce_velocity_into",
    "mutually_induce_velocity_into", "self_induce_velocity_into",
    "advect", "advect_into",
    "Sheet", "append_segment", "truncate", "redistribute_points",
    "ConformalMap", "FlatPlateMap", "ConformalBody", "RigidBodyMotion",
    "enforce_no_flow_through", "get_image", "suction_parameter", "suction_parameter_factor",
    "vorticity_flux", "vorticity_flux_pair",
    "setup_logging",
]
