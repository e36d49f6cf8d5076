from .vector import Vector, as_vector
from .masker import ExclusionMask, BLOCKED, quantize_density
from .lookup_grid import SpatialHash
from .shuffle import RandomSource, default_random_source, fisher_yates_shuffle
from .integrator import StreamlineIntegrator, IntegratorState, IntegratorSettings
from .scheduler import PlacementScheduler, PlacementConfig, SchedulerState
from .api import (
    create_streamline_generator, generate_streamlines, streamline_to_array,
    constant_field, constant_density, rotational_field, grid_field, grid_density,
)
from .plotting import plot_streamlines, plot_mask, PlotConfig
from .plotly_viz import plot_streamlines_interactive, PlotlyStreamlineConfig

__all__ = [
    "Vector", "as_vector",
    "ExclusionMask", "BLOCKED", "quantize_density",
    "SpatialHash",
    "RandomSource", "default_random_source", "fisher_yates_shuffle",
    "StreamlineIntegrator", "IntegratorState", "IntegratorSettings",
    "PlacementScheduler", "PlacementConfig", "SchedulerState",
    "create_streamline_generator", "generate_streamlines", "streamline_to_array",
    "constant_field", "constant_density", "rotational_field", "grid_field", "grid_density",
    "plot_streamlines", "plot_mask", "PlotConfig",
    "plot_streamlines_interactive", "PlotlyStreamlineConfig",
]
