"""Multi-resolution min/max downsampling for plotting large time-series logs."""

# Re-export commonly used modules for convenience.
from . import builder, datasource, level, pyramid, selector, series, session, viewport, zarr_cache

from .builder import LevelBuilder, MipMapOverflowError, reduce_level
from .datasource import MipMapMode, PlotDataSource, RenderPoints
from .level import Bin, Level
from .pyramid import MipMap
from .selector import LevelSelector
from .series import InvariantViolation, SampleSource, Series
from .session import MipMapSession
from .viewport import Viewport

__all__ = [
    "builder",
    "datasource",
    "level",
    "pyramid",
    "selector",
    "series",
    "session",
    "viewport",
    "zarr_cache",
    "Bin",
    "InvariantViolation",
    "Level",
    "LevelBuilder",
    "LevelSelector",
    "MipMap",
    "MipMapMode",
    "MipMapOverflowError",
    "MipMapSession",
    "PlotDataSource",
    "RenderPoints",
    "SampleSource",
    "Series",
    "Viewport",
    "reduce_level",
]
