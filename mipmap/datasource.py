"""Viewport-driven access to MipMap data for the plot widget."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from mipmap.builder import DEFAULT_FACTOR, reduce_level
from mipmap.level import Level
from mipmap.pyramid import MipMap
from mipmap.selector import LevelSelector
from mipmap.viewport import Viewport

__all__ = ["MipMapMode", "PlotDataSource", "RenderPoints"]

LOG = logging.getLogger(__name__)


class MipMapMode(enum.Enum):
    AUTO = "auto"
    MANUAL = "manual"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: "str | MipMapMode") -> "MipMapMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(mode.value for mode in cls)
            raise ValueError(f"unknown mipmap mode {value!r}; expected one of {choices}") from None


@dataclass(frozen=True, eq=False)
class RenderPoints:
    """Bins ready for drawing; iterating yields ``(time, min, max)``."""

    t: np.ndarray
    mins: np.ndarray
    maxs: np.ndarray
    min_times: np.ndarray
    max_times: np.ndarray
    level: int

    @classmethod
    def from_level(cls, level: Level, level_idx: int) -> "RenderPoints":
        return cls(
            level.start,
            level.mins,
            level.maxs,
            level.min_times,
            level.max_times,
            level_idx,
        )

    def __len__(self) -> int:
        return int(self.t.size)

    def __iter__(self) -> Iterator[tuple[float, float, float]]:
        for t, lo, hi in zip(self.t.tolist(), self.mins.tolist(), self.maxs.tolist()):
            yield t, lo, hi

    def min_line(self) -> tuple[np.ndarray, np.ndarray]:
        return self.min_times, self.mins

    def max_line(self) -> tuple[np.ndarray, np.ndarray]:
        return self.max_times, self.maxs

    def envelope(self) -> tuple[np.ndarray, np.ndarray]:
        """Single polyline visiting both extrema of every bin in time order."""
        n = len(self)
        if n == 0:
            return self.t[:0], self.mins[:0]
        min_first = self.min_times <= self.max_times
        t = np.empty(n * 2, dtype=np.result_type(self.min_times, self.max_times))
        x = np.empty(n * 2, dtype=np.result_type(self.mins, self.maxs))
        t[0::2] = np.where(min_first, self.min_times, self.max_times)
        t[1::2] = np.where(min_first, self.max_times, self.min_times)
        x[0::2] = np.where(min_first, self.mins, self.maxs)
        x[1::2] = np.where(min_first, self.maxs, self.mins)
        return t, x


class PlotDataSource:
    """Turns a viewport into a bounded sequence of min/max points.

    ``mode`` mirrors the viewer's mipmap setting: AUTO selects a level per
    frame, MANUAL pins ``manual_level`` (clamped to the coarsest level that
    exists), DISABLED returns raw samples.
    """

    def __init__(
        self,
        selector: LevelSelector | None = None,
        *,
        mode: MipMapMode | str = MipMapMode.AUTO,
        manual_level: int = 0,
        bound_extension: float = 0.0,
    ):
        if manual_level < 0:
            raise ValueError("manual_level must be non-negative")
        if bound_extension < 0:
            raise ValueError("bound_extension must be non-negative")
        self.selector = selector or LevelSelector()
        self.mode = MipMapMode.parse(mode)
        self.manual_level = int(manual_level)
        self.bound_extension = float(bound_extension)

    def render_points(self, mipmap: MipMap, viewport: Viewport) -> RenderPoints:
        view = viewport.extended(self.bound_extension)
        budget = self.selector.budget(view.pixel_width)

        if self.mode is MipMapMode.DISABLED:
            return RenderPoints.from_level(mipmap.bins_in_range(0, view.t0, view.t1), 0)

        if self.mode is MipMapMode.MANUAL:
            level_idx = mipmap.level_or_coarsest(self.manual_level)
        else:
            level_idx = self.selector.select_level(mipmap, view.t0, view.t1, view.pixel_width)

        bins = mipmap.bins_in_range(level_idx, view.t0, view.t1)
        if len(bins) > budget:
            bins = self._fit_budget(bins, budget, mipmap.factor)
        return RenderPoints.from_level(bins, level_idx)

    @staticmethod
    def _fit_budget(bins: Level, budget: int, factor: int) -> Level:
        # Only reached when the hierarchy was capped below a single top bin
        # or a manual level is too fine for the viewport.
        factor = max(factor, DEFAULT_FACTOR)
        while len(bins) > budget:
            bins = reduce_level(bins, factor)
        LOG.debug("Reduced visible bins on the fly to %d (budget %d)", len(bins), budget)
        return bins
