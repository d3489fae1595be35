"""Per-session registry of built MipMaps, keyed by log handle."""
from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Hashable

from mipmap.builder import LevelBuilder
from mipmap.datasource import PlotDataSource, RenderPoints
from mipmap.pyramid import MipMap
from mipmap.series import Series
from mipmap.viewport import Viewport

__all__ = ["MipMapSession"]

LOG = logging.getLogger(__name__)


class MipMapSession:
    """Owns the MipMap of every loaded series.

    Entries are inserted when a log is loaded and removed when it is
    unloaded. Background builds publish their MipMap only once it is
    complete; a build whose handle was unloaded (or reloaded) meanwhile is
    discarded.
    """

    def __init__(
        self,
        builder: LevelBuilder | None = None,
        data_source: PlotDataSource | None = None,
        *,
        max_workers: int = 2,
    ):
        self.builder = builder or LevelBuilder()
        self.data_source = data_source or PlotDataSource()
        self._max_workers = max(1, int(max_workers))
        self._mipmaps: dict[Hashable, MipMap] = {}
        self._pending: dict[Hashable, int] = {}
        self._tokens = itertools.count()
        self._lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False

    # ------------------------------------------------------------------

    def load(self, series: Series) -> MipMap:
        mipmap = self.builder.build(series)
        with self._lock:
            self._pending.pop(series.handle, None)
            self._insert(series.handle, mipmap)
        return mipmap

    def load_async(self, series: Series) -> "Future[MipMap]":
        with self._lock:
            if self._closed:
                raise RuntimeError("MipMapSession has been closed")
            token = next(self._tokens)
            self._pending[series.handle] = token
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="mipmap-build"
                )
            return self._executor.submit(self._build_and_publish, series, token)

    def unload(self, handle: Hashable) -> None:
        with self._lock:
            pending = self._pending.pop(handle, None)
            if self._mipmaps.pop(handle, None) is None and pending is None:
                raise KeyError(handle)
        LOG.info("Unloaded MipMap for %r", handle)

    def get(self, handle: Hashable) -> MipMap:
        with self._lock:
            return self._mipmaps[handle]

    def handles(self) -> tuple[Hashable, ...]:
        with self._lock:
            return tuple(self._mipmaps)

    def is_pending(self, handle: Hashable) -> bool:
        with self._lock:
            return handle in self._pending

    def render_points(self, handle: Hashable, viewport: Viewport) -> RenderPoints:
        return self.data_source.render_points(self.get(handle), viewport)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            executor, self._executor = self._executor, None
            self._pending.clear()
        if executor is not None:
            executor.shutdown(wait=True)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._mipmaps

    def __len__(self) -> int:
        with self._lock:
            return len(self._mipmaps)

    # ------------------------------------------------------------------

    def _insert(self, handle: Hashable, mipmap: MipMap) -> None:
        replaced = handle in self._mipmaps
        self._mipmaps[handle] = mipmap
        LOG.info(
            "%s MipMap for %r: %d samples, %d level(s)",
            "Replaced" if replaced else "Loaded",
            handle,
            mipmap.sample_count,
            mipmap.level_count(),
        )

    def _build_and_publish(self, series: Series, token: int) -> MipMap:
        try:
            mipmap = self.builder.build(series)
        except Exception:
            LOG.exception("Failed to build MipMap for %r", series.handle)
            with self._lock:
                if self._pending.get(series.handle) == token:
                    del self._pending[series.handle]
            raise
        with self._lock:
            if self._pending.get(series.handle) != token:
                LOG.debug("Discarding stale MipMap build for %r", series.handle)
                return mipmap
            del self._pending[series.handle]
            self._insert(series.handle, mipmap)
        return mipmap
