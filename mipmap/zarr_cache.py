from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Hashable

import numpy as np
import zarr

from mipmap.level import Level
from mipmap.pyramid import MipMap

__all__ = ["save_mipmap", "load_mipmap", "SCHEMA_VERSION"]

SCHEMA_VERSION = "1.0"

TIME_COLUMNS = ["start", "end", "min_time", "max_time"]
VALUE_COLUMNS = ["min", "max"]


def _open(store: Any, mode: str) -> zarr.Group:
    if isinstance(store, (str, Path)):
        return zarr.open_group(str(store), mode=mode)
    return zarr.open_group(store=store, mode=mode)


def _attr_handle(handle: Hashable) -> Any:
    if handle is None or isinstance(handle, (str, int, float)):
        return handle
    return str(handle)


def save_mipmap(mipmap: MipMap, store: Any, *, chunk_bins: int = 65536) -> zarr.Group:
    """Write every level of ``mipmap`` into a Zarr group.

    Each level ``i`` becomes ``levels/<i>/times`` (start, end, min_time,
    max_time) and ``levels/<i>/values`` (min, max).
    """
    group = _open(store, "w")
    attrs = group.attrs
    attrs["schema_version"] = SCHEMA_VERSION
    attrs["created_at"] = datetime.now(timezone.utc).isoformat()
    attrs["factor"] = int(mipmap.factor)
    attrs["level_count"] = mipmap.level_count()
    attrs["sample_count"] = int(mipmap.sample_count)
    attrs["handle"] = _attr_handle(mipmap.handle)

    levels_root = group.create_group("levels")
    for idx, level in enumerate(mipmap.levels):
        n = len(level)
        rows = max(1, min(n, int(chunk_bins)))
        lvl_group = levels_root.create_group(str(idx))
        times = lvl_group.create_dataset(
            "times",
            shape=(n, len(TIME_COLUMNS)),
            chunks=(rows, len(TIME_COLUMNS)),
            dtype=level.start.dtype,
            overwrite=True,
        )
        values = lvl_group.create_dataset(
            "values",
            shape=(n, len(VALUE_COLUMNS)),
            chunks=(rows, len(VALUE_COLUMNS)),
            dtype=level.mins.dtype,
            overwrite=True,
        )
        times.attrs["columns"] = TIME_COLUMNS
        values.attrs["columns"] = VALUE_COLUMNS
        if n:
            times[:] = np.stack((level.start, level.end, level.min_times, level.max_times), axis=1)
            values[:] = np.stack((level.mins, level.maxs), axis=1)
    return group


def load_mipmap(store: Any, *, handle: Hashable | None = None) -> MipMap:
    group = _open(store, "r")
    version = group.attrs.get("schema_version")
    if version != SCHEMA_VERSION:
        raise ValueError(f"unsupported MipMap cache schema {version!r}")
    count = int(group.attrs["level_count"])
    levels_root = group["levels"]
    levels: list[Level] = []
    for idx in range(count):
        if str(idx) not in levels_root:
            raise ValueError(f"MipMap cache is missing level {idx} of {count}")
        lvl_group = levels_root[str(idx)]
        times = np.asarray(lvl_group["times"][:])
        values = np.asarray(lvl_group["values"][:])
        levels.append(
            Level(
                start=np.ascontiguousarray(times[:, 0]),
                end=np.ascontiguousarray(times[:, 1]),
                mins=np.ascontiguousarray(values[:, 0]),
                maxs=np.ascontiguousarray(values[:, 1]),
                min_times=np.ascontiguousarray(times[:, 2]),
                max_times=np.ascontiguousarray(times[:, 3]),
            )
        )
    return MipMap(
        tuple(levels),
        factor=int(group.attrs["factor"]),
        handle=group.attrs.get("handle") if handle is None else handle,
        sample_count=int(group.attrs.get("sample_count", 0)),
    )
