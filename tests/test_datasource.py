import numpy as np
import pytest

from mipmap.builder import LevelBuilder
from mipmap.datasource import MipMapMode, PlotDataSource
from mipmap.selector import LevelSelector
from mipmap.series import Series
from mipmap.viewport import Viewport


@pytest.fixture
def telemetry():
    rng = np.random.default_rng(1)
    n = 50_000
    t = np.arange(n, dtype=np.float64) * 1e6
    x = np.sin(np.arange(n) * 1e-3) * 10.0 + rng.standard_normal(n)
    x[31_337] = 500.0
    return LevelBuilder(factor=2).build(Series.from_arrays(t, x, handle="generator"))


def test_render_points_bounded_by_budget(telemetry):
    source = PlotDataSource(LevelSelector(budget_multiplier=2.0), bound_extension=0.1)
    start, end = telemetry.time_extent
    rng = np.random.default_rng(2)
    for _ in range(200):
        a, b = np.sort(rng.uniform(start - 1e9, end + 1e9, size=2))
        pixels = int(rng.integers(1, 2000))
        points = source.render_points(telemetry, Viewport(a, b, pixels))
        assert len(points) <= 2 * pixels


def test_full_view_keeps_outlier(telemetry):
    source = PlotDataSource()
    start, end = telemetry.time_extent
    points = source.render_points(telemetry, Viewport(start, end, 300))
    assert points.level > 0
    assert points.maxs.max() == 500.0
    assert 31_337 * 1e6 in points.max_times


def test_render_points_is_idempotent(telemetry):
    source = PlotDataSource(bound_extension=0.1)
    viewport = Viewport(1e9, 2e10, 640)
    first = source.render_points(telemetry, viewport)
    second = source.render_points(telemetry, viewport)
    assert first.level == second.level
    assert list(first) == list(second)


def test_range_before_series_is_empty(telemetry):
    points = PlotDataSource().render_points(telemetry, Viewport(-5e9, -1e9, 800))
    assert len(points) == 0
    assert list(points) == []
    assert points.level == 0


def test_iteration_yields_time_min_max():
    series = Series.from_arrays(np.arange(9), [1, 5, 2, 8, 3, 0, 9, 4, 6])
    mipmap = LevelBuilder(factor=2).build(series)
    points = PlotDataSource(LevelSelector(budget_multiplier=1.0)).render_points(
        mipmap, Viewport(0, 8, 5)
    )
    assert points.level == 1
    assert list(points) == [(0, 1, 5), (2, 2, 8), (4, 0, 3), (6, 4, 9), (8, 6, 6)]


def test_envelope_orders_extrema_by_time():
    series = Series.from_arrays(np.arange(4), [9.0, 1.0, 2.0, 8.0])
    mipmap = LevelBuilder(factor=2).build(series)
    points = PlotDataSource(mode="manual", manual_level=1).render_points(
        mipmap, Viewport(0, 3, 10)
    )
    t, x = points.envelope()
    np.testing.assert_array_equal(t, [0, 1, 2, 3])
    np.testing.assert_array_equal(x, [9.0, 1.0, 2.0, 8.0])
    np.testing.assert_array_equal(points.min_line()[1], [1.0, 2.0])
    np.testing.assert_array_equal(points.max_line()[0], [0, 3])


def test_manual_level_is_clamped_and_bounded(telemetry):
    start, end = telemetry.time_extent
    coarse = PlotDataSource(mode=MipMapMode.MANUAL, manual_level=999)
    points = coarse.render_points(telemetry, Viewport(start, end, 100))
    assert points.level == telemetry.level_count() - 1
    assert len(points) == 1

    fine = PlotDataSource(mode=MipMapMode.MANUAL, manual_level=0)
    points = fine.render_points(telemetry, Viewport(start, end, 100))
    assert len(points) <= 200
    assert points.maxs.max() == 500.0


def test_disabled_mode_returns_raw_samples(telemetry):
    source = PlotDataSource(mode="disabled")
    points = source.render_points(telemetry, Viewport(0.0, 9e6, 1))
    assert points.level == 0
    np.testing.assert_array_equal(points.t, np.arange(10) * 1e6)


def test_truncated_hierarchy_still_bounded():
    series = Series.from_arrays(np.arange(10_000), np.arange(10_000) % 17)
    mipmap = LevelBuilder(factor=2, max_levels=2).build(series)
    points = PlotDataSource().render_points(mipmap, Viewport(0, 9_999, 50))
    assert len(points) <= 100
    assert points.maxs.max() == 16
    assert points.mins.min() == 0


def test_invalid_configuration():
    with pytest.raises(ValueError):
        PlotDataSource(mode="sometimes")
    with pytest.raises(ValueError):
        PlotDataSource(manual_level=-1)
    with pytest.raises(ValueError):
        PlotDataSource(bound_extension=-0.5)
