from __future__ import annotations

import numpy as np
import pytest

from termscope.display import Dimension, GraphConfig, GraphType
from termscope.display.events import Intent
from termscope.display.oscilloscope import Oscilloscope, Paused, Running, find_trigger


def _config(**overrides) -> GraphConfig:
    base = dict(samples=4, width=8, scale=1.0, no_reference=True)
    base.update(overrides)
    return GraphConfig(**base)


STEREO = [[0.1, 0.2, 0.3, 0.4], [-0.1, -0.2, -0.3, -0.4]]


def test_vectorscope_projects_channel_pairs() -> None:
    scope = Oscilloscope(vectorscope=True)
    datasets = scope.process(_config(scale=2.0), STEREO)

    assert len(datasets) == 1
    np.testing.assert_allclose(
        datasets[0].points,
        [(0.2, -0.2), (0.4, -0.4), (0.6, -0.6), (0.8, -0.8)],
    )


def test_vectorscope_drops_unpaired_trailing_channel() -> None:
    scope = Oscilloscope(vectorscope=True)
    matrix = STEREO + [[0.5, 0.5, 0.5, 0.5]]
    datasets = scope.process(_config(), matrix)
    assert [d.name for d in datasets] == ["0-1"]


def test_time_domain_maps_index_across_width() -> None:
    scope = Oscilloscope()
    datasets = scope.process(_config(scale=0.5, palette=["red", "blue"]), STEREO)

    assert len(datasets) == 2
    np.testing.assert_allclose(datasets[0].x, [0.0, 2.0, 4.0, 6.0])
    np.testing.assert_allclose(datasets[0].y, [0.05, 0.1, 0.15, 0.2])
    np.testing.assert_allclose(datasets[1].y, [-0.05, -0.1, -0.15, -0.2])
    assert [d.color for d in datasets] == ["red", "blue"]
    assert all(d.graph_type is GraphType.LINE for d in datasets)


def test_scatter_flag_marks_datasets() -> None:
    datasets = Oscilloscope().process(_config(scatter=True), STEREO)
    assert all(d.graph_type is GraphType.SCATTER for d in datasets)


def test_palette_wraps() -> None:
    matrix = [[0.0] * 4 for _ in range(5)]
    datasets = Oscilloscope().process(_config(palette=["a", "b"]), matrix)
    assert [d.color for d in datasets] == ["a", "b", "a", "b", "a"]


def test_trailing_window_uses_most_recent_samples() -> None:
    matrix = [np.arange(10, dtype=float)]
    datasets = Oscilloscope().process(_config(samples=4), matrix)
    np.testing.assert_array_equal(datasets[0].y, [6, 7, 8, 9])


def test_window_never_exceeds_buffer() -> None:
    matrix = [np.arange(3, dtype=float)]
    datasets = Oscilloscope().process(_config(samples=100), matrix)
    assert len(datasets[0]) == 3


def test_short_channel_is_zero_padded() -> None:
    matrix = [np.ones(6), np.array([0.5, 0.6, 0.7])]
    datasets = Oscilloscope().process(_config(samples=6), matrix)

    assert len(datasets[1]) == 6
    np.testing.assert_allclose(datasets[1].y, [0.5, 0.6, 0.7, 0.0, 0.0, 0.0])


def test_amplitudes_are_not_clamped() -> None:
    datasets = Oscilloscope().process(_config(scale=5.0), [[0.5, 0.5, 0.5, 0.5]])
    np.testing.assert_allclose(datasets[0].y, [2.5] * 4)


@pytest.mark.parametrize("vectorscope", [False, True])
def test_doubling_scale_doubles_output(vectorscope: bool) -> None:
    single = Oscilloscope(vectorscope=vectorscope).process(_config(scale=1.0), STEREO)
    double = Oscilloscope(vectorscope=vectorscope).process(_config(scale=2.0), STEREO)

    for a, b in zip(single, double):
        if vectorscope:
            np.testing.assert_allclose(b.points, a.points * 2)
        else:
            np.testing.assert_allclose(b.x, a.x)
            np.testing.assert_allclose(b.y, a.y * 2)


def test_reference_line_appended_last() -> None:
    datasets = Oscilloscope().process(_config(no_reference=False), STEREO)
    assert len(datasets) == 3
    reference = datasets[-1]
    assert reference.name == "reference"
    assert reference.graph_type is GraphType.SEGMENTS
    np.testing.assert_allclose(reference.points, [(0.0, 0.0), (8.0, 0.0)])


def test_vectorscope_reference_is_crosshair() -> None:
    scope = Oscilloscope(vectorscope=True)
    datasets = scope.process(_config(no_reference=False, scale=0.5), STEREO)
    np.testing.assert_allclose(
        datasets[-1].points, [(-0.5, 0), (0.5, 0), (0, -0.5), (0, 0.5)]
    )


def test_empty_matrix_yields_only_reference() -> None:
    assert Oscilloscope().process(_config(), []) == []
    datasets = Oscilloscope().process(_config(no_reference=False), [])
    assert [d.name for d in datasets] == ["reference"]


def test_pause_freezes_last_frame() -> None:
    scope = Oscilloscope()
    first = scope.process(_config(), STEREO)
    assert isinstance(scope.mode, Running)

    other = [[0.9] * 4, [0.8] * 4]
    held_a = scope.process(_config(pause=True), other)
    held_b = scope.process(_config(pause=True), [[0.0] * 4, [0.0] * 4])

    assert isinstance(scope.mode, Paused)
    assert len(held_a) == len(held_b) == len(first)
    for a, b, orig in zip(held_a, held_b, first):
        assert a is b is orig

    resumed = scope.process(_config(), other)
    assert isinstance(scope.mode, Running)
    np.testing.assert_allclose(resumed[0].y, [0.9] * 4)


def test_pause_without_history_freezes_first_matrix() -> None:
    scope = Oscilloscope()
    a = scope.process(_config(pause=True), STEREO)
    b = scope.process(_config(pause=True), [[1.0] * 4, [1.0] * 4])
    np.testing.assert_allclose(b[0].y, a[0].y)
    np.testing.assert_allclose(a[0].y, STEREO[0])


class TestTriggering:
    DATA = np.array([-1.0, -1.0, 1.0, 1.0] * 3)

    def test_find_trigger_edges(self) -> None:
        np.testing.assert_array_equal(find_trigger(self.DATA, 0.0), [2, 6, 10])
        np.testing.assert_array_equal(find_trigger(self.DATA, 0.0, falling=True), [4, 8])
        assert find_trigger(np.array([1.0]), 0.0).size == 0

    def test_trailing_window_without_trigger(self) -> None:
        datasets = Oscilloscope().process(_config(samples=3), [self.DATA])
        np.testing.assert_array_equal(datasets[0].y, [-1, 1, 1])

    def test_rising_edge_aligns_window(self) -> None:
        scope = Oscilloscope()
        scope.apply_intent(Intent.TOGGLE_TRIGGER)
        datasets = scope.process(_config(samples=3), [self.DATA])
        np.testing.assert_array_equal(datasets[0].y, [1, 1, -1])

    def test_falling_edge_aligns_window(self) -> None:
        scope = Oscilloscope()
        scope.apply_intent(Intent.TOGGLE_TRIGGER)
        scope.apply_intent(Intent.TOGGLE_FALLING_EDGE)
        datasets = scope.process(_config(samples=3), [self.DATA])
        np.testing.assert_array_equal(datasets[0].y, [-1, -1, 1])

    def test_no_crossing_falls_back_to_trailing_window(self) -> None:
        scope = Oscilloscope()
        scope.apply_intent(Intent.TOGGLE_TRIGGER)
        datasets = scope.process(_config(samples=3), [np.arange(6.0) + 5.0])
        np.testing.assert_array_equal(datasets[0].y, [8, 9, 10])


class TestAxes:
    CFG = GraphConfig(samples=480, sampling_rate=48000, width=200, scale=1.5)

    def test_time_domain_axes(self) -> None:
        scope = Oscilloscope()
        x = scope.axis(self.CFG, Dimension.X)
        y = scope.axis(self.CFG, Dimension.Y)

        assert x.bounds == (0.0, 200.0)
        assert x.labels == ("0us", "5.0ms", "10.0ms")
        assert y.bounds == (-1.5, 1.5)
        assert y.labels == ("-1.50", "0", "1.50")
        assert x.labels_color == "cyan"
        assert x.axis_color == "darkgray"

    def test_vectorscope_axes_are_symmetric(self) -> None:
        scope = Oscilloscope(vectorscope=True)
        assert scope.axis(self.CFG, Dimension.X).bounds == (-1.5, 1.5)
        assert scope.axis(self.CFG, Dimension.Y).bounds == (-1.5, 1.5)

    def test_titles_follow_show_ui(self) -> None:
        cfg = GraphConfig(show_ui=False)
        assert not Oscilloscope().axis(cfg, Dimension.X).show_title

    def test_axes_follow_scale_override(self) -> None:
        scope = Oscilloscope()
        scope.process(self.CFG, [])
        scope.apply_intent(Intent.SCALE_UP, magnitude=10.0)
        assert scope.axis(self.CFG, Dimension.Y).bounds == pytest.approx((-1.6, 1.6))
