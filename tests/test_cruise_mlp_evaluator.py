# tests/test_cruise_mlp_evaluator.py
from __future__ import annotations

import dataclasses

import numpy as np
import pytest
import torch

from cruise_prediction.config.evaluator_config import EvaluatorConfig
from cruise_prediction.evaluator.cruise_mlp_evaluator import CruiseMLPEvaluator, vector_to_matrix
from cruise_prediction.gateway.data_types import LaneGraph
from cruise_prediction.network.cruise_model import CruiseModel, ModelLoadError

# Latest position of the default 10-frame history is (9, 0) heading +x
LANE_POINTS = [(10.0, 0.0, 0.0, 0.0), (11.0, 0.1, 0.05, 0.01), (12.0, 0.3, 0.1, 0.02), (13.0, 0.6, 0.15, 0.02)]
NEIGHBORS = [(2, 5.0, 0.5), (3, -3.0, 0.2)]


@pytest.fixture()
def make_obstacle(history_factory, lane_sequence_factory, obstacle_factory):
    def _make(lane_sequences=None, num_frames: int = 10, lane_frames: int = 8):
        history = history_factory(num_frames, lane_frames=lane_frames)
        if lane_sequences is None:
            lane_sequences = [lane_sequence_factory(LANE_POINTS, nearby=NEIGHBORS)]
        history[0].lane_graph = LaneGraph(lane_sequences=lane_sequences)
        return obstacle_factory(history)
    return _make


@pytest.fixture()
def evaluator(small_config, feature_sink, go_model, cutin_model) -> CruiseMLPEvaluator:
    return CruiseMLPEvaluator(small_config, feature_sink=feature_sink, go_model=go_model, cutin_model=cutin_model)


def test_on_lane_sequence_scored_by_go_model(evaluator, make_obstacle, registry, go_model, cutin_model) -> None:
    obstacle = make_obstacle()

    evaluator.evaluate(obstacle, registry)

    lane_sequence = obstacle.latest_feature.lane_graph.lane_sequences[0]
    assert lane_sequence.probability == pytest.approx(0.8)
    assert lane_sequence.time_to_lane_center == pytest.approx(2.5)
    assert len(go_model.calls) == 1
    assert cutin_model.calls == []

    lane_matrix, obs_matrix = go_model.calls[0]
    assert lane_matrix.shape == (4, 4)
    assert obs_matrix.shape == (1, 31)
    assert obs_matrix.dtype == np.float32
    np.testing.assert_allclose(obs_matrix[0, 23:], [5.0, 0.5, 4.0, 7.0, -3.0, 0.2, 5.0, 9.0], rtol=1e-6)
    # Lane values are laid out row by row: [l, s, heading, kappa] of each point
    np.testing.assert_allclose(lane_matrix[0], [0.0, 1.0, 0.0, 0.0], atol=1e-6)
    np.testing.assert_allclose(lane_matrix[3], [0.6, 4.0, 0.15, 0.02], atol=1e-6)


def test_feature_vector_layout(evaluator, make_obstacle, registry) -> None:
    obstacle = make_obstacle()
    lane_sequence = obstacle.latest_feature.lane_graph.lane_sequences[0]

    values = evaluator.extract_feature_values(obstacle, lane_sequence, registry)

    assert len(values) == 47
    assert values[23:31] == pytest.approx([5.0, 0.5, 4.0, 7.0, -3.0, 0.2, 5.0, 9.0])
    assert values[31:35] == pytest.approx([0.0, 1.0, 0.0, 0.0], abs=1e-9)


def test_history_window_widens_obstacle_input(
    make_obstacle, registry, feature_sink, go_model, cutin_model
) -> None:
    config = EvaluatorConfig(historical_frame_length=5, lane_points_size=4)
    evaluator = CruiseMLPEvaluator(config, feature_sink=feature_sink, go_model=go_model, cutin_model=cutin_model)
    obstacle = make_obstacle()
    lane_sequence = obstacle.latest_feature.lane_graph.lane_sequences[0]

    assert len(evaluator.extract_feature_values(obstacle, lane_sequence, registry)) == 92
    evaluator.evaluate(obstacle, registry)

    lane_matrix, obs_matrix = go_model.calls[0]
    assert lane_matrix.shape == (4, 4)
    assert obs_matrix.shape == (1, 76)


def test_cutin_model_for_off_lane_sequence(
    evaluator, make_obstacle, lane_sequence_factory, registry, go_model, cutin_model
) -> None:
    obstacle = make_obstacle([
        lane_sequence_factory(LANE_POINTS, lane_sequence_id=0),
        lane_sequence_factory(LANE_POINTS, vehicle_on_lane=False, lane_sequence_id=1),
    ])

    evaluator.evaluate(obstacle, registry)

    on_lane, off_lane = obstacle.latest_feature.lane_graph.lane_sequences
    assert on_lane.probability == pytest.approx(0.8)
    assert off_lane.probability == pytest.approx(0.3)
    assert off_lane.time_to_lane_center == pytest.approx(4.0)
    assert len(go_model.calls) == 1
    assert len(cutin_model.calls) == 1


def test_size_mismatch_sets_zero_probability(
    evaluator, make_obstacle, lane_sequence_factory, registry, go_model
) -> None:
    short = lane_sequence_factory(LANE_POINTS[:1], lane_sequence_id=0)
    short.probability = 0.9
    short.time_to_lane_center = 1.0
    full = lane_sequence_factory(LANE_POINTS, lane_sequence_id=1)
    obstacle = make_obstacle([short, full])

    evaluator.evaluate(obstacle, registry)

    assert short.probability == 0.0
    assert short.time_to_lane_center == 1.0
    assert full.probability == pytest.approx(0.8)
    assert len(go_model.calls) == 1


def test_no_lane_history_sets_zero_probability(evaluator, make_obstacle, registry, go_model) -> None:
    obstacle = make_obstacle(lane_frames=0)

    evaluator.evaluate(obstacle, registry)

    assert obstacle.latest_feature.lane_graph.lane_sequences[0].probability == 0.0
    assert go_model.calls == []


def test_guards_leave_obstacle_untouched(
    evaluator, make_obstacle, history_factory, obstacle_factory, registry, go_model, feature_sink
) -> None:
    evaluator.evaluate(obstacle_factory([]), registry)

    no_graph = obstacle_factory(history_factory(5))
    evaluator.evaluate(no_graph, registry)

    empty_graph = make_obstacle([])
    evaluator.evaluate(empty_graph, registry)

    uninitialized = make_obstacle()
    uninitialized.latest_feature.timestamp = None
    evaluator.evaluate(uninitialized, registry)

    assert uninitialized.latest_feature.lane_graph.lane_sequences[0].probability == 0.0
    assert go_model.calls == []
    assert feature_sink.records == []


def test_offline_mode_records_features(
    small_config, make_obstacle, registry, feature_sink, go_model, cutin_model
) -> None:
    config = dataclasses.replace(small_config, offline_mode=True)
    evaluator = CruiseMLPEvaluator(config, feature_sink=feature_sink, go_model=go_model, cutin_model=cutin_model)
    obstacle = make_obstacle()
    lane_sequence = obstacle.latest_feature.lane_graph.lane_sequences[0]
    lane_sequence.probability = 0.4

    evaluator.evaluate(obstacle, registry)
    evaluator.evaluate(obstacle, registry)

    assert go_model.calls == [] and cutin_model.calls == []
    assert lane_sequence.probability == 0.4
    assert [len(record.offline_features) for record in feature_sink.records] == [1, 2]
    offline = feature_sink.records[0].offline_features[0]
    assert offline.lane_sequence_id == 0
    assert len(offline.values) == 47


def test_missing_model_file_raises(tmp_path, small_config, feature_sink, cutin_model) -> None:
    config = dataclasses.replace(small_config, go_model_file=str(tmp_path / "missing.pt"))

    with pytest.raises(ModelLoadError):
        CruiseMLPEvaluator(config, feature_sink=feature_sink, cutin_model=cutin_model)


def test_trained_checkpoints_end_to_end(tmp_path, small_config, feature_sink, make_obstacle, registry) -> None:
    torch.manual_seed(0)
    for name in ("go.pt", "cutin.pt"):
        CruiseModel(obstacle_feature_size=31, lane_points_size=4, hidden_size=16).save(str(tmp_path / name))
    config = dataclasses.replace(
        small_config, go_model_file=str(tmp_path / "go.pt"), cutin_model_file=str(tmp_path / "cutin.pt")
    )
    evaluator = CruiseMLPEvaluator(config, feature_sink=feature_sink)
    obstacle = make_obstacle()

    evaluator.evaluate(obstacle, registry)

    lane_sequence = obstacle.latest_feature.lane_graph.lane_sequences[0]
    assert 0.0 <= lane_sequence.probability <= 1.0
    assert lane_sequence.time_to_lane_center >= 0.0


def test_vector_to_matrix() -> None:
    values = [float(i) for i in range(10)]

    matrix = vector_to_matrix(values, 2, 10, num_rows=2, num_cols=4)

    assert matrix.dtype == np.float32
    np.testing.assert_array_equal(matrix, [[2, 3, 4, 5], [6, 7, 8, 9]])
    assert vector_to_matrix(values, 0, 3).shape == (1, 3)


@pytest.mark.parametrize("start, end, rows, cols", [(0, 11, 1, None), (5, 5, 1, None), (0, 9, 2, 4)])
def test_vector_to_matrix_rejects_bad_slices(start, end, rows, cols) -> None:
    with pytest.raises(ValueError):
        vector_to_matrix([0.0] * 10, start, end, num_rows=rows, num_cols=cols)
