# tests/test_config.py
from __future__ import annotations

import pytest

from cruise_prediction.config import EvaluatorConfig


def test_shipped_config_matches_defaults(project_root) -> None:
    config = EvaluatorConfig.from_yaml(project_root / "config" / "cruise_config.yaml")
    assert config == EvaluatorConfig()


def test_default_path_loads_shipped_config() -> None:
    assert EvaluatorConfig.from_yaml() == EvaluatorConfig()


def test_partial_override(tmp_path) -> None:
    path = tmp_path / "cruise.yaml"
    path.write_text("evaluator:\n  historical_frame_length: 0\n  lane_points_size: 4\n")

    config = EvaluatorConfig.from_yaml(path)

    assert config.historical_frame_length == 0
    assert config.lane_points_size == 4
    assert config.trajectory_time_length == 6.0
    assert config.feature_vector_size == 47
    assert config.model_obstacle_input_size == 31


def test_missing_file_uses_defaults(tmp_path) -> None:
    assert EvaluatorConfig.from_yaml(tmp_path / "nope.yaml") == EvaluatorConfig()


def test_unknown_key_rejected(tmp_path) -> None:
    path = tmp_path / "cruise.yaml"
    path.write_text("evaluator:\n  lane_point_size: 4\n")

    with pytest.raises(ValueError, match="lane_point_size"):
        EvaluatorConfig.from_yaml(path)


def test_default_sizes() -> None:
    config = EvaluatorConfig()
    assert config.obstacle_feature_size == 68
    assert config.lane_feature_size == 80
    assert config.feature_vector_size == 156
