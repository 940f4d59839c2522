"""
Configuration dataclass for the cruise MLP evaluator.

This module centralizes all evaluator-related configuration parameters and the
feature-vector size contract shared with the trained cruise models.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Feature vector layout (binding contract with the trained models)
LEGACY_OBSTACLE_FEATURE_SIZE = 23
HISTORY_FRAME_FEATURE_SIZE = 9
INTERACTION_FEATURE_SIZE = 8
SINGLE_LANE_FEATURE_SIZE = 4


@dataclass
class EvaluatorConfig:
    """Configuration for cruise MLP evaluator."""

    # Obstacle history
    historical_frame_length: int = 5
    trajectory_time_length: float = 6.0  # seconds

    # Interaction defaults when no obstacle is found on the lane sequence
    default_s_if_no_obstacle_in_lane_sequence: float = 1000.0
    default_l_if_no_obstacle_in_lane_sequence: float = 10.0

    # Lane geometry
    lane_points_size: int = 20

    # Guard for rate computations
    double_precision: float = 1e-6

    # Online (score with models) vs offline (dump features)
    offline_mode: bool = False

    # Models
    go_model_file: str = "models/cruise_go_vehicle_model.pt"
    cutin_model_file: str = "models/cruise_cutin_vehicle_model.pt"
    device: str = "cpu"

    # Offline feature output
    feature_output_dir: str = "data/features"
    max_num_dump_feature: int = 1000

    @property
    def obstacle_feature_size(self) -> int:
        """Legacy statistics followed by the windowed relative kinematics."""
        return LEGACY_OBSTACLE_FEATURE_SIZE + HISTORY_FRAME_FEATURE_SIZE * self.historical_frame_length

    @property
    def lane_feature_size(self) -> int:
        return SINGLE_LANE_FEATURE_SIZE * self.lane_points_size

    @property
    def model_obstacle_input_size(self) -> int:
        """Length of the obstacle row vector fed to the model (obstacle + interaction)."""
        return self.obstacle_feature_size + INTERACTION_FEATURE_SIZE

    @property
    def feature_vector_size(self) -> int:
        return self.obstacle_feature_size + INTERACTION_FEATURE_SIZE + self.lane_feature_size

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> 'EvaluatorConfig':
        """
        Load configuration from the 'evaluator' section of a YAML file.

        Args:
            config_path: Path to cruise_config.yaml (defaults to config/cruise_config.yaml)

        Returns:
            EvaluatorConfig with file values overriding defaults
        """
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent.parent / "config" / "cruise_config.yaml"

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
            logger.info(f"Loaded config from {config_path}")
        except FileNotFoundError:
            logger.warning(f"Config not found at {config_path}, using defaults")
            return cls()

        section = config.get('evaluator', {}) or {}
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown evaluator config keys: {sorted(unknown)}")

        return cls(**section)
