"""
Cruise MLP Evaluator - Lane sequence probabilities for cruising vehicles.

For every candidate lane sequence of an obstacle, this module compiles the
feature vector [obstacle | interaction | lane], packs it into model inputs and
scores it with the go model (vehicle already on the lane) or the cut-in model.
In offline mode the feature vectors are recorded for training instead.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from cruise_prediction.config.evaluator_config import EvaluatorConfig, SINGLE_LANE_FEATURE_SIZE
from cruise_prediction.evaluator.feature_output import FeatureOutput
from cruise_prediction.features.interaction_features import extract_interaction_features
from cruise_prediction.features.lane_features import extract_lane_features
from cruise_prediction.features.obstacle_features import extract_obstacle_features
from cruise_prediction.gateway.data_types import LaneSequence, LaneSequenceResult, Obstacle, OfflineFeature
from cruise_prediction.gateway.feature_sink import IFeatureSink
from cruise_prediction.gateway.obstacle_registry import IObstacleRegistry
from cruise_prediction.network.cruise_model import CruiseModel, ModelLoadError


def vector_to_matrix(values: List[float], start_index: int, end_index: int,
                     num_rows: int = 1, num_cols: Optional[int] = None) -> np.ndarray:
    """
    Copy values[start_index:end_index] into a float32 matrix, filled row by row.

    Args:
        values: Flat feature values
        start_index: First index (inclusive)
        end_index: Last index (exclusive)
        num_rows: Output rows
        num_cols: Output columns (defaults to the slice length for one row)

    Returns:
        (num_rows, num_cols) float32 matrix

    Raises:
        ValueError: If the slice is empty, out of range or does not fit the shape
    """
    if not 0 <= start_index < end_index <= len(values):
        raise ValueError(f"Invalid slice [{start_index}, {end_index}) of {len(values)} values")
    if num_cols is None:
        num_cols = (end_index - start_index) // num_rows
    if end_index - start_index != num_rows * num_cols:
        raise ValueError(
            f"Slice of {end_index - start_index} values does not fit a {num_rows}x{num_cols} matrix"
        )
    return np.asarray(values[start_index:end_index], dtype=np.float32).reshape(num_rows, num_cols)


class CruiseMLPEvaluator:
    """
    Evaluator of lane sequence probabilities for vehicles in cruise.

    Algorithm per obstacle:
    1. Check the latest snapshot has a lane graph with lane sequences
    2. For each lane sequence, extract features and check the vector size
    3. Online: run the go or cut-in model and record probability and time to lane center
       Offline: record the feature vector and hand the snapshot to the feature sink
    """

    def __init__(
        self,
        config: Optional[EvaluatorConfig] = None,
        feature_sink: Optional[IFeatureSink] = None,
        go_model: Optional[CruiseModel] = None,
        cutin_model: Optional[CruiseModel] = None
    ):
        """
        Initialize evaluator and load both cruise models.

        Args:
            config: Evaluator configuration (uses defaults if not provided)
            feature_sink: Sink for offline features (FeatureOutput if not provided)
            go_model: Preloaded go model (loaded from config.go_model_file if not provided)
            cutin_model: Preloaded cut-in model (loaded from config.cutin_model_file if not provided)

        Raises:
            ModelLoadError: If a model cannot be loaded
        """
        self.config = config or EvaluatorConfig()
        self.logger = logging.getLogger(__name__)

        self.feature_sink = feature_sink or FeatureOutput(
            self.config.feature_output_dir, self.config.max_num_dump_feature
        )
        self.go_model, self.cutin_model = self._load_models(go_model, cutin_model)

    def _load_models(self, go_model: Optional[CruiseModel],
                     cutin_model: Optional[CruiseModel]) -> Tuple[CruiseModel, CruiseModel]:
        self.logger.info("Start loading cruise models")
        try:
            if go_model is None:
                go_model = CruiseModel.load(self.config.go_model_file, self.config.device)
                self.logger.info(f"Succeeded in loading go model: {self.config.go_model_file}")
            if cutin_model is None:
                cutin_model = CruiseModel.load(self.config.cutin_model_file, self.config.device)
                self.logger.info(f"Succeeded in loading cut-in model: {self.config.cutin_model_file}")
        except ModelLoadError as e:
            self.logger.error(f"Failed to load cruise models: {e}")
            raise
        return go_model, cutin_model

    def evaluate(self, obstacle: Obstacle, obstacle_registry: IObstacleRegistry) -> None:
        """
        Evaluate every lane sequence of an obstacle and write the results onto them.

        Args:
            obstacle: Obstacle to evaluate
            obstacle_registry: Registry used to resolve nearby obstacles
        """
        latest_feature = obstacle.latest_feature
        if latest_feature is None or not latest_feature.is_initialized():
            self.logger.error(f"Obstacle [{obstacle.id}] has no latest feature.")
            return

        lane_graph = latest_feature.lane_graph
        if lane_graph is None:
            self.logger.debug(f"Obstacle [{obstacle.id}] has no lane graph.")
            return
        if not lane_graph.lane_sequences:
            self.logger.error(f"Obstacle [{obstacle.id}] has no lane sequences.")
            return

        self.logger.debug(f"There are {len(lane_graph.lane_sequences)} lane sequences for obstacle [{obstacle.id}]")
        for lane_sequence in lane_graph.lane_sequences:
            result = self.evaluate_lane_sequence(obstacle, lane_sequence, obstacle_registry)
            if result is not None:
                result.apply_to(lane_sequence)

        if self.config.offline_mode:
            self.feature_sink.insert(latest_feature)
            self.logger.debug(f"Insert cruise feature of obstacle [{obstacle.id}] into feature output")

    def evaluate_lane_sequence(
        self,
        obstacle: Obstacle,
        lane_sequence: LaneSequence,
        obstacle_registry: IObstacleRegistry
    ) -> Optional[LaneSequenceResult]:
        """
        Score one lane sequence.

        Args:
            obstacle: Obstacle being evaluated
            lane_sequence: Candidate lane sequence
            obstacle_registry: Registry used to resolve nearby obstacles

        Returns:
            LaneSequenceResult, probability 0 on a feature size mismatch;
            None in offline mode
        """
        feature_values = self.extract_feature_values(obstacle, lane_sequence, obstacle_registry)
        if len(feature_values) != self.config.feature_vector_size:
            self.logger.debug(
                f"Skip lane sequence [{lane_sequence.lane_sequence_id}] due to incorrect feature size "
                f"{len(feature_values)} != {self.config.feature_vector_size}"
            )
            return LaneSequenceResult(probability=0.0)

        if self.config.offline_mode:
            return None

        lane_feature_mat, obs_feature_mat = self.pack_model_inputs(feature_values)
        model = self.go_model if lane_sequence.vehicle_on_lane else self.cutin_model
        model_output = model.run([lane_feature_mat, obs_feature_mat])

        probability = float(model_output[0, 0])
        finish_time = float(model_output[0, 1])
        self.logger.debug(
            f"Lane sequence [{lane_sequence.lane_sequence_id}] of obstacle [{obstacle.id}]: "
            f"probability={probability:.3f}, time_to_lane_center={finish_time:.2f}s"
        )
        return LaneSequenceResult(probability=probability, time_to_lane_center=finish_time)

    def extract_feature_values(
        self,
        obstacle: Obstacle,
        lane_sequence: LaneSequence,
        obstacle_registry: IObstacleRegistry
    ) -> List[float]:
        """
        Concatenate obstacle, interaction and lane features.

        Stops at the first block with an unexpected size, leaving a vector of
        the wrong total length.

        Args:
            obstacle: Obstacle being evaluated
            lane_sequence: Candidate lane sequence
            obstacle_registry: Registry used to resolve nearby obstacles

        Returns:
            Feature values
        """
        feature_values: List[float] = []

        obstacle_feature_values = extract_obstacle_features(obstacle, self.config)
        if len(obstacle_feature_values) != self.config.obstacle_feature_size:
            self.logger.debug(
                f"Obstacle [{obstacle.id}] has {len(obstacle_feature_values)} obstacle feature values, "
                f"expected {self.config.obstacle_feature_size}."
            )
            return feature_values
        feature_values.extend(obstacle_feature_values)

        interaction_feature_values = extract_interaction_features(lane_sequence, obstacle_registry, self.config)
        feature_values.extend(interaction_feature_values)

        lane_feature_values = extract_lane_features(obstacle, lane_sequence, self.config)
        if len(lane_feature_values) != self.config.lane_feature_size:
            self.logger.debug(
                f"Obstacle [{obstacle.id}] has {len(lane_feature_values)} lane feature values, "
                f"expected {self.config.lane_feature_size}."
            )
            return feature_values
        feature_values.extend(lane_feature_values)

        if self.config.offline_mode:
            obstacle.latest_feature.offline_features.append(
                OfflineFeature(lane_sequence_id=lane_sequence.lane_sequence_id, values=list(feature_values))
            )
            self.logger.debug(
                f"Save cruise mlp features for obstacle [{obstacle.id}] with dim [{len(feature_values)}]"
            )

        return feature_values

    def pack_model_inputs(self, feature_values: List[float]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Split a feature vector into model inputs.

        Args:
            feature_values: Full feature vector

        Returns:
            (lane matrix of shape (4, lane_points_size),
             obstacle matrix of shape (1, obstacle + interaction size))
        """
        obs_end = self.config.model_obstacle_input_size
        obs_feature_mat = vector_to_matrix(feature_values, 0, obs_end)
        lane_feature_mat = vector_to_matrix(
            feature_values, obs_end, len(feature_values),
            SINGLE_LANE_FEATURE_SIZE, self.config.lane_points_size
        )
        return lane_feature_mat, obs_feature_mat
