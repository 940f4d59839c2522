"""
Interaction features between an obstacle and its neighbors on a lane sequence.

The closest obstacle ahead and the closest obstacle behind are selected from the
nearby obstacles recorded on the lane sequence. Each contributes
[s, l, length, speed] to the feature vector.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from cruise_prediction.config.evaluator_config import EvaluatorConfig
from cruise_prediction.gateway.data_types import LaneSequence, NearbyObstacle
from cruise_prediction.gateway.obstacle_registry import IObstacleRegistry

logger = logging.getLogger(__name__)


@dataclass
class NeighborSelection:
    """Closest neighbors ahead and behind; None when the lane sequence has none."""
    forward: Optional[NearbyObstacle] = None
    backward: Optional[NearbyObstacle] = None


def select_neighbors(lane_sequence: LaneSequence, config: EvaluatorConfig) -> NeighborSelection:
    """
    Pick the nearest forward (s >= 0) and backward (s < 0) obstacles.

    Obstacles farther than the configured default offset are not selected.

    Args:
        lane_sequence: Lane sequence with recorded nearby obstacles
        config: Evaluator configuration

    Returns:
        NeighborSelection
    """
    default_s = config.default_s_if_no_obstacle_in_lane_sequence
    selection = NeighborSelection()

    for nearby_obstacle in lane_sequence.nearby_obstacles:
        if nearby_obstacle.s < 0.0:
            best_s = selection.backward.s if selection.backward else -default_s
            if nearby_obstacle.s > best_s:
                selection.backward = nearby_obstacle
        else:
            best_s = selection.forward.s if selection.forward else default_s
            if nearby_obstacle.s < best_s:
                selection.forward = nearby_obstacle

    return selection


def _neighbor_attributes(neighbor: Optional[NearbyObstacle], obstacle_registry: IObstacleRegistry) -> List[float]:
    """Return [length, speed] of a selected neighbor, zeros if absent or unresolved."""
    if neighbor is None:
        return [0.0, 0.0]

    obstacle = obstacle_registry.get_obstacle(neighbor.id)
    latest = obstacle.latest_feature if obstacle is not None else None
    if latest is None or not latest.is_initialized():
        logger.warning(f"Nearby obstacle [{neighbor.id}] could not be resolved, treating as absent")
        return [0.0, 0.0]

    return [latest.length, latest.speed]


def extract_interaction_features(
    lane_sequence: LaneSequence,
    obstacle_registry: IObstacleRegistry,
    config: EvaluatorConfig
) -> List[float]:
    """
    Build the interaction block of the feature vector.

    Args:
        lane_sequence: Candidate lane sequence
        obstacle_registry: Registry used to resolve neighbor attributes
        config: Evaluator configuration

    Returns:
        [forward_s, forward_l, forward_length, forward_speed,
         backward_s, backward_l, backward_length, backward_speed]
    """
    default_s = config.default_s_if_no_obstacle_in_lane_sequence
    default_l = config.default_l_if_no_obstacle_in_lane_sequence
    selection = select_neighbors(lane_sequence, config)

    feature_values: List[float] = []

    forward = selection.forward
    feature_values.append(forward.s if forward else default_s)
    feature_values.append(forward.l if forward else default_l)
    feature_values.extend(_neighbor_attributes(forward, obstacle_registry))

    backward = selection.backward
    feature_values.append(backward.s if backward else -default_s)
    feature_values.append(backward.l if backward else default_l)
    feature_values.extend(_neighbor_attributes(backward, obstacle_registry))

    return feature_values
