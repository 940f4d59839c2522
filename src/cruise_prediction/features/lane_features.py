"""
Lane geometry features.

Lane points of a candidate lane sequence are expressed in the frame of the
obstacle's latest snapshot, 4 values per point:
[relative_l, relative_s, relative_heading, kappa].
"""

import logging
from typing import List

from cruise_prediction.config.evaluator_config import EvaluatorConfig, SINGLE_LANE_FEATURE_SIZE
from cruise_prediction.gateway.data_types import LaneSequence, Obstacle
from cruise_prediction.features.geometry_utils import normalize_angle_delta, world_to_relative

logger = logging.getLogger(__name__)


def extract_lane_features(obstacle: Obstacle, lane_sequence: LaneSequence, config: EvaluatorConfig) -> List[float]:
    """
    Build the lane block of the feature vector.

    Args:
        obstacle: Obstacle whose latest snapshot sets the reference frame
        lane_sequence: Candidate lane sequence
        config: Evaluator configuration

    Returns:
        config.lane_feature_size values; fewer if the obstacle has no
        position or the lane sequence has fewer than two usable points
    """
    feature_values: List[float] = []
    target_size = config.lane_feature_size

    feature = obstacle.latest_feature
    if feature is None or not feature.is_initialized():
        logger.debug(f"Obstacle [{obstacle.id}] has no latest feature.")
        return feature_values
    if feature.position is None:
        logger.debug(f"Obstacle [{obstacle.id}] has no position.")
        return feature_values

    heading = feature.velocity_heading if feature.velocity_heading is not None else 0.0

    for lane_segment in lane_sequence.lane_segments:
        if len(feature_values) >= target_size:
            break
        for lane_point in lane_segment.lane_points:
            if len(feature_values) >= target_size:
                break
            if lane_point.position is None:
                logger.error(f"Lane point on lane [{lane_segment.lane_id}] has no position.")
                continue

            relative_s, relative_l = world_to_relative(lane_point.position, feature.position, heading)
            relative_ang = normalize_angle_delta(lane_point.heading, heading)

            feature_values.extend([relative_l, relative_s, relative_ang, lane_point.kappa])

    return extrapolate_lane_features(feature_values, target_size)


def extrapolate_lane_features(feature_values: List[float], target_size: int) -> List[float]:
    """
    Linearly extend lane point tuples up to target_size.

    Each new tuple continues l and s along the difference of the last two
    tuples, keeps the last heading and has zero curvature. Nothing is added
    unless two full tuples are available.

    Args:
        feature_values: Flattened [l, s, heading, kappa] tuples (modified in place)
        target_size: Required number of values

    Returns:
        The extended feature_values
    """
    step = SINGLE_LANE_FEATURE_SIZE
    size = len(feature_values)
    while 2 * step <= size < target_size:
        last = feature_values[size - step:size]
        prev = feature_values[size - 2 * step:size - step]

        relative_l_new = 2 * last[0] - prev[0]
        relative_s_new = 2 * last[1] - prev[1]
        relative_ang_new = last[2]

        feature_values.extend([relative_l_new, relative_s_new, relative_ang_new, 0.0])
        size = len(feature_values)

    return feature_values
