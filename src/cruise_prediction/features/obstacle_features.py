"""
Obstacle history features.

Aggregates an obstacle's recent history into the obstacle block of the cruise
feature vector:

- 23 legacy lane-relative statistics (heading and lateral offset trends,
  speed/acceleration/jerk, lane boundary distances, lane turn type)
- a window of per-frame kinematics in the frame of the latest snapshot,
  9 values per slot: [has_history, pos_x, pos_y, vel_x, vel_y, acc_x, acc_y,
  heading, heading_rate]
"""

import logging
import sys
from typing import List, Tuple

from cruise_prediction.config.evaluator_config import EvaluatorConfig
from cruise_prediction.gateway.data_types import Obstacle
from cruise_prediction.features.geometry_utils import (
    compute_mean, normalize_angle_delta, relative_vector, world_to_relative
)

logger = logging.getLogger(__name__)

# Number of most recent samples forming one statistics window
CURR_SIZE = 5

NUM_LANE_TURN_TYPES = 4

MACHINE_EPSILON = sys.float_info.epsilon


def extract_obstacle_features(obstacle: Obstacle, config: EvaluatorConfig) -> List[float]:
    """
    Build the obstacle block of the feature vector.

    Args:
        obstacle: Obstacle with history ordered newest first
        config: Evaluator configuration

    Returns:
        config.obstacle_feature_size values, or an empty list if no snapshot
        in the time horizon carries lane information
    """
    latest = obstacle.latest_feature
    if latest is None or not latest.is_initialized():
        logger.debug(f"Obstacle [{obstacle.id}] has no latest feature.")
        return []

    frame_length = config.historical_frame_length

    thetas: List[float] = []
    lane_ls: List[float] = []
    dist_lbs: List[float] = []
    dist_rbs: List[float] = []
    lane_types: List[int] = []
    speeds: List[float] = []
    timestamps: List[float] = []

    has_history = [1.0] * frame_length
    pos_history: List[Tuple[float, float]] = [(0.0, 0.0)] * frame_length
    vel_history: List[Tuple[float, float]] = [(0.0, 0.0)] * frame_length
    acc_history: List[Tuple[float, float]] = [(0.0, 0.0)] * frame_length
    heading_history = [0.0] * frame_length
    heading_rate_history = [0.0] * frame_length

    # Relative coordinate system of the latest snapshot
    curr_heading = latest.velocity_heading if latest.velocity_heading is not None else 0.0
    curr_pos = tuple(latest.position) if latest.position is not None else (0.0, 0.0)
    history_start_time = obstacle.timestamp - config.trajectory_time_length
    prev_timestamp = latest.timestamp

    logger.debug(f"Obstacle [{obstacle.id}] has {obstacle.history_size} history timestamps.")
    for i, feature in enumerate(obstacle.history):
        if not feature.is_initialized():
            continue
        if feature.timestamp < history_start_time:
            break

        # Lane-relative samples for the legacy statistics
        lane_feature = feature.lane_feature
        if lane_feature is not None:
            thetas.append(lane_feature.angle_diff)
            lane_ls.append(lane_feature.lane_l)
            dist_lbs.append(lane_feature.dist_to_left_boundary)
            dist_rbs.append(lane_feature.dist_to_right_boundary)
            lane_types.append(lane_feature.lane_turn_type)
            timestamps.append(feature.timestamp)
            speeds.append(feature.speed)

        # Windowed kinematics in the relative frame
        if i >= frame_length:
            continue
        if i != 0 and has_history[i - 1] == 0.0:
            has_history[i] = 0.0
            continue

        if feature.position is not None:
            pos_history[i] = world_to_relative(feature.position, curr_pos, curr_heading)
        else:
            has_history[i] = 0.0

        if feature.velocity is not None:
            vel_history[i] = relative_vector(feature.velocity, curr_pos, curr_heading)
        else:
            has_history[i] = 0.0

        if feature.acceleration is not None:
            acc_history[i] = relative_vector(feature.acceleration, curr_pos, curr_heading)
        else:
            has_history[i] = 0.0

        if feature.velocity_heading is not None:
            heading_history[i] = normalize_angle_delta(feature.velocity_heading, curr_heading)
            if i != 0:
                heading_rate_history[i] = (
                    (heading_history[i - 1] - heading_history[i]) /
                    (config.double_precision + feature.timestamp - prev_timestamp)
                )
                prev_timestamp = feature.timestamp
        else:
            has_history[i] = 0.0

    if not timestamps:
        logger.debug(f"Obstacle [{obstacle.id}] has no feature with lane info.")
        return []

    # Slots reached past a skipped or truncated snapshot inherit the gap
    for i in range(1, frame_length):
        if has_history[i - 1] == 0.0 and has_history[i] != 0.0:
            has_history[i] = 0.0
            pos_history[i] = vel_history[i] = acc_history[i] = (0.0, 0.0)
            heading_history[i] = heading_rate_history[i] = 0.0

    feature_values = _legacy_features(
        thetas, lane_ls, dist_lbs, dist_rbs, lane_types, speeds, timestamps,
        hist_size=obstacle.history_size
    )

    for i in range(frame_length):
        feature_values.extend([
            has_history[i],
            pos_history[i][0], pos_history[i][1],
            vel_history[i][0], vel_history[i][1],
            acc_history[i][0], acc_history[i][1],
            heading_history[i],
            heading_rate_history[i],
        ])

    return feature_values


def _legacy_features(
    thetas: List[float],
    lane_ls: List[float],
    dist_lbs: List[float],
    dist_rbs: List[float],
    lane_types: List[int],
    speeds: List[float],
    timestamps: List[float],
    hist_size: int
) -> List[float]:
    """
    Compute the 23 lane-relative statistics from samples ordered newest first.

    Windowed differences compare the most recent CURR_SIZE samples against the
    CURR_SIZE before them, and need hist_size (the full history length) to
    cover both windows.
    """
    theta_mean = compute_mean(thetas, 0, hist_size - 1)
    theta_filtered = compute_mean(thetas, 0, CURR_SIZE - 1)
    lane_l_mean = compute_mean(lane_ls, 0, hist_size - 1)
    lane_l_filtered = compute_mean(lane_ls, 0, CURR_SIZE - 1)
    speed_mean = compute_mean(speeds, 0, hist_size - 1)

    time_diff = timestamps[0] - timestamps[-1]
    dist_lb_rate = 0.0
    dist_rb_rate = 0.0
    if len(timestamps) > 1 and time_diff > MACHINE_EPSILON:
        dist_lb_rate = (dist_lbs[0] - dist_lbs[-1]) / time_diff
        dist_rb_rate = (dist_rbs[0] - dist_rbs[-1]) / time_diff

    delta_t = 0.0
    if len(timestamps) > 1:
        delta_t = time_diff / (len(timestamps) - 1)

    has_two_windows = hist_size >= 2 * CURR_SIZE

    angle_curr = compute_mean(thetas, 0, CURR_SIZE - 1)
    angle_prev = compute_mean(thetas, CURR_SIZE, 2 * CURR_SIZE - 1)
    angle_diff = angle_curr - angle_prev if has_two_windows else 0.0

    lane_l_curr = compute_mean(lane_ls, 0, CURR_SIZE - 1)
    lane_l_prev = compute_mean(lane_ls, CURR_SIZE, 2 * CURR_SIZE - 1)
    lane_l_diff = lane_l_curr - lane_l_prev if has_two_windows else 0.0

    angle_diff_rate = 0.0
    lane_l_diff_rate = 0.0
    if delta_t > MACHINE_EPSILON:
        angle_diff_rate = angle_diff / (delta_t * CURR_SIZE)
        lane_l_diff_rate = lane_l_diff / (delta_t * CURR_SIZE)

    acc = 0.0
    jerk = 0.0
    if len(speeds) >= 3 * CURR_SIZE and delta_t > MACHINE_EPSILON:
        speed_1st_recent = compute_mean(speeds, 0, CURR_SIZE - 1)
        speed_2nd_recent = compute_mean(speeds, CURR_SIZE, 2 * CURR_SIZE - 1)
        speed_3rd_recent = compute_mean(speeds, 2 * CURR_SIZE, 3 * CURR_SIZE - 1)
        acc = (speed_1st_recent - speed_2nd_recent) / (CURR_SIZE * delta_t)
        jerk = ((speed_1st_recent - 2 * speed_2nd_recent + speed_3rd_recent) /
                (CURR_SIZE * CURR_SIZE * delta_t * delta_t))

    dist_lb_rate_curr = 0.0
    dist_rb_rate_curr = 0.0
    if has_two_windows and delta_t > MACHINE_EPSILON:
        dist_lb_curr = compute_mean(dist_lbs, 0, CURR_SIZE - 1)
        dist_lb_prev = compute_mean(dist_lbs, CURR_SIZE, 2 * CURR_SIZE - 1)
        dist_lb_rate_curr = (dist_lb_curr - dist_lb_prev) / (CURR_SIZE * delta_t)

        dist_rb_curr = compute_mean(dist_rbs, 0, CURR_SIZE - 1)
        dist_rb_prev = compute_mean(dist_rbs, CURR_SIZE, 2 * CURR_SIZE - 1)
        dist_rb_rate_curr = (dist_rb_curr - dist_rb_prev) / (CURR_SIZE * delta_t)

    lane_type_one_hot = [1.0 if lane_types[0] == code else 0.0 for code in range(NUM_LANE_TURN_TYPES)]

    feature_values = [
        theta_filtered, theta_mean, theta_filtered - theta_mean, angle_diff, angle_diff_rate,
        lane_l_filtered, lane_l_mean, lane_l_filtered - lane_l_mean, lane_l_diff, lane_l_diff_rate,
        speed_mean, acc, jerk,
        dist_lbs[0], dist_lb_rate, dist_lb_rate_curr,
        dist_rbs[0], dist_rb_rate, dist_rb_rate_curr,
    ] + lane_type_one_hot

    return feature_values
