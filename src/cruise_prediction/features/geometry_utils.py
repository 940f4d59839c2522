"""
Geometric utility functions for feature extraction.

This module provides the frame conversions shared by the featurizers: world
coordinates to coordinates relative to an object's position and heading, and
angle normalization.
"""

import math
from typing import Sequence, Tuple

import numpy as np


def world_to_relative(
    point: Sequence[float],
    origin_point: Sequence[float],
    origin_heading: float
) -> Tuple[float, float]:
    """
    Convert a world point to the frame of an object.

    The point is translated by the object position, expressed in polar form,
    rotated by the object heading and projected back to Cartesian.

    Args:
        point: (x, y) in world frame
        origin_point: Object (x, y) in world frame
        origin_heading: Object heading in radians

    Returns:
        (s, l) longitudinal and lateral coordinates in object frame
    """
    x_diff = point[0] - origin_point[0]
    y_diff = point[1] - origin_point[1]
    rho = math.hypot(x_diff, y_diff)
    theta = math.atan2(y_diff, x_diff) - origin_heading
    return math.cos(theta) * rho, math.sin(theta) * rho


def relative_to_world(
    relative_point: Sequence[float],
    origin_point: Sequence[float],
    origin_heading: float
) -> Tuple[float, float]:
    """
    Inverse of world_to_relative: rotate back by the heading, then translate back.

    Args:
        relative_point: (s, l) in object frame
        origin_point: Object (x, y) in world frame
        origin_heading: Object heading in radians

    Returns:
        (x, y) in world frame
    """
    cos_h = math.cos(origin_heading)
    sin_h = math.sin(origin_heading)
    s, l = relative_point[0], relative_point[1]
    return (origin_point[0] + cos_h * s - sin_h * l,
            origin_point[1] + sin_h * s + cos_h * l)


def normalize_angle(angle: float) -> float:
    """Wrap angle to (-pi, pi]."""
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def normalize_angle_delta(world_angle: float, origin_heading: float) -> float:
    """
    Express a world angle relative to an object heading.

    Args:
        world_angle: Angle in world frame (rad)
        origin_heading: Object heading (rad)

    Returns:
        Relative angle in (-pi, pi]
    """
    return normalize_angle(world_angle - origin_heading)


def relative_vector(
    vector: Sequence[float],
    origin_point: Sequence[float],
    origin_heading: float
) -> Tuple[float, float]:
    """
    Rotate a free vector (velocity, acceleration) into the object frame.

    world_to_relative also translates, so the transformed origin-at-rest point
    is subtracted from the transformed vector endpoint.

    Args:
        vector: (x, y) vector in world frame
        origin_point: Object (x, y) in world frame
        origin_heading: Object heading in radians

    Returns:
        (s, l) vector components in object frame
    """
    end = world_to_relative(vector, origin_point, origin_heading)
    begin = world_to_relative((0.0, 0.0), origin_point, origin_heading)
    return end[0] - begin[0], end[1] - begin[1]


def compute_mean(values: Sequence[float], start: int, end: int) -> float:
    """
    Mean over the inclusive index window [start, end], clipped to the sequence.

    Args:
        values: Samples
        start: First index
        end: Last index (inclusive)

    Returns:
        Mean of the window, 0.0 if the window is empty
    """
    window = values[start:end + 1]
    if len(window) == 0:
        return 0.0
    return float(np.mean(window))
