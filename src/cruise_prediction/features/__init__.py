"""
Feature extraction for the cruise MLP evaluator.
"""

from .geometry_utils import world_to_relative, relative_to_world, normalize_angle, normalize_angle_delta
from .obstacle_features import extract_obstacle_features
from .interaction_features import extract_interaction_features, select_neighbors, NeighborSelection
from .lane_features import extract_lane_features, extrapolate_lane_features

__all__ = [
    'world_to_relative', 'relative_to_world', 'normalize_angle', 'normalize_angle_delta',
    'extract_obstacle_features',
    'extract_interaction_features', 'select_neighbors', 'NeighborSelection',
    'extract_lane_features', 'extrapolate_lane_features'
]
