"""
Gateway module for the cruise prediction evaluator.

This module provides the data model and the abstraction layer between the
evaluator and its collaborators: the obstacle registry that owns tracked
history, and the sink that persists offline training features.
"""

from .obstacle_registry import IObstacleRegistry, ObstaclesContainer
from .feature_sink import IFeatureSink
from .scenario_io import load_scenario, feature_from_dict
from .data_types import (
    Feature, LaneFeature, LanePoint, LaneSegment, LaneSequence, LaneGraph,
    NearbyObstacle, Obstacle, OfflineFeature, LaneSequenceResult
)

__all__ = [
    # Collaborator interfaces
    'IObstacleRegistry', 'ObstaclesContainer', 'IFeatureSink',
    # Scenario loading
    'load_scenario', 'feature_from_dict',
    # Data types
    'Feature', 'LaneFeature', 'LanePoint', 'LaneSegment', 'LaneSequence', 'LaneGraph',
    'NearbyObstacle', 'Obstacle', 'OfflineFeature', 'LaneSequenceResult'
]
