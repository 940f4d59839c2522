"""
Scenario loading - builds an obstacle registry from a YAML scenario file.

Scenario layout:

    frames:                       # oldest first
      - timestamp: 0.1
        obstacles:
          - id: 1
            position: [x, y]
            velocity: [vx, vy]
            acceleration: [ax, ay]
            velocity_heading: 0.0
            speed: 10.0
            length: 4.5
            lane_feature: {lane_l: 0.1, angle_diff: 0.0, dist_to_left_boundary: 1.8,
                           dist_to_right_boundary: 1.7, lane_turn_type: 0}
            lane_graph:
              lane_sequences:
                - lane_sequence_id: 0
                  vehicle_on_lane: true
                  nearby_obstacles: [{id: 2, s: 12.0, l: 0.2}]
                  lane_segments:
                    - lane_id: "lane_1"
                      lane_points: [{position: [x, y], heading: 0.0, kappa: 0.0}]
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml

from .data_types import (
    Feature, LaneFeature, LaneGraph, LanePoint, LaneSegment, LaneSequence, NearbyObstacle
)
from .obstacle_registry import ObstaclesContainer

logger = logging.getLogger(__name__)


def _vector(value: Optional[Any]) -> Optional[np.ndarray]:
    if value is None:
        return None
    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (2,):
        raise ValueError(f"Expected 2D vector, got shape {vec.shape}")
    return vec


def lane_sequence_from_dict(data: Dict[str, Any]) -> LaneSequence:
    segments = [
        LaneSegment(
            lane_id=str(seg.get('lane_id', '')),
            lane_points=[
                LanePoint(
                    position=_vector(pt.get('position')),
                    heading=float(pt.get('heading', 0.0)),
                    kappa=float(pt.get('kappa', 0.0)),
                )
                for pt in seg.get('lane_points', [])
            ],
        )
        for seg in data.get('lane_segments', [])
    ]
    nearby = [
        NearbyObstacle(id=int(obs['id']), s=float(obs['s']), l=float(obs['l']))
        for obs in data.get('nearby_obstacles', [])
    ]
    return LaneSequence(
        lane_sequence_id=int(data.get('lane_sequence_id', 0)),
        lane_segments=segments,
        nearby_obstacles=nearby,
        vehicle_on_lane=bool(data.get('vehicle_on_lane', True)),
    )


def feature_from_dict(data: Dict[str, Any], timestamp: Optional[float] = None) -> Feature:
    """
    Build a feature snapshot from its scenario dictionary.

    Args:
        data: Obstacle entry of a scenario frame
        timestamp: Frame timestamp, used when the entry has none

    Returns:
        Feature snapshot
    """
    lane_feature = None
    if data.get('lane_feature') is not None:
        lane_feature = LaneFeature(**data['lane_feature'])

    lane_graph = None
    if data.get('lane_graph') is not None:
        lane_graph = LaneGraph(lane_sequences=[
            lane_sequence_from_dict(seq) for seq in data['lane_graph'].get('lane_sequences', [])
        ])

    velocity_heading = data.get('velocity_heading')
    return Feature(
        id=int(data['id']),
        timestamp=data.get('timestamp', timestamp),
        position=_vector(data.get('position')),
        velocity=_vector(data.get('velocity')),
        acceleration=_vector(data.get('acceleration')),
        velocity_heading=float(velocity_heading) if velocity_heading is not None else None,
        speed=float(data.get('speed', 0.0)),
        length=float(data.get('length', 0.0)),
        lane_feature=lane_feature,
        lane_graph=lane_graph,
    )


def load_scenario(scenario_path: Union[str, Path], max_history_size: int = 300) -> ObstaclesContainer:
    """
    Load a scenario file into an obstacle registry.

    Args:
        scenario_path: Path to scenario YAML
        max_history_size: History limit per obstacle

    Returns:
        ObstaclesContainer holding every obstacle of the scenario
    """
    with open(scenario_path, 'r') as f:
        scenario = yaml.safe_load(f) or {}

    if 'frames' not in scenario:
        raise ValueError(f"Scenario {scenario_path} has no 'frames' section")

    container = ObstaclesContainer(max_history_size=max_history_size)
    frames = sorted(scenario['frames'], key=lambda frame: frame['timestamp'])
    for frame in frames:
        for obstacle_data in frame.get('obstacles', []):
            container.insert_feature(feature_from_dict(obstacle_data, timestamp=frame['timestamp']))

    logger.info(f"Loaded scenario {scenario_path}: {len(frames)} frames, {len(container)} obstacles")
    return container
