# tests/conftest.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

import numpy as np
import pytest

# Ensure src/ is on sys.path for test runtime
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from cruise_prediction.config.evaluator_config import EvaluatorConfig  # noqa: E402
from cruise_prediction.gateway.data_types import (  # noqa: E402
    Feature, LaneFeature, LanePoint, LaneSegment, LaneSequence, NearbyObstacle, Obstacle
)
from cruise_prediction.gateway.obstacle_registry import ObstaclesContainer  # noqa: E402

from fakes import FakeCruiseModel, RecordingFeatureSink  # noqa: E402


def make_feature(
    obstacle_id: int = 1,
    timestamp: Optional[float] = 0.0,
    position: Optional[Sequence[float]] = (0.0, 0.0),
    velocity: Optional[Sequence[float]] = (10.0, 0.0),
    acceleration: Optional[Sequence[float]] = (0.0, 0.0),
    velocity_heading: Optional[float] = 0.0,
    speed: float = 10.0,
    length: float = 4.5,
    lane_feature: Optional[LaneFeature] = None,
) -> Feature:
    return Feature(
        id=obstacle_id,
        timestamp=timestamp,
        position=np.array(position, dtype=float) if position is not None else None,
        velocity=np.array(velocity, dtype=float) if velocity is not None else None,
        acceleration=np.array(acceleration, dtype=float) if acceleration is not None else None,
        velocity_heading=velocity_heading,
        speed=speed,
        length=length,
        lane_feature=lane_feature,
    )


def make_history(
    num_frames: int,
    dt: float = 0.1,
    speed: float = 10.0,
    lane_frames: Optional[int] = None,
    obstacle_id: int = 1,
) -> list[Feature]:
    """Straight-line history along +x, newest first; the newest lane_frames carry lane info."""
    if lane_frames is None:
        lane_frames = num_frames
    history = []
    latest_t = round((num_frames - 1) * dt, 6)
    for k in range(num_frames):
        t = round(latest_t - k * dt, 6)
        lane_feature = None
        if k < lane_frames:
            lane_feature = LaneFeature(
                lane_l=0.2, angle_diff=0.0,
                dist_to_left_boundary=1.0 + 0.1 * k, dist_to_right_boundary=2.5 - 0.1 * k,
                lane_turn_type=0,
            )
        history.append(make_feature(
            obstacle_id=obstacle_id, timestamp=t, position=(speed * t, 0.0),
            velocity=(speed, 0.0), speed=speed, lane_feature=lane_feature,
        ))
    return history


def make_lane_sequence(
    points: Sequence[Sequence[float]],
    nearby: Sequence[tuple] = (),
    vehicle_on_lane: bool = True,
    lane_sequence_id: int = 0,
) -> LaneSequence:
    """Lane sequence from (x, y, heading, kappa) points and (id, s, l) neighbors."""
    lane_points = [
        LanePoint(position=np.array([x, y], dtype=float), heading=heading, kappa=kappa)
        for x, y, heading, kappa in points
    ]
    return LaneSequence(
        lane_sequence_id=lane_sequence_id,
        lane_segments=[LaneSegment(lane_id="lane_0", lane_points=lane_points)],
        nearby_obstacles=[NearbyObstacle(id=i, s=s, l=l) for i, s, l in nearby],
        vehicle_on_lane=vehicle_on_lane,
    )


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Repository root (one level above tests/)."""
    return ROOT


@pytest.fixture()
def small_config() -> EvaluatorConfig:
    """Config whose vector is 23 + 8 + 4*4 = 47 values."""
    return EvaluatorConfig(historical_frame_length=0, lane_points_size=4)


@pytest.fixture()
def go_model() -> FakeCruiseModel:
    return FakeCruiseModel(probability=0.8, time_to_lane_center=2.5)


@pytest.fixture()
def cutin_model() -> FakeCruiseModel:
    return FakeCruiseModel(probability=0.3, time_to_lane_center=4.0)


@pytest.fixture()
def feature_sink() -> RecordingFeatureSink:
    return RecordingFeatureSink()


@pytest.fixture()
def history_factory() -> Callable[..., list[Feature]]:
    return make_history


@pytest.fixture()
def lane_sequence_factory() -> Callable[..., LaneSequence]:
    return make_lane_sequence


@pytest.fixture()
def feature_factory() -> Callable[..., Feature]:
    return make_feature


@pytest.fixture()
def registry() -> ObstaclesContainer:
    """Registry with a forward neighbor (id 2) and a backward neighbor (id 3)."""
    container = ObstaclesContainer()
    container.insert_feature(make_feature(obstacle_id=2, timestamp=0.9, length=4.0, speed=7.0))
    container.insert_feature(make_feature(obstacle_id=3, timestamp=0.9, length=5.0, speed=9.0))
    return container


@pytest.fixture()
def obstacle_factory() -> Callable[..., Obstacle]:
    def _make(history: list[Feature], obstacle_id: int = 1) -> Obstacle:
        return Obstacle(obstacle_id, history=history)
    return _make
