"""
Data structures shared between the tracking system and the cruise evaluator.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np


@dataclass
class LaneFeature:
    """Relation of an obstacle snapshot to its current lane."""
    lane_l: float                   # Lateral offset from lane center (m)
    angle_diff: float               # Heading offset from lane direction (rad)
    dist_to_left_boundary: float    # Distance to left lane boundary (m)
    dist_to_right_boundary: float   # Distance to right lane boundary (m)
    lane_turn_type: int = 0         # 0=no turn, 1=left, 2=right, 3=u-turn


@dataclass
class LanePoint:
    """Sampled point on a lane centerline."""
    position: Optional[np.ndarray] = None  # (2,) XY in world frame
    heading: float = 0.0                   # Lane direction (rad)
    kappa: float = 0.0                     # Curvature (1/m)


@dataclass
class LaneSegment:
    """Ordered run of lane points belonging to one lane."""
    lane_id: str = ""
    lane_points: List[LanePoint] = field(default_factory=list)


@dataclass
class NearbyObstacle:
    """Another obstacle recorded against a lane sequence."""
    id: int
    s: float  # Longitudinal offset relative to the subject obstacle (m)
    l: float  # Lateral offset (m)


@dataclass
class LaneSequence:
    """Candidate future path of an obstacle, annotated with evaluation outputs."""
    lane_sequence_id: int = 0
    lane_segments: List[LaneSegment] = field(default_factory=list)
    nearby_obstacles: List[NearbyObstacle] = field(default_factory=list)
    vehicle_on_lane: bool = True
    probability: float = 0.0
    time_to_lane_center: Optional[float] = None


@dataclass
class LaneGraph:
    """Candidate lane sequences built for an obstacle."""
    lane_sequences: List[LaneSequence] = field(default_factory=list)


@dataclass
class OfflineFeature:
    """Feature vector recorded for one lane sequence in offline mode."""
    lane_sequence_id: int
    values: List[float]


@dataclass
class Feature:
    """Snapshot of an obstacle at one timestamp."""
    id: int
    timestamp: Optional[float] = None               # Seconds; None if not initialized
    position: Optional[np.ndarray] = None           # (2,) XY in world frame
    velocity: Optional[np.ndarray] = None           # (2,) m/s in world frame
    acceleration: Optional[np.ndarray] = None       # (2,) m/s^2 in world frame
    velocity_heading: Optional[float] = None        # rad
    speed: float = 0.0                              # m/s
    length: float = 0.0                             # m
    lane_feature: Optional[LaneFeature] = None
    lane_graph: Optional[LaneGraph] = None
    offline_features: List[OfflineFeature] = field(default_factory=list)

    def is_initialized(self) -> bool:
        """A snapshot is usable once it carries a timestamp."""
        return self.timestamp is not None


@dataclass
class LaneSequenceResult:
    """Evaluation output for one lane sequence."""
    probability: float
    time_to_lane_center: Optional[float] = None

    def apply_to(self, lane_sequence: LaneSequence) -> None:
        """Write this result onto the lane sequence."""
        lane_sequence.probability = self.probability
        if self.time_to_lane_center is not None:
            lane_sequence.time_to_lane_center = self.time_to_lane_center


class Obstacle:
    """Tracked obstacle with its feature history (newest first)."""

    def __init__(self, obstacle_id: int, history: Optional[List[Feature]] = None, max_history_size: int = 300):
        """
        Initialize obstacle.

        Args:
            obstacle_id: Unique obstacle ID
            history: Feature snapshots ordered newest first
            max_history_size: Maximum number of snapshots kept
        """
        self.id = obstacle_id
        self.max_history_size = max_history_size
        self.history: List[Feature] = list(history or [])[:max_history_size]

    @property
    def latest_feature(self) -> Optional[Feature]:
        return self.history[0] if self.history else None

    @property
    def timestamp(self) -> float:
        """Timestamp of the latest snapshot (0.0 without history)."""
        latest = self.latest_feature
        if latest is None or latest.timestamp is None:
            return 0.0
        return latest.timestamp

    @property
    def history_size(self) -> int:
        return len(self.history)

    def feature(self, i: int) -> Feature:
        return self.history[i]

    def insert_feature(self, feature: Feature) -> None:
        """Prepend a newer snapshot, dropping the oldest beyond the history limit."""
        if self.history and feature.timestamp is not None and self.timestamp > feature.timestamp:
            raise ValueError(
                f"Obstacle [{self.id}] got out-of-order feature: {feature.timestamp} < {self.timestamp}"
            )
        self.history.insert(0, feature)
        del self.history[self.max_history_size:]

    def __repr__(self) -> str:
        return f"Obstacle(id={self.id}, history_size={self.history_size})"
