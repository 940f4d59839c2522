"""
Obstacle Registry - Interface for resolving tracked obstacles by ID.

The interaction featurizer receives a registry at call time to look up the
attributes of nearby obstacles recorded on a lane sequence.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

from .data_types import Feature, Obstacle

logger = logging.getLogger(__name__)


class IObstacleRegistry(ABC):
    """Abstract read-only interface to the live obstacle set."""

    @abstractmethod
    def get_obstacle(self, obstacle_id: int) -> Optional[Obstacle]:
        """
        Resolve an obstacle by ID.

        Args:
            obstacle_id: Obstacle ID

        Returns:
            Obstacle, or None if it is no longer tracked
        """
        pass


class ObstaclesContainer(IObstacleRegistry):
    """In-memory obstacle registry fed with per-frame feature snapshots."""

    def __init__(self, max_history_size: int = 300):
        self.max_history_size = max_history_size
        self.obstacles: Dict[int, Obstacle] = {}

    def insert_feature(self, feature: Feature) -> Obstacle:
        """
        Append a snapshot to its obstacle, creating the obstacle if needed.

        Args:
            feature: Snapshot with obstacle ID

        Returns:
            Obstacle the snapshot was added to
        """
        obstacle = self.obstacles.get(feature.id)
        if obstacle is None:
            obstacle = Obstacle(feature.id, max_history_size=self.max_history_size)
            self.obstacles[feature.id] = obstacle
            logger.debug(f"New obstacle [{feature.id}]")
        obstacle.insert_feature(feature)
        return obstacle

    def get_obstacle(self, obstacle_id: int) -> Optional[Obstacle]:
        return self.obstacles.get(obstacle_id)

    def __iter__(self) -> Iterator[Obstacle]:
        return iter(self.obstacles.values())

    def __len__(self) -> int:
        return len(self.obstacles)
