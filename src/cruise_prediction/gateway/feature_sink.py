"""
Feature Sink - Interface for persisting offline training features.
"""

from abc import ABC, abstractmethod
from .data_types import Feature


class IFeatureSink(ABC):
    """Abstract append-only sink for feature snapshots recorded in offline mode."""

    @abstractmethod
    def insert(self, feature: Feature) -> None:
        """
        Append a snapshot with its recorded offline features.

        Args:
            feature: Latest obstacle snapshot carrying offline_features
        """
        pass
