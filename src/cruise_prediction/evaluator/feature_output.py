"""
Feature Output - Offline training data collection.

Buffers obstacle snapshots recorded in offline mode and dumps their feature
vectors to compressed numpy archives for model training.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np

from cruise_prediction.gateway.data_types import Feature
from cruise_prediction.gateway.feature_sink import IFeatureSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureRecord:
    """Immutable copy of a snapshot's offline features at insert time."""
    obstacle_id: int
    timestamp: float
    lane_features: Tuple[Tuple[int, Tuple[float, ...]], ...]  # (lane_sequence_id, values)


class FeatureOutput(IFeatureSink):
    """Append-only feature sink writing feature.<n>.npz files."""

    def __init__(self, output_dir: Union[str, Path], max_num_dump_feature: int = 1000):
        """
        Initialize feature output.

        Args:
            output_dir: Directory receiving the dump files
            max_num_dump_feature: Number of buffered records that triggers a dump
        """
        self.output_dir = Path(output_dir)
        self.max_num_dump_feature = max_num_dump_feature
        self.records: List[FeatureRecord] = []
        self.file_index = 0

    def insert(self, feature: Feature) -> None:
        record = FeatureRecord(
            obstacle_id=feature.id,
            timestamp=feature.timestamp,
            lane_features=tuple(
                (offline.lane_sequence_id, tuple(offline.values))
                for offline in feature.offline_features
            )
        )
        self.records.append(record)
        if self.ready():
            self.write()

    def ready(self) -> bool:
        """Whether the buffer reached the dump threshold."""
        return len(self.records) >= self.max_num_dump_feature

    def size(self) -> int:
        return len(self.records)

    def write(self) -> None:
        """Dump buffered records, one row per recorded lane sequence, then clear the buffer."""
        obstacle_ids, timestamps, lane_sequence_ids, features = [], [], [], []
        for record in self.records:
            for lane_sequence_id, values in record.lane_features:
                obstacle_ids.append(record.obstacle_id)
                timestamps.append(record.timestamp)
                lane_sequence_ids.append(lane_sequence_id)
                features.append(values)

        if not features:
            logger.debug("No offline features to write")
            self.records.clear()
            return

        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"feature.{self.file_index}.npz"
        np.savez_compressed(
            path,
            obstacle_ids=np.array(obstacle_ids, dtype=np.int64),
            timestamps=np.array(timestamps, dtype=np.float64),
            lane_sequence_ids=np.array(lane_sequence_ids, dtype=np.int64),
            features=np.array(features, dtype=np.float64)
        )
        logger.info(f"Wrote {len(features)} feature vectors from {len(self.records)} records to {path}")

        self.file_index += 1
        self.records.clear()

    def close(self) -> None:
        """Flush remaining records."""
        self.write()
