# tests/test_feature_output.py
from __future__ import annotations

import numpy as np

from cruise_prediction.evaluator.feature_output import FeatureOutput
from cruise_prediction.gateway.data_types import OfflineFeature


def _snapshot(feature_factory, obstacle_id: int, timestamp: float, rows: int):
    feature = feature_factory(obstacle_id=obstacle_id, timestamp=timestamp)
    feature.offline_features = [
        OfflineFeature(lane_sequence_id=i, values=[float(i), float(obstacle_id), timestamp])
        for i in range(rows)
    ]
    return feature


def test_write_dumps_one_row_per_lane_sequence(tmp_path, feature_factory) -> None:
    output = FeatureOutput(tmp_path, max_num_dump_feature=10)
    output.insert(_snapshot(feature_factory, 1, 0.5, 2))
    output.insert(_snapshot(feature_factory, 7, 0.6, 1))
    assert output.size() == 2

    output.close()

    data = np.load(tmp_path / "feature.0.npz")
    np.testing.assert_array_equal(data["obstacle_ids"], [1, 1, 7])
    np.testing.assert_array_equal(data["lane_sequence_ids"], [0, 1, 0])
    np.testing.assert_allclose(data["timestamps"], [0.5, 0.5, 0.6])
    np.testing.assert_allclose(data["features"][2], [0.0, 7.0, 0.6])
    assert output.size() == 0


def test_insert_copies_snapshot(tmp_path, feature_factory) -> None:
    output = FeatureOutput(tmp_path)
    feature = _snapshot(feature_factory, 1, 0.5, 1)
    output.insert(feature)

    feature.offline_features.append(OfflineFeature(lane_sequence_id=9, values=[1.0]))
    feature.offline_features[0].values[0] = 99.0

    record = output.records[0]
    assert len(record.lane_features) == 1
    assert record.lane_features[0][1][0] == 0.0


def test_dump_when_threshold_reached(tmp_path, feature_factory) -> None:
    output = FeatureOutput(tmp_path, max_num_dump_feature=2)
    output.insert(_snapshot(feature_factory, 1, 0.1, 1))
    assert not output.ready()
    output.insert(_snapshot(feature_factory, 1, 0.2, 1))

    assert (tmp_path / "feature.0.npz").exists()
    assert output.size() == 0

    output.insert(_snapshot(feature_factory, 1, 0.3, 1))
    output.close()
    assert (tmp_path / "feature.1.npz").exists()


def test_no_file_without_features(tmp_path, feature_factory) -> None:
    output = FeatureOutput(tmp_path / "out")
    output.insert(_snapshot(feature_factory, 1, 0.1, 0))

    output.close()

    assert not (tmp_path / "out").exists()
    assert output.size() == 0
