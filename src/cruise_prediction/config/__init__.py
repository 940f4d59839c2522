"""
Configuration for the cruise prediction evaluator.
"""

from .evaluator_config import (
    EvaluatorConfig,
    LEGACY_OBSTACLE_FEATURE_SIZE,
    HISTORY_FRAME_FEATURE_SIZE,
    INTERACTION_FEATURE_SIZE,
    SINGLE_LANE_FEATURE_SIZE,
)

__all__ = [
    'EvaluatorConfig',
    'LEGACY_OBSTACLE_FEATURE_SIZE',
    'HISTORY_FRAME_FEATURE_SIZE',
    'INTERACTION_FEATURE_SIZE',
    'SINGLE_LANE_FEATURE_SIZE',
]
