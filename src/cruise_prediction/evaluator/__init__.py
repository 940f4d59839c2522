"""
Evaluator module for lane sequence behavior prediction.
"""

from .cruise_mlp_evaluator import CruiseMLPEvaluator, vector_to_matrix
from .feature_output import FeatureOutput, FeatureRecord

__all__ = [
    'CruiseMLPEvaluator',
    'vector_to_matrix',
    'FeatureOutput',
    'FeatureRecord'
]
