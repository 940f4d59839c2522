"""
Neural networks used by the cruise evaluator.
"""

from .cruise_model import CruiseModel, ModelLoadError

__all__ = ['CruiseModel', 'ModelLoadError']
