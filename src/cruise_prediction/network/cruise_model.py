"""
Cruise Model - Neural network scoring a lane sequence for an obstacle.

Takes lane geometry features and obstacle/interaction features and returns the
probability that the obstacle follows the lane sequence together with its
time to reach the lane center.
"""

import logging
import pickle
from typing import Sequence

import numpy as np
import torch
import torch.nn as nn

from cruise_prediction.config.evaluator_config import SINGLE_LANE_FEATURE_SIZE

logger = logging.getLogger(__name__)


class ModelLoadError(RuntimeError):
    """Raised when a cruise model checkpoint cannot be loaded."""


class CruiseModel(nn.Module):
    """
    Two-branch cruise model.

    - Lane branch: 1D convolutions over lane points (channels = lane feature
      types), summarized by max and average pooling
    - Obstacle branch: fully connected encoder of obstacle + interaction features
    - Heads on the concatenated encoding:
      classify -> probability (sigmoid), regress -> time to lane center (>= 0)
    """

    def __init__(self, obstacle_feature_size: int, lane_points_size: int,
                 hidden_size: int = 64, pooled_size: int = 4):
        """
        Initialize cruise model.

        Args:
            obstacle_feature_size: Length of the obstacle row vector
            lane_points_size: Number of lane points (columns of the lane matrix)
            hidden_size: Size of hidden layers
            pooled_size: Output length of each lane pooling layer
        """
        super(CruiseModel, self).__init__()

        self.obstacle_feature_size = obstacle_feature_size
        self.lane_points_size = lane_points_size
        self.hidden_size = hidden_size
        self.pooled_size = pooled_size

        lane_channels = 5

        # Lane feature encoder
        self.lane_conv = nn.Sequential(
            nn.Conv1d(SINGLE_LANE_FEATURE_SIZE, 10, kernel_size=3, padding=1),
            nn.ReLU(),
            nn.Conv1d(10, lane_channels, kernel_size=3, padding=1),
            nn.ReLU()
        )
        self.lane_max_pool = nn.AdaptiveMaxPool1d(pooled_size)
        self.lane_avg_pool = nn.AdaptiveAvgPool1d(pooled_size)

        # Obstacle feature encoder
        self.obs_fc = nn.Sequential(
            nn.Linear(obstacle_feature_size, hidden_size),
            nn.ReLU(),
            nn.Linear(hidden_size, hidden_size // 2),
            nn.ReLU()
        )

        encoding_size = 2 * lane_channels * pooled_size + hidden_size // 2

        # Probability head
        self.classify = nn.Sequential(
            nn.Linear(encoding_size, hidden_size // 2),
            nn.ReLU(),
            nn.Linear(hidden_size // 2, 1),
            nn.Sigmoid()
        )

        # Time-to-lane-center head
        self.regress = nn.Sequential(
            nn.Linear(encoding_size, hidden_size // 2),
            nn.ReLU(),
            nn.Linear(hidden_size // 2, 1),
            nn.ReLU()
        )

    def forward(self, lane_feature: torch.Tensor, obs_feature: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through network.

        Args:
            lane_feature: Lane features (batch_size, 4, lane_points_size)
            obs_feature: Obstacle features (batch_size, obstacle_feature_size)

        Returns:
            (batch_size, 2) tensor of [probability, time_to_lane_center]
        """
        lane_encoded = self.lane_conv(lane_feature)
        lane_encoded = torch.cat([
            self.lane_max_pool(lane_encoded).flatten(1),
            self.lane_avg_pool(lane_encoded).flatten(1)
        ], dim=1)

        obs_encoded = self.obs_fc(obs_feature)

        encoding = torch.cat([lane_encoded, obs_encoded], dim=1)
        return torch.cat([self.classify(encoding), self.regress(encoding)], dim=1)

    def run(self, inputs: Sequence[np.ndarray]) -> np.ndarray:
        """
        Score one lane sequence.

        Args:
            inputs: [lane_matrix (4, lane_points_size), obs_matrix (1, obstacle_feature_size)]

        Returns:
            (1, 2) array: [[probability, time_to_lane_center]]
        """
        lane_matrix, obs_matrix = inputs
        device = next(self.parameters()).device

        lane_tensor = torch.as_tensor(lane_matrix, dtype=torch.float32, device=device).unsqueeze(0)
        obs_tensor = torch.as_tensor(obs_matrix, dtype=torch.float32, device=device).reshape(1, -1)

        self.eval()
        with torch.no_grad():
            output = self(lane_tensor, obs_tensor)

        return output.cpu().numpy()

    def save(self, path: str):
        """
        Save model checkpoint.

        Args:
            path: Path to save checkpoint
        """
        torch.save({
            'model_state_dict': self.state_dict(),
            'obstacle_feature_size': self.obstacle_feature_size,
            'lane_points_size': self.lane_points_size,
            'hidden_size': self.hidden_size,
            'pooled_size': self.pooled_size
        }, path)

    @staticmethod
    def load(path: str, device: str = 'cpu') -> 'CruiseModel':
        """
        Load model from checkpoint.

        Args:
            path: Path to checkpoint
            device: Device to load model on

        Returns:
            Loaded CruiseModel in eval mode

        Raises:
            ModelLoadError: If the checkpoint is missing or malformed
        """
        try:
            checkpoint = torch.load(path, map_location=device)
            model = CruiseModel(
                obstacle_feature_size=checkpoint['obstacle_feature_size'],
                lane_points_size=checkpoint['lane_points_size'],
                hidden_size=checkpoint['hidden_size'],
                pooled_size=checkpoint['pooled_size']
            )
            model.load_state_dict(checkpoint['model_state_dict'])
        except (OSError, EOFError, KeyError, RuntimeError, pickle.UnpicklingError) as e:
            raise ModelLoadError(f"Unable to load cruise model file: {path}") from e

        model.to(device)
        model.eval()
        logger.debug(f"Cruise model loaded: {path} on device: {device}")
        return model
