"""
Evaluation script for the cruise MLP evaluator.

Scores every lane sequence of every obstacle in a scenario file, or records
the feature vectors for training in offline mode.

Usage:
    # Score lane sequences with trained models
    python evaluate.py --scenario scenario.yaml

    # Dump features for training
    python evaluate.py --scenario scenario.yaml --offline --output-dir data/features
"""

import logging
import argparse
from pathlib import Path

from cruise_prediction.config.evaluator_config import EvaluatorConfig
from cruise_prediction.evaluator.cruise_mlp_evaluator import CruiseMLPEvaluator
from cruise_prediction.evaluator.feature_output import FeatureOutput
from cruise_prediction.gateway.scenario_io import load_scenario


def setup_logging(verbose: bool = False):
    """Configure logging."""
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Suppress verbose libraries
    logging.getLogger('torch').setLevel(logging.WARNING)


def main():
    parser = argparse.ArgumentParser(description='Evaluate lane sequences with cruise MLP models')
    parser.add_argument('--scenario', type=str, required=True,
                       help='Scenario YAML with obstacle frames')
    parser.add_argument('--config', type=str, default=str(Path(__file__).parent / "config" / "cruise_config.yaml"),
                       help='Evaluator config YAML (default: config/cruise_config.yaml)')
    parser.add_argument('--offline', action='store_true',
                       help='Record feature vectors instead of running the models')
    parser.add_argument('--output-dir', type=str, default=None,
                       help='Output directory for offline features (default: from config)')
    parser.add_argument('--device', type=str, default=None,
                       choices=['cuda', 'cpu'],
                       help='Device to run models on (default: from config)')
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Enable verbose logging')

    args = parser.parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    config = EvaluatorConfig.from_yaml(args.config)
    if args.offline:
        config.offline_mode = True
    if args.output_dir:
        config.feature_output_dir = args.output_dir
    if args.device:
        config.device = args.device

    logger.info("=" * 80)
    logger.info("Cruise MLP Evaluation")
    logger.info("=" * 80)
    logger.info(f"Scenario: {args.scenario}")
    logger.info(f"Mode: {'offline' if config.offline_mode else 'online'}")
    logger.info(f"Feature vector size: {config.feature_vector_size}")
    logger.info("=" * 80)

    obstacles = load_scenario(args.scenario)
    feature_output = FeatureOutput(config.feature_output_dir, config.max_num_dump_feature)
    evaluator = CruiseMLPEvaluator(config, feature_sink=feature_output)

    try:
        for obstacle in obstacles:
            evaluator.evaluate(obstacle, obstacles)

            latest_feature = obstacle.latest_feature
            if config.offline_mode or latest_feature is None or latest_feature.lane_graph is None:
                continue
            for lane_sequence in latest_feature.lane_graph.lane_sequences:
                time_str = (f"{lane_sequence.time_to_lane_center:.2f}s"
                            if lane_sequence.time_to_lane_center is not None else "n/a")
                logger.info(
                    f"Obstacle [{obstacle.id}] lane sequence [{lane_sequence.lane_sequence_id}]: "
                    f"probability={lane_sequence.probability:.3f}, time_to_lane_center={time_str}"
                )
    finally:
        if config.offline_mode:
            feature_output.close()

    logger.info("Evaluation complete!")


if __name__ == '__main__':
    main()
