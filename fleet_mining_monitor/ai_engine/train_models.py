"""
Script to bootstrap-train the mining performance network and save it.

The saved snapshot can be passed to the engine through ``model_path`` to
skip bootstrap training on startup.
"""

import argparse
from typing import List, Optional

import numpy as np

from ai_engine.config import ENGINE_CONFIG
from ai_engine.feature_engineering import TrainingDataSynthesizer, algorithm_suitability, build_feature_vector
from ai_engine.hardware_profiles import HardwareProfileRegistry
from ai_engine.models.neural_network import NeuralNetwork
from ai_engine.recommender import RecommendationEngine
from ai_engine.utils.constants import ALGORITHM_CANDIDATES, DEFAULT_LATENCY_FACTOR


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Train the mining performance network on synthetic data")
    parser.add_argument("--epochs", type=int, default=ENGINE_CONFIG["bootstrap_epochs"],
                        help="Training epochs (default: %(default)s)")
    parser.add_argument("--examples", type=int, default=ENGINE_CONFIG["bootstrap_examples"],
                        help="Synthetic examples to generate (default: %(default)s)")
    parser.add_argument("--seed", type=int, help="Random seed for weights and synthetic data")
    parser.add_argument("--output", help="Output file name or path (default: timestamped file in the model dir)")
    return parser.parse_args(argv)


def train_network(epochs: int, examples: int, seed: Optional[int] = None):
    """
    Train a fresh network on synthetic data from the default hardware catalog.

    Returns:
        Tuple of (network, training results)
    """
    rng = np.random.default_rng(seed)
    registry = HardwareProfileRegistry(ENGINE_CONFIG["hardware_profiles"])
    synthesizer = TrainingDataSynthesizer(registry, random_state=rng)

    print(f"Generating {examples} synthetic examples from {len(registry)} hardware profiles...")
    inputs, expected_outputs = synthesizer.generate_synthetic(examples)

    network = NeuralNetwork(
        learning_rate=ENGINE_CONFIG["learning_rate"],
        momentum=ENGINE_CONFIG["momentum"],
        random_state=rng
    )
    results = network.train(inputs, expected_outputs, epochs, log_every=100)
    return network, results


def preview_recommendations(network: NeuralNetwork):
    """Print recommendations for each hardware archetype under neutral pool conditions."""
    print("\nTesting trained network:")
    registry = HardwareProfileRegistry(ENGINE_CONFIG["hardware_profiles"])
    recommender = RecommendationEngine()

    for profile in registry.profiles():
        algorithm = ALGORITHM_CANDIDATES[profile.type][0]
        features = build_feature_vector(profile, 0.5, DEFAULT_LATENCY_FACTOR,
                                        algorithm_suitability(algorithm, profile.type))
        settings = recommender.recommend_settings(profile, network.predict(features))
        print(f"  {profile.profile_id}: threads={settings.threads}, intensity={settings.intensity}, "
              f"memory={settings.memory_usage_percent}%, algorithm={settings.algorithm}")


def train_and_save(epochs: int, examples: int, seed: Optional[int] = None,
                   output: Optional[str] = None) -> str:
    """Train, report and save a network; returns the saved path."""
    network, results = train_network(epochs, examples, seed)

    print("\nTraining Results:")
    print(f"Model type: {results['model_type']}")
    print(f"Epochs: {results['epochs']}")
    print(f"Training samples: {results['training_samples']}")
    print("\nMetrics:")
    for metric, value in results["metrics"].items():
        print(f"  {metric}: {value:.4f}")

    preview_recommendations(network)

    model_path = network.save(output)
    print(f"\nNetwork saved to: {model_path}")
    return model_path


def main(argv: Optional[List[str]] = None):
    """Main function."""
    args = parse_args(argv)
    train_and_save(args.epochs, args.examples, args.seed, args.output)


if __name__ == "__main__":
    main()
