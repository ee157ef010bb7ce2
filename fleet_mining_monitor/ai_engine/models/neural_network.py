"""
Feed-forward neural network used to predict mining performance.

The network maps a normalized 10-feature hardware/network vector to four
outputs in [0, 1]: hashrate, efficiency, power optimization and reward.
Training is per-example gradient descent over a bounded example set.
"""

import copy
import os
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union

import joblib
import numpy as np
from sklearn.metrics import mean_absolute_error

from ai_engine.utils.constants import LAYER_SIZES, MODEL_DIR
from ai_engine.utils.logging_config import logger
from ai_engine.utils.validation import (
    InsufficientTrainingDataError,
    ShapeMismatchError,
    validate_vector,
)

RandomState = Union[None, int, np.random.Generator]


def _sigmoid(x: np.ndarray) -> np.ndarray:
    # exp overflows past |x| ~ 709
    return 1.0 / (1.0 + np.exp(-np.clip(x, -500.0, 500.0)))


def apply_activation(values: np.ndarray, activation: str) -> np.ndarray:
    """Apply an activation function elementwise."""
    if activation == "relu":
        return np.maximum(0.0, values)
    if activation == "sigmoid":
        return _sigmoid(values)
    if activation == "tanh":
        return np.tanh(values)
    return values


def activation_derivative(values: np.ndarray, activation: str) -> np.ndarray:
    """
    Derivative of an activation function.

    ``values`` are the layer outputs recorded by the forward pass; the
    derivative formula is applied to them directly.
    """
    if activation == "relu":
        return (values > 0).astype(float)
    if activation == "sigmoid":
        s = _sigmoid(values)
        return s * (1.0 - s)
    if activation == "tanh":
        t = np.tanh(values)
        return 1.0 - t * t
    return np.ones_like(values)


class Layer:
    """Dense layer: weights[input_size][output_size], biases[output_size]."""

    def __init__(self, weights: np.ndarray, biases: np.ndarray, activation: str):
        self.weights = weights
        self.biases = biases
        self.activation = activation

    @property
    def input_size(self) -> int:
        return self.weights.shape[0]

    @property
    def output_size(self) -> int:
        return self.biases.shape[0]


class NeuralNetwork:
    """
    Small multilayer perceptron with Xavier-initialized dense layers.
    """

    def __init__(self, layer_sizes: Optional[Sequence] = None, learning_rate: float = 0.01,
                 momentum: float = 0.9, random_state: RandomState = None):
        """
        Initialize the network.

        Args:
            layer_sizes: Sequence of (input_size, output_size, activation) tuples
            learning_rate: Step size applied to every gradient
            momentum: Reserved for momentum updates, currently unused
            random_state: Seed or numpy Generator used for initialization
        """
        self.rng = np.random.default_rng(random_state)
        self.learning_rate = learning_rate
        self.momentum = momentum
        self.iterations = 0
        self.accuracy = 0.0

        self.layers: List[Layer] = []
        for input_size, output_size, activation in (layer_sizes or LAYER_SIZES):
            weights = self.initialize_weights(input_size, output_size)
            biases = self.rng.uniform(-0.1, 0.1, size=output_size)
            self.layers.append(Layer(weights, biases, activation))

        self.check_shapes()

    @property
    def input_size(self) -> int:
        return self.layers[0].input_size

    @property
    def output_size(self) -> int:
        return self.layers[-1].output_size

    def initialize_weights(self, input_size: int, output_size: int) -> np.ndarray:
        """Xavier-uniform weights in [-limit, limit]."""
        limit = np.sqrt(6.0 / (input_size + output_size))
        return self.rng.uniform(-limit, limit, size=(input_size, output_size))

    def check_shapes(self) -> None:
        """
        Verify every layer is wired to the previous one.

        Raises:
            ShapeMismatchError: If a weight matrix or bias vector is inconsistent
        """
        expected_rows = self.layers[0].weights.shape[0] if self.layers else 0
        for index, layer in enumerate(self.layers):
            rows, cols = layer.weights.shape
            if rows != expected_rows:
                raise ShapeMismatchError(
                    f"Layer {index} has {rows} weight rows, expected {expected_rows}"
                )
            if cols != layer.biases.shape[0]:
                raise ShapeMismatchError(
                    f"Layer {index} has {cols} weight columns but {layer.biases.shape[0]} biases"
                )
            expected_rows = cols

    def forward(self, input_vector: Sequence[float]) -> List[np.ndarray]:
        """
        Run a forward pass.

        Args:
            input_vector: Feature vector of length ``input_size``

        Returns:
            Activation trace: the input followed by each layer's output
        """
        current = validate_vector(input_vector, self.input_size)
        activations = [current]
        for layer in self.layers:
            biased_sums = current @ layer.weights + layer.biases
            current = apply_activation(biased_sums, layer.activation)
            activations.append(current)
        return activations

    def predict(self, input_vector: Sequence[float]) -> np.ndarray:
        """Return only the output layer activation."""
        return self.forward(input_vector)[-1]

    def backpropagate(self, input_vector: Sequence[float], expected_output: Sequence[float]) -> np.ndarray:
        """
        Update weights and biases in place from a single example.

        Returns:
            The output of the forward pass taken before the update
        """
        expected = validate_vector(expected_output, self.output_size, name="expected_output")
        activations = self.forward(input_vector)

        errors = expected - activations[-1]
        for index in range(len(self.layers) - 1, -1, -1):
            layer = self.layers[index]
            layer_input = activations[index]
            layer_output = activations[index + 1]

            gradients = errors * activation_derivative(layer_output, layer.activation) * self.learning_rate
            layer.biases = layer.biases + gradients
            layer.weights += np.outer(layer_input, gradients)

            # Propagate through the updated weights
            if index > 0:
                errors = layer.weights @ errors

        return activations[-1]

    def train(self, inputs: np.ndarray, expected_outputs: np.ndarray, epochs: int,
              log_every: Optional[int] = None, label: str = "Training") -> Dict:
        """
        Train on a fixed example set.

        Each epoch visits every example once, updating weights after each
        one. ``accuracy`` is set to 1 minus the mean absolute error of the
        predictions made during the epoch.

        Args:
            inputs: Array of shape (n, input_size)
            expected_outputs: Array of shape (n, output_size)
            epochs: Number of passes over the examples
            log_every: Log progress every N epochs (None disables)
            label: Prefix for progress log lines

        Returns:
            Dictionary with training results and metrics
        """
        inputs = np.asarray(inputs, dtype=float)
        expected_outputs = np.asarray(expected_outputs, dtype=float)

        if inputs.ndim != 2 or inputs.shape[1] != self.input_size:
            raise ShapeMismatchError(f"inputs must have shape (n, {self.input_size}), got {inputs.shape}")
        if expected_outputs.shape != (inputs.shape[0], self.output_size):
            raise ShapeMismatchError(
                f"expected_outputs must have shape ({inputs.shape[0]}, {self.output_size}), "
                f"got {expected_outputs.shape}"
            )
        if inputs.shape[0] == 0:
            raise InsufficientTrainingDataError("No training examples provided")

        initial_accuracy = self.accuracy
        predictions = np.empty_like(expected_outputs)
        for epoch in range(epochs):
            for i in range(inputs.shape[0]):
                predictions[i] = self.backpropagate(inputs[i], expected_outputs[i])

            self.iterations += 1
            self.accuracy = float(1.0 - mean_absolute_error(expected_outputs, predictions))

            if log_every and epoch % log_every == 0:
                logger.info(f"{label} iteration {epoch}, accuracy: {self.accuracy * 100:.2f}%")

        return {
            "model_type": "feedforward_mlp",
            "epochs": epochs,
            "training_samples": int(inputs.shape[0]),
            "iterations": self.iterations,
            "metrics": {
                "initial_accuracy": initial_accuracy,
                "accuracy": self.accuracy,
                "mae": 1.0 - self.accuracy
            }
        }

    def copy(self) -> "NeuralNetwork":
        """Deep copy, used to train without disturbing readers."""
        return copy.deepcopy(self)

    def save(self, filename: Optional[str] = None) -> str:
        """
        Save the network to disk.

        Args:
            filename: Name of the file to save the model to (without path)
                If None, a default name will be generated

        Returns:
            Path to the saved model file
        """
        os.makedirs(MODEL_DIR, exist_ok=True)

        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"mining_network_{timestamp}.joblib"

        if not filename.endswith(".joblib"):
            filename += ".joblib"

        filepath = os.path.join(MODEL_DIR, filename)

        model_data = {
            "layers": [
                {
                    "weights": layer.weights,
                    "biases": layer.biases,
                    "activation": layer.activation
                }
                for layer in self.layers
            ],
            "learning_rate": self.learning_rate,
            "momentum": self.momentum,
            "iterations": self.iterations,
            "accuracy": self.accuracy,
            "timestamp": datetime.now().isoformat()
        }

        joblib.dump(model_data, filepath)
        logger.info(f"Neural network saved to {filepath}")

        return filepath

    def load(self, filepath: str) -> None:
        """
        Load a saved network from disk.

        Args:
            filepath: Path to the saved model file

        Raises:
            ShapeMismatchError: If the saved layers do not form a valid network
        """
        model_data = joblib.load(filepath)

        layers = [
            Layer(
                np.asarray(entry["weights"], dtype=float),
                np.asarray(entry["biases"], dtype=float),
                entry["activation"]
            )
            for entry in model_data["layers"]
        ]
        if not layers or layers[0].input_size != self.input_size or layers[-1].output_size != self.output_size:
            raise ShapeMismatchError(f"Saved network in {filepath} does not match the expected topology")

        previous = self.layers
        self.layers = layers
        try:
            self.check_shapes()
        except ShapeMismatchError:
            self.layers = previous
            raise

        self.learning_rate = model_data.get("learning_rate", self.learning_rate)
        self.momentum = model_data.get("momentum", self.momentum)
        self.iterations = model_data.get("iterations", 0)
        self.accuracy = model_data.get("accuracy", 0.0)
        logger.info(f"Neural network loaded from {filepath}")
