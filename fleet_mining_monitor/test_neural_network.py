import numpy as np
import pytest

from ai_engine.models.neural_network import NeuralNetwork, activation_derivative, apply_activation
from ai_engine.utils.validation import InsufficientTrainingDataError, ShapeMismatchError


def _training_set(seed=0, count=16):
    rng = np.random.default_rng(seed)
    return rng.random((count, 10)), rng.random((count, 4))


def _assert_topology(network):
    assert [layer.weights.shape for layer in network.layers] == [(10, 16), (16, 8), (8, 4)]
    assert [layer.biases.shape for layer in network.layers] == [(16,), (8,), (4,)]
    network.check_shapes()


def test_default_topology():
    network = NeuralNetwork(random_state=1)
    _assert_topology(network)
    assert [layer.activation for layer in network.layers] == ["relu", "relu", "sigmoid"]
    assert network.iterations == 0
    assert network.accuracy == 0.0


def test_xavier_bounds():
    network = NeuralNetwork(random_state=3)
    for layer in network.layers:
        limit = np.sqrt(6.0 / (layer.input_size + layer.output_size))
        assert np.all(np.abs(layer.weights) <= limit)
        assert np.all(np.abs(layer.biases) <= 0.1)


def test_outputs_bounded():
    network = NeuralNetwork(random_state=5)
    rng = np.random.default_rng(11)
    for vector in [np.zeros(10), np.ones(10), np.full(10, 1e6), np.full(10, -1e6), *rng.normal(size=(20, 10))]:
        output = network.predict(vector)
        assert output.shape == (4,)
        assert np.all(output >= 0.0) and np.all(output <= 1.0)


def test_forward_returns_activation_trace():
    network = NeuralNetwork(random_state=5)
    trace = network.forward(np.ones(10))
    assert [a.shape for a in trace] == [(10,), (16,), (8,), (4,)]
    assert np.all(trace[1] >= 0.0)


def test_wrong_input_length_rejected():
    network = NeuralNetwork(random_state=5)
    with pytest.raises(ShapeMismatchError):
        network.predict(np.ones(9))
    with pytest.raises(ShapeMismatchError):
        network.backpropagate(np.ones(10), np.ones(3))


def test_sigmoid_derivative_uses_layer_output():
    # Applied to the stored output, sigmoid'(0) = 0.25
    assert activation_derivative(np.array([0.0]), "sigmoid")[0] == pytest.approx(0.25)
    assert list(activation_derivative(np.array([-1.0, 0.0, 2.0]), "relu")) == [0.0, 0.0, 1.0]
    assert list(apply_activation(np.array([-1.0, 2.0]), "linear")) == [-1.0, 2.0]


def test_same_seed_same_network():
    first = NeuralNetwork(random_state=42)
    second = NeuralNetwork(random_state=42)
    for a, b in zip(first.layers, second.layers):
        np.testing.assert_array_equal(a.weights, b.weights)
        np.testing.assert_array_equal(a.biases, b.biases)

    inputs, outputs = _training_set()
    first.train(inputs, outputs, epochs=3)
    second.train(inputs, outputs, epochs=3)
    np.testing.assert_array_equal(first.predict(inputs[0]), second.predict(inputs[0]))


def test_train_updates_metrics_and_keeps_shapes():
    network = NeuralNetwork(random_state=7)
    inputs, outputs = _training_set()

    results = network.train(inputs, outputs, epochs=4)

    assert results["model_type"] == "feedforward_mlp"
    assert results["epochs"] == 4
    assert results["training_samples"] == 16
    assert network.iterations == 4
    assert 0.0 <= network.accuracy <= 1.0
    assert results["metrics"]["accuracy"] == network.accuracy
    _assert_topology(network)


def test_train_reduces_error_on_learnable_targets():
    network = NeuralNetwork(learning_rate=0.05, random_state=9)
    rng = np.random.default_rng(2)
    inputs = rng.random((30, 10))
    outputs = np.tile([0.8, 0.2, 0.6, 0.4], (30, 1))

    network.train(inputs, outputs, epochs=1)
    first_accuracy = network.accuracy
    network.train(inputs, outputs, epochs=50)

    assert network.accuracy > first_accuracy


def test_train_rejects_bad_data():
    network = NeuralNetwork(random_state=7)
    with pytest.raises(InsufficientTrainingDataError):
        network.train(np.empty((0, 10)), np.empty((0, 4)), epochs=1)
    with pytest.raises(ShapeMismatchError):
        network.train(np.ones((3, 9)), np.ones((3, 4)), epochs=1)
    with pytest.raises(ShapeMismatchError):
        network.train(np.ones((3, 10)), np.ones((2, 4)), epochs=1)
    assert network.iterations == 0


def test_copy_is_independent():
    network = NeuralNetwork(random_state=7)
    clone = network.copy()
    inputs, outputs = _training_set()
    clone.train(inputs, outputs, epochs=2)

    assert network.iterations == 0
    assert not np.array_equal(network.layers[0].weights, clone.layers[0].weights)


def test_save_and_load_restores_predictions(tmp_path):
    network = NeuralNetwork(random_state=7)
    inputs, outputs = _training_set()
    network.train(inputs, outputs, epochs=2)

    path = network.save(str(tmp_path / "network"))
    assert path.endswith(".joblib")

    restored = NeuralNetwork(random_state=99)
    restored.load(path)

    np.testing.assert_array_equal(restored.predict(inputs[3]), network.predict(inputs[3]))
    assert restored.iterations == network.iterations
    assert restored.accuracy == network.accuracy


def test_load_rejects_other_topology(tmp_path):
    path = NeuralNetwork(layer_sizes=[(8, 4, "sigmoid")], random_state=1).save(str(tmp_path / "small.joblib"))

    network = NeuralNetwork(random_state=2)
    before = [layer.weights.copy() for layer in network.layers]
    with pytest.raises(ShapeMismatchError):
        network.load(path)

    _assert_topology(network)
    for weights, layer in zip(before, network.layers):
        np.testing.assert_array_equal(weights, layer.weights)
