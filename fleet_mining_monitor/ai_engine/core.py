"""
AI mining core.

Maintains the mining performance network, scores every registered device
on a schedule, retrains the network from live telemetry, and reports
results to the reporting sink and to event listeners.
"""

import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from ai_engine.config import ENGINE_CONFIG
from ai_engine.feature_engineering import FeatureEngineeringPipeline, TrainingDataSynthesizer
from ai_engine.hardware_profiles import HardwareProfileRegistry
from ai_engine.models.neural_network import NeuralNetwork
from ai_engine.recommender import RecommendationEngine
from ai_engine.reporting import NullReportingSink, ReportingSink
from ai_engine.scheduler import OptimizationScheduler
from ai_engine.schemas import DeviceInfo, MiningState, MiningStateUpdate, OptimizationResult, StratumConnection
from ai_engine.telemetry_store import DeviceTelemetryStore
from ai_engine.utils.constants import (
    EVENTS,
    EVENT_OPTIMIZATION,
    EVENT_SELF_IMPROVEMENT,
    EVENT_STARTED,
    EVENT_STOPPED,
)
from ai_engine.utils.logging_config import logger
from ai_engine.utils.validation import (
    InsufficientTrainingDataError,
    NoMatchingProfileError,
    NotInitializedError,
    ShapeMismatchError,
    validate_engine_config,
)


class AIMiningCore:
    """
    Fleet mining-optimization engine.

    Lifecycle: created -> initialize() -> start() <-> stop(). Learned state
    survives stop()/start(); only the periodic cycles are affected.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 reporting_sink: Optional[ReportingSink] = None,
                 random_state: Union[None, int, np.random.Generator] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the engine.

        Args:
            config: Overrides for ENGINE_CONFIG
            reporting_sink: Collaborator receiving performance reports
            random_state: Seed or numpy Generator used for weight
                initialization and synthetic data
            clock: Callable returning the current time (defaults to datetime.now)
        """
        self.config = validate_engine_config({**ENGINE_CONFIG, **(config or {})})
        self._clock = clock or datetime.now
        self.rng = np.random.default_rng(random_state)

        self.registry = HardwareProfileRegistry()
        self.telemetry = DeviceTelemetryStore(clock=self._clock)
        self.pipeline = FeatureEngineeringPipeline(clock=self._clock)
        self.synthesizer = TrainingDataSynthesizer(self.registry, self.pipeline, random_state=self.rng)
        self.recommender = RecommendationEngine()
        self.reporting_sink = reporting_sink or NullReportingSink()

        self.network = NeuralNetwork(
            learning_rate=self.config["learning_rate"],
            momentum=self.config["momentum"],
            random_state=self.rng
        )

        self._initialized = False
        self._running = False
        self._scheduler: Optional[OptimizationScheduler] = None

        # Lifecycle transitions
        self._state_lock = threading.Lock()
        # Guards the network reference; training happens on a copy
        self._model_lock = threading.Lock()
        # One training pass at a time
        self._training_lock = threading.Lock()
        self._history_lock = threading.Lock()

        self._history: deque = deque(maxlen=self.config["history_size"])
        self._accuracy_history: deque = deque(maxlen=self.config["accuracy_history_size"])

        self.last_optimization_time: Optional[datetime] = None
        self.self_improvement_enabled = self.config["self_improvement_enabled"]
        self.self_improvement_cycles = 0
        self.self_improvement_iterations = 0
        self.last_improvement_time: Optional[datetime] = None

        self._listeners: Dict[str, List[Callable[[Dict[str, Any]], None]]] = {event: [] for event in EVENTS}

        logger.info("AI mining core created")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def running(self) -> bool:
        return self._running

    def initialize(self) -> bool:
        """
        Register the configured hardware profiles and prepare the network.

        Loads ``model_path`` when configured, otherwise trains the network
        on synthetic data. Calling it again is a no-op.
        """
        with self._state_lock:
            if self._initialized:
                logger.info("AI mining core already initialized")
                return True

            logger.info("Initializing AI mining core...")

            for profile in self.config["hardware_profiles"]:
                self.registry.add(profile)

            if self.config["model_path"]:
                with self._training_lock:
                    candidate = self._current_network().copy()
                    candidate.load(self.config["model_path"])
                    self._swap_network(candidate)
            else:
                self._train_initial_model()

            self._initialized = True

        logger.info("AI mining core initialized successfully")
        return True

    def start(self) -> bool:
        """
        Start the periodic optimization and self-improvement cycles.

        Raises:
            NotInitializedError: If initialize() has not been called
        """
        with self._state_lock:
            if not self._initialized:
                raise NotInitializedError("Cannot start: AI mining core not initialized")

            if self._running:
                logger.info("AI mining core already running")
                return True

            self._running = True
            self._scheduler = OptimizationScheduler(
                self._scheduled_optimization, self.config["optimization_interval_seconds"],
                self._scheduled_self_improvement, self.config["self_improvement_interval_seconds"]
            )
            self._scheduler.start()

        logger.info("AI mining core started")
        self._connect_to_cloud_miner()

        network = self._current_network()
        self._emit(EVENT_STARTED, {
            "timestamp": self._clock(),
            "model_layers": len(network.layers),
            "accuracy": network.accuracy,
            "iterations": network.iterations
        })
        return True

    def stop(self) -> bool:
        """Stop both periodic cycles. Safe to call repeatedly."""
        with self._state_lock:
            if not self._running:
                logger.info("AI mining core not running")
                return True

            self._running = False
            scheduler, self._scheduler = self._scheduler, None

        # Joined outside the lock: a listener on a scheduler thread may call back in
        if scheduler is not None:
            scheduler.stop()

        logger.info("AI mining core stopped")
        self._emit(EVENT_STOPPED, {"timestamp": self._clock()})
        return True

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    def register_device(self, device_id: str, info: Union[DeviceInfo, Dict, None] = None) -> bool:
        logger.info(f"Registering device: {device_id}")
        return self.telemetry.register(device_id, info)

    def update_mining_state(self, device_id: str, update: Union[MiningStateUpdate, Dict]) -> bool:
        """
        Merge telemetry into a device's mining state.

        Raises:
            UnknownDeviceError: If the device is not registered
        """
        self.telemetry.update(device_id, update)
        return True

    def unregister_device(self, device_id: str) -> bool:
        return self.telemetry.unregister(device_id)

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def get_optimization(self, device_id: str) -> Optional[OptimizationResult]:
        """
        Score a device on demand with the current network.

        The result is not added to the optimization history.

        Returns:
            OptimizationResult, or None if the device is unknown or has no
            matching hardware profile
        """
        state = self.telemetry.get_state(device_id)
        if state is None:
            return None

        try:
            return self._optimize_device(device_id, state, self.telemetry.get_connection(device_id))
        except NoMatchingProfileError as e:
            logger.info(str(e))
            return None

    def run_optimization_cycle(self) -> List[OptimizationResult]:
        """
        Score every registered device and record the results.

        Devices that cannot be scored are skipped with a warning.

        Returns:
            The results produced in this cycle
        """
        if not self._initialized:
            raise NotInitializedError("Cannot optimize: AI mining core not initialized")

        logger.info("Running optimization cycle...")
        devices = self.telemetry.snapshot()
        if not devices:
            logger.info("No mining states available for optimization")
            return []

        results = []
        for device_id, (state, connection) in devices.items():
            try:
                result = self._optimize_device(device_id, state, connection)
            except NoMatchingProfileError as e:
                logger.warning(str(e))
                continue
            except ShapeMismatchError as e:
                logger.error(f"Optimization failed for device {device_id}: {e}")
                continue

            with self._history_lock:
                self._history.append(result)
            results.append(result)

            self._report(f"ai-miner-{device_id}", result.hashrate_prediction, result.efficiency_prediction)

            logger.info(
                f"Optimization for device {device_id}: "
                f"hashrate {result.hashrate_prediction:.2f} H/s, "
                f"efficiency {result.efficiency_prediction * 100:.2f}%, "
                f"threads {result.recommended_settings.threads}, "
                f"algorithm {result.recommended_settings.algorithm}"
            )

            self._emit(EVENT_OPTIMIZATION, {
                "device_id": device_id,
                "timestamp": result.timestamp,
                "result": result
            })

        self.last_optimization_time = self._clock()
        return results

    def run_self_improvement(self) -> Optional[Dict[str, Any]]:
        """
        Retrain the network from live telemetry and optimization history.

        Skipped (returns None) when learning is disabled, when the history
        holds fewer than ``min_history`` results, or when no device yields a
        training example.

        Returns:
            Training results, or None if the cycle was skipped
        """
        if not self._initialized:
            raise NotInitializedError("Cannot self-improve: AI mining core not initialized")

        if not self.self_improvement_enabled:
            logger.info("Self-improvement disabled, skipping cycle")
            return None

        with self._training_lock:
            logger.info("Running self-improvement cycle...")

            history = self.get_optimization_history()
            if len(history) < self.config["min_history"]:
                logger.info(
                    f"Not enough optimization history for self-improvement "
                    f"({len(history)}/{self.config['min_history']})"
                )
                return None

            inputs, expected_outputs = self.synthesizer.generate_from_history(self.telemetry.snapshot(), history)
            if len(inputs) == 0:
                logger.warning("Could not generate valid training data")
                return None

            previous_accuracy = self._current_network().accuracy
            epochs = self.config["self_improvement_epochs"]
            results = self._train_and_swap(inputs, expected_outputs, epochs,
                                           log_every=25, label="Self-improvement")

            network = self._current_network()
            self.self_improvement_cycles += 1
            self.self_improvement_iterations += epochs
            self.last_improvement_time = self._clock()
            self._accuracy_history.append(network.accuracy)

        logger.info(f"Self-improvement complete. Accuracy: {previous_accuracy:.4f} -> {network.accuracy:.4f}")

        self._emit(EVENT_SELF_IMPROVEMENT, {
            "timestamp": self.last_improvement_time,
            "previous_accuracy": previous_accuracy,
            "new_accuracy": network.accuracy,
            "total_iterations": network.iterations,
            "improvement_cycles": self.self_improvement_cycles
        })
        return results

    def set_self_improvement(self, enabled: bool) -> None:
        self.self_improvement_enabled = enabled
        logger.info(f"Self-improvement {'enabled' if enabled else 'disabled'}")

    def get_optimization_history(self) -> List[OptimizationResult]:
        with self._history_lock:
            return list(self._history)

    # ------------------------------------------------------------------
    # Status and persistence
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the engine state for dashboards."""
        network = self._current_network()
        with self._history_lock:
            history_size = len(self._history)

        return {
            "initialized": self._initialized,
            "running": self._running,
            "model_layers": len(network.layers),
            "accuracy": network.accuracy,
            "iterations": network.iterations,
            "device_count": len(self.telemetry),
            "last_optimization_time": self.last_optimization_time,
            "self_improvement_enabled": self.self_improvement_enabled,
            "self_improvement_cycles": self.self_improvement_cycles,
            "self_improvement_iterations": self.self_improvement_iterations,
            "last_improvement_time": self.last_improvement_time,
            "accuracy_history": list(self._accuracy_history),
            "optimization_history_size": history_size
        }

    def save_model(self, filename: Optional[str] = None) -> str:
        return self._current_network().save(filename)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, event: str, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Register a callback for one of the engine events."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event {event!r}, expected one of {EVENTS}")
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Callable[[Dict[str, Any]], None]) -> None:
        if callback in self._listeners.get(event, []):
            self._listeners[event].remove(callback)

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(payload)
            except Exception as e:
                logger.warning(f"Listener error on {event} event: {e}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current_network(self) -> NeuralNetwork:
        with self._model_lock:
            return self.network

    def _swap_network(self, network: NeuralNetwork) -> None:
        with self._model_lock:
            self.network = network

    def _train_and_swap(self, inputs: np.ndarray, expected_outputs: np.ndarray, epochs: int,
                        log_every: int, label: str) -> Dict[str, Any]:
        # Callers hold the training lock
        candidate = self._current_network().copy()
        results = candidate.train(inputs, expected_outputs, epochs, log_every=log_every, label=label)
        self._swap_network(candidate)
        return results

    def _train_initial_model(self) -> None:
        logger.info("Training initial AI model...")
        with self._training_lock:
            try:
                inputs, expected_outputs = self.synthesizer.generate_synthetic(self.config["bootstrap_examples"])
            except InsufficientTrainingDataError as e:
                logger.warning(f"Skipping initial training: {e}")
                return

            self._train_and_swap(inputs, expected_outputs, self.config["bootstrap_epochs"],
                                 log_every=100, label="Training")

        logger.info(f"Initial training complete. Final accuracy: {self._current_network().accuracy * 100:.2f}%")

    def _optimize_device(self, device_id: str, state: MiningState,
                         connection: Optional[StratumConnection]) -> OptimizationResult:
        profile = self.registry.resolve(device_id)
        if profile is None:
            raise NoMatchingProfileError(device_id)

        features = self.pipeline.device_features(state, connection, profile)
        network = self._current_network()
        output = network.predict(features)
        return self.recommender.build_optimization_result(
            device_id, profile, output, network.accuracy, self._clock()
        )

    def _report(self, label: str, hashrate: float, efficiency: float) -> None:
        try:
            self.reporting_sink.report_performance(label, hashrate, efficiency)
        except Exception as e:
            logger.warning(f"Failed to report performance for {label}: {e}")

    def _connect_to_cloud_miner(self) -> None:
        logger.info("Connecting to cloud miner...")
        accuracy = self._current_network().accuracy
        self._report("ai-mining-core", 100 * accuracy, accuracy)

    def _scheduled_optimization(self) -> None:
        if self._running:
            self.run_optimization_cycle()

    def _scheduled_self_improvement(self) -> None:
        if self._running:
            self.run_self_improvement()
