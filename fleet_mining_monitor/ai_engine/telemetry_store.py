"""
Per-device telemetry store.

Holds the current MiningState and StratumConnection of every registered
device. Writes are serialized by a lock; readers always receive copies.
"""

import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

import pandas as pd

from ai_engine.config import DEVICE_DEFAULTS
from ai_engine.schemas import DeviceInfo, MiningState, MiningStateUpdate, StratumConnection
from ai_engine.utils.logging_config import get_logger
from ai_engine.utils.validation import UnknownDeviceError

logger = get_logger(__name__)


def counter_delta(previous: int, reported: int) -> int:
    """
    Increase of a miner-side share counter between two reports.

    A reported value below the previous one means the miner restarted and
    its counter began again from zero, so the whole reported value is new.
    """
    if reported < previous:
        return reported
    return reported - previous


class DeviceTelemetryStore:
    """
    Keyed store of mining state and pool connection facts per device.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the store.

        Args:
            clock: Callable returning the current time (defaults to datetime.now)
        """
        self._clock = clock or datetime.now
        self._states: Dict[str, MiningState] = {}
        self._connections: Dict[str, StratumConnection] = {}
        # Both tables change together, one lock guards them
        self._lock = threading.Lock()

    def register(self, device_id: str, info: Union[DeviceInfo, Dict, None] = None) -> bool:
        """
        Register a device, replacing any previous state for the same id.

        Args:
            device_id: Device identifier
            info: Optional registration details; missing values fall back to
                DEVICE_DEFAULTS

        Returns:
            True once the device is registered
        """
        if info is None:
            info = DeviceInfo()
        elif not isinstance(info, DeviceInfo):
            info = DeviceInfo(**info)

        def pick(field):
            value = getattr(info, field)
            return DEVICE_DEFAULTS[field] if value is None else value

        now = self._clock()
        algorithm = pick("algorithm")
        difficulty = pick("difficulty")

        state = MiningState(
            algorithm=algorithm,
            hashrate=pick("hashrate"),
            difficulty=difficulty,
            last_share_time=now,
            temperature_c=pick("temperature"),
            power_w=pick("power"),
            efficiency=pick("efficiency")
        )
        connection = StratumConnection(
            pool=pick("pool"),
            worker=info.worker or device_id,
            algorithm=algorithm,
            difficulty=difficulty,
            last_share=now
        )

        with self._lock:
            self._states[device_id] = state
            self._connections[device_id] = connection

        logger.info(f"Device {device_id} registered successfully")
        return True

    def unregister(self, device_id: str) -> bool:
        """Remove a device and its connection."""
        with self._lock:
            if device_id not in self._states:
                raise UnknownDeviceError(device_id)
            del self._states[device_id]
            self._connections.pop(device_id, None)

        logger.info(f"Device {device_id} unregistered")
        return True

    def update(self, device_id: str, update: Union[MiningStateUpdate, Dict]) -> MiningState:
        """
        Merge a partial update into a device's mining state.

        When the update raises the share count, the pool connection records
        a new share: ``last_share`` moves to now and the accepted/rejected
        deltas are added to its counters (see counter_delta for resets).

        Args:
            device_id: Device identifier
            update: Fields to merge; only explicitly set fields are applied

        Returns:
            Copy of the merged state

        Raises:
            UnknownDeviceError: If the device was never registered
        """
        if not isinstance(update, MiningStateUpdate):
            update = MiningStateUpdate(**update)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)

        with self._lock:
            current = self._states.get(device_id)
            if current is None:
                raise UnknownDeviceError(device_id)

            connection = self._connections[device_id]
            connection_changes = {}

            if "shares" in changes and changes["shares"] > current.shares:
                now = self._clock()
                changes.setdefault("last_share_time", now)
                connection_changes["last_share"] = now
                connection_changes["accepted"] = connection.accepted + counter_delta(
                    current.accepted, changes.get("accepted", current.accepted)
                )
                connection_changes["rejected"] = connection.rejected + counter_delta(
                    current.rejected, changes.get("rejected", current.rejected)
                )

            # Pool-side facts follow the miner's reported job
            if "difficulty" in changes:
                connection_changes["difficulty"] = changes["difficulty"]
            if "algorithm" in changes:
                connection_changes["algorithm"] = changes["algorithm"]

            merged = current.model_copy(update=changes)
            self._states[device_id] = merged
            if connection_changes:
                self._connections[device_id] = connection.model_copy(update=connection_changes)

        logger.debug(f"Updated mining state for {device_id}: {sorted(changes)}")
        return merged.model_copy()

    def get_state(self, device_id: str) -> Optional[MiningState]:
        with self._lock:
            state = self._states.get(device_id)
        return state.model_copy() if state is not None else None

    def get_connection(self, device_id: str) -> Optional[StratumConnection]:
        with self._lock:
            connection = self._connections.get(device_id)
        return connection.model_copy() if connection is not None else None

    def device_ids(self) -> List[str]:
        with self._lock:
            return list(self._states)

    def snapshot(self) -> Dict[str, Tuple[MiningState, Optional[StratumConnection]]]:
        """Consistent copy of every device's state and connection."""
        with self._lock:
            snapshot = {}
            for device_id, state in self._states.items():
                connection = self._connections.get(device_id)
                snapshot[device_id] = (
                    state.model_copy(),
                    connection.model_copy() if connection is not None else None
                )
            return snapshot

    def to_frame(self) -> pd.DataFrame:
        """
        Tabulate the fleet, one row per device.

        Connection columns are prefixed with ``stratum_``.
        """
        rows = []
        for device_id, (state, connection) in self.snapshot().items():
            row = {"device_id": device_id, **state.model_dump()}
            if connection is not None:
                row.update({f"stratum_{key}": value for key, value in connection.model_dump().items()})
            rows.append(row)

        columns = ["device_id", *MiningState.model_fields]
        columns += [f"stratum_{key}" for key in StratumConnection.model_fields]
        return pd.DataFrame(rows, columns=columns)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, device_id: str) -> bool:
        with self._lock:
            return device_id in self._states
