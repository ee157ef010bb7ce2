"""
Registry of hardware archetypes used to build model input features.
"""

import threading
from typing import Dict, Iterable, List, Optional, Union

from ai_engine.schemas import HardwareProfile
from ai_engine.utils.logging_config import logger


def infer_hardware_type(device_id: str) -> str:
    """Guess the hardware type from a device identifier."""
    lowered = device_id.lower()
    if "gpu" in lowered:
        return "gpu"
    if "asic" in lowered:
        return "asic"
    return "cpu"


class HardwareProfileRegistry:
    """
    Catalog of immutable hardware profiles keyed by ``"{type}-{model}"``.

    Profiles are added once and never replaced or removed.
    """

    def __init__(self, profiles: Optional[Iterable[Union[HardwareProfile, Dict]]] = None):
        self._profiles: Dict[str, HardwareProfile] = {}
        self._lock = threading.Lock()
        for profile in profiles or []:
            self.add(profile)

    def add(self, profile: Union[HardwareProfile, Dict]) -> str:
        """
        Add a profile to the catalog.

        Returns:
            The profile id. Adding an id that already exists keeps the
            original entry.
        """
        if not isinstance(profile, HardwareProfile):
            profile = HardwareProfile(**profile)

        profile_id = profile.profile_id
        with self._lock:
            if profile_id in self._profiles:
                logger.debug(f"Hardware profile {profile_id} already registered")
                return profile_id
            self._profiles[profile_id] = profile

        logger.info(f"Added hardware profile: {profile_id}")
        return profile_id

    def get(self, profile_id: str) -> Optional[HardwareProfile]:
        with self._lock:
            return self._profiles.get(profile_id)

    def profiles(self) -> List[HardwareProfile]:
        with self._lock:
            return list(self._profiles.values())

    def by_type(self, hardware_type: str) -> List[HardwareProfile]:
        return [profile for profile in self.profiles() if profile.type == hardware_type]

    def resolve(self, device_id: str) -> Optional[HardwareProfile]:
        """
        Find the profile for a device.

        An exact id match wins; otherwise the first profile of the type
        inferred from the device id is used.
        """
        exact = self.get(device_id)
        if exact is not None:
            return exact

        candidates = self.by_type(infer_hardware_type(device_id))
        return candidates[0] if candidates else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def __contains__(self, profile_id: str) -> bool:
        with self._lock:
            return profile_id in self._profiles
