"""
Unit systems and locale-based auto-detection.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

METERS_TO_FEET = 3.2808399
MPS_TO_MPH = 2.2369363
MPS_TO_KNOTS = 1.9438445
MPS_TO_KPH = 3.6


class UnitSystem(Enum):
    """Supported unit systems"""
    IMPERIAL = "imperial"
    NAUTICAL = "nautical"
    METRIC = "metric"

    @classmethod
    def parse(cls, value: str) -> "UnitSystem":
        """Accept full names or their first letter, case-insensitively."""
        text = (value or "").strip().lower()
        for system in cls:
            if text == system.value or (len(text) == 1 and system.value.startswith(text)):
                return system
        raise ValueError(f"Unknown unit system: {value}")


@dataclass(frozen=True)
class UnitPreference:
    """Conversion factors and labels used when rendering fields."""
    system: UnitSystem
    altitude_factor: float
    altitude_units: str
    speed_factor: float
    speed_units: str

    @classmethod
    def for_system(cls, system: UnitSystem) -> "UnitPreference":
        if system is UnitSystem.NAUTICAL:
            return cls(system, METERS_TO_FEET, "ft", MPS_TO_KNOTS, "knots")
        if system is UnitSystem.METRIC:
            return cls(system, 1.0, "m", MPS_TO_KPH, "kph")
        return cls(UnitSystem.IMPERIAL, METERS_TO_FEET, "ft", MPS_TO_MPH, "mph")


def detect_unit_system(environ: Optional[Mapping[str, str]] = None) -> Optional[UnitSystem]:
    """Guess the unit system from GPSD_UNITS, then LC_MEASUREMENT or LANG.

    Returns None when nothing in the environment gives a hint.
    """
    env = os.environ if environ is None else environ

    explicit = env.get("GPSD_UNITS", "")
    if explicit:
        try:
            return UnitSystem(explicit.strip().lower())
        except ValueError:
            logger.debug(f"Ignoring unrecognized GPSD_UNITS value: {explicit}")

    locale_name = env.get("LC_MEASUREMENT") or env.get("LANG") or ""
    if locale_name:
        if locale_name[:5].lower() == "en_us" or locale_name.upper() in ("C", "POSIX"):
            return UnitSystem.IMPERIAL
        return UnitSystem.METRIC

    return None
