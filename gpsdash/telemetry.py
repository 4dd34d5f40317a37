"""
Telemetry data model

Snapshots are produced by a telemetry source and consumed read-only by the
renderer. Missing values are always ``None``; the source never substitutes
sentinel numbers.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Tuple, Union


class FixMode(IntEnum):
    """Fix quality reported by the receiver"""
    NONE = 0
    NO_FIX = 1
    FIX_2D = 2
    FIX_3D = 3

    @classmethod
    def from_value(cls, value) -> "FixMode":
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.NONE


class DisplayMode(Enum):
    """Shape of the telemetry being displayed"""
    POSITION = "position"
    ATTITUDE = "attitude"


@dataclass(frozen=True)
class SatelliteInfo:
    """One entry of the receiver's skyview"""
    prn: int
    elevation: int = 0
    azimuth: int = 0
    signal_strength: float = 0.0
    used: bool = False


@dataclass
class TelemetrySnapshot:
    """
    Position/velocity fix as last reported by the source

    Attributes:
        mode: Fix quality
        online: Whether the receiver is currently online
        time: Fix time in seconds since the epoch
        latitude, longitude: Degrees, signed
        altitude: Meters
        track: Course over ground in degrees true
        speed: Meters per second
        climb: Meters per second
        epx, epy, epv: Longitude/latitude/altitude error estimates in meters
        epd: Track error estimate in degrees
        eps: Speed error estimate in meters per second
        satellites_visible: Count of satellites in view
        satellites: Skyview, in receiver order
        raw_line: Raw protocol text for the log panel
    """
    mode: FixMode = FixMode.NONE
    online: bool = False
    time: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    track: Optional[float] = None
    speed: Optional[float] = None
    climb: Optional[float] = None
    epx: Optional[float] = None
    epy: Optional[float] = None
    epv: Optional[float] = None
    epd: Optional[float] = None
    eps: Optional[float] = None
    satellites_visible: int = 0
    satellites: Tuple[SatelliteInfo, ...] = field(default_factory=tuple)
    raw_line: Optional[str] = None


@dataclass
class AttitudeSnapshot:
    """Heading/attitude report from a compass-type device"""
    online: bool = False
    time: Optional[float] = None
    heading: Optional[float] = None
    pitch: Optional[float] = None
    roll: Optional[float] = None
    dip: Optional[float] = None
    receiver_type: Optional[str] = None
    raw_line: Optional[str] = None


Snapshot = Union[TelemetrySnapshot, AttitudeSnapshot]
