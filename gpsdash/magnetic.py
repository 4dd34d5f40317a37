"""
Rough magnetic variation estimate

Regional polynomial fits of heading correction in latitude and longitude.
Only Western Europe, the contiguous USA and Alaska are covered; anywhere
else the magnetic heading cannot be computed.
"""

import logging
from typing import Optional

import numpy as np
from numpy.polynomial import polynomial as P

from .utils import is_absent

logger = logging.getLogger(__name__)

# coefficient[i, j] multiplies lat**i * lon**j
_WESTERN_EUROPE = np.array([
    [10.4768771667158, -0.507385322418858, 0.00753170031703826, -1.40596203924748e-05],
    [-0.535560699962353, 0.0154348808069955, -8.07756425110592e-05, 0.0],
    [0.00976887198864442, -0.000259163929798334, 0.0, 0.0],
    [-3.69056939266123e-05, 0.0, 0.0, 0.0],
])

# Longitude is measured positive west for the two North American fits
_USA = np.array([
    [-65.6811, 2.87622, -0.0389806, 0.000168556],
    [0.99, -0.0116268, -0.0000403488, 0.0],
    [0.0128899, -0.00000603925, 0.0, 0.0],
    [-0.0000905928, 0.0, 0.0, 0.0],
])

_ALASKA = np.array([
    [618.854, -12.7974, -0.00602173, 0.000222521],
    [2.76049, 0.408161, -0.00144712, 0.0],
    [-0.556206, 0.000434097, 0.0, 0.0],
    [0.00251582, 0.0, 0.0, 0.0],
])


def magnetic_correction(lat: float, lon: float) -> Optional[float]:
    """Degrees to add to a true heading, or None outside the covered regions."""
    if is_absent(lat) or is_absent(lon):
        return None

    if 36.0 < lat < 68.0 and -10.0 < lon < 28.0:
        return float(P.polyval2d(lat, lon, _WESTERN_EUROPE))
    if 24.0 < lat < 50.0 and -125.0 < lon < -66.0:
        return float(P.polyval2d(lat, -lon, _USA))
    if lat > 54.0 and -172.0 < lon < -130.0:
        return float(P.polyval2d(lat, -lon, _ALASKA))
    return None


def true_to_magnetic(lat: float, lon: float, heading: float) -> Optional[float]:
    """Estimated magnetic heading in [0, 360), or None if not computable."""
    if is_absent(heading):
        return None
    correction = magnetic_correction(lat, lon)
    if correction is None:
        return None
    return (heading + correction) % 360.0
