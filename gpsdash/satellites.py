"""
Satellite list selection for the skyview panel.
"""

from typing import List, Optional, Sequence, Tuple

from .formatting import fit
from .telemetry import SatelliteInfo

# Receiver channel count minus the two reserved channels
MAX_POSSIBLE_SATS = 70

SATELLITE_HEADER = "PRN:   Elev:  Azim:  SNR:  Used:"

SatelliteRow = Tuple[int, Optional[SatelliteInfo]]


def select_satellites(satellites: Sequence[SatelliteInfo], visible_count: int,
                      row_budget: int) -> List[SatelliteRow]:
    """
    Choose which satellites to show in the available rows

    When every possible slot fits, one row is emitted per slot so rows never
    shift between snapshots. Otherwise satellites used in the fix are
    preferred; if everything visible fits, all visible entries qualify.
    Unfilled rows are emitted blank.

    Args:
        satellites: Skyview in receiver order
        visible_count: Number of satellites the receiver reports in view
        row_budget: Rows available for satellite entries

    Returns:
        List of (row index, satellite or None for a blank row)
    """
    row_budget = max(0, row_budget)
    tracked = min(max(0, visible_count), len(satellites))

    if row_budget >= MAX_POSSIBLE_SATS:
        return [(i, satellites[i] if i < tracked else None)
                for i in range(MAX_POSSIBLE_SATS)]

    everything_fits = visible_count <= row_budget
    chosen: List[SatelliteRow] = []
    for sat in satellites[:tracked]:
        if len(chosen) >= row_budget:
            break
        if sat.used or everything_fits:
            chosen.append((len(chosen), sat))

    for row in range(len(chosen), row_budget):
        chosen.append((row, None))
    return chosen


def format_satellite(sat: Optional[SatelliteInfo], width: int) -> str:
    """One skyview row; a blank row clears whatever was drawn before."""
    if sat is None:
        return fit("", width)
    return fit(
        f" {sat.prn:3d}    {sat.elevation:02d}    {sat.azimuth:03d}    "
        f"{int(sat.signal_strength):02d}      {'Y' if sat.used else 'N'}",
        width
    )
