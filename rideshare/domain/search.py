"""
Nearby Ride Search
==================

1. **Spatial Binning** -- each ride stores the H3 cell of its start point.
2. **Candidate Cells**  -- the passenger's pickup cell plus a ``k``-ring
   around it (``grid_disk``) bounds the rows fetched from the database.
3. **Refine & Rank**    -- candidates are kept when both the start point
   is within ``radius_km`` of the pickup and the end point is within
   ``radius_km`` of the destination; results are sorted by pickup
   distance, then by drop-off distance.

Complexity
----------
Let N = pending rides in the candidate cells.

* Cell lookup:  O(k^2)   -- size of the hexagonal ring
* Refinement:   O(N)     -- two haversine calls per ride
* Ranking:      O(N log N)

Full rides and rides that no longer accept joins are dropped before
ranking.
"""

from __future__ import annotations

from dataclasses import dataclass

import h3

from .capacity import is_full
from .distance import distance_between
from .entities import RideOffer
from .lifecycle import accepts_changes
from .location import Location


def ride_h3_cell(location: Location, resolution: int = 7) -> str:
    """Map a location to an H3 hexagonal cell index.  O(1)."""
    return h3.latlng_to_cell(location.latitude, location.longitude, resolution)


def candidate_cells(
    location: Location, resolution: int = 7, ring_size: int = 2
) -> set[str]:
    """The cell containing *location* plus every cell within *ring_size*."""
    origin = ride_h3_cell(location, resolution)
    return set(h3.grid_disk(origin, ring_size))


@dataclass(frozen=True)
class RideMatch:
    ride: RideOffer
    pickup_distance_km: float
    dropoff_distance_km: float


def rank_rides(
    rides: list[RideOffer],
    pickup: Location,
    destination: Location,
    radius_km: float,
) -> list[RideMatch]:
    matches: list[RideMatch] = []
    for ride in rides:
        if not accepts_changes(ride) or is_full(ride):
            continue

        to_start = distance_between(pickup, ride.start_point)
        if to_start > radius_km:
            continue
        to_end = distance_between(destination, ride.end_point)
        if to_end > radius_km:
            continue

        matches.append(RideMatch(ride, to_start, to_end))

    matches.sort(key=lambda m: (m.pickup_distance_km, m.dropoff_distance_km))
    return matches
