"""
Road-network oracle.

The planner only needs three answers from the road network: how far apart two centroids
are, how long driving between them takes at a given speed, and which centroids are "far"
(outside the area where combined trips make sense). This module answers them with a
great-circle distance stretched by a detour factor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Centroid:
    id: str
    lat: float
    lon: float
    name: str = ""

    def __str__(self) -> str:
        return self.name or self.id

    @classmethod
    def from_row(cls, row) -> "Centroid":
        """Build from a scenario row ``(id, name, lat, lon)``."""
        centroid_id, name, lat, lon = row
        return cls(str(centroid_id), float(lat), float(lon), str(name))


def haversine_km(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


class RoadNetwork:
    def __init__(
        self,
        centroids: Iterable[Centroid],
        port_location: Tuple[float, float],
        detour_factor: float = 1.3,
        far_threshold_km: float = 150.0,
    ):
        if detour_factor < 1.0:
            raise ValueError("detour_factor must be >= 1.0.")
        self.centroid_map: Dict[str, Centroid] = {c.id: c for c in centroids}
        self.port_location = port_location
        self.detour_factor = detour_factor
        self.far_threshold_km = far_threshold_km
        self._far: Optional[FrozenSet[Centroid]] = None

    def add_centroid(self, centroid: Centroid) -> None:
        self.centroid_map[centroid.id] = centroid
        self._far = None

    def centroid(self, centroid_id: str) -> Centroid:
        return self.centroid_map[centroid_id]

    def distance(self, orig: Centroid, dest: Centroid) -> float:
        """Road distance in km."""
        if orig == dest:
            return 0.0
        return haversine_km((orig.lat, orig.lon), (dest.lat, dest.lon)) * self.detour_factor

    def driving_time(self, orig: Centroid, dest: Centroid, speed_kmh: float) -> timedelta:
        if speed_kmh <= 0:
            raise ValueError("speed_kmh must be positive.")
        return timedelta(hours=self.distance(orig, dest) / speed_kmh)

    def far_centroids(self) -> FrozenSet[Centroid]:
        if self._far is None:
            self._far = frozenset(
                c
                for c in self.centroid_map.values()
                if haversine_km(self.port_location, (c.lat, c.lon)) * self.detour_factor > self.far_threshold_km
            )
        return self._far
