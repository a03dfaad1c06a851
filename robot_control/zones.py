"""Shooting zone geometry and classification.

This module answers two questions about a field pose:
- Which named polygonal zone is the robot in? (ray casting, priority order)
- How far is it from the nearest zone? (closest point on each edge)

Zones are immutable. A ZoneClassifier is built once at startup from a
priority-ordered list and only read afterwards.

Boundary convention: a point on an edge or vertex (within
ZONE_BOUNDARY_TOLERANCE) is inside the zone, so contains() is True exactly
where distance_to() is 0.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import ZONE_BOUNDARY_TOLERANCE, ZONE_DEFINITIONS
from .model import Pose

NONE_LABEL = "NONE"
"""Label returned when no zone contains the pose."""

Point = Tuple[float, float]


@dataclass(frozen=True)
class Zone:
    """Named simple polygon on the field.

    Attributes:
        name: Label reported by classify()
        vertices: Polygon corners in order (inches). Non-convex is fine,
            self-intersecting is not.
    """

    name: str
    vertices: Tuple[Point, ...]

    def __init__(self, name: str, vertices: Iterable[Sequence[float]]):
        object.__setattr__(self, "name", name)
        object.__setattr__(
            self, "vertices", tuple((float(v[0]), float(v[1])) for v in vertices)
        )

    @property
    def is_degenerate(self) -> bool:
        """True when there are too few vertices to enclose an area."""
        return len(self.vertices) < 3

    @property
    def center(self) -> Point:
        """Vertex centroid."""
        if not self.vertices:
            return (math.nan, math.nan)
        xs, ys = zip(*self.vertices)
        return (sum(xs) / len(xs), sum(ys) / len(ys))

    def contains(self, pose: Pose) -> bool:
        return contains(self, pose)

    def distance_to(self, pose: Pose) -> float:
        return distance_to(self, pose)


def _edge_distances(vertices: Tuple[Point, ...], px: float, py: float) -> np.ndarray:
    """Distance from (px, py) to every edge of the closed polygon.

    Uses closest-point-on-segment projection with the parameter clamped to
    [0, 1]. Zero-length edges fall back to the distance to their start point.
    """
    a = np.asarray(vertices, dtype=float)
    b = np.roll(a, -1, axis=0)
    if len(a) == 2:
        # Two vertices close onto the same segment twice; one copy is enough
        a, b = a[:1], b[:1]

    ab = b - a
    ap = np.array([px, py]) - a
    length_sq = np.einsum("ij,ij->i", ab, ab)
    safe_length_sq = np.where(length_sq > 0.0, length_sq, 1.0)
    t = np.where(length_sq > 0.0, np.einsum("ij,ij->i", ap, ab) / safe_length_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)

    closest = a + t[:, np.newaxis] * ab
    return np.hypot(closest[:, 0] - px, closest[:, 1] - py)


def contains(zone: Zone, pose: Pose) -> bool:
    """Point-in-polygon test by ray casting.

    Casts a ray from the pose towards +x and counts edge crossings; an odd
    count means inside. Edges are treated half-open in y so a ray through a
    vertex is counted once.

    Args:
        zone: Polygon to test.
        pose: Query point (heading ignored).

    Returns:
        True if inside or on the boundary. Always False for fewer than 3 vertices.
    """
    vertices = zone.vertices
    if len(vertices) < 3:
        return False

    px, py = pose.x, pose.y
    if float(np.min(_edge_distances(vertices, px, py))) <= ZONE_BOUNDARY_TOLERANCE:
        return True

    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        if (yi > py) != (yj > py):
            x_cross = xi + (py - yi) * (xj - xi) / (yj - yi)
            if px < x_cross:
                inside = not inside
        j = i
    return inside


def distance_to(zone: Zone, pose: Pose) -> float:
    """Shortest distance from the pose to the zone.

    Args:
        zone: Polygon to measure against.
        pose: Query point (heading ignored).

    Returns:
        0.0 if the pose is inside, else the minimum distance to any edge
        (inches). A 1-vertex zone measures to the point, a 2-vertex zone to
        the segment, an empty zone is infinitely far.
    """
    if not zone.vertices:
        return math.inf
    if contains(zone, pose):
        return 0.0
    return float(np.min(_edge_distances(zone.vertices, pose.x, pose.y)))


def classify(pose: Pose, zones: Iterable[Zone]) -> str:
    """Label of the first zone (in the given order) that contains the pose.

    Order is the tie-break for overlapping zones: put the most specific
    (smallest) zone first.

    Returns:
        Zone name, or NONE_LABEL if no zone contains the pose.
    """
    for zone in zones:
        if contains(zone, pose):
            return zone.name
    return NONE_LABEL


def nearest_zone_distance(pose: Pose, zones: Iterable[Zone]) -> float:
    """Minimum distance_to() over all zones (inf for an empty set)."""
    return min((distance_to(zone, pose) for zone in zones), default=math.inf)


class ZoneClassifier:
    """Read-only registry of named zones in priority order.

    Registration validates every zone once so per-cycle queries never have
    to: degenerate polygons, duplicate names and the reserved NONE label
    are rejected here.
    """

    def __init__(self, zones: Iterable[Zone]):
        """Build the registry.

        Args:
            zones: Zones in classification priority order (first wins).

        Raises:
            ValueError: If a zone has fewer than 3 vertices, a name repeats,
                or a zone is named NONE_LABEL.
        """
        ordered: List[Zone] = []
        by_name: Dict[str, Zone] = {}
        for zone in zones:
            if zone.is_degenerate:
                raise ValueError(
                    f"Zone {zone.name!r} has {len(zone.vertices)} vertices, need at least 3"
                )
            if zone.name == NONE_LABEL:
                raise ValueError(f"Zone name {NONE_LABEL!r} is reserved")
            if zone.name in by_name:
                raise ValueError(f"Duplicate zone name {zone.name!r}")
            ordered.append(zone)
            by_name[zone.name] = zone

        self._zones: Tuple[Zone, ...] = tuple(ordered)
        self._by_name = by_name

    @property
    def names(self) -> Tuple[str, ...]:
        """Zone names in priority order."""
        return tuple(zone.name for zone in self._zones)

    def zone(self, name: str) -> Optional[Zone]:
        return self._by_name.get(name)

    def classify(self, pose: Pose) -> str:
        return classify(pose, self._zones)

    def distance_to_nearest_zone(self, pose: Pose) -> float:
        return nearest_zone_distance(pose, self._zones)

    def __iter__(self) -> Iterator[Zone]:
        return iter(self._zones)

    def __len__(self) -> int:
        return len(self._zones)


def default_zones() -> ZoneClassifier:
    """Competition zone registry built from config.ZONE_DEFINITIONS."""
    return ZoneClassifier(Zone(name, vertices) for name, vertices in ZONE_DEFINITIONS)
