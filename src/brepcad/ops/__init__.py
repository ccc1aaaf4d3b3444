"""Constructive and boolean operations producing validated solids."""

from __future__ import annotations

from .profile import (
    Profile,
    ProfileSegment,
    polygon,
    rectangle,
    circle,
    regular_polygon,
)
from .extrude import extrude
from .sweep import Path, sweep
from .revolve import revolve
from .boolean import Classification, boolean, union, intersection, difference
from .primitives import box, cylinder, prism, faceted_cylinder, tetrahedron
from .transform import (
    transform_solid,
    translate,
    rotate,
    scale,
    mirror,
    facet_solid,
)
from .polymesh import PolyMesh

__all__ = [
    'Profile',
    'ProfileSegment',
    'polygon',
    'rectangle',
    'circle',
    'regular_polygon',
    'extrude',
    'Path',
    'sweep',
    'revolve',
    'Classification',
    'boolean',
    'union',
    'intersection',
    'difference',
    'box',
    'cylinder',
    'prism',
    'faceted_cylinder',
    'tetrahedron',
    'transform_solid',
    'translate',
    'rotate',
    'scale',
    'mirror',
    'facet_solid',
    'PolyMesh',
]
