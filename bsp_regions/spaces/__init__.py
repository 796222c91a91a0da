"""
Конкретные пространства: прямая, окружность, плоскость, пространство, сфера
"""
from .euclidean1d import Vector1D, OrientedPoint, Interval, IntervalsSet
from .sphere1d import S1Point, LimitAngle, Arc, ArcsSet
from .euclidean2d import Vector2D, Line, SubLine, Segment, PolygonsSet
from .euclidean3d import Vector3D, Line3D, Plane, SubPlane, PolyhedronsSet, rotation_matrix
from .sphere2d import S2Point, Circle, SubCircle, Edge, SphericalPolygonsSet

__all__ = [
    'Vector1D',
    'OrientedPoint',
    'Interval',
    'IntervalsSet',
    'S1Point',
    'LimitAngle',
    'Arc',
    'ArcsSet',
    'Vector2D',
    'Line',
    'SubLine',
    'Segment',
    'PolygonsSet',
    'Vector3D',
    'Line3D',
    'Plane',
    'SubPlane',
    'PolyhedronsSet',
    'rotation_matrix',
    'S2Point',
    'Circle',
    'SubCircle',
    'Edge',
    'SphericalPolygonsSet',
]
