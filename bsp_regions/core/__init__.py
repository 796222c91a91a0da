"""
Ядро BSP регионов: деревья, подгиперплоскости, регионы и их алгебра
"""
from .errors import (
    RegionError,
    InvalidIntervalError,
    DegenerateGeometryError,
    InconsistentStateAt2PiWrapping,
    NotConvexError,
    MalformedBoundaryError,
    TreeDepthError,
    MathInternalError,
)
from .geometry import Location, Side, Hyperplane, SubHyperplane, Transform
from .structures import BSPTree, BoundaryAttribute, Order
from .metrics import BoundaryProjection
from .region import AbstractRegion, RegionSplit
from .builder import TreeBuilder
from .factory import RegionFactory

__all__ = [
    'RegionError',
    'InvalidIntervalError',
    'DegenerateGeometryError',
    'InconsistentStateAt2PiWrapping',
    'NotConvexError',
    'MalformedBoundaryError',
    'TreeDepthError',
    'MathInternalError',
    'Location',
    'Side',
    'Hyperplane',
    'SubHyperplane',
    'Transform',
    'BSPTree',
    'BoundaryAttribute',
    'Order',
    'AbstractRegion',
    'RegionSplit',
    'BoundaryProjection',
    'TreeBuilder',
    'RegionFactory',
]
