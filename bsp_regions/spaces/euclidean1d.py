"""
Одномерное евклидово пространство: точки, ориентированные точки, интервалы
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence
import math

from ..config import DEFAULT_TOLERANCE, SAFE_MIN
from ..core.errors import InvalidIntervalError
from ..core.geometry import (AbstractSubHyperplane, Hyperplane, Location, Point,
                             SplitSubHyperplane, SubHyperplane)
from ..core.region import AbstractRegion
from ..core.structures import BSPTree
from ..core.builder import TreeBuilder


@dataclass(frozen=True)
class Vector1D(Point):
    """Точка на прямой"""
    x: float

    def distance(self, other: 'Vector1D') -> float:
        return abs(self.x - other.x)

    def is_nan(self) -> bool:
        return math.isnan(self.x)


Vector1D.ZERO = Vector1D(0.0)
Vector1D.ONE = Vector1D(1.0)
Vector1D.NaN = Vector1D(math.nan)


class OrientedPoint(Hyperplane):
    """
    Гиперплоскость одномерного пространства

    Args:
        location: Положение точки
        direct: Положительная сторона - в сторону возрастания координаты
        tolerance: Допуск
    """

    def __init__(self, location: Vector1D, direct: bool, tolerance: float = DEFAULT_TOLERANCE):
        self.location = location
        self.direct = direct
        self.tolerance = tolerance

    def get_offset(self, point: Vector1D) -> float:
        delta = point.x - self.location.x
        return delta if self.direct else -delta

    def project(self, point: Vector1D) -> Vector1D:
        return self.location

    def get_tolerance(self) -> float:
        return self.tolerance

    def same_orientation_as(self, other: 'OrientedPoint') -> bool:
        return self.direct == other.direct

    def whole_hyperplane(self) -> 'SubOrientedPoint':
        return SubOrientedPoint(self, None)

    def whole_space(self) -> 'IntervalsSet':
        return IntervalsSet(tolerance=self.tolerance)

    def get_reverse(self) -> 'OrientedPoint':
        return OrientedPoint(self.location, not self.direct, self.tolerance)

    def __repr__(self) -> str:
        return f"OrientedPoint({self.location.x}, direct={self.direct})"


class SubOrientedPoint(AbstractSubHyperplane):
    """Подгиперплоскость одномерного пространства (размер 0, никогда не пуста)"""

    def build_new(self, hyperplane, remaining_region):
        return SubOrientedPoint(hyperplane, remaining_region)

    def get_size(self) -> float:
        return 0.0

    def is_empty(self) -> bool:
        return False

    def split(self, hyperplane: Hyperplane) -> SplitSubHyperplane:
        global_offset = hyperplane.get_offset(self.get_hyperplane().location)
        tolerance = hyperplane.get_tolerance()
        if global_offset < -tolerance:
            return SplitSubHyperplane(None, self)
        if global_offset > tolerance:
            return SplitSubHyperplane(self, None)
        return SplitSubHyperplane(None, None)


@dataclass(frozen=True)
class Interval:
    """
    Замкнутый интервал [lower, upper]

    Raises:
        InvalidIntervalError: upper < lower
    """
    lower: float
    upper: float

    def __post_init__(self):
        if self.upper < self.lower:
            raise InvalidIntervalError(self.lower, self.upper)

    def get_inf(self) -> float:
        return self.lower

    def get_sup(self) -> float:
        return self.upper

    def get_size(self) -> float:
        return self.upper - self.lower

    def get_barycenter(self) -> float:
        return 0.5 * (self.lower + self.upper)

    def check_point(self, point: float, tolerance: float = DEFAULT_TOLERANCE) -> Location:
        if point < self.lower - tolerance or point > self.upper + tolerance:
            return Location.OUTSIDE
        if self.lower + tolerance < point < self.upper - tolerance:
            return Location.INSIDE
        return Location.BOUNDARY


class IntervalsSet(AbstractRegion):
    """Объединение интервалов на прямой"""

    @classmethod
    def from_bounds(cls, lower: float, upper: float,
                    tolerance: float = DEFAULT_TOLERANCE) -> 'IntervalsSet':
        """
        Интервал [lower, upper]; бесконечные границы допустимы

        Raises:
            InvalidIntervalError: lower > upper
        """
        if lower > upper:
            raise InvalidIntervalError(lower, upper)
        return cls(cls._build_tree(lower, upper, tolerance), tolerance)

    @classmethod
    def from_boundary(cls, boundary: Sequence[SubHyperplane],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'IntervalsSet':
        return cls(TreeBuilder.from_boundary(boundary), tolerance)

    @staticmethod
    def _build_tree(lower: float, upper: float, tolerance: float) -> BSPTree:
        if math.isinf(lower) and lower < 0:
            if math.isinf(upper) and upper > 0:
                # вся прямая
                return BSPTree(True)
            # открыто в сторону минус бесконечности
            upper_cut = OrientedPoint(Vector1D(upper), True, tolerance).whole_hyperplane()
            return BSPTree(upper_cut, BSPTree(False), BSPTree(True), None)

        lower_cut = OrientedPoint(Vector1D(lower), False, tolerance).whole_hyperplane()
        if math.isinf(upper) and upper > 0:
            # открыто в сторону плюс бесконечности
            return BSPTree(lower_cut, BSPTree(False), BSPTree(True), None)

        upper_cut = OrientedPoint(Vector1D(upper), True, tolerance).whole_hyperplane()
        return BSPTree(lower_cut,
                       BSPTree(False),
                       BSPTree(upper_cut, BSPTree(False), BSPTree(True), None),
                       None)

    def build_new(self, tree: BSPTree) -> 'IntervalsSet':
        return IntervalsSet(tree, self.get_tolerance())

    def compute_geometrical_properties(self) -> None:
        tree = self.get_tree(False)
        if tree.cut is None:
            self._set_barycenter(Vector1D.NaN)
            self._set_size(math.inf if tree.attribute else 0.0)
            return

        size = 0.0
        total = 0.0
        for interval in self.as_list():
            size += interval.get_size()
            total += interval.get_size() * interval.get_barycenter()

        self._set_size(size)
        if math.isinf(size):
            self._set_barycenter(Vector1D.NaN)
        elif size >= SAFE_MIN:
            self._set_barycenter(Vector1D(total / size))
        else:
            self._set_barycenter(tree.cut.get_hyperplane().location)

    def get_inf(self) -> float:
        """Нижняя грань множества (-inf для неограниченного снизу)"""
        node = self.get_tree(False)
        inf = math.inf
        while node.cut is not None:
            op = node.cut.get_hyperplane()
            inf = op.location.x
            node = node.minus if op.direct else node.plus
        return -math.inf if node.attribute else inf

    def get_sup(self) -> float:
        """Верхняя грань множества (+inf для неограниченного сверху)"""
        node = self.get_tree(False)
        sup = -math.inf
        while node.cut is not None:
            op = node.cut.get_hyperplane()
            sup = op.location.x
            node = node.plus if op.direct else node.minus
        return math.inf if node.attribute else sup

    def as_list(self) -> List[Interval]:
        """Интервалы в порядке возрастания; соседние интервалы сливаются"""
        intervals: List[Interval] = []
        stack = [(self.get_tree(False), -math.inf, math.inf)]
        while stack:
            node, lower, upper = stack.pop()
            if node.cut is None:
                if node.attribute:
                    if intervals and intervals[-1].get_sup() == lower:
                        # разрез между двумя внутренними ячейками не является границей
                        lower = intervals.pop().get_inf()
                    intervals.append(Interval(lower, upper))
                continue

            op = node.cut.get_hyperplane()
            x = op.location.x

            # обход в порядке возрастания координаты: нижнее поддерево снимается со стека первым
            low = node.minus if op.direct else node.plus
            high = node.plus if op.direct else node.minus
            stack.append((high, x, upper))
            stack.append((low, lower, x))
        return intervals

    def __iter__(self):
        for interval in self.as_list():
            yield interval.get_inf(), interval.get_sup()

