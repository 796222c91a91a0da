"""
Одномерная сфера (окружность): углы, предельные углы, дуги

Предельные углы упорядочивают окружность как [0, 2pi). Дерево любого
набора дуг обязано быть согласованным на стыке 2pi: лист до наименьшего
предельного угла и лист после наибольшего описывают одну и ту же ячейку.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple
import logging
import math

from ..config import DEFAULT_TOLERANCE, SAFE_MIN, TWO_PI, normalize_angle
from ..core.builder import TreeBuilder
from ..core.errors import InconsistentStateAt2PiWrapping, InvalidIntervalError, MathInternalError
from ..core.geometry import (AbstractSubHyperplane, Hyperplane, Location, Point,
                             SplitSubHyperplane, SubHyperplane)
from ..core.metrics import BoundaryProjection
from ..core.region import AbstractRegion, RegionSplit
from ..core.structures import BSPTree

logger = logging.getLogger(__name__)


class S1Point(Point):
    """
    Точка окружности

    Args:
        alpha: Угол; нормализуется в [0, 2pi)
    """

    __slots__ = ('alpha',)

    def __init__(self, alpha: float):
        self.alpha = normalize_angle(alpha, math.pi)

    def distance(self, other: 'S1Point') -> float:
        delta = abs(self.alpha - other.alpha)
        return min(delta, TWO_PI - delta)

    def is_nan(self) -> bool:
        return math.isnan(self.alpha)

    def __eq__(self, other) -> bool:
        if not isinstance(other, S1Point):
            return NotImplemented
        if self.is_nan() or other.is_nan():
            return self.is_nan() and other.is_nan()
        return self.alpha == other.alpha

    def __hash__(self) -> int:
        return 542 if self.is_nan() else hash(self.alpha)

    def __repr__(self) -> str:
        return f"S1Point({self.alpha})"


S1Point.NaN = S1Point(math.nan)


class LimitAngle(Hyperplane):
    """
    Гиперплоскость окружности: граница дуги

    Args:
        location: Положение предельного угла
        direct: Положительная сторона - в сторону возрастания угла
        tolerance: Допуск
    """

    def __init__(self, location: S1Point, direct: bool, tolerance: float = DEFAULT_TOLERANCE):
        self.location = location
        self.direct = direct
        self.tolerance = tolerance

    def get_offset(self, point: S1Point) -> float:
        delta = point.alpha - self.location.alpha
        return delta if self.direct else -delta

    def project(self, point: S1Point) -> S1Point:
        return self.location

    def get_tolerance(self) -> float:
        return self.tolerance

    def same_orientation_as(self, other: 'LimitAngle') -> bool:
        return self.direct == other.direct

    def whole_hyperplane(self) -> 'SubLimitAngle':
        return SubLimitAngle(self, None)

    def whole_space(self) -> 'ArcsSet':
        return ArcsSet(tolerance=self.tolerance)

    def get_reverse(self) -> 'LimitAngle':
        return LimitAngle(self.location, not self.direct, self.tolerance)

    def __repr__(self) -> str:
        return f"LimitAngle({self.location.alpha}, direct={self.direct})"


class SubLimitAngle(AbstractSubHyperplane):
    """Подгиперплоскость окружности (размер 0, никогда не пуста)"""

    def build_new(self, hyperplane, remaining_region):
        return SubLimitAngle(hyperplane, remaining_region)

    def get_size(self) -> float:
        return 0.0

    def is_empty(self) -> bool:
        return False

    def split(self, hyperplane: Hyperplane) -> SplitSubHyperplane:
        global_offset = hyperplane.get_offset(self.get_hyperplane().location)
        if global_offset < -hyperplane.get_tolerance():
            return SplitSubHyperplane(None, self)
        if global_offset > hyperplane.get_tolerance():
            return SplitSubHyperplane(self, None)
        return SplitSubHyperplane(None, None)


class Arc:
    """
    Дуга [lower, upper] окружности

    Дуга с совпадающими концами или длиной не меньше 2pi покрывает всю
    окружность. Нижний конец нормализуется в [0, 2pi), верхний может
    превышать 2pi.

    Raises:
        InvalidIntervalError: lower > upper
    """

    def __init__(self, lower: float, upper: float, tolerance: float = DEFAULT_TOLERANCE):
        self.tolerance = tolerance
        if lower == upper or upper - lower >= TWO_PI:
            self.lower = 0.0
            self.upper = TWO_PI
            self.middle = math.pi
        elif lower <= upper:
            self.lower = normalize_angle(lower, math.pi)
            self.upper = self.lower + (upper - lower)
            self.middle = 0.5 * (self.lower + self.upper)
        else:
            raise InvalidIntervalError(lower, upper)

    def get_inf(self) -> float:
        return self.lower

    def get_sup(self) -> float:
        return self.upper

    def get_size(self) -> float:
        return self.upper - self.lower

    def get_barycenter(self) -> float:
        return self.middle

    def check_point(self, point: float) -> Location:
        normalized = normalize_angle(point, self.middle)
        if normalized < self.lower - self.tolerance or normalized > self.upper + self.tolerance:
            return Location.OUTSIDE
        if self.lower + self.tolerance < normalized < self.upper - self.tolerance:
            return Location.INSIDE
        return Location.INSIDE if self.get_size() >= TWO_PI - self.tolerance else Location.BOUNDARY

    def __repr__(self) -> str:
        return f"Arc({self.lower}, {self.upper})"


@dataclass
class ArcsSplit:
    """Части набора дуг по обе стороны разрезающей дуги (None - пустая часть)"""
    plus: Optional['ArcsSet']
    minus: Optional['ArcsSet']


class ArcsSet(AbstractRegion):
    """
    Объединение дуг окружности

    Конструирование из дерева или из списка границ проверяет согласованность
    на стыке 2pi.

    Raises:
        InconsistentStateAt2PiWrapping: дерево несогласовано на стыке 2pi
    """

    def __init__(self, tree: Optional[BSPTree] = None, tolerance: float = DEFAULT_TOLERANCE):
        super().__init__(tree, tolerance)
        self._check_2pi_consistency()

    @classmethod
    def from_bounds(cls, lower: float, upper: float,
                    tolerance: float = DEFAULT_TOLERANCE) -> 'ArcsSet':
        """
        Дуга [lower, upper]

        Raises:
            InvalidIntervalError: lower > upper
        """
        return cls(cls._build_tree(lower, upper, tolerance), tolerance)

    @classmethod
    def from_boundary(cls, boundary: Sequence[SubHyperplane],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'ArcsSet':
        return cls(TreeBuilder.from_boundary(boundary), tolerance)

    @staticmethod
    def _build_tree(lower: float, upper: float, tolerance: float) -> BSPTree:
        if lower == upper or upper - lower >= TWO_PI:
            # вся окружность
            return BSPTree(True)
        if lower > upper:
            raise InvalidIntervalError(lower, upper)

        normalized_lower = normalize_angle(lower, math.pi)
        normalized_upper = normalized_lower + (upper - lower)
        lower_cut = LimitAngle(S1Point(normalized_lower), False, tolerance).whole_hyperplane()

        if normalized_upper < TWO_PI:
            # дуга внутри [0, 2pi)
            upper_cut = LimitAngle(S1Point(normalized_upper), True, tolerance).whole_hyperplane()
            return BSPTree(lower_cut,
                           BSPTree(False),
                           BSPTree(upper_cut, BSPTree(False), BSPTree(True), None),
                           None)

        # дуга проходит через 2pi: верхний конец переносится к началу
        upper_cut = LimitAngle(S1Point(normalized_upper - TWO_PI), True, tolerance).whole_hyperplane()
        return BSPTree(lower_cut,
                       BSPTree(upper_cut, BSPTree(False), BSPTree(True), None),
                       BSPTree(True),
                       None)

    def build_new(self, tree: BSPTree) -> 'ArcsSet':
        return ArcsSet(tree, self.get_tolerance())

    # ---------- порядок узлов на окружности ----------

    def _check_2pi_consistency(self) -> None:
        root = self.get_tree(False)
        if root.cut is None:
            return

        state_before = bool(self._get_first_leaf(root).attribute)
        state_after = bool(self._get_last_leaf(root).attribute)
        if state_before != state_after:
            raise InconsistentStateAt2PiWrapping()

    def _get_first_leaf(self, root: BSPTree) -> BSPTree:
        """Лист перед наименьшим предельным углом"""
        if root.cut is None:
            return root
        smallest = None
        node = root
        while node is not None:
            smallest = node
            node = self._previous_internal_node(node)
        return self._leaf_before(smallest)

    def _get_last_leaf(self, root: BSPTree) -> BSPTree:
        """Лист после наибольшего предельного угла"""
        if root.cut is None:
            return root
        largest = None
        node = root
        while node is not None:
            largest = node
            node = self._next_internal_node(node)
        return self._leaf_after(largest)

    def _get_first_arc_start(self) -> Optional[BSPTree]:
        node = self.get_tree(False)
        if node.cut is None:
            return None
        node = self._get_first_leaf(node).parent
        while node is not None and not self._is_arc_start(node):
            node = self._next_internal_node(node)
        return node

    def _is_arc_start(self, node: BSPTree) -> bool:
        # перед узлом внешняя ячейка, после - внутренняя
        return not self._leaf_before(node).attribute and bool(self._leaf_after(node).attribute)

    def _is_arc_end(self, node: BSPTree) -> bool:
        return bool(self._leaf_before(node).attribute) and not self._leaf_after(node).attribute

    def _next_internal_node(self, node: BSPTree) -> Optional[BSPTree]:
        if self._child_after(node).cut is not None:
            # следующий узел в поддереве
            return self._leaf_after(node).parent
        # поддерево исчерпано, поднимаемся
        while self._is_after_parent(node):
            node = node.parent
        return node.parent

    def _previous_internal_node(self, node: BSPTree) -> Optional[BSPTree]:
        if self._child_before(node).cut is not None:
            return self._leaf_before(node).parent
        while self._is_before_parent(node):
            node = node.parent
        return node.parent

    def _leaf_before(self, node: BSPTree) -> BSPTree:
        node = self._child_before(node)
        while node.cut is not None:
            node = self._child_after(node)
        return node

    def _leaf_after(self, node: BSPTree) -> BSPTree:
        node = self._child_after(node)
        while node.cut is not None:
            node = self._child_before(node)
        return node

    def _is_before_parent(self, node: BSPTree) -> bool:
        parent = node.parent
        return parent is not None and node is self._child_before(parent)

    def _is_after_parent(self, node: BSPTree) -> bool:
        parent = node.parent
        return parent is not None and node is self._child_after(parent)

    @staticmethod
    def _child_before(node: BSPTree) -> BSPTree:
        return node.minus if node.cut.get_hyperplane().direct else node.plus

    @staticmethod
    def _child_after(node: BSPTree) -> BSPTree:
        return node.plus if node.cut.get_hyperplane().direct else node.minus

    @staticmethod
    def _get_angle(node: BSPTree) -> float:
        return node.cut.get_hyperplane().location.alpha

    # ---------- дуги ----------

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        """Пары (начало, конец) дуг; начало в [0, 2pi), конец может превышать 2pi"""
        first_start = self._get_first_arc_start()
        if first_start is None:
            # нет ни одной границы: вся окружность или пусто
            if self._get_first_leaf(self.get_tree(False)).attribute:
                yield 0.0, TWO_PI
            return

        current = first_start
        while current is not None:
            start = current
            while start is not None and not self._is_arc_start(start):
                start = self._next_internal_node(start)
            if start is None:
                return

            end = start
            while end is not None and not self._is_arc_end(end):
                end = self._next_internal_node(end)

            if end is not None:
                yield self._get_angle(start), self._get_angle(end)
                current = end
            else:
                # последняя дуга проходит через 2pi, её конец - перед первым началом
                end = first_start
                while end is not None and not self._is_arc_end(end):
                    end = self._previous_internal_node(end)
                if end is None:
                    raise MathInternalError()
                yield self._get_angle(start), self._get_angle(end) + TWO_PI
                return

    def as_list(self) -> List[Arc]:
        """Дуги набора в порядке возрастания начального угла"""
        return [Arc(start, end, self.get_tolerance()) for start, end in self]

    def compute_geometrical_properties(self) -> None:
        tree = self.get_tree(False)
        if tree.cut is None:
            self._set_barycenter(S1Point.NaN)
            self._set_size(TWO_PI if tree.attribute else 0.0)
            return

        size = 0.0
        total = 0.0
        for start, end in self:
            length = end - start
            size += length
            total += length * (start + end)

        self._set_size(size)
        if size == TWO_PI:
            self._set_barycenter(S1Point.NaN)
        elif size >= SAFE_MIN:
            self._set_barycenter(S1Point(total / (2 * size)))
        else:
            self._set_barycenter(tree.cut.get_hyperplane().location)

    # ---------- разрезание дугой ----------

    def split_arc(self, arc: Arc) -> ArcsSplit:
        """
        Разрезание набора дугой

        Returns:
            ArcsSplit: minus - части внутри дуги, plus - части вне её
        """
        minus: List[float] = []
        plus: List[float] = []

        reference = math.pi + arc.get_inf()
        arc_length = arc.get_sup() - arc.get_inf()

        for start, end in self:
            synced_start = normalize_angle(start, reference) - arc.get_inf()
            arc_offset = start - synced_start
            synced_end = end - arc_offset
            if synced_start < arc_length:
                # начало внутри дуги
                minus.append(start)
                if synced_end > arc_length:
                    # выход из дуги
                    minus_to_plus = arc_length + arc_offset
                    minus.append(minus_to_plus)
                    plus.append(minus_to_plus)
                    if synced_end > TWO_PI:
                        # повторный вход в дугу после обхода окружности
                        plus_to_minus = TWO_PI + arc_offset
                        plus.append(plus_to_minus)
                        minus.append(plus_to_minus)
                        minus.append(end)
                    else:
                        plus.append(end)
                else:
                    minus.append(end)
            else:
                # начало вне дуги
                plus.append(start)
                if synced_end > TWO_PI:
                    # вход в дугу через её начало
                    plus_to_minus = TWO_PI + arc_offset
                    plus.append(plus_to_minus)
                    minus.append(plus_to_minus)
                    if synced_end > TWO_PI + arc_length:
                        # выход из дуги
                        minus_to_plus = TWO_PI + arc_length + arc_offset
                        minus.append(minus_to_plus)
                        plus.append(minus_to_plus)
                        plus.append(end)
                    else:
                        minus.append(end)
                else:
                    plus.append(end)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Arc [{arc.get_inf():.6f}, {arc.get_sup():.6f}] split: "
                         f"{len(minus)} inside limits, {len(plus)} outside limits")

        return ArcsSplit(self._create_split_part(plus), self._create_split_part(minus))

    def _create_split_part(self, limits: List[float]) -> Optional['ArcsSet']:
        if not limits:
            return None

        tolerance = self.get_tolerance()

        # слияние близких предельных углов
        i = 0
        while i < len(limits):
            j = (i + 1) % len(limits)
            l_a = limits[i]
            l_b = normalize_angle(limits[j], l_a)
            if abs(l_b - l_a) <= tolerance:
                if j > 0:
                    # соседние элементы списка
                    removed_end = limits.pop(j)
                    removed_start = limits.pop(i)
                    if not limits and removed_end - removed_start > math.pi:
                        # единственная дуга длиной 2pi: вся окружность
                        return ArcsSet(BSPTree(True), tolerance)
                    i -= 1
                else:
                    # i - последний элемент, j - первый: переход через конец списка
                    l_end = limits.pop()
                    l_start = limits.pop(0)
                    if not limits:
                        if l_end - l_start > math.pi:
                            # была вся окружность
                            return ArcsSet(BSPTree(True), tolerance)
                        # была пустая окружность
                        return None
                    # список начинается с конца дуги, переносим его в конец
                    limits.append(limits.pop(0) + TWO_PI)
            i += 1

        # построение дерева из угловых секторов
        builder = TreeBuilder(inside=False, tolerance=tolerance)
        for k in range(0, len(limits) - 1, 2):
            self._add_arc_limit(builder, limits[k], True)
            self._add_arc_limit(builder, limits[k + 1], False)

        tree = builder.build()
        if tree.cut is None:
            return None
        return ArcsSet(tree, tolerance)

    def _add_arc_limit(self, builder: TreeBuilder, alpha: float, is_start: bool) -> None:
        limit = LimitAngle(S1Point(alpha), not is_start, self.get_tolerance())
        builder.insert_cut_at(limit.location, limit, plus_inside=False)

    def split(self, hyperplane: LimitAngle) -> RegionSplit['ArcsSet']:
        """
        Части набора по обе стороны предельного угла

        Прямой предельный угол в точке a имеет на стороне plus дугу [a, 2pi),
        обратный - на стороне minus. Обе части строятся через split_arc и
        остаются согласованными на стыке 2pi.
        """
        parts = self.split_arc(Arc(hyperplane.location.alpha, TWO_PI, self.get_tolerance()))
        if hyperplane.direct:
            return RegionSplit(parts.minus, parts.plus)
        return RegionSplit(parts.plus, parts.minus)

    def project_to_boundary(self, point: S1Point) -> BoundaryProjection:
        """Ближайший конец дуги; расстояние измеряется вдоль окружности"""
        arcs = list(self)
        if not arcs or arcs[0][1] - arcs[0][0] >= TWO_PI:
            # границы нет: вся окружность или пустое множество
            return BoundaryProjection(point, None, -math.inf if arcs else math.inf)

        closest = min((S1Point(angle) for arc in arcs for angle in arc), key=point.distance)
        distance = point.distance(closest)
        if self.check_point(point) is Location.INSIDE:
            return BoundaryProjection(point, closest, -distance)
        return BoundaryProjection(point, closest, distance)
