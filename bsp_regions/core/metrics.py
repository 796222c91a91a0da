from dataclasses import dataclass
from typing import Optional
import math

from .errors import MathInternalError
from .geometry import Location, Point, Side, SubHyperplane
from .structures import BSPTree, BSPTreeVisitor, BoundaryAttribute, Order


class Characterization:
    """
    Разбиение подгиперплоскости по листьям поддерева

    Части, попавшие во внешние листья, накапливаются в outside_touching,
    во внутренние - в inside_touching.
    """

    def __init__(self, node: BSPTree, sub: SubHyperplane):
        self.outside_touching: Optional[SubHyperplane] = None
        self.inside_touching: Optional[SubHyperplane] = None
        self._characterize(node, sub)

    def _characterize(self, node: BSPTree, sub: SubHyperplane) -> None:
        if node.cut is None:
            if node.attribute:
                self.inside_touching = sub if self.inside_touching is None \
                    else self.inside_touching.reunite(sub)
            else:
                self.outside_touching = sub if self.outside_touching is None \
                    else self.outside_touching.reunite(sub)
            return

        split = sub.split(node.cut.get_hyperplane())
        side = split.get_side()
        if side is Side.PLUS:
            self._characterize(node.plus, sub)
        elif side is Side.MINUS:
            self._characterize(node.minus, sub)
        elif side is Side.BOTH:
            self._characterize(node.plus, split.plus)
            self._characterize(node.minus, split.minus)
        else:
            # подгиперплоскость не может лежать в разрезе потомка
            raise MathInternalError()

    def touch_outside(self) -> bool:
        return self.outside_touching is not None and not self.outside_touching.is_empty()

    def touch_inside(self) -> bool:
        return self.inside_touching is not None and not self.inside_touching.is_empty()


class BoundaryBuilder(BSPTreeVisitor):
    """Вычисление граничных атрибутов во всех внутренних узлах"""

    def visit_order(self, node: BSPTree) -> Order:
        return Order.PLUS_MINUS_SUB

    def visit_internal_node(self, node: BSPTree) -> None:
        plus_outside = None
        plus_inside = None

        # сначала характеризуем разрез относительно plus-поддерева
        plus_char = Characterization(node.plus, node.cut.copy_self())

        if plus_char.touch_outside():
            # части с внешней ячейкой на стороне plus: ищем внутренние ячейки на стороне minus
            minus_char = Characterization(node.minus, plus_char.outside_touching)
            if minus_char.touch_inside():
                plus_outside = minus_char.inside_touching

        if plus_char.touch_inside():
            minus_char = Characterization(node.minus, plus_char.inside_touching)
            if minus_char.touch_outside():
                plus_inside = minus_char.outside_touching

        node.attribute = BoundaryAttribute(plus_outside, plus_inside)

    def visit_leaf_node(self, node: BSPTree) -> None:
        pass


class BoundarySizeVisitor(BSPTreeVisitor):
    """Суммирование размеров граничных частей разрезов"""

    def __init__(self):
        self.boundary_size = 0.0

    def visit_order(self, node: BSPTree) -> Order:
        return Order.MINUS_SUB_PLUS

    def visit_internal_node(self, node: BSPTree) -> None:
        attribute = node.attribute
        if attribute.plus_outside is not None:
            self.boundary_size += attribute.plus_outside.get_size()
        if attribute.plus_inside is not None:
            self.boundary_size += attribute.plus_inside.get_size()

    def visit_leaf_node(self, node: BSPTree) -> None:
        pass


class Sides:
    """Накопитель сторон, на которых найдены внутренние ячейки"""

    def __init__(self):
        self.plus_found = False
        self.minus_found = False

    def both(self) -> bool:
        return self.plus_found and self.minus_found

    def result(self) -> Side:
        if self.plus_found:
            return Side.BOTH if self.minus_found else Side.PLUS
        return Side.MINUS if self.minus_found else Side.HYPER


@dataclass
class BoundaryProjection:
    """
    Проекция точки на границу региона

    Attributes:
        original: Исходная точка
        projected: Ближайшая точка границы (None, если границы нет)
        offset: Знаковое расстояние до границы: отрицательное внутри, положительное снаружи
    """
    original: Point
    projected: Optional[Point]
    offset: float


class BoundaryProjector(BSPTreeVisitor):
    """
    Поиск ближайшей точки границы

    Сначала посещается сторона каждого разреза, содержащая точку, поэтому
    первый посещённый лист - ячейка точки. Разрезы дальше уже найденного
    кандидата пропускаются.
    """

    def __init__(self, original: Point):
        self.original = original
        self.projected: Optional[Point] = None
        self.distance = math.inf
        self.leaf: Optional[BSPTree] = None

    def visit_order(self, node: BSPTree) -> Order:
        if node.cut.get_hyperplane().get_offset(self.original) <= 0:
            return Order.MINUS_SUB_PLUS
        return Order.PLUS_SUB_MINUS

    def visit_internal_node(self, node: BSPTree) -> None:
        hyperplane = node.cut.get_hyperplane()
        signed_offset = hyperplane.get_offset(self.original)
        if abs(signed_offset) >= self.distance:
            return

        attribute = node.attribute
        parts = [sub for sub in (attribute.plus_outside, attribute.plus_inside) if sub is not None]
        if not parts:
            return

        regular = hyperplane.project(self.original)
        for part in parts:
            region = part.get_remaining_region()
            # у гиперплоскостей размерности 0 граница - сама точка
            if region is None or region.check_point(hyperplane.to_sub_space(regular)) is not Location.OUTSIDE:
                self.projected = regular
                self.distance = abs(signed_offset)
                return

        # проекция вне граничных частей: ближайшая точка лежит на их краях
        for part in parts:
            sub_projection = part.get_remaining_region().project_to_boundary(hyperplane.to_sub_space(regular))
            if sub_projection.projected is None:
                continue
            candidate = hyperplane.to_space(sub_projection.projected)
            distance = self.original.distance(candidate)
            if distance < self.distance:
                self.projected = candidate
                self.distance = distance

    def visit_leaf_node(self, node: BSPTree) -> None:
        if self.leaf is None:
            self.leaf = node

    def get_projection(self) -> BoundaryProjection:
        offset = -self.distance if self.leaf.attribute else self.distance
        return BoundaryProjection(self.original, self.projected, offset)
