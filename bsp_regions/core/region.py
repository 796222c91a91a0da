from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar
import logging

from ..config import DEFAULT_TOLERANCE, MAX_TREE_DEPTH
from .geometry import Hyperplane, Location, Point, Side, SubHyperplane, Transform
from .metrics import BoundaryBuilder, BoundaryProjection, BoundaryProjector, BoundarySizeVisitor, Sides
from .structures import BSPTree, BoundaryAttribute, check_depth

logger = logging.getLogger(__name__)

R = TypeVar('R', bound='AbstractRegion')


@dataclass
class RegionSplit(Generic[R]):
    """Части региона по обе стороны разрезающей гиперплоскости (None - пустая часть)"""
    plus: Optional[R]
    minus: Optional[R]


class AbstractRegion(ABC):
    """
    Регион пространства, заданный BSP деревом

    Регион неизменяем: дерево передаётся при создании и больше не заменяется,
    все операции возвращают новые регионы. Размер, барицентр и размер границы
    вычисляются лениво и кэшируются.

    Args:
        tree: Дерево региона (None - всё пространство)
        tolerance: Допуск для классификации точек

    Raises:
        TreeDepthError: глубина дерева превышает MAX_TREE_DEPTH
    """

    def __init__(self, tree: Optional[BSPTree] = None, tolerance: float = DEFAULT_TOLERANCE):
        self._tree = BSPTree(True) if tree is None else tree
        # рекурсивные операции над деревом ограничены этой глубиной
        check_depth(self._tree, MAX_TREE_DEPTH)
        self._tolerance = tolerance
        self._size: Optional[float] = None
        self._barycenter: Optional[Point] = None
        self._boundary_size: Optional[float] = None

    @abstractmethod
    def build_new(self: R, tree: BSPTree) -> R:
        """Новый регион того же типа и с тем же допуском"""

    @abstractmethod
    def compute_geometrical_properties(self) -> None:
        """Вычисление размера и барицентра (через _set_size и _set_barycenter)"""

    def copy_self(self: R) -> R:
        return self.build_new(self._tree.copy_self())

    def get_tolerance(self) -> float:
        return self._tolerance

    def get_tree(self, include_boundary_attributes: bool = False) -> BSPTree:
        """
        Дерево региона

        Args:
            include_boundary_attributes: Вычислить граничные атрибуты внутренних узлов
        """
        if include_boundary_attributes and self._tree.cut is not None and self._tree.attribute is None:
            self._tree.visit(BoundaryBuilder())
        return self._tree

    # ---------- классификация ----------

    def is_empty(self, node: Optional[BSPTree] = None) -> bool:
        """Проверка отсутствия внутренних листьев"""
        node = self._tree if node is None else node
        return not any(leaf.attribute for leaf in node.iter_leaves())

    def is_full(self, node: Optional[BSPTree] = None) -> bool:
        """Проверка, что все листья внутренние"""
        node = self._tree if node is None else node
        return all(leaf.attribute for leaf in node.iter_leaves())

    def contains(self, region: 'AbstractRegion') -> bool:
        """Проверка, что регион целиком содержит другой регион"""
        from .factory import RegionFactory
        return RegionFactory().difference(region, self).is_empty()

    def check_point(self, point: Point) -> Location:
        """Положение точки относительно региона"""
        return self._check_point(self._tree, point)

    def _check_point(self, node: BSPTree, point: Point) -> Location:
        cell = node.get_cell(point, self._tolerance)
        if cell.cut is None:
            return Location.INSIDE if cell.attribute else Location.OUTSIDE

        # точка на разрезе: граница только если стороны расходятся
        minus_code = self._check_point(cell.minus, point)
        plus_code = self._check_point(cell.plus, point)
        return minus_code if minus_code is plus_code else Location.BOUNDARY

    # ---------- меры ----------

    def get_size(self) -> float:
        if self._size is None:
            self.compute_geometrical_properties()
        return self._size

    def get_barycenter(self) -> Point:
        if self._barycenter is None:
            self.compute_geometrical_properties()
        return self._barycenter

    def _set_size(self, size: float) -> None:
        self._size = size

    def _set_barycenter(self, barycenter: Point) -> None:
        self._barycenter = barycenter

    def get_boundary_size(self) -> float:
        """Суммарный размер границы региона"""
        if self._boundary_size is None:
            visitor = BoundarySizeVisitor()
            self.get_tree(True).visit(visitor)
            self._boundary_size = visitor.boundary_size
        return self._boundary_size

    def project_to_boundary(self, point: Point) -> BoundaryProjection:
        """
        Ближайшая точка границы

        Returns:
            BoundaryProjection; для региона без границы projected равно None,
            а offset - минус (всё пространство) или плюс бесконечность
        """
        projector = BoundaryProjector(point)
        self.get_tree(True).visit(projector)
        return projector.get_projection()

    # ---------- взаимодействие с гиперплоскостями ----------

    def side(self, hyperplane: Hyperplane) -> Side:
        """
        Положение гиперплоскости относительно региона

        Returns:
            PLUS/MINUS - регион целиком с одной стороны, BOTH - гиперплоскость
            пересекает регион, HYPER - регион лежит в гиперплоскости
        """
        sides = Sides()
        self._recurse_sides(self._tree, hyperplane.whole_hyperplane(), sides)
        return sides.result()

    def _recurse_sides(self, node: BSPTree, sub: SubHyperplane, sides: Sides) -> None:
        if node.cut is None:
            if node.attribute:
                # внутренняя ячейка простирается через гиперплоскость
                sides.plus_found = True
                sides.minus_found = True
            return

        hyperplane = node.cut.get_hyperplane()
        split = sub.split(hyperplane)
        side = split.get_side()

        if side is Side.PLUS:
            # sub целиком в plus-поддереве
            if node.cut.get_side(sub.get_hyperplane()) is Side.PLUS:
                if not self.is_empty(node.minus):
                    sides.plus_found = True
            elif not self.is_empty(node.minus):
                sides.minus_found = True
            if not sides.both():
                self._recurse_sides(node.plus, sub, sides)
        elif side is Side.MINUS:
            if node.cut.get_side(sub.get_hyperplane()) is Side.PLUS:
                if not self.is_empty(node.plus):
                    sides.plus_found = True
            elif not self.is_empty(node.plus):
                sides.minus_found = True
            if not sides.both():
                self._recurse_sides(node.minus, sub, sides)
        elif side is Side.BOTH:
            self._recurse_sides(node.plus, split.plus, sides)
            if not sides.both():
                self._recurse_sides(node.minus, split.minus, sides)
        else:
            # sub и разрез лежат в одной гиперплоскости
            plus_inside = node.plus.cut is not None or bool(node.plus.attribute)
            minus_inside = node.minus.cut is not None or bool(node.minus.attribute)
            if hyperplane.same_orientation_as(sub.get_hyperplane()):
                sides.plus_found = sides.plus_found or plus_inside
                sides.minus_found = sides.minus_found or minus_inside
            else:
                sides.minus_found = sides.minus_found or plus_inside
                sides.plus_found = sides.plus_found or minus_inside

    def intersection(self, sub: SubHyperplane) -> Optional[SubHyperplane]:
        """Часть подгиперплоскости, лежащая внутри региона"""
        return self._recurse_intersection(self._tree, sub)

    def _recurse_intersection(self, node: BSPTree, sub: Optional[SubHyperplane]) -> Optional[SubHyperplane]:
        if sub is None:
            return None
        if node.cut is None:
            return sub.copy_self() if node.attribute else None

        split = sub.split(node.cut.get_hyperplane())
        if split.plus is not None:
            if split.minus is not None:
                plus = self._recurse_intersection(node.plus, split.plus)
                minus = self._recurse_intersection(node.minus, split.minus)
                if plus is None:
                    return minus
                if minus is None:
                    return plus
                return plus.reunite(minus)
            return self._recurse_intersection(node.plus, sub)
        if split.minus is not None:
            return self._recurse_intersection(node.minus, sub)
        # sub лежит в гиперплоскости разреза
        return self._recurse_intersection(node.plus, self._recurse_intersection(node.minus, sub))

    def split(self: R, hyperplane: Hyperplane) -> RegionSplit[R]:
        """
        Пересечения региона с полупространствами гиперплоскости

        Returns:
            RegionSplit, где пустая часть представлена None
        """
        whole = hyperplane.whole_hyperplane()
        split_tree = self._tree.split(whole)

        plus = self.build_new(BSPTree(whole.copy_self(), split_tree.plus, BSPTree(False), None))
        minus = self.build_new(BSPTree(whole.copy_self(), BSPTree(False), split_tree.minus, None))
        return RegionSplit(None if plus.is_empty() else plus,
                           None if minus.is_empty() else minus)

    # ---------- преобразования ----------

    def apply_transform(self: R, transform: Transform) -> R:
        """Регион, полученный применением преобразования ко всем разрезам"""
        tree = self._recurse_transform(self.get_tree(False), transform)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{type(self).__name__} transformed by {type(transform).__name__}: "
                         f"{tree.node_count()} nodes")
        return self.build_new(tree)

    def _recurse_transform(self, node: BSPTree, transform: Transform) -> BSPTree:
        if node.cut is None:
            return BSPTree(node.attribute)

        attribute = node.attribute
        if attribute is not None:
            t_po = None if attribute.plus_outside is None else attribute.plus_outside.apply_transform(transform)
            t_pi = None if attribute.plus_inside is None else attribute.plus_inside.apply_transform(transform)
            attribute = BoundaryAttribute(t_po, t_pi)

        return BSPTree(node.cut.apply_transform(transform),
                       self._recurse_transform(node.plus, transform),
                       self._recurse_transform(node.minus, transform),
                       attribute)

    def __repr__(self) -> str:
        stats = self._tree.get_stats()
        return (f"{type(self).__name__}(leaves={stats['leaf_count']}, "
                f"depth={stats['depth']}, tolerance={self._tolerance})")
