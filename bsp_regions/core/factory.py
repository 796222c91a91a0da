from __future__ import annotations
from typing import Optional, Sequence
import logging
import time

from ..config import RegionConfig
from .geometry import Hyperplane, Location
from .region import AbstractRegion, R
from .structures import (BSPTree, BSPTreeVisitor, BoundaryAttribute, LeafMerger, Order,
                         VanishingCutHandler, check_depth)

logger = logging.getLogger(__name__)


class RegionFactory:
    """
    Булевы операции над регионами

    Каждая операция сливает копии деревьев операндов и возвращает новый
    регион типа первого операнда; входные регионы не изменяются.
    """

    def __init__(self, config: Optional[RegionConfig] = None):
        """
        Args:
            config: Конфигурация (лимит глубины деревьев, сбор статистики)
        """
        self.config = config or RegionConfig()
        self.config.validate()

        # Статистика операций
        self.stats = {
            'operations': 0,
            'merge_time': 0.0,
            'nodes_created': 0,
        }

    # ---------- выпуклые регионы ----------

    def build_convex(self, hyperplanes: Sequence[Hyperplane]) -> Optional[AbstractRegion]:
        """
        Выпуклый регион как пересечение отрицательных полупространств

        Returns:
            Регион, либо None для пустого списка гиперплоскостей

        Raises:
            NotConvexError: гиперплоскость лежит целиком вне текущей выпуклой области
        """
        if not hyperplanes:
            return None

        from .builder import TreeBuilder
        tree = TreeBuilder.convex(hyperplanes)
        if tree is None:
            # область тоньше допуска
            return self.get_complement(hyperplanes[0].whole_space())
        return hyperplanes[0].whole_space().build_new(tree)

    # ---------- булева алгебра ----------

    def union(self, region1: R, region2: AbstractRegion) -> R:
        """Объединение двух регионов"""
        return self._combine('union', region1, region2, UnionMerger())

    def intersection(self, region1: R, region2: AbstractRegion) -> R:
        """Пересечение двух регионов"""
        return self._combine('intersection', region1, region2, IntersectionMerger())

    def xor(self, region1: R, region2: AbstractRegion) -> R:
        """Симметрическая разность двух регионов"""
        return self._combine('xor', region1, region2, XorMerger())

    def difference(self, region1: R, region2: AbstractRegion) -> R:
        """Разность region1 минус region2"""
        return self._combine('difference', region1, region2, DifferenceMerger(region1, region2))

    def get_complement(self, region: R) -> R:
        """Дополнение региона"""
        return region.build_new(recurse_complement(region.get_tree(False)))

    def _combine(self, name: str, region1: R, region2: AbstractRegion, merger: LeafMerger) -> R:
        start_time = time.perf_counter()

        tree1 = region1.get_tree(False)
        tree2 = region2.get_tree(False)
        check_depth(tree1, self.config.max_tree_depth)
        check_depth(tree2, self.config.max_tree_depth)

        tree = tree1.copy_self().merge(tree2.copy_self(), merger)
        tree.visit(NodesCleaner())
        result = region1.build_new(tree)

        if self.config.collect_stats:
            self.stats['operations'] += 1
            self.stats['merge_time'] += time.perf_counter() - start_time
            self.stats['nodes_created'] += tree.node_count()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{name}: {tree1.node_count()} + {tree2.node_count()} nodes "
                         f"-> {tree.node_count()} nodes in {time.perf_counter() - start_time:.4f}s")

        return result


def recurse_complement(node: BSPTree) -> BSPTree:
    """Копия дерева с инвертированными листьями и переставленными граничными частями"""
    if node.cut is None:
        return BSPTree(not node.attribute)

    attribute = node.attribute
    if attribute is not None:
        plus_outside = None if attribute.plus_inside is None else attribute.plus_inside.copy_self()
        plus_inside = None if attribute.plus_outside is None else attribute.plus_outside.copy_self()
        attribute = BoundaryAttribute(plus_outside, plus_inside)

    return BSPTree(node.cut.copy_self(),
                   recurse_complement(node.plus),
                   recurse_complement(node.minus),
                   attribute)


class UnionMerger(LeafMerger):
    """Слияние листьев для объединения"""

    def merge(self, leaf, tree, parent_tree, is_plus_child, leaf_from_instance):
        if leaf.attribute:
            # внутренний лист поглощает ячейку
            leaf.insert_in_tree(parent_tree, is_plus_child, VanishingToLeaf(True))
            return leaf
        # внешний лист: результат определяется другим деревом
        tree.insert_in_tree(parent_tree, is_plus_child, VanishingToLeaf(False))
        return tree


class IntersectionMerger(LeafMerger):
    """Слияние листьев для пересечения"""

    def merge(self, leaf, tree, parent_tree, is_plus_child, leaf_from_instance):
        if leaf.attribute:
            # внутренний лист: результат определяется другим деревом
            tree.insert_in_tree(parent_tree, is_plus_child, VanishingToLeaf(True))
            return tree
        # внешний лист поглощает ячейку
        leaf.insert_in_tree(parent_tree, is_plus_child, VanishingToLeaf(False))
        return leaf


class XorMerger(LeafMerger):
    """Слияние листьев для симметрической разности"""

    def merge(self, leaf, tree, parent_tree, is_plus_child, leaf_from_instance):
        t = recurse_complement(tree) if leaf.attribute else tree
        t.insert_in_tree(parent_tree, is_plus_child, VanishingToLeaf(True))
        return t


class DifferenceMerger(LeafMerger, VanishingCutHandler):
    """
    Слияние листьев для разности

    Исчезнувший разрез заменяется листом, значение которого определяется
    классификацией барицентра вырожденной ячейки в обоих операндах.
    """

    def __init__(self, region1: AbstractRegion, region2: AbstractRegion):
        self.region1 = region1
        self.region2 = region2

    def merge(self, leaf, tree, parent_tree, is_plus_child, leaf_from_instance):
        if leaf.attribute:
            # внутренний лист: из первого операнда - дополнение второго, из второго - пусто
            arg_tree = recurse_complement(tree if leaf_from_instance else leaf)
            arg_tree.insert_in_tree(parent_tree, is_plus_child, self)
            return arg_tree
        # внешний лист: из первого операнда - пусто, из второго - первый операнд
        instance_tree = leaf if leaf_from_instance else tree
        instance_tree.insert_in_tree(parent_tree, is_plus_child, self)
        return instance_tree

    def fix_node(self, node):
        cell = node.prune_around_convex_cell(True, False, None)
        p = self.region1.build_new(cell).get_barycenter()
        return BSPTree(self.region1.check_point(p) is Location.INSIDE and
                       self.region2.check_point(p) is Location.OUTSIDE)


class VanishingToLeaf(VanishingCutHandler):
    """Замена узла с исчезнувшим разрезом листом"""

    def __init__(self, inside: bool):
        self.inside = inside

    def fix_node(self, node):
        if node.plus.cut is None and node.minus.cut is None and \
                node.plus.attribute == node.minus.attribute:
            # неоднозначности нет
            return BSPTree(node.plus.attribute)
        return BSPTree(self.inside)


class NodesCleaner(BSPTreeVisitor):
    """Сброс атрибутов внутренних узлов после слияния"""

    def visit_order(self, node):
        return Order.PLUS_SUB_MINUS

    def visit_internal_node(self, node):
        node.attribute = None

    def visit_leaf_node(self, node):
        pass
