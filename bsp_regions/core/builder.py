from __future__ import annotations
from typing import List, Optional, Sequence
import logging
import time

from ..config import DEFAULT_TOLERANCE
from .errors import MathInternalError, NotConvexError
from .geometry import Hyperplane, Point, Side, SubHyperplane
from .structures import BSPTree

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Построитель BSP деревьев

    Инкрементальная вставка разрезов выполняется только через построитель;
    build() выдаёт готовое дерево, после чего построитель закрывается и
    регионы получают дерево, которое больше никто не изменяет.
    """

    def __init__(self, inside: bool = False, tolerance: float = DEFAULT_TOLERANCE):
        """
        Args:
            inside: Значение единственного листа пустого дерева
            tolerance: Допуск поиска ячейки по точке
        """
        self.tolerance = tolerance
        self._root = BSPTree(inside)
        self._built = False

        # Статистика построения
        self.stats = {
            'cuts_inserted': 0,
            'cuts_rejected': 0,
        }

    def insert_cut_at(self, point: Point, hyperplane: Hyperplane, plus_inside: bool = False) -> bool:
        """
        Вставка разреза в лист, содержащий точку

        Args:
            point: Точка, определяющая лист
            hyperplane: Разрезающая гиперплоскость
            plus_inside: Значение нового листа на стороне plus (minus получает противоположное)

        Returns:
            False, если гиперплоскость не пересекает ячейку
        """
        if self._built:
            raise RuntimeError("tree already built, create a new TreeBuilder")

        node = self._root.get_cell(point, self.tolerance)
        if node.cut is not None:
            # точка лежит на существующем разрезе
            raise MathInternalError(f"point lies on an existing cut within tolerance {self.tolerance}")

        if not node.insert_cut(hyperplane):
            self.stats['cuts_rejected'] += 1
            return False

        node.attribute = None
        node.plus.attribute = plus_inside
        node.minus.attribute = not plus_inside
        self.stats['cuts_inserted'] += 1
        return True

    def build(self) -> BSPTree:
        """Готовое дерево"""
        self._built = True
        return self._root

    @staticmethod
    def from_boundary(boundary: Sequence[SubHyperplane]) -> BSPTree:
        """
        Дерево по списку граничных подгиперплоскостей

        Внутренность региона лежит на отрицательной стороне каждой граничной
        части. Части вставляются по убыванию размера, сверху вниз.
        """
        if not boundary:
            return BSPTree(True)

        start_time = time.perf_counter()

        # сортировка по убыванию размера (устойчивая)
        ordered = sorted(boundary, key=lambda sub: -sub.get_size())

        root = BSPTree()
        stack = [(root, ordered)]
        while stack:
            node, subs = stack.pop()
            inserted = None
            remaining = iter(subs)
            for sub in remaining:
                hyperplane = sub.get_hyperplane()
                if node.insert_cut(hyperplane.copy_self()):
                    inserted = hyperplane
                    break

            if inserted is None:
                continue

            # распределение оставшихся частей по поддеревьям
            plus_list: List[SubHyperplane] = []
            minus_list: List[SubHyperplane] = []
            for other in remaining:
                split = other.split(inserted)
                side = split.get_side()
                if side is Side.PLUS:
                    plus_list.append(other)
                elif side is Side.MINUS:
                    minus_list.append(other)
                elif side is Side.BOTH:
                    plus_list.append(split.plus)
                    minus_list.append(split.minus)
                # части, лежащие в гиперплоскости разреза, пропускаются

            stack.append((node.minus, minus_list))
            stack.append((node.plus, plus_list))

        # листья на стороне minus - внутренние
        for leaf in root.iter_leaves():
            parent = leaf.parent
            leaf.attribute = parent is None or leaf is parent.minus

        if logger.isEnabledFor(logging.DEBUG):
            stats = root.get_stats()
            logger.debug(f"Boundary tree built from {len(boundary)} sub-hyperplanes in "
                         f"{time.perf_counter() - start_time:.4f}s: depth={stats['depth']}, "
                         f"leaves={stats['leaf_count']}")
        return root

    @staticmethod
    def convex(hyperplanes: Sequence[Hyperplane]) -> Optional[BSPTree]:
        """
        Дерево выпуклой области: пересечение отрицательных полупространств

        Returns:
            Дерево, либо None, если область тоньше допуска (пустая)

        Raises:
            NotConvexError: гиперплоскость лежит вне уже построенной области
        """
        root = BSPTree(True)
        node = root
        for hyperplane in hyperplanes:
            if node.insert_cut(hyperplane):
                node.attribute = None
                node.plus.attribute = False
                node.minus.attribute = True
                node = node.minus
                continue

            # гиперплоскость не вставилась: либо она вне области, либо параллельна предыдущей
            s = hyperplane.whole_hyperplane()
            tree = node
            while tree.parent is not None and s is not None:
                other = tree.parent.cut.get_hyperplane()
                split = s.split(other)
                side = split.get_side()
                if side is Side.HYPER:
                    if not hyperplane.same_orientation_as(other):
                        # противоположные гиперплоскости ближе допуска: область пуста
                        return None
                    # иначе это продолжение уже известной гиперплоскости
                elif side is Side.PLUS:
                    raise NotConvexError("hyperplanes do not define a convex region")
                else:
                    s = split.minus
                tree = tree.parent

        return root
