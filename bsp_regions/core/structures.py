from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional
import weakref

from .errors import MathInternalError, TreeDepthError
from .geometry import Hyperplane, Point, Side, SubHyperplane


class Order(Enum):
    """Порядок обхода внутреннего узла: поддеревья plus/minus и сам разрез (sub)"""
    PLUS_MINUS_SUB = 'plus_minus_sub'
    PLUS_SUB_MINUS = 'plus_sub_minus'
    MINUS_PLUS_SUB = 'minus_plus_sub'
    MINUS_SUB_PLUS = 'minus_sub_plus'
    SUB_PLUS_MINUS = 'sub_plus_minus'
    SUB_MINUS_PLUS = 'sub_minus_plus'


@dataclass(eq=False)
class BoundaryAttribute:
    """
    Граничный атрибут внутреннего узла

    Attributes:
        plus_outside: Часть разреза, у которой снаружи региона сторона plus, внутри - minus
        plus_inside: Часть разреза, у которой внутри региона сторона plus, снаружи - minus
    """
    plus_outside: Optional[SubHyperplane] = None
    plus_inside: Optional[SubHyperplane] = None


class BSPTreeVisitor(ABC):
    """Посетитель узлов дерева"""

    @abstractmethod
    def visit_order(self, node: 'BSPTree') -> Order:
        ...

    @abstractmethod
    def visit_internal_node(self, node: 'BSPTree') -> None:
        ...

    @abstractmethod
    def visit_leaf_node(self, node: 'BSPTree') -> None:
        ...


class LeafMerger(ABC):
    """Стратегия слияния листа одного дерева с поддеревом другого"""

    @abstractmethod
    def merge(self, leaf: 'BSPTree', tree: 'BSPTree', parent_tree: Optional['BSPTree'],
              is_plus_child: bool, leaf_from_instance: bool) -> 'BSPTree':
        """
        Args:
            leaf: Лист одного из деревьев
            tree: Поддерево другого дерева, соответствующее той же ячейке
            parent_tree: Родитель в результирующем дереве (None для корня)
            is_plus_child: Результат подвешивается как plus-потомок parent_tree
            leaf_from_instance: Лист принадлежит дереву, у которого вызван merge

        Returns:
            Поддерево результата для этой ячейки
        """


class VanishingCutHandler(ABC):
    """Обработка узла, разрез которого исчез после обрезки по новой ячейке"""

    @abstractmethod
    def fix_node(self, node: 'BSPTree') -> 'BSPTree':
        ...


_SUB = object()  # маркер посещения самого разреза при обходе

_VISIT_SEQUENCES = {
    Order.PLUS_MINUS_SUB: ('plus', 'minus', _SUB),
    Order.PLUS_SUB_MINUS: ('plus', _SUB, 'minus'),
    Order.MINUS_PLUS_SUB: ('minus', 'plus', _SUB),
    Order.MINUS_SUB_PLUS: ('minus', _SUB, 'plus'),
    Order.SUB_PLUS_MINUS: (_SUB, 'plus', 'minus'),
    Order.SUB_MINUS_PLUS: (_SUB, 'minus', 'plus'),
}


class BSPTree:
    """
    Узел BSP дерева

    Внутренний узел хранит разрез (подгиперплоскость) и двух потомков;
    лист хранит в attribute логическое значение (True - внутри региона).
    Ссылка на родителя слабая и используется только для обходов вверх.

    Attributes:
        cut: Разрезающая подгиперплоскость (None для листа)
        plus: Потомок на положительной стороне разреза
        minus: Потомок на отрицательной стороне разреза
        attribute: Значение листа или BoundaryAttribute внутреннего узла
    """

    def __init__(self, *args: Any):
        """
        BSPTree() - лист без атрибута
        BSPTree(attribute) - лист
        BSPTree(cut, plus, minus, attribute) - внутренний узел
        """
        self._parent: Optional[weakref.ReferenceType] = None
        if len(args) <= 1:
            self.cut: Optional[SubHyperplane] = None
            self.plus: Optional[BSPTree] = None
            self.minus: Optional[BSPTree] = None
            self.attribute = args[0] if args else None
        elif len(args) == 4:
            self.cut, self.plus, self.minus, self.attribute = args
            self.plus.parent = self
            self.minus.parent = self
        else:
            raise TypeError(f"BSPTree expects 0, 1 or 4 arguments, got {len(args)}")

    # ---------- структура ----------

    @property
    def parent(self) -> Optional['BSPTree']:
        return None if self._parent is None else self._parent()

    @parent.setter
    def parent(self, node: Optional['BSPTree']) -> None:
        self._parent = None if node is None else weakref.ref(node)

    def is_leaf(self) -> bool:
        """Проверка, является ли узел листом"""
        return self.cut is None

    def insert_cut(self, hyperplane: Hyperplane) -> bool:
        """
        Вставка разреза в лист

        Гиперплоскость обрезается по ячейке листа. Оба новых листа наследуют
        значение исходного листа.

        Args:
            hyperplane: Разрезающая гиперплоскость

        Returns:
            False, если внутри ячейки от гиперплоскости ничего не осталось
        """
        if self.cut is not None:
            self.plus.parent = None
            self.minus.parent = None

        chopped = self.fit_to_cell(hyperplane.whole_hyperplane())
        if chopped is None or chopped.is_empty():
            self.cut = None
            self.plus = None
            self.minus = None
            return False

        self.cut = chopped
        self.plus = BSPTree(self.attribute)
        self.plus.parent = self
        self.minus = BSPTree(self.attribute)
        self.minus.parent = self
        return True

    def copy_self(self) -> 'BSPTree':
        """Глубокая копия поддерева (без ссылки на родителя)"""
        if self.cut is None:
            return BSPTree(self.attribute)
        return BSPTree(self.cut.copy_self(), self.plus.copy_self(),
                       self.minus.copy_self(), self.attribute)

    def fit_to_cell(self, sub: SubHyperplane) -> Optional[SubHyperplane]:
        """Обрезка подгиперплоскости по ячейке узла (по всем разрезам предков)"""
        s = sub
        tree = self
        while s is not None:
            parent = tree.parent
            if parent is None:
                break
            if tree is parent.plus:
                s = s.split(parent.cut.get_hyperplane()).plus
            else:
                s = s.split(parent.cut.get_hyperplane()).minus
            tree = parent
        return s

    # ---------- запросы ----------

    def get_cell(self, point: Point, tolerance: float) -> 'BSPTree':
        """
        Поиск ячейки, содержащей точку

        Returns:
            Лист, либо внутренний узел, разрез которого содержит точку с точностью tolerance
        """
        node = self
        while node.cut is not None:
            offset = node.cut.get_hyperplane().get_offset(point)
            if abs(offset) < tolerance:
                return node
            node = node.minus if offset <= 0 else node.plus
        return node

    def visit(self, visitor: BSPTreeVisitor) -> None:
        """Обход дерева в порядке, который посетитель выбирает для каждого узла"""
        stack = [(self, False)]
        while stack:
            node, as_internal = stack.pop()
            if as_internal:
                visitor.visit_internal_node(node)
            elif node.cut is None:
                visitor.visit_leaf_node(node)
            else:
                sequence = _VISIT_SEQUENCES.get(visitor.visit_order(node))
                if sequence is None:
                    raise MathInternalError()
                for item in reversed(sequence):
                    if item is _SUB:
                        stack.append((node, True))
                    else:
                        stack.append((getattr(node, item), False))

    def iter_leaves(self) -> Iterator['BSPTree']:
        """Итератор по листовым узлам"""
        stack = [self]
        while stack:
            node = stack.pop()
            if node.cut is None:
                yield node
            else:
                stack.append(node.minus)
                stack.append(node.plus)

    def depth(self) -> int:
        """Глубина поддерева с корнем в данном узле"""
        deepest = 0
        stack = [(self, 0)]
        while stack:
            node, level = stack.pop()
            if node.cut is None:
                deepest = max(deepest, level)
            else:
                stack.append((node.plus, level + 1))
                stack.append((node.minus, level + 1))
        return deepest

    def leaf_count(self) -> int:
        """Количество листьев в поддереве"""
        return sum(1 for _ in self.iter_leaves())

    def node_count(self) -> int:
        """Общее количество узлов в поддереве"""
        return 2 * self.leaf_count() - 1

    def get_stats(self) -> dict:
        """Статистика поддерева"""
        inside = sum(1 for leaf in self.iter_leaves() if leaf.attribute is True)
        return {
            'depth': self.depth(),
            'node_count': self.node_count(),
            'leaf_count': self.leaf_count(),
            'inside_leaves': inside,
        }

    # ---------- слияние ----------

    def _condense(self) -> None:
        """Замена узла листом, если оба потомка - листья с одинаковым значением"""
        if self.cut is not None and self.plus.cut is None and self.minus.cut is None and \
                ((self.plus.attribute is None and self.minus.attribute is None) or
                 (self.plus.attribute is not None and self.plus.attribute == self.minus.attribute)):
            self.attribute = self.plus.attribute
            self.cut = None
            self.plus = None
            self.minus = None

    def merge(self, tree: 'BSPTree', leaf_merger: LeafMerger) -> 'BSPTree':
        """
        Слияние с другим деревом

        Оба дерева используются как материал для результата, поэтому
        вызывающий код передаёт сюда копии.
        """
        return self._merge(tree, leaf_merger, None, False)

    def _merge(self, tree: 'BSPTree', leaf_merger: LeafMerger,
               parent_tree: Optional['BSPTree'], is_plus_child: bool) -> 'BSPTree':
        if self.cut is None:
            # лист/дерево
            return leaf_merger.merge(self, tree, parent_tree, is_plus_child, True)
        if tree.cut is None:
            # дерево/лист
            return leaf_merger.merge(tree, self, parent_tree, is_plus_child, False)

        # дерево/дерево
        merged = tree.split(self.cut)
        if parent_tree is not None:
            merged.parent = parent_tree
            if is_plus_child:
                parent_tree.plus = merged
            else:
                parent_tree.minus = merged

        self.plus._merge(merged.plus, leaf_merger, merged, True)
        self.minus._merge(merged.minus, leaf_merger, merged, False)
        merged._condense()
        if merged.cut is not None:
            merged.cut = merged.fit_to_cell(merged.cut.get_hyperplane().whole_hyperplane())

        return merged

    def split(self, sub: SubHyperplane) -> 'BSPTree':
        """
        Разрезание дерева подгиперплоскостью

        Returns:
            Новое дерево с корневым разрезом sub, поддеревья которого
            описывают исходное дерево по обе стороны от sub
        """
        if self.cut is None:
            return BSPTree(sub, self.copy_self(), BSPTree(self.attribute), None)

        c_hyperplane = self.cut.get_hyperplane()
        s_hyperplane = sub.get_hyperplane()
        sub_parts = sub.split(c_hyperplane)
        side = sub_parts.get_side()

        if side is Side.PLUS:
            # sub целиком в plus-поддереве
            split = self.plus.split(sub)
            if self.cut.get_side(s_hyperplane) is Side.PLUS:
                split.plus = BSPTree(self.cut.copy_self(), split.plus, self.minus.copy_self(), self.attribute)
                split.plus._condense()
                split.plus.parent = split
            else:
                split.minus = BSPTree(self.cut.copy_self(), split.minus, self.minus.copy_self(), self.attribute)
                split.minus._condense()
                split.minus.parent = split
            return split

        if side is Side.MINUS:
            # sub целиком в minus-поддереве
            split = self.minus.split(sub)
            if self.cut.get_side(s_hyperplane) is Side.PLUS:
                split.plus = BSPTree(self.cut.copy_self(), self.plus.copy_self(), split.plus, self.attribute)
                split.plus._condense()
                split.plus.parent = split
            else:
                split.minus = BSPTree(self.cut.copy_self(), self.plus.copy_self(), split.minus, self.attribute)
                split.minus._condense()
                split.minus.parent = split
            return split

        if side is Side.BOTH:
            cut_parts = self.cut.split(s_hyperplane)
            split = BSPTree(sub, self.plus.split(sub_parts.plus), self.minus.split(sub_parts.minus), None)
            split.plus.cut = cut_parts.plus
            split.minus.cut = cut_parts.minus
            tmp = split.plus.minus
            split.plus.minus = split.minus.plus
            split.plus.minus.parent = split.plus
            split.minus.plus = tmp
            split.minus.plus.parent = split.minus
            split.plus._condense()
            split.minus._condense()
            return split

        # HYPER: sub лежит в гиперплоскости разреза
        if c_hyperplane.same_orientation_as(s_hyperplane):
            return BSPTree(sub, self.plus.copy_self(), self.minus.copy_self(), self.attribute)
        return BSPTree(sub, self.minus.copy_self(), self.plus.copy_self(), self.attribute)

    def insert_in_tree(self, parent_tree: Optional['BSPTree'], is_plus_child: bool,
                       vanishing_handler: VanishingCutHandler) -> None:
        """
        Подвешивание поддерева к новому родителю

        Части разрезов, выходящие за ячейку родителя, отсекаются; исчезнувшие
        разрезы заменяются через vanishing_handler.
        """
        self.parent = parent_tree
        if parent_tree is not None:
            if is_plus_child:
                parent_tree.plus = self
            else:
                parent_tree.minus = self

        if self.cut is None:
            return

        tree = self
        while tree.parent is not None:
            parent = tree.parent
            hyperplane = parent.cut.get_hyperplane()

            if tree is parent.plus:
                self.cut = self.cut.split(hyperplane).plus
                self.plus._chop_off_minus(hyperplane, vanishing_handler)
                self.minus._chop_off_minus(hyperplane, vanishing_handler)
            else:
                self.cut = self.cut.split(hyperplane).minus
                self.plus._chop_off_plus(hyperplane, vanishing_handler)
                self.minus._chop_off_plus(hyperplane, vanishing_handler)

            if self.cut is None:
                self._replace_by(vanishing_handler.fix_node(self))
                if self.cut is None:
                    break

            tree = parent

        self._condense()

    def _replace_by(self, fixed: 'BSPTree') -> None:
        self.cut = fixed.cut
        self.plus = fixed.plus
        self.minus = fixed.minus
        self.attribute = fixed.attribute
        if self.cut is not None:
            self.plus.parent = self
            self.minus.parent = self

    def _chop_off_minus(self, hyperplane: Hyperplane, vanishing_handler: VanishingCutHandler) -> None:
        """Отсечение частей, лежащих на отрицательной стороне гиперплоскости"""
        if self.cut is not None:
            self.cut = self.cut.split(hyperplane).plus
            self.plus._chop_off_minus(hyperplane, vanishing_handler)
            self.minus._chop_off_minus(hyperplane, vanishing_handler)
            if self.cut is None:
                self._replace_by(vanishing_handler.fix_node(self))

    def _chop_off_plus(self, hyperplane: Hyperplane, vanishing_handler: VanishingCutHandler) -> None:
        """Отсечение частей, лежащих на положительной стороне гиперплоскости"""
        if self.cut is not None:
            self.cut = self.cut.split(hyperplane).minus
            self.plus._chop_off_plus(hyperplane, vanishing_handler)
            self.minus._chop_off_plus(hyperplane, vanishing_handler)
            if self.cut is None:
                self._replace_by(vanishing_handler.fix_node(self))

    def prune_around_convex_cell(self, cell_attribute: Any, other_leafs_attributes: Any,
                                 internal_attributes: Any) -> 'BSPTree':
        """Новое дерево, содержащее только разрезы предков данной ячейки"""
        tree = BSPTree(cell_attribute)
        current = self
        while current.parent is not None:
            parent = current.parent
            parent_cut = parent.cut.copy_self()
            sibling = BSPTree(other_leafs_attributes)
            if current is parent.plus:
                tree = BSPTree(parent_cut, tree, sibling, internal_attributes)
            else:
                tree = BSPTree(parent_cut, sibling, tree, internal_attributes)
            current = parent
        return tree


def check_depth(tree: BSPTree, limit: int) -> int:
    """
    Проверка глубины дерева перед рекурсивной операцией

    Returns:
        Глубина дерева

    Raises:
        TreeDepthError: глубина превышает limit
    """
    depth = tree.depth()
    if depth > limit:
        raise TreeDepthError(depth, limit)
    return depth
