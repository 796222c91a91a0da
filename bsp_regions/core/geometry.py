"""
Контракт геометрических примитивов, от которого зависит ядро

Ядро не знает формул конкретных пространств: точка, гиперплоскость,
подгиперплоскость и преобразование описаны здесь абстрактно, а
реализации лежат в пакете spaces.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .region import AbstractRegion
    from .structures import BSPTree


class Location(Enum):
    """Положение точки относительно региона"""
    INSIDE = 'inside'
    OUTSIDE = 'outside'
    BOUNDARY = 'boundary'


class Side(Enum):
    """Положение подгиперплоскости относительно гиперплоскости или региона"""
    PLUS = 'plus'
    MINUS = 'minus'
    BOTH = 'both'
    HYPER = 'hyper'


class Point(ABC):
    """Точка пространства"""

    @abstractmethod
    def distance(self, other: 'Point') -> float:
        """Расстояние до другой точки того же пространства"""

    @abstractmethod
    def is_nan(self) -> bool:
        """Проверка на значение-заглушку NaN"""


class Hyperplane(ABC):
    """
    Гиперплоскость: подмножество коразмерности 1, делящее пространство на две части

    Положительная сторона (plus) - та, где get_offset возвращает положительные значения.
    Гиперплоскости неизменяемы, поэтому copy_self может возвращать сам объект.
    """

    def copy_self(self) -> 'Hyperplane':
        return self

    @abstractmethod
    def get_offset(self, point: Point) -> float:
        """Знаковое расстояние от гиперплоскости до точки"""

    @abstractmethod
    def project(self, point: Point) -> Point:
        """Проекция точки на гиперплоскость"""

    @abstractmethod
    def get_tolerance(self) -> float:
        """Допуск, ниже которого точки считаются принадлежащими гиперплоскости"""

    @abstractmethod
    def same_orientation_as(self, other: 'Hyperplane') -> bool:
        """Проверка совпадения ориентации двух (параллельных) гиперплоскостей"""

    @abstractmethod
    def whole_hyperplane(self) -> 'SubHyperplane':
        """Подгиперплоскость, покрывающая всю гиперплоскость"""

    @abstractmethod
    def whole_space(self) -> 'AbstractRegion':
        """Регион, покрывающий всё пространство"""

    @abstractmethod
    def get_reverse(self) -> 'Hyperplane':
        """Та же гиперплоскость с противоположной ориентацией"""


class Embedding(ABC):
    """Вложение подпространства в пространство (гиперплоскость как система координат)"""

    @abstractmethod
    def to_sub_space(self, point: Point) -> Point:
        ...

    @abstractmethod
    def to_space(self, point: Point) -> Point:
        ...


class Transform(ABC):
    """
    Преобразование пространства, сохраняющее стороны гиперплоскостей

    apply_sub преобразует элемент подпространства (разрез внутри оставшейся
    области подгиперплоскости) при переходе от original к transformed.
    """

    @abstractmethod
    def apply_point(self, point: Point) -> Point:
        ...

    @abstractmethod
    def apply_hyperplane(self, hyperplane: Hyperplane) -> Hyperplane:
        ...

    @abstractmethod
    def apply_sub(self, sub: 'SubHyperplane', original: Hyperplane,
                  transformed: Hyperplane) -> 'SubHyperplane':
        ...


class SplitSubHyperplane:
    """
    Результат разрезания подгиперплоскости другой гиперплоскостью

    Attributes:
        plus: Часть на положительной стороне (None, если пусто)
        minus: Часть на отрицательной стороне (None, если пусто)
    """

    __slots__ = ('plus', 'minus')

    def __init__(self, plus: Optional['SubHyperplane'], minus: Optional['SubHyperplane']):
        self.plus = plus
        self.minus = minus

    def get_side(self) -> Side:
        """Классификация разрезанной подгиперплоскости"""
        plus_found = self.plus is not None and not self.plus.is_empty()
        minus_found = self.minus is not None and not self.minus.is_empty()
        if plus_found:
            return Side.BOTH if minus_found else Side.PLUS
        return Side.MINUS if minus_found else Side.HYPER


class SubHyperplane(ABC):
    """Часть гиперплоскости"""

    @abstractmethod
    def get_hyperplane(self) -> Hyperplane:
        ...

    @abstractmethod
    def get_remaining_region(self) -> Optional['AbstractRegion']:
        ...

    @abstractmethod
    def is_empty(self) -> bool:
        ...

    @abstractmethod
    def get_size(self) -> float:
        ...

    @abstractmethod
    def copy_self(self) -> 'SubHyperplane':
        ...

    @abstractmethod
    def split(self, hyperplane: Hyperplane) -> SplitSubHyperplane:
        """Разрезание гиперплоскостью: части на положительной и отрицательной сторонах"""

    @abstractmethod
    def reunite(self, other: 'SubHyperplane') -> 'SubHyperplane':
        """Объединение с другой частью той же гиперплоскости"""

    @abstractmethod
    def apply_transform(self, transform: Transform) -> 'SubHyperplane':
        ...

    def get_side(self, hyperplane: Hyperplane) -> Side:
        """Положение относительно гиперплоскости"""
        return self.split(hyperplane).get_side()


class AbstractSubHyperplane(SubHyperplane):
    """
    Подгиперплоскость, заданная гиперплоскостью и регионом её подпространства

    Для гиперплоскостей размерности 0 (точка на прямой, угол на окружности)
    оставшийся регион равен None.

    Args:
        hyperplane: Несущая гиперплоскость
        remaining_region: Часть гиперплоскости, выраженная в её подпространстве
    """

    def __init__(self, hyperplane: Hyperplane, remaining_region: Optional['AbstractRegion']):
        self._hyperplane = hyperplane
        self._remaining_region = remaining_region

    @abstractmethod
    def build_new(self, hyperplane: Hyperplane,
                  remaining_region: Optional['AbstractRegion']) -> 'AbstractSubHyperplane':
        ...

    def copy_self(self) -> 'AbstractSubHyperplane':
        return self.build_new(self._hyperplane.copy_self(), self._remaining_region)

    def get_hyperplane(self) -> Hyperplane:
        return self._hyperplane

    def get_remaining_region(self) -> Optional['AbstractRegion']:
        return self._remaining_region

    def get_size(self) -> float:
        return self._remaining_region.get_size()

    def is_empty(self) -> bool:
        return self._remaining_region.is_empty()

    def reunite(self, other: SubHyperplane) -> 'AbstractSubHyperplane':
        from .factory import RegionFactory
        return self.build_new(
            self._hyperplane,
            RegionFactory().union(self._remaining_region, other.get_remaining_region())
        )

    def apply_transform(self, transform: Transform) -> 'AbstractSubHyperplane':
        t_hyperplane = transform.apply_hyperplane(self._hyperplane)
        if self._remaining_region is None:
            return self.build_new(t_hyperplane, None)

        t_tree = self._recurse_transform(
            self._remaining_region.get_tree(False), t_hyperplane, transform
        )
        return self.build_new(t_hyperplane, self._remaining_region.build_new(t_tree))

    def _recurse_transform(self, node: 'BSPTree', transformed: Hyperplane,
                           transform: Transform) -> 'BSPTree':
        """Рекурсивное преобразование дерева оставшегося региона"""
        from .structures import BSPTree, BoundaryAttribute

        if node.cut is None:
            return BSPTree(node.attribute)

        attribute = node.attribute
        if attribute is not None:
            t_po = None if attribute.plus_outside is None else \
                transform.apply_sub(attribute.plus_outside, self._hyperplane, transformed)
            t_pi = None if attribute.plus_inside is None else \
                transform.apply_sub(attribute.plus_inside, self._hyperplane, transformed)
            attribute = BoundaryAttribute(t_po, t_pi)

        return BSPTree(
            transform.apply_sub(node.cut, self._hyperplane, transformed),
            self._recurse_transform(node.plus, transformed, transform),
            self._recurse_transform(node.minus, transformed, transform),
            attribute
        )
