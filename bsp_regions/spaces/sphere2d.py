"""
Двумерная сфера: точки, большие окружности, сферические многоугольники

Гиперплоскость на сфере - большая окружность, заданная полюсом. Сторона
полюса отрицательна, поэтому полусфера вокруг полюса - внутренность.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import math
import time

import numpy as np

from ..config import CONNECT_EPSILON, DEFAULT_TOLERANCE, TWO_PI, ZERO_NORM_EPSILON
from ..core.builder import TreeBuilder
from ..core.errors import DegenerateGeometryError
from ..core.geometry import (AbstractSubHyperplane, Embedding, Hyperplane, Point,
                             SplitSubHyperplane, SubHyperplane, Transform)
from ..core.region import AbstractRegion
from ..core.structures import BSPTree
from .euclidean3d import Vector3D, rotation_matrix
from .sphere1d import Arc, ArcsSet, S1Point

logger = logging.getLogger(__name__)

# Максимальная длина дуги в веере треугольников при вычислении площади
MAX_FAN_ARC = 0.5 * math.pi


class S2Point(Point):
    """
    Точка единичной сферы

    Args:
        vector: Направление (нормализуется)

    Raises:
        DegenerateGeometryError: нулевой вектор
    """

    __slots__ = ('vector',)

    def __init__(self, vector: Vector3D):
        self.vector = vector if vector.is_nan() else vector.normalize()

    @classmethod
    def from_angles(cls, theta: float, phi: float) -> 'S2Point':
        """
        Args:
            theta: Азимут (в плоскости xy от оси x)
            phi: Полярный угол (от оси z)
        """
        return cls(Vector3D(math.cos(theta) * math.sin(phi),
                            math.sin(theta) * math.sin(phi),
                            math.cos(phi)))

    @property
    def theta(self) -> float:
        return math.atan2(self.vector.y, self.vector.x)

    @property
    def phi(self) -> float:
        return math.acos(max(-1.0, min(1.0, self.vector.z)))

    def negate(self) -> 'S2Point':
        return S2Point(-self.vector)

    def distance(self, other: 'S2Point') -> float:
        return Vector3D.angle(self.vector, other.vector)

    def is_nan(self) -> bool:
        return self.vector.is_nan()

    def __eq__(self, other) -> bool:
        if not isinstance(other, S2Point):
            return NotImplemented
        return self.vector == other.vector

    def __hash__(self) -> int:
        return hash(self.vector)

    def __repr__(self) -> str:
        return f"S2Point({self.vector.x}, {self.vector.y}, {self.vector.z})"


S2Point.PLUS_I = S2Point(Vector3D.PLUS_I)
S2Point.PLUS_J = S2Point(Vector3D.PLUS_J)
S2Point.PLUS_K = S2Point(Vector3D.PLUS_K)
S2Point.MINUS_I = S2Point(-Vector3D.PLUS_I)
S2Point.MINUS_J = S2Point(-Vector3D.PLUS_J)
S2Point.MINUS_K = S2Point(-Vector3D.PLUS_K)
S2Point.NaN = S2Point(Vector3D.NaN)


class Circle(Hyperplane, Embedding):
    """
    Ориентированная большая окружность

    Фаза точки отсчитывается от оси x к оси y, (x, y, pole) - правая тройка.

    Args:
        pole: Полюс окружности (не обязательно единичный)
        tolerance: Допуск
    """

    def __init__(self, pole: Vector3D, tolerance: float = DEFAULT_TOLERANCE):
        self.pole = pole.normalize()
        self.x = self.pole.orthogonal()
        self.y = self.pole.cross(self.x)
        self.tolerance = tolerance

    @classmethod
    def from_points(cls, first: S2Point, second: S2Point,
                    tolerance: float = DEFAULT_TOLERANCE) -> 'Circle':
        """Окружность через две точки, ориентированная от first к second"""
        return cls(first.vector.cross(second.vector), tolerance)

    def _with_frame(self, x: Vector3D, y: Vector3D) -> 'Circle':
        self.x = x
        self.y = y
        return self

    def get_tolerance(self) -> float:
        return self.tolerance

    def get_reverse(self) -> 'Circle':
        circle = Circle(-self.pole, self.tolerance)
        return circle._with_frame(self.x, -self.y)

    def get_phase(self, direction: Vector3D) -> float:
        """Фаза проекции направления на плоскость окружности, в [0, 2pi)"""
        return math.pi + math.atan2(-direction.dot(self.y), -direction.dot(self.x))

    def point_at(self, alpha: float) -> Vector3D:
        return self.x * math.cos(alpha) + self.y * math.sin(alpha)

    def to_sub_space(self, point: S2Point) -> S1Point:
        return S1Point(self.get_phase(point.vector))

    def to_space(self, point: S1Point) -> S2Point:
        return S2Point(self.point_at(point.alpha))

    def project(self, point: S2Point) -> S2Point:
        return self.to_space(self.to_sub_space(point))

    def get_offset(self, point: S2Point) -> float:
        return Vector3D.angle(self.pole, point.vector) - 0.5 * math.pi

    def get_inside_arc(self, other: 'Circle') -> Arc:
        """Дуга этой окружности, лежащая на отрицательной стороне other"""
        alpha = self.get_phase(other.pole)
        half_pi = 0.5 * math.pi
        return Arc(alpha - half_pi, alpha + half_pi, self.tolerance)

    def same_orientation_as(self, other: 'Circle') -> bool:
        return self.pole.dot(other.pole) >= 0.0

    def whole_hyperplane(self) -> 'SubCircle':
        return SubCircle(self, ArcsSet(tolerance=self.tolerance))

    def whole_space(self) -> 'SphericalPolygonsSet':
        return SphericalPolygonsSet(tolerance=self.tolerance)

    def __repr__(self) -> str:
        return f"Circle(pole={self.pole})"


class _CircleRotation(Transform):
    """Поворот сферы; фазы на окружностях сохраняются"""

    def __init__(self, rotation: np.ndarray):
        self.rotation = np.asarray(rotation, dtype=np.float64)

    def _rotate(self, vector: Vector3D) -> Vector3D:
        return Vector3D.from_array(self.rotation @ vector.coords)

    def apply_point(self, point: S2Point) -> S2Point:
        return S2Point(self._rotate(point.vector))

    def apply_hyperplane(self, hyperplane: Circle) -> Circle:
        circle = Circle(self._rotate(hyperplane.pole), hyperplane.tolerance)
        return circle._with_frame(self._rotate(hyperplane.x), self._rotate(hyperplane.y))

    def apply_sub(self, sub, original, transformed):
        return sub


class SubCircle(AbstractSubHyperplane):
    """Часть большой окружности, заданная набором дуг"""

    def build_new(self, hyperplane, remaining_region):
        return SubCircle(hyperplane, remaining_region)

    def split(self, hyperplane: Hyperplane) -> SplitSubHyperplane:
        this_circle = self.get_hyperplane()
        other_circle = hyperplane
        angle = Vector3D.angle(this_circle.pole, other_circle.pole)
        tolerance = this_circle.tolerance

        if angle < tolerance or angle > math.pi - tolerance:
            # окружности совпадают или противоположны
            return SplitSubHyperplane(None, None)

        split = self.get_remaining_region().split_arc(this_circle.get_inside_arc(other_circle))
        return SplitSubHyperplane(
            None if split.plus is None else SubCircle(this_circle, split.plus),
            None if split.minus is None else SubCircle(this_circle, split.minus)
        )


@dataclass(frozen=True)
class Edge:
    """
    Ребро границы сферического многоугольника

    Внутренность лежит слева при движении от start к end вдоль circle
    (по возрастанию фазы). Ребро полной окружности начинается и
    заканчивается в одной точке.
    """
    start: S2Point
    end: S2Point
    length: float
    circle: Circle


class SphericalPolygonsSet(AbstractRegion):
    """Множество сферических многоугольников на единичной сфере"""

    @classmethod
    def from_boundary(cls, boundary: Sequence[SubHyperplane],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'SphericalPolygonsSet':
        return cls(TreeBuilder.from_boundary(boundary), tolerance)

    @classmethod
    def hemisphere(cls, pole: Vector3D, tolerance: float = DEFAULT_TOLERANCE) -> 'SphericalPolygonsSet':
        """Полусфера с центром в полюсе"""
        return cls(BSPTree(Circle(pole, tolerance).whole_hyperplane(),
                           BSPTree(False), BSPTree(True), None),
                   tolerance)

    @classmethod
    def regular_polygon(cls, center: Vector3D, meridian: Vector3D, outside_radius: float, n: int,
                        tolerance: float = DEFAULT_TOLERANCE) -> 'SphericalPolygonsSet':
        """
        Правильный многоугольник

        Args:
            center: Центр многоугольника
            meridian: Направление на первую вершину
            outside_radius: Угловой радиус описанной окружности
            n: Число вершин
        """
        r0 = rotation_matrix(center.cross(meridian), outside_radius)
        vertices = [S2Point(Vector3D.from_array(r0 @ center.coords))]
        r = rotation_matrix(center, TWO_PI / n)
        for _ in range(1, n):
            vertices.append(S2Point(Vector3D.from_array(r @ vertices[-1].vector.coords)))
        return cls.from_vertices(vertices, tolerance)

    @classmethod
    def from_vertices(cls, vertices: Sequence[S2Point],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'SphericalPolygonsSet':
        """
        Многоугольник по вершинам, перечисленным против часовой стрелки
        при взгляде снаружи сферы; пустой список даёт всю сферу

        Raises:
            DegenerateGeometryError: соседние вершины диаметрально противоположны
        """
        if not vertices:
            return cls(BSPTree(True), tolerance)

        boundary = []
        n = len(vertices)
        for i in range(n):
            start = vertices[i]
            end = vertices[(i + 1) % n]
            length = start.distance(end)
            if length <= tolerance:
                continue
            pole = start.vector.cross(end.vector)
            if pole.norm() < ZERO_NORM_EPSILON:
                raise DegenerateGeometryError(f"edge {i} joins antipodal vertices")
            circle = Circle(pole, tolerance)
            phase = circle.get_phase(start.vector)
            boundary.append(SubCircle(circle, ArcsSet.from_bounds(phase, phase + length, tolerance)))
        return cls.from_boundary(boundary, tolerance)

    def build_new(self, tree: BSPTree) -> 'SphericalPolygonsSet':
        return SphericalPolygonsSet(tree, self.get_tolerance())

    def rotate(self, rotation: np.ndarray) -> 'SphericalPolygonsSet':
        """Поворот сферы матрицей 3x3 (см. rotation_matrix)"""
        return self.apply_transform(_CircleRotation(rotation))

    def get_boundary_edges(self) -> List[Edge]:
        """Рёбра границы, ориентированные так, что внутренность слева"""
        edges: List[Edge] = []
        stack = [self.get_tree(True)]
        while stack:
            node = stack.pop()
            if node.cut is None:
                continue
            stack.append(node.plus)
            stack.append(node.minus)
            attribute = node.attribute
            if attribute.plus_outside is not None:
                edges.extend(self._sub_circle_edges(attribute.plus_outside, False))
            if attribute.plus_inside is not None:
                edges.extend(self._sub_circle_edges(attribute.plus_inside, True))
        return edges

    def get_boundary_loops(self) -> List[List[Edge]]:
        """
        Контуры границы

        Returns:
            Список контуров. Контур - цепочка рёбер, в которой конец каждого
            ребра совпадает с началом следующего, а конец последнего - с
            началом первого. Для региона без границы список пуст.
        """
        remaining = self.get_boundary_edges()
        loops: List[List[Edge]] = []
        while remaining:
            loop = [remaining.pop(0)]
            while loop[-1].end.distance(loop[0].start) > CONNECT_EPSILON:
                k = self._closest_start(remaining, loop[-1].end)
                if k is None:
                    break
                loop.append(remaining.pop(k))
            loops.append(loop)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Extracted {len(loops)} spherical boundary loops")
        return loops

    @staticmethod
    def _closest_start(edges: List[Edge], point: S2Point) -> Optional[int]:
        best = None
        best_distance = CONNECT_EPSILON
        for k, edge in enumerate(edges):
            d = edge.start.distance(point)
            if d <= best_distance:
                best = k
                best_distance = d
        return best

    @staticmethod
    def _sub_circle_edges(sub: SubCircle, reversed_: bool) -> List[Edge]:
        """Дуги подокружности как рёбра; для plus_inside направление обращается"""
        circle = sub.get_hyperplane()
        edges = []
        for start, end in sub.get_remaining_region():
            a = S2Point(circle.point_at(start))
            b = S2Point(circle.point_at(end))
            if reversed_:
                edges.append(Edge(b, a, end - start, circle.get_reverse()))
            else:
                edges.append(Edge(a, b, end - start, circle))
        return edges

    def compute_geometrical_properties(self) -> None:
        """
        Площадь и барицентр

        Каждая внутренняя ячейка дерева выпукла; её площадь - сумма площадей
        веера треугольников из центра ячейки. Барицентр - направление суммы
        векторных площадей ячеек.
        """
        tree = self.get_tree(True)
        if tree.cut is None:
            self._set_size(2 * TWO_PI if tree.attribute else 0.0)
            self._set_barycenter(S2Point.NaN)
            return

        start_time = time.perf_counter()
        size = 0.0
        summed = np.zeros(3)
        cells = 0
        for leaf in tree.iter_leaves():
            if not leaf.attribute:
                continue
            cell_size, cell_vector = self._convex_cell_properties(leaf)
            size += cell_size
            summed += cell_vector
            cells += 1

        self._set_size(size)
        if np.linalg.norm(summed) < ZERO_NORM_EPSILON:
            self._set_barycenter(S2Point.NaN)
        else:
            self._set_barycenter(S2Point(Vector3D.from_array(summed)))

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Spherical area {size:.6f} from {cells} convex cells "
                         f"in {time.perf_counter() - start_time:.4f}s")

    def _convex_cell_properties(self, leaf: BSPTree) -> Tuple[float, np.ndarray]:
        """Площадь и векторная площадь выпуклой ячейки"""
        cell = SphericalPolygonsSet(leaf.prune_around_convex_cell(True, False, None), self.get_tolerance())
        edges = cell.get_boundary_edges()

        # векторная площадь: половина суммы длин дуг, умноженных на полюс
        vector = np.zeros(3)
        for edge in edges:
            vector += 0.5 * edge.length * edge.circle.pole.coords
        norm = np.linalg.norm(vector)
        if norm < ZERO_NORM_EPSILON:
            return 0.0, vector

        c = vector / norm
        area = 0.0
        for edge in edges:
            area += self._fan_area(c, edge.start.vector.coords, edge.circle.pole.coords, edge.length)
        return area, vector

    @staticmethod
    def _fan_area(c: np.ndarray, a: np.ndarray, pole: np.ndarray, length: float) -> float:
        """Площадь веера треугольников с вершиной c над дугой из a длиной length вокруг pole"""
        pieces = max(1, int(math.ceil(length / MAX_FAN_ARC)))
        tangent = np.cross(pole, a)
        area = 0.0
        previous = a
        for k in range(1, pieces + 1):
            t = k * length / pieces
            current = math.cos(t) * a + math.sin(t) * tangent
            numerator = float(np.dot(c, np.cross(previous, current)))
            denominator = 1.0 + float(np.dot(c, previous)) + float(np.dot(previous, current)) \
                + float(np.dot(current, c))
            area += 2.0 * math.atan2(numerator, denominator)
            previous = current
        return area
