"""
Двумерное евклидово пространство: прямые, отрезки, многоугольники
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging
import math

import numpy as np

from ..config import CONNECT_EPSILON, DEFAULT_TOLERANCE, NON_INVERTIBLE_EPSILON, normalize_angle
from ..core.builder import TreeBuilder
from ..core.errors import DegenerateGeometryError
from ..core.geometry import (AbstractSubHyperplane, Embedding, Hyperplane, Point,
                             SplitSubHyperplane, SubHyperplane, Transform)
from ..core.region import AbstractRegion
from ..core.structures import BSPTree, BSPTreeVisitor, Order
from .euclidean1d import IntervalsSet, OrientedPoint, Vector1D

logger = logging.getLogger(__name__)


class Vector2D(Point):
    """Точка (вектор) плоскости"""

    __slots__ = ('coords',)

    def __init__(self, x: float, y: float):
        self.coords = np.array([x, y], dtype=np.float64)

    @classmethod
    def from_array(cls, array) -> 'Vector2D':
        array = np.asarray(array, dtype=np.float64)
        return cls(array[0], array[1])

    @property
    def x(self) -> float:
        return float(self.coords[0])

    @property
    def y(self) -> float:
        return float(self.coords[1])

    def __add__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D.from_array(self.coords + other.coords)

    def __sub__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D.from_array(self.coords - other.coords)

    def __mul__(self, factor: float) -> 'Vector2D':
        return Vector2D.from_array(self.coords * factor)

    __rmul__ = __mul__

    def __neg__(self) -> 'Vector2D':
        return Vector2D.from_array(-self.coords)

    def dot(self, other: 'Vector2D') -> float:
        return float(np.dot(self.coords, other.coords))

    def cross(self, other: 'Vector2D') -> float:
        """z-компонента векторного произведения"""
        return self.x * other.y - self.y * other.x

    def norm(self) -> float:
        return float(np.linalg.norm(self.coords))

    def distance(self, other: 'Vector2D') -> float:
        return float(np.linalg.norm(self.coords - other.coords))

    def is_nan(self) -> bool:
        return bool(np.isnan(self.coords).any())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vector2D):
            return NotImplemented
        if self.is_nan() or other.is_nan():
            return self.is_nan() and other.is_nan()
        return bool(np.array_equal(self.coords, other.coords))

    def __hash__(self) -> int:
        return 542 if self.is_nan() else hash((self.x, self.y))

    def __repr__(self) -> str:
        return f"Vector2D({self.x}, {self.y})"


Vector2D.ZERO = Vector2D(0.0, 0.0)
Vector2D.NaN = Vector2D(math.nan, math.nan)


class Line(Hyperplane, Embedding):
    """
    Ориентированная прямая

    Смещение точки: sin * x - cos * y + origin_offset, то есть левая
    полуплоскость (если смотреть вдоль направления) отрицательна.

    Args:
        angle: Угол направления в [0, 2pi)
        cos, sin: Косинус и синус угла
        origin_offset: Смещение начала координат относительно прямой
        tolerance: Допуск
    """

    def __init__(self, angle: float, cos: float, sin: float, origin_offset: float,
                 tolerance: float = DEFAULT_TOLERANCE):
        self.angle = angle
        self.cos = cos
        self.sin = sin
        self.origin_offset = origin_offset
        self.tolerance = tolerance

    @classmethod
    def from_points(cls, p1: Vector2D, p2: Vector2D, tolerance: float = DEFAULT_TOLERANCE) -> 'Line':
        """Прямая из p1 в p2"""
        dx = p2.x - p1.x
        dy = p2.y - p1.y
        d = math.hypot(dx, dy)
        if d == 0.0:
            return cls(0.0, 1.0, 0.0, p1.y, tolerance)
        return cls(math.pi + math.atan2(-dy, -dx), dx / d, dy / d,
                   (p2.x * p1.y - p1.x * p2.y) / d, tolerance)

    @classmethod
    def from_angle(cls, p: Vector2D, angle: float, tolerance: float = DEFAULT_TOLERANCE) -> 'Line':
        """Прямая через точку p с заданным углом направления"""
        angle = normalize_angle(angle, math.pi)
        cos = math.cos(angle)
        sin = math.sin(angle)
        return cls(angle, cos, sin, cos * p.y - sin * p.x, tolerance)

    def get_reverse(self) -> 'Line':
        angle = self.angle + math.pi if self.angle < math.pi else self.angle - math.pi
        return Line(angle, -self.cos, -self.sin, -self.origin_offset, self.tolerance)

    def get_tolerance(self) -> float:
        return self.tolerance

    def get_angle(self) -> float:
        return normalize_angle(self.angle, math.pi)

    def to_sub_space(self, point: Vector2D) -> Vector1D:
        return Vector1D(self.cos * point.x + self.sin * point.y)

    def to_space(self, point: Vector1D) -> Vector2D:
        x = point.x
        return Vector2D(x * self.cos - self.origin_offset * self.sin,
                        x * self.sin + self.origin_offset * self.cos)

    def intersection(self, other: 'Line') -> Optional[Vector2D]:
        """Точка пересечения, None для параллельных прямых"""
        d = self.sin * other.cos - other.sin * self.cos
        if abs(d) < self.tolerance:
            return None
        return Vector2D((self.cos * other.origin_offset - other.cos * self.origin_offset) / d,
                        (self.sin * other.origin_offset - other.sin * self.origin_offset) / d)

    def project(self, point: Vector2D) -> Vector2D:
        return self.to_space(self.to_sub_space(point))

    def get_offset(self, point: Vector2D) -> float:
        return self.sin * point.x - self.cos * point.y + self.origin_offset

    def get_line_offset(self, line: 'Line') -> float:
        """Смещение параллельной прямой"""
        if self.cos * line.cos + self.sin * line.sin > 0:
            return self.origin_offset - line.origin_offset
        return self.origin_offset + line.origin_offset

    def get_point_at(self, abscissa: Vector1D, offset: float) -> Vector2D:
        x = abscissa.x
        d_offset = offset - self.origin_offset
        return Vector2D(x * self.cos + d_offset * self.sin, x * self.sin - d_offset * self.cos)

    def contains(self, point: Vector2D) -> bool:
        return abs(self.get_offset(point)) < self.tolerance

    def is_parallel_to(self, line: 'Line') -> bool:
        return abs(self.sin * line.cos - self.cos * line.sin) < self.tolerance

    def same_orientation_as(self, other: 'Line') -> bool:
        return self.sin * other.sin + self.cos * other.cos >= 0.0

    def whole_hyperplane(self) -> 'SubLine':
        return SubLine(self, IntervalsSet(tolerance=self.tolerance))

    def whole_space(self) -> 'PolygonsSet':
        return PolygonsSet(tolerance=self.tolerance)

    def __repr__(self) -> str:
        return f"Line(angle={self.angle}, origin_offset={self.origin_offset})"

    @staticmethod
    def get_transform(cxx: float, cyx: float, cxy: float, cyy: float,
                      cx1: float, cy1: float) -> 'LineTransform':
        """
        Аффинное преобразование плоскости

        x' = cxx * x + cxy * y + cx1
        y' = cyx * x + cyy * y + cy1
        """
        return LineTransform(np.array([[cxx, cxy, cx1], [cyx, cyy, cy1]], dtype=np.float64))


class LineTransform(Transform):
    """
    Невырожденное аффинное преобразование плоскости, заданное матрицей 2x3

    Raises:
        DegenerateGeometryError: определитель линейной части близок к нулю
    """

    def __init__(self, matrix: np.ndarray):
        self.matrix = np.asarray(matrix, dtype=np.float64)
        (cxx, cxy, cx1), (cyx, cyy, cy1) = self.matrix
        self.c1y = cxy * cy1 - cyy * cx1
        self.c1x = cxx * cy1 - cyx * cx1
        self.c11 = cxx * cyy - cyx * cxy
        if abs(self.c11) < NON_INVERTIBLE_EPSILON:
            raise DegenerateGeometryError("non-invertible affine transform")

    def apply_point(self, point: Vector2D) -> Vector2D:
        return Vector2D.from_array(self.matrix[:, :2] @ point.coords + self.matrix[:, 2])

    def apply_hyperplane(self, hyperplane: Line) -> Line:
        (cxx, cxy, _), (cyx, cyy, _) = self.matrix
        r_offset = self.c1x * hyperplane.cos + self.c1y * hyperplane.sin + self.c11 * hyperplane.origin_offset
        r_cos = cxx * hyperplane.cos + cxy * hyperplane.sin
        r_sin = cyx * hyperplane.cos + cyy * hyperplane.sin
        inv = 1.0 / math.sqrt(r_sin * r_sin + r_cos * r_cos)
        return Line(math.pi + math.atan2(-r_sin, -r_cos), inv * r_cos, inv * r_sin,
                    inv * r_offset, hyperplane.tolerance)

    def apply_sub(self, sub: SubHyperplane, original: Line, transformed: Line) -> SubHyperplane:
        op = sub.get_hyperplane()
        new_loc = transformed.to_sub_space(self.apply_point(original.to_space(op.location)))
        return OrientedPoint(new_loc, op.direct, original.tolerance).whole_hyperplane()


@dataclass(frozen=True)
class Segment:
    """
    Отрезок прямой; бесконечный конец представлен None

    Attributes:
        start: Начало (None для бесконечного)
        end: Конец (None для бесконечного)
        line: Несущая прямая
    """
    start: Optional[Vector2D]
    end: Optional[Vector2D]
    line: Line

    def get_length(self) -> float:
        if self.start is None or self.end is None:
            return math.inf
        return self.start.distance(self.end)


class SubLine(AbstractSubHyperplane):
    """Часть прямой, заданная набором интервалов на ней"""

    @classmethod
    def from_segment(cls, start: Vector2D, end: Vector2D,
                     tolerance: float = DEFAULT_TOLERANCE) -> 'SubLine':
        """Отрезок [start, end] на прямой из start в end"""
        line = Line.from_points(start, end, tolerance)
        return cls(line, IntervalsSet.from_bounds(line.to_sub_space(start).x,
                                                  line.to_sub_space(end).x,
                                                  tolerance))

    def build_new(self, hyperplane, remaining_region):
        return SubLine(hyperplane, remaining_region)

    def get_segments(self) -> List[Segment]:
        """Отрезки, из которых состоит подпрямая"""
        line = self.get_hyperplane()
        segments = []
        for interval in self.get_remaining_region().as_list():
            start = None if math.isinf(interval.get_inf()) else line.to_space(Vector1D(interval.get_inf()))
            end = None if math.isinf(interval.get_sup()) else line.to_space(Vector1D(interval.get_sup()))
            segments.append(Segment(start, end, line))
        return segments

    def split(self, hyperplane: Hyperplane) -> SplitSubHyperplane:
        this_line = self.get_hyperplane()
        other_line = hyperplane
        crossing = this_line.intersection(other_line)
        tolerance = this_line.tolerance

        if crossing is None:
            # прямые параллельны
            global_offset = other_line.get_line_offset(this_line)
            if global_offset < -tolerance:
                return SplitSubHyperplane(None, self)
            if global_offset > tolerance:
                return SplitSubHyperplane(self, None)
            return SplitSubHyperplane(None, None)

        # прямые пересекаются
        direct = math.sin(this_line.angle - other_line.angle) < 0
        x = this_line.to_sub_space(crossing)
        sub_plus = OrientedPoint(x, not direct, tolerance).whole_hyperplane()
        sub_minus = OrientedPoint(x, direct, tolerance).whole_hyperplane()

        remaining = self.get_remaining_region()
        split_tree = remaining.get_tree(False).split(sub_minus)
        plus_tree = BSPTree(False) if remaining.is_empty(split_tree.plus) else \
            BSPTree(sub_plus, BSPTree(False), split_tree.plus, None)
        minus_tree = BSPTree(False) if remaining.is_empty(split_tree.minus) else \
            BSPTree(sub_minus, BSPTree(False), split_tree.minus, None)

        return SplitSubHyperplane(SubLine(this_line, IntervalsSet(plus_tree, tolerance)),
                                  SubLine(this_line, IntervalsSet(minus_tree, tolerance)))


class _SegmentsBuilder(BSPTreeVisitor):
    """Сбор граничных отрезков, ориентированных так, что регион слева"""

    def __init__(self):
        self.segments: List[Segment] = []

    def visit_order(self, node: BSPTree) -> Order:
        return Order.MINUS_SUB_PLUS

    def visit_internal_node(self, node: BSPTree) -> None:
        attribute = node.attribute
        if attribute.plus_outside is not None:
            self.segments.extend(attribute.plus_outside.get_segments())
        if attribute.plus_inside is not None:
            for segment in attribute.plus_inside.get_segments():
                self.segments.append(Segment(segment.end, segment.start, segment.line.get_reverse()))

    def visit_leaf_node(self, node: BSPTree) -> None:
        pass


class PolygonsSet(AbstractRegion):
    """Множество многоугольников на плоскости (возможно, неограниченных)"""

    @classmethod
    def from_boundary(cls, boundary: Sequence[SubHyperplane],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'PolygonsSet':
        return cls(TreeBuilder.from_boundary(boundary), tolerance)

    @classmethod
    def from_box(cls, x_min: float, x_max: float, y_min: float, y_max: float,
                 tolerance: float = DEFAULT_TOLERANCE) -> 'PolygonsSet':
        """Прямоугольник; слишком тонкий прямоугольник даёт пустое множество"""
        if x_min >= x_max - tolerance or y_min >= y_max - tolerance:
            return cls(BSPTree(False), tolerance)
        min_min = Vector2D(x_min, y_min)
        min_max = Vector2D(x_min, y_max)
        max_min = Vector2D(x_max, y_min)
        max_max = Vector2D(x_max, y_max)
        lines = [Line.from_points(min_min, max_min, tolerance),
                 Line.from_points(max_min, max_max, tolerance),
                 Line.from_points(max_max, min_max, tolerance),
                 Line.from_points(min_max, min_min, tolerance)]
        tree = TreeBuilder.convex(lines)
        return cls(BSPTree(False) if tree is None else tree, tolerance)

    @classmethod
    def from_vertices(cls, vertices: Sequence[Vector2D],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'PolygonsSet':
        """
        Многоугольник по вершинам простой ломаной

        Вершины перечисляются против часовой стрелки для ограниченного
        многоугольника; обход по часовой стрелке задаёт его дополнение.
        """
        boundary = []
        n = len(vertices)
        for i in range(n):
            start = vertices[i]
            end = vertices[(i + 1) % n]
            if start.distance(end) > tolerance:
                boundary.append(SubLine.from_segment(start, end, tolerance))
        return cls.from_boundary(boundary, tolerance)

    def build_new(self, tree: BSPTree) -> 'PolygonsSet':
        return PolygonsSet(tree, self.get_tolerance())

    def get_boundary_segments(self) -> List[Segment]:
        """Граничные отрезки; регион лежит слева от каждого"""
        builder = _SegmentsBuilder()
        self.get_tree(True).visit(builder)
        return builder.segments

    def compute_geometrical_properties(self) -> None:
        tree = self.get_tree(False)
        if tree.cut is None:
            self._set_size(math.inf if tree.attribute else 0.0)
            self._set_barycenter(Vector2D.NaN)
            return

        total = 0.0
        sum_x = 0.0
        sum_y = 0.0
        for segment in self.get_boundary_segments():
            if segment.start is None or segment.end is None:
                # открытая граница: многоугольник бесконечен
                self._set_size(math.inf)
                self._set_barycenter(Vector2D.NaN)
                return
            x0, y0 = segment.start.x, segment.start.y
            x1, y1 = segment.end.x, segment.end.y
            factor = x0 * y1 - y0 * x1
            total += factor
            sum_x += factor * (x0 + x1)
            sum_y += factor * (y0 + y1)

        if total < 0:
            # конечная внешняя часть, окружённая бесконечной внутренней
            self._set_size(math.inf)
            self._set_barycenter(Vector2D.NaN)
        elif total == 0:
            self._set_size(0.0)
            self._set_barycenter(Vector2D.NaN)
        else:
            self._set_size(total / 2)
            self._set_barycenter(Vector2D(sum_x / (3 * total), sum_y / (3 * total)))

    def get_vertices(self) -> List[List[Optional[Vector2D]]]:
        """
        Контуры границы

        Returns:
            Список контуров. Замкнутый контур - список вершин. Открытый
            контур начинается с None, затем идут фиктивная точка на первом
            бесконечном ребре, конечные вершины и фиктивная точка на последнем
            бесконечном ребре; одиночная прямая даёт [None, p1, p2].
            Открытые контуры идут первыми.
        """
        remaining = self.get_boundary_segments()
        loops: List[List[Optional[Vector2D]]] = []
        while remaining:
            first_index = next((k for k, s in enumerate(remaining) if s.start is None), 0)
            chain = [remaining.pop(first_index)]
            while chain[-1].end is not None:
                end = chain[-1].end
                if chain[0].start is not None and end.distance(chain[0].start) <= CONNECT_EPSILON:
                    break
                k = self._closest_start(remaining, end)
                if k is None:
                    break
                chain.append(remaining.pop(k))

            if chain[0].start is None:
                loops.append(self._open_loop(chain))
            else:
                loops.append([segment.start for segment in chain])

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Extracted {len(loops)} boundary loops")
        return sorted(loops, key=lambda loop: loop[0] is not None)

    @staticmethod
    def _open_loop(chain: List[Segment]) -> List[Optional[Vector2D]]:
        """Открытый контур с фиктивными точками, задающими направления бесконечных рёбер"""
        first = chain[0]
        last = chain[-1]
        x = 0.0 if first.end is None else first.line.to_sub_space(first.end).x
        loop: List[Optional[Vector2D]] = [None, first.line.to_space(Vector1D(x - max(1.0, abs(x / 2))))]
        loop.extend(segment.end for segment in chain[:-1])
        if last.end is not None:
            loop.append(last.end)
        else:
            x = 0.0 if last.start is None else last.line.to_sub_space(last.start).x
            loop.append(last.line.to_space(Vector1D(x + max(1.0, abs(x / 2)))))
        return loop

    @staticmethod
    def _closest_start(segments: List[Segment], point: Vector2D) -> Optional[int]:
        best = None
        best_distance = CONNECT_EPSILON
        for k, segment in enumerate(segments):
            if segment.start is None:
                continue
            d = segment.start.distance(point)
            if d <= best_distance:
                best = k
                best_distance = d
        return best

    def translate(self, vector: Vector2D) -> 'PolygonsSet':
        return self.apply_transform(Line.get_transform(1.0, 0.0, 0.0, 1.0, vector.x, vector.y))

    def rotate(self, center: Vector2D, angle: float) -> 'PolygonsSet':
        """Поворот на угол angle (против часовой стрелки) вокруг center"""
        c = math.cos(angle)
        s = math.sin(angle)
        return self.apply_transform(Line.get_transform(
            c, s, -s, c,
            center.x - c * center.x + s * center.y,
            center.y - s * center.x - c * center.y
        ))
