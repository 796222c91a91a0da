"""
Трёхмерное евклидово пространство: плоскости, прямые, многогранники
"""
from __future__ import annotations
from typing import Dict, Optional, Sequence, Tuple
import logging
import math
import time

import numpy as np

from ..config import DEFAULT_TOLERANCE, PARALLEL_EPSILON, ZERO_NORM_EPSILON
from ..core.builder import TreeBuilder
from ..core.errors import DegenerateGeometryError, MalformedBoundaryError
from ..core.geometry import (AbstractSubHyperplane, Embedding, Hyperplane, Location, Point,
                             SplitSubHyperplane, SubHyperplane, Transform)
from ..core.region import AbstractRegion
from ..core.structures import BSPTree, BSPTreeVisitor, Order
from .euclidean2d import Line, LineTransform, PolygonsSet, Vector2D

logger = logging.getLogger(__name__)


class Vector3D(Point):
    """Точка (вектор) трёхмерного пространства"""

    __slots__ = ('coords',)

    def __init__(self, x: float, y: float, z: float):
        self.coords = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, array) -> 'Vector3D':
        array = np.asarray(array, dtype=np.float64)
        return cls(array[0], array[1], array[2])

    @property
    def x(self) -> float:
        return float(self.coords[0])

    @property
    def y(self) -> float:
        return float(self.coords[1])

    @property
    def z(self) -> float:
        return float(self.coords[2])

    def __add__(self, other: 'Vector3D') -> 'Vector3D':
        return Vector3D.from_array(self.coords + other.coords)

    def __sub__(self, other: 'Vector3D') -> 'Vector3D':
        return Vector3D.from_array(self.coords - other.coords)

    def __mul__(self, factor: float) -> 'Vector3D':
        return Vector3D.from_array(self.coords * factor)

    __rmul__ = __mul__

    def __neg__(self) -> 'Vector3D':
        return Vector3D.from_array(-self.coords)

    def dot(self, other: 'Vector3D') -> float:
        return float(np.dot(self.coords, other.coords))

    def cross(self, other: 'Vector3D') -> 'Vector3D':
        return Vector3D.from_array(np.cross(self.coords, other.coords))

    def norm(self) -> float:
        return float(np.linalg.norm(self.coords))

    def normalize(self) -> 'Vector3D':
        n = self.norm()
        if n < ZERO_NORM_EPSILON:
            raise DegenerateGeometryError("cannot normalize a zero norm vector")
        return self * (1.0 / n)

    def orthogonal(self) -> 'Vector3D':
        """Единичный вектор, ортогональный данному"""
        threshold = 0.6 * self.norm()
        if threshold == 0:
            raise DegenerateGeometryError("zero norm vector has no orthogonal")

        x, y, z = self.coords
        if abs(x) <= threshold:
            inverse = 1 / math.sqrt(y * y + z * z)
            return Vector3D(0.0, inverse * z, -inverse * y)
        if abs(y) <= threshold:
            inverse = 1 / math.sqrt(x * x + z * z)
            return Vector3D(-inverse * z, 0.0, inverse * x)
        inverse = 1 / math.sqrt(x * x + y * y)
        return Vector3D(inverse * y, -inverse * x, 0.0)

    @staticmethod
    def angle(v1: 'Vector3D', v2: 'Vector3D') -> float:
        """Угол между векторами, точный и вблизи 0 и pi"""
        norm_product = v1.norm() * v2.norm()
        if norm_product == 0:
            raise DegenerateGeometryError("angle with a zero norm vector")

        dot = v1.dot(v2)
        threshold = norm_product * 0.9999
        if dot < -threshold or dot > threshold:
            # почти коллинеарные векторы: арккосинус теряет точность
            v3 = v1.cross(v2)
            if dot >= 0:
                return math.asin(v3.norm() / norm_product)
            return math.pi - math.asin(v3.norm() / norm_product)
        return math.acos(dot / norm_product)

    def distance(self, other: 'Vector3D') -> float:
        return float(np.linalg.norm(self.coords - other.coords))

    def is_nan(self) -> bool:
        return bool(np.isnan(self.coords).any())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vector3D):
            return NotImplemented
        if self.is_nan() or other.is_nan():
            return self.is_nan() and other.is_nan()
        return bool(np.array_equal(self.coords, other.coords))

    def __hash__(self) -> int:
        return 642 if self.is_nan() else hash((self.x, self.y, self.z))

    def __repr__(self) -> str:
        return f"Vector3D({self.x}, {self.y}, {self.z})"


Vector3D.ZERO = Vector3D(0.0, 0.0, 0.0)
Vector3D.PLUS_I = Vector3D(1.0, 0.0, 0.0)
Vector3D.PLUS_J = Vector3D(0.0, 1.0, 0.0)
Vector3D.PLUS_K = Vector3D(0.0, 0.0, 1.0)
Vector3D.NaN = Vector3D(math.nan, math.nan, math.nan)


def rotation_matrix(axis: Vector3D, angle: float) -> np.ndarray:
    """
    Матрица поворота на угол angle вокруг оси axis (формула Родрига)

    Поворот против часовой стрелки, если смотреть с конца оси.
    """
    k = axis.normalize().coords
    kx = np.array([[0.0, -k[2], k[1]],
                   [k[2], 0.0, -k[0]],
                   [-k[1], k[0], 0.0]])
    return np.eye(3) + math.sin(angle) * kx + (1.0 - math.cos(angle)) * (kx @ kx)


class Line3D:
    """
    Прямая в пространстве, проходящая через p1 и p2

    Raises:
        DegenerateGeometryError: точки совпадают
    """

    def __init__(self, p1: Vector3D, p2: Vector3D, tolerance: float = DEFAULT_TOLERANCE):
        delta = p2 - p1
        norm2 = delta.dot(delta)
        if norm2 == 0.0:
            raise DegenerateGeometryError("line defined by two identical points")
        self.direction = delta * (1.0 / math.sqrt(norm2))
        self.zero = p1 - delta * (p1.dot(delta) / norm2)
        self.tolerance = tolerance

    def get_abscissa(self, point: Vector3D) -> float:
        return (point - self.zero).dot(self.direction)

    def point_at(self, abscissa: float) -> Vector3D:
        return self.zero + self.direction * abscissa

    def distance(self, point: Vector3D) -> float:
        d = point - self.zero
        n = d - self.direction * d.dot(self.direction)
        return n.norm()

    def contains(self, point: Vector3D) -> bool:
        return self.distance(point) < self.tolerance

    def revert(self) -> 'Line3D':
        return Line3D(self.zero, self.zero - self.direction, self.tolerance)

    def __repr__(self) -> str:
        return f"Line3D(zero={self.zero}, direction={self.direction})"


class Plane(Hyperplane, Embedding):
    """
    Ориентированная плоскость с локальной системой координат (u, v)

    Положительная сторона - в направлении нормали w; (u, v, w) - правая тройка.

    Args:
        point: Точка плоскости
        normal: Нормаль (не обязательно единичная)
        tolerance: Допуск

    Raises:
        DegenerateGeometryError: нормаль нулевая
    """

    def __init__(self, point: Vector3D, normal: Vector3D, tolerance: float = DEFAULT_TOLERANCE):
        norm = normal.norm()
        if norm < ZERO_NORM_EPSILON:
            raise DegenerateGeometryError("zero norm for plane normal")
        self.tolerance = tolerance
        self.w = normal * (1.0 / norm)
        self.origin_offset = -point.dot(self.w)
        self.origin = self.w * -self.origin_offset
        self.u = self.w.orthogonal()
        self.v = self.w.cross(self.u)

    @classmethod
    def from_points(cls, p1: Vector3D, p2: Vector3D, p3: Vector3D,
                    tolerance: float = DEFAULT_TOLERANCE) -> 'Plane':
        """Плоскость через три точки, ориентированная по (p2 - p1) x (p3 - p1)"""
        return cls(p1, (p2 - p1).cross(p3 - p1), tolerance)

    def _with_frame(self, u: Vector3D, v: Vector3D) -> 'Plane':
        self.u = u
        self.v = v
        return self

    @property
    def normal(self) -> Vector3D:
        return self.w

    def get_tolerance(self) -> float:
        return self.tolerance

    def get_reverse(self) -> 'Plane':
        plane = Plane(self.origin, -self.w, self.tolerance)
        return plane._with_frame(self.v, self.u)

    def to_sub_space(self, point: Vector3D) -> Vector2D:
        return Vector2D(point.dot(self.u), point.dot(self.v))

    def to_space(self, point: Vector2D) -> Vector3D:
        return Vector3D.from_array(point.x * self.u.coords + point.y * self.v.coords
                                   - self.origin_offset * self.w.coords)

    def project(self, point: Vector3D) -> Vector3D:
        return self.to_space(self.to_sub_space(point))

    def get_offset(self, point: Vector3D) -> float:
        return point.dot(self.w) + self.origin_offset

    def get_plane_offset(self, plane: 'Plane') -> float:
        """Смещение параллельной плоскости"""
        if self.same_orientation_as(plane):
            return self.origin_offset - plane.origin_offset
        return self.origin_offset + plane.origin_offset

    def contains(self, point: Vector3D) -> bool:
        return abs(self.get_offset(point)) < self.tolerance

    def same_orientation_as(self, other: 'Plane') -> bool:
        return self.w.dot(other.w) > 0.0

    def intersection_line(self, line: Line3D) -> Optional[Vector3D]:
        """Точка пересечения с прямой, None для параллельной прямой"""
        direction = line.direction
        dot = self.w.dot(direction)
        if abs(dot) < PARALLEL_EPSILON:
            return None
        point = line.point_at(0)
        k = -(self.origin_offset + self.w.dot(point)) / dot
        return point + direction * k

    def intersection_plane(self, other: 'Plane') -> Optional[Line3D]:
        """Прямая пересечения двух плоскостей, None для параллельных плоскостей"""
        direction = self.w.cross(other.w)
        if direction.norm() < self.tolerance:
            return None
        point = Plane.intersection_point(self, other, Plane(Vector3D.ZERO, direction, self.tolerance))
        if point is None:
            return None
        return Line3D(point, point + direction, self.tolerance)

    @staticmethod
    def intersection_point(plane1: 'Plane', plane2: 'Plane', plane3: 'Plane') -> Optional[Vector3D]:
        """Общая точка трёх плоскостей, None если её нет или она не единственна"""
        a = np.vstack([plane1.w.coords, plane2.w.coords, plane3.w.coords])
        if abs(np.linalg.det(a)) < PARALLEL_EPSILON:
            return None
        b = -np.array([plane1.origin_offset, plane2.origin_offset, plane3.origin_offset])
        return Vector3D.from_array(np.linalg.solve(a, b))

    def rotate(self, center: Vector3D, rotation: np.ndarray) -> 'Plane':
        """Плоскость после поворота вокруг center; локальная система поворачивается вместе с ней"""
        delta = self.origin - center
        plane = Plane(center + Vector3D.from_array(rotation @ delta.coords),
                      Vector3D.from_array(rotation @ self.w.coords), self.tolerance)
        return plane._with_frame(Vector3D.from_array(rotation @ self.u.coords),
                                 Vector3D.from_array(rotation @ self.v.coords))

    def translate(self, translation: Vector3D) -> 'Plane':
        plane = Plane(self.origin + translation, self.w, self.tolerance)
        return plane._with_frame(self.u, self.v)

    def whole_hyperplane(self) -> 'SubPlane':
        return SubPlane(self, PolygonsSet(tolerance=self.tolerance))

    def whole_space(self) -> 'PolyhedronsSet':
        return PolyhedronsSet(tolerance=self.tolerance)

    def __repr__(self) -> str:
        return f"Plane(normal={self.w}, origin_offset={self.origin_offset})"


class SubPlane(AbstractSubHyperplane):
    """Часть плоскости, заданная множеством многоугольников в её локальных координатах"""

    def build_new(self, hyperplane, remaining_region):
        return SubPlane(hyperplane, remaining_region)

    def split(self, hyperplane: Hyperplane) -> SplitSubHyperplane:
        this_plane = self.get_hyperplane()
        other_plane = hyperplane
        tolerance = this_plane.tolerance
        inter = other_plane.intersection_plane(this_plane)

        if inter is None:
            # плоскости параллельны
            global_offset = other_plane.get_plane_offset(this_plane)
            if global_offset < -tolerance:
                return SplitSubHyperplane(None, self)
            if global_offset > tolerance:
                return SplitSubHyperplane(self, None)
            return SplitSubHyperplane(None, None)

        # линия пересечения в локальных координатах, ориентированная так,
        # что её отрицательная сторона лежит на отрицательной стороне other_plane
        p = this_plane.to_sub_space(inter.point_at(0.0))
        q = this_plane.to_sub_space(inter.point_at(1.0))
        cross_p = inter.direction.cross(this_plane.normal)
        if cross_p.dot(other_plane.normal) < 0:
            p, q = q, p

        l2d_minus = Line.from_points(p, q, tolerance).whole_hyperplane()
        l2d_plus = Line.from_points(q, p, tolerance).whole_hyperplane()

        remaining = self.get_remaining_region()
        split_tree = remaining.get_tree(False).split(l2d_minus)
        plus_tree = BSPTree(False) if remaining.is_empty(split_tree.plus) else \
            BSPTree(l2d_plus, BSPTree(False), split_tree.plus, None)
        minus_tree = BSPTree(False) if remaining.is_empty(split_tree.minus) else \
            BSPTree(l2d_minus, BSPTree(False), split_tree.minus, None)

        return SplitSubHyperplane(SubPlane(this_plane, PolygonsSet(plus_tree, tolerance)),
                                  SubPlane(this_plane, PolygonsSet(minus_tree, tolerance)))


class _FacetsContributionVisitor(BSPTreeVisitor):
    """Накопление объёма и барицентра по граням (теорема о дивергенции)"""

    def __init__(self):
        self.size = 0.0
        self.barycenter_sum = np.zeros(3)
        self.infinite = False

    def visit_order(self, node: BSPTree) -> Order:
        return Order.MINUS_SUB_PLUS

    def visit_internal_node(self, node: BSPTree) -> None:
        attribute = node.attribute
        if attribute.plus_outside is not None:
            self._add_contribution(attribute.plus_outside, False)
        if attribute.plus_inside is not None:
            self._add_contribution(attribute.plus_inside, True)

    def visit_leaf_node(self, node: BSPTree) -> None:
        pass

    def _add_contribution(self, facet: SubPlane, reversed_: bool) -> None:
        polygon = facet.get_remaining_region()
        area = polygon.get_size()
        if math.isinf(area):
            self.infinite = True
            return
        if area == 0:
            return

        plane = facet.get_hyperplane()
        facet_b = plane.to_space(polygon.get_barycenter())
        scaled = area * facet_b.dot(plane.normal)
        if reversed_:
            scaled = -scaled

        self.size += scaled
        self.barycenter_sum += scaled * facet_b.coords


class _RotationTransform(Transform):
    """Поворот вокруг точки"""

    def __init__(self, center: Vector3D, rotation: np.ndarray):
        self.center = center
        self.rotation = np.asarray(rotation, dtype=np.float64)
        self._cached_original = None
        self._cached_transform: Optional[LineTransform] = None

    def apply_point(self, point: Vector3D) -> Vector3D:
        delta = point - self.center
        return self.center + Vector3D.from_array(self.rotation @ delta.coords)

    def apply_hyperplane(self, hyperplane: Plane) -> Plane:
        return hyperplane.rotate(self.center, self.rotation)

    def apply_sub(self, sub, original: Plane, transformed: Plane):
        if original is not self._cached_original:
            # преобразование локальных координат плоскости
            p00 = original.origin
            p10 = original.to_space(Vector2D(1.0, 0.0))
            p01 = original.to_space(Vector2D(0.0, 1.0))
            t_p00 = transformed.to_sub_space(self.apply_point(p00))
            t_p10 = transformed.to_sub_space(self.apply_point(p10))
            t_p01 = transformed.to_sub_space(self.apply_point(p01))
            self._cached_original = original
            self._cached_transform = Line.get_transform(
                t_p10.x - t_p00.x, t_p10.y - t_p00.y,
                t_p01.x - t_p00.x, t_p01.y - t_p00.y,
                t_p00.x, t_p00.y
            )
        return sub.apply_transform(self._cached_transform)


class _TranslationTransform(Transform):
    """Параллельный перенос"""

    def __init__(self, translation: Vector3D):
        self.translation = translation
        self._cached_original = None
        self._cached_transform: Optional[LineTransform] = None

    def apply_point(self, point: Vector3D) -> Vector3D:
        return point + self.translation

    def apply_hyperplane(self, hyperplane: Plane) -> Plane:
        return hyperplane.translate(self.translation)

    def apply_sub(self, sub, original: Plane, transformed: Plane):
        if original is not self._cached_original:
            shift = transformed.to_sub_space(self.apply_point(original.origin))
            self._cached_original = original
            self._cached_transform = Line.get_transform(1.0, 0.0, 0.0, 1.0, shift.x, shift.y)
        return sub.apply_transform(self._cached_transform)


class PolyhedronsSet(AbstractRegion):
    """Множество многогранников (возможно, неограниченных)"""

    @classmethod
    def from_boundary(cls, boundary: Sequence[SubHyperplane],
                      tolerance: float = DEFAULT_TOLERANCE) -> 'PolyhedronsSet':
        return cls(TreeBuilder.from_boundary(boundary), tolerance)

    @classmethod
    def from_box(cls, x_min: float, x_max: float, y_min: float, y_max: float,
                 z_min: float, z_max: float, tolerance: float = DEFAULT_TOLERANCE) -> 'PolyhedronsSet':
        """Параллелепипед; слишком тонкий параллелепипед даёт пустое множество"""
        if x_min >= x_max - tolerance or y_min >= y_max - tolerance or z_min >= z_max - tolerance:
            return cls(BSPTree(False), tolerance)
        planes = [
            Plane(Vector3D(x_min, 0, 0), -Vector3D.PLUS_I, tolerance),
            Plane(Vector3D(x_max, 0, 0), Vector3D.PLUS_I, tolerance),
            Plane(Vector3D(0, y_min, 0), -Vector3D.PLUS_J, tolerance),
            Plane(Vector3D(0, y_max, 0), Vector3D.PLUS_J, tolerance),
            Plane(Vector3D(0, 0, z_min), -Vector3D.PLUS_K, tolerance),
            Plane(Vector3D(0, 0, z_max), Vector3D.PLUS_K, tolerance),
        ]
        tree = TreeBuilder.convex(planes)
        return cls(BSPTree(False) if tree is None else tree, tolerance)

    @classmethod
    def from_vertices_and_facets(cls, vertices: Sequence[Vector3D], facets: Sequence[Sequence[int]],
                                 tolerance: float = DEFAULT_TOLERANCE) -> 'PolyhedronsSet':
        """
        Многогранник по вершинам и граням

        Каждая грань - список индексов вершин, перечисленных против часовой
        стрелки при взгляде снаружи. Каждое ребро должно принадлежать ровно
        двум граням с противоположными направлениями обхода.

        Raises:
            MalformedBoundaryError: близкие вершины, незамкнутая граница,
                несогласованная ориентация граней или грань вне плоскости
        """
        start_time = time.perf_counter()
        cls._check_vertices(vertices, tolerance)
        cls._check_edges(facets)

        boundary = []
        for k, facet in enumerate(facets):
            plane = Plane.from_points(vertices[facet[0]], vertices[facet[1]], vertices[facet[2]], tolerance)
            points_2d = []
            for index in facet:
                vertex = vertices[index]
                if not plane.contains(vertex):
                    raise MalformedBoundaryError(
                        f"vertex {index} of facet {k} is out of the facet plane "
                        f"(offset {plane.get_offset(vertex)})")
                points_2d.append(plane.to_sub_space(vertex))
            boundary.append(SubPlane(plane, PolygonsSet.from_vertices(points_2d, tolerance)))

        region = cls.from_boundary(boundary, tolerance)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Polyhedron built from {len(vertices)} vertices and {len(facets)} facets "
                         f"in {time.perf_counter() - start_time:.4f}s")
        return region

    @staticmethod
    def _check_vertices(vertices: Sequence[Vector3D], tolerance: float) -> None:
        coords = np.array([v.coords for v in vertices], dtype=np.float64).reshape(-1, 3)
        for i in range(len(coords) - 1):
            distances = np.linalg.norm(coords[i + 1:] - coords[i], axis=1)
            close = np.nonzero(distances <= tolerance)[0]
            if close.size:
                raise MalformedBoundaryError(
                    f"vertices {i} and {i + 1 + int(close[0])} are too close "
                    f"({distances[close[0]]} <= {tolerance})")

    @staticmethod
    def _check_edges(facets: Sequence[Sequence[int]]) -> None:
        edges: Dict[Tuple[int, int], int] = {}
        for k, facet in enumerate(facets):
            if len(facet) < 3:
                raise MalformedBoundaryError(f"facet {k} has only {len(facet)} vertices")
            for i in range(len(facet)):
                edge = (facet[i], facet[(i + 1) % len(facet)])
                if edge in edges:
                    raise MalformedBoundaryError(
                        f"facets {edges[edge]} and {k} have the same orientation for edge {edge}")
                edges[edge] = k

        for (a, b), k in edges.items():
            if (b, a) not in edges:
                raise MalformedBoundaryError(f"edge {(a, b)} is connected to only one facet ({k})")

    def build_new(self, tree: BSPTree) -> 'PolyhedronsSet':
        return PolyhedronsSet(tree, self.get_tolerance())

    def compute_geometrical_properties(self) -> None:
        tree = self.get_tree(True)
        if tree.cut is None:
            self._set_size(math.inf if tree.attribute else 0.0)
            self._set_barycenter(Vector3D.NaN)
            return

        visitor = _FacetsContributionVisitor()
        tree.visit(visitor)
        if visitor.infinite or visitor.size < 0:
            # неограниченный объём (или конечная внешняя часть)
            self._set_size(math.inf)
            self._set_barycenter(Vector3D.NaN)
        elif visitor.size == 0:
            self._set_size(0.0)
            self._set_barycenter(Vector3D.NaN)
        else:
            size = visitor.size / 3
            self._set_size(size)
            self._set_barycenter(Vector3D.from_array(visitor.barycenter_sum / (4 * size)))

    def first_intersection(self, point: Vector3D, line: Line3D) -> Optional[SubPlane]:
        """
        Первая грань, пересекаемая лучом

        Args:
            point: Начало луча (лежит на line)
            line: Прямая, направление которой задаёт направление луча

        Returns:
            Грань, содержащая первую точку пересечения, либо None
        """
        return self._recurse_first_intersection(self.get_tree(True), point, line)

    def _recurse_first_intersection(self, node: BSPTree, point: Vector3D,
                                    line: Line3D) -> Optional[SubPlane]:
        if node.cut is None:
            return None

        plane = node.cut.get_hyperplane()
        offset = plane.get_offset(point)
        in_plane = abs(offset) < self.get_tolerance()
        if offset < 0:
            near, far = node.minus, node.plus
        else:
            near, far = node.plus, node.minus

        if in_plane:
            # точка на разрезе: возможно, это уже граница
            facet = self._boundary_facet(point, node)
            if facet is not None:
                return facet

        crossed = self._recurse_first_intersection(near, point, line)
        if crossed is not None:
            return crossed

        if not in_plane:
            hit = plane.intersection_line(line)
            if hit is not None and line.get_abscissa(hit) > line.get_abscissa(point):
                facet = self._boundary_facet(hit, node)
                if facet is not None:
                    return facet

        return self._recurse_first_intersection(far, point, line)

    @staticmethod
    def _boundary_facet(point: Vector3D, node: BSPTree) -> Optional[SubPlane]:
        point_2d = node.cut.get_hyperplane().to_sub_space(point)
        attribute = node.attribute
        for facet in (attribute.plus_outside, attribute.plus_inside):
            if facet is not None and \
                    facet.get_remaining_region().check_point(point_2d) is not Location.OUTSIDE:
                return facet
        return None

    def rotate(self, center: Vector3D, rotation: np.ndarray) -> 'PolyhedronsSet':
        """
        Поворот вокруг точки

        Args:
            center: Центр поворота
            rotation: Ортогональная матрица 3x3 (см. rotation_matrix)
        """
        return self.apply_transform(_RotationTransform(center, rotation))

    def translate(self, translation: Vector3D) -> 'PolyhedronsSet':
        return self.apply_transform(_TranslationTransform(translation))
