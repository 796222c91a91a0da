"""Тесты прямых и многоугольников на плоскости."""

import math

import pytest

from bsp_regions.core.errors import DegenerateGeometryError
from bsp_regions.core.factory import RegionFactory
from bsp_regions.core.geometry import Location, Side
from bsp_regions.spaces.euclidean1d import Vector1D
from bsp_regions.spaces.euclidean2d import Line, LineTransform, PolygonsSet, SubLine, Vector2D


def _rounded(point, digits=9):
    return round(point.x, digits), round(point.y, digits)


class TestLine:
    """Ориентированная прямая."""

    def test_from_points(self):
        """Внутренность (минус) слева от направления."""
        line = Line.from_points(Vector2D(0, 0), Vector2D(1, 0))
        assert line.get_angle() == pytest.approx(0.0)
        assert line.get_offset(Vector2D(0.5, 1.0)) == pytest.approx(-1.0)
        assert line.get_offset(Vector2D(0.5, -2.0)) == pytest.approx(2.0)

    def test_from_angle(self):
        """Прямая через точку под углом."""
        line = Line.from_angle(Vector2D(1, 1), 0.5 * math.pi)
        assert line.contains(Vector2D(1, 5))
        assert line.get_offset(Vector2D(0, 0)) == pytest.approx(-1.0)
        assert line.get_offset(Vector2D(3, 0)) == pytest.approx(2.0)

    def test_embedding(self):
        """Абсцисса точки и обратное отображение."""
        line = Line.from_points(Vector2D(0, 1), Vector2D(1, 2))
        point = Vector2D(3, 4)
        assert line.contains(point)
        back = line.to_space(line.to_sub_space(point))
        assert back.distance(point) == pytest.approx(0.0, abs=1e-12)
        projected = line.project(Vector2D(0, 2))
        assert line.contains(projected)

    def test_intersection(self):
        """Пересечение и параллельность."""
        l1 = Line.from_points(Vector2D(0, 0), Vector2D(1, 1))
        l2 = Line.from_points(Vector2D(0, 2), Vector2D(2, 0))
        crossing = l1.intersection(l2)
        assert crossing.x == pytest.approx(1.0)
        assert crossing.y == pytest.approx(1.0)

        l3 = Line.from_points(Vector2D(0, 1), Vector2D(1, 2))
        assert l1.intersection(l3) is None
        assert l1.is_parallel_to(l3)

    def test_reverse(self):
        """Обратная прямая меняет знак смещения."""
        line = Line.from_points(Vector2D(0, 0), Vector2D(2, 1))
        reverse = line.get_reverse()
        point = Vector2D(-1, 3)
        assert reverse.get_offset(point) == pytest.approx(-line.get_offset(point))
        assert not line.same_orientation_as(reverse)

    def test_degenerate_transform(self):
        """Вырожденное аффинное преобразование отклоняется."""
        with pytest.raises(DegenerateGeometryError):
            Line.get_transform(1.0, 2.0, 2.0, 4.0, 0.0, 0.0)

    def test_transform_keeps_sides(self):
        """Преобразование переносит точки и прямые согласованно."""
        transform = Line.get_transform(0.0, 1.0, -1.0, 0.0, 3.0, 0.0)
        assert isinstance(transform, LineTransform)
        line = Line.from_points(Vector2D(0, 0), Vector2D(1, 0))
        moved = transform.apply_hyperplane(line)
        point = Vector2D(0.3, 0.7)
        assert moved.get_offset(transform.apply_point(point)) == pytest.approx(line.get_offset(point))


class TestSubLine:
    """Отрезки прямой."""

    def test_segments(self):
        """Отрезок из двух точек."""
        sub = SubLine.from_segment(Vector2D(1, 1), Vector2D(3, 1))
        segments = sub.get_segments()
        assert len(segments) == 1
        assert _rounded(segments[0].start) == (1.0, 1.0)
        assert _rounded(segments[0].end) == (3.0, 1.0)
        assert segments[0].get_length() == pytest.approx(2.0)

    def test_split_crossing(self):
        """Разрезание пересекающей прямой."""
        sub = SubLine.from_segment(Vector2D(0, 0), Vector2D(4, 0))
        splitter = Line.from_points(Vector2D(1, -1), Vector2D(1, 1))
        split = sub.split(splitter)
        assert split.get_side() is Side.BOTH
        assert split.plus.get_size() == pytest.approx(3.0)
        assert split.minus.get_size() == pytest.approx(1.0)

    def test_split_parallel(self):
        """Разрезание параллельной прямой."""
        sub = SubLine.from_segment(Vector2D(0, 0), Vector2D(4, 0))
        above = Line.from_points(Vector2D(0, 1), Vector2D(4, 1))
        assert sub.split(above).get_side() is Side.PLUS
        same = Line.from_points(Vector2D(5, 0), Vector2D(6, 0))
        assert sub.split(same).get_side() is Side.HYPER

    def test_split_missing(self):
        """Прямая пересекает несущую прямую вне отрезка."""
        sub = SubLine.from_segment(Vector2D(0, 0), Vector2D(4, 0))
        splitter = Line.from_points(Vector2D(10, -1), Vector2D(10, 1))
        assert sub.split(splitter).get_side() is Side.MINUS


class TestPolygonsSet:
    """Многоугольники."""

    def test_box(self):
        """Единичный квадрат."""
        square = PolygonsSet.from_box(0, 1, 0, 1)
        assert square.get_size() == pytest.approx(1.0)
        assert square.get_boundary_size() == pytest.approx(4.0)
        barycenter = square.get_barycenter()
        assert barycenter.x == pytest.approx(0.5)
        assert barycenter.y == pytest.approx(0.5)
        assert square.check_point(Vector2D(0.5, 0.5)) is Location.INSIDE
        assert square.check_point(Vector2D(0.5, 0.0)) is Location.BOUNDARY
        assert square.check_point(Vector2D(1.0, 1.0)) is Location.BOUNDARY
        assert square.check_point(Vector2D(1.5, 0.5)) is Location.OUTSIDE

    def test_thin_box_is_empty(self):
        """Прямоугольник тоньше допуска пуст."""
        assert PolygonsSet.from_box(0, 1, 0, 1e-12).is_empty()

    def test_triangle(self):
        """Треугольник по вершинам."""
        triangle = PolygonsSet.from_vertices([Vector2D(0, 0), Vector2D(4, 0), Vector2D(0, 3)])
        assert triangle.get_size() == pytest.approx(6.0)
        assert triangle.get_boundary_size() == pytest.approx(12.0)
        barycenter = triangle.get_barycenter()
        assert barycenter.x == pytest.approx(4.0 / 3.0)
        assert barycenter.y == pytest.approx(1.0)

    def test_non_convex(self):
        """L-образный многоугольник."""
        vertices = [Vector2D(0, 0), Vector2D(2, 0), Vector2D(2, 1),
                    Vector2D(1, 1), Vector2D(1, 2), Vector2D(0, 2)]
        region = PolygonsSet.from_vertices(vertices)
        assert region.get_size() == pytest.approx(3.0)
        assert region.get_boundary_size() == pytest.approx(8.0)
        assert region.check_point(Vector2D(1.5, 1.5)) is Location.OUTSIDE
        assert region.check_point(Vector2D(0.5, 1.5)) is Location.INSIDE
        assert region.check_point(Vector2D(1.5, 0.5)) is Location.INSIDE

    def test_clockwise_vertices_give_complement(self):
        """Обход по часовой стрелке задаёт неограниченное дополнение."""
        region = PolygonsSet.from_vertices([Vector2D(0, 0), Vector2D(0, 1), Vector2D(1, 1), Vector2D(1, 0)])
        assert math.isinf(region.get_size())
        assert region.check_point(Vector2D(5, 5)) is Location.INSIDE
        assert region.check_point(Vector2D(0.5, 0.5)) is Location.OUTSIDE

    def test_half_plane(self):
        """Полуплоскость неограничена."""
        factory = RegionFactory()
        half = factory.build_convex([Line.from_points(Vector2D(0, 0), Vector2D(1, 0))])
        assert math.isinf(half.get_size())
        assert half.get_barycenter().is_nan()
        loops = half.get_vertices()
        assert len(loops) == 1
        assert loops[0][0] is None
        assert [_rounded(p) for p in loops[0][1:]] == [(-1.0, 0.0), (1.0, 0.0)]

    def test_quadrant_vertices(self):
        """Открытый контур квадранта: фиктивные точки на обоих лучах."""
        factory = RegionFactory()
        quadrant = factory.build_convex([
            Line.from_points(Vector2D(0, 0), Vector2D(1, 0)),
            Line.from_points(Vector2D(0, 1), Vector2D(0, 0)),
        ])
        loops = quadrant.get_vertices()
        assert len(loops) == 1
        assert loops[0][0] is None
        assert [_rounded(p) for p in loops[0][1:]] == [(0.0, 1.0), (0.0, 0.0), (1.0, 0.0)]

    def test_vertices(self):
        """Контур квадрата."""
        square = PolygonsSet.from_box(0, 1, 0, 1)
        loops = square.get_vertices()
        assert len(loops) == 1
        assert sorted(_rounded(p) for p in loops[0]) == [(0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0)]

    def test_hole(self):
        """Квадрат с отверстием: два контура."""
        factory = RegionFactory()
        outer = PolygonsSet.from_box(0, 3, 0, 3)
        inner = PolygonsSet.from_box(1, 2, 1, 2)
        region = factory.difference(outer, inner)
        assert region.get_size() == pytest.approx(8.0)
        assert region.get_boundary_size() == pytest.approx(16.0)
        assert region.check_point(Vector2D(1.5, 1.5)) is Location.OUTSIDE
        assert region.check_point(Vector2D(0.5, 1.5)) is Location.INSIDE
        loops = region.get_vertices()
        assert len(loops) == 2
        assert all(loop[0] is not None for loop in loops)

    def test_translate(self):
        """Перенос сохраняет площадь и сдвигает барицентр."""
        square = PolygonsSet.from_box(0, 1, 0, 1).translate(Vector2D(2, 3))
        assert square.get_size() == pytest.approx(1.0)
        assert square.get_barycenter().x == pytest.approx(2.5)
        assert square.get_barycenter().y == pytest.approx(3.5)
        assert square.check_point(Vector2D(2.5, 3.5)) is Location.INSIDE
        assert square.check_point(Vector2D(0.5, 0.5)) is Location.OUTSIDE

    def test_rotate(self):
        """Поворот вокруг центра сохраняет площадь и барицентр."""
        center = Vector2D(0.5, 0.5)
        square = PolygonsSet.from_box(0, 1, 0, 1).rotate(center, 0.25 * math.pi)
        assert square.get_size() == pytest.approx(1.0)
        assert square.get_barycenter().x == pytest.approx(0.5)
        assert square.get_barycenter().y == pytest.approx(0.5)
        assert square.check_point(Vector2D(0.5, 1.2)) is Location.INSIDE
        assert square.check_point(Vector2D(0.05, 0.05)) is Location.OUTSIDE

    def test_rotate_after_boundary_computation(self):
        """Поворот региона с уже вычисленной границей."""
        square = PolygonsSet.from_box(0, 1, 0, 1)
        assert square.get_boundary_size() == pytest.approx(4.0)
        rotated = square.rotate(Vector2D(0, 0), 0.5 * math.pi)
        assert rotated.get_boundary_size() == pytest.approx(4.0)
        assert rotated.get_barycenter().x == pytest.approx(-0.5)
        assert rotated.get_barycenter().y == pytest.approx(0.5)

    def test_split(self):
        """Разрезание квадрата диагональю."""
        square = PolygonsSet.from_box(0, 1, 0, 1)
        split = square.split(Line.from_points(Vector2D(0, 0), Vector2D(1, 1)))
        assert split.plus.get_size() == pytest.approx(0.5)
        assert split.minus.get_size() == pytest.approx(0.5)
        assert square.side(Line.from_points(Vector2D(0, 0), Vector2D(1, 1))) is Side.BOTH
        assert square.side(Line.from_points(Vector2D(0, 2), Vector2D(1, 2))) is Side.PLUS

    def test_intersection_with_sub_line(self):
        """Часть отрезка внутри квадрата."""
        square = PolygonsSet.from_box(0, 1, 0, 1)
        sub = SubLine.from_segment(Vector2D(-1, 0.5), Vector2D(3, 0.5))
        inside = square.intersection(sub)
        assert inside.get_size() == pytest.approx(1.0)
        assert inside.get_remaining_region().check_point(Vector1D(0.5)) is Location.INSIDE


class TestPolygonProjection:
    """Проекция точки на границу многоугольника."""

    @pytest.mark.parametrize("point, expected, offset", [
        ((0.5, -1.0), (0.5, 0.0), 1.0),
        ((0.5, 0.2), (0.5, 0.0), -0.2),
        ((2.0, 2.0), (1.0, 1.0), math.sqrt(2.0)),
        ((-1.0, 0.5), (0.0, 0.5), 1.0),
        ((0.7, 0.5), (1.0, 0.5), -0.3),
    ])
    def test_square(self, point, expected, offset):
        """Ближайшая точка стороны или вершины квадрата."""
        square = PolygonsSet.from_box(0, 1, 0, 1)
        projection = square.project_to_boundary(Vector2D(*point))
        assert _rounded(projection.projected) == expected
        assert projection.offset == pytest.approx(offset)

    def test_complement(self):
        """Для дополнения знак смещения меняется."""
        factory = RegionFactory()
        outside = factory.get_complement(PolygonsSet.from_box(0, 1, 0, 1))
        projection = outside.project_to_boundary(Vector2D(0.5, 0.2))
        assert _rounded(projection.projected) == (0.5, 0.0)
        assert projection.offset == pytest.approx(0.2)

    def test_whole_plane(self):
        """У всей плоскости нет границы."""
        projection = PolygonsSet().project_to_boundary(Vector2D(1.0, 2.0))
        assert projection.projected is None
        assert projection.offset == -math.inf
