"""Свойства булевых операций на наборе точек"""

import itertools

import pytest

from bsp_regions.config import TWO_PI
from bsp_regions.core.factory import RegionFactory
from bsp_regions.core.geometry import Location
from bsp_regions.spaces.euclidean2d import PolygonsSet, SubLine, Vector2D
from bsp_regions.spaces.euclidean3d import PolyhedronsSet, Vector3D
from bsp_regions.spaces.sphere1d import ArcsSet, S1Point

# Точки, не лежащие на границах тестовых регионов
GRID = [Vector2D(x, y) for x, y in itertools.product([-0.75 + 0.5 * k for k in range(10)], repeat=2)]
GRID_3D = [Vector3D(x, y, z) for x, y, z in itertools.product([-0.75 + 0.5 * k for k in range(8)], repeat=3)]
ANGLES = [S1Point(0.05 + 0.2 * k) for k in range(32)]

# Пары регионов: пересекающиеся, через стык 2pi, касающиеся
CASES = {
    'boxes-2d': (lambda: PolygonsSet.from_box(0, 2, 0, 2),
                 lambda: PolygonsSet.from_box(1, 3, 1, 3), GRID),
    'arcs': (lambda: ArcsSet.from_bounds(1.0, 4.0),
             lambda: ArcsSet.from_bounds(3.0, 5.0), ANGLES),
    'arcs-wrapping': (lambda: ArcsSet.from_bounds(5.0, 7.0),
                      lambda: ArcsSet.from_bounds(0.5, 2.0), ANGLES),
    'arcs-touching': (lambda: ArcsSet.from_bounds(1.0, 2.0),
                      lambda: ArcsSet.from_bounds(2.0, 3.0), ANGLES),
    'arcs-both-wrapping': (lambda: ArcsSet.from_bounds(6.0, 8.0),
                           lambda: ArcsSet.from_bounds(5.5, 7.5), ANGLES),
    'boxes-3d': (lambda: PolyhedronsSet.from_box(0, 2, 0, 2, 0, 2),
                 lambda: PolyhedronsSet.from_box(1, 3, 1, 3, 1, 3), GRID_3D),
    'boxes-3d-touching': (lambda: PolyhedronsSet.from_box(0, 1, 0, 1, 0, 1),
                          lambda: PolyhedronsSet.from_box(1, 2, 0, 1, 0, 1), GRID_3D),
}


@pytest.fixture
def factory():
    return RegionFactory()


@pytest.fixture
def a():
    return PolygonsSet.from_box(0, 2, 0, 2)


@pytest.fixture
def b():
    return PolygonsSet.from_box(1, 3, 1, 3)


@pytest.fixture(params=list(CASES))
def case(request):
    """Два региона одного пространства и точки для сравнения"""
    make_a, make_b, points = CASES[request.param]
    return make_a(), make_b(), points


def locations(region, points):
    return [region.check_point(p) for p in points]


class TestBooleanAlgebra:
    """Тождества булевой алгебры"""

    def test_commutativity(self, factory, case):
        a, b, points = case
        assert locations(factory.union(a, b), points) == locations(factory.union(b, a), points)
        assert locations(factory.intersection(a, b), points) == locations(factory.intersection(b, a), points)
        assert locations(factory.xor(a, b), points) == locations(factory.xor(b, a), points)

    def test_double_complement(self, factory, case):
        a, b, points = case
        for region in (a, b):
            assert locations(factory.get_complement(factory.get_complement(region)), points) == locations(region, points)

    def test_difference_is_intersection_with_complement(self, factory, case):
        a, b, points = case
        expected = locations(factory.intersection(a, factory.get_complement(b)), points)
        assert locations(factory.difference(a, b), points) == expected

    def test_union_with_complement(self, factory, case):
        a, _, points = case
        whole = factory.union(a, factory.get_complement(a))
        assert Location.OUTSIDE not in locations(whole, points)

    def test_intersection_with_complement(self, factory, case):
        a, _, points = case
        empty = factory.intersection(a, factory.get_complement(a))
        assert Location.INSIDE not in locations(empty, points)

    def test_pointwise_semantics(self, factory, case):
        """Операции совпадают с логикой над классификациями точек"""
        a, b, points = case
        union = factory.union(a, b)
        intersection = factory.intersection(a, b)
        xor = factory.xor(a, b)
        difference = factory.difference(a, b)
        for p in points:
            in_a = a.check_point(p) is Location.INSIDE
            in_b = b.check_point(p) is Location.INSIDE
            assert (union.check_point(p) is Location.INSIDE) == (in_a or in_b)
            assert (intersection.check_point(p) is Location.INSIDE) == (in_a and in_b)
            assert (xor.check_point(p) is Location.INSIDE) == (in_a != in_b)
            assert (difference.check_point(p) is Location.INSIDE) == (in_a and not in_b)

    def test_operands_unchanged(self, factory, case):
        """Операции не изменяют операнды"""
        a, b, points = case
        before = locations(a, points), a.get_tree().node_count()
        factory.union(a, b)
        factory.difference(a, b)
        assert (locations(a, points), a.get_tree().node_count()) == before


class TestArcsMeasures:
    """Длины результатов на окружности"""

    def test_wrapping_union(self, factory):
        region = factory.union(ArcsSet.from_bounds(5.0, 7.0), ArcsSet.from_bounds(0.5, 2.0))
        assert region.get_size() == pytest.approx(TWO_PI - 3.0)
        assert len(region.as_list()) == 1

    def test_touching_union(self, factory):
        region = factory.union(ArcsSet.from_bounds(1.0, 2.0), ArcsSet.from_bounds(2.0, 3.0))
        assert region.get_size() == pytest.approx(2.0)
        assert list(region) == [pytest.approx((1.0, 3.0))]

    def test_touching_intersection_is_empty(self, factory):
        region = factory.intersection(ArcsSet.from_bounds(1.0, 2.0), ArcsSet.from_bounds(2.0, 3.0))
        assert region.get_size() == pytest.approx(0.0)


class TestMeasures:
    """Площади результатов"""

    def test_areas(self, factory, a, b):
        assert factory.union(a, b).get_size() == pytest.approx(7.0)
        assert factory.intersection(a, b).get_size() == pytest.approx(1.0)
        assert factory.xor(a, b).get_size() == pytest.approx(6.0)
        assert factory.difference(a, b).get_size() == pytest.approx(3.0)

    def test_boundary_additivity(self, factory):
        """Граница объединения непересекающихся регионов - сумма границ"""
        left = PolygonsSet.from_box(0, 1, 0, 1)
        right = PolygonsSet.from_box(3, 5, 0, 1)
        union = factory.union(left, right)
        assert union.get_boundary_size() == pytest.approx(left.get_boundary_size() + right.get_boundary_size())
        assert union.get_size() == pytest.approx(3.0)

    def test_boundary_round_trip(self, factory, a, b):
        """Регион восстанавливается по собственной границе"""
        region = factory.union(a, b)
        boundary = [SubLine.from_segment(s.start, s.end) for s in region.get_boundary_segments()]
        rebuilt = PolygonsSet.from_boundary(boundary)
        assert rebuilt.get_size() == pytest.approx(region.get_size())
        assert rebuilt.get_boundary_size() == pytest.approx(region.get_boundary_size())
        assert locations(rebuilt, GRID) == locations(region, GRID)
