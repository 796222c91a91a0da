"""Тесты интервалов на прямой."""

import math

import pytest

from bsp_regions.core.errors import InvalidIntervalError, TreeDepthError
from bsp_regions.core.factory import RegionFactory
from bsp_regions.core.geometry import Location
from bsp_regions.spaces.euclidean1d import Interval, IntervalsSet, OrientedPoint, Vector1D


class TestInterval:
    """Отдельный интервал."""

    def test_measures(self):
        """Длина и середина."""
        interval = Interval(2.3, 5.7)
        assert interval.get_size() == pytest.approx(3.4)
        assert interval.get_barycenter() == pytest.approx(4.0)

    def test_check_point(self):
        """Классификация точек."""
        interval = Interval(2.3, 5.7)
        assert interval.check_point(1.2, 1e-10) is Location.OUTSIDE
        assert interval.check_point(2.3, 1e-10) is Location.BOUNDARY
        assert interval.check_point(3.0, 1e-10) is Location.INSIDE
        assert interval.check_point(5.7, 1e-10) is Location.BOUNDARY
        assert interval.check_point(6.0, 1e-10) is Location.OUTSIDE

    def test_invalid_bounds(self):
        """Нижняя граница больше верхней."""
        with pytest.raises(InvalidIntervalError) as info:
            Interval(3.0, 1.0)
        assert info.value.lower == 3.0
        assert info.value.upper == 1.0

    def test_invalid_bounds_is_value_error(self):
        """Ошибку можно перехватить как ValueError."""
        with pytest.raises(ValueError):
            IntervalsSet.from_bounds(3.0, 1.0)


class TestOrientedPoint:
    """Гиперплоскость прямой."""

    def test_offset(self):
        """Знак смещения зависит от ориентации."""
        direct = OrientedPoint(Vector1D(1.0), True)
        assert direct.get_offset(Vector1D(3.0)) == 2.0
        assert direct.get_reverse().get_offset(Vector1D(3.0)) == -2.0

    def test_sub_hyperplane(self):
        """Подгиперплоскость точки имеет нулевой размер и не пуста."""
        sub = OrientedPoint(Vector1D(1.0), True).whole_hyperplane()
        assert sub.get_size() == 0.0
        assert not sub.is_empty()


class TestIntervalsSet:
    """Объединения интервалов."""

    def test_bounded(self):
        """Ограниченный интервал."""
        region = IntervalsSet.from_bounds(2.3, 5.7)
        assert region.get_size() == pytest.approx(3.4)
        assert region.get_barycenter().x == pytest.approx(4.0)
        assert region.get_inf() == 2.3
        assert region.get_sup() == 5.7
        assert region.check_point(Vector1D(2.3)) is Location.BOUNDARY
        assert region.check_point(Vector1D(3.0)) is Location.INSIDE
        assert region.check_point(Vector1D(1.2)) is Location.OUTSIDE

    def test_boundary_size(self):
        """Граница интервала - две точки нулевого размера."""
        region = IntervalsSet.from_bounds(0.0, 1.0)
        assert region.get_boundary_size() == 0.0

    def test_infinite(self):
        """Полупрямая и вся прямая."""
        half = IntervalsSet.from_bounds(1.0, math.inf)
        assert math.isinf(half.get_size())
        assert half.get_barycenter().is_nan()
        assert half.get_inf() == 1.0
        assert half.get_sup() == math.inf

        lower_half = IntervalsSet.from_bounds(-math.inf, 1.0)
        assert lower_half.get_inf() == -math.inf
        assert lower_half.check_point(Vector1D(-1e6)) is Location.INSIDE

        whole = IntervalsSet.from_bounds(-math.inf, math.inf)
        assert whole.is_full()

    def test_empty(self):
        """Пустое множество."""
        factory = RegionFactory()
        empty = factory.get_complement(IntervalsSet())
        assert empty.is_empty()
        assert empty.get_size() == 0.0
        assert empty.get_barycenter().is_nan()

    def test_union_as_list(self):
        """Объединение непересекающихся интервалов упорядочено."""
        factory = RegionFactory()
        region = factory.union(IntervalsSet.from_bounds(2.0, 3.0), IntervalsSet.from_bounds(0.0, 1.0))
        assert list(region) == [(0.0, 1.0), (2.0, 3.0)]
        assert region.get_size() == pytest.approx(2.0)
        assert region.get_barycenter().x == pytest.approx(1.5)

    def test_overlapping_union_merges(self):
        """Пересекающиеся интервалы сливаются."""
        factory = RegionFactory()
        region = factory.union(IntervalsSet.from_bounds(0.0, 2.0), IntervalsSet.from_bounds(1.0, 3.0))
        intervals = region.as_list()
        assert len(intervals) == 1
        assert intervals[0].get_inf() == 0.0
        assert intervals[0].get_sup() == 3.0

    def test_difference(self):
        """Разность вырезает середину."""
        factory = RegionFactory()
        region = factory.difference(IntervalsSet.from_bounds(0.0, 10.0), IntervalsSet.from_bounds(3.0, 4.0))
        assert list(region) == [(0.0, 3.0), (4.0, 10.0)]
        assert region.get_size() == pytest.approx(9.0)

    def test_complement(self):
        """Дополнение интервала - две полупрямые."""
        factory = RegionFactory()
        region = factory.get_complement(IntervalsSet.from_bounds(0.0, 1.0))
        assert list(region) == [(-math.inf, 0.0), (1.0, math.inf)]
        assert region.check_point(Vector1D(0.5)) is Location.OUTSIDE

    def test_split(self):
        """Разрезание точкой."""
        region = IntervalsSet.from_bounds(0.0, 4.0)
        split = region.split(OrientedPoint(Vector1D(1.0), True))
        assert split.plus.get_size() == pytest.approx(3.0)
        assert split.minus.get_size() == pytest.approx(1.0)

        outside = region.split(OrientedPoint(Vector1D(10.0), True))
        assert outside.plus is None
        assert outside.minus.get_size() == pytest.approx(4.0)

    def test_contains(self):
        """Вложенность регионов."""
        outer = IntervalsSet.from_bounds(0.0, 10.0)
        inner = IntervalsSet.from_bounds(2.0, 3.0)
        assert outer.contains(inner)
        assert not inner.contains(outer)


def _alternating_points(count):
    """Граница из чередующихся ориентированных точек 0, 1, ..., count - 1."""
    return [OrientedPoint(Vector1D(float(k)), k % 2 == 1).whole_hyperplane() for k in range(count)]


class TestDeepBoundary:
    """Глубокие деревья, построенные по границе."""

    def test_deep_chain_as_list(self):
        """Цепочка из 300 разрезов перечисляется без рекурсии."""
        region = IntervalsSet.from_boundary(_alternating_points(300))
        intervals = region.as_list()
        assert len(intervals) == 150
        assert intervals[0].get_inf() == 0.0
        assert intervals[-1].get_sup() == 299.0
        assert region.get_size() == pytest.approx(150.0)
        assert region.check_point(Vector1D(10.5)) is Location.INSIDE
        assert region.check_point(Vector1D(11.5)) is Location.OUTSIDE

    def test_too_deep_rejected(self):
        """Дерево глубже допустимого отвергается при создании региона."""
        with pytest.raises(TreeDepthError):
            IntervalsSet.from_boundary(_alternating_points(1200))

    def test_depth_error_is_recursion_error(self):
        """Ошибку глубины можно перехватить как RecursionError."""
        with pytest.raises(RecursionError):
            IntervalsSet.from_boundary(_alternating_points(1200))


class TestProjection:
    """Проекция точки на границу."""

    @pytest.mark.parametrize("x, expected, offset", [
        (0.0, 1.0, 1.0),
        (2.5, 3.0, -0.5),
        (1.5, 1.0, -0.5),
        (5.0, 3.0, 2.0),
    ])
    def test_interval(self, x, expected, offset):
        """Ближайший конец интервала и знак смещения."""
        region = IntervalsSet.from_bounds(1.0, 3.0)
        projection = region.project_to_boundary(Vector1D(x))
        assert projection.original.x == x
        assert projection.projected.x == pytest.approx(expected)
        assert projection.offset == pytest.approx(offset)

    def test_two_intervals(self):
        """Точка между интервалами проецируется на ближайший."""
        factory = RegionFactory()
        region = factory.union(IntervalsSet.from_bounds(0.0, 1.0), IntervalsSet.from_bounds(4.0, 5.0))
        projection = region.project_to_boundary(Vector1D(3.0))
        assert projection.projected.x == pytest.approx(4.0)
        assert projection.offset == pytest.approx(1.0)

    def test_whole_line(self):
        """У всей прямой нет границы."""
        projection = IntervalsSet().project_to_boundary(Vector1D(2.0))
        assert projection.projected is None
        assert projection.offset == -math.inf
