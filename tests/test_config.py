"""Тесты конфигурации"""

import math

import pytest

from bsp_regions.config import MAX_TREE_DEPTH, TWO_PI, RegionConfig, normalize_angle
from bsp_regions.core.factory import RegionFactory


class TestRegionConfig:

    def test_defaults(self):
        config = RegionConfig()
        config.validate()
        assert config.max_tree_depth == MAX_TREE_DEPTH
        assert config.collect_stats

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            RegionConfig(max_tree_depth=0).validate()

    def test_depth_above_region_limit(self):
        """Глубина слияния не может превышать предел, проверяемый при создании региона"""
        RegionConfig(max_tree_depth=MAX_TREE_DEPTH).validate()
        with pytest.raises(ValueError):
            RegionConfig(max_tree_depth=MAX_TREE_DEPTH + 1).validate()

    def test_factory_validates(self):
        """Фабрика отвергает некорректную конфигурацию"""
        with pytest.raises(ValueError):
            RegionFactory(RegionConfig(max_tree_depth=-5))

    def test_save_load(self, tmp_path):
        path = tmp_path / 'configs' / 'regions.json'
        RegionConfig(max_tree_depth=50, collect_stats=False).save(path)
        loaded = RegionConfig.load(path)
        assert loaded == RegionConfig(max_tree_depth=50, collect_stats=False)

    def test_load_invalid(self, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text('{"max_tree_depth": 0, "collect_stats": true}', encoding='utf-8')
        with pytest.raises(ValueError):
            RegionConfig.load(path)


class TestNormalizeAngle:

    @pytest.mark.parametrize("angle, center, expected", [
        (-0.5, math.pi, TWO_PI - 0.5),
        (TWO_PI + 1.0, math.pi, 1.0),
        (3.0, 0.0, 3.0),
        (4.0, 0.0, 4.0 - TWO_PI),
    ])
    def test_range(self, angle, center, expected):
        assert normalize_angle(angle, center) == pytest.approx(expected)

    def test_non_finite(self):
        assert math.isnan(normalize_angle(math.inf, 0.0))
        assert math.isnan(normalize_angle(math.nan, 0.0))
