"""
Конфигурация и константы для BSP регионов
"""
from dataclasses import dataclass
import json
import math
import sys
from pathlib import Path

# ============ КОНСТАНТЫ ============

# Допуски
DEFAULT_TOLERANCE = 1e-10  # Допуск по умолчанию для сравнения точек и гиперплоскостей
PARALLEL_EPSILON = 1e-10  # Порог параллельности (синус угла, норма векторного произведения)
NON_INVERTIBLE_EPSILON = 1e-20  # Порог вырожденности определителя преобразования
ZERO_NORM_EPSILON = 1e-10  # Минимальная норма нормали плоскости
SAFE_MIN = sys.float_info.min  # Наименьшее нормализованное число
CONNECT_EPSILON = 1e-8  # Максимальный зазор между концами соседних отрезков границы

# Окружность
TWO_PI = 2.0 * math.pi

# Глубина рекурсии
MAX_TREE_DEPTH = 400  # Максимальная глубина дерева любого региона (рекурсивные слияние и разрезание)


def normalize_angle(a: float, center: float) -> float:
    """Приведение угла к интервалу [center - pi, center + pi)"""
    if not math.isfinite(a):
        return math.nan
    return a - TWO_PI * math.floor((a + math.pi - center) / TWO_PI)


@dataclass
class RegionConfig:
    """Конфигурация операций над регионами"""

    # ======== Ограничения ========
    max_tree_depth: int = MAX_TREE_DEPTH  # Глубина, выше которой слияние отклоняется

    # ======== Отладка ========
    collect_stats: bool = True  # Собирать статистику операций в RegionFactory

    def validate(self) -> None:
        """Проверка корректности конфигурации"""
        if not 1 <= self.max_tree_depth <= MAX_TREE_DEPTH:
            raise ValueError(f"max_tree_depth должно быть в [1, {MAX_TREE_DEPTH}], получено: {self.max_tree_depth}")

    def save(self, path: Path) -> None:
        """Сохранение конфигурации в JSON"""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.__dict__, f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: Path) -> 'RegionConfig':
        """Загрузка конфигурации из JSON"""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        config = cls(**data)
        config.validate()
        return config
