"""
Иерархия исключений движка регионов
"""


class RegionError(Exception):
    """Базовое исключение для всех ошибок движка"""


class InvalidIntervalError(RegionError, ValueError):
    """Нижняя граница интервала или дуги больше верхней"""

    def __init__(self, lower: float, upper: float):
        super().__init__(f"endpoints do not specify an interval: [{lower}, {upper}]")
        self.lower = lower
        self.upper = upper


class DegenerateGeometryError(RegionError, ArithmeticError):
    """Вырожденный геометрический примитив (нулевая нормаль, совпадающие точки и т.п.)"""


class InconsistentStateAt2PiWrapping(RegionError):
    """Состояния до наименьшего и после наибольшего предельного угла не совпадают"""

    def __init__(self):
        super().__init__("inconsistent state at 2π wrapping")


class NotConvexError(RegionError, ValueError):
    """Набор гиперплоскостей не описывает выпуклую область"""


class MalformedBoundaryError(RegionError, ValueError):
    """Граница задана некорректно (близкие вершины, грань вне плоскости, незамкнутое ребро)"""


class TreeDepthError(RegionError, RecursionError):
    """Глубина дерева превышает допустимую для рекурсивных операций"""

    def __init__(self, depth: int, limit: int):
        super().__init__(f"tree depth {depth} exceeds the limit {limit}")
        self.depth = depth
        self.limit = limit


class MathInternalError(RegionError, RuntimeError):
    """Состояние, которое не должно возникать при корректных входных данных"""

    def __init__(self, message: str = "internal error, please fill a bug report"):
        super().__init__(message)
