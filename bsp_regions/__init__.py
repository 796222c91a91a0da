from __future__ import annotations
from typing import Any
from importlib.metadata import PackageNotFoundError, version as _pkg_version

# 1) Версия пакета
__version__ = "0.1.0"

try:
    # имя дистрибутива - как в setup.py
    __version__ = _pkg_version("bsp-regions")
except PackageNotFoundError:
    # пакет не установлен (запуск из исходников)
    pass

__all__ = [
    "__version__",
    "RegionConfig",
    "RegionFactory",
    "TreeBuilder",
    "Location",
    "Side",
    "IntervalsSet",
    "ArcsSet",
    "PolygonsSet",
    "PolyhedronsSet",
    "SphericalPolygonsSet",
]

# 2) Ленивый экспорт публичного API
_LAZY = {
    "RegionConfig": ".config",
    "RegionFactory": ".core.factory",
    "TreeBuilder": ".core.builder",
    "Location": ".core.geometry",
    "Side": ".core.geometry",
    "IntervalsSet": ".spaces.euclidean1d",
    "ArcsSet": ".spaces.sphere1d",
    "PolygonsSet": ".spaces.euclidean2d",
    "PolyhedronsSet": ".spaces.euclidean3d",
    "SphericalPolygonsSet": ".spaces.sphere2d",
}


def __getattr__(name: str) -> Any:
    if name in _LAZY:
        from importlib import import_module
        return getattr(import_module(_LAZY[name], __name__), name)
    raise AttributeError(name)
