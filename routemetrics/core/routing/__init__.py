from .dispatcher import Dispatcher, PatternMatcher, RouteCatalog, StarletteDispatcher, build_catalog
from .resolver import RouteResolver

__all__ = [
    "Dispatcher",
    "PatternMatcher",
    "RouteCatalog",
    "RouteResolver",
    "StarletteDispatcher",
    "build_catalog",
]
