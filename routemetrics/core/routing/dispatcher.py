from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from starlette.endpoints import HTTPEndpoint
from starlette.routing import BaseRoute, Match, Route

# method -> patterns, in registration order
RouteCatalog = Mapping[str, Tuple[str, ...]]

HTTP_METHODS: FrozenSet[str] = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


@runtime_checkable
class Dispatcher(Protocol):
    def patterns(self) -> RouteCatalog: ...

    def lookup(self, method: str, path: str, scope: Optional[Mapping[str, Any]] = None) -> Optional[Callable]: ...


@runtime_checkable
class PatternMatcher(Protocol):
    def match_pattern(self, method: str, path: str, scope: Optional[Mapping[str, Any]] = None) -> Optional[str]: ...


def _http_routes(routes: Iterable[BaseRoute]) -> List[Route]:
    # Mounts and websocket routes never serve a plain HTTP method
    return [r for r in routes if isinstance(r, Route)]


def route_methods(route: Route) -> FrozenSet[str]:
    """
    Methods a route answers without a 405.

    starlette leaves ``methods=None`` for class endpoints and raw ASGI apps.
    An HTTPEndpoint answers the verbs it defines (HEAD falls through to
    ``get``); any other ASGI endpoint is taken to accept every method.
    """
    if route.methods:
        return frozenset(route.methods)
    endpoint = route.endpoint
    if inspect.isclass(endpoint) and issubclass(endpoint, HTTPEndpoint):
        methods = {m for m in HTTP_METHODS if callable(getattr(endpoint, m.lower(), None))}
        if "GET" in methods:
            methods.add("HEAD")
        return frozenset(methods)
    return HTTP_METHODS


def build_catalog(routes: Iterable[BaseRoute]) -> Dict[str, Tuple[str, ...]]:
    catalog: Dict[str, List[str]] = {}
    for route in _http_routes(routes):
        for method in sorted(route_methods(route)):
            patterns = catalog.setdefault(method, [])
            if route.path not in patterns:
                patterns.append(route.path)
    return {m: tuple(p) for m, p in catalog.items()}


class StarletteDispatcher:
    """
    Read-only view over a starlette/FastAPI router.

    Matching goes through each route's own ``matches()`` so the router stays a
    black box; only ``Match.FULL`` (path and method) counts. Nothing here runs
    a handler.
    """

    def __init__(self, router: Any):
        self.router = router

    def patterns(self) -> RouteCatalog:
        return build_catalog(self.router.routes)

    def _probe(self, method: str, path: str, scope: Optional[Mapping[str, Any]]) -> Optional[Route]:
        probe = {
            "type": "http",
            "method": method.upper(),
            "path": path,
            "root_path": (scope or {}).get("root_path", ""),
        }
        for route in _http_routes(self.router.routes):
            match, _ = route.matches(probe)
            if match == Match.FULL and probe["method"] in route_methods(route):
                return route
        return None

    def lookup(self, method: str, path: str, scope: Optional[Mapping[str, Any]] = None) -> Optional[Callable]:
        route = self._probe(method, path, scope)
        return route.endpoint if route is not None else None

    def match_pattern(self, method: str, path: str, scope: Optional[Mapping[str, Any]] = None) -> Optional[str]:
        route = self._probe(method, path, scope)
        return route.path if route is not None else None
