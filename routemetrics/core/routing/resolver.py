"""
Endpoint normalization: map a concrete request path back to the route
pattern that served it, so metric labels stay bounded by the route table.

Two strategies, tried in this order:
  - direct: the dispatcher reports the matching pattern itself
  - probe-and-compare: look up each registered pattern as if it were a path
    and keep the first one that resolves to the handler that actually ran

Either way the answer must be one of the catalog's patterns for the method.
Ties go to the first pattern in registration order. Anything unresolved falls
back to the literal path.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from routemetrics.core.routing.dispatcher import Dispatcher, PatternMatcher, RouteCatalog


class RouteResolver:
    def __init__(self, dispatcher: Dispatcher, *, use_direct_match: bool = True):
        self.dispatcher = dispatcher
        self.use_direct_match = use_direct_match

    def resolve(
        self,
        method: str,
        path: str,
        catalog: Optional[RouteCatalog] = None,
        *,
        handler: Optional[Callable] = None,
        scope: Optional[Mapping[str, Any]] = None,
    ) -> str:
        m = method.upper()
        if catalog is None:
            catalog = self.dispatcher.patterns()

        patterns = catalog.get(m) or ()
        if not patterns:
            return path

        if self.use_direct_match and isinstance(self.dispatcher, PatternMatcher):
            pattern = self.dispatcher.match_pattern(m, path, scope)
            return pattern if pattern in patterns else path

        actual = handler if handler is not None else self.dispatcher.lookup(m, path, scope)
        if actual is None:
            return path

        for pattern in patterns:
            if self.dispatcher.lookup(m, pattern, scope) == actual:
                return pattern
        return path
