"""
=============================================================================
URL ROUTER
=============================================================================

Maps a request's method and path to exactly one handler.

=============================================================================
SEGMENT MATCHING
=============================================================================

Route patterns are compiled into anchored regexes, segment by segment:

    "/files/:filename"  →  ^/files/(?P<filename>[^/]+)$
    "/user-agent"       →  ^/user-agent$
    "/"                 →  ^/$

A ":name" segment captures exactly ONE path segment, so "/files/" only
matches as a whole first segment: "/files/a.txt" hits the files route,
while "/archive/files/a.txt" or "/files/a/b" do not.

=============================================================================
DISPATCH ORDER
=============================================================================

    1. Routes are tried in registration order; first match wins.
    2. Path matches a route but the method doesn't → 405 + Allow header.
    3. Nothing matches → the fallback handler (404 by default).

Every request therefore gets exactly one response: there is no path
through handle() that returns without one.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import re

from .request import HTTPRequest
from .response import HTTPResponse, method_not_allowed, not_found


# Handler: takes a request, returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


@dataclass
class Route:
    """
    A registered route: a URL pattern bound to a handler.

        Route(
            path="/files/:filename",
            method="GET",             # None = any method
            handler=files.get,
            name="read_file",
        )
    """

    path: str
    method: Optional[str]
    handler: Handler
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: Dict[str, str]


def _default_fallback(request: HTTPRequest) -> HTTPResponse:
    return not_found()


class Router:
    """
    HTTP request router with single-segment path parameters.

    ==========================================================================
    USAGE
    ==========================================================================

        router = Router()

        @router.get("/echo/:message")
        def echo(request):
            return ok(request.path_params["message"], "text/plain")

        @router.route("/")               # any method
        def root(request):
            return ok()

        response = router.handle(request)

    ==========================================================================
    """

    def __init__(self, fallback: Optional[Handler] = None):
        """
        Initialize the router.

        Args:
            fallback: Handler for requests that match no route.
                      Defaults to a bare 404 Not Found.
        """
        self.fallback: Handler = fallback or _default_fallback
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g., /files/:filename)
            handler: Function that takes a request and returns a response
            method: HTTP method (None for any method)
            name: Optional route name, shown in the route table
            **meta: Additional metadata (accessible via route.meta)

        Returns:
            The registered Route object
        """
        pattern, param_names = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            name=name,
            meta=meta,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple:
        """
        Compile a path pattern into an anchored regex.

        Input:  "/echo/:message"

        Step 1: Split by "/"          ["", "echo", ":message"]
        Step 2: Process each segment
                "echo"      → /echo                  (static)
                ":message"  → /(?P<message>[^/]+)    (param)
        Step 3: Anchor                ^/echo/(?P<message>[^/]+)$

        Returns:
            Tuple of (compiled regex, list of parameter names)
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                param_name = segment[1:]
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # the root pattern "/"

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    @staticmethod
    def _normalize(path: str) -> str:
        """Ensure a single leading slash and no trailing slash."""
        return "/" + path.strip("/") if path != "/" else "/"

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching the method and path.

        Returns:
            RouteMatch if found, None otherwise
        """
        path = self._normalize(path)

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue

            match = route._pattern.match(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """
        Get the methods registered for a path, for the 405 Allow header.

        Returns:
            Sorted list of methods, or [] if no route has this path.
        """
        path = self._normalize(path)
        methods = set()

        for route in self._routes:
            if route._pattern.match(path):
                if route.method is None:
                    return list(ALL_METHODS)
                methods.add(route.method)

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        1. Find the matching route and inject path parameters
        2. Otherwise 405 if the path is known under other methods
        3. Otherwise delegate to the fallback handler
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            return match.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return self.fallback(request)

    # =========================================================================
    # DECORATOR-STYLE ROUTE REGISTRATION
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
        **meta: Any
    ) -> Callable[[Handler], Handler]:
        """
        Decorator to register a route for any method (or a given one).

        Example:
            @router.route("/")
            def root(request):
                return ok()
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method=method, name=name, **meta)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        """Decorator to register a GET route."""
        return self.route(path, "GET", name, **meta)

    def post(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        """Decorator to register a POST route."""
        return self.route(path, "POST", name, **meta)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        """Get all registered routes in match order."""
        return list(self._routes)

    def print_routes(self) -> None:
        """
        Print the route table (used by the startup banner).

            Registered Routes:
            ------------------------------------------------------------
              ANY      /
              GET      /echo/:message
            ------------------------------------------------------------
        """
        print("\nRegistered Routes:")
        print("-" * 60)
        for route in self._routes:
            method = route.method or "ANY"
            print(f"  {method:8} {route.path}")
        print("-" * 60)
