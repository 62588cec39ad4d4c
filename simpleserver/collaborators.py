"""
Pluggable collaborators of the server: authentication, routing of requests
that match no static file, and the "now listening" notification.

Each role is a small base class with a single coroutine method; the server
uses the default variant (AllowAll, NotFoundRouter, AnnounceListener) when
none is supplied.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from aiohttp import web

from .response import ResponseSpec, send_response

logger = logging.getLogger("simpleserver.collaborators")

HandlerType = Callable[[str, str, web.Request], Awaitable[Any]]


class Authenticator:
    async def authenticate(self, request: web.Request) -> bool:
        """Return False to reject the request with a 401."""
        raise NotImplementedError


class AllowAll(Authenticator):
    async def authenticate(self, request: web.Request) -> bool:
        return True


class Router:
    async def route(self, request: web.Request) -> web.StreamResponse:
        """Produce the whole response for a request no static file matched."""
        raise NotImplementedError


class NotFoundRouter(Router):
    async def route(self, request: web.Request) -> web.StreamResponse:
        return await send_response(request, ResponseSpec(code=404, content="404: Not Found"))


class PathRouter(Router):
    """
    Dispatch on the exact request path to registered coroutine handlers.

    Handler signature (async)::

        async def handler(method: str, path: str, request: aiohttp.web.Request)

    A handler may return a ready response, or any value: strings are sent as
    text/html, other values as JSON. Unregistered paths go to ``fallback``.
    """

    def __init__(self, fallback: Optional[Router] = None):
        self.fallback = fallback or NotFoundRouter()
        self._routes: Dict[str, HandlerType] = {}
        self._methods: Dict[str, frozenset] = {}

    def route_path(self, path: str, methods: Optional[Iterable[str]] = None):
        """
        Decorator to register a handler for ``path``. With ``methods`` the
        handler only sees those methods; others are answered with 405.
        """
        def decorator(fn: HandlerType):
            self._routes[path] = fn
            if methods is not None:
                self._methods[path] = frozenset(m.upper() for m in methods)
            logger.info(f"Registered route {path} [{','.join(sorted(self._methods.get(path, ('*',))))}]")
            return fn
        return decorator

    async def route(self, request: web.Request) -> web.StreamResponse:
        path = request.path
        method = request.method.upper()

        handler = self._routes.get(path)
        if handler is None:
            return await self.fallback.route(request)

        allowed = self._methods.get(path)
        if allowed is not None and method not in allowed:
            return await send_response(request, ResponseSpec(code=405, content="405: Method Not Allowed"))

        try:
            result = await handler(method, path, request)
        except web.HTTPException:
            raise
        except Exception:
            logger.exception(f"Route handler error for {method} {path}")
            return await send_response(request, ResponseSpec(code=500, content="500: Internal Server Error"))

        if isinstance(result, web.StreamResponse):
            return result
        return await send_response(request, ResponseSpec(content=result))


class Listener:
    async def listening(self, server) -> None:
        raise NotImplementedError


class AnnounceListener(Listener):
    async def listening(self, server) -> None:
        config = server.config
        logger.info(f">>> Web Server available at {config.scheme}://localhost:{config.port}/")
