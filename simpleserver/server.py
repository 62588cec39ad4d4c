from aiohttp import hdrs, web
from typing import Optional
import asyncio
from pathlib import Path
import logging

from . import mime
from .cache import is_modified
from .collaborators import (
    AllowAll,
    AnnounceListener,
    Authenticator,
    Listener,
    NotFoundRouter,
    Router,
)
from .config import ServerConfig
from .response import ResponseSpec, remove_content_headers, send_response
from .static import ResolvedFile, file_headers, read_file_bytes, resolve

logger = logging.getLogger("simpleserver")
logging.basicConfig(level=logging.INFO, format="[simpleserver] %(message)s")


class HTTPServer:
    """
    Serve static files from ``config.root``; requests that match no file are
    handed to the router.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        auth: Optional[Authenticator] = None,
        router: Optional[Router] = None,
        listener: Optional[Listener] = None,
    ):
        self.config = config or ServerConfig()
        self.root = Path(self.config.root).resolve()
        self.auth = auth or AllowAll()
        self.router = router or NotFoundRouter()
        self.listener = listener or AnnounceListener()

        # the mime table must be in place before the first request
        mime.init(self.config.mime_types)

        self._app = web.Application()
        self._app.router.add_route("*", "/{tail:.*}", self.handle_request)
        logger.info(f"Static root set to {self.root}")

    @property
    def app(self) -> web.Application:
        return self._app

    async def send_response(self, request: web.Request, spec: ResponseSpec, response=None) -> web.StreamResponse:
        return await send_response(request, spec, response)

    async def handle_request(self, request: web.Request) -> web.StreamResponse:
        """
        - authenticate (401 when the authenticator says False)
        - map the URL to a file under the static root; directories serve index.html
        - no file -> router
        - otherwise answer 304 or the file contents
        """
        try:
            if await self.auth.authenticate(request) is False:
                logger.info(f"Not authorized: {request.method} {request.path}")
                return await send_response(request, ResponseSpec(code=401, content="401: Not Authorized"))

            resolved = await resolve(request.path, self.root, index=self.config.index)
            if resolved is None:
                return await self.router.route(request)

            return await self._serve_file(request, resolved)
        except web.HTTPException:
            raise
        except Exception:
            logger.exception(f"Error handling {request.method} {request.path}")
            return await send_response(request, ResponseSpec(code=500, content="500: Internal Server Error"))

    async def _serve_file(self, request: web.Request, resolved: ResolvedFile) -> web.StreamResponse:
        mime_type = mime.lookup(str(resolved.path))
        encoding = mime.encoding(mime_type)
        headers = file_headers(resolved, mime_type, self.config.max_age)

        if not is_modified(request.headers, headers):
            remove_content_headers(headers)
            return await send_response(request, ResponseSpec(code=304, headers=headers, headers_only=True))

        try:
            content = await read_file_bytes(resolved.path)
        except OSError as e:
            logger.error(f"Cannot read file [{resolved.path}]: {e}")
            return await send_response(request, ResponseSpec(
                code=500,
                content=f"500: Cannot read file [{request.path}]",
            ))

        return await send_response(request, ResponseSpec(
            mime_type=mime_type,
            encoding=encoding,
            headers=headers,
            content=content,
            headers_only=(request.method == hdrs.METH_HEAD),
        ))

    async def run(self):
        runner = web.AppRunner(self._app)
        await runner.setup()
        site = web.TCPSite(
            runner,
            host=self.config.host,
            port=self.config.port,
            ssl_context=self.config.ssl_context(),
        )
        logger.info(f"Starting server on {self.config.scheme}://{self.config.host}:{self.config.port}")
        await site.start()
        await self.listener.listening(self)
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await runner.cleanup()


def create_server(config: Optional[ServerConfig] = None, **collaborators) -> HTTPServer:
    return HTTPServer(config, **collaborators)
