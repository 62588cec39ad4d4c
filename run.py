import argparse
import asyncio
import logging

from simpleserver.collaborators import Authenticator, PathRouter
from simpleserver.config import ServerConfig
from simpleserver.server import create_server

logger = logging.getLogger("simpleserver.run")

router = PathRouter()


class LoggingAuthenticator(Authenticator):
    async def authenticate(self, request):
        logger.info(f"auth: url[ {request.path} ]")
        return True


# example route returning a structured value, sent as JSON
@router.route_path("/api/ping")
async def ping(method, path, request):
    return {"pong": True, "path": path}


def main():
    parser = argparse.ArgumentParser(description="A simple static file server")
    parser.add_argument("--host", "-H", type=str, default="0.0.0.0", help="host to listen on")
    parser.add_argument("--port", "-p", type=int, default=8080, help="port to listen on")
    parser.add_argument("--root", "-r", type=str, default="./public", help="directory to serve")
    parser.add_argument("--max-age", "-m", type=int, default=31536000, help="cache-control max-age (seconds)")
    parser.add_argument("--mime-types", type=str, default=None, help="mime.types file to load")
    parser.add_argument("--cert", type=str, default=None, help="TLS certificate (enables https)")
    parser.add_argument("--key", type=str, default=None, help="TLS private key")
    parser.add_argument("--debug", "-D", action="store_true", help="enable debug logging")

    args = parser.parse_args()
    config = ServerConfig(
        host=args.host,
        port=args.port,
        root=args.root,
        max_age=args.max_age,
        mime_types=args.mime_types,
        ssl_certfile=args.cert,
        ssl_keyfile=args.key,
        debug=args.debug,
    )
    if config.debug:
        logging.getLogger("simpleserver").setLevel(logging.DEBUG)

    server = create_server(config, auth=LoggingAuthenticator(), router=router)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        print("Shutting down...")


if __name__ == "__main__":
    main()
