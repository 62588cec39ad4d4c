import os
import ssl
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    max_age: int = 31536000  # cache-control max-age (seconds)
    root: str = "./public"
    index: str = "index.html"
    mime_types: Optional[str] = None  # None -> bundled mime.types
    ssl_certfile: Optional[str] = None
    ssl_keyfile: Optional[str] = None
    debug: bool = False

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        if self.max_age < 0:
            raise ValueError(f"max_age must be >= 0, got {self.max_age}")
        if not self.index or os.sep in self.index or "/" in self.index:
            raise ValueError(f"index must be a bare filename, got {self.index!r}")
        if self.ssl_keyfile and not self.ssl_certfile:
            raise ValueError("ssl_keyfile given without ssl_certfile")

    @property
    def scheme(self) -> str:
        return "https" if self.ssl_certfile else "http"

    def ssl_context(self) -> Optional[ssl.SSLContext]:
        """
        Build the server-side TLS context, or None for plain HTTP.
        """
        if not self.ssl_certfile:
            return None
        ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        ctx.load_cert_chain(self.ssl_certfile, self.ssl_keyfile)
        return ctx
