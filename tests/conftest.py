"""
pytest configuration and fixtures.
"""

import pytest

from simpleserver.config import ServerConfig
from simpleserver.server import HTTPServer


INDEX_HTML = "<html><body><h1>hello</h1></body></html>\n"
DOCS_HTML = "<html><body>docs</body></html>\n"
NOTES_TXT = "café notes\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe\x80"


@pytest.fixture
def static_root(tmp_path):
    """
    A static root with an index page, a text file, a binary file, a
    subdirectory with its own index and one without. A file next to the
    root (outside of it) is used for traversal tests.
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (root / "notes.txt").write_text(NOTES_TXT, encoding="utf-8")
    (root / "image.png").write_bytes(PNG_BYTES)

    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_text(DOCS_HTML, encoding="utf-8")

    (root / "empty").mkdir()

    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root.resolve()


@pytest.fixture
def config(static_root) -> ServerConfig:
    """Test server configuration serving the temporary static root."""
    return ServerConfig(host="127.0.0.1", port=0, root=str(static_root))


@pytest.fixture
def make_client(aiohttp_client, config):
    """Build an HTTPServer with the given collaborators and a test client for it."""
    async def factory(**collaborators):
        server = HTTPServer(config, **collaborators)
        return await aiohttp_client(server.app)
    return factory
