"""
Unit tests for static file resolution and file headers.
"""

import os
import threading

import pytest

from simpleserver import static as static_module
from simpleserver.static import ResolvedFile, file_headers, read_file_bytes, resolve
from simpleserver.utils import compute_etag

from conftest import INDEX_HTML, DOCS_HTML, PNG_BYTES


class TestResolve:
    """Tests for resolve()."""

    async def test_existing_file(self, static_root):
        resolved = await resolve("/image.png", static_root)

        assert resolved is not None
        assert resolved.path == (static_root / "image.png").resolve()
        assert resolved.size == len(PNG_BYTES)
        assert resolved.is_directory is False

    async def test_root_resolves_to_index(self, static_root):
        resolved = await resolve("/", static_root)

        assert resolved.path.name == "index.html"
        assert resolved.size == len(INDEX_HTML.encode("utf-8"))
        assert resolved.is_directory is True

    async def test_subdirectory_resolves_to_index(self, static_root):
        for url in ("/docs", "/docs/"):
            resolved = await resolve(url, static_root)
            assert resolved.path == (static_root / "docs" / "index.html").resolve()
            assert resolved.size == len(DOCS_HTML.encode("utf-8"))

    async def test_custom_index(self, static_root):
        (static_root / "docs" / "default.htm").write_text("x", encoding="utf-8")
        resolved = await resolve("/docs/", static_root, index="default.htm")
        assert resolved.path.name == "default.htm"

    async def test_missing_file(self, static_root):
        assert await resolve("/missing.xyz", static_root) is None

    async def test_directory_without_index(self, static_root):
        assert await resolve("/empty/", static_root) is None

    async def test_file_used_as_directory(self, static_root):
        assert await resolve("/index.html/extra", static_root) is None

    @pytest.mark.parametrize("url", [
        "/../secret.txt",
        "/../../etc/passwd",
        "/docs/../../secret.txt",
        "/..",
    ])
    async def test_traversal_is_not_found(self, static_root, url):
        assert await resolve(url, static_root) is None

    async def test_dotdot_inside_root_is_allowed(self, static_root):
        resolved = await resolve("/docs/../notes.txt", static_root)
        assert resolved.path == (static_root / "notes.txt").resolve()

    async def test_symlink_escaping_root(self, static_root, tmp_path):
        os.symlink(tmp_path / "secret.txt", static_root / "leak.txt")
        assert await resolve("/leak.txt", static_root) is None

    async def test_symlink_loop_is_not_found(self, static_root):
        os.symlink(static_root / "loop", static_root / "loop")
        assert await resolve("/loop", static_root) is None

    async def test_canonicalizes_off_the_loop(self, static_root, monkeypatch):
        threads = []
        confine = static_module._confine

        def recording_confine(url_path, root):
            threads.append(threading.current_thread())
            return confine(url_path, root)

        monkeypatch.setattr(static_module, "_confine", recording_confine)

        resolved = await resolve("/index.html", static_root)

        assert resolved is not None
        assert threads and threading.main_thread() not in threads

    async def test_embedded_nul(self, static_root):
        assert await resolve("/index.html\x00.png", static_root) is None

    async def test_traversal_is_logged(self, static_root, caplog):
        await resolve("/../secret.txt", static_root)
        assert "Blocked path outside of root" in caplog.text


class TestResolvedFile:
    """Tests for ResolvedFile and its ETag."""

    def test_etag_is_deterministic(self):
        a = ResolvedFile(path="/a", size=10, mtime_ns=1_700_000_000_123_000_000)
        b = ResolvedFile(path="/b", size=10, mtime_ns=1_700_000_000_123_000_000)
        assert a.etag == b.etag == "10-1700000000123"

    def test_etag_changes_with_mtime(self):
        assert compute_etag(10, 1_000_000_000) != compute_etag(10, 2_000_000_000)

    def test_etag_changes_with_size(self):
        assert compute_etag(10, 1_000_000_000) != compute_etag(11, 1_000_000_000)

    def test_mtime_seconds(self):
        resolved = ResolvedFile(path="/a", size=1, mtime_ns=1_500_000_000)
        assert resolved.mtime == 1.5


class TestFileHeaders:
    """Tests for file_headers()."""

    async def test_all_caching_headers_present(self, static_root):
        resolved = await resolve("/index.html", static_root)
        st = os.stat(static_root / "index.html")

        headers = file_headers(resolved, "text/html", 600)

        assert headers["Content-Type"] == "text/html"
        assert headers["content-length"] == str(st.st_size)
        assert headers["Cache-Control"] == "public max-age=600"
        assert headers["ETag"] == f"{st.st_size}-{st.st_mtime_ns // 1_000_000}"
        assert headers["Accept-Ranges"] == "bytes"
        assert headers["Last-Modified"].endswith(" GMT")


class TestReadFileBytes:
    """Tests for read_file_bytes()."""

    async def test_reads_binary(self, static_root):
        assert await read_file_bytes(static_root / "image.png") == PNG_BYTES

    async def test_missing_raises(self, static_root):
        with pytest.raises(OSError):
            await read_file_bytes(static_root / "gone.bin")
