import asyncio
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from aiohttp import hdrs
from multidict import CIMultiDict

from .utils import compute_etag, http_date

logger = logging.getLogger("simpleserver.static")

INDEX_FILE = "index.html"


@dataclass(frozen=True)
class ResolvedFile:
    path: Path
    size: int
    mtime_ns: int
    is_directory: bool = False  # the URL named a directory, index file substituted

    @property
    def mtime(self) -> float:
        return self.mtime_ns / 1_000_000_000

    @property
    def etag(self) -> str:
        return compute_etag(self.size, self.mtime_ns)


def _confine(url_path: str, root: Path) -> Optional[Path]:
    rel = url_path.lstrip("/")
    try:
        candidate = (root / rel).resolve()
    except (OSError, RuntimeError, ValueError):
        # symlink loop, or an embedded NUL
        return None
    try:
        candidate.relative_to(root)
    except ValueError:
        logger.warning(f"Blocked path outside of root: {url_path!r}")
        return None
    return candidate


async def _stat(path: Path) -> Optional[os.stat_result]:
    try:
        return await aiofiles.os.stat(path)
    except (OSError, ValueError):
        return None


async def resolve(url_path: str, root: Path, index: str = INDEX_FILE) -> Optional[ResolvedFile]:
    """
    Map a URL path to a file under ``root`` (already canonical, see
    ``HTTPServer.root``):
    - the joined path is canonicalized and must stay inside root
    - a directory resolves to its index file
    - anything missing, unstattable, looping or still a directory -> None

    None is the normal "no static file, hand over to the router" answer.
    """
    loop = asyncio.get_running_loop()
    # canonicalizing lstat()s every component, keep it off the loop
    path = await loop.run_in_executor(None, _confine, url_path, root)
    if path is None:
        return None

    st = await _stat(path)
    if st is None:
        return None

    is_directory = stat.S_ISDIR(st.st_mode)
    if is_directory:
        path = path / index
        st = await _stat(path)
        if st is None:
            return None

    if stat.S_ISDIR(st.st_mode):
        return None

    logger.debug(f"url[ {url_path} ] resolved to [ {path} ]")
    return ResolvedFile(path=path, size=st.st_size, mtime_ns=st.st_mtime_ns, is_directory=is_directory)


async def read_file_bytes(path: Path) -> bytes:
    async with aiofiles.open(path, "rb") as f:
        return await f.read()


def file_headers(resolved: ResolvedFile, mime_type: str, max_age: int) -> CIMultiDict:
    return CIMultiDict({
        hdrs.CONTENT_TYPE: mime_type,
        hdrs.CONTENT_LENGTH: str(resolved.size),
        hdrs.LAST_MODIFIED: http_date(resolved.mtime),
        hdrs.CACHE_CONTROL: f"public max-age={max_age}",
        hdrs.ETAG: resolved.etag,
        hdrs.ACCEPT_RANGES: "bytes",
    })
