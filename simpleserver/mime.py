"""
File extension to mime-type mapping.

A single process-wide table is loaded from an Apache-style ``mime.types``
file by ``init()`` before the server starts accepting connections, then
frozen. Request handling only ever reads it through ``lookup()`` and
``encoding()``.
"""
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

logger = logging.getLogger("simpleserver.mime")

DEFAULT_TYPE = "application/octet-stream"
DEFAULT_ENCODING = "binary"
TEXT_ENCODING = "utf8"

TYPES_FILE = Path(__file__).with_name("mime.types")


def category(mime_type: str) -> str:
    """Top-level type of ``mime_type`` ("text" for "text/html; charset=utf-8")."""
    return mime_type.split(";", 1)[0].split("/", 1)[0].strip().lower()


def extension(pathname: str) -> str:
    return os.path.splitext(os.path.basename(pathname))[1][1:].lower()


class MimeTypes:
    def __init__(self, default_type: str = DEFAULT_TYPE, default_encoding: str = DEFAULT_ENCODING):
        self.default_type = default_type
        self.default_encoding = default_encoding
        self._types: Dict[str, str] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("mime table is frozen")

    def define(self, mapping: Mapping[str, Iterable[str]]) -> None:
        """
        Merge ``{mime_type: [ext, ...]}`` into the table. Later definitions
        win for an extension that is already mapped.
        """
        self._check_mutable()
        for mime_type, exts in mapping.items():
            for ext in exts:
                self._types[ext.lstrip(".").lower()] = mime_type

    def load(self, path: Union[str, Path]) -> Optional[Exception]:
        """
        Load a ``mime.types`` file. Each line has the form::

            mime-type ext1 ext2 ext3

        ``#`` starts a comment and blank lines are skipped. Returns None on
        success, or the error that prevented reading the file (the table is
        left untouched in that case).
        """
        self._check_mutable()
        try:
            content = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return e

        mapping: Dict[str, list] = {}
        for line in content.splitlines():
            fields = line.split("#", 1)[0].split()
            if not fields:
                continue
            mapping.setdefault(fields[0], []).extend(fields[1:])

        self.define(mapping)
        return None

    def lookup(self, pathname: str, fallback: Optional[str] = None) -> str:
        return self._types.get(extension(pathname)) or fallback or self.default_type

    def encoding(self, mime_type: str, fallback: Optional[str] = None) -> str:
        if category(mime_type) == "text":
            return TEXT_ENCODING
        return fallback or self.default_encoding

    def __contains__(self, ext: str) -> bool:
        return ext.lstrip(".").lower() in self._types

    def __len__(self) -> int:
        return len(self._types)


_table = MimeTypes()


def init(path: Optional[Union[str, Path]] = None) -> MimeTypes:
    """
    Populate and freeze the process-wide table. Only the first call loads
    anything; later calls return the already frozen table.
    """
    if _table.frozen:
        return _table

    types_file = path or TYPES_FILE
    err = _table.load(types_file)
    if err is not None:
        logger.error(f"Cannot initialize mime types from {types_file}: {err}")
    else:
        _table.default_type = _table.lookup("x.bin", DEFAULT_TYPE)
        logger.debug(f"Loaded {len(_table)} mime extensions from {types_file}")
    _table.freeze()
    return _table


def lookup(pathname: str, fallback: Optional[str] = None) -> str:
    return _table.lookup(pathname, fallback)


def encoding(mime_type: str, fallback: Optional[str] = None) -> str:
    return _table.encoding(mime_type, fallback)
