"""
HTTP conditional request evaluation (If-None-Match / If-Modified-Since).
"""
from typing import Mapping

from aiohttp import hdrs

from .utils import parse_http_date


def is_modified(request_headers: Mapping[str, str], response_headers: Mapping[str, str]) -> bool:
    """
    Decide whether the content described by ``response_headers`` must be sent
    again to a client that made a request with ``request_headers``.

    - If-None-Match listing the response ETag -> not modified (checked first)
    - If-Modified-Since at or after Last-Modified -> not modified
    - an unparsable If-Modified-Since is ignored
    """
    none_match = request_headers.get(hdrs.IF_NONE_MATCH)
    etag = response_headers.get(hdrs.ETAG)
    if none_match and etag:
        tags = [tag.strip() for tag in none_match.split(",")]
        if etag in tags:
            return False

    modified_since = request_headers.get(hdrs.IF_MODIFIED_SINCE)
    last_modified = response_headers.get(hdrs.LAST_MODIFIED)
    if modified_since and last_modified:
        since = parse_http_date(modified_since)
        modified = parse_http_date(last_modified)
        if since is not None and modified is not None and modified <= since:
            return False

    return True
