"""
Response serialization.

``send_response()`` is the one place where response bytes are written to the
client: every other piece of the server only computes what to send.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from aiohttp import hdrs, web
from multidict import CIMultiDict

from . import mime

logger = logging.getLogger("simpleserver.response")

DEFAULT_CONTENT_TYPE = "text/html"
JSON_CONTENT_TYPE = "application/json"

# headers describing the body, dropped from bodiless (304) responses
CONTENT_HEADERS = (
    hdrs.CONTENT_TYPE,
    hdrs.CONTENT_LENGTH,
    hdrs.CONTENT_ENCODING,
    hdrs.CONTENT_LANGUAGE,
    hdrs.CONTENT_LOCATION,
    hdrs.CONTENT_RANGE,
    hdrs.CONTENT_MD5,
    hdrs.CONTENT_DISPOSITION,
)

_CODECS = {
    "utf8": "utf-8",
    "binary": "latin-1",
}


@dataclass
class ResponseSpec:
    code: int = 200
    headers: Optional[Mapping[str, str]] = None
    content: Any = None
    mime_type: Optional[str] = None
    encoding: Optional[str] = None
    headers_only: bool = False  # write headers, skip the body
    no_head: bool = False  # headers were already written on the given response
    no_close: bool = False  # leave the stream open for further writes


def codec(encoding: Optional[str]) -> str:
    encoding = encoding or mime.TEXT_ENCODING
    return _CODECS.get(encoding, encoding)


def remove_content_headers(headers: CIMultiDict) -> None:
    for name in CONTENT_HEADERS:
        headers.popall(name, None)


def _must_be_empty(request: web.BaseRequest, code: int) -> bool:
    return request.method == hdrs.METH_HEAD or code in (204, 304) or 100 <= code < 200


async def send_response(
    request: web.BaseRequest,
    spec: ResponseSpec,
    response: Optional[web.StreamResponse] = None,
) -> web.StreamResponse:
    """
    Write ``spec`` to the client and return the response object.

    If the declared content type is text/* and the content is not already a
    string, bytes are decoded with ``spec.encoding`` and anything else is
    sent as JSON (Content-Type becomes application/json).

    Pass an already prepared ``response`` together with ``no_head`` to keep
    writing to a stream opened by an earlier call with ``no_close``.
    """
    if spec.no_head and response is None:
        raise ValueError("no_head needs the response whose headers were already sent")

    if spec.headers is None:
        headers = CIMultiDict({hdrs.CONTENT_TYPE: spec.mime_type or DEFAULT_CONTENT_TYPE})
    else:
        headers = CIMultiDict(spec.headers)

    headers_only = spec.headers_only or _must_be_empty(request, spec.code)
    encoding = codec(spec.encoding)
    content = spec.content

    content_type = headers.get(hdrs.CONTENT_TYPE)
    if content is not None and not isinstance(content, str):
        if isinstance(content, (bytes, bytearray)):
            if content_type and mime.category(content_type) == "text":
                content = bytes(content).decode(encoding, errors="surrogateescape")
        else:
            content = json.dumps(content)
            if content_type is None or mime.category(content_type) == "text":
                headers[hdrs.CONTENT_TYPE] = JSON_CONTENT_TYPE

    if isinstance(content, str):
        body = content.encode(encoding, errors="surrogateescape")
    elif isinstance(content, (bytes, bytearray)):
        body = bytes(content)
    else:
        body = b""

    if isinstance(content, (str, bytes, bytearray)) and not spec.no_close:
        headers[hdrs.CONTENT_LENGTH] = str(len(body))

    if response is None:
        response = web.StreamResponse(status=spec.code)

    try:
        if not spec.no_head:
            response.headers.update(headers)
            await response.prepare(request)

        if not headers_only and body:
            await response.write(body)

        if not spec.no_close:
            await response.write_eof()
    except ConnectionResetError as e:
        logger.warning(f"Client went away during {request.method} {request.path}: {e}")

    return response
