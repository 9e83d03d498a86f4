import hashlib
import json
import logging
from typing import Any

from fastapi import Request, Response

IMMUTABLE_CACHE_HEADER = f"private, max-age={60 * 60 * 24 * 365}, immutable"
REVALIDATE_CACHE_HEADER = "no-cache, must-revalidate"


def immutable_response(content: bytes, media_type: str, headers: dict[str, str] | None = None) -> Response:
    """
    Response for content that can never change, like a file at a specific version.
    Browsers can keep this for a year without asking again.
    """
    headers = {**(headers or {}), "Cache-Control": IMMUTABLE_CACHE_HEADER}
    return Response(content=content, media_type=media_type, headers=headers)


def response_with_etag(request: Request, response: Response, data: Any) -> Any:
    """
    Add an ETag based on a hash of the response content. If the client sends
    an If-None-Match header with a matching ETag, a 304 Not Modified response is returned.
    """
    try:
        content_str = json.dumps(data, sort_keys=True, ensure_ascii=False, default=str).encode("utf-8")
    except TypeError as e:
        logging.warning(f"Warning: Data could not be serialized for ETag hashing: {e}")
        return data

    hash = hashlib.sha1(content_str).hexdigest()
    etag = f'"{hash}"'

    if_none_match = request.headers.get("if-none-match")
    if if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    response.headers["Cache-Control"] = REVALIDATE_CACHE_HEADER
    return data
