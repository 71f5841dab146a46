"""Static file handler with caching disabled."""

import logging
from collections.abc import Callable
from pathlib import Path

from config import NO_CACHE_HEADERS, SiteConfig
from request import HTTPRequest
from response import HTTPResponse
from utils import resolve_site_path

logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], HTTPResponse]


def _inspect_entry(file_path: Path) -> tuple[bool, bool]:
    """Return (exists, is_dir); unstat-able entries count as missing."""
    try:
        if not file_path.exists():
            return False, False
        return True, file_path.is_dir()
    except OSError:
        return False, False


def serve_file(request: HTTPRequest, site: SiteConfig) -> HTTPResponse:
    """Return the file under ``site.root_dir`` named by the request path.

    ``/`` is served as ``site.default_document``. Missing entries give 404,
    directories and paths escaping the root give 403, and read failures give
    500. Successful responses always carry the no-cache header set.
    """
    request_path = request.path
    if request_path == "/":
        request_path = f"/{site.default_document}"

    file_path = resolve_site_path(request_path, site.root_dir)
    if file_path is None:
        logger.warning("Rejected path outside site root: %s", request.path)
        return HTTPResponse.plain_text(403, "403 Forbidden")

    exists, is_dir = _inspect_entry(file_path)
    # "/style.css/" names a directory that is not there.
    if not exists or (request_path.endswith("/") and not is_dir):
        return HTTPResponse.plain_text(404, "404 Not Found")

    if is_dir:
        return HTTPResponse.plain_text(403, "403 Forbidden - Directory listing not allowed")

    try:
        content = file_path.read_bytes()
    except OSError:
        logger.exception("Error reading file %s", file_path)
        return HTTPResponse.plain_text(500, "500 Internal Server Error")

    headers = {"Content-Type": site.lookup_mime_type(file_path)}
    headers.update(NO_CACHE_HEADERS)
    return HTTPResponse(status_code=200, headers=headers, body=content)


def build_site_handler(site: SiteConfig) -> Handler:
    """Bind ``serve_file`` to one site so the server can call it per request."""

    def handler(request: HTTPRequest) -> HTTPResponse:
        return serve_file(request, site)

    return handler
