"""Configuration constants and the site configuration for the static file server."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

HOST: str = "0.0.0.0"
PORT: int = 8000
PUBLIC_DIR: Path = Path(__file__).resolve().parent
DEFAULT_DOCUMENT: str = "index.html"
SERVER_NAME: str = "nocache-static/1.0"

READ_CHUNK_SIZE: int = 8192
SOCKET_TIMEOUT_SECS: int = 5
KEEPALIVE_TIMEOUT_SECS: int = 5
MAX_KEEPALIVE_REQUESTS: int = 100
MAX_HEADER_BYTES: int = 16_384
MAX_BODY_BYTES: int = 65_536
MAX_TARGET_LENGTH: int = 8_192

LOG_FORMAT: str = "plain"

DEFAULT_MIME_TYPE: str = "application/octet-stream"
MIME_TYPES: Mapping[str, str] = MappingProxyType(
    {
        ".html": "text/html",
        ".js": "text/javascript",
        ".css": "text/css",
        ".json": "application/json",
        ".md": "text/markdown",
        ".svg": "image/svg+xml",
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".ico": "image/x-icon",
    }
)

NO_CACHE_HEADERS: Mapping[str, str] = MappingProxyType(
    {
        "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0",
        "Pragma": "no-cache",
        "Expires": "0",
        "Surrogate-Control": "no-store",
    }
)


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """What to serve and how to label it; built once at startup."""

    root_dir: Path = PUBLIC_DIR
    default_document: str = DEFAULT_DOCUMENT
    mime_types: Mapping[str, str] = field(default_factory=lambda: MIME_TYPES)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_dir", Path(self.root_dir).resolve())
        if not isinstance(self.mime_types, MappingProxyType):
            object.__setattr__(self, "mime_types", MappingProxyType(dict(self.mime_types)))

    def lookup_mime_type(self, file_path: Path) -> str:
        # Extensions are matched case-sensitively: ".HTML" is not ".html".
        return self.mime_types.get(file_path.suffix, DEFAULT_MIME_TYPE)
