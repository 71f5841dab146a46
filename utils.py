"""Utility helpers shared across server modules."""

import os
from pathlib import Path
from urllib.parse import unquote


def resolve_site_path(request_path: str, root_dir: Path) -> Path | None:
    """Map a URL path onto ``root_dir``, or return None if it would escape it.

    Paths the filesystem cannot resolve (symlink loops, over-long names) are
    normalized lexically instead, so the caller sees them as missing entries.
    """
    joined = root_dir / unquote(request_path).lstrip("/")

    try:
        candidate = joined.resolve()
    except (OSError, RuntimeError):
        candidate = Path(os.path.normpath(joined))
    except ValueError:
        # Embedded NUL byte.
        return None

    try:
        candidate.relative_to(root_dir)
    except ValueError:
        return None
    return candidate
