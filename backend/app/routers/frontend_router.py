"""
Frontend shell routes.

Serves the single-page client that renders forms and tables from the
metadata endpoint: static files from a few well-known subdirectories, ES
modules with a JavaScript content type, and index.html for every other path.
"""

from pathlib import Path

from fastapi import APIRouter
from starlette.responses import FileResponse

from app.utils.errors_utils import not_found_error
from app.utils.logging_utils import get_logger

logger = get_logger(__name__)

# Looked up in this order; the first directory containing the file wins
STATIC_SUBDIRECTORIES = ("assets", "public", "js", "css")
JAVASCRIPT_MEDIA_TYPE = "application/javascript"


def _safe_join(root: Path, relative: str) -> Path | None:
    """Resolve relative under root, refusing paths that escape it."""
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root):
        return None
    return candidate


def find_static_file(root: Path, path: str) -> Path | None:
    """Return the file a request path refers to, or None."""
    if not path:
        return None
    for subdirectory in STATIC_SUBDIRECTORIES:
        candidate = _safe_join(root / subdirectory, path)
        if candidate is not None and candidate.is_file():
            return candidate
    candidate = _safe_join(root, path)
    if candidate is not None and candidate.is_file():
        return candidate
    return None


def find_index_file(root: Path) -> Path | None:
    for candidate in (root / "public" / "index.html", root / "index.html"):
        if candidate.is_file():
            return candidate
    return None


def build_router(frontend_dir: str | Path) -> APIRouter:
    """
    Build the shell router for a frontend directory.

    Must be included after the API routers so that it only sees requests
    they did not match.
    """
    root = Path(frontend_dir).resolve()
    router = APIRouter(tags=["frontend"])
    logger.info(f"Serving frontend shell from {root}")

    @router.get("/{path:path}", include_in_schema=False)
    async def serve_frontend(path: str) -> FileResponse:
        if path == "api" or path.startswith("api/"):
            raise not_found_error(message=f"No API route for /{path}")

        static_file = find_static_file(root, path)
        if static_file is not None:
            if static_file.suffix == ".mjs":
                return FileResponse(static_file, media_type=JAVASCRIPT_MEDIA_TYPE)
            return FileResponse(static_file)

        index_file = find_index_file(root)
        if index_file is None:
            raise not_found_error(message="Frontend index.html not found")
        return FileResponse(index_file)

    return router
