"""
Single-page app serving.

Every GET that is not an API route returns a file from the built
frontend, falling back to index.html so client-side routes resolve.
Registered last so API routers match first.
"""
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from app.config import get_static_dir

router = APIRouter(include_in_schema=False)


def _resolve_asset(static_dir: Path, path: str):
    """File under static_dir for path, or None. Refuses to leave static_dir."""
    if not path:
        return None
    root = static_dir.resolve()
    candidate = (root / path).resolve()
    if root not in candidate.parents or not candidate.is_file():
        return None
    return candidate


@router.get("/{full_path:path}")
async def spa(full_path: str):
    if full_path == "api" or full_path.startswith("api/"):
        raise HTTPException(status_code=404, detail="Not found")

    static_dir = get_static_dir()
    asset = _resolve_asset(static_dir, full_path)
    if asset is not None:
        return FileResponse(asset)

    index = static_dir / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Frontend not built")
    return FileResponse(index)
