"""
DevCamper Backend — Uploaded File Route
=========================================

GET /uploads/{file_path} serves stored bootcamp photos. Paths are resolved
against FILE_UPLOAD_PATH; anything outside it, or missing, is a 404.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.dependencies import get_file_service
from app.exceptions import NotFoundError
from app.services.file_service import FileService

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{file_path:path}",
    responses={200: {"description": "Image file"}, 404: {"description": "File not found"}},
    summary="Serve an uploaded photo",
)
async def serve_upload(
    file_path: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    path = files.resolve(file_path)
    if path is None:
        raise NotFoundError(resource="file", message=f"File {file_path} not found")
    return FileResponse(path=str(path), headers={"Cache-Control": "public, max-age=3600"})
