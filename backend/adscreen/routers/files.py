"""Signed image downloads."""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from adscreen.dependencies import get_file_storage
from adscreen.services.file_storage import FileStorage

router = APIRouter()


@router.get("/files/{file_id}")
async def download_file(
    file_id: str,
    token: str = Query(default=""),
    expires: int = Query(default=0),
    files: FileStorage = Depends(get_file_storage),
):
    if not files.verify_file_token(file_id, token, expires):
        raise HTTPException(status_code=403, detail="Invalid or expired link")
    record = files.resolve_file(file_id)
    if record is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(record.path, media_type=record.mime_type)
