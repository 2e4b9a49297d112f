"""
图片上传接口（管理员）
"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from asset_checker.handlers.auth import require_admin
from asset_checker.services.image_storage import ImageStorage, get_image_storage, is_image

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("")
def upload_image(
    file: UploadFile = File(...),
    storage: ImageStorage = Depends(get_image_storage),
    _admin=Depends(require_admin),
) -> dict:
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    data = file.file.read()
    if not is_image(data):
        raise HTTPException(status_code=400, detail="File must be an image")

    return {"url": storage.put(file.filename or "image", data)}


@router.delete("")
def delete_image(
    url: str = Query(..., description="图片地址"),
    storage: ImageStorage = Depends(get_image_storage),
    _admin=Depends(require_admin),
) -> dict:
    if not storage.delete(url):
        raise HTTPException(status_code=404, detail="Image not found")
    return {"success": True}
