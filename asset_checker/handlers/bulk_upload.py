"""
批量上传接口（管理员）

POST /api/bulk-upload                 multipart: category, csv, images（多个文件，按文件名匹配）
GET  /api/bulk-upload/template?category=
"""
import csv
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from loguru import logger
from sqlmodel import Session

from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_admin
from asset_checker.models import ItemType
from asset_checker.services.bulk_upload_service import (
    BulkUploadResult,
    BulkUploadService,
    template_csv,
    template_filename,
)
from asset_checker.services.image_storage import ImageStorage, get_image_storage

router = APIRouter(prefix="/api/bulk-upload", tags=["bulk-upload"])


@router.post("", response_model=BulkUploadResult)
def bulk_upload(
    category: ItemType = Form(...),
    csv_file: UploadFile = File(..., alias="csv"),
    images: Optional[List[UploadFile]] = File(None),
    session: Session = Depends(get_session),
    storage: ImageStorage = Depends(get_image_storage),
    _admin=Depends(require_admin),
):
    try:
        csv_text = csv_file.file.read().decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8")

    image_files = {image.filename: image.file.read() for image in images or [] if image.filename}
    logger.info(f"批量上传: category={category.value}, images={len(image_files)}")

    try:
        return BulkUploadService.process(session, storage, category, csv_text, image_files)
    except csv.Error as e:
        raise HTTPException(status_code=400, detail=f"Invalid CSV: {e}")


@router.get("/template")
def download_template(category: ItemType = Query(...), _admin=Depends(require_admin)):
    return Response(
        content=template_csv(category).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{template_filename(category)}"'},
    )
