"""
导出 / 导入接口

POST /api/export/{fmt}   fmt = csv / png / pdf（image 等同 png）
POST /api/import         CSV 文本 + 当前状态 -> 合并后的状态
"""
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel, Field
from sqlmodel import Session

from asset_checker.config.settings import settings
from asset_checker.database.connection import get_session
from asset_checker.handlers.auth import require_user
from asset_checker.services.export.csv_format import export_csv_bytes, export_filename, import_csv
from asset_checker.services.export.models import ExportOptions, ImportResult
from asset_checker.services.export.renderer import ExportRenderer
from asset_checker.services.image_storage import ImageStorage, get_image_storage
from asset_checker.services.input_item_service import InputGroupService
from asset_checker.services.item_service import ItemService
from asset_checker.services.selection import SelectionState
from asset_checker.services.session_service import SessionService

router = APIRouter(tags=["export"])


class ExportFormat(str, Enum):
    CSV = "csv"
    PNG = "png"
    IMAGE = "image"
    PDF = "pdf"


MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "png": "image/png",
    "pdf": "application/pdf",
}


class ExportRequest(BaseModel):
    """导出请求：直接传状态，或传分享会话ID"""
    state: SelectionState = Field(default_factory=SelectionState)
    session_id: Optional[str] = None
    options: ExportOptions = Field(default_factory=ExportOptions)  # 只作用于 png / pdf


class ImportRequest(BaseModel):
    csv_text: str
    state: SelectionState = Field(default_factory=SelectionState)


def get_renderer(storage: ImageStorage = Depends(get_image_storage)) -> ExportRenderer:
    return ExportRenderer(storage, settings.export_font_path, settings.remote_image_timeout)


@router.post("/api/export/{fmt}")
def export_selection(
    fmt: ExportFormat,
    body: ExportRequest,
    session: Session = Depends(get_session),
    renderer: ExportRenderer = Depends(get_renderer),
    _user=Depends(require_user),
):
    state = body.state
    if body.session_id:
        state = SessionService.load_session(session, body.session_id).to_state()

    items = ItemService.build_export_items(session, state)
    groups = InputGroupService.list_groups(session)

    extension = "png" if fmt in (ExportFormat.PNG, ExportFormat.IMAGE) else fmt.value
    if extension == "csv":
        content = export_csv_bytes(items, groups, state.input_values)
    elif extension == "png":
        content = renderer.render_png(items, groups, state.input_values, body.options)
    else:
        content = renderer.render_pdf(items, groups, state.input_values, options=body.options)

    filename = export_filename(extension)
    logger.info(f"导出 {filename}: {len(state.all_selected_ids())} 个物品")
    return Response(
        content=content,
        media_type=MEDIA_TYPES[extension],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/import", response_model=ImportResult)
def import_selection(body: ImportRequest, _user=Depends(require_user)):
    return import_csv(body.csv_text, body.state)
