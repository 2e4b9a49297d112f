"""
图片存储服务

把上传的图片保存到本地目录，对外返回 <upload_url_prefix>/<文件名> 形式的地址。
文件名带内容哈希，同名不同内容的图片不会互相覆盖。
"""
import hashlib
import io
import re
from pathlib import Path
from typing import List, Optional

from loguru import logger
from PIL import Image, UnidentifiedImageError

from asset_checker.config.settings import settings

_UNSAFE_CHARS_RE = re.compile(r"[^\w.\-]+", re.UNICODE)


def is_image(data: bytes) -> bool:
    """用 Pillow 校验数据是否为可识别的图片"""
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
        return True
    except (UnidentifiedImageError, OSError, SyntaxError):
        return False


class ImageStorage:
    """本地图片存储"""

    def __init__(self, base_dir: str | Path, url_prefix: str):
        self.base_dir = Path(base_dir)
        self.url_prefix = "/" + url_prefix.strip("/") if url_prefix.strip("/") else ""

    def _safe_name(self, filename: str, data: bytes) -> str:
        original = Path(filename or "image").name
        stem = _UNSAFE_CHARS_RE.sub("_", Path(original).stem).strip("_") or "image"
        suffix = _UNSAFE_CHARS_RE.sub("", Path(original).suffix.lower())
        digest = hashlib.sha256(data).hexdigest()[:10]
        return f"{stem}-{digest}{suffix}"

    def url_for(self, filename: str, data: bytes) -> str:
        """put 将返回的地址（不写文件）"""
        return f"{self.url_prefix}/{self._safe_name(filename, data)}"

    def exists(self, url: Optional[str]) -> bool:
        path = self.resolve_path(url)
        return path is not None and path.is_file()

    def put(self, filename: str, data: bytes) -> str:
        """保存图片，返回访问地址"""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        name = self._safe_name(filename, data)
        path = self.base_dir / name
        if not path.exists():
            path.write_bytes(data)
        logger.info(f"图片已保存: {name} ({len(data)} bytes)")
        return f"{self.url_prefix}/{name}"

    def resolve_path(self, url: Optional[str]) -> Optional[Path]:
        """地址属于本存储时返回本地路径，否则返回 None"""
        if not url or not url.startswith(f"{self.url_prefix}/"):
            return None
        name = Path(url[len(self.url_prefix) + 1:]).name
        if not name:
            return None
        return self.base_dir / name

    def read(self, url: Optional[str]) -> Optional[bytes]:
        path = self.resolve_path(url)
        if path is None or not path.is_file():
            return None
        return path.read_bytes()

    def delete(self, url: str) -> bool:
        """删除图片，返回是否真的删除了文件"""
        path = self.resolve_path(url)
        if path is None or not path.is_file():
            return False
        path.unlink()
        logger.info(f"图片已删除: {path.name}")
        return True

    def list(self) -> List[str]:
        if not self.base_dir.exists():
            return []
        return sorted(f"{self.url_prefix}/{path.name}" for path in self.base_dir.iterdir() if path.is_file())


image_storage = ImageStorage(settings.upload_dir, settings.upload_url_prefix)


def get_image_storage() -> ImageStorage:
    """FastAPI 依赖：图片存储"""
    return image_storage
