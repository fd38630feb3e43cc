"""
上传文件读取工具
---------------------------------
功能：
- 将前端上传/拖入的文件读取为 data URL，供画板加载与解题使用；
- 只接受 `image/*`：content-type 缺失时按文件名推断，非图片或空文件抛出 `InvalidImageError`。

说明：
- 不落盘：题目图片只在一次请求内存在，不做任何持久化。
"""

from fastapi import UploadFile

from ..services.whiteboard_service import InvalidImageError
from .pictures_utils import bytes_to_data_url, guess_mime


def upload_to_data_url(file: UploadFile) -> str:
    """读取上传文件并返回 `data:image/...;base64,...`。"""
    mime = file.content_type or ""
    if not mime or mime == "application/octet-stream":
        mime = guess_mime(file.filename)
    if not mime.startswith("image/"):
        raise InvalidImageError()

    content = file.file.read()
    if not content:
        raise InvalidImageError()
    return bytes_to_data_url(content, mime)
