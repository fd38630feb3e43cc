"""
data URL 编解码工具（供多模态模型、画板与语音合成使用）
---------------------------------
功能：
- `bytes_to_data_url(content, mime)`：将字节串封装为 `data:<mime>;base64,<...>`；
- `parse_data_url(data_url)`：拆出 MIME 与原始字节，格式不合法时抛出 `ValueError`；
- `guess_mime(filename, fallback)`：根据文件名推断 MIME，用于上传文件缺少 content-type 的情况。

使用说明：
- 仅做编码与格式校验，不处理图像缩放/压缩；
- 图片内容是否可解码由画板服务（OpenCV）负责判断。
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from typing import Optional, Tuple

from ..models.solution_schema import DATA_URI_RE
from .logger import log


def guess_mime(filename: Optional[str], fallback: str = "application/octet-stream") -> str:
    """根据文件扩展名推断 MIME 类型，无法识别时返回 `fallback`。"""
    if not filename:
        return fallback
    mime, _ = mimetypes.guess_type(filename)
    if not mime:
        # 常用图片类型的简化修正
        suffix = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if suffix == "webp":
            return "image/webp"
        return fallback
    return mime


def bytes_to_data_url(content: bytes, mime: str) -> str:
    """将字节串编码为 base64 data URL。

    示例返回：`data:image/png;base64,iVBORw0KGgo...`
    """
    b64 = base64.b64encode(content).decode("ascii")
    log.debug(f"bytes_to_data_url: {mime}, bytes={len(content)}")
    return f"data:{mime};base64,{b64}"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """解析 data URL，返回 `(mime, content)`。"""
    m = DATA_URI_RE.match(data_url or "")
    if not m:
        raise ValueError("not a base64 data URL")
    try:
        content = base64.b64decode(m.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64 payload: {e}") from e
    return m.group("mime").lower(), content
