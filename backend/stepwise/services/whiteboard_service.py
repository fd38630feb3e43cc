"""
画板服务（OpenCV 光栅画布）
---------------------------------
功能：
- `Whiteboard(width, height)`：与前端 canvas 行为一致的服务端画板，用于回放笔迹并导出 PNG data URL；
- 两种工具：铅笔（#171717，线宽 3）与橡皮（用背景色 #f8f9fa 以线宽 25 覆盖，并非真正擦除像素）；
- 两种内容来源：手绘笔迹、上传/拖入的图片（居中、等比缩放，最大占画布 90%）；
- 状态：empty -> has_content（有笔迹或图片）-> submitted（点击解题）-> clear 后回到 empty。

使用说明：
- 指针事件：`pointer_down` 开始路径；`pointer_move` 仅在按下时延长；`pointer_up` / `pointer_leave` 结束；
- `resize(w, h)` 跟随容器尺寸并重绘：只重放最后上传的图片，手绘笔迹不保留；
- `solve_payload()`：无内容时抛出 `EmptyCanvasError`（带用户提示文案），否则返回 PNG data URL。
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from ..models.whiteboard_schema import MAX_CANVAS_SIDE, Stroke
from ..utils.logger import log
from ..utils.pictures_utils import bytes_to_data_url, parse_data_url


# ============================================================================
# 画板外观配置（与前端保持一致）
# ============================================================================

BACKGROUND_HEX = "#f8f9fa"
PENCIL_HEX = "#171717"
PENCIL_WIDTH = 3
ERASER_WIDTH = 25
# 上传图片最多占画布宽/高的比例
MAX_IMAGE_RATIO = 0.9

TOOLS = ("pencil", "eraser")


class WhiteboardError(ValueError):
    """用户输入类错误，`notice` 为前端直接展示的提示文案。"""

    title = "Whiteboard"
    notice = "Something went wrong with the whiteboard."

    def __init__(self, notice: Optional[str] = None):
        if notice:
            self.notice = notice
        super().__init__(self.notice)


class EmptyCanvasError(WhiteboardError):
    title = "Empty Canvas"
    notice = "Please draw or upload a problem first."


class InvalidImageError(WhiteboardError):
    title = "Invalid File"
    notice = "Please upload an image file."


def _hex_to_bgr(value: str) -> Tuple[int, int, int]:
    v = value.lstrip("#")
    r, g, b = int(v[0:2], 16), int(v[2:4], 16), int(v[4:6], 16)
    return (b, g, r)


BACKGROUND_BGR = _hex_to_bgr(BACKGROUND_HEX)
PENCIL_BGR = _hex_to_bgr(PENCIL_HEX)


def decode_image(data_url: str) -> np.ndarray:
    """解码图片 data URL 为 OpenCV 数组（保留 alpha 通道）。"""
    try:
        mime, content = parse_data_url(data_url)
    except ValueError as e:
        log.warning(f"decode_image: 非法 data URL: {e}")
        raise InvalidImageError() from e
    if not mime.startswith("image/"):
        raise InvalidImageError()
    img = cv2.imdecode(np.frombuffer(content, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise InvalidImageError()
    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    return img


def _to_bgr_with_alpha(img: np.ndarray) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """统一为 BGR + 可选 alpha（0~1 浮点）。"""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGR), None
    if img.shape[2] == 4:
        alpha = img[:, :, 3].astype(np.float32) / 255.0
        return img[:, :, :3], alpha
    return img, None


def _check_size(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise WhiteboardError("Whiteboard size must be positive.")
    if width > MAX_CANVAS_SIDE or height > MAX_CANVAS_SIDE:
        raise WhiteboardError(f"Whiteboard size must not exceed {MAX_CANVAS_SIDE} pixels per side.")


class Whiteboard:
    def __init__(self, width: int = 800, height: int = 600):
        _check_size(width, height)
        self.width = int(width)
        self.height = int(height)
        self.tool = "pencil"
        self.canvas = self._blank()
        self._image: Optional[np.ndarray] = None
        self._has_content = False
        self._submitted = False
        self._drawing = False
        self._last: Optional[Tuple[int, int]] = None

    # ---------- 状态 ----------

    @property
    def has_content(self) -> bool:
        return self._has_content

    @property
    def is_drawing(self) -> bool:
        return self._drawing

    @property
    def has_image(self) -> bool:
        return self._image is not None

    @property
    def state(self) -> str:
        if not self._has_content:
            return "empty"
        return "submitted" if self._submitted else "has_content"

    def _blank(self) -> np.ndarray:
        canvas = np.empty((self.height, self.width, 3), dtype=np.uint8)
        canvas[:] = BACKGROUND_BGR
        return canvas

    def _mark_content(self) -> None:
        self._has_content = True
        self._submitted = False

    # ---------- 工具与笔迹 ----------

    def set_tool(self, tool: str) -> None:
        if tool not in TOOLS:
            raise WhiteboardError(f"Unknown tool: {tool}")
        self.tool = tool

    def _pen(self) -> Tuple[Tuple[int, int, int], int]:
        if self.tool == "eraser":
            return BACKGROUND_BGR, ERASER_WIDTH
        return PENCIL_BGR, PENCIL_WIDTH

    def pointer_down(self, x: float, y: float) -> None:
        self._mark_content()
        self._drawing = True
        self._last = (int(round(x)), int(round(y)))

    def pointer_move(self, x: float, y: float) -> None:
        if not self._drawing or self._last is None:
            return
        pt = (int(round(x)), int(round(y)))
        color, width = self._pen()
        cv2.line(self.canvas, self._last, pt, color, width, cv2.LINE_AA)
        self._last = pt

    def pointer_up(self) -> None:
        self._drawing = False
        self._last = None

    # 指针移出画布与抬起等价
    pointer_leave = pointer_up

    def replay(self, strokes: Iterable[Stroke]) -> None:
        """按顺序回放笔迹：每条笔迹 = 按下首点 + 依次移动 + 抬起。"""
        for stroke in strokes:
            if not stroke.points:
                continue
            self.set_tool(stroke.tool)
            first, *rest = stroke.points
            self.pointer_down(first.x, first.y)
            for p in rest:
                self.pointer_move(p.x, p.y)
            self.pointer_up()

    # ---------- 图片 ----------

    def load_image(self, data_url: str) -> None:
        """替换画布内容为上传图片（居中、等比缩放）。"""
        self._image = decode_image(data_url)
        self._mark_content()
        self.redraw()

    def _draw_image(self) -> None:
        img, alpha = _to_bgr_with_alpha(self._image)
        ih, iw = img.shape[:2]
        ratio = min(self.width / iw, self.height / ih, MAX_IMAGE_RATIO)
        nw = max(1, int(iw * ratio))
        nh = max(1, int(ih * ratio))
        x = (self.width - nw) // 2
        y = (self.height - nh) // 2

        interp = cv2.INTER_AREA if ratio < 1 else cv2.INTER_LINEAR
        scaled = cv2.resize(img, (nw, nh), interpolation=interp)
        region = self.canvas[y : y + nh, x : x + nw]
        if alpha is None:
            region[:] = scaled
            return
        a = cv2.resize(alpha, (nw, nh), interpolation=interp)[:, :, None]
        region[:] = (scaled * a + region * (1.0 - a)).astype(np.uint8)

    def redraw(self) -> None:
        """背景 + 最后上传的图片；手绘笔迹不在重绘范围内。"""
        self.canvas = self._blank()
        if self._image is not None:
            self._draw_image()

    def resize(self, width: int, height: int) -> None:
        _check_size(width, height)
        self.width = int(width)
        self.height = int(height)
        self.redraw()

    def clear(self) -> None:
        self._image = None
        self._has_content = False
        self._submitted = False
        self.pointer_up()
        self.redraw()

    # ---------- 导出 ----------

    def to_data_url(self) -> str:
        ok, buf = cv2.imencode(".png", self.canvas)
        if not ok:
            raise RuntimeError("encode png failed")
        return bytes_to_data_url(buf.tobytes(), "image/png")

    def solve_payload(self) -> str:
        if not self._has_content:
            raise EmptyCanvasError()
        self._submitted = True
        return self.to_data_url()
