"""
画板相关请求模型
---------------------------------
功能：
- `Point` / `Stroke`：前端采集的指针坐标与笔迹（工具 + 点序列），坐标为画布像素；
- `WhiteboardSolveRequest`：画布尺寸、可选上传图片、笔迹列表，服务端回放后导出 PNG 提交解题。

扩展说明：
- 图片先于笔迹回放，对应"先上传图片、再在上面书写"的交互；
- 字段对外使用 camelCase 别名（如 `imageDataUri`、`withSpeech`）。
- 画布边长上限 `MAX_CANVAS_SIDE`，坐标须为有限数且落在 `±MAX_COORD` 内，超界请求在校验阶段即返回 422。
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .solution_schema import CamelModel


MAX_CANVAS_SIDE = 4096
# 允许笔迹略微越出画布（指针拖出边界），但不允许离谱的坐标
MAX_COORD = 2 * MAX_CANVAS_SIDE


class Point(BaseModel):
    """二维坐标点"""
    x: float = Field(..., ge=-MAX_COORD, le=MAX_COORD, allow_inf_nan=False)
    y: float = Field(..., ge=-MAX_COORD, le=MAX_COORD, allow_inf_nan=False)


class Stroke(BaseModel):
    tool: Literal["pencil", "eraser"] = "pencil"
    points: List[Point] = Field(default_factory=list)


class WhiteboardSolveRequest(CamelModel):
    width: int = Field(800, gt=0, le=MAX_CANVAS_SIDE, description="画布宽度（像素）")
    height: int = Field(600, gt=0, le=MAX_CANVAS_SIDE, description="画布高度（像素）")
    image_data_uri: Optional[str] = Field(None, description="上传/拖入的图片 data URL")
    strokes: List[Stroke] = Field(default_factory=list, description="手绘笔迹，按绘制顺序")
    with_speech: bool = Field(False, description="解题后同时朗读步骤")
