"""
画板路由
---------------------------------
功能：
- `/upload`：接收前端图片文件，校验为图片后返回 data URL（非图片返回 "Invalid File" 提示）；
- `/solve`：接收画布尺寸、可选图片与笔迹，服务端回放后导出 PNG，再交给动作网关解题。
  画板为空时直接返回提示（code=400），不会调用网关。
"""

from fastapi import APIRouter, File, UploadFile

from ..models.response_schema import ApiResponse
from ..models.whiteboard_schema import WhiteboardSolveRequest
from ..services import actions_service
from ..services.whiteboard_service import Whiteboard, WhiteboardError
from ..utils.file_utils import upload_to_data_url
from ..utils.logger import log


router = APIRouter()


@router.post("/upload", response_model=ApiResponse)
async def upload_image(file: UploadFile = File(...)):
    try:
        data_url = upload_to_data_url(file)
    except WhiteboardError as e:
        log.info(f"Upload rejected: {file.filename} ({file.content_type})")
        return ApiResponse.notice(e.notice)
    return ApiResponse.ok({"dataUri": data_url})


def render_whiteboard(req: WhiteboardSolveRequest) -> str:
    """回放图片与笔迹并返回待提交的 PNG data URL。"""
    board = Whiteboard(req.width, req.height)
    if req.image_data_uri:
        board.load_image(req.image_data_uri)
    board.replay(req.strokes)
    return board.solve_payload()


@router.post("/solve", response_model=ApiResponse)
async def solve(req: WhiteboardSolveRequest):
    try:
        data_url = render_whiteboard(req)
    except WhiteboardError as e:
        return ApiResponse.notice(e.notice)

    log.info(f"Whiteboard submitted: {req.width}x{req.height}, strokes={len(req.strokes)}")
    if req.with_speech:
        result = await actions_service.solve_problem_with_speech(data_url)
    else:
        result = await actions_service.solve_problem(data_url)
    return ApiResponse.from_action(result)
