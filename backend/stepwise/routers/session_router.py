"""
展示层会话路由
---------------------------------
功能：
- POST   /sessions                  - 创建会话，返回初始视图（empty）
- GET    /sessions/{id}             - 获取当前视图
- POST   /sessions/{id}/solve       - 提交画板导出的图片（无图片时视图中带提示文案）
- POST   /sessions/{id}/explain     - 展开讲解面板（首次请求，之后使用缓存）
- POST   /sessions/{id}/listen      - 朗读（每次都重新请求）
- POST   /sessions/{id}/practice    - 生成练习题
- POST   /sessions/{id}/correct     - 修正识别文本
- POST   /sessions/{id}/reset       - 重新开始
- DELETE /sessions/{id}             - 删除会话

所有接口返回 `ApiResponse`，data 为 `SessionView`（camelCase）。会话不存在时返回 404。
"""

from fastapi import APIRouter, Depends, HTTPException

from ..models.response_schema import ApiResponse
from ..models.session_schema import SessionCorrectRequest, SessionSolveRequest
from ..services.session_service import SolutionSession, store


router = APIRouter()


def get_session(session_id: str) -> SolutionSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="会话不存在或已过期")
    return session


def _render(session: SolutionSession) -> ApiResponse:
    return ApiResponse.ok(session.view().model_dump(by_alias=True))


@router.post("", response_model=ApiResponse)
async def create_session():
    return _render(store.create())


@router.get("/{session_id}", response_model=ApiResponse)
async def get_view(session: SolutionSession = Depends(get_session)):
    return _render(session)


@router.post("/{session_id}/solve", response_model=ApiResponse)
async def solve(req: SessionSolveRequest, session: SolutionSession = Depends(get_session)):
    await session.solve(req.image_data_uri, with_speech=req.with_speech)
    return _render(session)


@router.post("/{session_id}/explain", response_model=ApiResponse)
async def explain(session: SolutionSession = Depends(get_session)):
    await session.explain()
    return _render(session)


@router.post("/{session_id}/listen", response_model=ApiResponse)
async def listen(session: SolutionSession = Depends(get_session)):
    await session.listen()
    return _render(session)


@router.post("/{session_id}/practice", response_model=ApiResponse)
async def practice(session: SolutionSession = Depends(get_session)):
    await session.practice()
    return _render(session)


@router.post("/{session_id}/correct", response_model=ApiResponse)
async def correct(req: SessionCorrectRequest, session: SolutionSession = Depends(get_session)):
    await session.correct_text(req.corrected_text)
    return _render(session)


@router.post("/{session_id}/reset", response_model=ApiResponse)
async def reset(session: SolutionSession = Depends(get_session)):
    session.reset()
    return _render(session)


@router.delete("/{session_id}", response_model=ApiResponse)
async def delete_session(session: SolutionSession = Depends(get_session)):
    store.drop(session.id)
    return ApiResponse.ok({"id": session.id})
