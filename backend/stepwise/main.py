"""
后端入口（FastAPI 应用）
---------------------------------
功能：
- 创建 FastAPI 应用并配置 CORS，允许前端开发环境跨域访问。
- 暴露健康检查接口 `/healthz`，便于前端/测试验证服务可用。
- 挂载三个路由模块：
  * `/actions`：无状态动作网关（解题、讲解、练习题、朗读、文本修正）；
  * `/whiteboard`：图片上传与服务端画板回放解题；
  * `/sessions`：展示层会话（解题结果、讲解缓存、朗读状态）。

启动：
- `uvicorn stepwise.main:app --reload`（在 backend 目录下，或 `pip install -e .` 之后任意目录）。
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import FRONTEND_ORIGINS
from .routers.actions_router import router as actions_router
from .routers.session_router import router as session_router
from .routers.whiteboard_router import router as whiteboard_router


app = FastAPI(title="StepWise AI API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
async def healthz():
    """健康检查接口：用于确认服务已启动且可访问。"""
    return {"status": "ok"}


app.include_router(actions_router, prefix="/actions", tags=["actions"])
app.include_router(whiteboard_router, prefix="/whiteboard", tags=["whiteboard"])
app.include_router(session_router, prefix="/sessions", tags=["sessions"])
