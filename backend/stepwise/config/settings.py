"""
后端基础配置（多模态模型 + 语音合成 + .env 自动加载）
---------------------------------
功能：
- 定义允许的前端跨域源（默认 vite 开发地址）。
- 定义多模态对话模型配置：`ARK_BASE_URL`、`ARK_API_KEY`、`DOUBAO_MODEL_ID`（OpenAI SDK 兼容端点）。
- 定义语音合成配置：`TTS_BASE_URL`、`TTS_API_KEY`、`TTS_MODEL_ID`、`TTS_VOICE`、`TTS_AUDIO_FORMAT`；
  端点与密钥未单独设置时回退到 Ark 配置。
- 定义内容安全策略（类别 -> 拦截阈值），作为纯数据随模型调用透传。
- 定义会话层的内存上限 `SESSION_LIMIT`。

使用说明：
- 请在部署环境中设置 `ARK_API_KEY`，也可通过项目根目录 `.env` 注入；
- 语音合成若使用不同服务商，设置 `TTS_BASE_URL` 与 `TTS_API_KEY` 即可；
- 所有配置均为模块级常量，测试中可通过 monkeypatch 覆盖。
"""

from pathlib import Path
import os
from dotenv import find_dotenv, load_dotenv

from ..models.safety_schema import HarmBlockThreshold, HarmCategory, SafetySetting


# 注意：settings.py 位于 project_root/backend/stepwise/config/
# 因此项目根目录应为 `parents[3]`
PROJECT_ROOT = Path(__file__).resolve().parents[3]
BACKEND_DIR = PROJECT_ROOT / "backend"

# 自动加载 .env（若存在）。
# `override=False`：环境变量已存在时不被 .env 覆盖，方便在生产环境直接通过系统环境变量注入。
_found = find_dotenv(filename=".env", usecwd=True)
if _found:
    load_dotenv(_found, override=False)
else:
    load_dotenv(str(PROJECT_ROOT / ".env"), override=False)

# 允许跨域的前端地址
_origins_csv = os.getenv("FRONTEND_ORIGINS", "").strip()
if _origins_csv:
    FRONTEND_ORIGINS = [o.strip() for o in _origins_csv.split(",") if o.strip()]
else:
    FRONTEND_ORIGINS = [
        os.getenv("FRONTEND_ORIGIN", "http://localhost:9002"),
        "http://localhost:3000",
    ]

# --- 多模态对话模型（Ark，OpenAI 兼容） ---
ARK_BASE_URL = os.getenv("ARK_BASE_URL", "https://ark.cn-beijing.volces.com/api/v3")
# 从环境变量或 .env 中读取 API Key，不要在代码中硬编码真实密钥。
ARK_API_KEY = os.getenv("ARK_API_KEY", "")
DOUBAO_MODEL_ID = os.getenv("DOUBAO_MODEL_ID", "doubao-seed-1-6-flash-250828")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))

# --- 语音合成 ---
TTS_BASE_URL = os.getenv("TTS_BASE_URL", "") or ARK_BASE_URL
TTS_API_KEY = os.getenv("TTS_API_KEY", "") or ARK_API_KEY
TTS_MODEL_ID = os.getenv("TTS_MODEL_ID", "gpt-4o-mini-tts")
TTS_VOICE = os.getenv("TTS_VOICE", "alloy")
# 输出格式同时决定 data URI 的 MIME：audio/<format>
TTS_AUDIO_FORMAT = os.getenv("TTS_AUDIO_FORMAT", "wav")

# --- 会话层 ---
SESSION_LIMIT = int(os.getenv("SESSION_LIMIT", "256"))

# --- 内容安全策略 ---
# 纯配置数据：按操作区分，原样透传给模型客户端，不含任何判断逻辑。
SOLVE_SAFETY_SETTINGS = [
    SafetySetting(category=HarmCategory.DANGEROUS_CONTENT, threshold=HarmBlockThreshold.BLOCK_ONLY_HIGH),
]

EXPLAIN_SAFETY_SETTINGS = [
    SafetySetting(category=HarmCategory.HATE_SPEECH, threshold=HarmBlockThreshold.BLOCK_ONLY_HIGH),
    SafetySetting(category=HarmCategory.DANGEROUS_CONTENT, threshold=HarmBlockThreshold.BLOCK_NONE),
    SafetySetting(category=HarmCategory.HARASSMENT, threshold=HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE),
    SafetySetting(category=HarmCategory.SEXUALLY_EXPLICIT, threshold=HarmBlockThreshold.BLOCK_LOW_AND_ABOVE),
]

PRACTICE_SAFETY_SETTINGS = [
    SafetySetting(category=HarmCategory.DANGEROUS_CONTENT, threshold=HarmBlockThreshold.BLOCK_ONLY_HIGH),
]
