# -*- coding: utf-8 -*-
"""
AI 操作服务（OpenAI SDK 兼容端点）
---------------------------------
功能：
- `solve_problem_from_image`：图片 data URL -> 识别文本、学科、分步解题（结构化 JSON）；
- `explain_solution`：题目 + 步骤 + 学科 -> 通俗讲解；
- `generate_practice_problems`：题目 + 学科 -> 相似练习题列表（模型续写编号列表，再按编号拆分）；
- `text_to_speech`：文本 -> 音频 data URL；
- `correct_recognized_text`：用户修正识别文本（无需调用模型，直接透传修正值）。

使用说明：
- 需在环境中设置 `ARK_API_KEY`，可选设置 `ARK_BASE_URL` 与 `DOUBAO_MODEL_ID`；语音合成见 `TTS_*`；
- 模型输出若含额外文本，会尝试提取首个 JSON 区块，再用 pydantic 模型校验；
- 本模块不吞异常：网络、额度、校验失败都向上抛出，由网关层（actions_service）统一兜底。
"""
from __future__ import annotations

import json
import re
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

from ..config import settings
from ..models.safety_schema import SafetySetting, to_payload
from ..models.solution_schema import (
    CorrectTextInput,
    CorrectTextOutput,
    ExplainSolutionInput,
    ExplainSolutionOutput,
    PracticeProblemsInput,
    PracticeProblemsOutput,
    SolveProblemInput,
    SolveProblemOutput,
    SpeechInput,
    SpeechOutput,
)
from ..utils.logger import log
from ..utils.pictures_utils import bytes_to_data_url
from ..utils.prompt_utils import (
    explain_prompt,
    explain_system_prompt,
    practice_prompt,
    solve_system_prompt,
    solve_user_prompt,
)


# 编号分隔：可选的开头编号，或 "换行 + 数字 + 句点"；句点后紧跟数字的是小数（如 2.5），不算编号
_NUMBERED_SPLIT_RE = re.compile(r"(?:^|\n)\s*\d+\.(?!\d)\s*")


class AIOperationError(RuntimeError):
    """模型返回内容无法使用（空内容、非 JSON 等）。"""


@lru_cache(maxsize=4)
def _build_client(base_url: str, api_key: str):
    """按 (端点, 密钥) 复用同一个客户端及其连接池，进程内不重复创建。"""
    from openai import AsyncOpenAI

    return AsyncOpenAI(base_url=base_url, api_key=api_key)


def _get_client():
    """获取异步 OpenAI 兼容客户端（对话/视觉模型）。"""
    if not settings.ARK_API_KEY:
        raise RuntimeError("ARK_API_KEY 未设置，请在环境变量中提供 API Key")
    return _build_client(settings.ARK_BASE_URL, settings.ARK_API_KEY)


def _get_tts_client():
    """获取语音合成客户端，端点与密钥未单独配置时复用 Ark 配置。"""
    if not settings.TTS_API_KEY:
        raise RuntimeError("TTS_API_KEY 未设置，请在环境变量中提供语音合成 API Key")
    return _build_client(settings.TTS_BASE_URL, settings.TTS_API_KEY)


def _extract_json(text: str) -> Dict[str, Any]:
    """从模型文本中提取 JSON 对象。

    - 优先直接解析整体文本；
    - 若失败，使用正则查找首个 `{...}` 区块再解析；
    - 仍失败则抛出 `AIOperationError`。
    """
    if not text:
        raise AIOperationError("模型返回为空")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        m = re.search(r"\{[\s\S]*\}", text)
        if not m:
            raise AIOperationError("模型输出中未找到 JSON 对象")
        try:
            data = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise AIOperationError(f"JSON 区块解析失败: {e}") from e
    if not isinstance(data, dict):
        raise AIOperationError("模型输出的 JSON 不是对象")
    return data


def split_numbered_list(raw: str) -> List[str]:
    """按 "换行 + 数字 + 句点" 拆分编号列表。

    >>> split_numbered_list("1. A\\n2. B\\n3. C")
    ['A', 'B', 'C']

    没有编号时返回去除首尾空白后的单元素列表。
    """
    parts = _NUMBERED_SPLIT_RE.split(raw or "")
    return [p.strip() for p in parts if p.strip()]


async def _chat(
    messages: List[Dict[str, Any]],
    safety: Optional[Sequence[SafetySetting]] = None,
    json_mode: bool = False,
) -> str:
    """发起一次对话请求并返回首个 choice 的文本。"""
    client = _get_client()
    extra_body: Dict[str, Any] = {"thinking": {"type": "disabled"}}
    if safety:
        extra_body["safety_settings"] = to_payload(safety)
    kwargs: Dict[str, Any] = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    t0 = time.perf_counter()
    resp = await client.chat.completions.create(
        model=settings.DOUBAO_MODEL_ID,
        messages=messages,
        temperature=settings.LLM_TEMPERATURE,
        extra_body=extra_body,
        **kwargs,
    )
    ms = int((time.perf_counter() - t0) * 1000)
    log.info(f"chat completion done: ai_ms={ms}ms")
    return resp.choices[0].message.content or ""


async def solve_problem_from_image(inp: SolveProblemInput) -> SolveProblemOutput:
    """识别图片中的题目并分步解答。"""
    raw = await _chat(
        [
            {"role": "system", "content": solve_system_prompt()},
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": inp.photo_data_uri}},
                    {"type": "text", "text": solve_user_prompt()},
                ],
            },
        ],
        safety=settings.SOLVE_SAFETY_SETTINGS,
        json_mode=True,
    )
    out = SolveProblemOutput.model_validate(_extract_json(raw))
    log.info(f"solve done: subject={out.subject}, steps={len(out.solution_steps)}")
    return out


async def explain_solution(inp: ExplainSolutionInput) -> ExplainSolutionOutput:
    raw = await _chat(
        [
            {"role": "system", "content": explain_system_prompt()},
            {"role": "user", "content": explain_prompt(inp)},
        ],
        safety=settings.EXPLAIN_SAFETY_SETTINGS,
        json_mode=True,
    )
    return ExplainSolutionOutput.model_validate(_extract_json(raw))


async def generate_practice_problems(inp: PracticeProblemsInput) -> PracticeProblemsOutput:
    """模型续写 "1." 开头的编号列表，输出为纯文本，在此拆分为题目数组。"""
    raw = await _chat(
        [{"role": "user", "content": practice_prompt(inp)}],
        safety=settings.PRACTICE_SAFETY_SETTINGS,
    )
    problems = split_numbered_list(raw)
    log.info(f"practice problems generated: count={len(problems)}")
    return PracticeProblemsOutput(practice_problems=problems)


async def text_to_speech(inp: SpeechInput) -> SpeechOutput:
    """调用语音合成接口，返回 `data:audio/<format>;base64,...`。"""
    client = _get_tts_client()
    t0 = time.perf_counter()
    resp = await client.audio.speech.create(
        model=settings.TTS_MODEL_ID,
        voice=settings.TTS_VOICE,
        input=inp.text,
        response_format=settings.TTS_AUDIO_FORMAT,
    )
    audio = resp.content
    if not audio:
        raise AIOperationError("语音合成返回为空")
    ms = int((time.perf_counter() - t0) * 1000)
    log.info(f"tts done: ai_ms={ms}ms, bytes={len(audio)}")
    return SpeechOutput(audio_data_uri=bytes_to_data_url(audio, f"audio/{settings.TTS_AUDIO_FORMAT}"))


async def correct_recognized_text(inp: CorrectTextInput) -> CorrectTextOutput:
    """用户修正后的文本即最终文本，不经过模型。"""
    return CorrectTextOutput(corrected_text=inp.corrected_text.strip())
