"""
解题相关请求/返回模型
---------------------------------
功能：
- 定义五个 AI 操作的输入/输出结构：识别解题、通俗讲解、练习题生成、语音合成、识别文本修正；
- 字段在 Python 侧使用 snake_case，对外（JSON）统一使用 camelCase 别名，例如 `photoDataUri`；
- `ActionError` 为网关层统一错误结构：只包含一个 `error` 字段，调用方通过该键是否存在分支处理。

使用说明：
- 构造时可用字段名或别名：`SolveProblemInput(photo_data_uri=...)` 与 `SolveProblemInput(photoDataUri=...)` 等价；
- 序列化给前端时请使用 `model_dump(by_alias=True)`。
"""

import re
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel


DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.+)$", re.DOTALL)

# 去除首尾空白后至少一个字符；模型偶尔返回空步骤 "" 或纯空白
StepText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- 识别 + 解题 ----------

class SolveProblemInput(CamelModel):
    photo_data_uri: str = Field(
        ...,
        description=(
            "A photo of a handwritten problem, as a data URI that must include a MIME type and use "
            "Base64 encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
        ),
    )

    @field_validator("photo_data_uri")
    @classmethod
    def _check_data_uri(cls, v: str) -> str:
        if not DATA_URI_RE.match(v):
            raise ValueError("photoDataUri must look like data:<mimetype>;base64,<encoded_data>")
        return v


class SolveProblemOutput(CamelModel):
    recognized_text: str = Field(..., min_length=1, description="The recognized text from the image.")
    subject: str = Field(..., min_length=1, description="The subject of the problem (e.g., math, physics, chemistry).")
    solution_steps: List[StepText] = Field(..., min_length=1, description="The step-by-step solution to the problem.")


class SolveWithSpeechOutput(SolveProblemOutput):
    # 语音合成失败时该字段缺省，解题结果本身仍然有效
    audio_data_uri: Optional[str] = Field(None, description="Narration of the joined solution steps.")


# ---------- 通俗讲解 ----------

class ExplainSolutionInput(CamelModel):
    problem: str = Field(..., description="The problem that was solved.")
    solution_steps: str = Field(..., description="The step-by-step solution to the problem.")
    subject: str = Field(..., description="The subject of the problem (e.g., math, physics, chemistry).")


class ExplainSolutionOutput(CamelModel):
    plain_language_explanation: str = Field(
        ..., description="The explanation of the solution steps in plain language."
    )


# ---------- 练习题 ----------

class PracticeProblemsInput(CamelModel):
    problem_text: str = Field(..., description="The text of the problem to generate similar practice problems for.")
    subject: str = Field(..., description="The subject of the problem (e.g., math, physics, chemistry).")


class PracticeProblemsOutput(CamelModel):
    practice_problems: List[str] = Field(
        ..., min_length=1, description="An array of practice problems similar to the input problem."
    )


# ---------- 语音合成 ----------

class SpeechInput(CamelModel):
    text: str = Field(..., min_length=1, description="The text to narrate.")


class SpeechOutput(CamelModel):
    audio_data_uri: str = Field(..., description="The narration as a data URI, e.g. data:audio/wav;base64,...")


# ---------- 识别文本修正 ----------

class CorrectTextInput(CamelModel):
    original_text: str = Field(..., description="The original text recognized from the handwriting or image upload.")
    corrected_text: str = Field(..., description="The corrected text provided by the user.")


class CorrectTextOutput(CamelModel):
    corrected_text: str = Field(
        ..., min_length=1, description="The final corrected text to be used for solving the problem."
    )


# ---------- 网关错误 ----------

class ActionError(BaseModel):
    error: str
