"""
动作网关请求体
---------------------------------
功能：
- 路由层只做宽松的类型检查（字段存在且为字符串），格式校验留给网关内部完成，
  这样 data URL 格式错误、空文本等问题也会走网关统一的兜底文案，而不是 422。
- 讲解 / 练习题 / 文本修正的输入本身就是纯字符串，直接复用 `solution_schema` 中的输入模型。
"""

from pydantic import Field

from .solution_schema import CamelModel


class SolveRequest(CamelModel):
    photo_data_uri: str = Field(..., description="data:<mime>;base64,<payload>")
    with_speech: bool = Field(False, description="Also narrate the solution steps.")


class SpeechRequest(CamelModel):
    text: str
