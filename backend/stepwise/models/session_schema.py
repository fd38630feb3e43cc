"""
展示层会话模型
---------------------------------
功能：
- `Solution`：一次解题成功后的临时结果（识别文本、学科、步骤、讲解缓存、练习题），只存在于当前会话；
- `SessionView`：渲染给前端的面板状态：
  * status=empty：显示引导文案；
  * status=loading：显示骨架占位（`skeletonRows` 行）；
  * status=populated：显示识别文本、编号步骤、讲解面板（collapsed/loading/ready）、朗读与练习题状态。
- 会话接口的请求体：`SessionSolveRequest`、`SessionCorrectRequest`。
"""

from typing import List, Literal, Optional

from pydantic import Field

from .solution_schema import CamelModel


class Solution(CamelModel):
    recognized_text: str
    subject: str
    solution_steps: List[str]
    explanation: str = ""
    practice_problems: List[str] = Field(default_factory=list)


class StepView(CamelModel):
    index: int
    text: str


class ExplanationPanel(CamelModel):
    state: Literal["collapsed", "loading", "ready"] = "collapsed"
    text: Optional[str] = None


class SessionView(CamelModel):
    session_id: str
    status: Literal["empty", "loading", "populated"]
    call_to_action: Optional[str] = None
    skeleton_rows: int = 0
    recognized_text: Optional[str] = None
    subject: Optional[str] = None
    steps: List[StepView] = Field(default_factory=list)
    explanation: ExplanationPanel = Field(default_factory=ExplanationPanel)
    can_listen: bool = False
    listening: bool = False
    audio_data_uri: Optional[str] = None
    practice_problems: List[str] = Field(default_factory=list)
    practice_loading: bool = False
    notice: Optional[str] = None
    error: Optional[str] = None


class SessionSolveRequest(CamelModel):
    image_data_uri: Optional[str] = Field(None, description="画板导出的 PNG data URL")
    with_speech: bool = False


class SessionCorrectRequest(CamelModel):
    corrected_text: str
