"""
动作网关路由（无状态）
---------------------------------
功能：
- `/solve`：图片 data URL -> 识别文本、学科、分步解题；`withSpeech=true` 时追加步骤朗读音频；
- `/explain`：题目 + 步骤 + 学科 -> 通俗讲解；
- `/practice`：题目 + 学科 -> 练习题列表；
- `/speech`：文本 -> 音频 data URL；
- `/correct-text`：用户修正识别文本。

所有接口都返回 `ApiResponse`；网关失败时 code=1、data 为 `{"error": ...}`，讲解/练习题失败时返回兜底文案（code=0）。
"""

from fastapi import APIRouter

from ..models.action_schema import SolveRequest, SpeechRequest
from ..models.response_schema import ApiResponse
from ..models.solution_schema import CorrectTextInput, ExplainSolutionInput, PracticeProblemsInput
from ..services import actions_service


router = APIRouter()


@router.post("/solve", response_model=ApiResponse)
async def solve(req: SolveRequest):
    if req.with_speech:
        result = await actions_service.solve_problem_with_speech(req.photo_data_uri)
    else:
        result = await actions_service.solve_problem(req.photo_data_uri)
    return ApiResponse.from_action(result)


@router.post("/explain", response_model=ApiResponse)
async def explain(req: ExplainSolutionInput):
    result = await actions_service.get_explanation(req.problem, req.solution_steps, req.subject)
    return ApiResponse.from_action(result)


@router.post("/practice", response_model=ApiResponse)
async def practice(req: PracticeProblemsInput):
    result = await actions_service.get_practice_problems(req.problem_text, req.subject)
    return ApiResponse.from_action(result)


@router.post("/speech", response_model=ApiResponse)
async def speech(req: SpeechRequest):
    result = await actions_service.get_speech(req.text)
    return ApiResponse.from_action(result)


@router.post("/correct-text", response_model=ApiResponse)
async def correct_text(req: CorrectTextInput):
    result = await actions_service.correct_recognized_text(req.original_text, req.corrected_text)
    return ApiResponse.from_action(result)
