"""
动作网关（前端可直接调用的服务端操作）
---------------------------------
功能：
- 接收纯数据（图片 data URL、题目文本、学科、步骤文本），调用对应的 AI 操作；
- 成功时原样返回解析后的结果；任何异常（网络、额度、输出校验失败）都在此捕获并记录日志，
  返回该操作固定的兜底值，从不向调用方抛出；
- 不重试、不退避、不返回部分结果：首次失败即结束本次请求，用户可手动重新触发。

错误约定：
- 解题 / 语音 / 文本修正：失败返回 `ActionError`（仅含 `error` 字段）；
- 讲解 / 练习题：失败返回正常结构，内容替换为固定的提示文案。

注意：`solve_problem_with_speech` 中两次调用是串行的（语音依赖解题结果），不是并行发起。
"""

from typing import Union

from ..models.solution_schema import (
    ActionError,
    CorrectTextInput,
    CorrectTextOutput,
    ExplainSolutionInput,
    ExplainSolutionOutput,
    PracticeProblemsInput,
    PracticeProblemsOutput,
    SolveProblemInput,
    SolveProblemOutput,
    SolveWithSpeechOutput,
    SpeechInput,
    SpeechOutput,
)
from ..utils.logger import log
from . import ai_service


SOLVE_ERROR = "Sorry, I was unable to solve this problem. Please try again."
EXPLANATION_FALLBACK = "Sorry, I was unable to generate an explanation at this time."
PRACTICE_FALLBACK = "Sorry, I was unable to generate practice problems at this time."
SPEECH_ERROR = "Sorry, I was unable to generate audio at this time."
CORRECTION_ERROR = "Sorry, I was unable to update the recognized text."


async def solve_problem(photo_data_uri: str) -> Union[SolveProblemOutput, ActionError]:
    try:
        return await ai_service.solve_problem_from_image(SolveProblemInput(photo_data_uri=photo_data_uri))
    except Exception as e:
        log.error(f"Error solving problem: {e}")
        return ActionError(error=SOLVE_ERROR)


async def solve_problem_with_speech(photo_data_uri: str) -> Union[SolveWithSpeechOutput, ActionError]:
    """解题成功后，立即为拼接后的步骤生成语音；语音失败时仅缺省 `audio_data_uri`。"""
    solved = await solve_problem(photo_data_uri)
    if isinstance(solved, ActionError):
        return solved

    result = SolveWithSpeechOutput(**solved.model_dump())
    speech = await get_speech("\n".join(solved.solution_steps))
    if isinstance(speech, SpeechOutput):
        result.audio_data_uri = speech.audio_data_uri
    return result


async def get_explanation(problem: str, solution_steps: str, subject: str) -> ExplainSolutionOutput:
    try:
        return await ai_service.explain_solution(
            ExplainSolutionInput(problem=problem, solution_steps=solution_steps, subject=subject)
        )
    except Exception as e:
        log.error(f"Error getting explanation: {e}")
        return ExplainSolutionOutput(plain_language_explanation=EXPLANATION_FALLBACK)


async def get_practice_problems(problem_text: str, subject: str) -> PracticeProblemsOutput:
    try:
        return await ai_service.generate_practice_problems(
            PracticeProblemsInput(problem_text=problem_text, subject=subject)
        )
    except Exception as e:
        log.error(f"Error generating practice problems: {e}")
        return PracticeProblemsOutput(practice_problems=[PRACTICE_FALLBACK])


async def get_speech(text: str) -> Union[SpeechOutput, ActionError]:
    try:
        return await ai_service.text_to_speech(SpeechInput(text=text))
    except Exception as e:
        log.error(f"Error generating speech: {e}")
        return ActionError(error=SPEECH_ERROR)


async def correct_recognized_text(original_text: str, corrected_text: str) -> Union[CorrectTextOutput, ActionError]:
    try:
        return await ai_service.correct_recognized_text(
            CorrectTextInput(original_text=original_text, corrected_text=corrected_text)
        )
    except Exception as e:
        log.error(f"Error correcting recognized text: {e}")
        return ActionError(error=CORRECTION_ERROR)
