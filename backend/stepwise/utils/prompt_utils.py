"""
解题提示词模板
---------------------------------
功能：
- 为识别解题、通俗讲解、练习题生成三个操作提供提示词；
- 每个模板都是带类型的函数：参数即占位符，拼接在函数体内完成，调用方无法漏传或拼错字段；
- 需要结构化输出的操作，在系统提示中给出固定键名的 JSON 结构，避免自由文本导致解析失败。

使用说明：
- `solve_system_prompt()` + `solve_user_prompt()`：图片作为 `image_url` 内容块单独传入；
- `explain_prompt(inp)`：返回完整用户提示，系统提示使用 `explain_system_prompt()`；
- `practice_prompt(inp)`：以 "1." 结尾，引导模型续写编号列表，输出为纯文本，由服务层拆分。
"""

from __future__ import annotations

from ..models.solution_schema import ExplainSolutionInput, PracticeProblemsInput


PRACTICE_PROBLEM_COUNT = 3


def solve_system_prompt() -> str:
    """识别 + 学科判断 + 分步解题，要求严格 JSON。"""
    return (
        "You are an expert in solving STEM problems. Given an image of a handwritten problem, "
        "please perform the following tasks:\n"
        "1.  **Recognize the text** of the problem from the image.\n"
        "2.  **Identify the subject** of the problem (e.g., math, physics, chemistry).\n"
        "3.  Provide a detailed, **step-by-step solution** to the problem.\n\n"
        "Respond with exactly one JSON object and nothing else (no Markdown, no comments):\n"
        "{\n"
        "  \"recognizedText\": string,\n"
        "  \"subject\": string,\n"
        "  \"solutionSteps\": [string]\n"
        "}\n"
        "Each entry of solutionSteps is one step, in order, without a leading step number."
    )


def solve_user_prompt() -> str:
    return "Image of the problem is attached. Return the JSON object."


def explain_system_prompt() -> str:
    return (
        "You are an expert tutor skilled at explaining complex solutions in plain language. "
        "Respond with exactly one JSON object: {\"plainLanguageExplanation\": string}."
    )


def explain_prompt(inp: ExplainSolutionInput) -> str:
    return (
        f"Subject: {inp.subject}\n"
        f"Problem: {inp.problem}\n"
        f"Solution Steps: {inp.solution_steps}\n\n"
        "Explain the solution steps in plain language, so that a student can better understand "
        "the underlying concepts.\n"
        "Focus on clarity and intuition, not just the mathematical or scientific procedures."
    )


def practice_prompt(inp: PracticeProblemsInput) -> str:
    """结尾的 "1." 是续写起点，模型输出可能省略第一题的编号。"""
    return (
        "You are an expert problem generator for STEM subjects.  Given a problem and its subject, "
        f"you will generate {PRACTICE_PROBLEM_COUNT} similar practice problems.\n\n"
        f"Subject: {inp.subject}\n\n"
        f"Original Problem: {inp.problem_text}\n\n"
        "Practice Problems:\n"
        "1."
    )
