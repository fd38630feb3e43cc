import base64
from collections import Counter
from types import SimpleNamespace

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from stepwise.main import app
from stepwise.models.solution_schema import (
    CorrectTextOutput,
    ExplainSolutionOutput,
    PracticeProblemsOutput,
    SolveProblemOutput,
    SolveWithSpeechOutput,
    SpeechOutput,
)


AUDIO_URI = "data:audio/wav;base64,UklGRiQAAABXQVZF"

LINEAR_SOLUTION = SolveProblemOutput(
    recognized_text="Solve for x: 2x + 5 = 15",
    subject="math",
    solution_steps=[
        "Subtract 5 from both sides: 2x + 5 - 5 = 15 - 5",
        "Simplify: 2x = 10",
        "Divide both sides by 2: 2x / 2 = 10 / 2",
        "Result: x = 5",
    ],
)


def png_data_url(width=20, height=10, color=(0, 0, 255), alpha=None):
    """纯色 PNG 的 data URL；color 为 BGR，alpha 不为空时生成 BGRA。"""
    channels = 3 if alpha is None else 4
    img = np.zeros((height, width, channels), dtype=np.uint8)
    img[:, :, :3] = color
    if alpha is not None:
        img[:, :, 3] = alpha
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return "data:image/png;base64," + base64.b64encode(buf.tobytes()).decode("ascii")


class FakeChatClient:
    """只实现 `chat.completions.create` 的异步客户端替身。"""

    def __init__(self, content):
        self.calls = []

        async def create(**kwargs):
            self.calls.append(kwargs)
            return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

        self.chat = SimpleNamespace(completions=SimpleNamespace(create=create))


class FakeSpeechClient:
    def __init__(self, audio=b"RIFF$\x00\x00\x00WAVE"):
        self.calls = []

        async def create(**kwargs):
            self.calls.append(kwargs)
            return SimpleNamespace(content=audio)

        self.audio = SimpleNamespace(speech=SimpleNamespace(create=create))


class FakeGateway:
    """与 actions_service 同名的协程方法，记录调用次数。"""

    def __init__(self):
        self.calls = Counter()
        self.solve_result = LINEAR_SOLUTION
        self.explanation = "We undo the +5 first, then split 10 into two equal parts."

    async def solve_problem(self, photo_data_uri):
        self.calls["solve"] += 1
        return self.solve_result

    async def solve_problem_with_speech(self, photo_data_uri):
        self.calls["solve"] += 1
        self.calls["speech"] += 1
        return SolveWithSpeechOutput(**self.solve_result.model_dump(), audio_data_uri=AUDIO_URI)

    async def get_explanation(self, problem, solution_steps, subject):
        self.calls["explain"] += 1
        return ExplainSolutionOutput(plain_language_explanation=self.explanation)

    async def get_speech(self, text):
        self.calls["speech"] += 1
        return SpeechOutput(audio_data_uri=AUDIO_URI)

    async def get_practice_problems(self, problem_text, subject):
        self.calls["practice"] += 1
        return PracticeProblemsOutput(practice_problems=["Solve 3x + 2 = 11", "Solve 5x - 4 = 16"])

    async def correct_recognized_text(self, original_text, corrected_text):
        self.calls["correct"] += 1
        return CorrectTextOutput(corrected_text=corrected_text.strip())


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client():
    return TestClient(app)
