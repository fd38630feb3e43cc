import base64

import cv2
import numpy as np
import pytest

from stepwise.models.solution_schema import ExplainSolutionOutput, SpeechOutput
from stepwise.services import actions_service, ai_service

from conftest import AUDIO_URI, LINEAR_SOLUTION, png_data_url


@pytest.fixture
def fake_ai(monkeypatch):
    """替换 AI 操作层，记录每个操作的调用次数。"""
    calls = {"solve": 0, "explain": 0, "speech": 0}

    async def solve(inp):
        calls["solve"] += 1
        return LINEAR_SOLUTION

    async def explain(inp):
        calls["explain"] += 1
        return ExplainSolutionOutput(plain_language_explanation="Take 5 away, then halve.")

    async def speak(inp):
        calls["speech"] += 1
        return SpeechOutput(audio_data_uri=AUDIO_URI)

    monkeypatch.setattr(ai_service, "solve_problem_from_image", solve)
    monkeypatch.setattr(ai_service, "explain_solution", explain)
    monkeypatch.setattr(ai_service, "text_to_speech", speak)
    return calls


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_actions_solve_returns_camel_case(client, fake_ai):
    body = client.post("/actions/solve", json={"photoDataUri": png_data_url()}).json()
    assert body["code"] == 0
    assert body["data"]["recognizedText"] == "Solve for x: 2x + 5 = 15"
    assert len(body["data"]["solutionSteps"]) == 4
    assert "audioDataUri" not in body["data"]


def test_actions_solve_with_speech(client, fake_ai):
    body = client.post("/actions/solve", json={"photoDataUri": png_data_url(), "withSpeech": True}).json()
    assert body["data"]["audioDataUri"] == AUDIO_URI
    assert fake_ai == {"solve": 1, "explain": 0, "speech": 1}


def test_actions_solve_error_contract(client, monkeypatch):
    async def failing(inp):
        raise TimeoutError("model timed out")

    monkeypatch.setattr(ai_service, "solve_problem_from_image", failing)
    body = client.post("/actions/solve", json={"photoDataUri": png_data_url()}).json()
    assert body["code"] == 1
    assert body["data"] == {"error": actions_service.SOLVE_ERROR}


def test_actions_explain_fallback_is_a_normal_result(client, monkeypatch):
    async def failing(inp):
        raise RuntimeError("blocked by safety policy")

    monkeypatch.setattr(ai_service, "explain_solution", failing)
    body = client.post(
        "/actions/explain",
        json={"problem": "2x + 5 = 15", "solutionSteps": "x = 5", "subject": "math"},
    ).json()
    assert body["code"] == 0
    assert body["data"] == {"plainLanguageExplanation": actions_service.EXPLANATION_FALLBACK}


def test_actions_correct_text(client):
    body = client.post(
        "/actions/correct-text", json={"originalText": "2x+5=16", "correctedText": "2x + 5 = 15"}
    ).json()
    assert body["data"] == {"correctedText": "2x + 5 = 15"}


def test_whiteboard_empty_canvas_never_reaches_gateway(client, fake_ai):
    body = client.post("/whiteboard/solve", json={"width": 100, "height": 80, "strokes": []}).json()
    assert body["code"] == 400
    assert body["message"] == "Please draw or upload a problem first."
    assert fake_ai["solve"] == 0


def test_whiteboard_solve_submits_rendered_png(client, monkeypatch):
    seen = []

    async def solve(inp):
        seen.append(inp.photo_data_uri)
        return LINEAR_SOLUTION

    monkeypatch.setattr(ai_service, "solve_problem_from_image", solve)
    body = client.post(
        "/whiteboard/solve",
        json={
            "width": 120,
            "height": 90,
            "strokes": [{"tool": "pencil", "points": [{"x": 10, "y": 10}, {"x": 100, "y": 80}]}],
        },
    ).json()

    assert body["code"] == 0
    raw = base64.b64decode(seen[0].split(",", 1)[1])
    img = cv2.imdecode(np.frombuffer(raw, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert img.shape == (90, 120, 3)


def test_whiteboard_rejects_non_image_upload_data(client, fake_ai):
    text_uri = "data:text/plain;base64," + base64.b64encode(b"hello").decode()
    body = client.post("/whiteboard/solve", json={"imageDataUri": text_uri}).json()
    assert body["code"] == 400
    assert body["message"] == "Please upload an image file."
    assert fake_ai["solve"] == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"width": 10**6, "height": 10**6},
        {"width": 100, "height": 80, "strokes": [{"points": [{"x": "NaN", "y": 5}]}]},
        {"width": 100, "height": 80, "strokes": [{"points": [{"x": 5, "y": 5}, {"x": "1e308", "y": 5}]}]},
        {"width": 100, "height": 80, "strokes": [{"points": [{"x": 5, "y": "-Infinity"}]}]},
    ],
)
def test_whiteboard_out_of_range_request_is_rejected(client, fake_ai, payload):
    resp = client.post("/whiteboard/solve", json=payload)
    assert resp.status_code == 422
    assert fake_ai["solve"] == 0


def test_upload_returns_data_uri(client):
    png = base64.b64decode(png_data_url().split(",", 1)[1])
    body = client.post("/whiteboard/upload", files={"file": ("problem.png", png, "image/png")}).json()
    assert body["code"] == 0
    assert body["data"]["dataUri"].startswith("data:image/png;base64,")


def test_upload_rejects_non_image(client):
    body = client.post("/whiteboard/upload", files={"file": ("notes.txt", b"2x + 5 = 15", "text/plain")}).json()
    assert body["code"] == 400
    assert body["message"] == "Please upload an image file."


def test_session_flow(client, fake_ai):
    created = client.post("/sessions").json()["data"]
    assert created["status"] == "empty"
    sid = created["sessionId"]

    empty = client.post(f"/sessions/{sid}/solve", json={}).json()["data"]
    assert empty["notice"] == "Please draw or upload a problem first."
    assert fake_ai["solve"] == 0

    view = client.post(f"/sessions/{sid}/solve", json={"imageDataUri": png_data_url()}).json()["data"]
    assert view["status"] == "populated"
    assert view["steps"][0] == {"index": 1, "text": LINEAR_SOLUTION.solution_steps[0]}

    client.post(f"/sessions/{sid}/explain")
    view = client.post(f"/sessions/{sid}/explain").json()["data"]
    assert view["explanation"] == {"state": "ready", "text": "Take 5 away, then halve."}
    assert fake_ai["explain"] == 1

    client.post(f"/sessions/{sid}/listen")
    view = client.post(f"/sessions/{sid}/listen").json()["data"]
    assert view["audioDataUri"] == AUDIO_URI
    assert fake_ai["speech"] == 2

    view = client.post(f"/sessions/{sid}/reset").json()["data"]
    assert view["status"] == "empty"

    assert client.delete(f"/sessions/{sid}").json()["code"] == 0
    assert client.get(f"/sessions/{sid}").status_code == 404


def test_unknown_session_is_404(client):
    assert client.post("/sessions/does-not-exist/explain").status_code == 404
