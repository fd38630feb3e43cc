"""
展示层会话服务（每个用户一份的临时视图状态）
---------------------------------
功能：
- `SolutionSession`：串起 "解题 -> 可选讲解 -> 可选朗读" 的用户操作，所有操作都由用户触发：
  * `solve`：无图片时只设置提示，不发请求；否则进入 loading，等待网关返回后写入 `Solution` 或错误文案；
  * `explain`：每个解题结果只请求一次，结果缓存在 `solution.explanation`，再次触发直接返回缓存；
  * `listen`：优先朗读讲解，否则朗读拼接后的步骤；结果不缓存，每次触发都重新请求；
  * `practice`：生成练习题写入 `solution.practice_problems`；
  * `correct_text`：替换识别文本，并清空讲解缓存与练习题；
  * `reset`：清空所有状态。
- 同一操作在请求未返回前重复触发会被忽略（相当于前端禁用按钮）；不同操作（如讲解与朗读）可同时进行。
- 每次解题 / 重置都会推进 `generation`，旧请求返回时发现代数不一致即丢弃结果，不会写入已重置的视图。
- `SessionStore`：按 id 保存在内存中的会话，超过 `SESSION_LIMIT` 时淘汰最早创建的会话。

说明：
- 网关（actions_service）从不抛异常，因此这里不做重试或兜底，只负责状态流转；
- 没有取消机制：重置后旧请求仍会完成，只是结果被丢弃。
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Optional
from uuid import uuid4

from ..config import settings
from ..models.session_schema import ExplanationPanel, SessionView, Solution, StepView
from ..models.solution_schema import ActionError
from ..utils.logger import log
from . import actions_service
from .whiteboard_service import EmptyCanvasError


CALL_TO_ACTION = 'Draw a problem on the whiteboard or upload an image, then click "Solve" to see the magic happen.'
SKELETON_ROWS = 6


class SolutionSession:
    def __init__(self, session_id: Optional[str] = None, gateway: Any = None):
        self.id = session_id or uuid4().hex
        # 默认直接使用网关模块；测试中可注入具有同名协程方法的替身
        self.gateway = gateway or actions_service
        self.solution: Optional[Solution] = None
        self.loading = False
        self.notice: Optional[str] = None
        self.error: Optional[str] = None
        self.audio_data_uri: Optional[str] = None
        self._generation = 0
        # action -> 发起时的 generation
        self._pending: Dict[str, int] = {}

    # ---------- 请求闸门 ----------

    def is_pending(self, action: str) -> bool:
        return self._pending.get(action) == self._generation

    def _begin(self, action: str) -> Optional[int]:
        if self.is_pending(action):
            return None
        self._pending[action] = self._generation
        return self._generation

    def _end(self, action: str, generation: int) -> None:
        if self._pending.get(action) == generation:
            del self._pending[action]

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    # ---------- 用户操作 ----------

    async def solve(self, image_data_uri: Optional[str], with_speech: bool = False) -> bool:
        """提交画板内容；返回是否得到了解题结果。"""
        if not image_data_uri:
            self.notice = EmptyCanvasError.notice
            return False
        if self.is_pending("solve"):
            return False

        self._generation += 1
        gen = self._begin("solve")
        self.notice = None
        self.error = None
        self.loading = True
        self.solution = None
        self.audio_data_uri = None
        try:
            if with_speech:
                result = await self.gateway.solve_problem_with_speech(image_data_uri)
            else:
                result = await self.gateway.solve_problem(image_data_uri)
        finally:
            self._end("solve", gen)
            if not self._is_stale(gen):
                self.loading = False

        if self._is_stale(gen):
            log.info(f"session {self.id}: 丢弃过期的解题结果")
            return False
        if isinstance(result, ActionError):
            self.error = result.error
            return False

        self.solution = Solution(
            recognized_text=result.recognized_text,
            subject=result.subject,
            solution_steps=list(result.solution_steps),
        )
        self.audio_data_uri = getattr(result, "audio_data_uri", None)
        return True

    async def explain(self) -> Optional[str]:
        sol = self.solution
        if sol is None:
            return None
        if sol.explanation:
            return sol.explanation
        gen = self._begin("explain")
        if gen is None:
            return None
        try:
            result = await self.gateway.get_explanation(
                sol.recognized_text, "\n".join(sol.solution_steps), sol.subject
            )
        finally:
            self._end("explain", gen)

        if self._is_stale(gen) or self.solution is not sol:
            return None
        sol.explanation = result.plain_language_explanation
        return sol.explanation

    def listen_text(self) -> Optional[str]:
        sol = self.solution
        if sol is None:
            return None
        if sol.explanation:
            return sol.explanation
        if sol.solution_steps:
            return "\n".join(sol.solution_steps)
        return None

    async def listen(self) -> Optional[str]:
        text = self.listen_text()
        if not text:
            return None
        gen = self._begin("listen")
        if gen is None:
            return None
        try:
            result = await self.gateway.get_speech(text)
        finally:
            self._end("listen", gen)

        if self._is_stale(gen):
            return None
        if isinstance(result, ActionError):
            self.error = result.error
            return None
        self.error = None
        self.audio_data_uri = result.audio_data_uri
        return self.audio_data_uri

    async def practice(self) -> Optional[list]:
        sol = self.solution
        if sol is None:
            return None
        gen = self._begin("practice")
        if gen is None:
            return None
        try:
            result = await self.gateway.get_practice_problems(sol.recognized_text, sol.subject)
        finally:
            self._end("practice", gen)

        if self._is_stale(gen) or self.solution is not sol:
            return None
        sol.practice_problems = list(result.practice_problems)
        return sol.practice_problems

    async def correct_text(self, corrected_text: str) -> bool:
        sol = self.solution
        if sol is None:
            return False
        gen = self._begin("correct")
        if gen is None:
            return False
        try:
            result = await self.gateway.correct_recognized_text(sol.recognized_text, corrected_text)
        finally:
            self._end("correct", gen)

        if self._is_stale(gen) or self.solution is not sol:
            return False
        if isinstance(result, ActionError):
            self.error = result.error
            return False
        # 换成新对象：针对旧文本的讲解/练习题请求返回时会被识别为过期
        self.solution = sol.model_copy(
            update={"recognized_text": result.corrected_text, "explanation": "", "practice_problems": []}
        )
        self.audio_data_uri = None
        return True

    def reset(self) -> None:
        self._generation += 1
        self._pending.clear()
        self.solution = None
        self.loading = False
        self.notice = None
        self.error = None
        self.audio_data_uri = None

    # ---------- 渲染 ----------

    def view(self) -> SessionView:
        base = {
            "session_id": self.id,
            "notice": self.notice,
            "error": self.error,
        }
        if self.loading:
            return SessionView(status="loading", skeleton_rows=SKELETON_ROWS, **base)
        sol = self.solution
        if sol is None:
            return SessionView(status="empty", call_to_action=CALL_TO_ACTION, **base)

        if self.is_pending("explain"):
            panel = ExplanationPanel(state="loading")
        elif sol.explanation:
            panel = ExplanationPanel(state="ready", text=sol.explanation)
        else:
            panel = ExplanationPanel()
        return SessionView(
            status="populated",
            recognized_text=sol.recognized_text,
            subject=sol.subject,
            steps=[StepView(index=i, text=s) for i, s in enumerate(sol.solution_steps, start=1)],
            explanation=panel,
            can_listen=self.listen_text() is not None,
            listening=self.is_pending("listen"),
            audio_data_uri=self.audio_data_uri,
            practice_problems=list(sol.practice_problems),
            practice_loading=self.is_pending("practice"),
            **base,
        )


class SessionStore:
    def __init__(self, limit: Optional[int] = None):
        self._limit = limit
        self._sessions: "OrderedDict[str, SolutionSession]" = OrderedDict()

    @property
    def limit(self) -> int:
        return self._limit if self._limit is not None else settings.SESSION_LIMIT

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, gateway: Any = None) -> SolutionSession:
        session = SolutionSession(gateway=gateway)
        self._sessions[session.id] = session
        while len(self._sessions) > max(1, self.limit):
            old_id, _ = self._sessions.popitem(last=False)
            log.info(f"session evicted: {old_id}")
        return session

    def get(self, session_id: str) -> Optional[SolutionSession]:
        return self._sessions.get(session_id)

    def drop(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


store = SessionStore()
