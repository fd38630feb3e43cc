import asyncio

from stepwise.models.solution_schema import ActionError
from stepwise.services.session_service import CALL_TO_ACTION, SessionStore, SolutionSession

from conftest import AUDIO_URI, png_data_url


IMAGE = png_data_url()


def test_new_session_shows_call_to_action(gateway):
    view = SolutionSession(gateway=gateway).view()
    assert view.status == "empty"
    assert view.call_to_action == CALL_TO_ACTION


def test_solve_without_image_only_sets_notice(gateway):
    session = SolutionSession(gateway=gateway)
    assert asyncio.run(session.solve("")) is False
    assert session.view().notice == "Please draw or upload a problem first."
    assert gateway.calls["solve"] == 0


def test_full_scenario(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        gate = asyncio.Event()
        original = gateway.solve_problem

        async def slow_solve(uri):
            await gate.wait()
            return await original(uri)

        gateway.solve_problem = slow_solve
        task = asyncio.create_task(session.solve(IMAGE))
        await asyncio.sleep(0)
        loading = session.view()
        gate.set()
        await task
        return loading

    loading = asyncio.run(scenario())
    assert loading.status == "loading"
    assert loading.skeleton_rows > 0

    view = session.view()
    assert view.status == "populated"
    assert view.recognized_text == "Solve for x: 2x + 5 = 15"
    assert [s.index for s in view.steps] == [1, 2, 3, 4]
    assert view.steps[-1].text.endswith("x = 5")
    assert view.explanation.state == "collapsed"
    assert view.can_listen

    asyncio.run(session.explain())
    assert gateway.calls["explain"] == 1
    assert session.view().explanation.text == gateway.explanation

    asyncio.run(session.listen())
    assert gateway.calls["speech"] == 1
    assert session.view().audio_data_uri == AUDIO_URI


def test_explanation_is_requested_once(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        gate = asyncio.Event()
        original = gateway.get_explanation

        async def slow_explain(*args):
            await gate.wait()
            return await original(*args)

        gateway.get_explanation = slow_explain
        first = asyncio.create_task(session.explain())
        await asyncio.sleep(0)
        assert session.view().explanation.state == "loading"
        # 请求未返回时再次触发：忽略
        assert await session.explain() is None
        gate.set()
        text = await first
        # 已缓存：直接返回
        again = await session.explain()
        return text, again

    text, again = asyncio.run(scenario())
    assert text == again == gateway.explanation
    assert gateway.calls["explain"] == 1
    assert session.view().explanation.state == "ready"


def test_listen_is_never_cached(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        await session.listen()
        await session.listen()

    asyncio.run(scenario())
    assert gateway.calls["speech"] == 2


def test_listen_prefers_explanation_text(gateway):
    session = SolutionSession(gateway=gateway)
    spoken = []

    async def speak(text):
        spoken.append(text)
        return await type(gateway).get_speech(gateway, text)

    gateway.get_speech = speak

    async def scenario():
        await session.solve(IMAGE)
        await session.listen()
        await session.explain()
        await session.listen()

    asyncio.run(scenario())
    assert spoken[0] == "\n".join(gateway.solve_result.solution_steps)
    assert spoken[1] == gateway.explanation


def test_explain_and_listen_may_run_together(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        gate = asyncio.Event()

        async def slow_explain(*args):
            await gate.wait()
            return await type(gateway).get_explanation(gateway, *args)

        gateway.get_explanation = slow_explain
        explaining = asyncio.create_task(session.explain())
        await asyncio.sleep(0)
        audio = await session.listen()
        gate.set()
        await explaining
        return audio

    assert asyncio.run(scenario()) == AUDIO_URI
    assert gateway.calls["explain"] == 1


def test_reset_while_solving_drops_late_result(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        gate = asyncio.Event()

        async def slow_solve(uri):
            await gate.wait()
            return gateway.solve_result

        gateway.solve_problem = slow_solve
        task = asyncio.create_task(session.solve(IMAGE))
        await asyncio.sleep(0)
        session.reset()
        gate.set()
        return await task

    assert asyncio.run(scenario()) is False
    view = session.view()
    assert view.status == "empty"
    assert view.recognized_text is None


def test_reset_while_explaining_drops_late_result(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        gate = asyncio.Event()

        async def slow_explain(*args):
            await gate.wait()
            return await type(gateway).get_explanation(gateway, *args)

        gateway.get_explanation = slow_explain
        task = asyncio.create_task(session.explain())
        await asyncio.sleep(0)
        session.reset()
        gate.set()
        return await task

    assert asyncio.run(scenario()) is None
    assert session.view().status == "empty"


def test_solve_error_is_shown(gateway):
    session = SolutionSession(gateway=gateway)

    async def failing(uri):
        return ActionError(error="Sorry, I was unable to solve this problem. Please try again.")

    gateway.solve_problem = failing
    assert asyncio.run(session.solve(IMAGE)) is False
    view = session.view()
    assert view.status == "empty"
    assert view.error.startswith("Sorry")


def test_solve_with_speech_attaches_audio(gateway):
    session = SolutionSession(gateway=gateway)
    asyncio.run(session.solve(IMAGE, with_speech=True))
    assert session.view().audio_data_uri == AUDIO_URI


def test_new_solve_clears_cached_explanation(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        await session.explain()
        await session.solve(IMAGE)
        return session.view()

    view = asyncio.run(scenario())
    assert view.explanation.state == "collapsed"
    assert gateway.calls["solve"] == 2


def test_correct_text_replaces_problem_and_clears_explanation(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        await session.explain()
        await session.practice()
        return await session.correct_text(" Solve for x: 2x + 5 = 17 ")

    assert asyncio.run(scenario()) is True
    view = session.view()
    assert view.recognized_text == "Solve for x: 2x + 5 = 17"
    assert view.explanation.state == "collapsed"
    assert view.practice_problems == []


def test_practice_problems_are_stored(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        await session.solve(IMAGE)
        return await session.practice()

    problems = asyncio.run(scenario())
    assert problems == ["Solve 3x + 2 = 11", "Solve 5x - 4 = 16"]
    assert session.view().practice_problems == problems


def test_actions_before_solve_do_nothing(gateway):
    session = SolutionSession(gateway=gateway)

    async def scenario():
        return await session.explain(), await session.listen(), await session.practice()

    assert asyncio.run(scenario()) == (None, None, None)
    assert sum(gateway.calls.values()) == 0


def test_store_evicts_oldest_session():
    store = SessionStore(limit=2)
    first = store.create()
    second = store.create()
    third = store.create()
    assert store.get(first.id) is None
    assert store.get(second.id) is second
    assert store.get(third.id) is third
    assert store.drop(third.id) is True
    assert len(store) == 1
