import asyncio

from skillar.engine.registry import SessionRegistry
from skillar.engine.training_session import Phase, TrainingSessionEngine

from fakes import FakeCamera, ScriptedOracle, ok


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _engine(skill_id, catalog, session_log, camera, user_id="u1", oracle=None):
    return TrainingSessionEngine(
        skill_id=skill_id,
        user_id=user_id,
        catalog=catalog,
        session_log=session_log,
        camera=camera,
        oracle=oracle or ScriptedOracle(),
    )


def test_idle_sessions_are_closed(catalog, session_log, make_skill) -> None:
    skill_id = make_skill(n_steps=2)
    clock = Clock()
    registry = SessionRegistry(idle_timeout=60, clock=clock)
    idle_camera, busy_camera = FakeCamera(), FakeCamera()

    async def scenario():
        idle = await registry.open(_engine(skill_id, catalog, session_log, idle_camera))
        busy = await registry.open(_engine(skill_id, catalog, session_log, busy_camera, user_id="u2"))

        clock.now += 45
        assert registry.get(busy, "u2") is not None
        clock.now += 30
        assert await registry.close_idle() == 1
        return idle, busy

    idle, busy = asyncio.run(scenario())

    assert registry.get(idle, "u1") is None
    assert registry.get(busy, "u2") is not None
    assert len(registry) == 1
    assert idle_camera.released == 1
    assert busy_camera.released == 0


def test_open_sweeps_abandoned_sessions(catalog, session_log, make_skill) -> None:
    skill_id = make_skill(n_steps=1)
    clock = Clock()
    registry = SessionRegistry(idle_timeout=60, clock=clock)
    camera = FakeCamera()

    async def scenario():
        await registry.open(_engine(skill_id, catalog, session_log, camera))
        clock.now += 61
        await registry.open(_engine(skill_id, catalog, session_log, FakeCamera()))

    asyncio.run(scenario())
    assert len(registry) == 1
    assert camera.released == 1


def test_completed_session_holds_no_camera(catalog, session_log, make_skill) -> None:
    skill_id = make_skill(n_steps=1)
    registry = SessionRegistry(idle_timeout=60, clock=Clock())
    camera = FakeCamera()

    async def scenario():
        handle = await registry.open(_engine(skill_id, catalog, session_log, camera, oracle=ScriptedOracle(ok(90))))
        engine = registry.get(handle, "u1")
        await engine.verify()
        await engine.advance()
        return engine

    engine = asyncio.run(scenario())
    assert engine.phase == Phase.COMPLETE
    assert not engine.camera_active
    assert camera.released == 1


def test_close_is_owner_scoped(catalog, session_log, make_skill) -> None:
    skill_id = make_skill(n_steps=1)
    registry = SessionRegistry(idle_timeout=60, clock=Clock())

    async def scenario():
        handle = await registry.open(_engine(skill_id, catalog, session_log, FakeCamera()))
        assert not await registry.close(handle, "someone-else")
        assert await registry.close(handle, "u1")
        assert not await registry.close(handle, "u1")

    asyncio.run(scenario())
    assert len(registry) == 0
