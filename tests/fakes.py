"""Deterministic stand-ins for the camera, the oracle and failing stores."""

from __future__ import annotations

import asyncio

from skillar.engine.camera import PERMISSION_MESSAGE
from skillar.engine.oracle import Outcome, Verification
from skillar.errors import FetchError, PermissionDenied, WriteError


def ok(score: int) -> Verification:
    return Verification(Outcome.SUCCESS, score)


def fail(score: int = 30) -> Verification:
    return Verification(Outcome.FAILURE, score)


class ScriptedOracle:
    """Returns the queued verdicts in order and records what it was asked."""

    def __init__(self, *verdicts: Verification) -> None:
        self.verdicts = list(verdicts)
        self.calls = []

    def queue(self, *verdicts: Verification) -> None:
        self.verdicts.extend(verdicts)

    async def verify(self, frame, context):
        self.calls.append((frame, context))
        return self.verdicts.pop(0)


class GatedOracle:
    """Blocks inside verify() until `gate` is set."""

    def __init__(self, verdict: Verification) -> None:
        self.verdict = verdict
        self.gate: asyncio.Event | None = None
        self.calls = 0

    async def verify(self, frame, context):
        self.calls += 1
        await self.gate.wait()
        return self.verdict


class BrokenOracle:
    async def verify(self, frame, context):
        raise RuntimeError("model server unreachable")


class FakeCamera:
    def __init__(self, permission: bool = True, frame: bytes = b"frame-bytes") -> None:
        self.permission = permission
        self.frame = frame
        self.acquired = 0
        self.released = 0
        self.captured = 0

    def acquire_stream(self, facing):
        self.acquired += 1
        if not self.permission:
            raise PermissionDenied(PERMISSION_MESSAGE)
        return {"facing": facing}

    def capture_frame(self, stream):
        self.captured += 1
        return self.frame

    def release(self, stream):
        self.released += 1

    def push(self, frame):
        self.frame = frame


class BrokenSessionLog:
    def __init__(self) -> None:
        self.attempts = 0

    def append(self, session):
        self.attempts += 1
        raise WriteError("document store unreachable")

    def get(self, session_id):
        raise FetchError("document store unreachable")


class BrokenCatalog:
    def get_skill(self, skill_id):
        raise FetchError("document store unreachable")

    def list_skills(self):
        raise FetchError("document store unreachable")

    def get_profile(self, user_id):
        raise FetchError("document store unreachable")
