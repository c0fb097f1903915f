"""
Verification Oracle
===================
Judges whether a captured frame satisfies a step.

  SimulatedOracle     the default: a coin flip, no image processing at all
  VisionModelOracle   asks a vision model over an OpenAI-compatible API

Both honour the same contract, so the training engine never knows which one it has.
"""

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from ..config import settings

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class Verification:
    outcome: Outcome
    score: int

    @property
    def passed(self) -> bool:
        return self.outcome == Outcome.SUCCESS


@dataclass(frozen=True)
class StepContext:
    skill_id: str
    skill_title: str
    step_index: int        # 0-based
    step_title: str
    instruction: str


class VerificationOracle(Protocol):
    async def verify(self, frame: bytes, context: StepContext) -> Verification:
        ...


SUCCESS_SCORES = (80, 99)
FAILURE_SCORES = (20, 59)


class SimulatedOracle:
    """
    Placeholder verifier. The frame is ignored.

    success with probability `success_rate` (score uniform in 80..99),
    otherwise failure (score uniform in 20..59), after `latency` seconds.
    """

    def __init__(self, success_rate: float = None, latency: float = None, rng: Optional[random.Random] = None):
        self.success_rate = settings.ORACLE_SUCCESS_RATE if success_rate is None else success_rate
        self.latency = settings.VERIFY_LATENCY_SECONDS if latency is None else latency
        self.rng = rng or random.Random()

    async def verify(self, frame: bytes, context: StepContext) -> Verification:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        if self.rng.random() < self.success_rate:
            return Verification(Outcome.SUCCESS, self.rng.randint(*SUCCESS_SCORES))
        return Verification(Outcome.FAILURE, self.rng.randint(*FAILURE_SCORES))


VISION_SYSTEM = """You are a vocational skills assessor. You see one photo taken while a trainee
performs a single step of a practical task. Judge only whether the photo shows that step done correctly.

Return ONLY this JSON:
{"passed": true, "score": 87, "reason": "short reason"}

score is 0-100. passed means the technique is acceptable."""


def parse_vision_reply(text: str) -> Verification:
    """Pull the JSON verdict out of a model reply. Unreadable replies count as failure."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        try:
            data = json.loads(text[start:end])
            score = max(0, min(100, int(data.get("score", 0))))
            outcome = Outcome.SUCCESS if data.get("passed") else Outcome.FAILURE
            return Verification(outcome, score)
        except (json.JSONDecodeError, TypeError, ValueError):
            pass
    logger.warning("could not parse vision verdict: %r", text[:200])
    return Verification(Outcome.FAILURE, 0)


class VisionModelOracle:
    def __init__(self, model: str = None):
        self.model = model or settings.VISION_MODEL

    async def verify(self, frame: bytes, context: StepContext) -> Verification:
        from ..ai_client import chat_with_image

        prompt = (
            f"Skill: {context.skill_title}\n"
            f"Step {context.step_index + 1}: {context.step_title}\n"
            f"Instruction: {context.instruction}\n\n"
            "Does the photo show this step performed correctly?"
        )
        reply = await asyncio.to_thread(
            chat_with_image, prompt, frame, system=VISION_SYSTEM, model=self.model
        )
        return parse_vision_reply(reply)


def get_oracle(backend: str = None) -> VerificationOracle:
    backend = backend or settings.ORACLE_BACKEND
    if backend == "vision":
        return VisionModelOracle()
    if backend != "simulated":
        logger.warning("unknown ORACLE_BACKEND %r, using simulated", backend)
    return SimulatedOracle()
